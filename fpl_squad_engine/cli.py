from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import Optional

logger = logging.getLogger(__name__)


def _apply_log_level(args: argparse.Namespace) -> None:
    """Apply log level from CLI flags without reconfiguring handlers."""
    level: Optional[int] = None
    if getattr(args, "log_level", None):
        level = getattr(logging, str(args.log_level).upper(), None)
    elif getattr(args, "quiet", False):
        level = logging.WARNING
    elif getattr(args, "verbose", False):
        level = logging.INFO

    if level is not None:
        logging.getLogger().setLevel(level)


def _add_common_verbosity_flags(p: argparse.ArgumentParser) -> None:
    p.add_argument("--log-level", choices=["CRITICAL", "ERROR", "WARNING", "INFO", "DEBUG"], help="Set log level")
    p.add_argument("-q", "--quiet", action="store_true", help="Alias for --log-level WARNING")
    p.add_argument("-v", "--verbose", action="store_true", help="Alias for --log-level INFO")


def _add_engine_flags(p: argparse.ArgumentParser) -> None:
    p.add_argument("--config", type=str, help="Path to config.yaml (default: project root or CONFIG_YAML_PATH)")
    p.add_argument("--budget", type=float, help="Budget in millions (default from config: 100.0)")
    p.add_argument("--horizon", type=int, help="Gameweeks of fixtures to look ahead (default from config: 8)")
    p.add_argument("--risk-threshold", type=int, help="Exclude players at or above this risk level (default: 3)")
    p.add_argument("--gameweek", type=int, help="Override the current gameweek")
    p.add_argument("--bootstrap-file", type=str, help="Read bootstrap-static JSON from a file instead of the API")
    p.add_argument("--fixtures-file", type=str, help="Read fixtures JSON from a file instead of the API")


def _load_config(args: argparse.Namespace):
    """Settings plus the engine config with CLI overrides; raises ValueError on invalid values."""
    from fpl_squad_engine.config.settings import load_settings

    settings = load_settings(Path(args.config) if args.config else None)
    engine = settings.engine.with_overrides(
        budget=args.budget, horizon=args.horizon, risk_threshold=args.risk_threshold
    )
    return settings, engine


def _load_snapshot(args: argparse.Namespace, engine):
    """Snapshot from files when both are given, otherwise from the live API."""
    from fpl_squad_engine.apis.fpl_client import FPLClient
    from fpl_squad_engine.apis.snapshot import load_snapshot_files

    if bool(args.bootstrap_file) != bool(args.fixtures_file):
        raise SystemExit("--bootstrap-file and --fixtures-file must be given together")
    if args.bootstrap_file:
        return load_snapshot_files(Path(args.bootstrap_file), Path(args.fixtures_file), gameweek=args.gameweek)
    client = FPLClient(
        base_url=engine.api.base_url,
        timeout=engine.api.timeout,
        retry_attempts=engine.api.retry_attempts,
    )
    return client.fetch_snapshot(gameweek=args.gameweek)


def _cmd_optimize(args: argparse.Namespace, settings, engine) -> int:
    import requests

    from fpl_squad_engine.apis.snapshot import SnapshotError
    from fpl_squad_engine.main import run_squad_analysis
    from fpl_squad_engine.reporting.squad_report import format_summary, write_report

    try:
        snapshot = _load_snapshot(args, engine)
    except (requests.RequestException, SnapshotError, OSError) as e:
        logger.error("Could not load FPL data: %s", e)
        print(f"Squad optimization failed: {e}")
        return 1

    result = run_squad_analysis(config=engine, snapshot=snapshot)
    if not result["success"]:
        print(f"{result['error']}: {result['details']}")
        return 1

    if args.json:
        print(json.dumps(result, indent=2, default=str))
    else:
        print(format_summary(result["data"]))

    if args.report_dir or not args.no_report:
        out_dir = Path(args.report_dir) if args.report_dir else settings.report_output_dir
        write_report(result, out_dir)
    return 0


def _cmd_differentials(args: argparse.Namespace, settings, engine) -> int:
    import requests

    from fpl_squad_engine.apis.snapshot import SnapshotError
    from fpl_squad_engine.main import score_snapshot
    from fpl_squad_engine.reporting.squad_report import differential_row
    from fpl_squad_engine.strategy.differentials import find_differentials

    adv = engine.advisory
    try:
        snapshot = _load_snapshot(args, engine)
    except (requests.RequestException, SnapshotError, OSError) as e:
        print(f"Could not load FPL data: {e}")
        return 1

    _, _, available = score_snapshot(snapshot, engine)
    picks = find_differentials(
        available,
        max_ownership=args.max_ownership if args.max_ownership is not None else adv.differential_ownership,
        min_points=args.min_points if args.min_points is not None else adv.differential_min_points,
        limit=args.limit if args.limit is not None else adv.differential_limit,
    )
    for i, row in enumerate(map(differential_row, picks), start=1):
        print(f"{i}. {row['name']} ({row['team']}) {row['position']} - £{row['price']:.1f}m")
        print(f"   Owned: {row['ownership']}% | Points: {row['points']} | Form: {row['form']} "
              f"| FDR: {row['average_difficulty']}")
    if not picks:
        print("No differentials match the filters.")
    return 0


def _cmd_fixtures(args: argparse.Namespace, settings, engine) -> int:
    import pandas as pd
    import requests

    from fpl_squad_engine.analysis.fixture_analyzer import analyze_fixtures, rank_teams_by_fixtures
    from fpl_squad_engine.apis.snapshot import SnapshotError

    try:
        snapshot = _load_snapshot(args, engine)
    except (requests.RequestException, SnapshotError, OSError) as e:
        print(f"Could not load FPL data: {e}")
        return 1

    limit = args.limit if args.limit is not None else engine.advisory.top_fixture_teams
    runs = analyze_fixtures(snapshot.fixtures, snapshot.teams, snapshot.current_gameweek, engine.optimizer.horizon)
    ranking = rank_teams_by_fixtures(runs, snapshot.teams, limit=limit)
    df = pd.DataFrame(ranking)
    if not df.empty:
        df["next_fixtures"] = df["next_fixtures"].apply(", ".join)
    print(df.to_string(index=False))
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="fpl-squad", description="FPL squad optimizer and advisor")
    sub = parser.add_subparsers(dest="command", required=True)

    p_opt = sub.add_parser("optimize", help="Build the best 15-player squad and advisory report")
    _add_common_verbosity_flags(p_opt)
    _add_engine_flags(p_opt)
    p_opt.add_argument("--report-dir", type=str, help="Directory to save JSON/CSV output (default: reports)")
    p_opt.add_argument("--no-report", action="store_true", help="Do not write report files")
    p_opt.add_argument("--json", action="store_true", help="Print the full JSON result instead of a summary")
    p_opt.set_defaults(func=_cmd_optimize)

    p_diff = sub.add_parser("differentials", help="List low-owned players with returns")
    _add_common_verbosity_flags(p_diff)
    _add_engine_flags(p_diff)
    p_diff.add_argument("--max-ownership", type=float, help="Ownership ceiling in percent (default from config: 5)")
    p_diff.add_argument("--min-points", type=int, help="Minimum season points (default from config: 8)")
    p_diff.add_argument("--limit", type=int, help="Number of picks (default from config: 10)")
    p_diff.set_defaults(func=_cmd_differentials)

    p_fix = sub.add_parser("fixtures", help="Rank teams by upcoming fixture difficulty")
    _add_common_verbosity_flags(p_fix)
    _add_engine_flags(p_fix)
    p_fix.add_argument("--limit", type=int, help="Number of teams (default from config: 8)")
    p_fix.set_defaults(func=_cmd_fixtures)

    return parser


def main(argv: Optional[list[str]] = None) -> int:
    import yaml

    from fpl_squad_engine.main import setup_logging

    parser = build_parser()
    args = parser.parse_args(argv)

    fn = getattr(args, "func", None)
    if not fn:
        parser.print_help()
        return 2

    try:
        settings, engine = _load_config(args)
    except (ValueError, yaml.YAMLError) as e:
        setup_logging()
        logger.error("Invalid configuration: %s", e)
        print(f"Invalid configuration: {e}")
        return 1

    setup_logging(settings.log_level)
    _apply_log_level(args)
    return int(fn(args, settings, engine))


if __name__ == "__main__":  # pragma: no cover
    sys.exit(main())
