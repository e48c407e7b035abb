from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Tuple

import requests

from .analysis.fixture_analyzer import analyze_fixtures, rank_teams_by_fixtures
from .analysis.player_scorer import score_players
from .analysis.transfer_optimizer import suggest_transfers
from .apis.fpl_client import FPLClient
from .apis.snapshot import SnapshotError
from .config.settings import EngineConfig
from .models import CaptainOption, DifferentialPick, ScoredPlayer, Snapshot, Squad, TeamFixtureRun, TransferSuggestion
from .reporting.squad_report import captain_row, differential_row, scored_player_row, transfer_row
from .strategy.captain_picker import CaptainPicker
from .strategy.differentials import find_differentials
from .strategy.gameweek_planner import (
    analyze_gameweeks,
    position_alternatives,
    squad_fixture_strength,
    squad_insights,
)
from .strategy.risk_manager import RiskManager
from .team_selector.solver import filter_candidates, optimize_squad

logger = logging.getLogger(__name__)

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def setup_logging(level: Optional[str] = None, log_file: Optional[str] = None) -> None:
    """Configure the root logger; without an explicit level the LOG_LEVEL env var (default WARNING) is used."""
    name = (level or os.getenv("LOG_LEVEL", "WARNING")).upper()
    handlers: List[logging.Handler] = [logging.StreamHandler()]
    if log_file:
        handlers.append(logging.FileHandler(log_file, encoding="utf-8"))
    numeric = getattr(logging, name, logging.WARNING)
    logging.basicConfig(level=numeric, format=LOG_FORMAT, handlers=handlers)
    # basicConfig is a no-op once handlers exist; the level still applies
    logging.getLogger().setLevel(numeric)


@dataclass(frozen=True)
class SquadAnalysis:
    snapshot: Snapshot
    config: EngineConfig
    fixture_runs: Dict[int, TeamFixtureRun]
    scored: List[ScoredPlayer]
    available: List[ScoredPlayer]
    squad: Squad
    captain_options: List[CaptainOption]
    transfer_suggestions: List[TransferSuggestion]
    differentials: List[DifferentialPick]
    risk_assessment: Dict[str, Any]
    warnings: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        squad = self.squad
        opt = self.config.optimizer
        adv = self.config.advisory
        average_form = (
            round(sum(p.form_score for p in squad.players) / squad.size, 2) if squad.players else 0.0
        )
        return {
            "squad": [scored_player_row(p) for p in squad.players],
            "strategy": squad.strategy,
            "total_cost": squad.total_cost_millions,
            "total_score": squad.total_score,
            "total_points": squad.total_points,
            "average_form": average_form,
            "fixture_strength": squad_fixture_strength(squad),
            "captain_options": [captain_row(c) for c in self.captain_options],
            "alternatives": position_alternatives(self.available, squad, adv.alternatives_per_position),
            "gameweek_analysis": analyze_gameweeks(squad, self.snapshot.current_gameweek, opt.horizon),
            "transfer_suggestions": [transfer_row(t) for t in self.transfer_suggestions],
            "differentials": [differential_row(d) for d in self.differentials],
            "risk_assessment": self.risk_assessment,
            "top_fixture_teams": rank_teams_by_fixtures(
                self.fixture_runs, self.snapshot.teams, adv.top_fixture_teams
            ),
            "insights": squad_insights(squad),
            "warnings": list(self.warnings),
        }


def score_snapshot(
    snapshot: Snapshot,
    config: Optional[EngineConfig] = None,
) -> Tuple[Dict[int, TeamFixtureRun], List[ScoredPlayer], List[ScoredPlayer]]:
    """Fixture runs, every scored player and the risk-filtered pool, without building a squad."""
    cfg = config or EngineConfig()
    opt = cfg.optimizer
    runs = analyze_fixtures(snapshot.fixtures, snapshot.teams, snapshot.current_gameweek, opt.horizon)
    scored = score_players(snapshot.players, snapshot.teams_by_id, runs, cfg.scoring)
    available = filter_candidates(scored, opt.risk_threshold)
    logger.info("%d of %d players available after risk filter", len(available), len(scored))
    return runs, scored, available


def analyze_snapshot(snapshot: Snapshot, config: Optional[EngineConfig] = None) -> SquadAnalysis:
    """Run the full pipeline over one in-memory snapshot.

    snapshot -> fixture runs -> scores -> risk filter -> squad -> advisories.
    Every call builds its own collections; nothing is shared between calls.
    """
    cfg = config or EngineConfig()
    opt = cfg.optimizer
    adv = cfg.advisory

    runs, scored, available = score_snapshot(snapshot, cfg)
    squad = optimize_squad(available, opt)
    warnings: List[str] = []
    if not squad.is_complete:
        warnings.append(
            f"Only {squad.size}/{squad.required_size} players selected due to budget/team constraints"
        )

    return SquadAnalysis(
        snapshot=snapshot,
        config=cfg,
        fixture_runs=runs,
        scored=scored,
        available=available,
        squad=squad,
        captain_options=CaptainPicker(adv).rank_captains(squad),
        transfer_suggestions=suggest_transfers(squad, available, adv),
        differentials=find_differentials(
            available,
            max_ownership=adv.differential_ownership,
            min_points=adv.differential_min_points,
            limit=adv.differential_limit,
        ),
        risk_assessment=RiskManager().assess_squad_risk(squad),
        warnings=warnings,
    )


def build_squad_analysis(snapshot: Snapshot, config: Optional[EngineConfig] = None) -> Dict[str, Any]:
    return analyze_snapshot(snapshot, config).to_dict()


def run_squad_analysis(
    client: Optional[FPLClient] = None,
    config: Optional[EngineConfig] = None,
    snapshot: Optional[Snapshot] = None,
) -> Dict[str, Any]:
    """
    Fetch (unless a snapshot is given), analyse and wrap the result.

    Returns ``{"success": True, "data": ..., "metadata": ...}`` or, when the
    fetch or parse fails, ``{"success": False, "error": ..., "details": ...}``.
    Nothing is retried here; the client already retries transient HTTP errors.
    """
    cfg = config or EngineConfig()
    try:
        if snapshot is None:
            client = client or FPLClient(
                base_url=cfg.api.base_url,
                timeout=cfg.api.timeout,
                retry_attempts=cfg.api.retry_attempts,
            )
            snapshot = client.fetch_snapshot()
        analysis = analyze_snapshot(snapshot, cfg)
    except (requests.RequestException, SnapshotError) as e:
        logger.exception("Squad optimization failed")
        return {"success": False, "error": "Failed to optimize squad", "details": str(e)}

    gw = snapshot.current_gameweek
    return {
        "success": True,
        "data": analysis.to_dict(),
        "metadata": {
            "current_gameweek": gw,
            "players_analyzed": len(analysis.available),
            "generated_at": datetime.now(timezone.utc).isoformat(),
            "budget": cfg.optimizer.budget,
            "target_gameweeks": f"{gw} - {gw + cfg.optimizer.horizon - 1}",
            "strategy": analysis.squad.strategy,
        },
    }
