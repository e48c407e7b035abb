from __future__ import annotations

import json
import logging
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional, Tuple

import pandas as pd

from ..analysis.risk import risk_description
from ..models import CaptainOption, DifferentialPick, ScoredPlayer, TransferSuggestion

logger = logging.getLogger(__name__)

SQUAD_COLUMNS = [
    "id", "name", "position", "team", "price", "total_points", "form",
    "score", "average_difficulty", "easy_run", "hard_run", "risk", "ownership",
]


def scored_player_row(sp: ScoredPlayer) -> Dict[str, Any]:
    run = sp.fixture_run
    return {
        "id": sp.id,
        "name": sp.name,
        "position": sp.position.value,
        "team": sp.team.short_name,
        "price": sp.player.price_millions,
        "total_points": sp.player.total_points,
        "form": sp.form_score,
        "expected_score": round(sp.expected_score, 2),
        "score": sp.score,
        "price_per_point": round(sp.price_per_point, 3),
        "average_difficulty": round(run.average_difficulty, 2),
        "easy_run": run.easy_run,
        "hard_run": run.hard_run,
        "next_fixtures": [
            f"{f.opponent} ({'H' if f.is_home else 'A'}) [{f.difficulty}]" for f in run.fixtures[:3]
        ],
        "risk": sp.risk,
        "risk_label": risk_description(sp.risk),
        "ownership": sp.player.ownership,
    }


def captain_row(option: CaptainOption) -> Dict[str, Any]:
    return {
        "id": option.player.id,
        "name": option.player.name,
        "team": option.player.team.short_name,
        "form": option.player.form_score,
        "next_fixture": option.next_opponent,
        "expected_points": option.expected_points,
        "rank_score": option.rank_score,
        "reasoning": option.reasoning,
    }


def transfer_row(s: TransferSuggestion) -> Dict[str, Any]:
    return {
        "out": {
            "id": s.out_player.id,
            "name": s.out_player.name,
            "team": s.out_player.team.short_name,
            "price": s.out_player.player.price_millions,
            "reason": s.out_reason,
        },
        "in": {
            "id": s.in_player.id,
            "name": s.in_player.name,
            "team": s.in_player.team.short_name,
            "price": s.in_player.player.price_millions,
            "reason": s.in_reason,
        },
        "cost_delta": round(s.cost_delta, 1),
        "priority": s.priority,
    }


def differential_row(d: DifferentialPick) -> Dict[str, Any]:
    return {
        "id": d.player.id,
        "name": d.player.name,
        "team": d.player.team.short_name,
        "position": d.player.position.value,
        "price": d.player.player.price_millions,
        "ownership": d.ownership,
        "points": d.points,
        "form": d.form,
        "average_difficulty": d.average_difficulty,
        "score": d.score,
    }


def squad_to_frame(rows: Iterable[Dict[str, Any]]) -> pd.DataFrame:
    df = pd.DataFrame(list(rows))
    if df.empty:
        return pd.DataFrame(columns=SQUAD_COLUMNS)
    return df[[c for c in SQUAD_COLUMNS if c in df.columns]]


def format_summary(data: Dict[str, Any]) -> str:
    """Plain-text summary of an analysis payload for the console."""
    lines = [
        f"Squad: {len(data['squad'])} players | Cost £{data['total_cost']:.1f}m | "
        f"Points {data['total_points']} | Avg form {data['average_form']:.1f} | "
        f"Fixture strength {data['fixture_strength']}/100",
        "",
        squad_to_frame(data["squad"]).to_string(index=False),
    ]
    if data.get("captain_options"):
        lines += ["", "Captain options:"]
        for i, c in enumerate(data["captain_options"], start=1):
            lines.append(f"  {i}. {c['name']} ({c['team']}) vs {c['next_fixture']} - {c['reasoning']}")
    if data.get("transfer_suggestions"):
        lines += ["", "Transfer suggestions:"]
        for t in data["transfer_suggestions"]:
            lines.append(
                f"  {t['out']['name']} -> {t['in']['name']} ({t['cost_delta']:+.1f}m, +{t['priority']}) "
                f"{t['out']['reason']} -> {t['in']['reason']}"
            )
    risk = data.get("risk_assessment") or {}
    if risk:
        lines += ["", f"Risk: {risk['level']}"]
        lines += [f"  - {r}" for r in risk.get("recommendations", [])]
    for w in data.get("warnings", []):
        lines.append(f"WARNING: {w}")
    return "\n".join(lines)


def write_report(result: Dict[str, Any], out_dir: Path, timestamp: Optional[str] = None) -> Tuple[Path, Path]:
    """Write the full result as JSON and the squad as CSV. Returns both paths."""
    out_dir.mkdir(parents=True, exist_ok=True)
    ts = timestamp or datetime.now().strftime("%Y%m%d_%H%M%S")
    json_path = out_dir / f"squad_analysis_{ts}.json"
    csv_path = out_dir / f"squad_analysis_{ts}.csv"
    with open(json_path, "w", encoding="utf-8") as f:
        json.dump(result, f, indent=2, default=str)
    squad_rows: List[Dict[str, Any]] = (result.get("data") or {}).get("squad", [])
    squad_to_frame(squad_rows).to_csv(csv_path, index=False)
    logger.info("Squad report saved: %s; %s", json_path, csv_path)
    return json_path, csv_path
