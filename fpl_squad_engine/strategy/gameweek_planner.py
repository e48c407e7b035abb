from __future__ import annotations

from typing import Dict, Iterable, List

from ..models import POSITION_ORDER, Position, ScoredPlayer, Squad, UpcomingFixture
from ..utils.numbers import round_half_up


APPEARANCE_POINTS = 2.0
HOME_BONUS = 0.3
CLEAN_SHEET_POINTS = 4.0
CLEAN_SHEET_CHANCE = 0.4
MIN_DIFFICULTY_MULTIPLIER = 0.6


def expected_gameweek_points(player: ScoredPlayer, fixture: UpcomingFixture) -> float:
    """Rough single-fixture projection used for the gameweek breakdown."""
    p = player.player
    expected = APPEARANCE_POINTS
    multiplier = max(MIN_DIFFICULTY_MULTIPLIER, (5 - fixture.difficulty) / 2)
    expected += (p.expected_goals * 0.5 + p.expected_assists * 0.3) * multiplier
    if fixture.is_home:
        expected += HOME_BONUS
    if p.position in (Position.GK, Position.DEF) and fixture.difficulty <= 2:
        expected += CLEAN_SHEET_POINTS * CLEAN_SHEET_CHANCE
    expected += max(0.0, (p.form - 5) * 0.2)
    return round_half_up(expected, 1)


def analyze_gameweeks(squad: Squad, current_gameweek: int, horizon: int = 8) -> Dict[int, Dict]:
    """Per-gameweek view of the squad over the horizon.

    Blank gameweeks show "No fixture"; double gameweeks sum both fixtures.
    """
    analysis: Dict[int, Dict] = {}
    for gw in range(current_gameweek, current_gameweek + horizon):
        rows = []
        for sp in squad.players:
            fixtures = [f for f in sp.fixture_run.fixtures if f.gameweek == gw]
            rows.append({
                "id": sp.id,
                "name": sp.name,
                "team": sp.team.short_name,
                "position": sp.position.value,
                "opponents": [f"{f.opponent} ({'H' if f.is_home else 'A'})" for f in fixtures] or ["No fixture"],
                "difficulty": max((f.difficulty for f in fixtures), default=0),
                "expected_points": round_half_up(sum(expected_gameweek_points(sp, f) for f in fixtures), 1),
            })
        playing = [r for r in rows if r["difficulty"] > 0]
        avg = sum(r["difficulty"] for r in playing) / len(playing) if playing else 0.0
        rows.sort(key=lambda r: (-r["expected_points"], r["id"]))
        analysis[gw] = {
            "gameweek": gw,
            "total_expected": round_half_up(sum(r["expected_points"] for r in rows), 1),
            "average_difficulty": round_half_up(avg, 1),
            "best_fixtures": [r["name"] for r in rows if 0 < r["difficulty"] <= 2],
            "worst_fixtures": [r["name"] for r in rows if r["difficulty"] >= 4],
            "players": rows,
        }
    return analysis


def squad_fixture_strength(squad: Squad) -> int:
    """0-100 scale; 100 would be every player facing difficulty-1 opposition."""
    if not squad.players:
        return 0
    avg = sum(p.average_difficulty for p in squad.players) / squad.size
    return int(round_half_up((5 - avg) * 20, 0))


def position_alternatives(pool: Iterable[ScoredPlayer], squad: Squad, limit: int = 5) -> Dict[str, List[Dict]]:
    owned = set(squad.ids)
    by_pos: Dict[str, List[Dict]] = {}
    candidates = [p for p in pool if p.id not in owned]
    for pos in POSITION_ORDER:
        best = sorted((p for p in candidates if p.position is pos), key=lambda p: (-p.score, p.id))[:limit]
        by_pos[pos.value] = [
            {
                "id": p.id,
                "name": p.name,
                "team": p.team.short_name,
                "price": p.player.price_millions,
                "points": p.player.total_points,
                "form": p.form_score,
                "score": p.score,
                "average_difficulty": round(p.average_difficulty, 2),
            }
            for p in best
        ]
    return by_pos


def squad_insights(squad: Squad) -> List[str]:
    if not squad.players:
        return []
    insights = []
    avg_form = sum(p.form_score for p in squad.players) / squad.size
    if avg_form >= 8:
        insights.append("Squad form is excellent")
    elif avg_form <= 4:
        insights.append("Squad form is concerning - consider changes")

    hot = [p for p in squad.players if p.form_score >= 8]
    if len(hot) >= 3:
        insights.append(f"{len(hot)} players in red-hot form")

    easy = [p for p in squad.players if p.average_difficulty <= 2.5]
    if len(easy) >= 5:
        insights.append(f"{len(easy)} players with favourable fixtures")

    bank = (squad.budget - squad.total_cost) / 10.0
    if bank >= 2:
        insights.append(f"£{bank:.1f}m in the bank for upgrades")

    counts = squad.team_counts
    maxed = sorted(team_id for team_id, n in counts.items() if n >= 3)
    if maxed:
        names = {p.player.team_id: p.team.short_name for p in squad.players}
        insights.append(f"Maxed out on {', '.join(names[t] for t in maxed)} - watch their fixture swings")
    return insights
