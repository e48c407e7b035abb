from __future__ import annotations

import logging
from typing import Dict, Iterable, List, Mapping, Optional

from ..apis.snapshot import SnapshotError
from ..config.settings import ScoringWeights
from ..models import Player, Position, ScoredPlayer, Team, TeamFixtureRun
from ..utils.numbers import round_half_up, safe
from .risk import player_risk

logger = logging.getLogger(__name__)

PRICE_FLOOR = 0.1  # millions
NO_POINTS_PRICE_PER_POINT = 999.0
MAX_DIFFICULTY = 5.0


def value_ratio(player: Player) -> float:
    """Season points per million; 0 for players without positive points."""
    if player.total_points <= 0:
        return 0.0
    return player.total_points / max(player.price_millions, PRICE_FLOOR)


def _position_bonus(player: Player, fixture_ease: float, w: ScoringWeights) -> float:
    xg = safe(player.expected_goals)
    xa = safe(player.expected_assists)
    if player.position is Position.GK:
        return fixture_ease * w.gk_clean_sheet
    if player.position is Position.DEF:
        return fixture_ease * w.def_clean_sheet + (xg + xa) * w.def_attacking
    if player.position is Position.MID:
        return safe(player.creativity) / w.mid_creativity_divisor
    if player.position is Position.FWD:
        return xg * w.fwd_goal_threat
    raise ValueError(f"Unhandled position: {player.position!r}")


def compute_score_components(
    player: Player,
    fixture_run: TeamFixtureRun,
    weights: Optional[ScoringWeights] = None,
) -> Dict[str, float]:
    """
    Returns the unrounded additive components of a player's score.

    The components are summed, not normalised, so the weights are relative
    emphasis rather than exact percentages of the total.
    """
    w = weights or ScoringWeights()
    xg = safe(player.expected_goals)
    xa = safe(player.expected_assists)
    fixture_ease = max(0.0, MAX_DIFFICULTY - fixture_run.average_difficulty)

    return {
        "points": player.total_points * w.points,
        "form": safe(player.form) * w.form,
        "expected": (xg * w.goal_value + xa * w.assist_value) * w.expected,
        "fixture": fixture_ease * w.fixture,
        "value": min(w.value_cap, value_ratio(player)) * w.value,
        "minutes": min(1.0, player.minutes / w.minutes_saturation) * w.minutes,
        "position": _position_bonus(player, fixture_ease, w),
    }


def score_player(
    player: Player,
    team: Team,
    fixture_run: TeamFixtureRun,
    weights: Optional[ScoringWeights] = None,
) -> ScoredPlayer:
    """Score one player against its team's upcoming fixtures.

    Pure: identical inputs always give an identical ScoredPlayer.
    """
    components = compute_score_components(player, fixture_run, weights)
    total = round_half_up(sum(components.values()), 1)
    if player.total_points > 0:
        price_per_point = player.price_millions / player.total_points
    else:
        price_per_point = NO_POINTS_PRICE_PER_POINT
    return ScoredPlayer(
        player=player,
        team=team,
        fixture_run=fixture_run,
        score=total,
        form_score=safe(player.form),
        expected_score=safe(player.expected_goals) + safe(player.expected_assists),
        price_per_point=price_per_point,
        risk=player_risk(player),
    )


def score_players(
    players: Iterable[Player],
    teams: Mapping[int, Team],
    runs: Mapping[int, TeamFixtureRun],
    weights: Optional[ScoringWeights] = None,
) -> List[ScoredPlayer]:
    scored: List[ScoredPlayer] = []
    for player in players:
        team = teams.get(player.team_id)
        if team is None:
            raise SnapshotError(f"Player {player.id} references unknown team {player.team_id}")
        run = runs.get(player.team_id) or TeamFixtureRun.neutral(player.team_id)
        scored.append(score_player(player, team, run, weights))
    logger.debug("Scored %d players", len(scored))
    return scored
