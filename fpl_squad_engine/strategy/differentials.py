from __future__ import annotations

from typing import Iterable, List

from ..models import DifferentialPick, ScoredPlayer


def find_differentials(
    players: Iterable[ScoredPlayer],
    max_ownership: float = 5.0,
    min_points: int = 8,
    limit: int = 10,
) -> List[DifferentialPick]:
    """
    Low-owned players who have already returned something.

    Args:
        players: Scored pool to search.
        max_ownership: Ownership ceiling in percent (inclusive).
        min_points: Season points floor (inclusive).
        limit: Maximum number of picks.

    Returns:
        Picks ordered by overall score, best first.
    """
    pool = [
        p for p in players
        if p.player.ownership <= max_ownership and p.player.total_points >= min_points
    ]
    pool.sort(key=lambda p: (-p.score, p.id))
    return [
        DifferentialPick(
            player=p,
            ownership=p.player.ownership,
            points=p.player.total_points,
            form=p.form_score,
            average_difficulty=round(p.average_difficulty, 2),
            score=p.score,
        )
        for p in pool[:limit]
    ]
