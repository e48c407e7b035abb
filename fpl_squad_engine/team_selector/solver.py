from __future__ import annotations

import logging
from enum import Enum
from typing import Callable, Dict, Iterable, List, Optional, Tuple

from ..config.settings import OptimizerConfig
from ..models import POSITION_ORDER, Position, ScoredPlayer, Squad
from ..analysis.risk import is_eligible

logger = logging.getLogger(__name__)

# Note: this is a greedy fill with no backtracking. It never swaps out a
# player it has already accepted, so it can miss squads that need a cheaper
# pick in one position to afford a better one in another.


class SquadStrategy(str, Enum):
    BALANCED = "balanced"
    FORM_HEAVY = "form_heavy"
    VALUE_FOCUSED = "value_focused"
    FIXTURE_OPTIMIZED = "fixture_optimized"


SortKey = Callable[[ScoredPlayer], Tuple]


def _balanced_key(sp: ScoredPlayer) -> Tuple:
    return (-sp.score, sp.id)


def _form_heavy_key(sp: ScoredPlayer) -> Tuple:
    return (-sp.form_score, -sp.score, sp.id)


def _value_focused_key(sp: ScoredPlayer) -> Tuple:
    return (-sp.value, -sp.score, sp.id)


def _fixture_optimized_key(sp: ScoredPlayer) -> Tuple:
    return (sp.average_difficulty, -sp.score, sp.id)


_SORT_KEYS: Dict[SquadStrategy, SortKey] = {
    SquadStrategy.BALANCED: _balanced_key,
    SquadStrategy.FORM_HEAVY: _form_heavy_key,
    SquadStrategy.VALUE_FOCUSED: _value_focused_key,
    SquadStrategy.FIXTURE_OPTIMIZED: _fixture_optimized_key,
}


def strategy_sort_key(strategy: SquadStrategy) -> SortKey:
    return _SORT_KEYS[SquadStrategy(strategy)]


def filter_candidates(players: Iterable[ScoredPlayer], risk_threshold: int = 3) -> List[ScoredPlayer]:
    """Players eligible for selection: below the risk threshold and with some
    involvement this season (non-zero points or minutes played)."""
    return [
        sp for sp in players
        if is_eligible(sp.risk, risk_threshold)
        and (sp.player.total_points != 0 or sp.player.minutes > 0)
    ]


def build_squad_by_strategy(
    candidates: Iterable[ScoredPlayer],
    strategy: SquadStrategy,
    config: Optional[OptimizerConfig] = None,
) -> Squad:
    """
    Fill each position in quota order from the strategy-sorted pool.

    A candidate is accepted only if the running cost stays within budget and
    its team stays within the per-team cap. Candidates that fail a check are
    skipped, and the walk carries on to the next one. Budget and team counts
    are shared across positions.
    """
    cfg = config or OptimizerConfig()
    key = strategy_sort_key(strategy)
    budget = cfg.budget_tenths

    pools: Dict[Position, List[ScoredPlayer]] = {pos: [] for pos in POSITION_ORDER}
    for sp in candidates:
        pools[sp.position].append(sp)

    picked: List[ScoredPlayer] = []
    by_team: Dict[int, int] = {}
    spent = 0

    def try_add(sp: ScoredPlayer) -> bool:
        nonlocal spent
        team_id = sp.player.team_id
        if spent + sp.price > budget:
            return False
        if by_team.get(team_id, 0) >= cfg.per_team_max:
            return False
        picked.append(sp)
        by_team[team_id] = by_team.get(team_id, 0) + 1
        spent += sp.price
        return True

    for pos in POSITION_ORDER:
        target = cfg.quotas[pos]
        added = 0
        for sp in sorted(pools[pos], key=key):
            if added >= target:
                break
            if try_add(sp):
                added += 1
        if added < target:
            logger.debug("%s: filled %d/%d %s", strategy.value, added, target, pos.value)

    return Squad(players=tuple(picked), strategy=strategy.value, budget=budget, quotas=dict(cfg.quotas))


def evaluate_strategies(
    candidates: Iterable[ScoredPlayer],
    config: Optional[OptimizerConfig] = None,
) -> Dict[SquadStrategy, Squad]:
    pool = list(candidates)
    squads = {}
    for strategy in SquadStrategy:
        squad = build_squad_by_strategy(pool, strategy, config)
        logger.debug("Strategy %s: %d players, score %.1f, cost %.1f",
                     strategy.value, squad.size, squad.total_score, squad.total_cost_millions)
        squads[strategy] = squad
    return squads


def optimize_squad(
    candidates: Iterable[ScoredPlayer],
    config: Optional[OptimizerConfig] = None,
) -> Squad:
    """
    Run every strategy and keep the complete squad with the highest total score.

    Ties go to the earlier strategy. If no strategy fills every quota, the
    balanced squad is returned as-is; check ``Squad.is_complete``.

    Args:
        candidates: Scored players already passed through ``filter_candidates``.
        config: Budget, per-team cap and quotas.

    Returns:
        The chosen Squad (possibly partial).
    """
    squads = evaluate_strategies(candidates, config)
    best: Optional[Squad] = None
    for squad in squads.values():
        if not squad.is_complete:
            continue
        if best is None or squad.total_score > best.total_score:
            best = squad

    if best is None:
        best = squads[SquadStrategy.BALANCED]
        logger.warning("No strategy filled the squad; returning balanced squad with %d/%d players",
                       best.size, best.required_size)
    else:
        logger.info("Selected %s squad: score %.1f, cost %.1f", best.strategy, best.total_score,
                    best.total_cost_millions)
    return best
