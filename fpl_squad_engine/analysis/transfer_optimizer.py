from __future__ import annotations

import logging
from typing import Iterable, List, Optional

from ..config.settings import AdvisoryConfig
from ..models import ScoredPlayer, Squad, TransferSuggestion
from ..utils.numbers import round_half_up

logger = logging.getLogger(__name__)

POOR_FORM = 3.0
TOUGH_FDR = 4.0


def is_underperforming(player: ScoredPlayer) -> bool:
    return player.form_score < POOR_FORM or player.average_difficulty >= TOUGH_FDR


def transfer_out_reason(player: ScoredPlayer) -> str:
    reasons = []
    if player.form_score < 2:
        reasons.append("Poor form")
    if player.average_difficulty >= TOUGH_FDR:
        reasons.append("Tough fixtures")
    if player.fixture_run.hard_run >= 3:
        reasons.append("Difficult run")
    if player.risk >= 2:
        reasons.append("Injury concern")
    return ", ".join(reasons) or "Underperforming"


def transfer_in_reason(player: ScoredPlayer) -> str:
    reasons = []
    if player.form_score >= 6:
        reasons.append("Excellent form")
    if player.average_difficulty <= 2.5:
        reasons.append("Great fixtures")
    if player.fixture_run.easy_run >= 3:
        reasons.append("Easy run ahead")
    if player.price_per_point < 1:
        reasons.append("Great value")
    return ", ".join(reasons) or "Strong option"


def suggest_transfers(
    squad: Squad,
    pool: Iterable[ScoredPlayer],
    config: Optional[AdvisoryConfig] = None,
) -> List[TransferSuggestion]:
    """
    Like-for-like upgrades for the weakest squad members.

    - OUT candidates: squad players in poor form (<3) or facing tough
      fixtures (avg FDR >= 4), lowest overall score first, at most
      ``weak_player_limit`` of them.
    - IN candidates: same position, not already in the squad, priced no more
      than ``transfer_price_margin`` tenths above the OUT player, with a
      strictly higher overall score. Best ``replacements_per_player`` each.
    - All swaps are ranked by score gain and the top ``transfer_limit`` kept.

    Suggestions are advisory only; the squad is not modified.

    Args:
        squad: The current squad.
        pool: Every available scored player (squad members are skipped).
        config: Limits and price margin.

    Returns:
        Suggestions sorted by descending priority.
    """
    cfg = config or AdvisoryConfig()
    owned = set(squad.ids)
    market = [p for p in pool if p.id not in owned]

    weak = sorted(
        (p for p in squad.players if is_underperforming(p)),
        key=lambda p: (p.score, p.id),
    )[:cfg.weak_player_limit]

    proposals: List[TransferSuggestion] = []
    for out_player in weak:
        max_price = out_player.price + cfg.transfer_price_margin
        candidates = sorted(
            (
                p for p in market
                if p.position is out_player.position
                and p.price <= max_price
                and p.score > out_player.score
            ),
            key=lambda p: (-p.score, p.id),
        )[:cfg.replacements_per_player]
        for in_player in candidates:
            proposals.append(TransferSuggestion(
                out_player=out_player,
                in_player=in_player,
                cost_delta=(in_player.price - out_player.price) / 10.0,
                priority=round_half_up(in_player.score - out_player.score, 1),
                out_reason=transfer_out_reason(out_player),
                in_reason=transfer_in_reason(in_player),
            ))

    proposals.sort(key=lambda s: (-s.priority, s.out_player.id, s.in_player.id))
    logger.info("%d weak player(s), %d transfer proposal(s)", len(weak), len(proposals))
    return proposals[:cfg.transfer_limit]
