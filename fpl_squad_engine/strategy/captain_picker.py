"""
Captain Picker - Ranks captaincy options from the selected squad
"""

import logging
from typing import List, Optional

from ..config.settings import AdvisoryConfig
from ..models import CaptainOption, Position, ScoredPlayer, Squad
from ..utils.numbers import round_half_up

ATTACKING_POSITIONS = (Position.MID, Position.FWD)


def captain_reasoning(player: ScoredPlayer) -> str:
    reasons = []
    run = player.fixture_run
    if player.form_score >= 6:
        reasons.append(f"Excellent form ({player.form_score:g})")
    if run.average_difficulty <= 2.5:
        reasons.append("Great fixtures ahead")
    if player.expected_score >= 1:
        reasons.append("High expected returns")
    if run.easy_run >= 3:
        reasons.append(f"{run.easy_run} game easy run")
    return ", ".join(reasons) or "Consistent performer"


class CaptainPicker:
    """Ranks squad members by form, fixture ease and expected returns"""

    def __init__(self, config: Optional[AdvisoryConfig] = None):
        self.config = config or AdvisoryConfig()
        self.logger = logging.getLogger(__name__)

    def rank_score(self, player: ScoredPlayer) -> float:
        return (
            player.form_score
            + (5 - player.average_difficulty)
            + player.expected_score * self.config.captain_expected_weight
        )

    def rank_captains(self, squad: Squad, include_defenders: bool = False) -> List[CaptainOption]:
        """Top captain options, best first"""
        if include_defenders:
            eligible = list(squad.players)
        else:
            eligible = [p for p in squad.players if p.position in ATTACKING_POSITIONS]

        if not eligible:
            self.logger.warning("No eligible players in squad for captain selection")
            return []

        ranked = sorted(eligible, key=lambda p: (-self.rank_score(p), -p.score, p.id))
        options = []
        for player in ranked[:self.config.captain_count]:
            nxt = player.fixture_run.next_fixture
            options.append(CaptainOption(
                player=player,
                rank_score=round_half_up(self.rank_score(player), 2),
                next_opponent=nxt.opponent if nxt else "TBC",
                expected_points=round_half_up(player.expected_score, 1),
                reasoning=captain_reasoning(player),
            ))

        self.logger.info("Top captain option: %s", options[0].player.name)
        return options
