from __future__ import annotations

from typing import Optional

from ..models import Player

UNAVAILABLE_STATUS = "u"

# (chance of playing upper bound, risk level); first match wins.
_CHANCE_BANDS = ((0, 4), (25, 3), (50, 2), (75, 1))

RISK_DESCRIPTIONS = {
    0: "No concern",
    1: "Minor concern",
    2: "Moderate risk",
    3: "High risk",
    4: "Very risky",
    5: "Unavailable",
}


def classify_risk(status: Optional[str], chance_of_playing: Optional[int], news: Optional[str] = None) -> int:
    """Map availability signals to a risk level from 0 (fine) to 5 (unavailable).

    Checked in priority order: unavailable status, then the chance of playing
    this round (0/25/50/75; other values fall into the next band up), then
    news text with no chance value attached.
    """
    if (status or "").strip().lower() == UNAVAILABLE_STATUS:
        return 5
    if chance_of_playing is not None:
        for upper, level in _CHANCE_BANDS:
            if chance_of_playing <= upper:
                return level
        return 0
    if news and news.strip():
        return 1
    return 0


def player_risk(player: Player) -> int:
    return classify_risk(player.status, player.chance_of_playing, player.news)


def is_eligible(risk: int, threshold: int = 3) -> bool:
    """Squad eligibility; risk never affects scoring itself."""
    return risk < threshold


def risk_description(level: int) -> str:
    return RISK_DESCRIPTIONS.get(level, "Unknown")
