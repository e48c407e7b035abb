"""
Risk Manager - Summarises availability, fixture, form and concentration risk for a squad
"""

import logging
from typing import Dict, List

from ..models import Squad

INJURY_RISK_LEVEL = 2
HARD_FIXTURE_FDR = 4.0
POOR_FORM = 3.0


def risk_recommendations(factors: Dict[str, int]) -> List[str]:
    recommendations = []
    if factors["injury_risk"] >= 2:
        recommendations.append("Consider transferring injury-prone players")
    if factors["fixture_risk"] >= 4:
        recommendations.append("Squad has many tough fixtures - plan ahead")
    if factors["form_risk"] >= 3:
        recommendations.append("Multiple players in poor form - monitor closely")
    if factors["team_concentration"] >= 3:
        recommendations.append("High team concentration - spread risk")
    return recommendations


class RiskManager:
    """Aggregates per-player risk signals into a squad-level label"""

    def __init__(self):
        self.logger = logging.getLogger(__name__)

    def risk_factors(self, squad: Squad) -> Dict[str, int]:
        players = squad.players
        return {
            "injury_risk": sum(1 for p in players if p.risk >= INJURY_RISK_LEVEL),
            "fixture_risk": sum(1 for p in players if p.average_difficulty >= HARD_FIXTURE_FDR),
            "form_risk": sum(1 for p in players if p.form_score < POOR_FORM),
            "team_concentration": squad.max_team_count,
        }

    def assess_squad_risk(self, squad: Squad) -> Dict:
        """Overall Low/Medium/High label with the counts behind it"""
        factors = self.risk_factors(squad)
        # injuries count double
        total = factors["injury_risk"] * 2 + factors["fixture_risk"] + factors["form_risk"]
        level = "Low" if total <= 3 else "Medium" if total <= 6 else "High"
        self.logger.info("Squad risk %s (weighted total %d)", level, total)
        return {
            "level": level,
            "weighted_total": total,
            "factors": factors,
            "recommendations": risk_recommendations(factors),
        }
