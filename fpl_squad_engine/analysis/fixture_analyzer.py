from __future__ import annotations

import logging
from typing import Dict, Iterable, List, Sequence, Tuple

from ..models import NEUTRAL_DIFFICULTY, Fixture, Team, TeamFixtureRun, UpcomingFixture

logger = logging.getLogger(__name__)

EASY_MAX = 2
HARD_MIN = 4
DEFAULT_HORIZON = 8


def detect_runs(difficulties: Sequence[int]) -> Tuple[int, int]:
    """Longest consecutive easy (<=2) and hard (>=4) streaks in one pass.

    A neutral fixture (3) breaks both streaks.
    """
    easy_run = hard_run = 0
    current_easy = current_hard = 0
    for diff in difficulties:
        if diff <= EASY_MAX:
            current_easy += 1
            current_hard = 0
            easy_run = max(easy_run, current_easy)
        elif diff >= HARD_MIN:
            current_hard += 1
            current_easy = 0
            hard_run = max(hard_run, current_hard)
        else:
            current_easy = 0
            current_hard = 0
    return easy_run, hard_run


def _fixture_order(f: Fixture):
    kickoff = f.kickoff_time.timestamp() if f.kickoff_time else float("inf")
    return (f.gameweek, kickoff, f.id)


def build_team_run(
    team: Team,
    fixtures: Iterable[Fixture],
    short_names: Dict[int, str],
    current_gameweek: int,
    horizon: int = DEFAULT_HORIZON,
) -> TeamFixtureRun:
    end = current_gameweek + horizon
    selected = sorted(
        (
            f for f in fixtures
            if team.id in (f.home_team_id, f.away_team_id)
            and not f.finished
            and f.gameweek is not None
            and current_gameweek <= f.gameweek < end
        ),
        key=_fixture_order,
    )[:horizon]

    upcoming: List[UpcomingFixture] = []
    for f in selected:
        is_home = f.home_team_id == team.id
        opponent_id = f.away_team_id if is_home else f.home_team_id
        upcoming.append(UpcomingFixture(
            gameweek=f.gameweek,
            opponent=short_names.get(opponent_id, "UNK"),
            is_home=is_home,
            difficulty=f.home_difficulty if is_home else f.away_difficulty,
            kickoff_time=f.kickoff_time,
        ))

    if not upcoming:
        return TeamFixtureRun.neutral(team.id)

    difficulties = [u.difficulty for u in upcoming]
    easy_run, hard_run = detect_runs(difficulties)
    return TeamFixtureRun(
        team_id=team.id,
        fixtures=tuple(upcoming),
        average_difficulty=sum(difficulties) / len(difficulties),
        easy_run=easy_run,
        hard_run=hard_run,
    )


def analyze_fixtures(
    fixtures: Sequence[Fixture],
    teams: Sequence[Team],
    current_gameweek: int,
    horizon: int = DEFAULT_HORIZON,
) -> Dict[int, TeamFixtureRun]:
    """Per-team fixture run over ``[current_gameweek, current_gameweek + horizon)``.

    Teams without fixtures in the window get the neutral run (average 3.0).
    """
    short_names = {t.id: t.short_name for t in teams}
    runs = {
        team.id: build_team_run(team, fixtures, short_names, current_gameweek, horizon)
        for team in teams
    }
    missing = sum(1 for r in runs.values() if not r.fixtures)
    if missing:
        logger.info("%d team(s) have no fixtures in GW%d-%d; using neutral difficulty %.1f",
                    missing, current_gameweek, current_gameweek + horizon - 1, NEUTRAL_DIFFICULTY)
    return runs


def rank_teams_by_fixtures(
    runs: Dict[int, TeamFixtureRun],
    teams: Sequence[Team],
    limit: int = 8,
) -> List[Dict]:
    """Teams with the kindest schedules first."""
    by_id = {t.id: t for t in teams}
    ordered = sorted(runs.values(), key=lambda r: (r.average_difficulty, r.team_id))[:limit]
    return [
        {
            "team": by_id[r.team_id].short_name if r.team_id in by_id else "UNK",
            "average_difficulty": round(r.average_difficulty, 2),
            "easy_run": r.easy_run,
            "hard_run": r.hard_run,
            "next_fixtures": [f"{u.opponent}({u.difficulty})" for u in r.fixtures[:4]],
        }
        for r in ordered
    ]
