"""
Shared fixtures: hand-built players and a seeded synthetic league snapshot.
"""
from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Dict, List, Optional

import numpy as np
import pytest

from fpl_squad_engine.apis.snapshot import parse_snapshot
from fpl_squad_engine.models import (
    Fixture,
    Player,
    Position,
    ScoredPlayer,
    Team,
    TeamFixtureRun,
    UpcomingFixture,
)

# Per-team roster shape for the synthetic league: 3 GK, 10 DEF, 11 MID, 6 FWD.
ROSTER = [(1, 3, 40, 50), (2, 10, 40, 55), (3, 11, 45, 85), (4, 6, 45, 90)]
SEASON_START = datetime(2024, 8, 16, 19, 0, tzinfo=timezone.utc)


def make_team(team_id: int) -> Team:
    return Team(id=team_id, name=f"Team {team_id}", short_name=f"T{team_id:02d}")


def make_run(team_id: int, difficulties: Optional[List[int]] = None, start_gw: int = 1) -> TeamFixtureRun:
    if not difficulties:
        return TeamFixtureRun.neutral(team_id)
    fixtures = tuple(
        UpcomingFixture(gameweek=start_gw + i, opponent="OPP", is_home=i % 2 == 0, difficulty=d)
        for i, d in enumerate(difficulties)
    )
    return TeamFixtureRun(
        team_id=team_id,
        fixtures=fixtures,
        average_difficulty=sum(difficulties) / len(difficulties),
    )


@pytest.fixture
def player_factory():
    def _make(pid: int = 1, position: Position = Position.MID, team_id: int = 1, price: int = 50, **kwargs) -> Player:
        kwargs.setdefault("name", f"Player {pid}")
        return Player(id=pid, position=position, team_id=team_id, price=price, **kwargs)
    return _make


@pytest.fixture
def scored_factory(player_factory):
    """Build a ScoredPlayer directly, bypassing the scorer, for optimizer/advisory tests."""
    def _make(
        pid: int,
        position: Position = Position.MID,
        team_id: int = 1,
        price: int = 50,
        score: float = 50.0,
        form: float = 5.0,
        avg_fdr: float = 3.0,
        points: int = 50,
        minutes: int = 900,
        risk: int = 0,
        expected: float = 0.5,
        ownership: float = 10.0,
        easy_run: int = 0,
        hard_run: int = 0,
        fixtures: tuple = (),
    ) -> ScoredPlayer:
        player = player_factory(
            pid, position, team_id, price,
            total_points=points, form=form, minutes=minutes, ownership=ownership,
            expected_goals=expected / 2, expected_assists=expected / 2,
        )
        run = TeamFixtureRun(
            team_id=team_id, fixtures=fixtures, average_difficulty=avg_fdr, easy_run=easy_run, hard_run=hard_run,
        )
        return ScoredPlayer(
            player=player,
            team=make_team(team_id),
            fixture_run=run,
            score=score,
            form_score=form,
            expected_score=expected,
            price_per_point=(price / 10.0) / points if points > 0 else 999.0,
            risk=risk,
        )
    return _make


@pytest.fixture
def full_pool(scored_factory) -> List[ScoredPlayer]:
    """Forty cheap players spread over twenty teams: enough for any strategy."""
    pool = []
    pid = 1
    for position, count in ((Position.GK, 4), (Position.DEF, 12), (Position.MID, 14), (Position.FWD, 10)):
        for i in range(count):
            pool.append(scored_factory(
                pid, position, team_id=(pid % 20) + 1, price=45 + (i % 5) * 5,
                score=30.0 + (pid * 7) % 40, form=(pid * 3) % 10, avg_fdr=2.0 + (pid % 4) * 0.5,
                points=20 + pid,
            ))
            pid += 1
    return pool


def _round_robin(team_ids: List[int]) -> List[List[tuple]]:
    """Circle-method schedule: one list of (home, away) pairs per round."""
    ids = list(team_ids)
    n = len(ids)
    rounds = []
    for r in range(n - 1):
        pairs = [(ids[i], ids[n - 1 - i]) for i in range(n // 2)]
        if r % 2:
            pairs = [(a, h) for h, a in pairs]
        rounds.append(pairs)
        ids = [ids[0], ids[-1]] + ids[1:-1]
    return rounds


def build_synthetic_payloads(seed: int = 2024, n_teams: int = 20, current_gw: int = 10, n_gameweeks: int = 20) -> Dict:
    """Raw bootstrap/fixtures dicts shaped like the FPL API, fully determined by ``seed``."""
    rng = np.random.default_rng(seed)
    teams = [
        {
            "id": t,
            "name": f"Team {t}",
            "short_name": f"T{t:02d}",
            "strength_attack_home": int(rng.integers(1000, 1400)),
            "strength_attack_away": int(rng.integers(1000, 1400)),
            "strength_defence_home": int(rng.integers(1000, 1400)),
            "strength_defence_away": int(rng.integers(1000, 1400)),
        }
        for t in range(1, n_teams + 1)
    ]

    elements = []
    pid = 1
    for team in teams:
        for element_type, count, lo, hi in ROSTER:
            for _ in range(count):
                roll = float(rng.random())
                if roll < 0.88:
                    status, chance, news = "a", None, ""
                elif roll < 0.94:
                    status, chance, news = "d", int(rng.choice([25, 50, 75])), "Knock - assessed before match"
                elif roll < 0.98:
                    status, chance, news = "i", 0, "Hamstring injury"
                else:
                    status, chance, news = "u", 0, "Left the club"
                elements.append({
                    "id": pid,
                    "web_name": f"P{pid:03d}",
                    "element_type": element_type,
                    "team": team["id"],
                    "now_cost": int(rng.integers(lo, hi + 1)),
                    "total_points": int(rng.integers(0, 120)),
                    "form": f"{float(rng.uniform(0, 10)):.1f}",
                    "expected_goals": f"{float(rng.uniform(0, 8)):.2f}",
                    "expected_assists": f"{float(rng.uniform(0, 5)):.2f}",
                    "minutes": int(rng.integers(0, 900)),
                    "selected_by_percent": f"{float(rng.uniform(0, 60)):.1f}",
                    "status": status,
                    "news": news,
                    "chance_of_playing_this_round": chance,
                    "creativity": f"{float(rng.uniform(0, 300)):.1f}",
                })
                pid += 1

    fixtures = []
    fid = 1
    rounds = _round_robin([t["id"] for t in teams])
    for gw in range(1, n_gameweeks + 1):
        kickoff = SEASON_START + timedelta(days=7 * (gw - 1))
        for home, away in rounds[(gw - 1) % len(rounds)]:
            fixtures.append({
                "id": fid,
                "event": gw,
                "team_h": home,
                "team_a": away,
                "team_h_difficulty": int(rng.integers(1, 6)),
                "team_a_difficulty": int(rng.integers(1, 6)),
                "finished": gw < current_gw,
                "kickoff_time": kickoff.isoformat().replace("+00:00", "Z"),
            })
            fid += 1

    events = [{"id": gw, "is_current": gw == current_gw, "is_next": gw == current_gw + 1} for gw in range(1, 39)]
    return {"bootstrap": {"elements": elements, "teams": teams, "events": events}, "fixtures": fixtures}


@pytest.fixture
def synthetic_payloads():
    return build_synthetic_payloads()


@pytest.fixture
def synthetic_snapshot(synthetic_payloads):
    return parse_snapshot(synthetic_payloads["bootstrap"], synthetic_payloads["fixtures"])


@pytest.fixture
def sample_bootstrap() -> Dict:
    """Small hand-written bootstrap payload in the API's own shape."""
    return {
        "elements": [
            {
                "id": 1, "web_name": "Keeper", "element_type": 1, "team": 1, "now_cost": 50,
                "total_points": 45, "form": "4.5", "expected_goals": "0.0", "expected_assists": "0.10",
                "minutes": 1800, "selected_by_percent": "5.0", "status": "a", "news": "",
                "chance_of_playing_this_round": None, "creativity": "12.0",
            },
            {
                "id": 2, "web_name": "Fullback", "element_type": 2, "team": 2, "now_cost": 60,
                "total_points": 67, "form": "3.2", "expected_goals": None, "expected_assists": "2.1",
                "minutes": 2000, "selected_by_percent": "10.5", "status": "d",
                "news": "Knock - 75% chance of playing", "chance_of_playing_this_round": 75,
            },
        ],
        "teams": [
            {"id": 1, "name": "Arsenal", "short_name": "ARS", "strength_attack_home": 1300},
            {"id": 2, "name": "Brentford", "short_name": "BRE"},
        ],
        "events": [
            {"id": 1, "is_current": False, "is_next": False, "finished": True},
            {"id": 2, "is_current": True, "is_next": False},
            {"id": 3, "is_current": False, "is_next": True},
        ],
    }


@pytest.fixture
def sample_fixtures() -> List[Dict]:
    return [
        {"id": 10, "event": 2, "team_h": 1, "team_a": 2, "team_h_difficulty": 2, "team_a_difficulty": 4,
         "finished": False, "kickoff_time": "2024-08-24T14:00:00Z"},
        {"id": 11, "event": 3, "team_h": 2, "team_a": 1, "team_h_difficulty": 3, "team_a_difficulty": 3,
         "finished": False, "kickoff_time": None},
    ]


def make_fixture(fid: int, gw: Optional[int], home: int, away: int, home_diff: int, away_diff: int,
                 finished: bool = False) -> Fixture:
    return Fixture(id=fid, gameweek=gw, home_team_id=home, away_team_id=away,
                   home_difficulty=home_diff, away_difficulty=away_diff, finished=finished)
