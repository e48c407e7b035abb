"""
Sanity check of the scoring model against a handful of real-season profiles.

Stats are the first eight gameweeks of a season; ``actual`` is what each
player went on to score over the next five. The model does not need to be
right about everyone, but its ordering should agree with reality more often
than not.
"""

import pytest

from conftest import make_team
from fpl_squad_engine.analysis.player_scorer import score_player
from fpl_squad_engine.models import Player, Position, TeamFixtureRun

PROFILES = [
    # name, position, price, points, form, xG, xA, minutes, actual
    ("Salah", Position.MID, 130, 68, 8.5, 5.2, 3.8, 720, 42),
    ("Palmer", Position.MID, 105, 34, 4.2, 3.1, 2.4, 680, 58),
    ("Haaland", Position.FWD, 150, 52, 6.5, 6.8, 1.2, 640, 28),
    ("Saka", Position.MID, 100, 48, 6.0, 3.4, 4.2, 720, 35),
    ("Son", Position.MID, 95, 40, 3.0, 2.0, 1.5, 600, 18),
]


def _ranks(values):
    order = sorted(range(len(values)), key=lambda i: -values[i])
    ranks = [0] * len(values)
    for rank, i in enumerate(order, start=1):
        ranks[i] = rank
    return ranks


@pytest.fixture
def scored():
    results = []
    for pid, (name, pos, price, points, form, xg, xa, minutes, actual) in enumerate(PROFILES, start=1):
        player = Player(id=pid, name=name, position=pos, team_id=pid, price=price, total_points=points,
                        form=form, expected_goals=xg, expected_assists=xa, minutes=minutes)
        sp = score_player(player, make_team(pid), TeamFixtureRun.neutral(pid))
        results.append((name, sp.score, actual))
    return results


def test_expected_scores(scored):
    scores = {name: score for name, score, _ in scored}
    assert scores["Salah"] == pytest.approx(153.3)
    assert scores["Haaland"] == pytest.approx(148.1)
    assert scores["Son"] == pytest.approx(70.4)


def test_rank_correlation_is_positive(scored):
    predicted = _ranks([s for _, s, _ in scored])
    actual = _ranks([a for _, _, a in scored])
    n = len(scored)
    d_squared = sum((p - a) ** 2 for p, a in zip(predicted, actual))
    spearman = 1 - 6 * d_squared / (n * (n * n - 1))
    assert spearman == pytest.approx(0.3)
    assert spearman > 0


def test_weakest_profile_ranked_last(scored):
    lowest = min(scored, key=lambda row: row[1])
    assert lowest[0] == "Son"
    assert lowest[2] == min(a for _, _, a in scored)
