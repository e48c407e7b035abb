"""
End-to-end tests for the analysis pipeline on a seeded synthetic league.
"""

from unittest.mock import MagicMock

import pytest
import requests

from conftest import build_synthetic_payloads
from fpl_squad_engine.apis.snapshot import SnapshotError, parse_snapshot
from fpl_squad_engine.config.settings import EngineConfig
from fpl_squad_engine.main import analyze_snapshot, build_squad_analysis, run_squad_analysis, score_snapshot
from fpl_squad_engine.models import Position

DATA_KEYS = {
    "squad", "strategy", "total_cost", "total_score", "total_points", "average_form",
    "fixture_strength", "captain_options", "alternatives", "gameweek_analysis",
    "transfer_suggestions", "differentials", "risk_assessment", "top_fixture_teams",
    "insights", "warnings",
}


class TestAnalyzeSnapshot:
    def test_squad_respects_constraints(self, synthetic_snapshot):
        cfg = EngineConfig()
        analysis = analyze_snapshot(synthetic_snapshot, cfg)
        squad = analysis.squad
        assert squad.size == 15
        assert squad.is_complete
        assert analysis.warnings == []
        assert squad.total_cost <= cfg.optimizer.budget_tenths
        assert squad.max_team_count <= cfg.optimizer.per_team_max
        assert squad.position_counts == {Position.GK: 2, Position.DEF: 5, Position.MID: 5, Position.FWD: 3}
        assert len(set(squad.ids)) == 15
        assert all(sp.risk < cfg.optimizer.risk_threshold for sp in squad.players)

    def test_all_players_scored_but_only_eligible_available(self, synthetic_snapshot):
        analysis = analyze_snapshot(synthetic_snapshot)
        assert len(analysis.scored) == 600
        assert len(analysis.available) < 600
        assert all(sp.risk < 3 for sp in analysis.available)
        assert set(analysis.fixture_runs) == {t.id for t in synthetic_snapshot.teams}

    def test_score_snapshot_matches_full_pipeline(self, synthetic_snapshot):
        runs, scored, available = score_snapshot(synthetic_snapshot)
        analysis = analyze_snapshot(synthetic_snapshot)
        assert runs == analysis.fixture_runs
        assert scored == analysis.scored
        assert available == analysis.available

    def test_advisories_draw_from_squad_and_pool(self, synthetic_snapshot):
        analysis = analyze_snapshot(synthetic_snapshot)
        squad_ids = set(analysis.squad.ids)
        assert 0 < len(analysis.captain_options) <= 5
        assert all(c.player.id in squad_ids for c in analysis.captain_options)
        assert all(c.player.position in (Position.MID, Position.FWD) for c in analysis.captain_options)
        assert len(analysis.transfer_suggestions) <= 5
        assert all(t.in_player.id not in squad_ids for t in analysis.transfer_suggestions)
        assert all(d.ownership <= 5.0 and d.points >= 8 for d in analysis.differentials)

    def test_deterministic(self):
        first = analyze_snapshot(parse_snapshot(**build_synthetic_payloads(seed=7)))
        second = analyze_snapshot(parse_snapshot(**build_synthetic_payloads(seed=7)))
        assert first.squad.ids == second.squad.ids
        assert first.squad.total_cost == second.squad.total_cost
        assert first.squad.total_score == second.squad.total_score
        assert first.to_dict() == second.to_dict()

    def test_tight_budget_reports_partial_squad(self, synthetic_snapshot):
        cfg = EngineConfig().with_overrides(budget=20.0)
        analysis = analyze_snapshot(synthetic_snapshot, cfg)
        assert not analysis.squad.is_complete
        assert analysis.squad.total_cost <= 200
        assert analysis.warnings == [
            f"Only {analysis.squad.size}/15 players selected due to budget/team constraints"
        ]

    def test_dict_shape(self, synthetic_snapshot):
        data = build_squad_analysis(synthetic_snapshot)
        assert set(data) == DATA_KEYS
        assert len(data["squad"]) == 15
        assert data["strategy"] in {"balanced", "form_heavy", "value_focused", "fixture_optimized"}
        assert sorted(data["gameweek_analysis"]) == list(range(10, 18))
        assert set(data["alternatives"]) == {"GK", "DEF", "MID", "FWD"}
        assert len(data["top_fixture_teams"]) == 8
        assert data["risk_assessment"]["level"] in {"Low", "Medium", "High"}


class TestRunSquadAnalysis:
    def test_success_envelope(self, synthetic_snapshot):
        result = run_squad_analysis(snapshot=synthetic_snapshot)
        assert result["success"] is True
        meta = result["metadata"]
        assert meta["current_gameweek"] == 10
        assert meta["budget"] == 100.0
        assert meta["target_gameweeks"] == "10 - 17"
        assert meta["strategy"] == result["data"]["strategy"]
        assert meta["players_analyzed"] < 600

    def test_fetch_failure(self):
        client = MagicMock()
        client.fetch_snapshot.side_effect = requests.ConnectionError("offline")
        result = run_squad_analysis(client=client)
        assert result == {"success": False, "error": "Failed to optimize squad", "details": "offline"}

    def test_bad_payload(self):
        client = MagicMock()
        client.fetch_snapshot.side_effect = SnapshotError("Bootstrap contains no teams")
        result = run_squad_analysis(client=client)
        assert result["success"] is False
        assert result["details"] == "Bootstrap contains no teams"

    def test_uses_client_when_no_snapshot(self, synthetic_snapshot):
        client = MagicMock()
        client.fetch_snapshot.return_value = synthetic_snapshot
        assert run_squad_analysis(client=client)["success"] is True
        client.fetch_snapshot.assert_called_once_with()


@pytest.mark.parametrize("seed", [1, 99])
def test_other_seeds_stay_within_limits(seed):
    analysis = analyze_snapshot(parse_snapshot(**build_synthetic_payloads(seed=seed)))
    assert analysis.squad.total_cost <= 1000
    assert analysis.squad.max_team_count <= 3
