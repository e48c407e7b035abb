from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional

from pydantic import ValidationError

from ..models import Fixture, Player, Position, Snapshot, Team
from .schemas import BootstrapRecord, ElementRecord, EventRecord, FixtureRecord, TeamRecord

logger = logging.getLogger(__name__)


class SnapshotError(ValueError):
    """Raised when a bootstrap or fixtures payload cannot be turned into a Snapshot."""


def parse_player(record: ElementRecord) -> Player:
    return Player(
        id=record.id,
        name=record.web_name,
        position=Position.from_element_type(record.element_type),
        team_id=record.team,
        price=record.now_cost,
        total_points=record.total_points,
        form=record.form,
        expected_goals=record.expected_goals,
        expected_assists=record.expected_assists,
        minutes=record.minutes,
        ownership=record.selected_by_percent,
        status=record.status,
        news=record.news,
        chance_of_playing=record.chance_of_playing_this_round,
        creativity=record.creativity,
    )


def parse_team(record: TeamRecord) -> Team:
    return Team(
        id=record.id,
        name=record.name or record.short_name,
        short_name=record.short_name,
        strength_attack_home=record.strength_attack_home,
        strength_attack_away=record.strength_attack_away,
        strength_defence_home=record.strength_defence_home,
        strength_defence_away=record.strength_defence_away,
    )


def parse_fixture(record: FixtureRecord) -> Fixture:
    return Fixture(
        id=record.id,
        gameweek=record.event,
        home_team_id=record.team_h,
        away_team_id=record.team_a,
        home_difficulty=record.team_h_difficulty,
        away_difficulty=record.team_a_difficulty,
        finished=record.finished,
        kickoff_time=record.kickoff_time,
    )


def current_gameweek(events: Iterable[EventRecord]) -> int:
    """The current event id, else the next one, else 1 (pre-season)."""
    events = list(events)
    for ev in events:
        if ev.is_current:
            return ev.id
    for ev in events:
        if ev.is_next:
            return ev.id
    return 1


def parse_snapshot(
    bootstrap: Dict[str, Any],
    fixtures: List[Dict[str, Any]],
    gameweek: Optional[int] = None,
) -> Snapshot:
    """Validate raw API payloads and build an immutable Snapshot.

    Args:
        bootstrap: The bootstrap-static response (needs ``elements`` and ``teams``).
        fixtures: The fixtures response (a list of fixture dicts).
        gameweek: Optional override for the current gameweek.

    Raises:
        SnapshotError: if either payload is malformed, or a player or fixture
            references a team that is not in the bootstrap.
    """
    if not isinstance(bootstrap, dict):
        raise SnapshotError("Bootstrap payload must be a JSON object")
    if not isinstance(fixtures, list):
        raise SnapshotError("Fixtures payload must be a JSON list")
    try:
        boot = BootstrapRecord.model_validate(bootstrap)
        fixture_records = [FixtureRecord.model_validate(f) for f in fixtures]
    except ValidationError as e:
        raise SnapshotError(f"Invalid FPL payload: {e}") from e

    if not boot.teams:
        raise SnapshotError("Bootstrap contains no teams")

    teams = tuple(parse_team(t) for t in boot.teams)
    team_ids = {t.id for t in teams}

    players = []
    for record in boot.elements:
        if record.team not in team_ids:
            raise SnapshotError(f"Player {record.id} references unknown team {record.team}")
        players.append(parse_player(record))

    parsed_fixtures = []
    for record in fixture_records:
        if record.team_h not in team_ids or record.team_a not in team_ids:
            raise SnapshotError(f"Fixture {record.id} references an unknown team")
        parsed_fixtures.append(parse_fixture(record))

    gw = gameweek if gameweek is not None else current_gameweek(boot.events)
    logger.info(
        "Parsed snapshot: %d players, %d teams, %d fixtures, GW%d",
        len(players), len(teams), len(parsed_fixtures), gw,
    )
    return Snapshot(
        players=tuple(players),
        teams=teams,
        fixtures=tuple(parsed_fixtures),
        current_gameweek=gw,
    )


def load_snapshot_files(bootstrap_path: Path, fixtures_path: Path, gameweek: Optional[int] = None) -> Snapshot:
    """Build a Snapshot from previously saved bootstrap/fixtures JSON files."""
    try:
        with open(bootstrap_path, "r", encoding="utf-8") as f:
            bootstrap = json.load(f)
        with open(fixtures_path, "r", encoding="utf-8") as f:
            fixtures = json.load(f)
    except json.JSONDecodeError as e:
        raise SnapshotError(f"Could not decode snapshot file: {e}") from e
    return parse_snapshot(bootstrap, fixtures, gameweek=gameweek)
