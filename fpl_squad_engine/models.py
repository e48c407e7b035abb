from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Dict, List, Optional, Tuple


class Position(str, Enum):
    GK = "GK"
    DEF = "DEF"
    MID = "MID"
    FWD = "FWD"

    @classmethod
    def from_element_type(cls, element_type: int) -> "Position":
        """Map the FPL ``element_type`` code (1-4) to a position."""
        try:
            return _ELEMENT_TYPES[int(element_type)]
        except (KeyError, TypeError, ValueError):
            raise ValueError(f"Unknown element_type: {element_type!r}") from None


_ELEMENT_TYPES = {1: Position.GK, 2: Position.DEF, 3: Position.MID, 4: Position.FWD}

# Quota order is also the order positions are filled in.
POSITION_ORDER: Tuple[Position, ...] = (Position.GK, Position.DEF, Position.MID, Position.FWD)


@dataclass(frozen=True)
class Player:
    id: int
    name: str
    position: Position
    team_id: int
    price: int  # tenths of a million
    total_points: int = 0
    form: float = 0.0
    expected_goals: float = 0.0
    expected_assists: float = 0.0
    minutes: int = 0
    ownership: float = 0.0
    status: str = "a"
    news: str = ""
    chance_of_playing: Optional[int] = None
    creativity: float = 0.0

    @property
    def price_millions(self) -> float:
        return self.price / 10.0


@dataclass(frozen=True)
class Team:
    id: int
    name: str
    short_name: str
    strength_attack_home: int = 0
    strength_attack_away: int = 0
    strength_defence_home: int = 0
    strength_defence_away: int = 0


@dataclass(frozen=True)
class Fixture:
    id: int
    gameweek: Optional[int]
    home_team_id: int
    away_team_id: int
    home_difficulty: int
    away_difficulty: int
    finished: bool = False
    kickoff_time: Optional[datetime] = None


@dataclass(frozen=True)
class UpcomingFixture:
    gameweek: int
    opponent: str
    is_home: bool
    difficulty: int
    kickoff_time: Optional[datetime] = None


NEUTRAL_DIFFICULTY = 3.0


@dataclass(frozen=True)
class TeamFixtureRun:
    team_id: int
    fixtures: Tuple[UpcomingFixture, ...] = ()
    average_difficulty: float = NEUTRAL_DIFFICULTY
    easy_run: int = 0
    hard_run: int = 0

    @classmethod
    def neutral(cls, team_id: int) -> "TeamFixtureRun":
        """Run used when a team has no fixtures inside the horizon."""
        return cls(team_id=team_id)

    @property
    def next_fixture(self) -> Optional[UpcomingFixture]:
        return self.fixtures[0] if self.fixtures else None


@dataclass(frozen=True)
class ScoredPlayer:
    player: Player
    team: Team
    fixture_run: TeamFixtureRun
    score: float
    form_score: float
    expected_score: float
    price_per_point: float
    risk: int

    @property
    def id(self) -> int:
        return self.player.id

    @property
    def name(self) -> str:
        return self.player.name

    @property
    def position(self) -> Position:
        return self.player.position

    @property
    def price(self) -> int:
        return self.player.price

    @property
    def average_difficulty(self) -> float:
        return self.fixture_run.average_difficulty

    @property
    def value(self) -> float:
        """Season points per million, with price floored at 0.1."""
        return self.player.total_points / max(self.player.price_millions, 0.1)


@dataclass(frozen=True)
class Squad:
    players: Tuple[ScoredPlayer, ...]
    strategy: str
    budget: int  # tenths
    quotas: Dict[Position, int] = field(default_factory=dict, compare=False)

    @property
    def size(self) -> int:
        return len(self.players)

    @property
    def required_size(self) -> int:
        return sum(self.quotas.values()) if self.quotas else 15

    @property
    def is_complete(self) -> bool:
        return self.size == self.required_size

    @property
    def ids(self) -> List[int]:
        return [sp.id for sp in self.players]

    @property
    def total_cost(self) -> int:
        return sum(sp.price for sp in self.players)

    @property
    def total_cost_millions(self) -> float:
        return round(self.total_cost / 10.0, 1)

    @property
    def total_score(self) -> float:
        return round(sum(sp.score for sp in self.players), 1)

    @property
    def total_points(self) -> int:
        return sum(sp.player.total_points for sp in self.players)

    @property
    def position_counts(self) -> Dict[Position, int]:
        counts = {pos: 0 for pos in POSITION_ORDER}
        for sp in self.players:
            counts[sp.position] += 1
        return counts

    @property
    def team_counts(self) -> Dict[int, int]:
        counts: Dict[int, int] = {}
        for sp in self.players:
            counts[sp.player.team_id] = counts.get(sp.player.team_id, 0) + 1
        return counts

    @property
    def max_team_count(self) -> int:
        counts = self.team_counts
        return max(counts.values()) if counts else 0

    def by_position(self, position: Position) -> List[ScoredPlayer]:
        return [sp for sp in self.players if sp.position is position]


@dataclass(frozen=True)
class TransferSuggestion:
    out_player: ScoredPlayer
    in_player: ScoredPlayer
    cost_delta: float
    priority: float
    out_reason: str
    in_reason: str


@dataclass(frozen=True)
class CaptainOption:
    player: ScoredPlayer
    rank_score: float
    next_opponent: str
    expected_points: float
    reasoning: str


@dataclass(frozen=True)
class DifferentialPick:
    player: ScoredPlayer
    ownership: float
    points: int
    form: float
    average_difficulty: float
    score: float


@dataclass(frozen=True)
class Snapshot:
    players: Tuple[Player, ...]
    teams: Tuple[Team, ...]
    fixtures: Tuple[Fixture, ...]
    current_gameweek: int = 1

    @property
    def teams_by_id(self) -> Dict[int, Team]:
        return {t.id: t for t in self.teams}
