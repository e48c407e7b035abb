"""Pydantic schemas for the raw bootstrap-static and fixtures payloads.

Only the fields the engine consumes are declared; everything else the API
sends is ignored. Numeric fields the API ships as strings (form, xG, xA,
ownership, creativity) are coerced to floats, and ``None`` becomes 0.
"""
from __future__ import annotations

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


def _zero_if_blank(v):
    if v is None:
        return 0.0
    if isinstance(v, str):
        v = v.replace("%", "").strip()
        return v or 0.0
    return v


class ElementRecord(BaseModel):
    model_config = ConfigDict(extra="ignore")

    id: int
    web_name: str
    element_type: int = Field(ge=1, le=4)
    team: int
    now_cost: int = Field(ge=0)
    total_points: int = 0
    form: float = 0.0
    expected_goals: float = 0.0
    expected_assists: float = 0.0
    minutes: int = Field(default=0, ge=0)
    selected_by_percent: float = Field(default=0.0, ge=0.0, le=100.0)
    status: str = "a"
    news: str = ""
    chance_of_playing_this_round: Optional[int] = Field(default=None, ge=0, le=100)
    creativity: float = 0.0

    @field_validator("form", "expected_goals", "expected_assists", "selected_by_percent", "creativity", mode="before")
    @classmethod
    def _parse_decimal(cls, v):
        return _zero_if_blank(v)

    @field_validator("total_points", "minutes", mode="before")
    @classmethod
    def _none_is_zero(cls, v):
        return 0 if v is None else v

    @field_validator("status", mode="before")
    @classmethod
    def _status(cls, v):
        return (v or "a").strip().lower()

    @field_validator("news", mode="before")
    @classmethod
    def _news(cls, v):
        return (v or "").strip()


class TeamRecord(BaseModel):
    model_config = ConfigDict(extra="ignore")

    id: int
    name: str = ""
    short_name: str
    strength_attack_home: int = 0
    strength_attack_away: int = 0
    strength_defence_home: int = 0
    strength_defence_away: int = 0


class EventRecord(BaseModel):
    model_config = ConfigDict(extra="ignore")

    id: int
    is_current: bool = False
    is_next: bool = False
    finished: bool = False


class BootstrapRecord(BaseModel):
    model_config = ConfigDict(extra="ignore")

    elements: List[ElementRecord]
    teams: List[TeamRecord]
    events: List[EventRecord] = Field(default_factory=list)


class FixtureRecord(BaseModel):
    model_config = ConfigDict(extra="ignore")

    id: int
    event: Optional[int] = None
    team_h: int
    team_a: int
    team_h_difficulty: int = Field(ge=1, le=5)
    team_a_difficulty: int = Field(ge=1, le=5)
    finished: bool = False
    kickoff_time: Optional[datetime] = None
