from __future__ import annotations

import json
import logging
import os
from pathlib import Path
from typing import Dict, Optional

import yaml
from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from ..models import POSITION_ORDER, Position

logger = logging.getLogger(__name__)


PROJECT_ROOT = Path(__file__).resolve().parents[2]
DEFAULT_CONFIG_PATH = PROJECT_ROOT / "config.yaml"
DEFAULT_ENV_PATH = PROJECT_ROOT / ".env"


class APIConfig(BaseModel):
    model_config = ConfigDict(frozen=True)

    base_url: str = "https://fantasy.premierleague.com/api"
    timeout: int = 30
    retry_attempts: int = 3

    @field_validator("timeout", "retry_attempts")
    @classmethod
    def _positive(cls, v: int) -> int:
        if v < 1:
            raise ValueError("must be at least 1")
        return v


class ScoringWeights(BaseModel):
    """Multipliers for each additive component of a player's score."""

    model_config = ConfigDict(frozen=True)

    points: float = 0.40
    form: float = 4.0
    expected: float = 2.5
    goal_value: float = 4.0
    assist_value: float = 3.0
    fixture: float = 2.0
    value: float = 0.5
    value_cap: float = 20.0
    minutes: float = 5.0
    minutes_saturation: int = 180
    gk_clean_sheet: float = 1.5
    def_clean_sheet: float = 1.2
    def_attacking: float = 8.0
    mid_creativity_divisor: float = 10.0
    fwd_goal_threat: float = 2.0


def _default_quotas() -> Dict[Position, int]:
    return {Position.GK: 2, Position.DEF: 5, Position.MID: 5, Position.FWD: 3}


class OptimizerConfig(BaseModel):
    model_config = ConfigDict(frozen=True)

    budget: float = 100.0  # millions
    per_team_max: int = 3
    quotas: Dict[Position, int] = Field(default_factory=_default_quotas)
    risk_threshold: int = 3
    horizon: int = 8

    @field_validator("budget")
    @classmethod
    def _budget_positive(cls, v: float) -> float:
        if v <= 0:
            raise ValueError("Budget must be positive")
        return v

    @field_validator("per_team_max", "horizon")
    @classmethod
    def _at_least_one(cls, v: int) -> int:
        if v < 1:
            raise ValueError("must be at least 1")
        return v

    @field_validator("risk_threshold")
    @classmethod
    def _threshold_range(cls, v: int) -> int:
        if not 1 <= v <= 6:
            raise ValueError("risk_threshold must be between 1 and 6")
        return v

    @field_validator("quotas")
    @classmethod
    def _all_positions(cls, v: Dict[Position, int]) -> Dict[Position, int]:
        missing = [pos.value for pos in POSITION_ORDER if pos not in v]
        if missing:
            raise ValueError(f"Missing quota for: {', '.join(missing)}")
        if any(count < 0 for count in v.values()):
            raise ValueError("Quotas cannot be negative")
        return {pos: v[pos] for pos in POSITION_ORDER}

    @property
    def budget_tenths(self) -> int:
        return int(round(self.budget * 10))

    @property
    def squad_size(self) -> int:
        return sum(self.quotas.values())


class AdvisoryConfig(BaseModel):
    model_config = ConfigDict(frozen=True)

    captain_count: int = 5
    captain_expected_weight: float = 2.0
    weak_player_limit: int = 3
    replacements_per_player: int = 2
    transfer_price_margin: int = 5  # tenths
    transfer_limit: int = 5
    differential_ownership: float = 5.0
    differential_min_points: int = 8
    differential_limit: int = 10
    alternatives_per_position: int = 5
    top_fixture_teams: int = 8

    @field_validator(
        "captain_count",
        "weak_player_limit",
        "replacements_per_player",
        "transfer_limit",
        "differential_limit",
        "alternatives_per_position",
        "top_fixture_teams",
    )
    @classmethod
    def _at_least_one(cls, v: int) -> int:
        if v < 1:
            raise ValueError("must be at least 1")
        return v

    @field_validator("transfer_price_margin", "differential_min_points")
    @classmethod
    def _not_negative(cls, v: int) -> int:
        if v < 0:
            raise ValueError("cannot be negative")
        return v


class EngineConfig(BaseModel):
    """Everything the engine needs for one run; passed explicitly to each component."""

    model_config = ConfigDict(frozen=True)

    scoring: ScoringWeights = Field(default_factory=ScoringWeights)
    optimizer: OptimizerConfig = Field(default_factory=OptimizerConfig)
    advisory: AdvisoryConfig = Field(default_factory=AdvisoryConfig)
    api: APIConfig = Field(default_factory=APIConfig)

    def with_overrides(
        self,
        budget: Optional[float] = None,
        horizon: Optional[int] = None,
        risk_threshold: Optional[int] = None,
    ) -> "EngineConfig":
        update = {}
        if budget is not None:
            update["budget"] = budget
        if horizon is not None:
            update["horizon"] = horizon
        if risk_threshold is not None:
            update["risk_threshold"] = risk_threshold
        if not update:
            return self
        # Re-validate through the constructor; model_copy skips validators.
        optimizer = OptimizerConfig(**{**self.optimizer.model_dump(), **update})
        return self.model_copy(update={"optimizer": optimizer})


class EngineSettings(BaseSettings):
    model_config = SettingsConfigDict(
        env_prefix="FPL_",
        env_file=DEFAULT_ENV_PATH,
        env_file_encoding="utf-8",
        extra="ignore",
    )

    config_yaml_path: Path = DEFAULT_CONFIG_PATH
    report_output_dir: Path = Path("reports")
    log_level: Optional[str] = None  # falls back to LOG_LEVEL, then WARNING

    engine: EngineConfig = Field(default_factory=EngineConfig)

    def to_json(self) -> str:
        return json.dumps(self.model_dump(mode="json"), default=str, indent=2)


def _resolve_config_path(default_path: Path) -> Path:
    """Resolve the most appropriate config.yaml path.

    Search order:
    1. Explicit CONFIG_YAML_PATH environment variable.
    2. The settings default (project root when running from source).
    3. Current working directory.
    """
    candidates: list[Path] = []

    env_path = os.getenv("CONFIG_YAML_PATH")
    if env_path:
        candidates.append(Path(env_path))
    if default_path:
        candidates.append(default_path)
    candidates.append(Path.cwd() / "config.yaml")

    for candidate in candidates:
        if candidate.exists():
            return candidate
    return default_path


def load_engine_config(path: Path) -> EngineConfig:
    """Build an EngineConfig from the sections of a YAML file.

    A missing file gives the defaults; a malformed one raises.
    """
    try:
        with open(path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
    except FileNotFoundError:
        logger.warning("config.yaml not found at %s, using defaults", path)
        return EngineConfig()
    if not isinstance(data, dict):
        raise ValueError(f"{path} must contain a mapping at the top level")
    sections = {key: data[key] for key in ("scoring", "optimizer", "advisory", "api") if data.get(key)}
    return EngineConfig(**sections)


def load_settings(config_path: Optional[Path] = None) -> EngineSettings:
    settings = EngineSettings()
    resolved = config_path or _resolve_config_path(settings.config_yaml_path or DEFAULT_CONFIG_PATH)
    engine = load_engine_config(resolved)
    settings = settings.model_copy(update={"config_yaml_path": resolved, "engine": engine})
    logger.debug("Loaded settings: %s", settings.to_json())
    return settings
