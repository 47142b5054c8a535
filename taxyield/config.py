from __future__ import annotations

import logging
import os
from functools import lru_cache

from pydantic import BaseModel, Field
from pydantic import ConfigDict, field_validator, model_validator

_LOG_LEVELS = {"CRITICAL", "ERROR", "WARNING", "INFO", "DEBUG"}


def _env_int(name: str, default: int) -> int:
    return int(os.getenv(name, str(default)))


def _env_float(name: str, default: float) -> float:
    return float(os.getenv(name, str(default)))


class Settings(BaseModel):
    solver_max_iterations: int = Field(default_factory=lambda: _env_int("TAXYIELD_SOLVER_MAX_ITERATIONS", 80))
    solver_tolerance: float = Field(default_factory=lambda: _env_float("TAXYIELD_SOLVER_TOLERANCE", 1e-4))
    solver_growth_start: float = Field(default_factory=lambda: _env_float("TAXYIELD_SOLVER_GROWTH_START", 0.5))
    solver_growth_cap: float = Field(default_factory=lambda: _env_float("TAXYIELD_SOLVER_GROWTH_CAP", 5.0))
    solver_growth_guard: int = Field(default_factory=lambda: _env_int("TAXYIELD_SOLVER_GROWTH_GUARD", 20))
    grid_workers: int = Field(default_factory=lambda: _env_int("TAXYIELD_GRID_WORKERS", 1))
    log_level: str = Field(default_factory=lambda: os.getenv("TAXYIELD_LOG_LEVEL", "INFO"))
    telemetry_dir: str | None = Field(default_factory=lambda: os.getenv("TAXYIELD_TELEMETRY_DIR"))
    build_version: str = Field(default_factory=lambda: os.getenv("BUILD_VERSION", "dev"))
    build_sha: str = Field(default_factory=lambda: os.getenv("BUILD_SHA", "local"))

    model_config = ConfigDict(frozen=True, validate_default=True)

    @field_validator("solver_max_iterations", "solver_growth_guard")
    @classmethod
    def _at_least_one(cls, value: int) -> int:
        return max(1, value)

    @field_validator("grid_workers")
    @classmethod
    def _validate_workers(cls, value: int) -> int:
        return max(1, value)

    @field_validator("solver_tolerance", "solver_growth_start", "solver_growth_cap")
    @classmethod
    def _validate_positive(cls, value: float) -> float:
        if value <= 0:
            raise ValueError("Solver tolerance and growth bounds must be positive")
        return value

    @field_validator("log_level", mode="before")
    @classmethod
    def _normalize_level(cls, value: str) -> str:
        upper = (value or "INFO").upper()
        if upper not in _LOG_LEVELS:
            raise ValueError(f"TAXYIELD_LOG_LEVEL must be one of {sorted(_LOG_LEVELS)}, got {upper}")
        return upper

    @field_validator("telemetry_dir", mode="before")
    @classmethod
    def _blank_is_none(cls, value: str | None) -> str | None:
        return value or None

    @model_validator(mode="after")
    def _cap_above_start(self) -> "Settings":
        if self.solver_growth_cap < self.solver_growth_start:
            raise ValueError("TAXYIELD_SOLVER_GROWTH_CAP must not be below TAXYIELD_SOLVER_GROWTH_START")
        return self

    @property
    def log_level_value(self) -> int:
        return logging.getLevelName(self.log_level)


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings()
