import pytest
from pydantic import ValidationError

from taxyield.config import Settings, get_settings


def test_defaults(monkeypatch):
    for name in ("TAXYIELD_GRID_WORKERS", "TAXYIELD_LOG_LEVEL", "TAXYIELD_TELEMETRY_DIR", "TAXYIELD_SOLVER_GROWTH_CAP"):
        monkeypatch.delenv(name, raising=False)
    settings = get_settings()
    assert settings.solver_max_iterations == 80
    assert settings.solver_growth_cap == 5.0
    assert settings.grid_workers == 1
    assert settings.log_level == "INFO"
    assert settings.telemetry_dir is None


def test_environment_overrides(monkeypatch):
    monkeypatch.setenv("TAXYIELD_GRID_WORKERS", "4")
    monkeypatch.setenv("TAXYIELD_LOG_LEVEL", "debug")
    monkeypatch.setenv("TAXYIELD_SOLVER_TOLERANCE", "0.001")
    settings = get_settings()
    assert settings.grid_workers == 4
    assert settings.log_level == "DEBUG"
    assert settings.log_level_value == 10
    assert settings.solver_tolerance == 0.001


def test_settings_are_cached(monkeypatch):
    first = get_settings()
    monkeypatch.setenv("TAXYIELD_GRID_WORKERS", "8")
    assert get_settings() is first
    get_settings.cache_clear()
    assert get_settings().grid_workers == 8


def test_counts_are_clamped_to_one():
    settings = Settings(grid_workers=0, solver_max_iterations=-3, solver_growth_guard=0)
    assert settings.grid_workers == 1
    assert settings.solver_max_iterations == 1
    assert settings.solver_growth_guard == 1


def test_blank_telemetry_dir_is_none(monkeypatch):
    monkeypatch.setenv("TAXYIELD_TELEMETRY_DIR", "")
    assert get_settings().telemetry_dir is None


@pytest.mark.parametrize(
    "overrides",
    [
        {"solver_tolerance": 0},
        {"solver_growth_start": -1.0},
        {"log_level": "chatty"},
        {"solver_growth_start": 2.0, "solver_growth_cap": 1.0},
    ],
)
def test_invalid_settings_are_rejected(overrides):
    with pytest.raises(ValidationError):
        Settings(**overrides)


def test_invalid_environment_is_rejected(monkeypatch):
    monkeypatch.setenv("TAXYIELD_LOG_LEVEL", "verbose")
    with pytest.raises(ValidationError):
        get_settings()
