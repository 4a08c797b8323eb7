from __future__ import annotations

import pytest

from isstrack.config import TrackerConfig
from isstrack.exceptions import TrackerConfigError

_ENV_KEYS = (
    "ISSTRACK_ENDPOINT_URL",
    "ISSTRACK_POLL_INTERVAL_MS",
    "ISSTRACK_LOCK_DURATION_MS",
    "ISSTRACK_TRAIL_CAPACITY",
    "ISSTRACK_ALTITUDE_REFERENCE_MAX",
    "ISSTRACK_VELOCITY_REFERENCE_MAX",
    "ISSTRACK_REQUEST_TIMEOUT",
)


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    for key in _ENV_KEYS:
        monkeypatch.delenv(key, raising=False)


def test_defaults() -> None:
    config = TrackerConfig()

    assert config.endpoint_url == "https://api.wheretheiss.at/v1/satellites/25544"
    assert config.poll_interval_ms == 2000
    assert config.trail_capacity == 500
    assert config.lock_duration_ms == 2000
    assert config.altitude_reference_max == 450.0
    assert config.velocity_reference_max == 28000.0


def test_from_env_reads_milliseconds_and_numbers(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("ISSTRACK_ENDPOINT_URL", " http://localhost:8080/iss ")
    monkeypatch.setenv("ISSTRACK_POLL_INTERVAL_MS", "500")
    monkeypatch.setenv("ISSTRACK_LOCK_DURATION_MS", "3000")
    monkeypatch.setenv("ISSTRACK_TRAIL_CAPACITY", "42")
    monkeypatch.setenv("ISSTRACK_VELOCITY_REFERENCE_MAX", "30000")

    config = TrackerConfig.from_env()

    assert config.endpoint_url == "http://localhost:8080/iss"
    assert config.poll_interval == 0.5
    assert config.lock_duration == 3.0
    assert config.trail_capacity == 42
    assert config.velocity_reference_max == 30000.0


def test_explicit_overrides_win(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("ISSTRACK_TRAIL_CAPACITY", "42")

    config = TrackerConfig.from_env(trail_capacity=7)

    assert config.trail_capacity == 7


def test_bad_env_value_raises_config_error(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("ISSTRACK_POLL_INTERVAL_MS", "fast")

    with pytest.raises(TrackerConfigError):
        TrackerConfig.from_env()


@pytest.mark.parametrize(
    "kwargs",
    [
        {"endpoint_url": " "},
        {"poll_interval": 0},
        {"trail_capacity": 0},
        {"lock_duration": -1},
        {"altitude_reference_max": 0},
        {"velocity_reference_max": -5},
        {"request_timeout": 0},
    ],
)
def test_invalid_values_rejected(kwargs: dict[str, object]) -> None:
    with pytest.raises(TrackerConfigError):
        TrackerConfig(**kwargs)  # type: ignore[arg-type]
