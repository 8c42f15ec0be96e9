import os
from dataclasses import dataclass, replace

from dotenv import load_dotenv

from errors import ConfigError

load_dotenv()


@dataclass(frozen=True)
class Settings:
    base_url: str = ""
    nav_timeout_ms: int = 5000
    submit_timeout_ms: int = 10000
    action_timeout_ms: int = 5000
    assert_timeout_ms: int = 5000
    poll_interval_ms: int = 100
    scenario_timeout_ms: int = 60000
    screenshot_delay_ms: int = 0
    run_id: str | None = None


_INT_ENV = {
    "nav_timeout_ms": "NAV_TIMEOUT_MS",
    "submit_timeout_ms": "SUBMIT_TIMEOUT_MS",
    "action_timeout_ms": "ACTION_TIMEOUT_MS",
    "assert_timeout_ms": "ASSERT_TIMEOUT_MS",
    "poll_interval_ms": "POLL_INTERVAL_MS",
    "scenario_timeout_ms": "SCENARIO_TIMEOUT_MS",
    "screenshot_delay_ms": "SCREENSHOT_DELAY_MS",
}


def _int_from_env(name: str, default: int) -> int:
    raw = os.environ.get(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        value = int(raw)
    except ValueError:
        raise ConfigError(f"{name} must be an integer number of milliseconds, got {raw!r}")
    if value < 0:
        raise ConfigError(f"{name} must not be negative, got {value}")
    return value


def load_settings(**overrides) -> Settings:
    """Build settings from the environment (and .env), then apply non-None overrides."""
    defaults = Settings()
    values = {field: _int_from_env(env, getattr(defaults, field)) for field, env in _INT_ENV.items()}
    values["base_url"] = os.environ.get("BASE_URL", "")
    values["run_id"] = os.environ.get("RUN_ID") or None
    settings = Settings(**values)

    overrides = {k: v for k, v in overrides.items() if v is not None}
    unknown = set(overrides) - set(Settings.__dataclass_fields__)
    if unknown:
        raise ConfigError(f"Unknown settings: {', '.join(sorted(unknown))}")
    settings = replace(settings, **overrides)
    if settings.poll_interval_ms <= 0:
        raise ConfigError("POLL_INTERVAL_MS must be greater than zero")
    return settings
