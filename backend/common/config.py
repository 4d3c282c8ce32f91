"""
Runtime configuration

Read once from the environment (and a local .env file) at startup.
"""

import os
from dataclasses import dataclass
from typing import Optional

from dotenv import load_dotenv

from notifications.errors import ConfigurationError
from notifications.retry import RetryPolicy

MODES = {"prod", "demo", "test"}


@dataclass(frozen=True)
class Settings:
    mode: str = "prod"
    mapbox_access_token: str = ""
    gemini_api_key: str = ""
    gemini_model: str = "gemini-2.0-flash"
    expo_push_token: str = ""
    expo_access_token: str = ""
    delay_threshold_minutes: float = 30
    http_timeout_seconds: float = 10.0
    retry_max_attempts: int = 5
    retry_initial_interval_seconds: float = 1.0
    retry_maximum_interval_seconds: float = 10.0
    retry_backoff_coefficient: float = 2.0
    stage_timeout_seconds: float = 60.0

    @property
    def uses_fake_providers(self) -> bool:
        return self.mode in {"demo", "test"}

    def retry_policy(self) -> RetryPolicy:
        try:
            return RetryPolicy(
                max_attempts=self.retry_max_attempts,
                initial_interval=self.retry_initial_interval_seconds,
                maximum_interval=self.retry_maximum_interval_seconds,
                backoff_coefficient=self.retry_backoff_coefficient,
                start_to_close_timeout=self.stage_timeout_seconds,
            )
        except ValueError as e:
            raise ConfigurationError(f"Invalid retry settings: {e}") from e


def _parse_number(name: str, default: float, cast=float):
    raw = os.getenv(name, "").strip()
    if not raw:
        return default
    try:
        return cast(raw)
    except ValueError as e:
        raise ConfigurationError(f"{name} must be a number, got {raw!r}") from e


def load_settings(env_file: Optional[str] = None) -> Settings:
    load_dotenv(env_file)

    mode = os.getenv("TRAFFIC_NOTIFIER_MODE", "prod").strip().lower() or "prod"
    if mode not in MODES:
        raise ConfigurationError(f"TRAFFIC_NOTIFIER_MODE must be one of {sorted(MODES)}, got {mode!r}")

    threshold = _parse_number("DELAY_THRESHOLD_MINUTES", 30.0)
    if threshold < 0:
        raise ConfigurationError("DELAY_THRESHOLD_MINUTES must be non-negative")

    return Settings(
        mode=mode,
        mapbox_access_token=os.getenv("MAPBOX_ACCESS_TOKEN", "").strip(),
        gemini_api_key=(os.getenv("GEMINI_API_KEY", "") or os.getenv("GOOGLE_API_KEY", "")).strip(),
        gemini_model=os.getenv("GEMINI_MODEL", "gemini-2.0-flash").strip() or "gemini-2.0-flash",
        expo_push_token=os.getenv("EXPO_PUSH_TOKEN", "").strip(),
        expo_access_token=os.getenv("EXPO_ACCESS_TOKEN", "").strip(),
        delay_threshold_minutes=threshold,
        http_timeout_seconds=_parse_number("HTTP_TIMEOUT_SECONDS", 10.0),
        retry_max_attempts=_parse_number("RETRY_MAX_ATTEMPTS", 5, int),
        retry_initial_interval_seconds=_parse_number("RETRY_INITIAL_INTERVAL_SECONDS", 1.0),
        retry_maximum_interval_seconds=_parse_number("RETRY_MAXIMUM_INTERVAL_SECONDS", 10.0),
        retry_backoff_coefficient=_parse_number("RETRY_BACKOFF_COEFFICIENT", 2.0),
        stage_timeout_seconds=_parse_number("STAGE_TIMEOUT_SECONDS", 60.0),
    )
