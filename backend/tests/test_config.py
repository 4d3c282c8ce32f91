"""
Tests for Runtime Configuration

Tests load_settings() parsing and Settings.retry_policy().
"""

import pytest

from common.config import Settings, load_settings
from notifications.errors import ConfigurationError
from notifications.retry import RetryPolicy


ENV_VARS = [
    "TRAFFIC_NOTIFIER_MODE",
    "MAPBOX_ACCESS_TOKEN",
    "GEMINI_API_KEY",
    "GOOGLE_API_KEY",
    "GEMINI_MODEL",
    "EXPO_PUSH_TOKEN",
    "EXPO_ACCESS_TOKEN",
    "DELAY_THRESHOLD_MINUTES",
    "HTTP_TIMEOUT_SECONDS",
    "RETRY_MAX_ATTEMPTS",
    "RETRY_INITIAL_INTERVAL_SECONDS",
    "RETRY_MAXIMUM_INTERVAL_SECONDS",
    "RETRY_BACKOFF_COEFFICIENT",
    "STAGE_TIMEOUT_SECONDS",
]


@pytest.fixture(autouse=True)
def clean_env(monkeypatch, tmp_path):
    for name in ENV_VARS:
        # setenv first so values written by load_dotenv are undone too
        monkeypatch.setenv(name, "")
        monkeypatch.delenv(name)
    # keep load_dotenv from picking up a developer's .env
    monkeypatch.chdir(tmp_path)


class TestLoadSettings:

    def test_defaults(self):
        settings = load_settings(env_file="missing.env")

        assert settings == Settings()
        assert settings.mode == "prod"
        assert settings.delay_threshold_minutes == 30
        assert settings.uses_fake_providers is False

    def test_reads_environment(self, monkeypatch):
        monkeypatch.setenv("TRAFFIC_NOTIFIER_MODE", " Demo ")
        monkeypatch.setenv("MAPBOX_ACCESS_TOKEN", "pk.test")
        monkeypatch.setenv("GEMINI_MODEL", "gemini-test")
        monkeypatch.setenv("DELAY_THRESHOLD_MINUTES", "45")
        monkeypatch.setenv("RETRY_MAX_ATTEMPTS", "3")

        settings = load_settings(env_file="missing.env")

        assert settings.mode == "demo"
        assert settings.uses_fake_providers is True
        assert settings.mapbox_access_token == "pk.test"
        assert settings.gemini_model == "gemini-test"
        assert settings.delay_threshold_minutes == 45.0
        assert settings.retry_max_attempts == 3

    def test_google_api_key_fallback(self, monkeypatch):
        monkeypatch.setenv("GOOGLE_API_KEY", "google-key")
        assert load_settings(env_file="missing.env").gemini_api_key == "google-key"

    def test_gemini_key_wins(self, monkeypatch):
        monkeypatch.setenv("GOOGLE_API_KEY", "google-key")
        monkeypatch.setenv("GEMINI_API_KEY", "gemini-key")
        assert load_settings(env_file="missing.env").gemini_api_key == "gemini-key"

    def test_env_file(self, tmp_path):
        env_file = tmp_path / "notifier.env"
        env_file.write_text("TRAFFIC_NOTIFIER_MODE=test\nDELAY_THRESHOLD_MINUTES=12\n")

        settings = load_settings(env_file=str(env_file))

        assert settings.mode == "test"
        assert settings.delay_threshold_minutes == 12.0

    def test_unknown_mode(self, monkeypatch):
        monkeypatch.setenv("TRAFFIC_NOTIFIER_MODE", "staging")
        with pytest.raises(ConfigurationError, match="TRAFFIC_NOTIFIER_MODE"):
            load_settings(env_file="missing.env")

    @pytest.mark.parametrize("name,value", [
        ("DELAY_THRESHOLD_MINUTES", "half an hour"),
        ("RETRY_MAX_ATTEMPTS", "2.5"),
        ("HTTP_TIMEOUT_SECONDS", "ten"),
    ])
    def test_non_numeric_values(self, monkeypatch, name, value):
        monkeypatch.setenv(name, value)
        with pytest.raises(ConfigurationError, match=name):
            load_settings(env_file="missing.env")

    def test_negative_threshold(self, monkeypatch):
        monkeypatch.setenv("DELAY_THRESHOLD_MINUTES", "-5")
        with pytest.raises(ConfigurationError, match="non-negative"):
            load_settings(env_file="missing.env")


class TestRetryPolicyFromSettings:

    def test_defaults_match_policy_defaults(self):
        assert Settings().retry_policy() == RetryPolicy()

    def test_invalid_retry_settings(self):
        with pytest.raises(ConfigurationError, match="Invalid retry settings"):
            Settings(retry_max_attempts=0).retry_policy()
