"""Tests for Settings defaults and environment overrides."""

from voxplan.core.config import Settings, get_settings


def test_defaults(monkeypatch):
    monkeypatch.delenv("ASSEMBLYAI_API_KEY", raising=False)
    settings = Settings(_env_file=None)

    assert settings.assemblyai_api_key == ""
    assert settings.assemblyai_speech_model == "universal"
    assert settings.poll_interval_seconds == 3.0
    assert settings.poll_max_attempts == 100
    assert settings.planning_timeout_seconds == 180.0
    assert settings.planning_max_attempts == 2
    assert settings.planning_retry_backoff_seconds == 2.0
    assert settings.max_upload_bytes == 100 * 1024 * 1024


def test_env_overrides(monkeypatch):
    monkeypatch.setenv("POLL_INTERVAL_SECONDS", "0.5")
    monkeypatch.setenv("assemblyai_api_key", "from-env")

    settings = Settings(_env_file=None)

    assert settings.poll_interval_seconds == 0.5
    assert settings.assemblyai_api_key == "from-env"


def test_get_settings_is_cached():
    assert get_settings() is get_settings()
