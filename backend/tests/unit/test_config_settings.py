"""Unit tests for application settings configuration."""

from pathlib import Path

from app.config import Settings


def test_settings_uses_backend_env_file_independent_of_cwd():
    """Settings should always include backend/.env as an env source."""
    env_files = Settings.model_config.get("env_file")
    assert env_files is not None

    normalized = {str(Path(item)) for item in env_files}
    expected_backend_env = str(Path(__file__).resolve().parents[2] / ".env")

    assert expected_backend_env in normalized
    assert str(Path(".env")) in normalized


def test_generation_defaults(monkeypatch):
    for name in (
        "GENERATION_TIMEOUT_SECONDS",
        "MAX_GENERATION_RECORDS",
        "RECORD_SELECTION_STRATEGY",
        "UPDATE_CLAIM_TTL_SECONDS",
    ):
        monkeypatch.delenv(name, raising=False)

    settings = Settings(_env_file=None)

    assert settings.generation_timeout_seconds == 50.0
    assert settings.max_generation_records == 15
    assert settings.record_selection_strategy == "first"
    assert settings.update_claim_ttl_seconds == 120


def test_settings_read_from_environment(monkeypatch):
    monkeypatch.setenv("GENERATION_TIMEOUT_SECONDS", "5")
    monkeypatch.setenv("RECORD_SELECTION_STRATEGY", "most_recent")

    settings = Settings(_env_file=None)

    assert settings.generation_timeout_seconds == 5.0
    assert settings.record_selection_strategy == "most_recent"
