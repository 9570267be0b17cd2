"""Tests for settings loaded from the environment."""

from pathlib import Path

import pytest

from finadmin.config import DEFAULT_DB_PATH, DEV_JWT_SECRET, get_settings


@pytest.fixture(autouse=True)
def clean_env(monkeypatch, tmp_path):
    """Isolate from the developer's environment and any local .env file."""
    monkeypatch.chdir(tmp_path)
    for name in [
        "FINADMIN_DB_PATH",
        "FINADMIN_JWT_SECRET",
        "FINADMIN_JWT_EXPIRES_MINUTES",
        "FINADMIN_CORS_ORIGINS",
        "FINADMIN_STORE_TIMEOUT_S",
        "FINADMIN_HIGH_SPENDER_MODE",
        "FINADMIN_LOG_LEVEL",
    ]:
        monkeypatch.delenv(name, raising=False)


def test_defaults():
    settings = get_settings()

    assert settings.db_path == DEFAULT_DB_PATH
    assert settings.jwt_secret == DEV_JWT_SECRET
    assert settings.high_spender_mode == "per_user"
    assert settings.store_timeout_s == 5.0


def test_reads_environment(monkeypatch):
    monkeypatch.setenv("FINADMIN_DB_PATH", "/tmp/other.db")
    monkeypatch.setenv("FINADMIN_JWT_SECRET", "s3cret")
    monkeypatch.setenv("FINADMIN_CORS_ORIGINS", "http://a.test, http://b.test")
    monkeypatch.setenv("FINADMIN_HIGH_SPENDER_MODE", "per_transaction")
    monkeypatch.setenv("FINADMIN_LOG_LEVEL", "debug")

    settings = get_settings()

    assert settings.db_path == Path("/tmp/other.db")
    assert settings.jwt_secret == "s3cret"
    assert settings.cors_origins == ("http://a.test", "http://b.test")
    assert settings.high_spender_mode == "per_transaction"
    assert settings.log_level == "DEBUG"


def test_rejects_unknown_high_spender_mode(monkeypatch):
    monkeypatch.setenv("FINADMIN_HIGH_SPENDER_MODE", "median")

    with pytest.raises(ValueError):
        get_settings()
