import os

import pytest

os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")

from pydantic import ValidationError

from rp_tracker.config import Config, _bool, _norm_db_url


def test_norm_db_url_sqlite_to_aiosqlite() -> None:
    assert _norm_db_url("sqlite:///test.db") == "sqlite+aiosqlite:///test.db"
    assert _norm_db_url("sqlite:///:memory:") == "sqlite+aiosqlite:///:memory:"
    # already using aiosqlite should stay untouched
    assert _norm_db_url("sqlite+aiosqlite:///test.db") == "sqlite+aiosqlite:///test.db"


def test_norm_db_url_postgres_to_asyncpg() -> None:
    assert _norm_db_url("postgres://u:p@h/db") == "postgresql+asyncpg://u:p@h/db"
    assert _norm_db_url("postgresql://u:p@h/db") == "postgresql+asyncpg://u:p@h/db"
    assert _norm_db_url(None) is None


def test_bool_env(monkeypatch) -> None:
    monkeypatch.setenv("FF_TEST_FLAG", "Yes")
    assert _bool("FF_TEST_FLAG", False) is True
    monkeypatch.setenv("FF_TEST_FLAG", "0")
    assert _bool("FF_TEST_FLAG", True) is False
    monkeypatch.delenv("FF_TEST_FLAG")
    assert _bool("FF_TEST_FLAG", True) is True


def test_config_defaults(monkeypatch) -> None:
    monkeypatch.setenv("DATABASE_URL", "sqlite:///rp.db")
    monkeypatch.delenv("FF_SETTINGS_LANDMARKS", raising=False)
    monkeypatch.delenv("LOG_HISTORY_LIMIT", raising=False)
    monkeypatch.setenv("LOG_LEVEL", "debug")
    cfg = Config()
    assert cfg.DATABASE_URL == "sqlite+aiosqlite:///rp.db"
    assert cfg.LOG_LEVEL == "DEBUG"
    assert cfg.LOG_HISTORY_LIMIT == 10
    assert cfg.FF_SETTINGS_LANDMARKS is False


def test_config_rejects_bad_log_level(monkeypatch) -> None:
    monkeypatch.setenv("LOG_LEVEL", "chatty")
    with pytest.raises(ValidationError):
        Config()
