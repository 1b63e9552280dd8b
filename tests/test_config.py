import pytest
from pydantic import ValidationError
from sqlalchemy.exc import OperationalError

from cashback_ingest.core.config import Settings
from cashback_ingest.core.errors import DatabasePoolError
from cashback_ingest.db import session as session_module
from cashback_ingest.db.session import _engine_options, open_ingest_pool


def test_defaults_are_consistent():
    config = Settings()
    assert config.db_pool_min_size <= config.db_pool_max_size
    assert config.ingest_queue_size >= 1
    assert config.log_file


def test_only_consumed_settings_are_declared(monkeypatch):
    monkeypatch.setenv("DEBUG", "true")
    config = Settings()
    assert "debug" not in Settings.model_fields
    assert not hasattr(config, "debug")


@pytest.mark.parametrize(
    "overrides",
    [
        {"db_pool_min_size": 10, "db_pool_max_size": 5},
        {"db_pool_min_size": 0},
        {"ingest_worker_count": 0},
        {"ingest_queue_size": 0},
        {"ingest_progress_every": 0},
    ],
)
def test_invalid_limits_are_rejected(overrides):
    with pytest.raises(ValidationError):
        Settings(**overrides)


def test_settings_read_from_environment(monkeypatch):
    monkeypatch.setenv("INGEST_WORKER_COUNT", "7")
    monkeypatch.setenv("DB_POOL_MAX_SIZE", "12")
    config = Settings()
    assert config.ingest_worker_count == 7
    assert config.db_pool_max_size == 12


def test_pool_bounds_translate_to_queue_pool_options():
    options = _engine_options(Settings(db_pool_min_size=4, db_pool_max_size=50, db_pool_timeout_seconds=9))
    assert options["pool_size"] == 4
    assert options["max_overflow"] == 46
    assert options["pool_timeout"] == 9
    assert "connect_args" not in options


def test_statement_timeout_is_passed_to_postgres():
    options = _engine_options(Settings(db_statement_timeout_ms=1500))
    assert options["connect_args"] == {"options": "-c statement_timeout=1500"}


class _BrokenEngine:
    def __init__(self):
        self.disposed = False

    def connect(self):
        raise OperationalError("SELECT 1", {}, Exception("connection refused"))

    def dispose(self):
        self.disposed = True


def test_open_pool_failure_raises_database_pool_error(monkeypatch):
    broken = _BrokenEngine()
    monkeypatch.setattr(session_module, "create_engine", lambda url, **kwargs: broken)
    monkeypatch.setattr(session_module, "_report_connection_failure", lambda url, exc: None)

    with pytest.raises(DatabasePoolError) as exc:
        open_ingest_pool(Settings())

    assert "connection refused" in str(exc.value)
    assert broken.disposed
