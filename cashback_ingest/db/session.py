import logging
import socket
from contextlib import closing
from typing import Optional

from sqlalchemy import create_engine, text
from sqlalchemy.engine import Engine
from sqlalchemy.engine.url import make_url

from cashback_ingest.core.config import Settings, settings as default_settings
from cashback_ingest.core.errors import DatabasePoolError

logger = logging.getLogger(__name__)


def _report_connection_failure(database_url: str, exc: Exception) -> None:
    """Log high-signal diagnostics when the service cannot reach Postgres."""
    logger.error("Could not connect to database: %s", exc)

    try:
        url = make_url(database_url)
    except Exception as parse_error:  # pragma: no cover
        logger.error("Unable to parse DATABASE_URL (%s); skipping detailed diagnostics.", parse_error)
        return

    host = url.host or "localhost"
    port = url.port or 5432
    logger.error(
        "Database connection settings: dialect=%s driver=%s host=%s port=%s database=%s username=%s",
        url.get_backend_name(),
        url.get_driver_name() or "default",
        host,
        port,
        url.database,
        url.username,
    )

    try:
        with closing(socket.create_connection((host, port), timeout=2)):
            logger.error("Socket check: able to reach %s:%s, so the failure is at the Postgres level", host, port)
    except OSError as socket_err:
        logger.error("Socket check: unable to reach %s:%s (%s)", host, port, socket_err)


def _engine_options(config: Settings) -> dict:
    options = {
        "pool_size": config.db_pool_min_size,
        "max_overflow": config.db_pool_max_size - config.db_pool_min_size,
        "pool_timeout": config.db_pool_timeout_seconds,
        "pool_pre_ping": True,
    }
    if config.db_statement_timeout_ms > 0:
        options["connect_args"] = {"options": f"-c statement_timeout={config.db_statement_timeout_ms}"}
    return options


def open_ingest_pool(config: Optional[Settings] = None) -> Engine:
    """
    Open a bounded connection pool for one ingestion request.

    The pool keeps ``db_pool_min_size`` connections and never opens more than
    ``db_pool_max_size``. The connection is tested eagerly so that an
    unreachable database is reported before any of the upload is consumed.

    Raises:
        DatabasePoolError: If the engine cannot be created or the test query fails.
    """
    config = config or default_settings
    logger.info(
        "Opening db connection pool (min=%d, max=%d)",
        config.db_pool_min_size,
        config.db_pool_max_size,
    )

    engine = None
    try:
        engine = create_engine(config.database_url, **_engine_options(config))
        with engine.connect() as conn:
            conn.execute(text("SELECT 1"))
    except Exception as e:
        _report_connection_failure(config.database_url, e)
        if engine is not None:
            engine.dispose()
        raise DatabasePoolError(e) from e

    return engine


def close_ingest_pool(engine: Engine) -> None:
    engine.dispose()
    logger.info("Closed db connection pool")


def get_pool_factory():
    """FastAPI dependency returning the callable that opens a request's pool."""
    return open_ingest_pool
