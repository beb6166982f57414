"""Centralized logging configuration.

Usage:
    from app.logging_config import setup_logging
    setup_logging()   # once, in the FastAPI lifespan
"""
import logging
import sys

from app.config import settings

# Third-party loggers whose level follows LOG_LEVEL_SQL rather than LOG_LEVEL.
_SQL_LOGGERS = ("sqlalchemy.engine", "sqlalchemy.pool", "aiosqlite", "asyncpg")

_FORMAT = "%(asctime)s %(levelname)-8s %(name)s: %(message)s"


def _parse_level(value: str) -> int:
    level = logging.getLevelName(value.upper())
    return level if isinstance(level, int) else logging.INFO


def setup_logging() -> None:
    """Configure the root handler and per-category levels from settings."""
    root = logging.getLogger()
    root.setLevel(_parse_level(settings.LOG_LEVEL))

    if not any(getattr(h, "_newsroom", False) for h in root.handlers):
        handler = logging.StreamHandler(sys.stdout)
        handler.setFormatter(logging.Formatter(_FORMAT))
        handler._newsroom = True
        root.addHandler(handler)

    sql_level = _parse_level(settings.LOG_LEVEL_SQL)
    for name in _SQL_LOGGERS:
        logging.getLogger(name).setLevel(sql_level)

    logging.getLogger(__name__).debug(
        "Logging configured (level=%s, sql=%s)", settings.LOG_LEVEL, settings.LOG_LEVEL_SQL
    )
