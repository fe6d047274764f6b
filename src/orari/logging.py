"""structlog setup for the portal client and the fetch_timetable script.

Every record, structlog or stdlib, goes to stderr: the script owns stdout for
its JSON or table output. Console rendering unless ORARI_LOG_JSON is set.
"""

import logging
import sys

import structlog

from src.orari.config import OrariConfig, get_config

# Per-request INFO lines from the HTTP stack drown the client's own events
QUIET_LOGGERS = ("httpx", "httpcore")


def _level(name: str) -> int:
    level = logging.getLevelName(name.upper())
    return level if isinstance(level, int) else logging.INFO


def setup_logging(config: OrariConfig | None = None) -> None:
    """Configure structlog and the stdlib root logger from config.

    Args:
        config: Settings carrying log_level and log_json; defaults to
            get_config().
    """
    config = config or get_config()
    level = _level(config.log_level)

    if config.log_json:
        tail = [
            structlog.processors.format_exc_info,
            structlog.processors.JSONRenderer(ensure_ascii=False),
        ]
    else:
        tail = [structlog.dev.set_exc_info, structlog.dev.ConsoleRenderer()]

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso", utc=True),
            *tail,
        ],
        wrapper_class=structlog.make_filtering_bound_logger(level),
        logger_factory=structlog.PrintLoggerFactory(file=sys.stderr),
        cache_logger_on_first_use=True,
    )

    root = logging.getLogger()
    root.handlers = [logging.StreamHandler(sys.stderr)]
    root.setLevel(level)
    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(max(level, logging.WARNING))


def get_logger(name: str) -> structlog.BoundLogger:
    """Module logger; call sites log events as snake_case names plus keywords."""
    return structlog.get_logger(name)
