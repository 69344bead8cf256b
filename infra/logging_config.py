from __future__ import annotations

import logging
from logging.handlers import RotatingFileHandler
from pathlib import Path

from infra.operational_support import TraceIdLogFilter, get_operational_support
from infra.path import user_data_dir

LOG_FILE_NAME = "cvr-ledger.log"
FILE_FORMAT = "%(asctime)s [%(levelname)s] trace=%(trace_id)s %(name)s - %(message)s"
CONSOLE_FORMAT = "%(levelname)s [trace=%(trace_id)s]: %(message)s"

# Libraries that flood INFO during a large backfill.
_QUIET_LOGGERS = ("sqlalchemy.engine", "alembic.runtime.migration", "httpx")


def _handler(handler: logging.Handler, fmt: str, trace_filter: logging.Filter) -> logging.Handler:
    handler.addFilter(trace_filter)
    handler.setFormatter(logging.Formatter(fmt))
    return handler


def setup_logging(log_dir: Path | None = None, level: int = logging.INFO) -> Path:
    """
    Route ledger logging to a rotating file plus stderr, both tagged with the
    current trace id, and journal an ``app.logging.initialized`` event.
    Calling it again replaces the handlers instead of stacking them.
    """
    target_dir = Path(log_dir) if log_dir is not None else user_data_dir() / "logs"
    target_dir.mkdir(parents=True, exist_ok=True)
    log_file = target_dir / LOG_FILE_NAME

    trace_filter = TraceIdLogFilter()
    root = logging.getLogger()
    root.setLevel(level)
    root.handlers.clear()
    root.addHandler(
        _handler(
            RotatingFileHandler(log_file, maxBytes=2_000_000, backupCount=5, encoding="utf-8"),
            FILE_FORMAT,
            trace_filter,
        )
    )
    root.addHandler(_handler(logging.StreamHandler(), CONSOLE_FORMAT, trace_filter))
    for name in _QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    root.info("Ledger logging to %s", log_file)
    get_operational_support(target_dir).emit_event(
        event_type="app.logging.initialized",
        message=f"Logging initialized at {log_file}",
        data={"log_file": str(log_file), "level": logging.getLevelName(level)},
    )
    return log_file


__all__ = ["setup_logging", "LOG_FILE_NAME"]
