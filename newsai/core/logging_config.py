"""
Logging setup.

Console output goes through a plain ``StreamHandler``.  Records of the
``newsai`` logger hierarchy at INFO and above are also persisted to the
``system_logs`` table; they pass through a ``QueueHandler`` so the write
happens on the listener thread and never inside the caller's transaction.
"""
import logging
import logging.handlers
import queue
from typing import Optional

from .config import Settings, settings as default_settings
from .database import NewsDatabase, db as default_db

LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"

_LEVEL_TYPES = {
    logging.DEBUG: "debug",
    logging.INFO: "info",
    logging.WARNING: "warning",
    logging.ERROR: "error",
    logging.CRITICAL: "error",
}

_listener: Optional[logging.handlers.QueueListener] = None


class DatabaseLogHandler(logging.Handler):
    """Write each record as a ``SystemLog`` row."""

    def __init__(self, database: Optional[NewsDatabase] = None, level: int = logging.INFO):
        super().__init__(level)
        self.database = database or default_db

    def emit(self, record: logging.LogRecord) -> None:
        from ..models.entities import SystemLog

        try:
            metadata = {"module": record.module, "function": record.funcName}
            if record.exc_info:
                metadata["exception"] = logging.Formatter().formatException(record.exc_info)
            elif record.exc_text:
                metadata["exception"] = record.exc_text
            with self.database.session() as session:
                session.add(SystemLog(
                    type=_LEVEL_TYPES.get(record.levelno, "info"),
                    message=record.getMessage(),
                    logger=record.name,
                    metadata_json=metadata,
                ))
        except Exception:
            self.handleError(record)


def setup_logging(
    settings: Optional[Settings] = None,
    database: Optional[NewsDatabase] = None,
    persist: bool = True,
) -> None:
    """Configure the root logger and, optionally, database persistence."""
    global _listener
    settings = settings or default_settings

    logging.basicConfig(level=settings.LOG_LEVEL.upper(), format=LOG_FORMAT, force=True)
    # The engine echoes every statement at INFO otherwise.
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)

    if not persist or _listener is not None:
        return

    log_queue: queue.Queue = queue.Queue(-1)
    app_logger = logging.getLogger("newsai")
    app_logger.addHandler(logging.handlers.QueueHandler(log_queue))
    _listener = logging.handlers.QueueListener(log_queue, DatabaseLogHandler(database))
    _listener.start()


def shutdown_logging() -> None:
    """Flush pending database records and detach the queue handler."""
    global _listener
    if _listener is None:
        return
    _listener.stop()
    _listener = None
    app_logger = logging.getLogger("newsai")
    for handler in list(app_logger.handlers):
        if isinstance(handler, logging.handlers.QueueHandler):
            app_logger.removeHandler(handler)
