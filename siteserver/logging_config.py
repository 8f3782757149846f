#  Site Server - Logging Configuration
#
#  Structured logging with JSON or text format, a REQ level for access
#  lines, the Logs facade handed to components, and the log-rotation
#  startup task.
#
#  Depends on: config.py
#  Used by:    run.py, app.py, container.py, lifecycle.py, middleware/*

import asyncio
import contextvars
import json
import logging
import sys
import time
from logging.handlers import TimedRotatingFileHandler

from siteserver.config import Settings

LOGGER_NAME = "siteserver"
ACCESS_LOGGER_NAME = f"{LOGGER_NAME}.access"

# Between INFO and WARNING so access lines survive an INFO threshold
REQ = 25
logging.addLevelName(REQ, "REQ")

# Context variable for request tracing
request_id_var: contextvars.ContextVar[str | None] = contextvars.ContextVar("request_id", default=None)


def set_request_id(rid: str | None):
    request_id_var.set(rid)


class JSONFormatter(logging.Formatter):
    """Emit log records as single-line JSON with context variables."""

    converter = time.gmtime

    def format(self, record: logging.LogRecord) -> str:
        entry = {
            "timestamp": self.formatTime(record, "%Y-%m-%dT%H:%M:%S") + f".{int(record.msecs):03d}Z",
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        rid = request_id_var.get(None)
        if rid:
            entry["request_id"] = rid
        if record.exc_info and record.exc_info[0] is not None:
            entry["exception"] = self.formatException(record.exc_info)
        return json.dumps(entry, default=str)


_TEXT_FORMAT = "%(asctime)s [%(name)s] %(levelname)s: %(message)s"


def _build_formatter(fmt: str) -> logging.Formatter:
    if fmt == "json":
        return JSONFormatter()
    return logging.Formatter(_TEXT_FORMAT, datefmt="%H:%M:%S")


def setup_logging(level: str = "INFO", fmt: str = "json"):
    """Configure structured logging for the site server.

    Args:
        level: Log level (DEBUG, INFO, REQ, WARNING, ERROR).
        fmt: Log format, "json" for structured output, "text" for human-readable.
    """
    root = logging.getLogger(LOGGER_NAME)
    level_value = logging.getLevelName(level.upper())
    root.setLevel(level_value if isinstance(level_value, int) else logging.INFO)

    if not root.handlers:
        handler = logging.StreamHandler(sys.stdout)
        handler.setFormatter(_build_formatter(fmt))
        root.addHandler(handler)

    # uvicorn's own access log duplicates ours
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)


# ---------------------------------------------------------------------------
# Logs facade
# ---------------------------------------------------------------------------

class Logs:
    """Leveled write operations shared by every component that logs.

    Components receive an instance instead of importing a logger, so tests
    can inject their own.
    """

    def __init__(self, name: str = LOGGER_NAME):
        self._logger = logging.getLogger(name)
        self._access = logging.getLogger(f"{name}.access")

    def info(self, msg: str, *args):
        self._logger.info(msg, *args)

    def warning(self, msg: str, *args):
        self._logger.warning(msg, *args)

    def error(self, msg: str, *args, exc_info=None):
        self._logger.error(msg, *args, exc_info=exc_info)

    def req(self, msg: str, *args):
        self._access.log(REQ, msg, *args)


# ---------------------------------------------------------------------------
# Log rotation (startup task)
# ---------------------------------------------------------------------------

class LogRotation:
    """Attach time-rotated file handlers for the server and access logs.

    server.log receives everything under the siteserver namespace,
    access.log only the REQ lines. Calling it again is a no-op.
    """

    name = "log_rotation"

    def __init__(self, settings: Settings):
        self._settings = settings
        self._handlers: list[TimedRotatingFileHandler] = []

    @property
    def installed(self) -> bool:
        return bool(self._handlers)

    async def __call__(self):
        if self._handlers:
            return
        log_dir = self._settings.log_dir
        # Filesystem work stays off the event loop
        await asyncio.to_thread(log_dir.mkdir, parents=True, exist_ok=True)
        server_handler = await asyncio.to_thread(self._build_handler, "server.log")
        access_handler = await asyncio.to_thread(self._build_handler, "access.log")

        logging.getLogger(LOGGER_NAME).addHandler(server_handler)
        access_logger = logging.getLogger(ACCESS_LOGGER_NAME)
        access_logger.addHandler(access_handler)
        self._handlers = [server_handler, access_handler]
        logging.getLogger(LOGGER_NAME).info("Log rotation initialized in %s", log_dir)

    def _build_handler(self, filename: str) -> TimedRotatingFileHandler:
        handler = TimedRotatingFileHandler(
            self._settings.log_dir / filename,
            when=self._settings.log_rotation_when,
            backupCount=self._settings.log_backup_count,
            encoding="utf-8",
        )
        handler.setFormatter(_build_formatter(self._settings.log_format))
        return handler

    def close(self):
        """Detach and close the file handlers."""
        server_logger = logging.getLogger(LOGGER_NAME)
        access_logger = logging.getLogger(ACCESS_LOGGER_NAME)
        for handler in self._handlers:
            server_logger.removeHandler(handler)
            access_logger.removeHandler(handler)
            handler.close()
        self._handlers = []
