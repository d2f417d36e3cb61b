"""TgbotLogger: singleton JSON logger with console and rotating file output.

The logger is the ``tgbot`` logger itself, so records emitted by library
modules (``tgbot.api``, ``tgbot.poller``, ...) through
``logging.getLogger(__name__)`` share its handlers.  Registered secrets such
as the bot token are masked in every rendered record.
"""

import json
import logging
import os
from datetime import datetime, timezone
from logging.handlers import RotatingFileHandler
from typing import Optional


class _JsonFormatter(logging.Formatter):
    """Format every log record as a single-line JSON object.

    Standard fields (timestamp, level, logger, message, module, func_name)
    are always present.  Keys passed through ``extra`` are merged in, which is
    how the library attaches ``api_endpoint``, ``update_id``, ``delay`` and
    similar context::

        logger.warning("getUpdates failed, retrying", extra={"delay": 2.0})

    Produces::

        {"timestamp": "…", "level": "WARNING", …, "delay": 2.0}
    """

    # Keys that belong to the standard LogRecord; everything else is extra.
    _BUILTIN_ATTRS: frozenset[str] = frozenset(vars(logging.LogRecord(
        name="", level=0, pathname="", lineno=0, msg="", args=(), exc_info=None,
    ))) | {"message", "asctime", "taskName"}

    def format(self, record: logging.LogRecord) -> str:
        log_entry: dict = {
            "timestamp": datetime.fromtimestamp(
                record.created, tz=timezone.utc
            ).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "module": record.module,
            "func_name": record.funcName,
        }

        for key, value in record.__dict__.items():
            if key not in self._BUILTIN_ATTRS and key not in log_entry:
                log_entry[key] = value

        if record.exc_info:
            log_entry["exception"] = self.formatException(record.exc_info)

        return json.dumps(log_entry, ensure_ascii=False, default=str)


class _RedactingFormatter(logging.Formatter):
    """Wrap another formatter and mask registered secrets in its output."""

    def __init__(self, inner: logging.Formatter, secrets: set[str]) -> None:
        super().__init__()
        self._inner = inner
        self._secrets = secrets

    def format(self, record: logging.LogRecord) -> str:
        text = self._inner.format(record)
        for secret in self._secrets:
            text = text.replace(secret, "<redacted>")
        return text


class TgbotLogger:
    """Singleton logger with dual handlers (console + rotating file).

    Usage::

        from core.logger import TgbotLogger

        TgbotLogger.mask(token)
        logger = TgbotLogger.get_logger()
        logger.info("Bot started")
    """

    _instance: Optional["TgbotLogger"] = None
    _logger: Optional[logging.Logger] = None
    _secrets: set[str] = set()

    LOGGER_NAME: str = "tgbot"

    # Rotation settings
    _LOG_DIR: str = "logs"
    _LOG_FILE: str = "tgbot.log"
    _MAX_BYTES: int = 5 * 1024 * 1024  # 5 MB
    _BACKUP_COUNT: int = 5

    def __new__(cls, level: int = logging.INFO) -> "TgbotLogger":
        if cls._instance is None:
            cls._instance = super().__new__(cls)
            cls._instance._init_logger(level)
        return cls._instance

    def _init_logger(self, level: int) -> None:
        self._logger = logging.getLogger(self.LOGGER_NAME)
        self._logger.setLevel(level)

        # Avoid duplicate handlers if the module is reloaded.
        if self._logger.handlers:
            return

        formatter = _RedactingFormatter(_JsonFormatter(), self._secrets)

        stream_handler = logging.StreamHandler()
        stream_handler.setLevel(level)
        stream_handler.setFormatter(formatter)
        self._logger.addHandler(stream_handler)

        os.makedirs(self._LOG_DIR, exist_ok=True)
        file_handler = RotatingFileHandler(
            os.path.join(self._LOG_DIR, self._LOG_FILE),
            maxBytes=self._MAX_BYTES,
            backupCount=self._BACKUP_COUNT,
            encoding="utf-8",
        )
        file_handler.setLevel(level)
        file_handler.setFormatter(formatter)
        self._logger.addHandler(file_handler)

    @staticmethod
    def get_logger(level: int = logging.INFO) -> logging.Logger:
        """Return the shared ``tgbot`` logger.

        Creates the singleton on first call; later calls return the same
        logger regardless of *level*.
        """
        instance = TgbotLogger(level)
        assert instance._logger is not None  # guaranteed by __new__
        return instance._logger

    @classmethod
    def mask(cls, secret: Optional[str]) -> None:
        """Never let *secret* reach a log line."""
        if secret:
            cls._secrets.add(secret)

    def cleanup(self) -> None:
        """Flush and close all handlers attached to the logger."""
        if self._logger is None:
            return
        for handler in list(self._logger.handlers):
            handler.flush()
            handler.close()
            self._logger.removeHandler(handler)
