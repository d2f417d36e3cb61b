"""Tests for the JSON logger and secret masking."""

import json
import logging
import sys
import os

import pytest

sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

from core.logger import TgbotLogger

TOKEN = "123456:SECRET-token"


@pytest.fixture
def fresh_logger(tmp_path, monkeypatch):
    """A newly initialised singleton writing into *tmp_path*."""
    monkeypatch.setattr(TgbotLogger, "_LOG_DIR", str(tmp_path))
    monkeypatch.setattr(TgbotLogger, "_instance", None)
    monkeypatch.setattr(TgbotLogger, "_secrets", set())
    logging.getLogger(TgbotLogger.LOGGER_NAME).handlers.clear()
    logger = TgbotLogger.get_logger(logging.DEBUG)
    yield logger, tmp_path / TgbotLogger._LOG_FILE
    TgbotLogger().cleanup()


def _lines(path) -> list[dict]:
    return [json.loads(line) for line in path.read_text(encoding="utf-8").splitlines()]


class TestTgbotLogger:
    """Singleton wiring, JSON output, extra fields and redaction."""

    def test_singleton(self, fresh_logger) -> None:
        logger, _ = fresh_logger
        assert TgbotLogger.get_logger() is logger
        assert logger.name == "tgbot"
        assert len(logger.handlers) == 2

    def test_json_line_with_extra(self, fresh_logger) -> None:
        logger, path = fresh_logger
        logger.warning("getUpdates failed, retrying", extra={"delay": 2.0, "api_endpoint": "getUpdates"})

        entry = _lines(path)[-1]
        assert entry["level"] == "WARNING"
        assert entry["message"] == "getUpdates failed, retrying"
        assert entry["delay"] == 2.0
        assert entry["api_endpoint"] == "getUpdates"

    def test_child_logger_records_share_handlers(self, fresh_logger) -> None:
        _, path = fresh_logger
        logging.getLogger("tgbot.poller").info("Polling for updates", extra={"offset": 4})

        entry = _lines(path)[-1]
        assert entry["logger"] == "tgbot.poller"
        assert entry["offset"] == 4

    def test_masked_secret_never_written(self, fresh_logger) -> None:
        logger, path = fresh_logger
        TgbotLogger.mask(TOKEN)

        logger.error("request to /bot%s/getMe failed", TOKEN, extra={"url": f"https://x/bot{TOKEN}/getMe"})

        text = path.read_text(encoding="utf-8")
        assert TOKEN not in text
        assert "<redacted>" in text

    def test_exception_included(self, fresh_logger) -> None:
        logger, path = fresh_logger
        try:
            raise RuntimeError("handler bug")
        except RuntimeError:
            logger.exception("Update handler failed")

        entry = _lines(path)[-1]
        assert "RuntimeError: handler bug" in entry["exception"]

    def test_mask_ignores_empty(self) -> None:
        before = set(TgbotLogger._secrets)
        TgbotLogger.mask(None)
        TgbotLogger.mask("")
        assert TgbotLogger._secrets == before
