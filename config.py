"""Application configuration: environment variables and derived constants.

Loads the bot token, the optional proxy and the update-delivery settings from
the environment via ``python-dotenv``.  Values are resolved at import time so
the entrypoint can ``from config import …``.  The library in ``tgbot/`` never
reads this module; everything it needs is passed to constructors.
"""

# ── stdlib ───────────────────────────────────────────────────────────────────
import logging
import os

# ── third-party ──────────────────────────────────────────────────────────────
from dotenv import load_dotenv

# ── core ─────────────────────────────────────────────────────────────────────
from core.logger import TgbotLogger

# ── Environment bootstrap ────────────────────────────────────────────────────
load_dotenv()


# ── Helper functions (private) ───────────────────────────────────────────────


def _parse_int(name: str, default: int) -> int:
    """Read an integer variable, falling back to *default* when unset or invalid."""
    raw = os.environ.get(name)
    if raw is None or not raw.strip():
        return default
    try:
        return int(raw.strip())
    except ValueError:
        _invalid.append((name, raw))
        return default


def _parse_level(raw: str | None) -> int:
    level = logging.getLevelName((raw or "INFO").strip().upper())
    return level if isinstance(level, int) else logging.INFO


_invalid: list[tuple[str, str]] = []


# ── Public constants ─────────────────────────────────────────────────────────

TGBOT_TOKEN: str | None = os.environ.get("TGBOT_TOKEN")
TGBOT_PROXY: str | None = os.environ.get("TGBOT_PROXY") or None

UPDATE_MODE: str = os.environ.get("UPDATE_MODE", "polling").strip().lower()
POLL_TIMEOUT: int = _parse_int("POLL_TIMEOUT", 30)
POLL_LIMIT: int = _parse_int("POLL_LIMIT", 100)

WEBHOOK_HOST: str = os.environ.get("WEBHOOK_HOST", "127.0.0.1")
WEBHOOK_PORT: int = _parse_int("WEBHOOK_PORT", 8080)
WEBHOOK_PATH: str = os.environ.get("WEBHOOK_PATH", "/")

LOG_LEVEL: int = _parse_level(os.environ.get("LOG_LEVEL"))


# ── Startup diagnostics ─────────────────────────────────────────────────────

TgbotLogger.mask(TGBOT_TOKEN)
logger = TgbotLogger.get_logger(LOG_LEVEL)

if TGBOT_TOKEN:
    logger.info("Config loaded, TGBOT_TOKEN is set")
else:
    logger.warning("Config loaded, TGBOT_TOKEN is NOT set")

if TGBOT_PROXY:
    logger.info("Requests will go through a proxy")

for _name, _raw in _invalid:
    logger.warning("Ignoring invalid integer setting", extra={"setting": _name, "value": _raw})

logger.info(
    "Update delivery configured",
    extra={"mode": UPDATE_MODE, "poll_timeout": POLL_TIMEOUT, "webhook_path": WEBHOOK_PATH},
)
