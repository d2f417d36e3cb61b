"""Process-level plumbing shared by the entrypoint (logging).

This package must NEVER import from ``tgbot/``.
"""

from core.logger import TgbotLogger

__all__ = [
    "TgbotLogger",
]
