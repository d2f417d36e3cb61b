"""Exception hierarchy for the tgbot client."""

from typing import Optional

from tgbot.types import ResponseParameters


class TgbotError(Exception):
    """Base class for every error raised by the client."""


class RequestBuildError(TgbotError):
    """A method was constructed with invalid parameters.

    Raised before any I/O takes place.
    """


class TransportError(TgbotError):
    """The request could not be carried out or returned a non-2xx status.

    Attributes:
        status_code: HTTP status code, when a response was received.
        body: Raw response body, when a response was received.
    """

    def __init__(self, message: str, status_code: Optional[int] = None, body: Optional[bytes] = None) -> None:
        self.status_code = status_code
        self.body = body
        super().__init__(message)


class DecodeError(TgbotError):
    """A payload could not be decoded into the expected type."""


class ApiError(TgbotError):
    """The Bot API reported a failure (``ok=false``).

    Attributes:
        error_code: Error code reported by the API.
        description: Human-readable description reported by the API.
        parameters: Optional hints such as ``retry_after``.
    """

    def __init__(
        self,
        error_code: Optional[int],
        description: Optional[str],
        parameters: Optional[ResponseParameters] = None,
    ) -> None:
        self.error_code = error_code
        self.description = description or "Unknown error"
        self.parameters = parameters
        super().__init__(f"API error {error_code}: {self.description}")

    @property
    def retry_after(self) -> Optional[int]:
        """Seconds to wait before repeating the request, if the API said so."""
        return self.parameters.retry_after if self.parameters else None
