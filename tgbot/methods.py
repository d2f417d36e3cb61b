"""Typed Bot API methods and the request builder.

Every method is a pydantic model whose fields are the call parameters.  The
class declares the remote method name (``api_method``) and the type the
``result`` field of a successful response is decoded into
(``response_type``).  Invalid parameters are rejected when the method object
is constructed, so :func:`build_request` itself never fails.

Encoding rules:

- ``None`` parameters are left out.
- A parameter holding an uploadable :class:`~tgbot.request.InputFile` turns the
  whole call into ``multipart/form-data``: uploads become file parts, every
  other parameter becomes a text part (JSON text for non-strings).
- Otherwise the parameters are sent as a JSON object with snake_case keys.
- Calls without any parameter are sent as ``GET`` with no body.
"""

from __future__ import annotations

import json
from typing import Any, ClassVar, Dict, List, Optional, Union

from pydantic import BaseModel, Field, ValidationError, field_validator
from pydantic_core import to_jsonable_python

from tgbot.exceptions import RequestBuildError
from tgbot.request import (
    FilePart,
    InputFile,
    JsonBody,
    MultipartBody,
    NoBody,
    RequestDescriptor,
    TextPart,
)
from tgbot.types import File, Message, ReplyMarkup, User, WebhookInfo
from tgbot.update import UpdateKind

ChatId = Union[int, str]

# Bounds of getUpdates ``limit`` accepted by the server.
MAX_UPDATES_LIMIT = 100


class Method(BaseModel):
    """Base class of all API methods."""

    api_method: ClassVar[str]
    response_type: ClassVar[Any]

    model_config = {"populate_by_name": True, "frozen": True}

    def __init__(self, **data: Any) -> None:
        try:
            super().__init__(**data)
        except ValidationError as exc:
            raise RequestBuildError(f"invalid {type(self).__name__} parameters: {exc}") from exc

    def get_request(self) -> RequestDescriptor:
        return build_request(self)

    def poll_timeout(self) -> Optional[int]:
        """Server-side wait embedded in this call, if any."""
        return None


# ── Request builder ──────────────────────────────────────────────────────────


def _params(method: Method) -> Dict[str, Any]:
    """Return the non-``None`` parameters keyed by their wire names."""
    params: Dict[str, Any] = {}
    for name, field in type(method).model_fields.items():
        value = getattr(method, name)
        if value is None:
            continue
        params[field.alias or name] = value
    return params


def _to_text(value: Any) -> str:
    if isinstance(value, str):
        return value
    return json.dumps(to_jsonable_python(value, by_alias=True, exclude_none=True))


def _to_json(value: Any) -> Any:
    if isinstance(value, InputFile):
        return value.reference
    return to_jsonable_python(value, by_alias=True, exclude_none=True)


def build_request(method: Method) -> RequestDescriptor:
    """Turn *method* into a :class:`RequestDescriptor`."""
    params = _params(method)
    path = type(method).api_method
    poll_timeout = method.poll_timeout()

    if not params:
        return RequestDescriptor("GET", path, NoBody(), poll_timeout)

    if any(isinstance(v, InputFile) and v.is_upload for v in params.values()):
        parts: List[Union[TextPart, FilePart]] = []
        for name, value in params.items():
            if isinstance(value, InputFile) and value.is_upload:
                parts.append(FilePart(name, value.filename, value.content, value.content_type))
            elif isinstance(value, InputFile):
                parts.append(TextPart(name, value.reference))
            else:
                parts.append(TextPart(name, _to_text(value)))
        return RequestDescriptor("POST", path, MultipartBody(tuple(parts)), poll_timeout)

    payload = {name: _to_json(value) for name, value in params.items()}
    return RequestDescriptor("POST", path, JsonBody(payload), poll_timeout)


# ── Updates and webhooks ─────────────────────────────────────────────────────


class GetUpdates(Method):
    """Receive incoming updates using long polling.

    The result is left as raw objects so the poller can decode each update on
    its own and skip a malformed one without losing the batch.
    """

    api_method: ClassVar[str] = "getUpdates"
    response_type: ClassVar[Any] = List[Dict[str, Any]]

    offset: Optional[int] = None
    limit: Optional[int] = Field(None, ge=1, le=MAX_UPDATES_LIMIT)
    timeout: Optional[int] = Field(None, ge=0)
    allowed_updates: Optional[List[UpdateKind]] = None

    def poll_timeout(self) -> Optional[int]:
        return self.timeout


class SetWebhook(Method):
    """Specify a URL to receive incoming updates via an outgoing webhook."""

    api_method: ClassVar[str] = "setWebhook"
    response_type: ClassVar[Any] = bool

    url: str
    certificate: Optional[InputFile] = None
    ip_address: Optional[str] = None
    max_connections: Optional[int] = Field(None, ge=1, le=100)
    allowed_updates: Optional[List[UpdateKind]] = None
    drop_pending_updates: Optional[bool] = None


class DeleteWebhook(Method):
    api_method: ClassVar[str] = "deleteWebhook"
    response_type: ClassVar[Any] = bool

    drop_pending_updates: Optional[bool] = None


class GetWebhookInfo(Method):
    api_method: ClassVar[str] = "getWebhookInfo"
    response_type: ClassVar[Any] = WebhookInfo


# ── Bot, messages and chats ──────────────────────────────────────────────────


class GetMe(Method):
    """Returns basic information about the bot."""

    api_method: ClassVar[str] = "getMe"
    response_type: ClassVar[Any] = User


class _ChatMethod(Method):
    chat_id: ChatId

    @field_validator("chat_id")
    @classmethod
    def _chat_id_not_empty(cls, value: ChatId) -> ChatId:
        if isinstance(value, str) and not value.strip():
            raise ValueError("chat_id must not be empty")
        return value


class SendMessage(_ChatMethod):
    """Send a text message."""

    api_method: ClassVar[str] = "sendMessage"
    response_type: ClassVar[Any] = Message

    text: str = Field(..., min_length=1, max_length=4096)
    parse_mode: Optional[str] = None
    disable_web_page_preview: Optional[bool] = None
    disable_notification: Optional[bool] = None
    reply_to_message_id: Optional[int] = None
    reply_markup: Optional[ReplyMarkup] = None


class SendDocument(_ChatMethod):
    """Send a general file."""

    api_method: ClassVar[str] = "sendDocument"
    response_type: ClassVar[Any] = Message

    document: InputFile
    thumb: Optional[InputFile] = None
    caption: Optional[str] = Field(None, max_length=1024)
    parse_mode: Optional[str] = None
    disable_notification: Optional[bool] = None
    reply_to_message_id: Optional[int] = None
    reply_markup: Optional[ReplyMarkup] = None


class SendPhoto(_ChatMethod):
    """Send a photo."""

    api_method: ClassVar[str] = "sendPhoto"
    response_type: ClassVar[Any] = Message

    photo: InputFile
    caption: Optional[str] = Field(None, max_length=1024)
    parse_mode: Optional[str] = None
    disable_notification: Optional[bool] = None
    reply_to_message_id: Optional[int] = None
    reply_markup: Optional[ReplyMarkup] = None


class AnswerCallbackQuery(Method):
    """Acknowledge a callback query so the client stops showing a spinner."""

    api_method: ClassVar[str] = "answerCallbackQuery"
    response_type: ClassVar[Any] = bool

    callback_query_id: str = Field(..., min_length=1)
    text: Optional[str] = Field(None, max_length=200)
    show_alert: Optional[bool] = None
    url: Optional[str] = None
    cache_time: Optional[int] = None


class DeleteChatPhoto(_ChatMethod):
    """Delete a chat photo.

    Photos can't be changed for private chats; the bot must be an
    administrator with the appropriate rights.
    """

    api_method: ClassVar[str] = "deleteChatPhoto"
    response_type: ClassVar[Any] = bool


class GetFile(Method):
    """Get basic info about a file and prepare it for downloading."""

    api_method: ClassVar[str] = "getFile"
    response_type: ClassVar[Any] = File

    file_id: str = Field(..., min_length=1)
