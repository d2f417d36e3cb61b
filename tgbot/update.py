"""Incoming updates and the envelope decoder.

The server sends an update as ``update_id`` plus exactly one of nine optional
fields.  :class:`Update` folds that shape into a tag (:class:`UpdateKind`) and
a single typed payload, so callers dispatch on ``update.kind`` instead of
probing nine attributes.

When more than one kind field is present the first one in :class:`UpdateKind`
declaration order wins and the rest are ignored.
"""

from __future__ import annotations

import enum
import json
from typing import Any, Dict, Optional, Type, Union

from pydantic import BaseModel, ValidationError, model_validator

from tgbot.exceptions import DecodeError
from tgbot.types import (
    CallbackQuery,
    ChosenInlineResult,
    InlineQuery,
    Message,
    PreCheckoutQuery,
    ShippingQuery,
    User,
)


class UpdateKind(str, enum.Enum):
    """Kind of an update.

    Values are the wire field names and are accepted as ``allowed_updates``
    entries.  Declaration order is the decoding precedence.
    """

    MESSAGE = "message"
    EDITED_MESSAGE = "edited_message"
    CHANNEL_POST = "channel_post"
    EDITED_CHANNEL_POST = "edited_channel_post"
    INLINE_QUERY = "inline_query"
    CHOSEN_INLINE_RESULT = "chosen_inline_result"
    CALLBACK_QUERY = "callback_query"
    SHIPPING_QUERY = "shipping_query"
    PRE_CHECKOUT_QUERY = "pre_checkout_query"


_PAYLOAD_TYPES: Dict[UpdateKind, Type[BaseModel]] = {
    UpdateKind.MESSAGE: Message,
    UpdateKind.EDITED_MESSAGE: Message,
    UpdateKind.CHANNEL_POST: Message,
    UpdateKind.EDITED_CHANNEL_POST: Message,
    UpdateKind.INLINE_QUERY: InlineQuery,
    UpdateKind.CHOSEN_INLINE_RESULT: ChosenInlineResult,
    UpdateKind.CALLBACK_QUERY: CallbackQuery,
    UpdateKind.SHIPPING_QUERY: ShippingQuery,
    UpdateKind.PRE_CHECKOUT_QUERY: PreCheckoutQuery,
}

MESSAGE_KINDS = frozenset({
    UpdateKind.MESSAGE,
    UpdateKind.EDITED_MESSAGE,
    UpdateKind.CHANNEL_POST,
    UpdateKind.EDITED_CHANNEL_POST,
})

UpdatePayload = Union[Message, InlineQuery, ChosenInlineResult, CallbackQuery, ShippingQuery, PreCheckoutQuery]


def detect_kind(raw: Dict[str, Any]) -> Optional[UpdateKind]:
    """Return the first kind field present in *raw*, or ``None``."""
    for kind in UpdateKind:
        if raw.get(kind.value) is not None:
            return kind
    return None


class Update(BaseModel):
    """One incoming update.

    Attributes:
        id: The ``update_id``.  Expected to grow within a session but not
            guaranteed to (the server may renumber after a long idle period).
        kind: Which of the nine update kinds this is.
        data: The payload for *kind*.
    """

    id: int
    kind: UpdateKind
    data: UpdatePayload

    @model_validator(mode="before")
    @classmethod
    def _from_wire(cls, value: Any) -> Any:
        if not isinstance(value, dict):
            return value
        if "update_id" not in value:
            # tagged form: validate data against the type its kind names
            try:
                kind = UpdateKind(value.get("kind"))
            except ValueError:
                return value
            if isinstance(value.get("data"), dict):
                value = {**value, "data": _PAYLOAD_TYPES[kind].model_validate(value["data"])}
            return value
        kind = detect_kind(value)
        if kind is None:
            raise ValueError("no known update kind")
        payload = _PAYLOAD_TYPES[kind].model_validate(value[kind.value])
        return {"id": value["update_id"], "kind": kind, "data": payload}

    @model_validator(mode="after")
    def _kind_matches_data(self) -> Update:
        expected = _PAYLOAD_TYPES[self.kind]
        if not isinstance(self.data, expected):
            raise ValueError(f"{self.kind.value} update needs {expected.__name__} data, got {type(self.data).__name__}")
        return self

    @property
    def message(self) -> Optional[Message]:
        """The message for message-bearing kinds, ``None`` otherwise."""
        return self.data if self.kind in MESSAGE_KINDS else None  # type: ignore[return-value]


def decode_update(raw: Any) -> Update:
    """Decode a raw update object into an :class:`Update`.

    Raises:
        DecodeError: If ``update_id`` is missing, no kind field is present, or
            the payload does not match its kind.
    """
    if not isinstance(raw, dict):
        raise DecodeError(f"update must be a JSON object, got {type(raw).__name__}")
    if "update_id" not in raw:
        raise DecodeError("update_id is missing")
    if detect_kind(raw) is None:
        raise DecodeError("no known update kind")
    try:
        return Update.model_validate(raw)
    except ValidationError as exc:
        raise DecodeError(f"invalid update {raw.get('update_id')}: {exc}") from exc


def decode_update_json(body: Union[bytes, str]) -> Update:
    """Parse *body* as JSON and decode it with :func:`decode_update`."""
    try:
        raw = json.loads(body)
    except (ValueError, UnicodeDecodeError) as exc:
        raise DecodeError(f"update body is not valid JSON: {exc}") from exc
    return decode_update(raw)


# ── Accessors ────────────────────────────────────────────────────────────────


def chat_id_of(update: Update) -> Optional[int]:
    """Chat id of a message-bearing update; ``None`` for query kinds."""
    message = update.message
    return message.chat.id if message is not None else None


def chat_username_of(update: Update) -> Optional[str]:
    """Chat username of a message-bearing update, when the chat has one."""
    message = update.message
    return message.chat.username if message is not None else None


def user_of(update: Update) -> Optional[User]:
    """The user behind *update*.

    Message-bearing kinds map to the message sender (absent for channel posts);
    query kinds map to the query's ``from`` field.
    """
    message = update.message
    if message is not None:
        return message.from_field
    return update.data.from_field  # type: ignore[union-attr]
