"""Pydantic models for the Bot API objects used by the client.

Only the objects reachable from updates and from the bundled methods are
modelled here.  Unknown fields sent by the server are ignored so newer API
versions keep decoding.
"""

from __future__ import annotations

from typing import List, Optional, Union

from pydantic import BaseModel, Field


class TelegramObject(BaseModel):
    """Common configuration for every API object."""

    model_config = {"populate_by_name": True, "extra": "ignore"}


# ── Users and chats ──────────────────────────────────────────────────────────


class User(TelegramObject):
    """A Telegram user or bot."""

    id: int
    is_bot: bool
    first_name: str
    last_name: Optional[str] = None
    username: Optional[str] = None
    language_code: Optional[str] = None


class Chat(TelegramObject):
    """A private chat, group, supergroup or channel."""

    id: int
    type: str
    title: Optional[str] = None
    username: Optional[str] = None
    first_name: Optional[str] = None
    last_name: Optional[str] = None


# ── Message contents ─────────────────────────────────────────────────────────


class MessageEntity(TelegramObject):
    """A special entity in a text message (hashtag, URL, command, ...)."""

    type: str
    offset: int
    length: int
    url: Optional[str] = None
    user: Optional[User] = None
    language: Optional[str] = None


class PhotoSize(TelegramObject):
    """One size of a photo or a file/sticker thumbnail."""

    file_id: str
    file_unique_id: Optional[str] = None
    width: int
    height: int
    file_size: Optional[int] = None


class Audio(TelegramObject):
    """An audio file to be treated as music."""

    file_id: str
    file_unique_id: Optional[str] = None
    duration: int
    performer: Optional[str] = None
    title: Optional[str] = None
    mime_type: Optional[str] = None
    file_size: Optional[int] = None
    thumb: Optional[PhotoSize] = None


class Document(TelegramObject):
    """A general file."""

    file_id: str
    file_unique_id: Optional[str] = None
    thumb: Optional[PhotoSize] = None
    file_name: Optional[str] = None
    mime_type: Optional[str] = None
    file_size: Optional[int] = None


class Video(TelegramObject):
    """A video file."""

    file_id: str
    file_unique_id: Optional[str] = None
    width: int
    height: int
    duration: int
    thumb: Optional[PhotoSize] = None
    mime_type: Optional[str] = None
    file_size: Optional[int] = None


class Voice(TelegramObject):
    """A voice note."""

    file_id: str
    file_unique_id: Optional[str] = None
    duration: int
    mime_type: Optional[str] = None
    file_size: Optional[int] = None


class Contact(TelegramObject):
    """A phone contact."""

    phone_number: str
    first_name: str
    last_name: Optional[str] = None
    user_id: Optional[int] = None


class Location(TelegramObject):
    """A point on the map."""

    longitude: float
    latitude: float


class Message(TelegramObject):
    """A message in any kind of chat.

    ``from`` is a Python keyword, so the sender lives in ``from_field``.
    """

    message_id: int
    date: int
    chat: Chat
    from_field: Optional[User] = Field(None, alias="from")
    sender_chat: Optional[Chat] = None
    forward_from: Optional[User] = None
    forward_from_chat: Optional[Chat] = None
    forward_date: Optional[int] = None
    reply_to_message: Optional[Message] = None
    edit_date: Optional[int] = None
    media_group_id: Optional[str] = None
    author_signature: Optional[str] = None
    text: Optional[str] = None
    entities: Optional[List[MessageEntity]] = None
    caption: Optional[str] = None
    caption_entities: Optional[List[MessageEntity]] = None
    audio: Optional[Audio] = None
    document: Optional[Document] = None
    photo: Optional[List[PhotoSize]] = None
    video: Optional[Video] = None
    voice: Optional[Voice] = None
    contact: Optional[Contact] = None
    location: Optional[Location] = None
    new_chat_members: Optional[List[User]] = None
    left_chat_member: Optional[User] = None
    migrate_to_chat_id: Optional[int] = None
    migrate_from_chat_id: Optional[int] = None


# ── Inline mode, callbacks and payments ──────────────────────────────────────


class InlineQuery(TelegramObject):
    """An incoming inline query."""

    id: str
    from_field: User = Field(..., alias="from")
    query: str
    offset: str
    location: Optional[Location] = None


class ChosenInlineResult(TelegramObject):
    """An inline query result chosen by a user and sent to their chat partner."""

    result_id: str
    from_field: User = Field(..., alias="from")
    query: str
    location: Optional[Location] = None
    inline_message_id: Optional[str] = None


class CallbackQuery(TelegramObject):
    """An incoming callback query from an inline keyboard button."""

    id: str
    from_field: User = Field(..., alias="from")
    chat_instance: str
    message: Optional[Message] = None
    inline_message_id: Optional[str] = None
    data: Optional[str] = None
    game_short_name: Optional[str] = None


class ShippingAddress(TelegramObject):
    country_code: str
    state: str
    city: str
    street_line1: str
    street_line2: str
    post_code: str


class OrderInfo(TelegramObject):
    name: Optional[str] = None
    phone_number: Optional[str] = None
    email: Optional[str] = None
    shipping_address: Optional[ShippingAddress] = None


class ShippingQuery(TelegramObject):
    """An incoming shipping query (invoices with flexible price only)."""

    id: str
    from_field: User = Field(..., alias="from")
    invoice_payload: str
    shipping_address: ShippingAddress


class PreCheckoutQuery(TelegramObject):
    """An incoming pre-checkout query with full checkout information."""

    id: str
    from_field: User = Field(..., alias="from")
    currency: str
    total_amount: int
    invoice_payload: str
    shipping_option_id: Optional[str] = None
    order_info: Optional[OrderInfo] = None


# ── Keyboards ────────────────────────────────────────────────────────────────


class InlineKeyboardButton(TelegramObject):
    text: str
    url: Optional[str] = None
    callback_data: Optional[str] = None
    switch_inline_query: Optional[str] = None


class InlineKeyboardMarkup(TelegramObject):
    inline_keyboard: List[List[InlineKeyboardButton]]


class ForceReply(TelegramObject):
    force_reply: bool = True
    selective: Optional[bool] = None


ReplyMarkup = Union[InlineKeyboardMarkup, ForceReply]


# ── Service objects ──────────────────────────────────────────────────────────


class ResponseParameters(TelegramObject):
    """Hints returned with a failed request on how it could be retried."""

    migrate_to_chat_id: Optional[int] = None
    retry_after: Optional[int] = None


class WebhookInfo(TelegramObject):
    """Current status of the webhook."""

    url: str
    has_custom_certificate: bool
    pending_update_count: int
    ip_address: Optional[str] = None
    last_error_date: Optional[int] = None
    last_error_message: Optional[str] = None
    max_connections: Optional[int] = None
    allowed_updates: Optional[List[str]] = None


class File(TelegramObject):
    """A file ready to be downloaded."""

    file_id: str
    file_unique_id: Optional[str] = None
    file_size: Optional[int] = None
    file_path: Optional[str] = None
