"""tgbot -- a Telegram Bot API client.

Typed methods are turned into request descriptors, executed over a pluggable
transport (direct or proxied) and their response envelopes decoded into pydantic
models.  Updates arrive either by long polling (:class:`UpdatePoller`) or by
webhook (:class:`WebhookServer`).

Usage::

    from tgbot import Api, SendMessage, UpdateKind, chat_id_of

    api = Api.create(token)

    async def handle(update):
        if update.kind is UpdateKind.MESSAGE and update.data.text:
            api.spawn(SendMessage(chat_id=chat_id_of(update), text=update.data.text))

    await api.poller(timeout=30).run(handle)
"""

from tgbot.api import Api, ResponseEnvelope
from tgbot.exceptions import ApiError, DecodeError, RequestBuildError, TgbotError, TransportError
from tgbot.executor import DirectExecutor, Executor, ProxyExecutor, default_executor, proxy_executor
from tgbot.methods import (
    AnswerCallbackQuery,
    DeleteChatPhoto,
    DeleteWebhook,
    GetFile,
    GetMe,
    GetUpdates,
    GetWebhookInfo,
    Method,
    SendDocument,
    SendMessage,
    SendPhoto,
    SetWebhook,
    build_request,
)
from tgbot.poller import Backoff, UpdatePoller
from tgbot.request import InputFile, RequestDescriptor
from tgbot.update import (
    Update,
    UpdateKind,
    chat_id_of,
    chat_username_of,
    decode_update,
    decode_update_json,
    user_of,
)
from tgbot.webhook import WebhookServer, run_server

__all__ = [
    # Facade
    "Api",
    "ResponseEnvelope",
    # Errors
    "TgbotError",
    "RequestBuildError",
    "TransportError",
    "DecodeError",
    "ApiError",
    # Transport
    "Executor",
    "DirectExecutor",
    "ProxyExecutor",
    "default_executor",
    "proxy_executor",
    # Requests and methods
    "InputFile",
    "RequestDescriptor",
    "Method",
    "build_request",
    "GetMe",
    "GetUpdates",
    "SetWebhook",
    "DeleteWebhook",
    "GetWebhookInfo",
    "SendMessage",
    "SendDocument",
    "SendPhoto",
    "AnswerCallbackQuery",
    "DeleteChatPhoto",
    "GetFile",
    # Updates
    "Update",
    "UpdateKind",
    "decode_update",
    "decode_update_json",
    "chat_id_of",
    "chat_username_of",
    "user_of",
    "UpdatePoller",
    "Backoff",
    "WebhookServer",
    "run_server",
]
