"""Echo bot: replies to every private text message with the same text.

Runs in long-polling mode by default; set ``UPDATE_MODE=webhook`` to listen
on ``WEBHOOK_HOST:WEBHOOK_PORT`` at ``WEBHOOK_PATH`` instead.  The webhook URL
itself must be registered with ``setWebhook`` separately.
"""

import asyncio
import signal

from config import (
    POLL_LIMIT,
    POLL_TIMEOUT,
    TGBOT_PROXY,
    TGBOT_TOKEN,
    UPDATE_MODE,
    WEBHOOK_HOST,
    WEBHOOK_PATH,
    WEBHOOK_PORT,
    logger,
)
from tgbot import Api, GetMe, SendMessage, TgbotError, Update, UpdateKind, WebhookServer, chat_id_of


def build_api() -> Api:
    """Create the Api, routed through ``TGBOT_PROXY`` when it is set."""
    if not TGBOT_TOKEN:
        raise EnvironmentError("TGBOT_TOKEN environment variable is not set or is empty.")
    if TGBOT_PROXY:
        return Api.with_proxy(TGBOT_TOKEN, TGBOT_PROXY)
    return Api.create(TGBOT_TOKEN)


def make_handler(api: Api):
    """Return the update handler echoing private text messages."""

    async def handle(update: Update) -> None:
        if update.kind is not UpdateKind.MESSAGE:
            logger.debug("Ignoring update", extra={"update_id": update.id, "kind": update.kind.value})
            return
        message = update.data
        if message.chat.type != "private" or not message.text:
            return
        logger.info("Echoing message", extra={"update_id": update.id, "chat_id": message.chat.id})
        api.spawn(SendMessage(chat_id=chat_id_of(update), text=message.text))

    return handle


async def run() -> None:
    api = build_api()
    try:
        me = await api.aexecute(GetMe())
        logger.info("Authorized", extra={"bot_username": me.username, "bot_id": me.id})
    except TgbotError as exc:
        logger.error("getMe failed", extra={"error": str(exc)})

    handler = make_handler(api)
    loop = asyncio.get_running_loop()

    if UPDATE_MODE == "webhook":
        server = WebhookServer(handler, host=WEBHOOK_HOST, port=WEBHOOK_PORT, path=WEBHOOK_PATH)
        await server.serve()
    else:
        poller = api.poller(timeout=POLL_TIMEOUT, limit=POLL_LIMIT)
        for sig in (signal.SIGINT, signal.SIGTERM):
            try:
                loop.add_signal_handler(sig, poller.stop)
            except NotImplementedError:  # Windows
                pass
        await poller.run(handler)

    await api.drain()


if __name__ == "__main__":
    asyncio.run(run())
