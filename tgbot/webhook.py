"""Webhook receiver -- a single-route HTTP listener for pushed updates.

The route accepts ``POST`` only.  Each request body is decoded into an
:class:`~tgbot.update.Update` and handed to the caller's handler.  The
response never reflects the handler's outcome: once the body has been read
the request is acknowledged with the configured status, and decode or handler
failures are only logged.  Unknown paths get 404, other methods on the route
get 405.

Requests are served concurrently, so a handler touching shared state must
bring its own synchronization.
"""

from __future__ import annotations

import asyncio
import inspect
import logging
from typing import Optional

import uvicorn
from fastapi import FastAPI, Request, Response
from fastapi.concurrency import run_in_threadpool

from tgbot.exceptions import DecodeError
from tgbot.poller import UpdateHandler
from tgbot.update import Update, decode_update_json

logger = logging.getLogger(__name__)


async def _dispatch(handler: UpdateHandler, update: Update) -> None:
    """Run *handler* without blocking the event loop; log its failures."""
    try:
        if inspect.iscoroutinefunction(handler) or inspect.iscoroutinefunction(getattr(handler, "__call__", None)):
            await handler(update)
        else:
            result = await run_in_threadpool(handler, update)
            if inspect.isawaitable(result):
                await result
    except Exception:
        logger.exception("Webhook handler failed", extra={"update_id": update.id, "kind": update.kind.value})


def create_app(handler: UpdateHandler, path: str = "/", success_status: int = 200) -> FastAPI:
    """Build the FastAPI application serving one webhook route at *path*."""
    if not path.startswith("/"):
        raise ValueError("webhook path must start with '/'")

    app = FastAPI(docs_url=None, redoc_url=None, openapi_url=None)

    @app.post(path, include_in_schema=False)
    async def receive_update(request: Request) -> Response:
        body = await request.body()
        try:
            update = decode_update_json(body)
        except DecodeError as exc:
            logger.warning("Ignoring malformed webhook body", extra={"error": str(exc), "body_size": len(body)})
            return Response(status_code=success_status)

        logger.debug("Webhook update received", extra={"update_id": update.id, "kind": update.kind.value})
        await _dispatch(handler, update)
        return Response(status_code=success_status)

    return app


class WebhookServer:
    """Serve :func:`create_app` with uvicorn.

    Usage::

        server = WebhookServer(handle, host="0.0.0.0", port=8443, path="/hook")
        await server.serve()      # until server.stop() or a signal
    """

    def __init__(
        self,
        handler: UpdateHandler,
        *,
        host: str = "127.0.0.1",
        port: int = 8080,
        path: str = "/",
        success_status: int = 200,
    ) -> None:
        self.host = host
        self.port = port
        self.path = path
        self.app = create_app(handler, path=path, success_status=success_status)
        self._server: Optional[uvicorn.Server] = None

    def _build_server(self) -> uvicorn.Server:
        # log_config=None keeps uvicorn away from the process logging setup.
        config = uvicorn.Config(self.app, host=self.host, port=self.port, log_config=None, access_log=False)
        return uvicorn.Server(config)

    async def serve(self) -> None:
        """Listen until :meth:`stop` is called or the process is signalled."""
        self._server = self._build_server()
        logger.info("Webhook listening", extra={"host": self.host, "port": self.port, "path": self.path})
        await self._server.serve()
        logger.info("Webhook stopped", extra={"host": self.host, "port": self.port})

    def stop(self) -> None:
        """Stop accepting connections; in-flight requests are allowed to finish."""
        if self._server is not None:
            self._server.should_exit = True


def run_server(handler: UpdateHandler, host: str = "127.0.0.1", port: int = 8080, path: str = "/") -> None:
    """Blocking convenience: serve a webhook until interrupted."""
    asyncio.run(WebhookServer(handler, host=host, port=port, path=path).serve())
