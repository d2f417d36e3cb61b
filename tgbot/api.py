"""Api -- binds typed methods to a transport executor.

:meth:`Api.execute` runs the whole pipeline synchronously: build the request,
send it, parse the response envelope and decode ``result`` into the method's
declared response type.  :meth:`Api.aexecute` offloads the same pipeline to a
worker thread via :func:`asyncio.to_thread` so the event loop is never
blocked, and :meth:`Api.spawn` fires a call as a detached task whose outcome
is only logged.

No retries happen here.
"""

from __future__ import annotations

import asyncio
import functools
import json
import logging
from typing import TYPE_CHECKING, Any, Optional, Set

from pydantic import BaseModel, TypeAdapter, ValidationError

from tgbot.exceptions import ApiError, DecodeError, TgbotError, TransportError
from tgbot.executor import Executor, default_executor, proxy_executor
from tgbot.methods import Method
from tgbot.types import ResponseParameters

if TYPE_CHECKING:
    from tgbot.poller import UpdatePoller

logger = logging.getLogger(__name__)


class ResponseEnvelope(BaseModel):
    """Wrapper around every Bot API response."""

    ok: bool
    result: Any = None
    error_code: Optional[int] = None
    description: Optional[str] = None
    parameters: Optional[ResponseParameters] = None

    @property
    def has_result(self) -> bool:
        return "result" in self.model_fields_set


def parse_envelope(raw: bytes) -> ResponseEnvelope:
    """Parse *raw* into a :class:`ResponseEnvelope`.

    Raises:
        TransportError: If *raw* is not JSON or not a well-formed envelope.
    """
    try:
        envelope = ResponseEnvelope.model_validate(json.loads(raw))
    except (ValueError, ValidationError) as exc:
        raise TransportError(f"malformed response envelope: {exc}", body=raw) from exc
    if envelope.ok != envelope.has_result:
        raise TransportError(
            f"malformed response envelope: ok={envelope.ok} with result {'present' if envelope.has_result else 'absent'}",
            body=raw,
        )
    return envelope


@functools.lru_cache(maxsize=None)
def _adapter(response_type: Any) -> TypeAdapter:
    return TypeAdapter(response_type)


class Api:
    """Client facade for the Bot API.

    Usage::

        api = Api.create(token)
        me = api.execute(GetMe())

        async def handle(update):
            api.spawn(SendMessage(chat_id=chat_id_of(update), text="hi"))
    """

    def __init__(self, executor: Executor) -> None:
        self._executor = executor
        self._tasks: Set[asyncio.Task] = set()

    @classmethod
    def create(cls, token: str, **kwargs: Any) -> Api:
        """Api talking directly to the server."""
        return cls(default_executor(token, **kwargs))

    @classmethod
    def with_proxy(cls, token: str, proxy: str, **kwargs: Any) -> Api:
        """Api routing every request through *proxy*."""
        return cls(proxy_executor(token, proxy, **kwargs))

    @property
    def executor(self) -> Executor:
        return self._executor

    # ------------------------------------------------------------------
    #  Calls
    # ------------------------------------------------------------------

    def execute(self, method: Method) -> Any:
        """Execute *method* and return its decoded result.

        Raises:
            TransportError: The request failed or the envelope was malformed.
            ApiError: The server answered with ``ok=false``.
            DecodeError: ``result`` does not match the declared response type.
        """
        request = method.get_request()
        try:
            raw = self._executor.execute(request)
        except TransportError as exc:
            envelope = self._failure_envelope(exc)
            if envelope is None:
                raise
            raise ApiError(envelope.error_code, envelope.description, envelope.parameters) from exc

        envelope = parse_envelope(raw)
        if not envelope.ok:
            raise ApiError(envelope.error_code, envelope.description, envelope.parameters)
        try:
            return _adapter(type(method).response_type).validate_python(envelope.result)
        except ValidationError as exc:
            raise DecodeError(f"unexpected {request.path} result: {exc}") from exc

    @staticmethod
    def _failure_envelope(exc: TransportError) -> Optional[ResponseEnvelope]:
        """The server's own failure envelope carried by a non-2xx response."""
        if exc.status_code is None or not exc.body:
            return None
        try:
            envelope = parse_envelope(exc.body)
        except TransportError:
            return None
        if envelope.ok or envelope.error_code is None:
            return None
        return envelope

    async def aexecute(self, method: Method) -> Any:
        """Async variant of :meth:`execute`, run in a worker thread."""
        return await asyncio.to_thread(self.execute, method)

    def spawn(self, method: Method) -> asyncio.Task:
        """Run *method* as a detached task on the running event loop.

        The caller does not wait for it; success and failure are logged.
        """
        task = asyncio.get_running_loop().create_task(self._run_detached(method))
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    async def _run_detached(self, method: Method) -> None:
        endpoint = type(method).api_method
        try:
            await self.aexecute(method)
        except TgbotError as exc:
            logger.error("Detached call failed", extra={"api_endpoint": endpoint, "error": str(exc)})
        except Exception:
            logger.exception("Detached call crashed", extra={"api_endpoint": endpoint})
        else:
            logger.debug("Detached call done", extra={"api_endpoint": endpoint})

    async def drain(self) -> None:
        """Wait for every detached call started with :meth:`spawn`."""
        if self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)

    # ------------------------------------------------------------------
    #  Update sources
    # ------------------------------------------------------------------

    def poller(self, **options: Any) -> UpdatePoller:
        """Build a long-poll update source bound to this Api."""
        from tgbot.poller import UpdatePoller  # deferred to avoid circular imports

        return UpdatePoller(self, **options)
