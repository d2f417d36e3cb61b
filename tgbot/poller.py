"""Long-polling update source.

:class:`UpdatePoller` repeatedly calls ``getUpdates`` through an
:class:`~tgbot.api.Api` and yields decoded updates in ascending id order.

Cycle::

    Idle -> Requesting -> Processing -> Idle        (success)
    Requesting -> BackingOff -> Requesting          (transport failure)
    Idle -> Stopped                                 (stop() observed)

Only one ``getUpdates`` call is ever in flight for a poller, and the cursor is
only written by the polling coroutine, after the whole batch has been handed
out.  The cursor lives in memory for the lifetime of the poller.
"""

from __future__ import annotations

import asyncio
import dataclasses
import inspect
import logging
from typing import Any, AsyncIterator, Awaitable, Callable, Dict, Iterable, List, Optional, Union

from tgbot.exceptions import ApiError, DecodeError, TransportError
from tgbot.methods import MAX_UPDATES_LIMIT, GetUpdates
from tgbot.update import Update, UpdateKind, decode_update

logger = logging.getLogger(__name__)

UpdateHandler = Callable[[Update], Union[None, Awaitable[None]]]


class Backoff:
    """Exponential delay between failed fetches.

    The first delay after a success is *floor*; each further failure
    multiplies it by *factor* up to *ceiling*.
    """

    def __init__(self, floor: float = 1.0, ceiling: float = 60.0, factor: float = 2.0) -> None:
        if floor <= 0 or ceiling < floor or factor < 1:
            raise ValueError("backoff needs 0 < floor <= ceiling and factor >= 1")
        self.floor = floor
        self.ceiling = ceiling
        self.factor = factor
        self._current: Optional[float] = None

    def next_delay(self) -> float:
        if self._current is None:
            self._current = self.floor
        else:
            self._current = min(self._current * self.factor, self.ceiling)
        return self._current

    def reset(self) -> None:
        self._current = None


@dataclasses.dataclass(frozen=True, slots=True)
class Batch:
    """One ``getUpdates`` result.

    ``max_id`` is the highest ``update_id`` in the raw result, ``None`` when it
    was empty.
    """

    updates: List[Update]
    max_id: Optional[int]

    def __bool__(self) -> bool:
        return self.max_id is not None


async def call_handler(handler: UpdateHandler, update: Update) -> bool:
    """Invoke *handler* without blocking the event loop.

    Coroutine functions are awaited; plain callables run in a worker thread
    so blocking I/O inside them does not stall detached calls.  Failures are
    logged and reported as ``False``; they never propagate.
    """
    try:
        if inspect.iscoroutinefunction(handler) or inspect.iscoroutinefunction(getattr(handler, "__call__", None)):
            await handler(update)
        else:
            result = await asyncio.to_thread(handler, update)
            if inspect.isawaitable(result):
                await result
    except Exception:
        logger.exception("Update handler failed", extra={"update_id": update.id, "kind": update.kind.value})
        return False
    return True


class UpdatePoller:
    """Pull updates with ``getUpdates`` long polling.

    Args:
        api: The :class:`~tgbot.api.Api` used for fetching.
        offset: Initial cursor; ``0`` lets the server pick the oldest pending
            update.
        limit: Maximum updates per fetch (1-100).
        timeout: Server-side long-poll wait in seconds.
        allowed_updates: Update kinds to receive; ``None`` keeps the server's
            current setting.
        backoff: Delay policy used after failed fetches.
    """

    def __init__(
        self,
        api: Any,
        *,
        offset: int = 0,
        limit: int = MAX_UPDATES_LIMIT,
        timeout: int = 10,
        allowed_updates: Optional[Iterable[Union[UpdateKind, str]]] = None,
        backoff: Optional[Backoff] = None,
    ) -> None:
        if not 1 <= limit <= MAX_UPDATES_LIMIT:
            raise ValueError(f"limit must be between 1 and {MAX_UPDATES_LIMIT}")
        if timeout < 0:
            raise ValueError("timeout must not be negative")
        self._api = api
        self._next_offset = offset
        self._limit = limit
        self._timeout = timeout
        self._allowed_updates = [UpdateKind(k) for k in allowed_updates] if allowed_updates is not None else None
        self._backoff = backoff or Backoff()
        self._stop = asyncio.Event()
        self._loop: Optional[asyncio.AbstractEventLoop] = None

    @property
    def next_offset(self) -> int:
        return self._next_offset

    @property
    def stopped(self) -> bool:
        return self._stop.is_set()

    def stop(self) -> None:
        """Ask the poller to finish after the current cycle.

        A fetch already in flight is allowed to complete; a pending backoff
        wait is cut short.  Safe to call from a handler running in a worker
        thread.
        """
        loop = self._loop
        if loop is not None and loop.is_running() and not _on_loop(loop):
            loop.call_soon_threadsafe(self._stop.set)
        else:
            self._stop.set()

    # ------------------------------------------------------------------
    #  One cycle
    # ------------------------------------------------------------------

    def _request(self) -> GetUpdates:
        return GetUpdates(
            offset=self._next_offset,
            limit=self._limit,
            timeout=self._timeout,
            allowed_updates=self._allowed_updates,
        )

    async def fetch(self) -> Batch:
        """Fetch and decode one batch without moving the cursor.

        Malformed items are logged and left out of ``batch.updates`` but still
        count towards ``batch.max_id``.  Call :meth:`commit` once the batch
        has been processed.

        Raises:
            TransportError: The fetch failed.
            DecodeError: The result was not a list of objects.
            ApiError: The server rejected the call.
        """
        raw_updates = await self._api.aexecute(self._request())
        updates: List[Update] = []
        for raw in raw_updates:
            try:
                updates.append(decode_update(raw))
            except DecodeError as exc:
                logger.warning("Skipping malformed update", extra={"update_id": raw.get("update_id"), "error": str(exc)})
        updates.sort(key=lambda u: u.id)
        return Batch(updates=updates, max_id=_max_update_id(raw_updates))

    def commit(self, batch: Batch) -> None:
        """Move the cursor past *batch*; an empty batch leaves it unchanged."""
        if batch.max_id is not None:
            self._next_offset = batch.max_id + 1

    async def _wait(self, delay: float) -> None:
        try:
            await asyncio.wait_for(self._stop.wait(), timeout=delay)
        except asyncio.TimeoutError:
            pass

    # ------------------------------------------------------------------
    #  Continuous sequence
    # ------------------------------------------------------------------

    async def updates(self) -> AsyncIterator[Update]:
        """Yield updates until :meth:`stop` is called.

        Transport failures, and API errors the server reports with HTTP 429 or
        5xx, are retried after a backoff delay that honours ``retry_after``.
        Any other :class:`~tgbot.exceptions.ApiError` (``ok=false`` on a 2xx,
        409 Conflict, ...) ends the sequence by propagating.
        """
        self._loop = asyncio.get_running_loop()
        logger.info("Polling for updates", extra={"offset": self._next_offset, "timeout": self._timeout})
        while not self._stop.is_set():
            try:
                batch = await self.fetch()
            except (TransportError, DecodeError, ApiError) as exc:
                if isinstance(exc, ApiError) and not is_retryable(exc):
                    raise
                delay = self._backoff.next_delay()
                if isinstance(exc, ApiError) and exc.retry_after:
                    delay = max(delay, exc.retry_after)
                logger.warning(
                    "getUpdates failed, retrying",
                    extra={"api_endpoint": "getUpdates", "error": str(exc), "delay": delay},
                )
                await self._wait(delay)
                continue

            self._backoff.reset()
            if batch:
                logger.debug("Received updates", extra={"count": len(batch.updates), "max_id": batch.max_id})
            for update in batch.updates:
                yield update
            self.commit(batch)
        logger.info("Polling stopped", extra={"offset": self._next_offset})

    def __aiter__(self) -> AsyncIterator[Update]:
        return self.updates()

    async def run(self, handler: UpdateHandler) -> None:
        """Hand every update to *handler* until :meth:`stop` is called.

        *handler* may be a plain function or a coroutine function.  Its
        exceptions are logged and do not affect polling.  Outbound calls it
        makes should go through :meth:`Api.spawn` so they don't hold up the
        next fetch.
        """
        async for update in self.updates():
            await call_handler(handler, update)


def is_retryable(exc: ApiError) -> bool:
    """Whether *exc* came with HTTP 429 or 5xx and is worth retrying."""
    cause = exc.__cause__
    if not isinstance(cause, TransportError) or cause.status_code is None:
        return False
    return cause.status_code == 429 or cause.status_code >= 500


def _on_loop(loop: asyncio.AbstractEventLoop) -> bool:
    try:
        return asyncio.get_running_loop() is loop
    except RuntimeError:
        return False


def _max_update_id(raw_updates: List[Dict[str, Any]]) -> Optional[int]:
    """Highest ``update_id`` in a raw batch, counting items that fail to decode."""
    ids = [raw.get("update_id") for raw in raw_updates]
    ids = [i for i in ids if isinstance(i, int) and not isinstance(i, bool)]
    return max(ids) if ids else None
