"""
Correlation router.

Responses carrying a transaction go to the caller waiting on it, exactly once.
Messages without one (or with a transaction nobody waits for) are unsolicited events,
fanned out to the subscribers of their (session, handle) pair. A single lock covers
every table; decoding always happens before the router is touched.
"""

from __future__ import annotations

import asyncio
import logging
import threading
from collections import OrderedDict
from enum import Enum
from typing import Any, Optional

from janus_gateway.decoder import EnvelopeMeta
from janus_gateway.errors import ConnectionClosed, JanusError, OrphanMessage, UnexpectedLateResponse
from janus_gateway.models.messages import AckMsg

logger = logging.getLogger(__name__)

DEFAULT_EVENT_QUEUE_SIZE = 100
DEFAULT_HISTORY_SIZE = 1024

StreamKey = tuple[int, Optional[int]]


class DropPolicy(str, Enum):
    """What a full event stream does with the next event."""

    DROP_OLDEST = "drop_oldest"
    DROP_NEW = "drop_new"


class Waiter:
    """Single-slot result for one in-flight request."""

    def __init__(self, correlation_id: str, context: Any = None, expect_ack: bool = False):
        self.correlation_id = correlation_id
        self.context = context
        self.expect_ack = expect_ack
        self.acked = asyncio.Event()
        self._future: asyncio.Future[Any] = asyncio.get_running_loop().create_future()

    def done(self) -> bool:
        return self._future.done()

    async def wait(self) -> Any:
        return await self._future

    def _complete(self, message: Any) -> None:
        if not self._future.done():
            self._future.set_result(message)

    def _fail(self, exc: BaseException) -> None:
        if not self._future.done():
            self._future.set_exception(exc)

    def _cancel(self) -> None:
        self._future.cancel()

    def __repr__(self) -> str:
        return f"Waiter(correlation_id={self.correlation_id!r}, done={self.done()})"


class EventStream:
    """Bounded stream of unsolicited messages for one (session, handle) pair.

    Never blocks the producer: when full, either the oldest queued event or the
    incoming one is discarded, per ``policy``. Closing keeps what is queued; readers
    drain it and then see the end. Iterate with ``async for``.
    """

    def __init__(self, key: StreamKey, maxsize: int = DEFAULT_EVENT_QUEUE_SIZE,
                 policy: DropPolicy = DropPolicy.DROP_OLDEST):
        if maxsize < 1:
            raise ValueError("maxsize must be at least 1")
        self.key = key
        self.policy = DropPolicy(policy)
        self.dropped = 0
        self._queue: asyncio.Queue[Any] = asyncio.Queue(maxsize=maxsize)
        self._closed = False
        self._router: Optional[CorrelationRouter] = None

    @property
    def closed(self) -> bool:
        return self._closed

    def _offer(self, message: Any) -> None:
        if self._closed:
            return
        if self._queue.full():
            self.dropped += 1
            if self.policy is DropPolicy.DROP_NEW:
                return
            self._queue.get_nowait()
        self._queue.put_nowait(message)

    def _close(self) -> None:
        if self._closed:
            return
        self._closed = True
        # a full queue has no blocked reader; get() reports the end once it drains
        if not self._queue.full():
            self._queue.put_nowait(None)

    async def get(self, timeout: Optional[float] = None) -> Any:
        """Next event, or ``None`` once the stream is closed and drained."""
        if self._closed and self._queue.empty():
            return None
        if timeout is None:
            return await self._queue.get()
        return await asyncio.wait_for(self._queue.get(), timeout=timeout)

    def close(self) -> None:
        """Stop receiving events."""
        if self._router is not None:
            self._router.unsubscribe(self)
        self._close()

    def __aiter__(self) -> EventStream:
        return self

    async def __anext__(self) -> Any:
        message = await self.get()
        if message is None:
            raise StopAsyncIteration
        return message

    def __repr__(self) -> str:
        return f"EventStream(key={self.key!r}, policy={self.policy.value!r}, dropped={self.dropped})"


class CorrelationRouter:
    def __init__(self, history_size: int = DEFAULT_HISTORY_SIZE):
        self._lock = threading.Lock()
        self._waiters: dict[str, Waiter] = {}
        self._streams: dict[StreamKey, list[EventStream]] = {}
        # correlation id -> True if cancelled, False if delivered
        self._finished: OrderedDict[str, bool] = OrderedDict()
        self._history_size = history_size
        self._closed: Optional[JanusError] = None

    @property
    def pending(self) -> int:
        with self._lock:
            return len(self._waiters)

    def register(self, correlation_id: str, context: Any = None, expect_ack: bool = False) -> Waiter:
        """Reserve the slot for a response. Must happen before the request is sent."""
        with self._lock:
            if self._closed is not None:
                raise ConnectionClosed(str(self._closed))
            if correlation_id in self._waiters:
                raise ValueError(f"correlation id already in flight: {correlation_id}")
            waiter = Waiter(correlation_id, context, expect_ack)
            self._waiters[correlation_id] = waiter
            self._finished.pop(correlation_id, None)
            return waiter

    def context(self, correlation_id: str) -> Any:
        """Request context of a live registration, or None."""
        if not correlation_id:
            return None
        with self._lock:
            waiter = self._waiters.get(correlation_id)
            return waiter.context if waiter is not None else None

    def cancel(self, correlation_id: str) -> None:
        with self._lock:
            waiter = self._waiters.pop(correlation_id, None)
            if waiter is None:
                return
            self._remember(correlation_id, cancelled=True)
        waiter._cancel()

    def fail(self, correlation_id: str, exc: BaseException) -> None:
        """Complete a waiter with an error, e.g. when its response could not be decoded."""
        with self._lock:
            waiter = self._waiters.pop(correlation_id, None)
            if waiter is None:
                return
            self._remember(correlation_id, cancelled=False)
        waiter._fail(exc)

    def deliver(self, message: Any, meta: EnvelopeMeta) -> None:
        """Hand a decoded message to its waiter or to the event subscribers.

        Raises UnexpectedLateResponse for a second response to a delivered request and
        OrphanMessage when nobody receives the message.
        """
        cid = meta.correlation_id
        with self._lock:
            if cid:
                waiter = self._waiters.get(cid)
                if waiter is not None:
                    if waiter.expect_ack and isinstance(message, AckMsg):
                        waiter.acked.set()
                        return
                    del self._waiters[cid]
                    self._remember(cid, cancelled=False)
                    waiter._complete(message)
                    return
                if cid in self._finished:
                    if self._finished[cid]:
                        logger.debug("Dropping response for cancelled request %s", cid)
                        return
                    raise UnexpectedLateResponse(cid)
            if meta.session_id is None:
                raise OrphanMessage(f"{type(message).__name__} has no correlation id and no session", cid or None)
            streams = list(self._streams.get((meta.session_id, meta.handle_id), ()))
            if not streams:
                raise OrphanMessage(
                    f"no subscriber for {type(message).__name__} on session={meta.session_id} handle={meta.handle_id}",
                    cid or None,
                )
            for stream in streams:
                stream._offer(message)

    def subscribe(self, session_id: int, handle_id: Optional[int] = None,
                  maxsize: int = DEFAULT_EVENT_QUEUE_SIZE,
                  policy: DropPolicy = DropPolicy.DROP_OLDEST) -> EventStream:
        stream = EventStream((session_id, handle_id), maxsize=maxsize, policy=policy)
        with self._lock:
            if self._closed is not None:
                stream._close()
                return stream
            stream._router = self
            self._streams.setdefault(stream.key, []).append(stream)
        return stream

    def unsubscribe(self, stream: EventStream) -> None:
        with self._lock:
            streams = self._streams.get(stream.key)
            if not streams or stream not in streams:
                return
            streams.remove(stream)
            if not streams:
                del self._streams[stream.key]

    def close_streams(self, session_id: int, handle_id: Optional[int] = None) -> None:
        """Close the streams of a session (all of its handles when ``handle_id`` is None)."""
        with self._lock:
            keys = [k for k in self._streams if k[0] == session_id and (handle_id is None or k[1] == handle_id)]
            closing = [s for k in keys for s in self._streams.pop(k)]
        for stream in closing:
            stream._close()

    def close(self, error: Optional[JanusError] = None) -> None:
        """Fail every outstanding waiter and close every stream. Further registrations fail."""
        error = error or ConnectionClosed()
        with self._lock:
            self._closed = error
            waiters = list(self._waiters.values())
            self._waiters.clear()
            streams = [s for group in self._streams.values() for s in group]
            self._streams.clear()
        for waiter in waiters:
            waiter._fail(error)
        for stream in streams:
            stream._close()

    def _remember(self, correlation_id: str, cancelled: bool) -> None:
        self._finished[correlation_id] = cancelled
        self._finished.move_to_end(correlation_id)
        while len(self._finished) > self._history_size:
            self._finished.popitem(last=False)
