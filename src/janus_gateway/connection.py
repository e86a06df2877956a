"""
Request/response pipeline over a frame transport.

One reader task pulls frames, decodes each one (using the originating request, looked up
by transaction, as decode context) and hands the result to the router. Callers register
their transaction before the request bytes leave, then wait with a timeout.
"""

from __future__ import annotations

import asyncio
import contextlib
import json
import logging
from typing import Any, Optional

from janus_gateway.decoder import Decoder
from janus_gateway.errors import (
    ConnectionClosed,
    DecodeError,
    JanusError,
    OrphanMessage,
    Timeout,
    UnexpectedLateResponse,
)
from janus_gateway.router import DEFAULT_EVENT_QUEUE_SIZE, CorrelationRouter, DropPolicy, EventStream
from janus_gateway.transport.base import Transport

logger = logging.getLogger(__name__)

DEFAULT_REQUEST_TIMEOUT = 10.0


class Connection:
    def __init__(
        self,
        transport: Transport,
        decoder: Optional[Decoder] = None,
        request_timeout: float = DEFAULT_REQUEST_TIMEOUT,
        router: Optional[CorrelationRouter] = None,
    ):
        self.transport = transport
        self.decoder = decoder or Decoder()
        self.router = router or CorrelationRouter()
        self.request_timeout = request_timeout
        self._reader_task: Optional[asyncio.Task[None]] = None
        self._closed = False

    @property
    def connected(self) -> bool:
        return self._reader_task is not None and not self._reader_task.done() and not self._closed

    def start(self) -> None:
        if self._reader_task is not None:
            return
        self._reader_task = asyncio.create_task(self._read_loop())

    async def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        if self._reader_task is not None:
            self._reader_task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await self._reader_task
        try:
            await self.transport.close()
        finally:
            self.router.close(ConnectionClosed("connection closed by client"))

    async def request(self, request: Any, timeout: Optional[float] = None, expect_ack: bool = False) -> Any:
        """Send ``request`` and wait for its response.

        With ``expect_ack`` an ``ack`` only confirms receipt and the call keeps waiting for
        the final response (asynchronous plugin messages).
        """
        if self._closed:
            raise ConnectionClosed()
        timeout = self.request_timeout if timeout is None else timeout
        cid = request.transaction
        waiter = self.router.register(cid, context=request, expect_ack=expect_ack)
        try:
            await self.transport.send(json.dumps(request.payload()).encode("utf-8"))
        except BaseException:
            self.router.cancel(cid)
            raise
        try:
            return await asyncio.wait_for(waiter.wait(), timeout=timeout)
        except asyncio.TimeoutError:
            self.router.cancel(cid)
            raise Timeout(f"no response to {request.action_name} ({cid}) after {timeout}s", cid) from None
        except asyncio.CancelledError:
            self.router.cancel(cid)
            raise

    def subscribe(self, session_id: int, handle_id: Optional[int] = None,
                  maxsize: int = DEFAULT_EVENT_QUEUE_SIZE,
                  policy: DropPolicy = DropPolicy.DROP_OLDEST) -> EventStream:
        return self.router.subscribe(session_id, handle_id, maxsize=maxsize, policy=policy)

    async def _read_loop(self) -> None:
        error: JanusError = ConnectionClosed()
        try:
            while True:
                frame = await self.transport.receive_next()
                try:
                    self._handle_frame(frame)
                except Exception:
                    logger.exception("Failed to handle inbound frame")
        except ConnectionClosed as e:
            logger.info("Transport closed: %s", e)
            error = e
        except Exception as e:
            logger.error("Transport failure: %s", e)
            error = ConnectionClosed(f"transport failure: {e}")
        finally:
            self.router.close(error)

    def _handle_frame(self, frame: bytes) -> None:
        try:
            data, envelope = self.decoder.read_envelope(frame)
        except DecodeError as e:
            logger.warning("Dropping frame: %s", e)
            return
        cid = envelope.transaction or ""
        request = self.router.context(cid)
        try:
            message = self.decoder.decode_for(data, envelope, request)
        except DecodeError as e:
            logger.warning("Dropping %s frame (transaction=%s): %s", envelope.type, cid or "-", e)
            if request is not None:
                self.router.fail(cid, e)
            return
        try:
            self.router.deliver(message, envelope.meta())
        except UnexpectedLateResponse as e:
            logger.warning("%s", e)
        except OrphanMessage as e:
            logger.debug("Orphan message dropped: %s", e)

    async def __aenter__(self) -> Connection:
        self.start()
        return self

    async def __aexit__(self, *args: Any) -> None:
        await self.close()
