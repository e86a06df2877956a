"""
WebSocket frame transport.

Janus speaks the Janus API on the ``janus-protocol`` subprotocol and the Admin API on
``janus-admin-protocol``. Frames are JSON text messages.
"""

from __future__ import annotations

import logging
from typing import Any

import websockets
from websockets.exceptions import ConnectionClosed as WebSocketClosed

from janus_gateway.errors import ConnectionClosed

logger = logging.getLogger(__name__)

JANUS_PROTOCOL = "janus-protocol"
ADMIN_PROTOCOL = "janus-admin-protocol"


class WebSocketTransport:
    def __init__(self, ws: Any):
        self._ws = ws

    @classmethod
    async def connect(cls, url: str, subprotocol: str = JANUS_PROTOCOL, open_timeout: float = 10.0) -> WebSocketTransport:
        try:
            ws = await websockets.connect(
                url,
                subprotocols=[subprotocol],
                open_timeout=open_timeout,
                max_size=None,
            )
        except (OSError, websockets.InvalidHandshake) as e:
            raise ConnectionClosed(f"cannot connect to {url}: {e}") from e
        logger.info("WebSocket connected to %s (%s)", url, subprotocol)
        return cls(ws)

    async def send(self, data: bytes) -> None:
        try:
            await self._ws.send(data.decode("utf-8"))
        except WebSocketClosed as e:
            raise ConnectionClosed(f"websocket closed: {e}") from e

    async def receive_next(self) -> bytes:
        try:
            frame = await self._ws.recv()
        except WebSocketClosed as e:
            raise ConnectionClosed(f"websocket closed: {e}") from e
        if isinstance(frame, str):
            return frame.encode("utf-8")
        return frame

    async def close(self) -> None:
        await self._ws.close()
