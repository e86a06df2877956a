"""Shared fixtures: an in-memory frame transport."""

import asyncio
import json

import pytest

from janus_gateway.errors import ConnectionClosed


class FakeTransport:
    """Frames the client sends land in ``sent``; frames pushed with ``push`` are received."""

    def __init__(self):
        self.sent: asyncio.Queue = asyncio.Queue()
        self.inbound: asyncio.Queue = asyncio.Queue()
        self.closed = False

    async def send(self, data: bytes) -> None:
        await self.sent.put(json.loads(data))

    async def receive_next(self) -> bytes:
        frame = await self.inbound.get()
        if frame is None:
            raise ConnectionClosed("peer went away")
        return frame

    async def close(self) -> None:
        self.closed = True

    def push(self, **fields) -> None:
        self.inbound.put_nowait(json.dumps(fields).encode())

    def push_raw(self, raw: bytes) -> None:
        self.inbound.put_nowait(raw)

    def hang_up(self) -> None:
        self.inbound.put_nowait(None)

    async def next_request(self) -> dict:
        return await asyncio.wait_for(self.sent.get(), timeout=1)


@pytest.fixture
def transport():
    return FakeTransport()
