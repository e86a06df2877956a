"""
Transport contracts.

A frame transport moves whole JSON frames both ways (Janus API over WebSocket). An admin
transport answers one request at a time (Admin API over HTTP, or over a frame transport
through a Connection).
"""

from __future__ import annotations

from typing import Any, Protocol, runtime_checkable


@runtime_checkable
class Transport(Protocol):
    async def send(self, data: bytes) -> None:
        """Send one frame."""
        ...

    async def receive_next(self) -> bytes:
        """Next inbound frame. Raises ConnectionClosed once the peer is gone."""
        ...

    async def close(self) -> None:
        ...


@runtime_checkable
class AdminTransport(Protocol):
    async def request(self, request: Any) -> Any:
        """Send ``request`` and return its decoded response."""
        ...

    async def close(self) -> None:
        ...
