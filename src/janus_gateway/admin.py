"""
Admin/Monitor API client.

    admin = await AdminAPI.connect("http://localhost:7088/admin", secret="janusoverlord")
    sessions = await admin.list_sessions()
    rooms = await admin.message_plugin(VideoroomRequestFactory("supersecret").list_request())
"""

from __future__ import annotations

import logging
from typing import Any, Optional
from urllib.parse import urlparse

from janus_gateway.connection import Connection
from janus_gateway.decoder import Decoder
from janus_gateway.models.admin import (
    ErrorAMResponse,
    HandleInfoResponse,
    ListHandlesResponse,
    ListSessionsResponse,
    ListTokensResponse,
    StoredToken,
    SuccessAMResponse,
)
from janus_gateway.plugins.common import PluginErrorResponse, PluginRequest
from janus_gateway.registry import ADMIN_REGISTRY
from janus_gateway.requests import BaseRequest, HandleRequest, MessagePluginRequest, SessionRequest, TokenRequest
from janus_gateway.transport.base import AdminTransport
from janus_gateway.transport.http import DEFAULT_HTTP_TIMEOUT, HttpAdminTransport
from janus_gateway.transport.websocket import ADMIN_PROTOCOL, WebSocketTransport

logger = logging.getLogger(__name__)


class ConnectionAdminTransport:
    """Admin requests over a frame connection (WebSocket ``janus-admin-protocol``)."""

    def __init__(self, connection: Connection):
        self.connection = connection

    async def request(self, request: Any) -> Any:
        return await self.connection.request(request)

    async def close(self) -> None:
        await self.connection.close()


class AdminAPI:
    def __init__(self, transport: AdminTransport, secret: Optional[str] = None):
        self.transport = transport
        self.secret = secret

    @classmethod
    async def connect(cls, url: str, secret: Optional[str] = None,
                      timeout: float = DEFAULT_HTTP_TIMEOUT) -> AdminAPI:
        """Pick the transport from the URL scheme: http(s) or ws(s)."""
        scheme = urlparse(url).scheme
        if scheme in ("http", "https"):
            return cls(HttpAdminTransport(url, timeout=timeout), secret)
        if scheme in ("ws", "wss"):
            ws = await WebSocketTransport.connect(url, subprotocol=ADMIN_PROTOCOL, open_timeout=timeout)
            connection = Connection(ws, Decoder(ADMIN_REGISTRY), request_timeout=timeout)
            connection.start()
            return cls(ConnectionAdminTransport(connection), secret)
        raise ValueError(f"unsupported transport for {url}")

    async def close(self) -> None:
        await self.transport.close()

    async def send(self, request: BaseRequest) -> Any:
        """Send an admin request. Error responses raise RemoteError."""
        logger.debug("Admin request %r", request)
        msg = await self.transport.request(request)
        if isinstance(msg, ErrorAMResponse):
            raise msg.exception()
        return msg

    # -- Tokens --

    async def add_token(self, token: str, plugins: Optional[list[str]] = None) -> SuccessAMResponse:
        return await self.send(TokenRequest("add_token", token, plugins, secret=self.secret))

    async def allow_token(self, token: str, plugins: list[str]) -> SuccessAMResponse:
        return await self.send(TokenRequest("allow_token", token, plugins, secret=self.secret))

    async def disallow_token(self, token: str, plugins: list[str]) -> SuccessAMResponse:
        return await self.send(TokenRequest("disallow_token", token, plugins, secret=self.secret))

    async def remove_token(self, token: str) -> SuccessAMResponse:
        return await self.send(TokenRequest("remove_token", token, secret=self.secret))

    async def list_tokens(self) -> list[StoredToken]:
        msg: ListTokensResponse = await self.send(BaseRequest("list_tokens", secret=self.secret))
        return msg.tokens

    # -- Sessions and handles --

    async def list_sessions(self) -> list[int]:
        msg: ListSessionsResponse = await self.send(BaseRequest("list_sessions", secret=self.secret))
        return msg.sessions

    async def list_handles(self, session_id: int) -> list[int]:
        msg: ListHandlesResponse = await self.send(SessionRequest("list_handles", session_id, secret=self.secret))
        return msg.handles

    async def handle_info(self, session_id: int, handle_id: int) -> HandleInfoResponse:
        return await self.send(HandleRequest("handle_info", session_id, handle_id, secret=self.secret))

    # -- Plugins --

    async def message_plugin(self, request: PluginRequest) -> Any:
        """Send a plugin request and return the plugin's typed response.

        Plugin error payloads raise PluginError.
        """
        msg = await self.send(MessagePluginRequest(request, secret=self.secret))
        payload = msg.plugin_payload()
        if isinstance(payload, PluginErrorResponse):
            raise payload.exception(request.plugin_name)
        return payload

    async def __aenter__(self) -> AdminAPI:
        return self

    async def __aexit__(self, *args: Any) -> None:
        await self.close()
