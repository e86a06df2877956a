"""
Janus API client: Gateway, Session and Handle.

    gateway = await Gateway.connect("ws://localhost:8188/")
    session = await gateway.create()
    handle = await session.attach("janus.plugin.videoroom")
    rooms = await handle.request(VideoroomRequestFactory().list_request())
    async for event in handle.events():
        ...
"""

from __future__ import annotations

import asyncio
import contextlib
import logging
from typing import Any, Optional, Union

from janus_gateway.connection import DEFAULT_REQUEST_TIMEOUT, Connection
from janus_gateway.decoder import Decoder
from janus_gateway.errors import ConnectionClosed, JanusError, MalformedPayload
from janus_gateway.models.messages import AckMsg, ErrorMsg, InfoMsg, PluginCarrier, SuccessMsg
from janus_gateway.plugins.common import PluginErrorResponse, PluginRequest
from janus_gateway.registry import GATEWAY_REGISTRY, Registry
from janus_gateway.requests import (
    API_SECRET_FIELD,
    AttachRequest,
    BaseRequest,
    CreateRequest,
    HandleRequest,
    PluginMessageRequest,
    SessionRequest,
    TrickleRequest,
)
from janus_gateway.router import DEFAULT_EVENT_QUEUE_SIZE, DropPolicy, EventStream
from janus_gateway.transport.websocket import WebSocketTransport

logger = logging.getLogger(__name__)

DEFAULT_KEEPALIVE_INTERVAL = 30.0


class Gateway:
    """Async Janus API client over one frame transport."""

    def __init__(
        self,
        connection: Connection,
        token: Optional[str] = None,
        api_secret: Optional[str] = None,
        keepalive_interval: float = DEFAULT_KEEPALIVE_INTERVAL,
        event_queue_size: int = DEFAULT_EVENT_QUEUE_SIZE,
        drop_policy: DropPolicy = DropPolicy.DROP_OLDEST,
    ):
        self.connection = connection
        self.token = token
        self.api_secret = api_secret
        self.keepalive_interval = keepalive_interval
        self.event_queue_size = event_queue_size
        self.drop_policy = drop_policy
        self.sessions: dict[int, Session] = {}

    @classmethod
    async def connect(
        cls,
        url: str,
        *,
        token: Optional[str] = None,
        api_secret: Optional[str] = None,
        request_timeout: float = DEFAULT_REQUEST_TIMEOUT,
        registry: Registry = GATEWAY_REGISTRY,
        **kwargs: Any,
    ) -> Gateway:
        transport = await WebSocketTransport.connect(url)
        connection = Connection(transport, Decoder(registry), request_timeout=request_timeout)
        connection.start()
        return cls(connection, token=token, api_secret=api_secret, **kwargs)

    @property
    def connected(self) -> bool:
        return self.connection.connected

    async def close(self) -> None:
        for session in list(self.sessions.values()):
            await session.stop_keepalive()
        self.sessions.clear()
        await self.connection.close()

    async def info(self) -> InfoMsg:
        return await self.send(BaseRequest("info", **self._auth()))

    async def create(self, session_id: Optional[int] = None, keepalive: bool = True) -> Session:
        """Create a session. Keepalives are sent in the background unless disabled."""
        msg = await self.send(CreateRequest(session_id, **self._auth()))
        sid = _success_id(msg, "create")
        session = Session(self, sid)
        self.sessions[sid] = session
        if keepalive and self.keepalive_interval > 0:
            session.start_keepalive(self.keepalive_interval)
        return session

    async def send(self, request: BaseRequest, timeout: Optional[float] = None, expect_ack: bool = False) -> Any:
        """Send a request. Error responses raise RemoteError."""
        msg = await self.connection.request(request, timeout=timeout, expect_ack=expect_ack)
        if isinstance(msg, ErrorMsg):
            raise msg.exception()
        return msg

    def subscribe(self, session_id: int, handle_id: Optional[int] = None,
                  maxsize: Optional[int] = None, policy: Optional[DropPolicy] = None) -> EventStream:
        return self.connection.subscribe(
            session_id,
            handle_id,
            maxsize=maxsize or self.event_queue_size,
            policy=policy or self.drop_policy,
        )

    def _auth(self) -> dict[str, Any]:
        return {"secret": self.api_secret, "secret_field": API_SECRET_FIELD, "token": self.token}

    async def __aenter__(self) -> Gateway:
        return self

    async def __aexit__(self, *args: Any) -> None:
        await self.close()


class Session:
    def __init__(self, gateway: Gateway, session_id: int):
        self.gateway = gateway
        self.id = session_id
        self.handles: dict[int, Handle] = {}
        self._keepalive_task: Optional[asyncio.Task[None]] = None

    async def attach(self, plugin: str, opaque_id: Optional[str] = None) -> Handle:
        msg = await self.gateway.send(AttachRequest(self.id, plugin, opaque_id, **self.gateway._auth()))
        handle = Handle(self, _success_id(msg, "attach"), plugin)
        self.handles[handle.id] = handle
        return handle

    async def keepalive(self) -> AckMsg:
        return await self.gateway.send(SessionRequest("keepalive", self.id, **self.gateway._auth()))

    def start_keepalive(self, interval: float) -> None:
        if self._keepalive_task is None:
            self._keepalive_task = asyncio.create_task(self._keepalive_loop(interval))

    async def stop_keepalive(self) -> None:
        task, self._keepalive_task = self._keepalive_task, None
        if task is not None:
            task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await task

    async def _keepalive_loop(self, interval: float) -> None:
        while True:
            await asyncio.sleep(interval)
            try:
                await self.keepalive()
            except ConnectionClosed:
                return
            except JanusError as e:
                logger.warning("Keepalive for session %s failed: %s", self.id, e)

    async def destroy(self) -> None:
        await self.stop_keepalive()
        try:
            await self.gateway.send(SessionRequest("destroy", self.id, **self.gateway._auth()))
        finally:
            self.handles.clear()
            self.gateway.sessions.pop(self.id, None)
            self.gateway.connection.router.close_streams(self.id)

    def events(self, maxsize: Optional[int] = None, policy: Optional[DropPolicy] = None) -> EventStream:
        """Session-level events (e.g. ``timeout``)."""
        return self.gateway.subscribe(self.id, None, maxsize=maxsize, policy=policy)

    def __repr__(self) -> str:
        return f"Session(id={self.id})"


class Handle:
    def __init__(self, session: Session, handle_id: int, plugin: str):
        self.session = session
        self.id = handle_id
        self.plugin = plugin

    @property
    def gateway(self) -> Gateway:
        return self.session.gateway

    async def message(
        self,
        body: Union[PluginRequest, dict[str, Any]],
        jsep: Optional[dict[str, Any]] = None,
        timeout: Optional[float] = None,
    ) -> Any:
        """Send a plugin message and return the final response.

        Asynchronous plugin requests are acknowledged first; the call resolves with the
        ``event`` that follows. Synchronous ones resolve with the ``success`` response.
        """
        request = PluginMessageRequest(self.session.id, self.id, self.plugin, body, jsep, **self.gateway._auth())
        msg = await self.gateway.send(request, timeout=timeout, expect_ack=True)
        if isinstance(msg, PluginCarrier):
            payload = msg.plugin_payload()
            if isinstance(payload, PluginErrorResponse):
                raise payload.exception(self.plugin)
        return msg

    async def request(self, body: Union[PluginRequest, dict[str, Any]], timeout: Optional[float] = None) -> Any:
        """Send a plugin request and return just the plugin payload."""
        msg = await self.message(body, timeout=timeout)
        if not isinstance(msg, PluginCarrier):
            raise MalformedPayload(type(msg).__name__, "response carries no plugin data")
        return msg.plugin_payload()

    async def trickle(self, candidate: Optional[dict[str, Any]] = None) -> Any:
        """Trickle one ICE candidate; with no candidate, signal the end of gathering."""
        return await self.gateway.send(TrickleRequest(self.session.id, self.id, candidate=candidate, **self.gateway._auth()))

    async def trickle_many(self, candidates: list[dict[str, Any]]) -> Any:
        return await self.gateway.send(TrickleRequest(self.session.id, self.id, candidates=candidates, **self.gateway._auth()))

    async def hangup(self) -> Any:
        return await self.gateway.send(HandleRequest("hangup", self.session.id, self.id, **self.gateway._auth()))

    async def detach(self) -> None:
        try:
            await self.gateway.send(HandleRequest("detach", self.session.id, self.id, **self.gateway._auth()))
        finally:
            self.session.handles.pop(self.id, None)
            self.gateway.connection.router.close_streams(self.session.id, self.id)

    def events(self, maxsize: Optional[int] = None, policy: Optional[DropPolicy] = None) -> EventStream:
        """Unsolicited events for this handle (plugin events, webrtcup, media, hangup, ...)."""
        return self.gateway.subscribe(self.session.id, self.id, maxsize=maxsize, policy=policy)

    def __repr__(self) -> str:
        return f"Handle(id={self.id}, plugin={self.plugin!r}, session={self.session.id})"


def _success_id(msg: Any, action: str) -> int:
    if not isinstance(msg, SuccessMsg) or msg.data is None or msg.data.id is None:
        raise MalformedPayload(action, "success response carries no id")
    return msg.data.id
