"""
janus-gateway: async client for the Janus WebRTC gateway.

Janus API over WebSocket, Admin/Monitor API over HTTP or WebSocket,
typed plugin responses and event-handler payloads.
"""

from janus_gateway.client import Gateway, Session, Handle
from janus_gateway.admin import AdminAPI
from janus_gateway.connection import Connection
from janus_gateway.decoder import Decoder, decode_events
from janus_gateway.registry import ADMIN_REGISTRY, EVENT_REGISTRY, GATEWAY_REGISTRY, Registry, RegistryBuilder
from janus_gateway.router import CorrelationRouter, DropPolicy, EventStream
from janus_gateway.errors import (
    JanusError,
    DecodeError,
    RemoteError,
    PluginError,
    Timeout,
    ConnectionClosed,
    TransportError,
)

__version__ = "0.1.0"
__all__ = [
    "Gateway",
    "Session",
    "Handle",
    "AdminAPI",
    "Connection",
    "Decoder",
    "decode_events",
    "Registry",
    "RegistryBuilder",
    "GATEWAY_REGISTRY",
    "ADMIN_REGISTRY",
    "EVENT_REGISTRY",
    "CorrelationRouter",
    "DropPolicy",
    "EventStream",
    "JanusError",
    "DecodeError",
    "RemoteError",
    "PluginError",
    "Timeout",
    "ConnectionClosed",
    "TransportError",
]
