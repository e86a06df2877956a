"""
Janus client error types.

Decode errors are fatal to one frame only; routing errors are reported by the
reader loop and dropped; the rest surface to the caller.
"""

from typing import Any, Optional


class JanusError(Exception):
    def __init__(self, code: Any, message: str, details: Optional[dict[str, Any]] = None):
        super().__init__(message)
        self.code = code
        self.details = details


class DecodeError(JanusError):
    pass


class MalformedEnvelope(DecodeError):
    def __init__(self, message: str):
        super().__init__("malformed_envelope", message)


class UnknownMessageType(DecodeError):
    def __init__(self, discriminator: Any):
        super().__init__("unknown_message_type", f"unknown message type received: {discriminator}")
        self.discriminator = discriminator


class MalformedPayload(DecodeError):
    def __init__(self, discriminator: Any, message: str):
        super().__init__("malformed_payload", f"cannot decode {discriminator}: {message}")
        self.discriminator = discriminator


class RoutingError(JanusError):
    def __init__(self, code: str, message: str, correlation_id: Optional[str] = None):
        super().__init__(code, message)
        self.correlation_id = correlation_id


class UnexpectedLateResponse(RoutingError):
    def __init__(self, correlation_id: str):
        super().__init__("unexpected_late_response", f"response for {correlation_id} already delivered", correlation_id)


class OrphanMessage(RoutingError):
    def __init__(self, message: str, correlation_id: Optional[str] = None):
        super().__init__("orphan_message", message, correlation_id)


class Timeout(JanusError):
    def __init__(self, message: str, correlation_id: Optional[str] = None):
        super().__init__("timeout", message)
        self.correlation_id = correlation_id


class RemoteError(JanusError):
    """An ``error`` response from the gateway. ``code`` is the Janus error code."""

    def __init__(self, code: int, reason: str):
        super().__init__(code, reason)
        self.reason = reason

    def __repr__(self) -> str:
        return f"RemoteError(code={self.code!r}, reason={self.reason!r})"


class PluginError(JanusError):
    """An error payload returned by a plugin inside a successful envelope."""

    def __init__(self, code: int, reason: str, plugin: Optional[str] = None):
        super().__init__(code, reason, {"plugin": plugin} if plugin else None)
        self.reason = reason
        self.plugin = plugin


class ConnectionClosed(JanusError):
    def __init__(self, message: str = "connection closed"):
        super().__init__("connection_closed", message)


class TransportError(JanusError):
    def __init__(self, status: int, message: str):
        super().__init__("transport_error", f"[{status}] {message}")
        self.status = status
