"""
Janus API messages received from the gateway.

Every frame carries ``{"janus": <type>, "transaction": <id>, "session_id": <session>,
"sender": <handle>}``; the type selects one of the models below.
"""

from __future__ import annotations

from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field

from janus_gateway.errors import RemoteError


class JanusModel(BaseModel):
    """Base for decoded messages. Decoded values are never mutated."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)


class PluginCarrier:
    """Mixin for messages wrapping a plugin payload that can be re-typed."""

    def plugin_payload(self) -> Any:
        raise NotImplementedError

    def with_plugin_payload(self, payload: Any) -> Any:
        raise NotImplementedError


class ErrorData(JanusModel):
    code: int
    reason: str = ""


class ErrorMsg(JanusModel):
    error: ErrorData
    session_id: Optional[int] = None

    def exception(self) -> RemoteError:
        return RemoteError(self.error.code, self.error.reason)


class PluginData(JanusModel):
    plugin: str = ""
    data: Any = Field(default_factory=dict)


class SuccessData(JanusModel):
    id: Optional[int] = None


class SuccessMsg(JanusModel, PluginCarrier):
    data: Optional[SuccessData] = None
    plugindata: Optional[PluginData] = None
    session_id: Optional[int] = None
    sender: Optional[int] = None

    def plugin_payload(self) -> Any:
        return self.plugindata.data if self.plugindata else None

    def with_plugin_payload(self, payload: Any) -> SuccessMsg:
        return self.model_copy(update={"plugindata": self.plugindata.model_copy(update={"data": payload})})


class DetachedMsg(JanusModel):
    session_id: Optional[int] = None
    sender: Optional[int] = None


class PluginInfo(JanusModel):
    name: str = ""
    author: str = ""
    description: str = ""
    version: int = 0
    version_string: str = ""


class InfoMsg(JanusModel):
    """server_info response to an ``info`` request."""
    name: str = ""
    version: int = 0
    version_string: str = ""
    author: str = ""
    data_channels: bool = False
    ipv6: bool = False
    local_ip: Optional[str] = Field(default=None, alias="local-ip")
    ice_tcp: bool = Field(default=False, alias="ice-tcp")
    transports: dict[str, PluginInfo] = Field(default_factory=dict)
    plugins: dict[str, PluginInfo] = Field(default_factory=dict)


class AckMsg(JanusModel):
    session_id: Optional[int] = None
    hint: Optional[str] = None


class EventMsg(JanusModel, PluginCarrier):
    plugindata: Optional[PluginData] = None
    jsep: Optional[dict[str, Any]] = None
    session_id: Optional[int] = None
    sender: Optional[int] = None

    def plugin_payload(self) -> Any:
        return self.plugindata.data if self.plugindata else None

    def with_plugin_payload(self, payload: Any) -> EventMsg:
        return self.model_copy(update={"plugindata": self.plugindata.model_copy(update={"data": payload})})


class WebRTCUpMsg(JanusModel):
    session_id: Optional[int] = None
    sender: Optional[int] = None


class MediaMsg(JanusModel):
    type: str = ""
    receiving: bool = False
    mid: Optional[str] = None
    session_id: Optional[int] = None
    sender: Optional[int] = None


class HangupMsg(JanusModel):
    reason: str = ""
    session_id: Optional[int] = None
    sender: Optional[int] = None


class SlowLinkMsg(JanusModel):
    uplink: bool = False
    nacks: Optional[int] = None
    lost: Optional[int] = None
    media: Optional[str] = None
    session_id: Optional[int] = None
    sender: Optional[int] = None


class TimeoutMsg(JanusModel):
    """Session expired on the gateway side. Session-level, no sender."""
    session_id: Optional[int] = None
