"""
Event-handler payloads.

Janus event handlers push JSON objects (or arrays of them) whose integer
``type`` is a bit flag selecting the event family.
"""

from typing import Any, Optional

from pydantic import Field

from janus_gateway.models.messages import JanusModel


class EventType:
    SESSION = 1
    HANDLE = 2
    EXTERNAL = 4
    JSEP = 8
    WEBRTC = 16
    MEDIA = 32
    PLUGIN = 64
    TRANSPORT = 128
    CORE = 256


class BaseEvent(JanusModel):
    emitter: Optional[str] = None
    type: int
    subtype: Optional[int] = None
    timestamp: Optional[int] = None
    session_id: Optional[int] = None
    handle_id: Optional[int] = None
    opaque_id: Optional[str] = None
    event: Any = Field(default_factory=dict)


class SessionEventBody(JanusModel):
    name: str = ""
    transport: Optional[dict[str, Any]] = None


class SessionEvent(BaseEvent):
    event: SessionEventBody


class HandleEventBody(JanusModel):
    name: str = ""
    plugin: str = ""


class HandleEvent(BaseEvent):
    event: HandleEventBody


class ExternalEventBody(JanusModel):
    schema_: str = Field(default="", alias="schema")
    data: dict[str, Any] = Field(default_factory=dict)


class ExternalEvent(BaseEvent):
    event: ExternalEventBody


class JSEPInfo(JanusModel):
    type: str = ""
    sdp: str = ""


class JSEPEventBody(JanusModel):
    owner: str = ""
    jsep: JSEPInfo = Field(default_factory=JSEPInfo)


class JSEPEvent(BaseEvent):
    event: JSEPEventBody


class WebRTCEvent(BaseEvent):
    pass


class MediaEvent(BaseEvent):
    pass


class PluginEventBody(JanusModel):
    plugin: str = ""
    data: dict[str, Any] = Field(default_factory=dict)


class PluginEvent(BaseEvent):
    event: PluginEventBody


class TransportEventBody(JanusModel):
    transport: str = ""
    id: str = ""
    data: dict[str, Any] = Field(default_factory=dict)


class TransportEvent(BaseEvent):
    event: TransportEventBody


class CoreEvent(BaseEvent):
    pass
