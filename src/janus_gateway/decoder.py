"""
Envelope decoding and nested plugin payload resolution.

Decoding happens in two passes. The envelope pass reads only the routing fields
(``janus``, ``transaction``, ``session_id``, ``sender``). The body pass picks the concrete
model from the registry and validates the whole frame into it. A ``success`` frame has
no shape of its own: its type is the action of the request that produced it.
"""

from __future__ import annotations

import json
import logging
from collections import Counter
from dataclasses import dataclass
from typing import Any, Mapping, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from janus_gateway.errors import MalformedEnvelope, MalformedPayload, UnknownMessageType
from janus_gateway.models.events import BaseEvent
from janus_gateway.models.messages import PluginCarrier
from janus_gateway.registry import ERROR, EVENT_REGISTRY, GATEWAY_REGISTRY, SUCCESS, FlatKey, Registry

logger = logging.getLogger(__name__)

Frame = Union[str, bytes, bytearray]


@dataclass(frozen=True)
class EnvelopeMeta:
    """Routing metadata handed to the router alongside the decoded message."""
    correlation_id: str = ""
    session_id: Optional[int] = None
    handle_id: Optional[int] = None


class Envelope(BaseModel):
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    type: str = Field(alias="janus")
    transaction: Optional[str] = None
    session_id: Optional[int] = None
    sender: Optional[int] = None

    def meta(self) -> EnvelopeMeta:
        return EnvelopeMeta(
            correlation_id=self.transaction or "",
            session_id=self.session_id,
            handle_id=self.sender,
        )


def _load_json(raw: Frame) -> Any:
    # ValueError covers JSONDecodeError and UnicodeDecodeError; deep nesting raises RecursionError
    try:
        return json.loads(raw)
    except (ValueError, RecursionError) as e:
        raise MalformedEnvelope(f"invalid JSON: {e}") from e


def _load_object(raw: Frame) -> dict[str, Any]:
    data = _load_json(raw)
    if not isinstance(data, dict):
        raise MalformedEnvelope(f"expected a JSON object, got {type(data).__name__}")
    return data


class Decoder:
    def __init__(self, registry: Registry = GATEWAY_REGISTRY):
        self.registry = registry
        # (plugin, action) pairs seen without a dedicated payload type
        self.unresolved: Counter[tuple[str, str]] = Counter()

    def read_envelope(self, raw: Frame) -> tuple[dict[str, Any], Envelope]:
        data = _load_object(raw)
        try:
            return data, Envelope.model_validate(data)
        except ValidationError as e:
            raise MalformedEnvelope(str(e)) from e

    def decode(self, raw: Frame, action: str = "") -> tuple[Any, EnvelopeMeta]:
        """Decode a frame. ``action`` is the requesting action, empty for unsolicited frames."""
        data, envelope = self.read_envelope(raw)
        return self.decode_body(data, envelope.type, action), envelope.meta()

    def decode_body(self, data: Mapping[str, Any], discriminator: str, action: str = "") -> Any:
        effective = discriminator
        if discriminator == SUCCESS:
            factory = self.registry.resolve_success(action)
            if factory is not None:
                effective = action
            else:
                factory = self.registry.resolve_flat(SUCCESS)
        else:
            factory = self.registry.resolve_flat(discriminator)
        if factory is None:
            raise UnknownMessageType(effective)
        try:
            return factory.model_validate(data)
        except ValidationError as e:
            raise MalformedPayload(effective, str(e)) from e

    def decode_response(self, raw: Frame, request: Any) -> tuple[Any, EnvelopeMeta]:
        data, envelope = self.read_envelope(raw)
        return self.decode_for(data, envelope, request), envelope.meta()

    def decode_for(self, data: Mapping[str, Any], envelope: Envelope, request: Any = None) -> Any:
        """Body pass for an envelope already read, in the context of its request (if any)."""
        action = request.action_name if request is not None else ""
        message = self.decode_body(data, envelope.type, action)
        target = request.plugin_target if request is not None else None
        if target is not None:
            message = self.resolve_plugin_payload(message, *target)
        return message

    def resolve_plugin_payload(self, message: Any, plugin: str, action: str) -> Any:
        """Re-type the generic plugin payload of ``message``.

        A payload carrying an ``error`` key is the plugin's error type whatever the
        action was. Pairs without a registered type keep the plain mapping.
        """
        if not isinstance(message, PluginCarrier):
            return message
        inner = message.plugin_payload()
        if not isinstance(inner, dict):
            return message
        if ERROR in inner:
            action = ERROR
        factory = self.registry.resolve_nested(plugin, action)
        if factory is None:
            self.unresolved[(plugin, action)] += 1
            logger.debug("No payload type for %s/%s, keeping raw mapping", plugin, action)
            return message
        try:
            typed = factory.model_validate(inner)
        except ValidationError as e:
            raise MalformedPayload(f"{plugin}/{action}", str(e)) from e
        return message.with_plugin_payload(typed)


def decode_event(obj: Mapping[str, Any], registry: Registry = EVENT_REGISTRY) -> BaseEvent:
    """Decode one event-handler payload by its integer ``type``."""
    try:
        base = BaseEvent.model_validate(obj)
    except ValidationError as e:
        raise MalformedEnvelope(str(e)) from e
    key: FlatKey = base.type
    factory = registry.resolve_flat(key)
    if factory is None:
        raise UnknownMessageType(key)
    try:
        return factory.model_validate(obj)
    except ValidationError as e:
        raise MalformedPayload(key, str(e)) from e


def decode_events(raw: Frame, registry: Registry = EVENT_REGISTRY) -> list[BaseEvent]:
    """Event handlers post either a single event or a JSON array of them."""
    data = _load_json(raw)
    if isinstance(data, dict):
        data = [data]
    if not isinstance(data, list) or not all(isinstance(item, dict) for item in data):
        raise MalformedEnvelope("expected an event object or an array of event objects")
    return [decode_event(item, registry) for item in data]
