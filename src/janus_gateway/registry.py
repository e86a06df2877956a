"""
Discriminator registries.

A registry maps a flat discriminator (the ``janus`` string, or the integer ``type`` of
event-handler payloads) to the model that decodes it, and a (plugin, action) pair to the
model of the plugin payload nested inside a generic response. Registries are built once
and frozen; decoders receive one explicitly.
"""

from __future__ import annotations

from types import MappingProxyType
from typing import Any, Iterable, Mapping, Optional, Union

from janus_gateway.models import admin, events, messages
from janus_gateway.plugins import PLUGIN_TYPES

FlatKey = Union[str, int]

SUCCESS = "success"
ERROR = "error"


class Registry:
    def __init__(self, flat: Mapping[FlatKey, type], nested: Mapping[str, Mapping[str, type]],
                 notifications: Iterable[FlatKey] = ()):
        self._flat = MappingProxyType(dict(flat))
        self._nested = MappingProxyType({p: MappingProxyType(dict(a)) for p, a in nested.items()})
        self._notifications = frozenset(notifications)

    @property
    def flat(self) -> Mapping[FlatKey, type]:
        return self._flat

    @property
    def nested(self) -> Mapping[str, Mapping[str, type]]:
        return self._nested

    @property
    def notifications(self) -> frozenset[FlatKey]:
        """Flat keys that only name unsolicited notifications, never a request's reply."""
        return self._notifications

    def resolve_flat(self, key: FlatKey) -> Optional[type]:
        return self._flat.get(key)

    def resolve_success(self, action: str) -> Optional[type]:
        """Type of a ``success`` reply to ``action``: the action's own entry, unless that
        entry is a notification."""
        if not action or action in self._notifications:
            return None
        return self._flat.get(action)

    def resolve_nested(self, plugin: str, action: str) -> Optional[type]:
        actions = self._nested.get(plugin)
        if actions is None:
            return None
        return actions.get(action)

    def extend(self) -> RegistryBuilder:
        """A builder seeded with this registry's entries."""
        builder = RegistryBuilder()
        for key, factory in self._flat.items():
            builder.register_flat(key, factory, notification=key in self._notifications)
        for plugin, actions in self._nested.items():
            for action, factory in actions.items():
                builder.register_nested(plugin, action, factory)
        return builder


class RegistryBuilder:
    def __init__(self) -> None:
        self._flat: dict[FlatKey, type] = {}
        self._nested: dict[str, dict[str, type]] = {}
        self._notifications: set[FlatKey] = set()

    def register_flat(self, key: FlatKey, factory: type, notification: bool = False) -> RegistryBuilder:
        if key in self._flat:
            raise ValueError(f"discriminator already registered: {key!r}")
        self._flat[key] = factory
        if notification:
            self._notifications.add(key)
        return self

    def register_nested(self, plugin: str, action: str, factory: type) -> RegistryBuilder:
        actions = self._nested.setdefault(plugin, {})
        if action in actions:
            raise ValueError(f"plugin action already registered: {plugin!r}/{action!r}")
        actions[action] = factory
        return self

    def register_plugin(self, plugin: str, types: Mapping[str, type]) -> RegistryBuilder:
        for action, factory in types.items():
            self.register_nested(plugin, action, factory)
        return self

    def build(self) -> Registry:
        return Registry(self._flat, self._nested, self._notifications)


def _with_plugins(builder: RegistryBuilder) -> Registry:
    for plugin, types in PLUGIN_TYPES.items():
        builder.register_plugin(plugin, types)
    return builder.build()


GATEWAY_TYPES: dict[FlatKey, Any] = {
    ERROR: messages.ErrorMsg,
    SUCCESS: messages.SuccessMsg,
    "detached": messages.DetachedMsg,
    "server_info": messages.InfoMsg,
    "ack": messages.AckMsg,
    "event": messages.EventMsg,
    "webrtcup": messages.WebRTCUpMsg,
    "media": messages.MediaMsg,
    "hangup": messages.HangupMsg,
    "slowlink": messages.SlowLinkMsg,
    "timeout": messages.TimeoutMsg,
}

# Janus API lifecycle notifications. "hangup" is also a request action, answered by a plain success.
GATEWAY_NOTIFICATIONS = ("detached", "ack", "event", "webrtcup", "media", "hangup", "slowlink", "timeout")

ADMIN_TYPES: dict[FlatKey, Any] = {
    ERROR: admin.ErrorAMResponse,
    SUCCESS: admin.SuccessAMResponse,
    "list_tokens": admin.ListTokensResponse,
    "list_sessions": admin.ListSessionsResponse,
    "message_plugin": admin.MessagePluginResponse,
    "list_handles": admin.ListHandlesResponse,
    "handle_info": admin.HandleInfoResponse,
}

EVENT_TYPES: dict[FlatKey, Any] = {
    events.EventType.SESSION: events.SessionEvent,
    events.EventType.HANDLE: events.HandleEvent,
    events.EventType.EXTERNAL: events.ExternalEvent,
    events.EventType.JSEP: events.JSEPEvent,
    events.EventType.WEBRTC: events.WebRTCEvent,
    events.EventType.MEDIA: events.MediaEvent,
    events.EventType.PLUGIN: events.PluginEvent,
    events.EventType.TRANSPORT: events.TransportEvent,
    events.EventType.CORE: events.CoreEvent,
}


def _builder(types: Mapping[FlatKey, type], notifications: Iterable[FlatKey] = ()) -> RegistryBuilder:
    notifications = set(notifications)
    builder = RegistryBuilder()
    for key, factory in types.items():
        builder.register_flat(key, factory, notification=key in notifications)
    return builder


GATEWAY_REGISTRY = _with_plugins(_builder(GATEWAY_TYPES, GATEWAY_NOTIFICATIONS))
ADMIN_REGISTRY = _with_plugins(_builder(ADMIN_TYPES))
EVENT_REGISTRY = _builder(EVENT_TYPES).build()
