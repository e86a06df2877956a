"""
Shared plumbing for plugin requests and responses.

A plugin request is the inner body addressed to one plugin: ``{"request": <action>, ...}``.
It is either nested under ``request`` in an Admin API ``message_plugin`` call or sent as
the ``body`` of a Janus API ``message`` on a handle attached to that plugin.
"""

from __future__ import annotations

from typing import Any, Optional

from janus_gateway.errors import PluginError
from janus_gateway.models.messages import JanusModel
from janus_gateway.requests import new_transaction


class PluginRequest:
    def __init__(self, plugin: str, action: str, admin_key: Optional[str] = None,
                 transaction: Optional[str] = None):
        self.plugin = plugin
        self.action = action
        self.admin_key = admin_key
        self.transaction = transaction

    @property
    def plugin_name(self) -> str:
        return self.plugin

    @property
    def action_name(self) -> str:
        return self.action

    def payload(self) -> dict[str, Any]:
        m: dict[str, Any] = {"request": self.action}
        if self.admin_key:
            m["admin_key"] = self.admin_key
        if self.transaction:
            m["transaction"] = self.transaction
        return m

    def __repr__(self) -> str:
        return f"{type(self).__name__}(plugin={self.plugin!r}, action={self.action!r})"


class CreateRoomRequest(PluginRequest):
    def __init__(self, base: PluginRequest, room: Any, permanent: bool = False,
                 allowed: Optional[list[str]] = None):
        super().__init__(base.plugin, base.action, base.admin_key, base.transaction)
        self.room = room
        self.permanent = permanent
        self.allowed = allowed

    def payload(self) -> dict[str, Any]:
        m = super().payload()
        m["permanent"] = self.permanent
        m["allowed"] = list(self.allowed) if self.allowed is not None else []
        m.update(self.room.as_map())
        return m


class EditRoomRequest(PluginRequest):
    def __init__(self, base: PluginRequest, room: Any, permanent: bool = False,
                 secret: Optional[str] = None):
        super().__init__(base.plugin, base.action, base.admin_key, base.transaction)
        self.room = room
        self.permanent = permanent
        self.secret = secret

    def payload(self) -> dict[str, Any]:
        m = super().payload()
        m["permanent"] = self.permanent
        if self.secret:
            m["secret"] = self.secret
        m.update(self.room.as_map())
        return m


class DestroyRoomRequest(PluginRequest):
    def __init__(self, base: PluginRequest, room_id: Any, permanent: bool = False,
                 secret: Optional[str] = None):
        super().__init__(base.plugin, base.action, base.admin_key, base.transaction)
        self.room_id = room_id
        self.permanent = permanent
        self.secret = secret

    def payload(self) -> dict[str, Any]:
        m = super().payload()
        m["room"] = self.room_id
        m["permanent"] = self.permanent
        if self.secret:
            m["secret"] = self.secret
        return m


class PluginRequestFactory:
    """Stamps plugin name and admin key onto every request it makes."""

    def __init__(self, plugin: str, admin_key: Optional[str] = None):
        self.plugin = plugin
        self.admin_key = admin_key

    def make(self, action: str) -> PluginRequest:
        return PluginRequest(self.plugin, action, self.admin_key)

    def list_request(self) -> PluginRequest:
        return self.make("list")

    def create_request(self, room: Any, permanent: bool = False,
                       allowed: Optional[list[str]] = None) -> CreateRoomRequest:
        return CreateRoomRequest(self.make("create"), room, permanent, allowed)

    def edit_request(self, room: Any, permanent: bool = False,
                     secret: Optional[str] = None) -> EditRoomRequest:
        return EditRoomRequest(self.make("edit"), room, permanent, secret)

    def destroy_request(self, room_id: Any, permanent: bool = False,
                        secret: Optional[str] = None) -> DestroyRoomRequest:
        return DestroyRoomRequest(self.make("destroy"), room_id, permanent, secret)


class RoomModel(JanusModel):
    def as_map(self) -> dict[str, Any]:
        """Wire fields of the room. Unset optional fields are left out."""
        return self.model_dump(by_alias=True, exclude_none=True)


class PluginErrorResponse(JanusModel):
    """Plugin-level failure: ``{"error_code": <int>, "error": <reason>}``."""
    error_code: int = 0
    error: str = ""

    def exception(self, plugin: Optional[str] = None) -> PluginError:
        return PluginError(self.error_code, self.error, plugin)
