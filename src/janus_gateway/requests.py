"""
Request builders.

Each request kind extends the payload of the layer below it: the base layer sets the
action, the transaction and the secret, then session, handle and plugin layers add their
own fields. ``endpoint()`` composes the same way for address-based transports.
"""

from __future__ import annotations

import uuid
from typing import TYPE_CHECKING, Any, Optional, Union

if TYPE_CHECKING:
    from janus_gateway.plugins.common import PluginRequest

ADMIN_SECRET_FIELD = "admin_secret"
API_SECRET_FIELD = "apisecret"


def new_transaction() -> str:
    """Correlation id for one in-flight request."""
    return uuid.uuid4().hex


class BaseRequest:
    def __init__(
        self,
        action: str,
        secret: Optional[str] = None,
        transaction: Optional[str] = None,
        secret_field: str = ADMIN_SECRET_FIELD,
        token: Optional[str] = None,
    ):
        self.action = action
        self.transaction = transaction or new_transaction()
        self.secret = secret
        self.secret_field = secret_field
        self.token = token

    @property
    def action_name(self) -> str:
        return self.action

    @property
    def plugin_target(self) -> Optional[tuple[str, str]]:
        """(plugin, action) when the response wraps a plugin payload."""
        return None

    def endpoint(self) -> str:
        return ""

    def payload(self) -> dict[str, Any]:
        m: dict[str, Any] = {
            "janus": self.action,
            "transaction": self.transaction,
        }
        if self.secret:
            m[self.secret_field] = self.secret
        if self.token:
            m["token"] = self.token
        return m

    def __repr__(self) -> str:
        return f"{type(self).__name__}(action={self.action!r}, transaction={self.transaction!r})"


class TokenRequest(BaseRequest):
    def __init__(self, action: str, token_value: str, plugins: Optional[list[str]] = None, **kwargs: Any):
        super().__init__(action, **kwargs)
        self.token_value = token_value
        self.plugins = plugins

    def payload(self) -> dict[str, Any]:
        m = super().payload()
        m["token"] = self.token_value
        if self.plugins is not None:
            m["plugins"] = list(self.plugins)
        return m


class MessagePluginRequest(BaseRequest):
    """Admin API ``message_plugin``: the plugin request travels nested under ``request``."""

    def __init__(self, request: PluginRequest, **kwargs: Any):
        super().__init__("message_plugin", **kwargs)
        self.request = request

    @property
    def plugin_target(self) -> Optional[tuple[str, str]]:
        return self.request.plugin_name, self.request.action_name

    def payload(self) -> dict[str, Any]:
        m = super().payload()
        m["plugin"] = self.request.plugin_name
        m["request"] = self.request.payload()
        return m


class CreateRequest(BaseRequest):
    def __init__(self, session_id: Optional[int] = None, **kwargs: Any):
        super().__init__("create", **kwargs)
        self.session_id = session_id

    def payload(self) -> dict[str, Any]:
        m = super().payload()
        if self.session_id is not None:
            m["id"] = self.session_id
        return m


class SessionRequest(BaseRequest):
    def __init__(self, action: str, session_id: int, **kwargs: Any):
        super().__init__(action, **kwargs)
        self.session_id = session_id

    def endpoint(self) -> str:
        return f"/{self.session_id}"

    def payload(self) -> dict[str, Any]:
        m = super().payload()
        m["session_id"] = self.session_id
        return m


class AttachRequest(SessionRequest):
    def __init__(self, session_id: int, plugin: str, opaque_id: Optional[str] = None, **kwargs: Any):
        super().__init__("attach", session_id, **kwargs)
        self.plugin = plugin
        self.opaque_id = opaque_id

    def payload(self) -> dict[str, Any]:
        m = super().payload()
        m["plugin"] = self.plugin
        if self.opaque_id:
            m["opaque_id"] = self.opaque_id
        return m


class HandleRequest(SessionRequest):
    def __init__(self, action: str, session_id: int, handle_id: int, **kwargs: Any):
        super().__init__(action, session_id, **kwargs)
        self.handle_id = handle_id

    def endpoint(self) -> str:
        return f"{super().endpoint()}/{self.handle_id}"

    def payload(self) -> dict[str, Any]:
        m = super().payload()
        m["handle_id"] = self.handle_id
        return m


class PluginMessageRequest(HandleRequest):
    """Janus API ``message``: the plugin request is the flattened ``body``."""

    def __init__(
        self,
        session_id: int,
        handle_id: int,
        plugin: str,
        body: Union[PluginRequest, dict[str, Any]],
        jsep: Optional[dict[str, Any]] = None,
        **kwargs: Any,
    ):
        super().__init__("message", session_id, handle_id, **kwargs)
        self.plugin = plugin
        self.body = body if isinstance(body, dict) else body.payload()
        self.jsep = jsep

    @property
    def plugin_target(self) -> Optional[tuple[str, str]]:
        action = self.body.get("request")
        if not isinstance(action, str):
            return None
        return self.plugin, action

    def payload(self) -> dict[str, Any]:
        m = super().payload()
        m["body"] = self.body
        if self.jsep is not None:
            m["jsep"] = self.jsep
        return m


class TrickleRequest(HandleRequest):
    def __init__(
        self,
        session_id: int,
        handle_id: int,
        candidate: Optional[dict[str, Any]] = None,
        candidates: Optional[list[dict[str, Any]]] = None,
        **kwargs: Any,
    ):
        super().__init__("trickle", session_id, handle_id, **kwargs)
        self.candidate = candidate
        self.candidates = candidates

    def payload(self) -> dict[str, Any]:
        m = super().payload()
        if self.candidates is not None:
            m["candidates"] = self.candidates
        else:
            m["candidate"] = self.candidate if self.candidate is not None else {"completed": True}
        return m
