"""
Admin/Monitor API responses.
"""

from __future__ import annotations

from typing import Any, Optional

from pydantic import Field

from janus_gateway.errors import RemoteError
from janus_gateway.models.messages import ErrorData, JanusModel, PluginCarrier


class ErrorAMResponse(JanusModel):
    error: ErrorData

    def exception(self) -> RemoteError:
        return RemoteError(self.error.code, self.error.reason)


class SuccessAMResponse(JanusModel):
    data: dict[str, Any] = Field(default_factory=dict)


class StoredToken(JanusModel):
    token: str
    plugins: list[str] = Field(default_factory=list, alias="allowed_plugins")


class ListTokensResponse(JanusModel):
    data: dict[str, list[StoredToken]] = Field(default_factory=dict)

    @property
    def tokens(self) -> list[StoredToken]:
        return self.data.get("tokens", [])


class ListSessionsResponse(JanusModel):
    sessions: list[int] = Field(default_factory=list)


class MessagePluginResponse(JanusModel, PluginCarrier):
    response: Any = Field(default_factory=dict)

    def plugin_payload(self) -> Any:
        return self.response

    def with_plugin_payload(self, payload: Any) -> MessagePluginResponse:
        return self.model_copy(update={"response": payload})


class ListHandlesResponse(JanusModel):
    session_id: Optional[int] = None
    handles: list[int] = Field(default_factory=list)


class HandleInfoResponse(JanusModel):
    session_id: Optional[int] = None
    handle_id: Optional[int] = None
    info: Optional[dict[str, Any]] = None
