"""
TextRoom plugin (janus.plugin.textroom) room management and data-channel posts.
"""

from __future__ import annotations

import json
from datetime import datetime
from typing import Any, Optional, Union

from pydantic import Field, ValidationError, field_validator

from janus_gateway.errors import MalformedPayload
from janus_gateway.models.messages import JanusModel
from janus_gateway.plugins.common import PluginErrorResponse, PluginRequest, PluginRequestFactory, RoomModel
from janus_gateway.requests import new_transaction

TEXTROOM = "janus.plugin.textroom"

# RFC 3339 except the zone carries no colon
DATE_FORMAT = "%Y-%m-%dT%H:%M:%S%z"

RoomID = Union[int, str]


class TextroomResponse(JanusModel):
    textroom: str = ""


class TextroomErrorResponse(PluginErrorResponse, TextroomResponse):
    pass


class TextroomRoom(RoomModel):
    room: RoomID
    description: Optional[str] = None
    is_private: bool = False
    secret: Optional[str] = None
    pin: Optional[str] = None
    post: Optional[str] = None


class TextroomRoomFromList(TextroomRoom):
    pin_required: bool = False
    num_participants: int = 0


class TextroomRoomForEdit(RoomModel):
    room: RoomID
    description: Optional[str] = Field(default=None, alias="new_description")
    is_private: bool = Field(default=False, alias="new_is_private")
    secret: Optional[str] = Field(default=None, alias="new_secret")
    pin: Optional[str] = Field(default=None, alias="new_pin")
    post: Optional[str] = Field(default=None, alias="new_post")


class TextroomListResponse(TextroomResponse):
    rooms: list[TextroomRoomFromList] = Field(default_factory=list, alias="list")


class TextroomCreateResponse(TextroomResponse):
    room: RoomID
    permanent: bool = False


class TextroomEditResponse(TextroomResponse):
    room: RoomID


class TextroomDestroyResponse(TextroomResponse):
    room: RoomID


class TextroomRequestFactory(PluginRequestFactory):
    """Textroom requests carry their own plugin-level transaction."""

    def __init__(self, admin_key: Optional[str] = None):
        super().__init__(TEXTROOM, admin_key)

    def make(self, action: str) -> PluginRequest:
        return PluginRequest(self.plugin, action, self.admin_key, transaction=new_transaction())


class TextroomPostMsg(JanusModel):
    """A message posted to a room, as received over the data channel."""
    textroom: str = ""
    room: Optional[RoomID] = None
    from_: str = Field(default="", alias="from")
    date: Optional[datetime] = None
    text: str = ""
    whisper: bool = False

    @field_validator("date", mode="before")
    @classmethod
    def _parse_date(cls, v: Any) -> Any:
        if not isinstance(v, str):
            return v
        return datetime.strptime(v, DATE_FORMAT)


def parse_textroom_message(raw: Union[str, bytes]) -> TextroomPostMsg:
    try:
        return TextroomPostMsg.model_validate(json.loads(raw))
    except (json.JSONDecodeError, ValidationError) as e:
        raise MalformedPayload("textroom message", str(e)) from e


RESPONSE_TYPES = {
    "error": TextroomErrorResponse,
    "list": TextroomListResponse,
    "create": TextroomCreateResponse,
    "edit": TextroomEditResponse,
    "destroy": TextroomDestroyResponse,
}
