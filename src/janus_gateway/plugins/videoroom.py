"""
VideoRoom plugin (janus.plugin.videoroom) room management.
"""

from __future__ import annotations

from typing import Optional, Union

from pydantic import Field

from janus_gateway.models.messages import JanusModel
from janus_gateway.plugins.common import PluginErrorResponse, PluginRequestFactory, RoomModel

VIDEOROOM = "janus.plugin.videoroom"

RoomID = Union[int, str]


class VideoroomResponse(JanusModel):
    videoroom: str = ""


class VideoroomErrorResponse(PluginErrorResponse, VideoroomResponse):
    pass


class VideoroomRoom(RoomModel):
    room: RoomID
    description: Optional[str] = None
    is_private: bool = False
    secret: Optional[str] = None
    pin: Optional[str] = None
    require_pvtid: bool = False
    require_e2ee: bool = False
    publishers: int = 0
    bitrate: int = 0
    fir_freq: int = 0
    audiocodec: Optional[str] = None
    videocodec: Optional[str] = None
    vp9_profile: Optional[str] = None
    h264_profile: Optional[str] = None
    opus_fec: bool = False
    video_svc: bool = False
    audiolevel_ext: bool = False
    audiolevel_event: bool = False
    audio_active_packets: Optional[int] = None
    audio_level_average: Optional[int] = None
    videoorient_ext: bool = False
    playoutdelay_ext: bool = False
    transport_wide_cc_ext: bool = False
    record: bool = False
    rec_dir: Optional[str] = None
    lock_record: bool = False
    notify_joining: bool = False


class VideoroomRoomFromList(VideoroomRoom):
    pin_required: bool = False
    max_publishers: int = 0
    bitrate_cap: bool = False
    num_participants: int = 0


class VideoroomRoomForEdit(RoomModel):
    room: RoomID
    description: Optional[str] = Field(default=None, alias="new_description")
    is_private: bool = Field(default=False, alias="new_is_private")
    secret: Optional[str] = Field(default=None, alias="new_secret")
    pin: Optional[str] = Field(default=None, alias="new_pin")
    require_pvtid: bool = Field(default=False, alias="new_require_pvtid")
    publishers: int = Field(default=0, alias="new_publishers")
    bitrate: int = Field(default=0, alias="new_bitrate")
    fir_freq: int = Field(default=0, alias="new_fir_freq")
    lock_record: bool = Field(default=False, alias="new_lock_record")


class VideoroomListResponse(VideoroomResponse):
    rooms: list[VideoroomRoomFromList] = Field(default_factory=list, alias="list")


class VideoroomCreateResponse(VideoroomResponse):
    room: RoomID
    permanent: bool = False


class VideoroomEditResponse(VideoroomResponse):
    room: RoomID


class VideoroomDestroyResponse(VideoroomResponse):
    room: RoomID


class VideoroomRequestFactory(PluginRequestFactory):
    def __init__(self, admin_key: Optional[str] = None):
        super().__init__(VIDEOROOM, admin_key)


RESPONSE_TYPES = {
    "error": VideoroomErrorResponse,
    "list": VideoroomListResponse,
    "create": VideoroomCreateResponse,
    "edit": VideoroomEditResponse,
    "destroy": VideoroomDestroyResponse,
}
