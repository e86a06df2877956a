"""
Plugin request factories and response types, keyed by plugin package name.
"""

from janus_gateway.plugins import textroom, videoroom
from janus_gateway.plugins.common import PluginErrorResponse, PluginRequest, PluginRequestFactory
from janus_gateway.plugins.textroom import TEXTROOM, TextroomRequestFactory
from janus_gateway.plugins.videoroom import VIDEOROOM, VideoroomRequestFactory

PLUGIN_TYPES = {
    VIDEOROOM: videoroom.RESPONSE_TYPES,
    TEXTROOM: textroom.RESPONSE_TYPES,
}

__all__ = [
    "PLUGIN_TYPES",
    "PluginErrorResponse",
    "PluginRequest",
    "PluginRequestFactory",
    "TEXTROOM",
    "TextroomRequestFactory",
    "VIDEOROOM",
    "VideoroomRequestFactory",
]
