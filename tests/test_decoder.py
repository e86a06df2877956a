"""Envelope decoding, success disambiguation and nested plugin payloads."""

import json

import pytest
from pydantic import ValidationError

from janus_gateway.decoder import Decoder, EnvelopeMeta
from janus_gateway.errors import MalformedEnvelope, MalformedPayload, RemoteError, UnknownMessageType
from janus_gateway.models.admin import (
    ErrorAMResponse,
    ListSessionsResponse,
    ListTokensResponse,
    MessagePluginResponse,
    SuccessAMResponse,
)
from janus_gateway.models.messages import (
    AckMsg,
    ErrorMsg,
    EventMsg,
    HangupMsg,
    InfoMsg,
    JanusModel,
    SuccessMsg,
    TimeoutMsg,
)
from janus_gateway.plugins.textroom import TextroomRequestFactory
from janus_gateway.plugins.videoroom import (
    VIDEOROOM,
    VideoroomCreateResponse,
    VideoroomErrorResponse,
    VideoroomListResponse,
    VideoroomRequestFactory,
    VideoroomRoom,
)
from janus_gateway.registry import ADMIN_REGISTRY, GATEWAY_REGISTRY
from janus_gateway.requests import BaseRequest, HandleRequest, MessagePluginRequest, PluginMessageRequest


class RoomkeeperCreateResponse(JanusModel):
    room: str
    permanent: bool = False


def frame(**fields) -> str:
    return json.dumps(fields)


class TestEnvelope:
    def test_meta_from_routing_fields(self):
        msg, meta = Decoder().decode(frame(janus="hangup", session_id=1, sender=2, reason="DTLS Alert"))
        assert isinstance(msg, HangupMsg)
        assert msg.reason == "DTLS Alert"
        assert meta == EnvelopeMeta(correlation_id="", session_id=1, handle_id=2)

    def test_transaction_becomes_correlation_id(self):
        _, meta = Decoder().decode(frame(janus="ack", transaction="tx9", session_id=1))
        assert meta.correlation_id == "tx9"
        assert meta.handle_id is None

    def test_invalid_json(self):
        with pytest.raises(MalformedEnvelope):
            Decoder().decode("{not json")

    def test_deep_nesting_is_malformed(self):
        with pytest.raises(MalformedEnvelope):
            Decoder().decode(b"[" * 100000)

    def test_not_an_object(self):
        with pytest.raises(MalformedEnvelope):
            Decoder().decode("[1, 2]")

    def test_missing_type(self):
        with pytest.raises(MalformedEnvelope):
            Decoder().decode(frame(transaction="tx1"))

    def test_unknown_type(self):
        with pytest.raises(UnknownMessageType) as exc:
            Decoder().decode(frame(janus="teleport"))
        assert exc.value.discriminator == "teleport"

    def test_malformed_body(self):
        with pytest.raises(MalformedPayload):
            Decoder().decode(frame(janus="error", error={"reason": "no code"}))

    def test_bytes_frame(self):
        msg, _ = Decoder().decode(frame(janus="timeout", session_id=7).encode())
        assert isinstance(msg, TimeoutMsg)
        assert msg.session_id == 7


class TestSuccessDisambiguation:
    def test_action_selects_type(self):
        msg, _ = Decoder(ADMIN_REGISTRY).decode(frame(janus="success", sessions=[1, 2]), action="list_sessions")
        assert isinstance(msg, ListSessionsResponse)
        assert msg.sessions == [1, 2]

    def test_unregistered_action_falls_back_to_generic(self):
        msg, _ = Decoder(ADMIN_REGISTRY).decode(frame(janus="success", data={"plugins": []}), action="add_token")
        assert isinstance(msg, SuccessAMResponse)
        assert msg.data == {"plugins": []}

    def test_no_action_is_generic(self):
        msg, _ = Decoder().decode(frame(janus="success", data={"id": 42}))
        assert isinstance(msg, SuccessMsg)
        assert msg.data.id == 42

    def test_success_never_becomes_a_notification(self):
        raw = frame(janus="success", transaction="t1", session_id=1, sender=2)
        msg, meta = Decoder().decode_response(raw, HandleRequest("hangup", 1, 2))
        assert isinstance(msg, SuccessMsg)
        assert meta.handle_id == 2

    def test_notification_keeps_its_own_type(self):
        msg, _ = Decoder().decode(frame(janus="hangup", session_id=1, sender=2), action="hangup")
        assert isinstance(msg, HangupMsg)

    def test_non_success_ignores_action(self):
        msg, _ = Decoder(ADMIN_REGISTRY).decode(
            frame(janus="error", error={"code": 403, "reason": "Unauthorized request"}), action="list_sessions"
        )
        assert isinstance(msg, ErrorAMResponse)
        assert isinstance(msg.exception(), RemoteError)

    def test_list_tokens(self):
        raw = frame(janus="success", data={"tokens": [{"token": "abc", "allowed_plugins": [VIDEOROOM]}]})
        msg, _ = Decoder(ADMIN_REGISTRY).decode(raw, action="list_tokens")
        assert isinstance(msg, ListTokensResponse)
        assert msg.tokens[0].token == "abc"
        assert msg.tokens[0].plugins == [VIDEOROOM]

    def test_server_info_aliases(self):
        raw = frame(janus="server_info", name="Janus WebRTC Server", version=1200, **{"local-ip": "10.0.0.1"},
                    plugins={VIDEOROOM: {"name": "JANUS VideoRoom plugin", "version": 9}})
        msg, _ = Decoder().decode(raw)
        assert isinstance(msg, InfoMsg)
        assert msg.local_ip == "10.0.0.1"
        assert msg.plugins[VIDEOROOM].version == 9

    def test_remote_error_example(self):
        raw = frame(janus="error", transaction="tx1", error={"code": 456, "reason": "no such room"})
        msg, meta = Decoder().decode(raw)
        assert isinstance(msg, ErrorMsg)
        assert meta.correlation_id == "tx1"
        err = msg.exception()
        assert err.code == 456
        assert err.reason == "no such room"


class TestNestedResolution:
    def test_roomkeeper_create_with_injected_registry(self):
        registry = GATEWAY_REGISTRY.extend().register_nested("roomkeeper", "create", RoomkeeperCreateResponse).build()
        decoder = Decoder(registry)
        request = PluginMessageRequest(1, 2, "roomkeeper", {"request": "create"}, transaction="tx1")
        raw = frame(janus="success", transaction="tx1",
                    plugindata={"plugin": "roomkeeper", "data": {"room": "hi", "permanent": False}})

        msg, meta = decoder.decode_response(raw, request)

        assert meta.correlation_id == "tx1"
        assert isinstance(msg, SuccessMsg)
        payload = msg.plugin_payload()
        assert isinstance(payload, RoomkeeperCreateResponse)
        assert payload.room == "hi"
        assert payload.permanent is False

    def test_admin_message_plugin_list(self):
        request = MessagePluginRequest(VideoroomRequestFactory("adminkey").list_request(), secret="s")
        raw = frame(janus="success", transaction=request.transaction, response={
            "videoroom": "success",
            "list": [{"room": 1234, "description": "Demo Room", "num_participants": 2, "pin_required": True}],
        })
        msg, _ = Decoder(ADMIN_REGISTRY).decode_response(raw, request)

        assert isinstance(msg, MessagePluginResponse)
        payload = msg.plugin_payload()
        assert isinstance(payload, VideoroomListResponse)
        assert payload.rooms[0].room == 1234
        assert payload.rooms[0].num_participants == 2
        assert payload.rooms[0].pin_required is True

    def test_error_key_forces_error_type(self):
        request = MessagePluginRequest(VideoroomRequestFactory().create_request(VideoroomRoom(room=1234)))
        raw = frame(janus="success", response={"videoroom": "event", "error_code": 427, "error": "Room 1234 already exists"})
        msg, _ = Decoder(ADMIN_REGISTRY).decode_response(raw, request)

        payload = msg.plugin_payload()
        assert isinstance(payload, VideoroomErrorResponse)
        assert payload.error_code == 427
        err = payload.exception(VIDEOROOM)
        assert err.code == 427
        assert err.plugin == VIDEOROOM

    def test_textroom_create(self):
        request = MessagePluginRequest(TextroomRequestFactory().make("create"))
        raw = frame(janus="success", response={"textroom": "success", "room": 99, "permanent": True})
        msg, _ = Decoder(ADMIN_REGISTRY).decode_response(raw, request)
        payload = msg.plugin_payload()
        assert payload.room == 99
        assert payload.permanent is True

    def test_miss_keeps_raw_mapping_and_counts(self):
        decoder = Decoder()
        request = PluginMessageRequest(1, 2, VIDEOROOM, {"request": "exists", "room": 1234})
        raw = frame(janus="success", plugindata={"plugin": VIDEOROOM, "data": {"videoroom": "success", "exists": True}})

        msg, _ = decoder.decode_response(raw, request)

        assert msg.plugin_payload() == {"videoroom": "success", "exists": True}
        assert decoder.unresolved[(VIDEOROOM, "exists")] == 1

    def test_async_event_is_resolved_against_request(self):
        request = PluginMessageRequest(1, 2, VIDEOROOM, {"request": "create", "room": 5})
        raw = frame(janus="event", transaction=request.transaction, session_id=1, sender=2,
                    plugindata={"plugin": VIDEOROOM, "data": {"videoroom": "created", "room": 5, "permanent": False}})
        msg, meta = Decoder().decode_response(raw, request)

        assert isinstance(msg, EventMsg)
        assert isinstance(msg.plugin_payload(), VideoroomCreateResponse)
        assert meta.handle_id == 2

    def test_invalid_nested_payload(self):
        request = PluginMessageRequest(1, 2, VIDEOROOM, {"request": "create"})
        raw = frame(janus="success", plugindata={"plugin": VIDEOROOM, "data": {"videoroom": "created"}})
        with pytest.raises(MalformedPayload):
            Decoder().decode_response(raw, request)

    def test_non_carrier_untouched(self):
        request = PluginMessageRequest(1, 2, VIDEOROOM, {"request": "list"})
        msg, _ = Decoder().decode_response(frame(janus="ack", session_id=1), request)
        assert isinstance(msg, AckMsg)

    def test_decoded_messages_are_immutable(self):
        msg, _ = Decoder().decode(frame(janus="hangup", reason="x"))
        with pytest.raises(ValidationError):
            msg.reason = "y"

    def test_request_without_plugin_target(self):
        msg, _ = Decoder().decode_response(frame(janus="success", data={"id": 5}), BaseRequest("create"))
        assert isinstance(msg, SuccessMsg)
