"""Connection pipeline and the Gateway/Session/Handle surface over an in-memory transport."""

import asyncio

import pytest

from janus_gateway.client import Gateway
from janus_gateway.connection import Connection
from janus_gateway.errors import ConnectionClosed, MalformedPayload, PluginError, RemoteError, Timeout
from janus_gateway.models.messages import AckMsg, EventMsg, HangupMsg, InfoMsg, SuccessMsg, TimeoutMsg, WebRTCUpMsg
from janus_gateway.plugins.videoroom import (
    VIDEOROOM,
    VideoroomCreateResponse,
    VideoroomListResponse,
    VideoroomRequestFactory,
    VideoroomRoom,
)
from janus_gateway.requests import BaseRequest


async def open_gateway(transport, **kwargs) -> Gateway:
    connection = Connection(transport, request_timeout=1)
    connection.start()
    kwargs.setdefault("keepalive_interval", 0)
    return Gateway(connection, **kwargs)


async def open_handle(transport, gateway, session_id=100, handle_id=200):
    task = asyncio.create_task(gateway.create())
    req = await transport.next_request()
    transport.push(janus="success", transaction=req["transaction"], data={"id": session_id})
    session = await task

    task = asyncio.create_task(session.attach(VIDEOROOM))
    req = await transport.next_request()
    transport.push(janus="success", transaction=req["transaction"], session_id=session_id, data={"id": handle_id})
    return session, await task


class TestConnection:
    @pytest.mark.asyncio
    async def test_request_response(self, transport):
        async with Connection(transport) as conn:
            task = asyncio.create_task(conn.request(BaseRequest("info", secret_field="apisecret")))
            req = await transport.next_request()
            assert req["janus"] == "info"
            transport.push(janus="server_info", transaction=req["transaction"], name="Janus WebRTC Server")
            msg = await task
            assert isinstance(msg, InfoMsg)
            assert msg.name == "Janus WebRTC Server"
        assert transport.closed

    @pytest.mark.asyncio
    async def test_timeout_then_late_reply_is_dropped(self, transport):
        async with Connection(transport) as conn:
            request = BaseRequest("info")
            with pytest.raises(Timeout) as exc:
                await conn.request(request, timeout=0.05)
            assert exc.value.correlation_id == request.transaction
            assert conn.router.pending == 0
            assert (await transport.next_request())["transaction"] == request.transaction

            transport.push(janus="server_info", transaction=request.transaction)

            # the reader survives and keeps serving requests
            task = asyncio.create_task(conn.request(BaseRequest("info")))
            req = await transport.next_request()
            transport.push(janus="server_info", transaction=req["transaction"], name="ok")
            assert (await task).name == "ok"

    @pytest.mark.asyncio
    async def test_undecodable_response_fails_the_request(self, transport):
        async with Connection(transport) as conn:
            task = asyncio.create_task(conn.request(BaseRequest("info")))
            req = await transport.next_request()
            transport.push(janus="error", transaction=req["transaction"], error={"reason": "no code"})
            with pytest.raises(MalformedPayload):
                await task

    @pytest.mark.asyncio
    async def test_garbage_frames_do_not_stop_reader(self, transport):
        async with Connection(transport) as conn:
            transport.push_raw(b"this is not json")
            transport.push(janus="teleport", session_id=1)
            task = asyncio.create_task(conn.request(BaseRequest("info")))
            req = await transport.next_request()
            transport.push(janus="server_info", transaction=req["transaction"])
            assert isinstance(await task, InfoMsg)
            assert conn.connected

    @pytest.mark.asyncio
    async def test_deeply_nested_frame_does_not_stop_reader(self, transport):
        async with Connection(transport) as conn:
            transport.push_raw(b"[" * 100000)
            task = asyncio.create_task(conn.request(BaseRequest("info")))
            req = await transport.next_request()
            transport.push(janus="server_info", transaction=req["transaction"], name="still here")
            assert (await task).name == "still here"
            assert conn.connected

    @pytest.mark.asyncio
    async def test_transport_loss_fails_pending_requests(self, transport):
        conn = Connection(transport)
        conn.start()
        task = asyncio.create_task(conn.request(BaseRequest("info")))
        await transport.next_request()
        transport.hang_up()
        with pytest.raises(ConnectionClosed):
            await task
        with pytest.raises(ConnectionClosed):
            await conn.request(BaseRequest("info"))
        await conn.close()

    @pytest.mark.asyncio
    async def test_request_after_close(self, transport):
        conn = Connection(transport)
        conn.start()
        await conn.close()
        assert not conn.connected
        with pytest.raises(ConnectionClosed):
            await conn.request(BaseRequest("info"))


class TestGateway:
    @pytest.mark.asyncio
    async def test_create_and_attach(self, transport):
        gateway = await open_gateway(transport, api_secret="janusrocks", token="tok")
        task = asyncio.create_task(gateway.create())
        req = await transport.next_request()
        assert req["janus"] == "create"
        assert req["apisecret"] == "janusrocks"
        assert req["token"] == "tok"
        transport.push(janus="success", transaction=req["transaction"], data={"id": 100})
        session = await task
        assert session.id == 100
        assert gateway.sessions[100] is session

        task = asyncio.create_task(session.attach(VIDEOROOM, opaque_id="demo-1"))
        req = await transport.next_request()
        assert req == {
            "janus": "attach",
            "transaction": req["transaction"],
            "apisecret": "janusrocks",
            "token": "tok",
            "session_id": 100,
            "plugin": VIDEOROOM,
            "opaque_id": "demo-1",
        }
        transport.push(janus="success", transaction=req["transaction"], session_id=100, data={"id": 200})
        handle = await task
        assert handle.id == 200
        assert session.handles[200] is handle
        await gateway.close()

    @pytest.mark.asyncio
    async def test_error_response_raises_remote_error(self, transport):
        gateway = await open_gateway(transport)
        task = asyncio.create_task(gateway.create())
        req = await transport.next_request()
        transport.push(janus="error", transaction=req["transaction"], error={"code": 403, "reason": "Unauthorized request"})
        with pytest.raises(RemoteError) as exc:
            await task
        assert exc.value.code == 403
        await gateway.close()

    @pytest.mark.asyncio
    async def test_synchronous_plugin_request(self, transport):
        gateway = await open_gateway(transport)
        _, handle = await open_handle(transport, gateway)

        task = asyncio.create_task(handle.request(VideoroomRequestFactory().list_request()))
        req = await transport.next_request()
        assert req["body"] == {"request": "list"}
        assert req["handle_id"] == 200
        transport.push(janus="success", transaction=req["transaction"], session_id=100, sender=200,
                       plugindata={"plugin": VIDEOROOM, "data": {"videoroom": "success", "list": [{"room": 1234}]}})
        rooms = await task
        assert isinstance(rooms, VideoroomListResponse)
        assert rooms.rooms[0].room == 1234
        await gateway.close()

    @pytest.mark.asyncio
    async def test_asynchronous_plugin_message_waits_past_ack(self, transport):
        gateway = await open_gateway(transport)
        _, handle = await open_handle(transport, gateway)

        body = VideoroomRequestFactory().create_request(VideoroomRoom(room=5))
        task = asyncio.create_task(handle.message(body, jsep={"type": "offer", "sdp": "v=0"}))
        req = await transport.next_request()
        assert req["jsep"]["type"] == "offer"
        transport.push(janus="ack", transaction=req["transaction"], session_id=100)
        transport.push(janus="event", transaction=req["transaction"], session_id=100, sender=200,
                       plugindata={"plugin": VIDEOROOM, "data": {"videoroom": "created", "room": 5, "permanent": False}},
                       jsep={"type": "answer", "sdp": "v=0"})
        msg = await task
        assert isinstance(msg, EventMsg)
        assert isinstance(msg.plugin_payload(), VideoroomCreateResponse)
        assert msg.jsep["type"] == "answer"
        await gateway.close()

    @pytest.mark.asyncio
    async def test_plugin_error_payload_raises(self, transport):
        gateway = await open_gateway(transport)
        _, handle = await open_handle(transport, gateway)

        task = asyncio.create_task(handle.request(VideoroomRequestFactory().destroy_request(77)))
        req = await transport.next_request()
        transport.push(janus="success", transaction=req["transaction"], session_id=100, sender=200,
                       plugindata={"plugin": VIDEOROOM, "data": {"videoroom": "event", "error_code": 426, "error": "No such room (77)"}})
        with pytest.raises(PluginError) as exc:
            await task
        assert exc.value.code == 426
        assert exc.value.plugin == VIDEOROOM
        await gateway.close()

    @pytest.mark.asyncio
    async def test_handle_and_session_events(self, transport):
        gateway = await open_gateway(transport)
        session, handle = await open_handle(transport, gateway)
        handle_events = handle.events()
        session_events = session.events()

        transport.push(janus="webrtcup", session_id=100, sender=200)
        transport.push(janus="hangup", session_id=100, sender=200, reason="DTLS Alert")
        transport.push(janus="timeout", session_id=100)

        assert isinstance(await handle_events.get(timeout=1), WebRTCUpMsg)
        hangup = await handle_events.get(timeout=1)
        assert isinstance(hangup, HangupMsg)
        assert hangup.reason == "DTLS Alert"
        assert isinstance(await session_events.get(timeout=1), TimeoutMsg)
        await gateway.close()
        assert await handle_events.get() is None

    @pytest.mark.asyncio
    async def test_trickle_and_detach(self, transport):
        gateway = await open_gateway(transport)
        session, handle = await open_handle(transport, gateway)
        stream = handle.events()

        task = asyncio.create_task(handle.trickle())
        req = await transport.next_request()
        assert req["janus"] == "trickle"
        assert req["candidate"] == {"completed": True}
        transport.push(janus="ack", transaction=req["transaction"], session_id=100)
        assert isinstance(await task, AckMsg)

        task = asyncio.create_task(handle.detach())
        req = await transport.next_request()
        assert req["janus"] == "detach"
        transport.push(janus="success", transaction=req["transaction"], session_id=100)
        await task
        assert 200 not in session.handles
        assert stream.closed
        await gateway.close()

    @pytest.mark.asyncio
    async def test_keepalive_and_destroy(self, transport):
        gateway = await open_gateway(transport, keepalive_interval=0.01)
        task = asyncio.create_task(gateway.create())
        req = await transport.next_request()
        transport.push(janus="success", transaction=req["transaction"], data={"id": 100})
        session = await task

        req = await transport.next_request()
        assert req["janus"] == "keepalive"
        assert req["session_id"] == 100
        transport.push(janus="ack", transaction=req["transaction"], session_id=100)

        task = asyncio.create_task(session.destroy())
        while True:
            req = await transport.next_request()
            if req["janus"] == "destroy":
                break
            transport.push(janus="ack", transaction=req["transaction"], session_id=100)
        transport.push(janus="success", transaction=req["transaction"], session_id=100)
        await task
        assert 100 not in gateway.sessions
        await gateway.close()

    @pytest.mark.asyncio
    async def test_hangup_returns_success_not_a_hangup_event(self, transport):
        gateway = await open_gateway(transport)
        _, handle = await open_handle(transport, gateway)

        task = asyncio.create_task(handle.hangup())
        req = await transport.next_request()
        assert req["janus"] == "hangup"
        assert req["handle_id"] == 200
        transport.push(janus="success", transaction=req["transaction"], session_id=100, sender=200)

        msg = await task
        assert isinstance(msg, SuccessMsg)
        assert not isinstance(msg, HangupMsg)
        await gateway.close()

    @pytest.mark.asyncio
    async def test_close_waits_for_keepalive_in_flight(self, transport):
        gateway = await open_gateway(transport, keepalive_interval=0.01)
        task = asyncio.create_task(gateway.create())
        req = await transport.next_request()
        transport.push(janus="success", transaction=req["transaction"], data={"id": 100})
        session = await task
        keepalive_task = session._keepalive_task

        # leave the keepalive unanswered so it is still waiting when the gateway closes
        assert (await transport.next_request())["janus"] == "keepalive"
        await gateway.close()

        assert keepalive_task.done()
        assert session._keepalive_task is None
        assert gateway.connection.router.pending == 0
