"""Unit tests for GatewayCoordinator.

Test organisation
-----------------
``TestConnect``
    Identity confirmation and the best-effort room list push.

``TestHeartbeatAndListing``
    ``ping`` and ``rooms:list``.

``TestCreateRoom``
    Unicast reply plus global listing broadcast; invalid names dropped.

``TestJoinRoom``
    Single-room membership, history replay, unknown room ids.

``TestSendMessage``
    Translation, persistence and room-scoped delivery.

``TestDispatch``
    Event routing and the failure boundary.
"""

import logging
from unittest.mock import AsyncMock, patch

import pytest

from relay_server.core.gateway import GatewayCoordinator
from relay_server.core.models import ChatMessage, Sender
from relay_server.storage.errors import StorageReadError, StorageWriteError


async def _connect(gateway, fake_transport, connection_id, user_id=None, nickname=None):
    fake_transport.add(connection_id)
    return await gateway.connect(connection_id, user_id, nickname)


@pytest.mark.unit
class TestConnect:
    @pytest.mark.asyncio
    async def test_connected_then_room_list(self, gateway, fake_transport):
        await _connect(gateway, fake_transport, "c1", "u1", "Min")

        assert fake_transport.frames["c1"] == [
            ("connected", {"id": "c1", "userId": "u1", "nickname": "Min"}),
            ("rooms:list", []),
        ]

    @pytest.mark.asyncio
    async def test_defaults_applied_to_missing_claims(self, gateway, fake_transport):
        await _connect(gateway, fake_transport, "c1")

        event, data = fake_transport.frames["c1"][0]
        assert event == "connected"
        assert data == {"id": "c1", "userId": "c1", "nickname": "anonymous"}

    @pytest.mark.asyncio
    async def test_broadcast_during_connect_never_precedes_connected(
        self, gateway, fake_transport
    ):
        original_send = fake_transport.send

        async def send_with_concurrent_broadcast(connection_id, event, data):
            if event == "connected":
                await fake_transport.broadcast("rooms:list", ["from another handler"])
            await original_send(connection_id, event, data)

        with patch.object(fake_transport, "send", side_effect=send_with_concurrent_broadcast):
            await _connect(gateway, fake_transport, "c1", "u1", "Min")

        assert fake_transport.frames["c1"][0][0] == "connected"
        assert ("rooms:list", ["from another handler"]) not in fake_transport.frames["c1"]
        assert "c1" in fake_transport.audience

    @pytest.mark.asyncio
    async def test_room_list_failure_keeps_connection_usable(
        self, gateway, fake_transport, room_store, caplog
    ):
        failure = StorageReadError("redis.smembers")
        with patch.object(room_store, "list_rooms", AsyncMock(side_effect=failure)):
            with caplog.at_level(logging.ERROR):
                session = await _connect(gateway, fake_transport, "c1", "u1", "Min")

        assert session.user_id == "u1"
        assert [event for event, _ in fake_transport.frames["c1"]] == ["connected"]
        assert "Initial room list push failed" in caplog.text

        await gateway.dispatch("c1", "ping", "still here")
        assert fake_transport.last("c1")[0] == "pong"

    @pytest.mark.asyncio
    async def test_disconnect_drops_session_and_membership(
        self, gateway, fake_transport, sessions
    ):
        await _connect(gateway, fake_transport, "c1")
        await gateway.join_room("c1", {"roomId": "X"})

        await gateway.disconnect("c1")
        await gateway.disconnect("c1")

        assert "c1" not in sessions
        assert fake_transport.rooms["X"] == set()


@pytest.mark.unit
class TestHeartbeatAndListing:
    @pytest.mark.asyncio
    async def test_pong_echoes_payload(self, gateway, fake_transport):
        await _connect(gateway, fake_transport, "c1")

        with patch("relay_server.core.gateway.now_ms", return_value=1234):
            await gateway.heartbeat("c1", {"seq": 7})

        assert fake_transport.last("c1") == ("pong", {"at": 1234, "echo": {"seq": 7}})

    @pytest.mark.asyncio
    async def test_pong_without_payload(self, gateway, fake_transport):
        await _connect(gateway, fake_transport, "c1")
        await gateway.heartbeat("c1")
        assert fake_transport.last("c1")[1]["echo"] is None

    @pytest.mark.asyncio
    async def test_list_rooms_replies_to_caller(self, gateway, fake_transport, room_store):
        room = await room_store.create_room("Lobby", "u9", "Sora")
        await _connect(gateway, fake_transport, "c1")

        await gateway.list_rooms("c1")

        assert fake_transport.last("c1") == ("rooms:list", [room.to_payload()])


@pytest.mark.unit
class TestCreateRoom:
    @pytest.mark.asyncio
    async def test_created_unicast_and_listing_broadcast(self, gateway, fake_transport):
        await _connect(gateway, fake_transport, "c1", "u1", "Min")
        await _connect(gateway, fake_transport, "c2", "u2", "Aoi")

        await gateway.create_room("c1", {"name": "  Lobby "})

        created = fake_transport.events_for("c1", "rooms:created")
        assert len(created) == 1
        assert created[0]["name"] == "Lobby"
        assert created[0]["createdByUserId"] == "u1"
        assert created[0]["createdByNickname"] == "Min"
        assert fake_transport.events_for("c2", "rooms:created") == []

        # Both connections see the updated listing.
        assert fake_transport.events_for("c1", "rooms:list")[-1] == created
        assert fake_transport.events_for("c2", "rooms:list")[-1] == created

    @pytest.mark.asyncio
    @pytest.mark.parametrize("payload", [{"name": ""}, {"name": "   "}, {"name": 5}, {}, None, "x"])
    async def test_invalid_name_is_dropped(self, gateway, fake_transport, room_store, payload):
        await _connect(gateway, fake_transport, "c1")

        await gateway.create_room("c1", payload)

        assert await room_store.list_rooms() == []
        assert fake_transport.broadcasts == []

    @pytest.mark.asyncio
    async def test_unknown_connection_is_dropped(self, gateway, fake_transport, room_store):
        await gateway.create_room("ghost", {"name": "Lobby"})
        assert await room_store.list_rooms() == []


@pytest.mark.unit
class TestJoinRoom:
    @pytest.mark.asyncio
    async def test_join_existing_room_replays_history(self, gateway, fake_transport, room_store):
        room = await room_store.create_room("Lobby", "u1", "Min")
        await _connect(gateway, fake_transport, "c1")
        await gateway.join_room("c1", {"roomId": room.id})

        assert fake_transport.last("c1") == (
            "rooms:joined",
            {"room": room.to_payload(), "messages": []},
        )

    @pytest.mark.asyncio
    async def test_join_unknown_room_replies_with_null_room(self, gateway, fake_transport, sessions):
        await _connect(gateway, fake_transport, "c1")

        await gateway.join_room("c1", {"roomId": "does-not-exist"})

        assert fake_transport.last("c1") == ("rooms:joined", {"room": None, "messages": []})
        assert sessions.get("c1").current_room_id == "does-not-exist"

    @pytest.mark.asyncio
    async def test_joining_second_room_leaves_first(self, gateway, fake_transport, sessions):
        await _connect(gateway, fake_transport, "c1")

        await gateway.join_room("c1", {"roomId": "X"})
        await gateway.join_room("c1", {"roomId": "Y"})

        assert sessions.get("c1").current_room_id == "Y"
        assert "c1" not in fake_transport.rooms["X"]
        assert "c1" in fake_transport.rooms["Y"]

    @pytest.mark.asyncio
    async def test_rejoining_same_room_replays_again(self, gateway, fake_transport):
        await _connect(gateway, fake_transport, "c1")
        await gateway.join_room("c1", {"roomId": "X"})
        await gateway.join_room("c1", {"roomId": "X"})

        assert len(fake_transport.events_for("c1", "rooms:joined")) == 2
        assert "c1" in fake_transport.rooms["X"]

    @pytest.mark.asyncio
    async def test_replay_is_limited_and_oldest_first(self, sessions, room_store, pipeline, fake_transport):
        gateway = GatewayCoordinator(
            sessions=sessions,
            rooms=room_store,
            pipeline=pipeline,
            transport=fake_transport,
            replay_limit=2,
        )
        for n in range(3):
            await room_store.append_message(
                "X",
                ChatMessage(
                    room_id="X",
                    sender=Sender(user_id="u", nickname="n"),
                    at=n,
                    translations={"ko": str(n), "ja": str(n), "en": str(n)},
                ),
            )
        await _connect(gateway, fake_transport, "c1")

        await gateway.join_room("c1", {"roomId": "X"})

        _, data = fake_transport.last("c1")
        assert [m["at"] for m in data["messages"]] == [1, 2]

    @pytest.mark.asyncio
    @pytest.mark.parametrize("payload", [{"roomId": ""}, {"roomId": None}, {}, None])
    async def test_invalid_room_id_is_dropped(self, gateway, fake_transport, sessions, payload):
        await _connect(gateway, fake_transport, "c1")
        before = list(fake_transport.frames["c1"])

        await gateway.join_room("c1", payload)

        assert sessions.get("c1").current_room_id is None
        assert fake_transport.frames["c1"] == before


@pytest.mark.unit
class TestSendMessage:
    @pytest.mark.asyncio
    async def test_message_translated_stored_and_multicast(
        self, gateway, fake_transport, room_store
    ):
        await _connect(gateway, fake_transport, "c1", "u1", "Min")
        await _connect(gateway, fake_transport, "c2", "u2", "Aoi")
        await _connect(gateway, fake_transport, "c3", "u3", "Sam")
        await gateway.join_room("c1", {"roomId": "X"})
        await gateway.join_room("c2", {"roomId": "X"})
        await gateway.join_room("c3", {"roomId": "Y"})

        with patch("relay_server.core.gateway.now_ms", return_value=42):
            await gateway.send_message("c1", {"text": "  안녕  "})

        expected = {
            "roomId": "X",
            "from": {"userId": "u1", "nickname": "Min"},
            "at": 42,
            "translations": {"ko": "안녕", "ja": "[ja] 안녕", "en": "[en] 안녕"},
        }
        assert fake_transport.events_for("c1", "chat:message") == [expected]
        assert fake_transport.events_for("c2", "chat:message") == [expected]
        assert fake_transport.events_for("c3", "chat:message") == []

        stored = await room_store.get_messages("X")
        assert [m.to_payload() for m in stored] == [expected]

    @pytest.mark.asyncio
    async def test_send_without_room_is_dropped(
        self, gateway, fake_transport, room_store, fake_translator
    ):
        await _connect(gateway, fake_transport, "c1")

        await gateway.send_message("c1", {"text": "hello"})

        assert fake_transport.events_for("c1", "chat:message") == []
        assert fake_translator.calls == []

    @pytest.mark.asyncio
    @pytest.mark.parametrize("payload", [{"text": ""}, {"text": "  \n "}, {"text": 3}, {}, None])
    async def test_empty_text_is_dropped(
        self, gateway, fake_transport, room_store, fake_translator, payload
    ):
        await _connect(gateway, fake_transport, "c1")
        await gateway.join_room("c1", {"roomId": "X"})

        await gateway.send_message("c1", payload)

        assert await room_store.get_messages("X") == []
        assert fake_translator.calls == []

    @pytest.mark.asyncio
    async def test_sender_after_room_switch_only_reaches_new_room(self, gateway, fake_transport):
        await _connect(gateway, fake_transport, "c1")
        await _connect(gateway, fake_transport, "c2")
        await gateway.join_room("c2", {"roomId": "X"})
        await gateway.join_room("c1", {"roomId": "X"})
        await gateway.join_room("c1", {"roomId": "Y"})

        await gateway.send_message("c1", {"text": "hello"})

        assert fake_transport.events_for("c2", "chat:message") == []
        assert len(fake_transport.events_for("c1", "chat:message")) == 1

    @pytest.mark.asyncio
    async def test_jamo_only_message(self, gateway, fake_transport, fake_translator):
        await _connect(gateway, fake_transport, "c1")
        await gateway.join_room("c1", {"roomId": "X"})

        await gateway.send_message("c1", {"text": "ㅋㅋㅋ"})

        (message,) = fake_transport.events_for("c1", "chat:message")
        assert message["translations"] == {"ko": "ㅋㅋㅋ", "ja": "kkk", "en": "kkk"}
        assert fake_translator.calls == []


@pytest.mark.unit
class TestDispatch:
    @pytest.mark.asyncio
    async def test_routes_events_by_name(self, gateway, fake_transport):
        await _connect(gateway, fake_transport, "c1")

        await gateway.dispatch("c1", "rooms:create", {"name": "Lobby"})
        await gateway.dispatch("c1", "ping", 1)

        assert fake_transport.events_for("c1", "rooms:created")
        assert fake_transport.last("c1")[0] == "pong"

    @pytest.mark.asyncio
    @pytest.mark.parametrize("event", ["rooms:delete", "", None, 12])
    async def test_unknown_events_ignored(self, gateway, fake_transport, event):
        await _connect(gateway, fake_transport, "c1")
        before = list(fake_transport.frames["c1"])

        await gateway.dispatch("c1", event, {})

        assert fake_transport.frames["c1"] == before

    @pytest.mark.asyncio
    async def test_storage_failure_is_logged_and_dropped(
        self, gateway, fake_transport, room_store, caplog
    ):
        await _connect(gateway, fake_transport, "c1")
        await gateway.join_room("c1", {"roomId": "X"})
        failure = StorageWriteError("redis.push_capped", "chat:room:X:messages")

        with patch.object(room_store, "append_message", AsyncMock(side_effect=failure)):
            with caplog.at_level(logging.ERROR):
                await gateway.dispatch("c1", "chat:send", {"text": "hello"})

        assert fake_transport.events_for("c1", "chat:message") == []
        assert "Storage failure" in caplog.text

    @pytest.mark.asyncio
    async def test_unexpected_failure_is_logged_and_dropped(
        self, gateway, fake_transport, room_store, caplog
    ):
        await _connect(gateway, fake_transport, "c1")

        with patch.object(room_store, "create_room", AsyncMock(side_effect=KeyError("boom"))):
            with caplog.at_level(logging.ERROR):
                await gateway.dispatch("c1", "rooms:create", {"name": "Lobby"})

        assert "Handler for 'rooms:create' failed" in caplog.text
        await gateway.dispatch("c1", "ping")
        assert fake_transport.last("c1")[0] == "pong"
