"""End-to-end tests for the WebSocket gateway using an in-memory store."""
import pytest
from fastapi.testclient import TestClient

from collab import RoomRegistry, room_key
from main import build_store, create_app
from storage import MemoryBlueprintStore


@pytest.fixture
def client():
    app = create_app(store=MemoryBlueprintStore(), registry=RoomRegistry())
    with TestClient(app) as test_client:
        yield test_client


def join(ws, author="alice", name="plano1"):
    ws.send_json({"event": "join-room", "data": {"author": author, "name": name}})


def draw(ws, x, y, ack=1, author="alice", name="plano1"):
    ws.send_json({
        "event": "draw-event",
        "data": {"author": author, "name": name, "point": {"x": x, "y": y}},
        "ack": ack,
    })


def receive(ws, count):
    """Receive `count` frames, keyed by event name."""
    frames = {}
    for _ in range(count):
        frame = ws.receive_json()
        frames[frame["event"]] = frame
    return frames


def test_health(client):
    response = client.get("/health")

    assert response.status_code == 200
    assert response.json() == {"status": "healthy", "service": "blueprints-relay", "store": "memory"}


def test_draw_is_broadcast_and_acknowledged(client):
    with client.websocket_connect("/ws?clientId=alice-tab") as alice:
        join(alice)
        draw(alice, 10, 20)

        frames = receive(alice, 2)

        assert frames["ack"] == {"event": "ack", "id": 1, "data": {"ok": True}}
        assert frames["blueprint-update"]["data"] == {
            "author": "alice",
            "name": "plano1",
            "points": [{"x": 10, "y": 20}],
        }
        point = frames["blueprint-update"]["data"]["points"][0]
        assert type(point["x"]) is int


def test_late_joiner_gets_state_then_updates(client):
    with client.websocket_connect("/ws") as alice, client.websocket_connect("/ws") as bob:
        join(alice)
        draw(alice, 1, 2, ack="first")
        receive(alice, 2)

        join(bob)
        initial = bob.receive_json()
        assert initial["event"] == "blueprint-update"
        assert len(initial["data"]["points"]) == 1

        assert client.get("/api/rooms").json() == {room_key("alice", "plano1"): 2}

        draw(alice, 3, 4, ack="second")
        alice_frames = receive(alice, 2)
        bob_update = bob.receive_json()

        assert alice_frames["ack"]["id"] == "second"
        assert bob_update["event"] == "blueprint-update"
        assert bob_update["data"] == alice_frames["blueprint-update"]["data"]
        assert len(bob_update["data"]["points"]) == 2


def test_missing_point_gets_error_and_failed_ack(client):
    with client.websocket_connect("/ws") as bob:
        bob.send_json({"event": "draw-event", "data": {"author": "alice", "name": "plano1"}, "ack": 7})

        frames = receive(bob, 2)

        assert frames["error"]["data"] == {"message": "draw-event: missing point"}
        assert frames["ack"] == {
            "event": "ack",
            "id": 7,
            "data": {"ok": False, "message": "draw-event: missing point"},
        }


def test_unknown_event(client):
    with client.websocket_connect("/ws") as ws:
        ws.send_json({"event": "erase-everything", "data": {}, "ack": 3})

        frames = receive(ws, 2)

        assert frames["error"]["data"] == {"message": "unknown event: erase-everything"}
        assert frames["ack"]["data"]["ok"] is False


def test_malformed_frames_keep_connection_open(client):
    with client.websocket_connect("/ws") as ws:
        ws.send_text("not json")
        assert ws.receive_json() == {"event": "error", "data": {"message": "frame is not valid JSON"}}

        ws.send_json(["join-room"])
        assert ws.receive_json()["event"] == "error"

        ws.send_bytes(b"\xff\xfe not utf-8")
        assert ws.receive_json() == {"event": "error", "data": {"message": "frame is not valid JSON"}}

        join(ws)
        draw(ws, 5, 5)
        assert set(receive(ws, 2)) == {"ack", "blueprint-update"}


def test_unsupported_store_kind():
    with pytest.raises(ValueError, match="Unsupported BLUEPRINT_STORE"):
        build_store("ftp")


def test_binary_json_frame_is_handled(client):
    with client.websocket_connect("/ws") as ws:
        ws.send_bytes(b'{"event": "join-room", "data": {"author": "alice", "name": "plano1"}}')
        draw(ws, 1, 1)

        assert set(receive(ws, 2)) == {"ack", "blueprint-update"}


def test_join_and_leave_are_not_acknowledged(client):
    with client.websocket_connect("/ws") as ws:
        ws.send_json({"event": "join-room", "data": {"author": "alice", "name": "plano1"}, "ack": "join"})
        ws.send_json({"event": "leave-room", "data": {"author": "alice", "name": "plano1"}, "ack": "leave"})
        join(ws)
        draw(ws, 2, 3, ack="draw")

        frames = [ws.receive_json(), ws.receive_json()]

        acks = [frame["id"] for frame in frames if frame["event"] == "ack"]
        assert acks == ["draw"]
