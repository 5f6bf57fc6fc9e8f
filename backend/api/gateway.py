"""
WebSocket gateway for the blueprints relay.

Frames:
- inbound:  {"event": "join-room" | "draw-event" | "leave-room", "data": {...}, "ack": <optional id>}
- outbound: {"event": "blueprint-update" | "warning" | "error", "data": ...}
- acks:     {"event": "ack", "id": <id>, "data": {"ok": bool, "message"?: str}}

Only draw-event (and unknown events) are acknowledged; an ack id on
join-room or leave-room is ignored.

Every inbound event runs in its own task, so a slow persistence call never
holds up the rest of the connection's events. Tasks still running when the
client goes away are left to finish; their deliveries just fail.
"""

import asyncio
import json
import logging
import uuid
from typing import Any, Set

from fastapi import WebSocket

from collab import AckResult, RoomRegistry, SessionCoordinator
from collab.session import ERROR, resolve_ack
from storage import BlueprintStore
from .connection import WebSocketConnection

logger = logging.getLogger(__name__)

JOIN_ROOM = "join-room"
DRAW_EVENT = "draw-event"
LEAVE_ROOM = "leave-room"


async def dispatch(coordinator: SessionCoordinator, frame: Any) -> None:
    """Route one decoded frame to the coordinator and send its ack, if requested."""
    connection = coordinator.connection
    registry = coordinator.registry

    if not isinstance(frame, dict) or not isinstance(frame.get("event"), str):
        await registry.send_to(connection, ERROR, {"message": "frame must be an object with an event name"})
        return

    event = frame["event"]
    data = frame.get("data")
    ack_id = frame.get("ack")
    # join-room and leave-room are never acknowledged
    wants_ack = ack_id is not None and event not in (JOIN_ROOM, LEAVE_ROOM)
    ack = asyncio.get_running_loop().create_future() if wants_ack else None

    if event == JOIN_ROOM:
        await coordinator.join(data)
    elif event == DRAW_EVENT:
        await coordinator.draw(data, ack)
    elif event == LEAVE_ROOM:
        coordinator.leave(data)
    else:
        message = f"unknown event: {event}"
        resolve_ack(ack, AckResult.failure(message))
        await registry.send_to(connection, ERROR, {"message": message})

    if ack is not None and ack.done():
        try:
            await connection.send_ack(ack_id, ack.result())
        except Exception as e:
            logger.warning(f"Ack {ack_id} to {connection.id} failed: {e}")


async def relay_endpoint(websocket: WebSocket, registry: RoomRegistry, store: BlueprintStore) -> None:
    """Serve one client connection until it disconnects."""
    await websocket.accept()

    client_id = websocket.query_params.get("clientId") or uuid.uuid4().hex
    connection = WebSocketConnection(websocket, client_id)
    coordinator = SessionCoordinator(connection, registry, store)
    logger.info(f"Client connected: {client_id}")

    # Strong references keep in-flight handlers from being garbage-collected
    tasks: Set[asyncio.Task] = set()
    reason = "closed"
    try:
        while True:
            message = await websocket.receive()
            if message["type"] == "websocket.disconnect":
                reason = f"code {message.get('code', 1000)}"
                break

            # Binary frames are accepted when they carry UTF-8 JSON
            raw = message.get("text")
            if raw is None:
                raw = message.get("bytes") or b""
            try:
                if isinstance(raw, bytes):
                    raw = raw.decode("utf-8")
                frame = json.loads(raw)
            except ValueError:
                await registry.send_to(connection, ERROR, {"message": "frame is not valid JSON"})
                continue

            task = asyncio.create_task(dispatch(coordinator, frame))
            tasks.add(task)
            task.add_done_callback(tasks.discard)
    finally:
        connection.mark_closed()
        coordinator.disconnect()
        logger.info(f"Client disconnected: {client_id} ({reason})")
