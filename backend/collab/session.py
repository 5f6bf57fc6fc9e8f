"""
Session coordinator - per-connection handling of join, draw and leave requests.

A draw-event moves through a fixed pipeline:

    VALIDATING -> PERSISTING -> FETCHING -> BROADCASTING -> DONE

Any stage before BROADCASTING may end the request in FAILED instead. A failed
request is always reported to its sender and is never broadcast. Nothing is
retried; the sender sees `ok: false` and decides.
"""

import asyncio
import logging
from typing import Any, Optional

from storage import BlueprintStore, BlueprintStoreException
from .errors import (
    MutationStage,
    NotFoundAnomaly,
    PersistenceFailure,
    RelayError,
    RetrievalFailure,
)
from .models import AckResult, DrawRequest, JoinRequest, LeaveRequest, parse_request
from .rooms import Connection, RoomRegistry

logger = logging.getLogger(__name__)

BLUEPRINT_UPDATE = "blueprint-update"
WARNING = "warning"
ERROR = "error"

# Acknowledgment sink: the caller may or may not supply one
Ack = Optional["asyncio.Future[AckResult]"]


def resolve_ack(ack: Ack, result: AckResult) -> None:
    """Complete an acknowledgment if the caller supplied one."""
    if ack is not None and not ack.done():
        ack.set_result(result)


class SessionCoordinator:
    """
    Request handling for one connection.

    The registry and store are shared by every coordinator; the coordinator
    itself only holds the connection it serves.
    """

    def __init__(self, connection: Connection, registry: RoomRegistry, store: BlueprintStore):
        self.connection = connection
        self.registry = registry
        self.store = store

    async def _emit(self, event: str, data: Any) -> None:
        await self.registry.send_to(self.connection, event, data)

    async def join(self, payload: Any) -> None:
        """
        Subscribe the connection to a blueprint room and send it the current state.

        If the blueprint can't be fetched the join still stands; the client
        only gets a warning.
        """
        try:
            request = parse_request("join-room", JoinRequest, payload)
        except RelayError as e:
            await self._emit(ERROR, {"message": e.message})
            return

        try:
            # Disconnect may already have run for this connection
            if self.connection.closed:
                return
            identity = request.identity
            self.registry.join(identity.room_key, self.connection)
            logger.info(f"{self.connection.id} joined {identity.room_key}")

            try:
                blueprint = await self.store.fetch_blueprint(identity.author, identity.name)
            except BlueprintStoreException as e:
                logger.warning(f"Could not fetch blueprint on join: {e}")
                await self._emit(WARNING, {"message": "Could not fetch blueprint state from API"})
                return

            if blueprint is not None:
                await self._emit(BLUEPRINT_UPDATE, blueprint)
        except Exception:
            logger.exception("join-room error")
            await self._emit(ERROR, {"message": "Internal error on join-room"})

    async def draw(self, payload: Any, ack: Ack = None) -> MutationStage:
        """
        Persist a point, re-fetch the blueprint and broadcast it to the room.

        Returns:
            The terminal stage, DONE or FAILED
        """
        stage = MutationStage.VALIDATING
        try:
            request = parse_request("draw-event", DrawRequest, payload)
            identity = request.identity
            point = request.point.model_dump()

            stage = MutationStage.PERSISTING
            try:
                await self.store.append_point(identity.author, identity.name, point)
            except BlueprintStoreException as e:
                raise PersistenceFailure(f"Failed to persist point: {e}") from e

            stage = MutationStage.FETCHING
            try:
                blueprint = await self.store.fetch_blueprint(identity.author, identity.name)
            except BlueprintStoreException as e:
                raise RetrievalFailure(f"Failed to fetch updated blueprint: {e}") from e
            if blueprint is None:
                raise NotFoundAnomaly()

            # The sender gets the broadcast too, so its canvas is redrawn from
            # the stored state rather than its local one.
            stage = MutationStage.BROADCASTING
            await self.registry.broadcast(identity.room_key, BLUEPRINT_UPDATE, blueprint)

            resolve_ack(ack, AckResult.success())
            return MutationStage.DONE
        except RelayError as e:
            log = logger.warning if e.event == WARNING else logger.error
            log(f"draw-event failed while {(e.stage or stage).value}: {e.message}")
            resolve_ack(ack, AckResult.failure(e.message))
            await self._emit(e.event, {"message": e.message})
            return MutationStage.FAILED
        except Exception:
            logger.exception(f"draw-event handler error while {stage.value}")
            resolve_ack(ack, AckResult.failure("Internal server error"))
            await self._emit(ERROR, {"message": "Internal server error handling draw-event"})
            return MutationStage.FAILED

    def leave(self, payload: Any) -> None:
        """Unsubscribe from a room. Invalid payloads are ignored."""
        try:
            request = parse_request("leave-room", LeaveRequest, payload)
        except RelayError:
            return
        room_key = request.identity.room_key
        self.registry.leave(room_key, self.connection)
        logger.info(f"{self.connection.id} left {room_key}")

    def disconnect(self) -> None:
        """Drop the connection from every room it joined."""
        rooms = self.registry.remove_connection_everywhere(self.connection)
        logger.info(f"{self.connection.id} removed from {len(rooms)} room(s)")
