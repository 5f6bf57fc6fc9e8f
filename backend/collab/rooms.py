"""
Room registry - maps blueprint rooms to the connections subscribed to them.

All mutations are synchronous and run on the event loop thread, so they never
interleave with each other. Broadcast snapshots the member set before its
first await, so joins and leaves during delivery don't affect it.
"""

import asyncio
import logging
from abc import ABC, abstractmethod
from typing import Any, Dict, Set

logger = logging.getLogger(__name__)


class Connection(ABC):
    """One live client session, as seen by the relay core."""

    @property
    @abstractmethod
    def id(self) -> str:
        """Unique connection identifier."""
        pass

    @property
    def closed(self) -> bool:
        """True once the transport has gone away."""
        return False

    @abstractmethod
    async def send(self, event: str, data: Any) -> None:
        """Deliver one event to the client. May raise if the client is gone."""
        pass

    def __repr__(self) -> str:
        return f"<{self.__class__.__name__} {self.id}>"


class RoomRegistry:
    """
    Process-wide room membership.

    Keeps a reverse index (connection -> rooms) so dropping a disconnected
    connection only touches the rooms it actually joined.
    """

    def __init__(self):
        # room_key -> connections subscribed to it
        self._rooms: Dict[str, Set[Connection]] = {}
        # connection -> room_keys it has joined
        self._memberships: Dict[Connection, Set[str]] = {}

    def join(self, room_key: str, connection: Connection) -> None:
        """Add a connection to a room. Joining twice is a no-op."""
        self._rooms.setdefault(room_key, set()).add(connection)
        self._memberships.setdefault(connection, set()).add(room_key)

    def leave(self, room_key: str, connection: Connection) -> None:
        """Remove a connection from a room, if it is there."""
        members = self._rooms.get(room_key)
        if members is not None:
            members.discard(connection)
            if not members:
                del self._rooms[room_key]

        rooms = self._memberships.get(connection)
        if rooms is not None:
            rooms.discard(room_key)
            if not rooms:
                del self._memberships[connection]

    def remove_connection_everywhere(self, connection: Connection) -> Set[str]:
        """Drop a connection from every room it joined. Returns those room keys."""
        rooms = self._memberships.pop(connection, set())
        for room_key in rooms:
            members = self._rooms.get(room_key)
            if members is None:
                continue
            members.discard(connection)
            if not members:
                del self._rooms[room_key]
        return rooms

    def members(self, room_key: str) -> Set[Connection]:
        """Snapshot of a room's members."""
        return set(self._rooms.get(room_key, ()))

    def rooms_of(self, connection: Connection) -> Set[str]:
        """Snapshot of the rooms a connection has joined."""
        return set(self._memberships.get(connection, ()))

    def active_rooms(self) -> Dict[str, int]:
        """Get all non-empty rooms with their member counts."""
        return {room: len(members) for room, members in self._rooms.items()}

    async def send_to(self, connection: Connection, event: str, payload: Any) -> bool:
        """
        Deliver an event to one connection.

        A failing connection is logged and skipped, never raised to the caller.
        """
        try:
            await connection.send(event, payload)
            return True
        except Exception as e:
            logger.warning(f"Delivery of {event} to {connection.id} failed: {e}")
            return False

    async def broadcast(self, room_key: str, event: str, payload: Any) -> int:
        """
        Deliver the same payload to every member of a room, sender included.

        Returns:
            Number of members the event was delivered to
        """
        targets = list(self._rooms.get(room_key, ()))
        if not targets:
            return 0

        results = await asyncio.gather(
            *(self.send_to(connection, event, payload) for connection in targets)
        )
        delivered = sum(1 for ok in results if ok)
        logger.debug(f"Broadcast {event} to {room_key}: {delivered}/{len(targets)} delivered")
        return delivered
