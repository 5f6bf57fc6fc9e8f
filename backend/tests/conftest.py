import pytest
import sys
import os
from typing import Any, List, Tuple

# Add the parent directory to Python path so we can import backend modules
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from collab import Connection, RoomRegistry


class RecordingConnection(Connection):
    """Connection that records every event it is sent."""
    closed = False

    def __init__(self, client_id: str, fail: bool = False):
        self._id = client_id
        self.fail = fail
        self.sent: List[Tuple[str, Any]] = []

    @property
    def id(self) -> str:
        return self._id

    async def send(self, event: str, data: Any) -> None:
        if self.fail:
            raise ConnectionError("socket gone")
        self.sent.append((event, data))

    def events(self, name: str) -> List[Any]:
        return [data for event, data in self.sent if event == name]


@pytest.fixture
def registry():
    return RoomRegistry()


@pytest.fixture
def make_connection():
    def factory(client_id: str, fail: bool = False) -> RecordingConnection:
        return RecordingConnection(client_id, fail=fail)
    return factory
