"""
Adapter from a FastAPI WebSocket to the relay's Connection interface.
"""

from typing import Any, Dict, Union

from fastapi import WebSocket

from collab import AckResult, Connection

AckId = Union[str, int]


class WebSocketConnection(Connection):
    """Sends relay events as `{"event": ..., "data": ...}` JSON text frames."""

    def __init__(self, websocket: WebSocket, client_id: str):
        self._websocket = websocket
        self._id = client_id
        self._closed = False

    @property
    def id(self) -> str:
        return self._id

    @property
    def closed(self) -> bool:
        return self._closed

    def mark_closed(self) -> None:
        self._closed = True

    async def _send_frame(self, frame: Dict[str, Any]) -> None:
        if self._closed:
            raise ConnectionError("connection closed")
        try:
            await self._websocket.send_json(frame)
        except Exception:
            self._closed = True
            raise

    async def send(self, event: str, data: Any) -> None:
        await self._send_frame({"event": event, "data": data})

    async def send_ack(self, ack_id: AckId, result: AckResult) -> None:
        await self._send_frame({"event": "ack", "id": ack_id, "data": result.to_dict()})
