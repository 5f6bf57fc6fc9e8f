"""WebSocket transport for the blueprints relay."""
from .connection import WebSocketConnection
from .gateway import relay_endpoint

__all__ = ["WebSocketConnection", "relay_endpoint"]
