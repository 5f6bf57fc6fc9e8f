"""
Real-time collaboration relay for blueprints.

This module provides:
- RoomRegistry: maps blueprint rooms to subscribed connections and fans out updates
- SessionCoordinator: per-connection join/draw/leave handling
- Request models and the relay's error taxonomy
"""

from .errors import (
    MutationStage,
    NotFoundAnomaly,
    PersistenceFailure,
    RelayError,
    RequestValidationError,
    RetrievalFailure,
)
from .models import AckResult, DocumentIdentity, DrawRequest, JoinRequest, LeaveRequest, Point, room_key
from .rooms import Connection, RoomRegistry
from .session import SessionCoordinator

__all__ = [
    'AckResult',
    'Connection',
    'DocumentIdentity',
    'DrawRequest',
    'JoinRequest',
    'LeaveRequest',
    'MutationStage',
    'NotFoundAnomaly',
    'PersistenceFailure',
    'Point',
    'RelayError',
    'RequestValidationError',
    'RetrievalFailure',
    'RoomRegistry',
    'SessionCoordinator',
    'room_key',
]
