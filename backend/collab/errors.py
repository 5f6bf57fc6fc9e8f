"""
Failures a single relay request can end in.

Every failure is reported only to the connection that caused it; none of them
is fatal to the relay.
"""

from enum import Enum
from typing import Optional


class MutationStage(Enum):
    """Stage of a draw-event as it moves through the relay."""
    VALIDATING = "validating"
    PERSISTING = "persisting"
    FETCHING = "fetching"
    BROADCASTING = "broadcasting"
    DONE = "done"
    FAILED = "failed"


class RelayError(Exception):
    """
    Base class for request failures.

    `event` is the outbound event ("error" or "warning") the client receives.
    """
    event = "error"

    def __init__(self, message: str, stage: Optional[MutationStage] = None):
        super().__init__(message)
        self.message = message
        self.stage = stage


class RequestValidationError(RelayError):
    """Malformed or missing request fields. Raised before any external call."""

    def __init__(self, message: str):
        super().__init__(message, MutationStage.VALIDATING)


class PersistenceFailure(RelayError):
    """Append failed; nothing was stored, so nothing is broadcast."""

    def __init__(self, message: str):
        super().__init__(message, MutationStage.PERSISTING)


class RetrievalFailure(RelayError):
    """Fetch failed after the point was stored."""
    event = "warning"

    def __init__(self, message: str):
        super().__init__(message, MutationStage.FETCHING)


class NotFoundAnomaly(RelayError):
    """Fetch returned no blueprint right after a successful append."""
    event = "warning"

    def __init__(self, message: str = "Blueprint not found after persisting point"):
        super().__init__(message, MutationStage.FETCHING)
