"""
Typed request entities for the relay.

Inbound payloads arrive as untyped JSON; `parse_request` is the single place
that turns them into these models or rejects them with RequestValidationError.
"""

from dataclasses import dataclass
from typing import Any, Dict, Optional, Type, TypeVar, Union
from urllib.parse import quote

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from .errors import RequestValidationError


@dataclass(frozen=True)
class DocumentIdentity:
    """Identity of one blueprint: (author, name)."""
    author: str
    name: str

    @property
    def room_key(self) -> str:
        """
        Stable room identifier.

        Both parts are percent-encoded with no safe characters, so the
        separator never occurs inside them and distinct pairs never collide.
        """
        return f"room:{quote(self.author, safe='')}/{quote(self.name, safe='')}"


def room_key(author: str, name: str) -> str:
    return DocumentIdentity(author, name).room_key


class Point(BaseModel):
    """A drawing coordinate. Ints stay ints so the point is forwarded unchanged."""
    model_config = ConfigDict(allow_inf_nan=False)

    x: Union[int, float]
    y: Union[int, float]


class RoomRequest(BaseModel):
    """Payload of join-room and leave-room."""
    model_config = ConfigDict(str_strip_whitespace=True)

    author: str = Field(min_length=1)
    name: str = Field(min_length=1)

    @property
    def identity(self) -> DocumentIdentity:
        return DocumentIdentity(self.author, self.name)


class JoinRequest(RoomRequest):
    pass


class LeaveRequest(RoomRequest):
    pass


class DrawRequest(RoomRequest):
    """Payload of draw-event."""
    point: Point


class AckResult(BaseModel):
    """Acknowledgment delivered to a caller that asked for one."""
    ok: bool
    message: Optional[str] = None

    @classmethod
    def success(cls) -> "AckResult":
        return cls(ok=True)

    @classmethod
    def failure(cls, message: str) -> "AckResult":
        return cls(ok=False, message=message)

    def to_dict(self) -> Dict[str, Any]:
        return self.model_dump(exclude_none=True)


RequestT = TypeVar("RequestT", bound=RoomRequest)


def parse_request(event: str, model: Type[RequestT], payload: Any) -> RequestT:
    """
    Validate an inbound payload against a request model.

    Raises:
        RequestValidationError: naming the missing or invalid fields,
            e.g. "draw-event: missing point"
    """
    if not isinstance(payload, dict):
        fields = ", ".join(model.model_fields)
        raise RequestValidationError(f"{event}: missing {fields}")

    try:
        return model.model_validate(payload)
    except ValidationError as e:
        missing = []
        invalid = []
        for error in e.errors():
            field = str(error["loc"][0]) if error["loc"] else "payload"
            is_missing = error["type"] in ("missing", "string_too_short") or payload.get(field) is None
            bucket = missing if is_missing else invalid
            if field not in bucket:
                bucket.append(field)
        parts = []
        if missing:
            parts.append(f"missing {', '.join(missing)}")
        if invalid:
            parts.append(f"invalid {', '.join(invalid)}")
        raise RequestValidationError(f"{event}: {'; '.join(parts)}") from e
