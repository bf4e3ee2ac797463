"""
Seat schemas for responses and change feed events
"""

from typing import Optional, Tuple
import uuid
import enum

from pydantic import BaseModel, Field, model_validator

from cinema_seats.schemas.base import BaseSchema


class SeatResponse(BaseSchema):
    id: uuid.UUID
    row_label: str = Field(..., min_length=1, max_length=10)
    seat_number: int = Field(..., gt=0)
    is_taken: bool = False
    booked_by: Optional[str] = None

    @property
    def label(self) -> str:
        return f"{self.row_label}{self.seat_number}"

    @property
    def sort_key(self) -> Tuple[str, int]:
        return (self.row_label, self.seat_number)


class ChangeType(str, enum.Enum):
    INSERT = "INSERT"
    UPDATE = "UPDATE"
    DELETE = "DELETE"


class SeatKey(BaseModel):
    id: uuid.UUID


class SeatChangeEvent(BaseModel):
    """
    Row-level change notification for the seats table.

    INSERT and UPDATE carry the full row in ``new``; DELETE carries only the
    id of the removed row in ``old``.
    """
    eventType: ChangeType
    new: Optional[SeatResponse] = None
    old: Optional[SeatKey] = None

    @model_validator(mode="after")
    def check_payload(self):
        if self.eventType in (ChangeType.INSERT, ChangeType.UPDATE) and self.new is None:
            raise ValueError(f"{self.eventType.value} event requires 'new'")
        if self.eventType == ChangeType.DELETE and self.old is None:
            raise ValueError("DELETE event requires 'old'")
        return self

    @property
    def seat_id(self) -> uuid.UUID:
        if self.new is not None:
            return self.new.id
        return self.old.id

    @classmethod
    def updated(cls, seat) -> "SeatChangeEvent":
        return cls(eventType=ChangeType.UPDATE, new=SeatResponse.model_validate(seat))

    @classmethod
    def inserted(cls, seat) -> "SeatChangeEvent":
        return cls(eventType=ChangeType.INSERT, new=SeatResponse.model_validate(seat))

    @classmethod
    def deleted(cls, seat_id: uuid.UUID) -> "SeatChangeEvent":
        return cls(eventType=ChangeType.DELETE, old=SeatKey(id=seat_id))

    def to_json(self) -> str:
        return self.model_dump_json(exclude_none=True)
