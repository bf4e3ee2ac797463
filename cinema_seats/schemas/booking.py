"""
Booking schemas for request/response models
"""

from typing import List

from pydantic import BaseModel, ConfigDict, Field, AliasChoices, field_validator


class SeatBookingItem(BaseModel):
    """One seat of a booking request, addressed by row and number"""
    model_config = ConfigDict(populate_by_name=True)

    row_label: str = Field(
        ...,
        min_length=1,
        max_length=10,
        validation_alias=AliasChoices("seat_row", "row_label"),
        serialization_alias="seat_row",
    )
    seat_number: int = Field(..., gt=0)
    name: str = Field(..., max_length=255)

    @field_validator("row_label")
    @classmethod
    def strip_row(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("seat_row must not be blank")
        return v

    @field_validator("name")
    @classmethod
    def strip_name(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("name must not be blank")
        return v

    @property
    def label(self) -> str:
        return f"{self.row_label}{self.seat_number}"


class BookingRequest(BaseModel):
    seats: List[SeatBookingItem] = Field(..., min_length=1)


class BookingResponse(BaseModel):
    success: bool = True
    booked_seats: int


class WebhookSeat(BaseModel):
    seat: str
    name: str


class WebhookPayload(BaseModel):
    event: str = "seats_booked"
    timestamp: str
    seats: List[WebhookSeat]
