"""
Pydantic schemas for request and response validation
"""

from cinema_seats.schemas.seat import (
    SeatResponse,
    SeatChangeEvent,
    ChangeType,
    SeatKey
)
from cinema_seats.schemas.booking import (
    SeatBookingItem,
    BookingRequest,
    BookingResponse,
    WebhookPayload,
    WebhookSeat
)
from cinema_seats.schemas.response import (
    ErrorDetail,
    ErrorResponse,
    HealthResponse
)

__all__ = [
    "SeatResponse",
    "SeatChangeEvent",
    "ChangeType",
    "SeatKey",
    "SeatBookingItem",
    "BookingRequest",
    "BookingResponse",
    "WebhookPayload",
    "WebhookSeat",
    "ErrorDetail",
    "ErrorResponse",
    "HealthResponse"
]
