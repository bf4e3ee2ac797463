"""
Booking endpoint
"""

from typing import Any

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from cinema_seats.core.database import get_session
from cinema_seats.schemas.booking import BookingRequest, BookingResponse
from cinema_seats.schemas.response import ErrorResponse
from cinema_seats.services.booking_service import BookingService, get_booking_service

router = APIRouter()


@router.post(
    "/book-seats",
    response_model=BookingResponse,
    responses={
        400: {"model": ErrorResponse},
        404: {"model": ErrorResponse},
        500: {"model": ErrorResponse},
    }
)
async def book_seats(
    booking: BookingRequest,
    db: AsyncSession = Depends(get_session),
    service: BookingService = Depends(get_booking_service)
) -> Any:
    """
    Mark the requested seats taken and notify the booking webhook.
    The batch is all-or-nothing; webhook delivery does not affect the result.
    """
    return await service.book_seats(db, booking)
