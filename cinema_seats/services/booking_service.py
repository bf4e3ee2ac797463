"""
Booking service
Marks requested seats taken, fans the changes out on the change feed and
notifies the configured webhook.
"""

from typing import List, Optional
import logging

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from cinema_seats.config import settings
from cinema_seats.core.database import db_manager, DatabaseManager
from cinema_seats.core.exceptions import BookingError, CinemaSeatsException, NotFoundError, ValidationError
from cinema_seats.core.metrics import BOOKINGS, SEATS_BOOKED
from cinema_seats.models.seat import Seat
from cinema_seats.schemas.booking import BookingRequest, BookingResponse, SeatBookingItem
from cinema_seats.schemas.seat import SeatChangeEvent
from cinema_seats.services.change_feed import seat_change_feed, SeatChangeFeed
from cinema_seats.services.webhook_service import WebhookService, get_webhook_service

logger = logging.getLogger(__name__)


class BookingService:
    """
    Applies a booking batch inside one transaction.

    No availability check is made: a seat that is already taken is simply
    overwritten, so two racing bookings of the same seat both succeed and
    the later commit decides ``booked_by``.
    """

    def __init__(
        self,
        feed: SeatChangeFeed = seat_change_feed,
        webhook: Optional[WebhookService] = None,
        database: DatabaseManager = db_manager,
        max_seats: int = settings.MAX_SEATS_PER_BOOKING
    ):
        self.feed = feed
        self.webhook = webhook or get_webhook_service()
        self.db_manager = database
        self.max_seats = max_seats

    async def _mark_taken(self, db: AsyncSession, item: SeatBookingItem) -> SeatChangeEvent:
        stmt = (
            select(Seat)
            .where(
                Seat.row_label == item.row_label,
                Seat.seat_number == item.seat_number
            )
            .with_for_update()
        )
        result = await db.execute(stmt)
        seat = result.scalar_one_or_none()
        if seat is None:
            raise NotFoundError("Seat", item.label)

        seat.is_taken = True
        seat.booked_by = item.name
        await db.flush()

        return SeatChangeEvent.updated(seat)

    async def book_seats(self, db: AsyncSession, request: BookingRequest) -> BookingResponse:
        seats = request.seats
        if len(seats) > self.max_seats:
            raise ValidationError(
                f"At most {self.max_seats} seats can be booked at once",
                field="seats"
            )
        logger.info(f"Booking request received for seats {[s.label for s in seats]}")

        try:
            async with self.db_manager.transaction(db):
                events: List[SeatChangeEvent] = []
                for item in seats:
                    events.append(await self._mark_taken(db, item))
        except CinemaSeatsException:
            BOOKINGS.labels(outcome="failed").inc()
            raise
        except SQLAlchemyError as e:
            BOOKINGS.labels(outcome="failed").inc()
            logger.error(f"Error booking seats: {type(e).__name__}: {e}")
            raise BookingError(
                "Failed to update seats",
                details={"seats": [s.label for s in seats]}
            ) from e

        BOOKINGS.labels(outcome="succeeded").inc()
        SEATS_BOOKED.inc(len(seats))
        logger.info(f"Booked {len(seats)} seats")

        await self.feed.publish_many(events)
        await self.webhook.notify_seats_booked(seats)

        return BookingResponse(success=True, booked_seats=len(seats))


def get_booking_service() -> BookingService:
    return BookingService()
