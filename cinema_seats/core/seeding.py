"""
Seat provisioning
Seats are created out of band, before the booking API is used.
"""

from typing import Dict, List, Optional
from uuid import uuid4
import logging

from sqlalchemy import delete, select, func
from sqlalchemy.ext.asyncio import AsyncSession

from cinema_seats.core.database import db_manager
from cinema_seats.models.seat import Seat
from cinema_seats.schemas.seat import SeatChangeEvent
from cinema_seats.services.change_feed import seat_change_feed, SeatChangeFeed

logger = logging.getLogger(__name__)

# Row label -> number of seats. Back rows have an extra block past seat 19.
DEFAULT_LAYOUT: Dict[str, int] = {
    **{row: 19 for row in "ABCDEFGH"},
    "I": 23,
    "J": 23,
}


def build_seats(layout: Dict[str, int]) -> List[Seat]:
    seats = []
    for row_label, count in layout.items():
        if count < 1:
            raise ValueError(f"Row {row_label} needs at least one seat")
        for seat_number in range(1, count + 1):
            seats.append(Seat(
                id=uuid4(),
                row_label=row_label,
                seat_number=seat_number,
                is_taken=False,
                booked_by=None
            ))
    return seats


async def count_seats(session: AsyncSession) -> int:
    result = await session.execute(select(func.count(Seat.id)))
    return result.scalar_one()


async def provision_seats(
    session: AsyncSession,
    layout: Optional[Dict[str, int]] = None,
    feed: Optional[SeatChangeFeed] = None
) -> List[Seat]:
    """Insert free seats for the layout and announce them on the feed"""
    seats = build_seats(layout or DEFAULT_LAYOUT)

    async with db_manager.transaction(session):
        session.add_all(seats)
        events = [SeatChangeEvent.inserted(seat) for seat in seats]

    if feed is not None:
        await feed.publish_many(events)

    logger.info(f"Provisioned {len(seats)} seats in {len(layout or DEFAULT_LAYOUT)} rows")
    return seats


async def clear_seats(session: AsyncSession, feed: Optional[SeatChangeFeed] = None) -> int:
    """Delete every seat, announcing each removal on the feed"""
    async with db_manager.transaction(session):
        result = await session.execute(select(Seat.id))
        seat_ids = list(result.scalars().all())
        await session.execute(delete(Seat))

    if feed is not None:
        await feed.publish_many(SeatChangeEvent.deleted(seat_id) for seat_id in seat_ids)

    logger.info(f"Removed {len(seat_ids)} seats")
    return len(seat_ids)


async def seed_if_empty(
    session: AsyncSession,
    layout: Optional[Dict[str, int]] = None,
    feed: Optional[SeatChangeFeed] = seat_change_feed
) -> int:
    """Provision the default layout only if the seats table is empty"""
    existing = await count_seats(session)
    # count_seats autobegins a transaction; close it before provisioning
    await session.rollback()
    if existing:
        logger.info(f"Seats table already contains {existing} seats, skipping seeding")
        return 0

    seats = await provision_seats(session, layout, feed=feed)
    return len(seats)
