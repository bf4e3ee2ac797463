"""
Seat read and change feed endpoints
"""

from typing import Any, List
import logging

from fastapi import APIRouter, Depends, Request
from fastapi.responses import StreamingResponse
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from cinema_seats.config import settings
from cinema_seats.core.database import get_session
from cinema_seats.models.seat import Seat
from cinema_seats.schemas.seat import SeatResponse
from cinema_seats.services.change_feed import (
    KEEPALIVE_FRAME,
    SeatChangeFeed,
    encode_sse,
    seat_change_feed
)

logger = logging.getLogger(__name__)
router = APIRouter()


def get_change_feed() -> SeatChangeFeed:
    return seat_change_feed


@router.get("/", response_model=List[SeatResponse])
async def list_seats(
    db: AsyncSession = Depends(get_session)
) -> Any:
    """
    All seats ordered by row label, then seat number
    """
    result = await db.execute(
        select(Seat).order_by(Seat.row_label, Seat.seat_number)
    )
    return result.scalars().all()


@router.get("/stream")
async def stream_seat_changes(
    request: Request,
    feed: SeatChangeFeed = Depends(get_change_feed)
) -> StreamingResponse:
    """
    Server-Sent Events stream of seat INSERT/UPDATE/DELETE events.
    Only changes committed after the client connects are delivered.
    """
    async def event_stream():
        events = feed.listen(idle_timeout=settings.SSE_KEEPALIVE_SECONDS)
        try:
            async for event in events:
                if await request.is_disconnected():
                    break
                yield KEEPALIVE_FRAME if event is None else encode_sse(event)
        finally:
            await events.aclose()
            logger.info("Seat change stream closed")

    return StreamingResponse(
        event_stream(),
        media_type="text/event-stream",
        headers={"Cache-Control": "no-cache", "X-Accel-Buffering": "no"}
    )
