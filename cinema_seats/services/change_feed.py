"""
Seat change feed
Publishes row-level seat changes on a Redis channel and replays them to
subscribers. Only events published after a subscription starts are seen.
"""

from typing import AsyncIterator, Iterable, Optional
import logging

from pydantic import ValidationError as PydanticValidationError

from cinema_seats.config import settings
from cinema_seats.core.metrics import FEED_PUBLISH_FAILURES
from cinema_seats.core.redis import redis_manager, RedisManager
from cinema_seats.schemas.seat import SeatChangeEvent

logger = logging.getLogger(__name__)

KEEPALIVE_FRAME = ": keep-alive\n\n"


def encode_sse(event: SeatChangeEvent) -> str:
    """Render one event as a Server-Sent Events frame"""
    return f"data: {event.to_json()}\n\n"


def decode_event(data) -> Optional[SeatChangeEvent]:
    """Parse a published message, returning None for anything malformed"""
    if isinstance(data, bytes):
        data = data.decode("utf-8")
    try:
        return SeatChangeEvent.model_validate_json(data)
    except PydanticValidationError as e:
        logger.warning(f"Dropping malformed seat change message: {e}")
        return None


class SeatChangeFeed:
    """Redis pub/sub backed change feed for the seats table"""

    def __init__(self, manager: RedisManager, channel: str):
        self.redis_manager = manager
        self.channel = channel

    async def publish(self, event: SeatChangeEvent) -> bool:
        """
        Publish one event. Failures are logged and reported as False;
        the store is authoritative and clients resync on reload.
        """
        try:
            receivers = await self.redis_manager.publish(self.channel, event.to_json())
        except Exception as e:
            FEED_PUBLISH_FAILURES.inc()
            logger.error(
                f"Failed to publish {event.eventType.value} for seat {event.seat_id}: {e}"
            )
            return False

        logger.debug(f"Published {event.eventType.value} for seat {event.seat_id} to {receivers} subscribers")
        return True

    async def publish_many(self, events: Iterable[SeatChangeEvent]) -> int:
        published = 0
        for event in events:
            if await self.publish(event):
                published += 1
        return published

    async def listen(self, idle_timeout: Optional[float] = None) -> AsyncIterator[Optional[SeatChangeEvent]]:
        """
        Yield events as they arrive. With ``idle_timeout`` set, yields None
        after each idle period so callers can emit keep-alives.
        """
        pubsub = await self.redis_manager.subscribe(self.channel)
        logger.info(f"Subscribed to seat change channel {self.channel}")
        try:
            while True:
                message = await pubsub.get_message(
                    ignore_subscribe_messages=True,
                    timeout=idle_timeout or 1.0
                )
                if message is None:
                    if idle_timeout:
                        yield None
                    continue
                if message.get("type") != "message":
                    continue

                event = decode_event(message["data"])
                if event is not None:
                    yield event
        finally:
            await pubsub.unsubscribe(self.channel)
            await pubsub.aclose()
            logger.info(f"Unsubscribed from seat change channel {self.channel}")


# Global change feed
seat_change_feed = SeatChangeFeed(redis_manager, settings.SEAT_CHANGES_CHANNEL)
