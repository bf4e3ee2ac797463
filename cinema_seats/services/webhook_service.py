"""
Webhook notifications for completed bookings
Delivery is best-effort: failures are logged, never retried and never
surfaced to the caller.
"""

from datetime import datetime, timezone
from typing import Callable, List, Optional
import logging

import httpx

from cinema_seats.config import settings
from cinema_seats.core.exceptions import ExternalServiceError
from cinema_seats.core.metrics import WEBHOOK_DELIVERIES
from cinema_seats.schemas.booking import SeatBookingItem, WebhookPayload, WebhookSeat

logger = logging.getLogger(__name__)


def build_payload(seats: List[SeatBookingItem], now: Optional[datetime] = None) -> WebhookPayload:
    now = now or datetime.now(timezone.utc)
    return WebhookPayload(
        event="seats_booked",
        timestamp=now.isoformat(),
        seats=[WebhookSeat(seat=seat.label, name=seat.name) for seat in seats]
    )


class WebhookService:
    """Posts ``seats_booked`` notifications to the configured endpoint"""

    def __init__(
        self,
        url: Optional[str] = None,
        timeout: float = 5.0,
        client_factory: Optional[Callable[[], httpx.AsyncClient]] = None
    ):
        self.url = url
        self.timeout = timeout
        self.client_factory = client_factory or (lambda: httpx.AsyncClient(timeout=self.timeout))

    async def _post(self, payload: WebhookPayload) -> httpx.Response:
        async with self.client_factory() as client:
            response = await client.post(
                self.url,
                json=payload.model_dump(),
                headers={"Content-Type": "application/json"}
            )
        if response.is_error:
            raise ExternalServiceError(
                "webhook",
                f"Webhook responded with status {response.status_code}"
            )
        return response

    async def notify_seats_booked(self, seats: List[SeatBookingItem]) -> bool:
        """Send the notification; returns whether delivery succeeded"""
        if not self.url:
            logger.debug("No webhook configured, skipping booking notification")
            WEBHOOK_DELIVERIES.labels(outcome="skipped").inc()
            return False

        payload = build_payload(seats)
        logger.info(f"Sending webhook for {len(payload.seats)} booked seats")

        try:
            response = await self._post(payload)
        except ExternalServiceError as e:
            WEBHOOK_DELIVERIES.labels(outcome="failed").inc()
            logger.warning(f"Webhook delivery failed: {e.message}")
            return False
        except (httpx.HTTPError, httpx.InvalidURL) as e:
            WEBHOOK_DELIVERIES.labels(outcome="failed").inc()
            logger.warning(f"Webhook delivery failed: {type(e).__name__}: {e}")
            return False

        WEBHOOK_DELIVERIES.labels(outcome="delivered").inc()
        logger.info(f"Webhook response status: {response.status_code}")
        return True


def get_webhook_service() -> WebhookService:
    url = str(settings.WEBHOOK_URL) if settings.WEBHOOK_URL else None
    return WebhookService(url=url, timeout=settings.WEBHOOK_TIMEOUT_SECONDS)
