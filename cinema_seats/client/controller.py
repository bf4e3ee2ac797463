"""
Seat view controller

Owns the client's view state, executes the effects produced by the reducers
in ``cinema_seats.client.state`` and talks to the API. All methods run on a
single asyncio event loop; store and network failures are turned into log
lines or user notifications here and never propagate to the caller.
"""

from dataclasses import dataclass
from typing import Callable, Dict, List, Literal, Optional, Tuple
import asyncio
import logging
import uuid

import httpx
from pydantic import ValidationError as PydanticValidationError

from cinema_seats.client import state as view
from cinema_seats.client.api import BookingRequestError, SeatApiClient
from cinema_seats.client.config import ClientSettings
from cinema_seats.core.exceptions import ValidationError
from cinema_seats.schemas.seat import SeatChangeEvent, SeatResponse

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Notification:
    level: Literal["info", "error"]
    title: str
    message: str


def log_notification(notification: Notification):
    level = logging.ERROR if notification.level == "error" else logging.INFO
    logger.log(level, f"{notification.title}: {notification.message}")


class SeatViewController:
    """
    Client-side seat map: cached snapshot, selection and name drafts.

    The snapshot is loaded once and then kept current by folding change
    feed events into it. There is no replay; a client that missed events
    catches up on the next ``load_all``.
    """

    def __init__(
        self,
        api: SeatApiClient,
        notifier: Optional[Callable[[Notification], None]] = None,
        pulse_seconds: float = 1.0
    ):
        self.api = api
        self.notifier = notifier or log_notification
        self.pulse_seconds = pulse_seconds
        self.state = view.ViewState()

        self._listeners: List[Callable[[view.ViewState], None]] = []
        self._pulse_timers: Dict[uuid.UUID, asyncio.TimerHandle] = {}
        self._feed_task: Optional[asyncio.Task] = None
        self._stopped = False

    @classmethod
    def from_settings(cls, settings: Optional[ClientSettings] = None, **kwargs) -> "SeatViewController":
        settings = settings or ClientSettings()
        api = SeatApiClient(
            settings.API_URL,
            api_prefix=settings.API_PREFIX,
            timeout=settings.TIMEOUT_SECONDS
        )
        return cls(api, pulse_seconds=settings.PULSE_SECONDS, **kwargs)

    # State plumbing

    def add_listener(self, listener: Callable[[view.ViewState], None]):
        """Register a callback invoked with the new state after every change"""
        self._listeners.append(listener)

    def _set_state(self, new_state: view.ViewState):
        if new_state is self.state:
            return
        self.state = new_state
        for listener in self._listeners:
            listener(new_state)

    def _notify(self, level: Literal["info", "error"], title: str, message: str):
        self.notifier(Notification(level=level, title=title, message=message))

    # Read side

    @property
    def seats(self) -> List[SeatResponse]:
        return list(self.state.snapshot)

    def rows(self) -> List[Tuple[str, List[SeatResponse]]]:
        return self.state.snapshot.rows()

    def is_recently_booked(self, seat_id: uuid.UUID) -> bool:
        return seat_id in self.state.recently_booked

    async def load_all(self) -> bool:
        """Replace the snapshot with a fresh read; keeps the old one on failure"""
        try:
            seats = await self.api.fetch_seats()
        except (httpx.HTTPError, PydanticValidationError) as e:
            logger.error(f"Error fetching seats: {type(e).__name__}: {e}")
            return False

        if self._stopped:
            return False
        self._set_state(view.replace_snapshot(self.state, seats))
        logger.debug(f"Loaded {len(seats)} seats")
        return True

    # Change feed

    def on_change_event(self, event: SeatChangeEvent):
        new_state, effects = view.apply_event(self.state, event)
        self._set_state(new_state)
        for effect in effects:
            self._execute(effect)

    def _execute(self, effect: view.Effect):
        if isinstance(effect, view.PulseSeat):
            self._schedule_pulse_clear(effect.seat_id)
        elif isinstance(effect, view.NotifyConflict):
            self._notify(
                "error",
                "Seat taken",
                f"Seat {effect.seat.label} was just booked by someone else."
            )

    def _schedule_pulse_clear(self, seat_id: uuid.UUID):
        existing = self._pulse_timers.pop(seat_id, None)
        if existing is not None:
            existing.cancel()
        loop = asyncio.get_running_loop()
        self._pulse_timers[seat_id] = loop.call_later(self.pulse_seconds, self._clear_pulse, seat_id)

    def _clear_pulse(self, seat_id: uuid.UUID):
        self._pulse_timers.pop(seat_id, None)
        self._set_state(view.clear_pulse(self.state, seat_id))

    async def _consume_feed(self):
        try:
            async for event in self.api.stream_changes():
                self.on_change_event(event)
            logger.warning("Seat change stream ended")
        except httpx.HTTPError as e:
            logger.error(f"Seat change stream failed: {type(e).__name__}: {e}")

    # Selection

    def toggle_selection(self, seat_id: uuid.UUID):
        self._set_state(view.toggle_selection(self.state, seat_id))

    def set_name(self, seat_id: uuid.UUID, name: str):
        self._set_state(view.set_name(self.state, seat_id, name))

    async def submit_booking(self) -> bool:
        """
        Book every selected seat in one request.

        Returns True on success, after which selection and names are cleared
        and the snapshot is reloaded. On failure selection and names are kept.
        """
        if self.state.is_submitting:
            return False

        try:
            seats = view.build_booking_request(self.state)
        except ValidationError as e:
            self._notify("error", "Error", e.message)
            return False

        self._set_state(view.begin_submission(self.state))
        try:
            result = await self.api.book_seats(seats)
        except BookingRequestError as e:
            if self._stopped:
                return False
            self._set_state(view.finish_submission(self.state, succeeded=False))
            logger.error(f"Booking error: {e.message}")
            self._notify("error", "Error", f"Could not book seats: {e.message}")
            return False

        if self._stopped:
            logger.info("Discarding booking result after controller stopped")
            return False

        self._set_state(view.finish_submission(self.state, succeeded=True))
        count = result.booked_seats
        self._notify("info", "Success!", f"You booked {count} {'seat' if count == 1 else 'seats'}")
        await self.load_all()
        return True

    # Lifecycle

    async def start(self):
        """Fetch the seat map, then follow the change feed in the background"""
        self._stopped = False
        await self.load_all()
        if self._feed_task is None or self._feed_task.done():
            self._feed_task = asyncio.create_task(self._consume_feed(), name="seat-change-feed")

    async def stop(self):
        """Tear down the feed subscription and pending timers"""
        self._stopped = True

        if self._feed_task is not None and not self._feed_task.done():
            self._feed_task.cancel()
            try:
                await self._feed_task
            except asyncio.CancelledError:
                pass
        self._feed_task = None

        for timer in self._pulse_timers.values():
            timer.cancel()
        self._pulse_timers.clear()

    async def aclose(self):
        await self.stop()
        await self.api.aclose()
