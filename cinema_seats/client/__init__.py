"""
Client-side seat view: reducers, transport and controller
"""

from cinema_seats.client.api import BookingRequestError, SeatApiClient
from cinema_seats.client.controller import Notification, SeatViewController
from cinema_seats.client.state import SeatSnapshot, ViewState, apply_event

__all__ = [
    "BookingRequestError",
    "SeatApiClient",
    "Notification",
    "SeatViewController",
    "SeatSnapshot",
    "ViewState",
    "apply_event"
]
