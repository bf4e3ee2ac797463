"""
API endpoints module
"""

from . import bookings, health, seats, websocket

__all__ = [
    "bookings",
    "health",
    "seats",
    "websocket"
]
