"""
Database models
"""

from cinema_seats.models.seat import Seat

__all__ = [
    "Seat",
]
