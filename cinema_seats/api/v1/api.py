"""
Main API Router
Aggregates all API endpoints for v1
"""

from fastapi import APIRouter
from cinema_seats.api.v1.endpoints import (
    bookings,
    health,
    seats
)

api_router = APIRouter()

# Include all routers
api_router.include_router(seats.router, prefix="/seats", tags=["seats"])
api_router.include_router(bookings.router, prefix="/bookings", tags=["bookings"])
api_router.include_router(health.router, prefix="/health", tags=["health"])
