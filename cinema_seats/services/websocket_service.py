"""
WebSocket Service for Real-time Updates
Relays seat change events from the change feed to connected browsers
"""

from fastapi import WebSocket
from typing import Dict, Set
import asyncio
import logging
from datetime import datetime, timezone

from cinema_seats.schemas.seat import SeatChangeEvent
from cinema_seats.services.change_feed import seat_change_feed, SeatChangeFeed

logger = logging.getLogger(__name__)


class ConnectionManager:
    """Manages WebSocket connections subscribed to seat changes"""

    def __init__(self):
        self.active_connections: Set[WebSocket] = set()
        self.connection_metadata: Dict[WebSocket, Dict] = {}

    async def connect(self, websocket: WebSocket):
        """Accept and register a new WebSocket connection"""
        await websocket.accept()

        self.active_connections.add(websocket)
        self.connection_metadata[websocket] = {
            "connected_at": datetime.now(timezone.utc).isoformat()
        }
        logger.info(f"Client connected to seat feed ({len(self.active_connections)} active)")

    def disconnect(self, websocket: WebSocket):
        """Remove a WebSocket connection"""
        self.active_connections.discard(websocket)
        self.connection_metadata.pop(websocket, None)
        logger.info(f"Client disconnected from seat feed ({len(self.active_connections)} active)")

    async def broadcast(self, event: SeatChangeEvent):
        """Send an event to every connected client"""
        message = event.to_json()
        disconnected = []

        for websocket in list(self.active_connections):
            try:
                await websocket.send_text(message)
            except Exception as e:
                logger.error(f"Error broadcasting seat change: {e}")
                disconnected.append(websocket)

        # Clean up disconnected clients
        for websocket in disconnected:
            self.disconnect(websocket)

    async def handle_client_message(self, websocket: WebSocket, message: str):
        """Process messages received from clients"""
        if message == "ping":
            await websocket.send_text("pong")


class FeedRelay:
    """Background task forwarding change feed events to the connection manager"""

    def __init__(self, feed: SeatChangeFeed, manager: ConnectionManager):
        self.feed = feed
        self.manager = manager
        self._task: asyncio.Task = None

    async def _run(self):
        async for event in self.feed.listen():
            await self.manager.broadcast(event)

    def start(self):
        if self._task is None or self._task.done():
            self._task = asyncio.create_task(self._run(), name="seat-feed-relay")
            self._task.add_done_callback(self._on_done)

    def _on_done(self, task: asyncio.Task):
        if not task.cancelled() and task.exception() is not None:
            logger.error(f"Seat feed relay stopped: {task.exception()}")

    async def stop(self):
        if self._task is not None and not self._task.done():
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass
        self._task = None


# Global connection manager
connection_manager = ConnectionManager()
feed_relay = FeedRelay(seat_change_feed, connection_manager)
