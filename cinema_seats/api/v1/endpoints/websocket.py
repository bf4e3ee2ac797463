"""
WebSocket endpoint for real-time seat updates
"""

from fastapi import APIRouter, WebSocket, WebSocketDisconnect
import logging

from cinema_seats.services.websocket_service import connection_manager

logger = logging.getLogger(__name__)
router = APIRouter()


@router.websocket("/seats")
async def websocket_seat_updates(websocket: WebSocket):
    """
    Pushes every seat change as a JSON text frame; answers "ping" with "pong"
    """
    await connection_manager.connect(websocket)

    try:
        while True:
            message = await websocket.receive_text()
            await connection_manager.handle_client_message(websocket, message)
    except WebSocketDisconnect:
        connection_manager.disconnect(websocket)
