"""WebSocket endpoint for realtime change notifications."""

import logging

from fastapi import APIRouter, WebSocket, WebSocketDisconnect

from taskflow.factory import get_connection_manager

logger = logging.getLogger(__name__)

router = APIRouter()


@router.websocket("/ws")
async def websocket_endpoint(websocket: WebSocket) -> None:
    """Push ``{"type", "table", "id"}`` change messages to the browser.

    Messages only signal that the task list changed; clients refetch
    ``GET /api/tasks``. A text ``ping`` is answered with ``pong``.
    """
    manager = get_connection_manager()
    await manager.connect(websocket)
    try:
        while True:
            data = await websocket.receive_text()
            logger.debug(f"[WebSocket] Received from client: {data}")
            if data == "ping":
                await websocket.send_text("pong")

    except WebSocketDisconnect:
        logger.info("[WebSocket] Client disconnected normally")
        manager.disconnect(websocket)
    except Exception as e:
        logger.error(f"[WebSocket] Error: {e}", exc_info=True)
        manager.disconnect(websocket)
