"""WebSocket connection management for change notifications."""

import asyncio
import json
import logging
from typing import Any

from fastapi import WebSocket

from taskflow.store.change_feed import ChangeEvent

logger = logging.getLogger(__name__)


class ConnectionManager:
    """Tracks browser WebSocket connections and pushes change notifications to them."""

    def __init__(self, send_timeout: float = 2.0) -> None:
        """Initialize with no connections.

        Args:
            send_timeout: Seconds a single client may take to accept a message
                before it is dropped
        """
        self.active_connections: list[WebSocket] = []
        self.send_timeout = send_timeout

    async def connect(self, websocket: WebSocket) -> None:
        """Accept and register a browser connection."""
        await websocket.accept()
        self.active_connections.append(websocket)
        logger.info(f"[ConnectionManager] Client connected (total: {len(self.active_connections)})")

    def disconnect(self, websocket: WebSocket) -> None:
        """Forget a connection (no-op if unknown)."""
        if websocket in self.active_connections:
            self.active_connections.remove(websocket)
            logger.info(
                f"[ConnectionManager] Client disconnected (total: {len(self.active_connections)})"
            )

    async def notify_change(self, event: ChangeEvent) -> None:
        """Change feed subscriber: tell browsers to refetch."""
        await self.broadcast(event.to_message())

    async def broadcast(self, message: dict[str, Any]) -> None:
        """Send message as JSON to every connection concurrently.

        Connections that fail or exceed ``send_timeout`` are dropped, so a
        slow client delays the broadcast by at most ``send_timeout``.

        Args:
            message: JSON-serializable message
        """
        if not self.active_connections:
            logger.debug("[ConnectionManager] No active connections to broadcast to")
            return

        message_json = json.dumps(message)
        connections = list(self.active_connections)
        logger.debug(
            f"[ConnectionManager] Broadcasting to {len(connections)} clients: {message_json}"
        )

        results = await asyncio.gather(
            *(self._send(connection, message_json) for connection in connections)
        )
        for connection, delivered in zip(connections, results):
            if not delivered:
                self.disconnect(connection)

    async def _send(self, connection: WebSocket, message_json: str) -> bool:
        try:
            await asyncio.wait_for(connection.send_text(message_json), self.send_timeout)
        except asyncio.TimeoutError:
            logger.warning("[ConnectionManager] Client too slow, dropping it")
            return False
        except Exception as e:
            logger.warning(f"[ConnectionManager] Failed to send to client: {e}")
            return False
        return True
