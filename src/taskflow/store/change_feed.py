"""Change notifications published by the task store."""

import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from enum import Enum

logger = logging.getLogger(__name__)


class ChangeType(str, Enum):
    """Kind of row change."""

    INSERT = "INSERT"
    UPDATE = "UPDATE"
    DELETE = "DELETE"


@dataclass(frozen=True)
class ChangeEvent:
    """A committed change to a row in the store."""

    type: ChangeType
    table: str  # "tasks" or "task_notes"
    record_id: str

    def to_message(self) -> dict[str, str]:
        """Build message sent to WebSocket clients."""
        return {"type": self.type.value, "table": self.table, "id": self.record_id}


ChangeCallback = Callable[[ChangeEvent], Awaitable[None]]


class ChangeFeed:
    """Fan-out of store change events to async subscribers.

    Subscribers are used purely as invalidation triggers; events carry no
    row data.
    """

    def __init__(self) -> None:
        """Initialize feed with no subscribers."""
        self._subscribers: list[ChangeCallback] = []

    def subscribe(self, callback: ChangeCallback) -> Callable[[], None]:
        """Register callback for all change events.

        Args:
            callback: Coroutine function called with each ChangeEvent

        Returns:
            Function that removes the subscription
        """
        self._subscribers.append(callback)
        logger.debug(f"[ChangeFeed] Subscribed (total: {len(self._subscribers)})")

        def unsubscribe() -> None:
            if callback in self._subscribers:
                self._subscribers.remove(callback)
                logger.debug(f"[ChangeFeed] Unsubscribed (total: {len(self._subscribers)})")

        return unsubscribe

    async def publish(self, event: ChangeEvent) -> None:
        """Deliver event to every subscriber.

        A failing subscriber is logged and skipped.

        Args:
            event: Change that was committed
        """
        logger.debug(f"[ChangeFeed] {event.type.value} {event.table}:{event.record_id}")
        for callback in list(self._subscribers):
            try:
                await callback(event)
            except Exception as e:
                logger.error(f"[ChangeFeed] Subscriber error: {e}", exc_info=True)
