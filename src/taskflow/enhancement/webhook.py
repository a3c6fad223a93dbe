"""Client for the external task enhancement webhook."""

import logging
from typing import Any

import httpx

from taskflow.errors import EnhancementError
from taskflow.models import Priority

logger = logging.getLogger(__name__)


class EnhancementClient:
    """Posts task titles to the enhancement webhook.

    The webhook accepts ``{"title": ..., "priority": ...}``. In request/response
    mode it answers with ``enhanced_title`` (or ``title``); in fire-and-forget
    mode it creates the task itself through ``POST /tasks``.
    """

    def __init__(
        self,
        webhook_url: str,
        timeout: float = 10.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """Initialize client.

        Args:
            webhook_url: Webhook endpoint URL
            timeout: Request timeout in seconds
            transport: Optional httpx transport (tests use httpx.MockTransport)
        """
        self.webhook_url = webhook_url
        self._timeout = timeout
        self._transport = transport

    async def enhance(self, title: str, priority: Priority) -> str:
        """Ask the webhook for an enhanced title.

        Returns:
            Enhanced title from the response

        Raises:
            EnhancementError: On network error, non-2xx status or unusable payload
        """
        response = await self._post(title, priority)
        try:
            data: Any = response.json()
        except ValueError as e:
            raise EnhancementError("Webhook returned non-JSON response") from e

        if not isinstance(data, dict):
            raise EnhancementError(f"Webhook returned unexpected payload: {data!r}")

        enhanced = data.get("enhanced_title") or data.get("title")
        if not isinstance(enhanced, str) or not enhanced.strip():
            raise EnhancementError("Webhook response has no enhanced_title or title")

        logger.info(f"[Enhancement] Enhanced {title!r} -> {enhanced!r}")
        return enhanced.strip()

    async def submit(self, title: str, priority: Priority) -> None:
        """Hand the title to the webhook without waiting for a result.

        Raises:
            EnhancementError: On network error or non-2xx status
        """
        await self._post(title, priority)
        logger.info(f"[Enhancement] Submitted {title!r} for out-of-band creation")

    async def _post(self, title: str, priority: Priority) -> httpx.Response:
        payload = {"title": title, "priority": priority.value}
        try:
            async with httpx.AsyncClient(
                timeout=self._timeout, transport=self._transport
            ) as client:
                response = await client.post(self.webhook_url, json=payload)
        except httpx.HTTPError as e:
            raise EnhancementError(f"Webhook request failed: {e}") from e

        if not response.is_success:
            raise EnhancementError(
                f"Webhook returned {response.status_code}: {response.text[:200]}"
            )
        return response
