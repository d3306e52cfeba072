"""Publisher for the realtime event service."""

import logging
from typing import Any, Optional

import httpx

from .config import RealtimeConfig
from .types import NotificationDeliveryError

logger = logging.getLogger(__name__)


class RealtimePublisher:
    """
    Publishes account-scoped events to the realtime service over HTTP.

    The service fans events out to every socket the user has open.
    """

    def __init__(
        self,
        config: Optional[RealtimeConfig] = None,
        client: Optional[httpx.AsyncClient] = None,
    ) -> None:
        self.config = config or RealtimeConfig.from_env()
        self._client = client

    async def publish(self, username: str, event: Any) -> None:
        """
        Publish an event to a user's channel.

        Args:
            username: Routing key for the user's channel
            event: JSON-serializable event, or an object with `to_dict()`

        Raises:
            NotificationDeliveryError: Transport failure or non-2xx response
        """
        if self.config.disabled:
            return

        if hasattr(event, "to_dict"):
            event = event.to_dict()

        url = f"{self.config.url.rstrip('/')}/publish"
        headers = {"x-realtime-secret": self.config.secret}
        body = {"username": username, "event": event}

        try:
            if self._client is not None:
                response = await self._client.post(
                    url, json=body, headers=headers, timeout=self.config.timeout
                )
            else:
                async with httpx.AsyncClient(timeout=self.config.timeout) as client:
                    response = await client.post(url, json=body, headers=headers)
        except httpx.HTTPError as e:
            raise NotificationDeliveryError(f"Realtime publish failed: {e}") from e

        if response.status_code >= 300:
            raise NotificationDeliveryError(
                f"Realtime publish rejected with status {response.status_code}"
            )

        logger.debug("Published realtime event for %s", username)

    async def __call__(self, username: str, event: Any) -> None:
        await self.publish(username, event)
