"""
Webhook result delivery

POSTs completed quiz results as JSON to a configured URL using httpx.
"""

import json
from typing import Any, Optional

import httpx

from .base import ResultDelivery, DeliveryError, DeliveryTimeoutError


class WebhookDelivery(ResultDelivery):
    """
    HTTP webhook delivery.

    The client is created lazily on first delivery and reused afterwards.
    Pass `transport` to route requests somewhere other than the network
    (tests use httpx.MockTransport).
    """

    def __init__(
        self,
        url: str,
        timeout: float = 10.0,
        headers: Optional[dict[str, str]] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        """
        Initialize webhook delivery.

        Args:
            url: Endpoint receiving the POST
            timeout: Request timeout in seconds
            headers: Extra request headers (e.g. an auth token)
            transport: Optional httpx transport override
        """
        if not url:
            raise ValueError("Webhook URL is required")
        self.url = url
        self.timeout = timeout
        self._headers = {"Content-Type": "application/json", **(headers or {})}
        self._transport = transport
        self._client: Optional[httpx.AsyncClient] = None

    def _get_client(self) -> httpx.AsyncClient:
        """Lazy initialization of HTTP client."""
        if self._client is None:
            self._client = httpx.AsyncClient(
                headers=self._headers,
                timeout=self.timeout,
                transport=self._transport,
            )
        return self._client

    @property
    def name(self) -> str:
        return "webhook"

    async def deliver(self, payload: dict[str, Any]) -> None:
        """POST the payload; any non-2xx response is a DeliveryError."""
        client = self._get_client()
        body = json.dumps(payload, default=str)

        try:
            response = await client.post(self.url, content=body)
            response.raise_for_status()
        except httpx.TimeoutException as e:
            raise DeliveryTimeoutError(f"Webhook timed out after {self.timeout}s: {self.url}") from e
        except httpx.HTTPStatusError as e:
            raise DeliveryError(
                f"Webhook returned HTTP {e.response.status_code}: {self.url}"
            ) from e
        except httpx.HTTPError as e:
            raise DeliveryError(f"Webhook request failed: {e}") from e

    async def aclose(self) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    def __repr__(self) -> str:
        return f"WebhookDelivery(url={self.url!r})"
