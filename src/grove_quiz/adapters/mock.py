"""
Mock delivery for testing

Records delivered payloads without making network calls.
"""

import asyncio
from typing import Any, Optional

from .base import ResultDelivery, DeliveryError


class MockDelivery(ResultDelivery):
    """
    Delivery that keeps payloads in memory.

    Useful for:
    - Unit testing the engine's completion path
    - Dry runs of the CLI without a real endpoint
    """

    def __init__(self, fail_with: Optional[str] = None, delay: float = 0.0):
        """
        Initialize mock delivery.

        Args:
            fail_with: If set, every delivery raises DeliveryError with this message
            delay: Simulated latency in seconds
        """
        self.fail_with = fail_with
        self.delay = delay
        self.payloads: list[dict[str, Any]] = []
        self.attempts = 0
        self.closed = False

    @property
    def name(self) -> str:
        return "mock"

    async def deliver(self, payload: dict[str, Any]) -> None:
        self.attempts += 1
        if self.delay > 0:
            await asyncio.sleep(self.delay)
        if self.fail_with:
            raise DeliveryError(self.fail_with)
        self.payloads.append(payload)

    async def aclose(self) -> None:
        self.closed = True

    @property
    def last_payload(self) -> Optional[dict[str, Any]]:
        return self.payloads[-1] if self.payloads else None
