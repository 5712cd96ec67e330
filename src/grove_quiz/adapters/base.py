"""
Base ports for engine adapters

Defines the interfaces the engine uses for progress persistence and result
delivery. Implementations raise the errors below; the engine catches them at
its boundary and only logs them.
"""

from abc import ABC, abstractmethod
from typing import Any, Optional


class AdapterError(Exception):
    """Base exception for adapter errors."""
    pass


class PersistenceError(AdapterError):
    """Reading or writing a snapshot failed."""
    pass


class DeliveryError(AdapterError):
    """Result delivery failed."""
    pass


class DeliveryTimeoutError(DeliveryError):
    """Result delivery timed out."""
    pass


class SnapshotStore(ABC):
    """
    Key/value storage for serialized progress snapshots.

    Values are JSON documents; stores only move text around.
    """

    @property
    @abstractmethod
    def name(self) -> str:
        """Store name (e.g., 'memory', 'file')."""
        pass

    @abstractmethod
    def read(self, key: str) -> Optional[str]:
        """
        Read a snapshot.

        Returns:
            Stored text, or None if nothing is stored under the key

        Raises:
            PersistenceError: On storage failures
        """
        pass

    @abstractmethod
    def write(self, key: str, data: str) -> None:
        """Store a snapshot, replacing any previous one."""
        pass

    @abstractmethod
    def remove(self, key: str) -> None:
        """Remove a snapshot. Missing keys are not an error."""
        pass

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}()"


class ResultDelivery(ABC):
    """Outbound channel for completed quiz results."""

    @property
    @abstractmethod
    def name(self) -> str:
        """Delivery name (e.g., 'webhook', 'mock')."""
        pass

    @abstractmethod
    async def deliver(self, payload: dict[str, Any]) -> None:
        """
        Deliver a completed result.

        Args:
            payload: JSON-serializable {quiz_id, result, state, timestamp}

        Raises:
            DeliveryError: On delivery failures
            DeliveryTimeoutError: When the target does not answer in time
        """
        pass

    async def aclose(self) -> None:
        """Release any held connections."""
        return None

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}()"
