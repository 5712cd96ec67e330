"""
Engine adapters for grove-quiz

Ports the engine uses for side effects, with a common interface per concern.
Stores: memory, file. Deliveries: webhook (httpx), mock.
"""

from .base import (
    AdapterError, PersistenceError, DeliveryError, DeliveryTimeoutError,
    SnapshotStore, ResultDelivery,
)
from .memory import MemorySnapshotStore
from .file import FileSnapshotStore
from .webhook import WebhookDelivery
from .mock import MockDelivery

__all__ = [
    # Base classes and errors
    "AdapterError",
    "PersistenceError",
    "DeliveryError",
    "DeliveryTimeoutError",
    "SnapshotStore",
    "ResultDelivery",
    # Stores
    "MemorySnapshotStore",
    "FileSnapshotStore",
    # Deliveries
    "WebhookDelivery",
    "MockDelivery",
]


def get_store(name: str, **kwargs) -> SnapshotStore:
    """
    Factory function to get a snapshot store by name.

    Args:
        name: Store name ('memory', 'file')
        **kwargs: Store-specific options

    Returns:
        Configured SnapshotStore instance

    Raises:
        ValueError: If store name is unknown
    """
    stores = {
        "memory": MemorySnapshotStore,
        "file": FileSnapshotStore,
    }

    if name not in stores:
        raise ValueError(f"Unknown store: {name}. Valid options: {list(stores.keys())}")

    return stores[name](**kwargs)


def get_delivery(name: str, **kwargs) -> ResultDelivery:
    """
    Factory function to get a result delivery by name.

    Args:
        name: Delivery name ('webhook', 'mock')
        **kwargs: Delivery-specific options

    Returns:
        Configured ResultDelivery instance

    Raises:
        ValueError: If delivery name is unknown
    """
    deliveries = {
        "webhook": WebhookDelivery,
        "mock": MockDelivery,
    }

    if name not in deliveries:
        raise ValueError(f"Unknown delivery: {name}. Valid options: {list(deliveries.keys())}")

    return deliveries[name](**kwargs)
