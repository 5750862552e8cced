"""Core components for the redriver."""

from .config import DeletionPolicy, RedriverConfig
from .protocols import QueueClientFactory, QueueClientLike

__all__ = [
    "DeletionPolicy",
    "RedriverConfig",
    "QueueClientFactory",
    "QueueClientLike",
]
