"""Testing utilities for sqs_redriver."""

from .mocks import (
    BlockingMockProcessor,
    MockProcessingError,
    MockProcessor,
    MockQueueClient,
    make_messages,
)

__all__ = [
    "BlockingMockProcessor",
    "MockProcessingError",
    "MockProcessor",
    "MockQueueClient",
    "make_messages",
]
