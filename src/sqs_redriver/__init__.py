"""In-code retry handling and partial failure management for SQS message batches.

This module processes a batch of SQS messages concurrently, retrying each
message immediately up to a fixed number of attempts, deleting the messages
that succeeded and reporting the ones that did not.

Key features:
- One concurrent task per message, sync or async processors
- Bounded immediate retries with last-error reporting
- Deletion of successes so only failed messages are redelivered
- Structured aggregate error listing every failed message
- Observer pattern for monitoring
- Configuration-based setup

Example:
    >>> from sqs_redriver import Redriver, RedriverConfig
    >>> from sqs_redriver.observers import MetricsObserver
    >>>
    >>> config = RedriverConfig(queue_url=QUEUE_URL, retries=3)
    >>> redriver = Redriver(config=config, observers=[MetricsObserver()])
    >>> await redriver.handle_event(event, process_order)
"""

# Core classes
from .base import BatchResult, MessageProcessorFunc, ProcessOutcome, SQSMessage

# Clients
from .clients import create_sqs_client

# Configuration
from .core import DeletionPolicy, QueueClientFactory, QueueClientLike, RedriverConfig

# Errors
from .errors import (
    BatchProcessingError,
    BatchTimeoutError,
    ConfigurationError,
    DeletionError,
    ProcessorCrashError,
    RedriverError,
    TransportInitError,
)

# Retry executor
from .executor import execute

# Observers
from .observers import BaseObserver, MetricsObserver, ProcessingEvent, ProcessorObserver

# Batch coordinator
from .redriver import Redriver

__all__ = [
    # Core
    "BatchResult",
    "MessageProcessorFunc",
    "ProcessOutcome",
    "SQSMessage",
    # Configuration
    "DeletionPolicy",
    "QueueClientFactory",
    "QueueClientLike",
    "RedriverConfig",
    # Clients
    "create_sqs_client",
    # Errors
    "BatchProcessingError",
    "BatchTimeoutError",
    "ConfigurationError",
    "DeletionError",
    "ProcessorCrashError",
    "RedriverError",
    "TransportInitError",
    # Observers
    "ProcessorObserver",
    "BaseObserver",
    "MetricsObserver",
    "ProcessingEvent",
    # Processing
    "execute",
    "Redriver",
]

__version__ = "0.1.0"
