"""Observer system for redriver events."""

import asyncio
import logging
from abc import ABC, abstractmethod
from collections.abc import Sequence
from enum import Enum
from typing import Any

logger = logging.getLogger(__name__)

OBSERVER_TIMEOUT = 5.0


class ProcessingEvent(Enum):
    """Events that can be observed during batch processing."""

    BATCH_STARTED = "batch_started"
    BATCH_COMPLETED = "batch_completed"
    BATCH_TIMEOUT = "batch_timeout"
    MESSAGE_STARTED = "message_started"
    ATTEMPT_FAILED = "attempt_failed"
    MESSAGE_SUCCEEDED = "message_succeeded"
    MESSAGE_FAILED = "message_failed"
    MESSAGE_DELETED = "message_deleted"


class ProcessorObserver(ABC):
    """Abstract base class for redriver event observers."""

    @abstractmethod
    async def on_event(
        self,
        event: ProcessingEvent,
        data: dict[str, Any],
    ) -> None:
        """
        Handle redriver event.

        Args:
            event: The event type
            data: Event-specific data
        """
        pass


class BaseObserver(ProcessorObserver):
    """Base observer with no-op implementation."""

    async def on_event(
        self,
        event: ProcessingEvent,
        data: dict[str, Any],
    ) -> None:
        """Default: do nothing."""
        pass


async def emit_event(
    observers: Sequence[ProcessorObserver],
    event: ProcessingEvent,
    data: dict[str, Any] | None = None,
) -> None:
    """Emit event to all observers. Observer failures never reach the caller."""
    if not observers:
        return

    event_data = data or {}
    for observer in observers:
        try:
            await asyncio.wait_for(
                observer.on_event(event, event_data),
                timeout=OBSERVER_TIMEOUT,
            )
        except TimeoutError:
            logger.warning(
                f"⚠️  Observer callback timed out after {OBSERVER_TIMEOUT:.0f}s for event {event.name}"
            )
        except Exception as e:
            logger.warning(f"⚠️  Observer error: {e}")
