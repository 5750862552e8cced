"""Per-message retry executor."""

import asyncio
import functools
import inspect
import logging
import time
from collections.abc import Callable, Sequence
from concurrent.futures import Executor

from .base import MessageProcessorFunc, ProcessOutcome, SQSMessage
from .errors import ConfigurationError
from .observers import ProcessingEvent, ProcessorObserver, emit_event

logger = logging.getLogger(__name__)


def is_async_processor(processor: MessageProcessorFunc) -> bool:
    """Return True if calling the processor produces a coroutine."""
    return inspect.iscoroutinefunction(processor) or (
        callable(processor) and inspect.iscoroutinefunction(processor.__call__)
    )


async def _invoke(
    processor: MessageProcessorFunc,
    message: SQSMessage,
    run_in_thread: bool,
    thread_pool: Executor | None,
) -> Exception | None:
    """Run one attempt and return its error, or None on success."""
    try:
        if run_in_thread and thread_pool is not None:
            loop = asyncio.get_running_loop()
            result = await loop.run_in_executor(thread_pool, functools.partial(processor, message))
        elif run_in_thread:
            result = await asyncio.to_thread(processor, message)
        else:
            result = processor(message)
        if inspect.isawaitable(result):
            result = await result
    except Exception as e:
        return e

    # Processors may report failure by returning an exception instead of raising it
    if isinstance(result, Exception):
        return result
    return None


async def execute(
    message: SQSMessage,
    processor: MessageProcessorFunc,
    retries: int,
    observers: Sequence[ProcessorObserver] = (),
    thread_pool: Executor | None = None,
    on_attempt: Callable[[int], None] | None = None,
) -> ProcessOutcome:
    """
    Process one message, retrying immediately until an attempt succeeds.

    Attempts are sequential. When every attempt fails the outcome carries the
    error of the last one; earlier errors are discarded.

    Args:
        message: Message handed to the processor on every attempt
        processor: Sync or async callable; blocking callables run in a worker thread
        retries: Maximum number of attempts (>= 1)
        observers: Observers notified of attempt and message events
        thread_pool: Pool for blocking processors (default: the loop's default executor)
        on_attempt: Called with the attempt number before each attempt starts

    Returns:
        The terminal outcome for the message
    """
    if retries < 1:
        raise ConfigurationError(f"retries must be 1 or above (got {retries})")

    run_in_thread = not is_async_processor(processor)
    message_id = message.message_id
    start_time = time.time()

    await emit_event(observers, ProcessingEvent.MESSAGE_STARTED, {"message_id": message_id})

    error: Exception | None = None
    attempt = 0
    for attempt in range(1, retries + 1):
        if on_attempt is not None:
            on_attempt(attempt)
        error = await _invoke(processor, message, run_in_thread, thread_pool)
        if error is None:
            break

        logger.warning(
            f"⚠️  Attempt {attempt}/{retries} failed for {message_id}: "
            f"{type(error).__name__} - {str(error)[:150]}"
        )
        await emit_event(
            observers,
            ProcessingEvent.ATTEMPT_FAILED,
            {"message_id": message_id, "attempt": attempt, "error_type": type(error).__name__},
        )

    duration = time.time() - start_time

    if error is None:
        if attempt > 1:
            logger.info(
                f"✓ SUCCESS on attempt {attempt} for {message_id} (after {attempt - 1} failure(s))"
            )
        await emit_event(
            observers,
            ProcessingEvent.MESSAGE_SUCCEEDED,
            {"message_id": message_id, "attempts": attempt, "duration": duration},
        )
    else:
        logger.error(
            f"✗ ALL {retries} ATTEMPTS EXHAUSTED for {message_id}:\n"
            f"  Final error type: {type(error).__name__}\n"
            f"  Final error message: {str(error)[:500]}"
        )
        await emit_event(
            observers,
            ProcessingEvent.MESSAGE_FAILED,
            {
                "message_id": message_id,
                "attempts": attempt,
                "duration": duration,
                "error_type": type(error).__name__,
            },
        )

    return ProcessOutcome(message=message, error=error, attempts=attempt)
