"""Batch coordinator: concurrent processing, partial failure handling and deletion."""

import asyncio
import functools
import inspect
import logging
import time
from collections.abc import Iterable
from concurrent.futures import ThreadPoolExecutor
from typing import Any

from .base import BatchResult, MessageProcessorFunc, ProcessOutcome, SQSMessage
from .clients import create_sqs_client
from .core import DeletionPolicy, QueueClientFactory, QueueClientLike, RedriverConfig
from .errors import (
    BatchProcessingError,
    BatchTimeoutError,
    DeletionError,
    ProcessorCrashError,
    TransportInitError,
)
from .executor import execute
from .observers import ProcessingEvent, ProcessorObserver, emit_event

logger = logging.getLogger(__name__)


class Redriver:
    """
    Processes a batch of SQS messages with in-code retries and partial failure handling.

    Every message gets its own concurrent task that retries the processor up to
    ``config.retries`` times. Successfully processed messages are deleted from the
    consumed queue so that only failed messages are redelivered, and failures are
    reported together in a single ``BatchProcessingError``.

    Example:
        >>> redriver = Redriver(RedriverConfig(queue_url=QUEUE_URL, retries=3))
        >>> await redriver.handle_messages(messages, process_order)
    """

    def __init__(
        self,
        config: RedriverConfig | None = None,
        client: QueueClientLike | None = None,
        client_factory: QueueClientFactory | None = None,
        observers: list[ProcessorObserver] | None = None,
    ):
        """
        Initialize the redriver.

        Args:
            config: Retry and deletion policy
            client: Queue client used for deletions (built lazily when omitted)
            client_factory: Builds the queue client when none is given (default: boto3 SQS)
            observers: List of observers for events
        """
        self.config = config or RedriverConfig()
        self.config.validate()

        self.client = client
        self.client_factory = client_factory or create_sqs_client
        self.observers = observers or []

    def _acquire_client(self) -> QueueClientLike | None:
        """Return the queue client, or None in debug mode."""
        if self.config.debug:
            return None
        if self.client is not None:
            return self.client

        try:
            self.client = self.client_factory(self.config.region_name)
        except TransportInitError:
            raise
        except Exception as e:
            logger.error(f"✗ Failed to initialize queue client: {e}")
            raise TransportInitError(f"can't create a queue client, reason: {e}") from e
        return self.client

    async def handle_messages(
        self, messages: Iterable[SQSMessage], processor: MessageProcessorFunc
    ) -> None:
        """
        Process all messages concurrently and delete the ones that succeeded.

        Args:
            messages: The batch to process
            processor: Sync or async callable invoked with one message per attempt

        Raises:
            ConfigurationError: If the configuration is invalid (nothing is processed)
            TransportInitError: If the queue client can't be built (nothing is processed)
            DeletionError: If a successfully processed message can't be deleted
            BatchProcessingError: If at least one message failed every attempt
        """
        self.config.validate()
        messages = list(messages)
        client = self._acquire_client()

        logger.info(
            f"ℹ️  Processing batch of {len(messages)} message(s) (retries: {self.config.retries})"
        )
        await emit_event(self.observers, ProcessingEvent.BATCH_STARTED, {"total": len(messages)})

        start_time = time.time()
        result = await self._process_batch(messages, processor)
        duration = time.time() - start_time

        logger.info(
            f"ℹ️  Batch processing complete in {duration:.2f}s | "
            f"Succeeded: {len(result.successes)}, Failed: {len(result.failures)}"
        )
        await emit_event(
            self.observers,
            ProcessingEvent.BATCH_COMPLETED,
            {
                "total": result.total,
                "succeeded": len(result.successes),
                "failed": len(result.failures),
                "duration": duration,
            },
        )

        if result.has_only_successes():
            if client is not None and self.config.deletion_policy is DeletionPolicy.ALWAYS:
                await self._delete_processed(result, client)
            return None

        if client is not None:
            await self._delete_processed(result, client)

        raise BatchProcessingError(result)

    async def handle_event(self, event: dict[str, Any], processor: MessageProcessorFunc) -> None:
        """Process the records of a Lambda SQS event. See ``handle_messages``."""
        messages = [SQSMessage.from_record(record) for record in event.get("Records", [])]
        await self.handle_messages(messages, processor)

    def handle_messages_sync(
        self, messages: Iterable[SQSMessage], processor: MessageProcessorFunc
    ) -> None:
        """Blocking variant of ``handle_messages`` for synchronous Lambda handlers."""
        asyncio.run(self.handle_messages(messages, processor))

    async def _process_batch(
        self, messages: list[SQSMessage], processor: MessageProcessorFunc
    ) -> BatchResult:
        """Fan out one task per message and fan in exactly one outcome per message."""
        result = BatchResult(total=len(messages))
        outcomes: asyncio.Queue[tuple[int, ProcessOutcome]] = asyncio.Queue()
        semaphore = (
            asyncio.Semaphore(self.config.max_concurrency)
            if self.config.max_concurrency is not None
            else None
        )
        # Owned by this batch so a hung blocking processor can be abandoned at the deadline
        thread_pool = ThreadPoolExecutor(
            max_workers=self.config.max_concurrency or max(len(messages), 1),
            thread_name_prefix="sqs-redriver",
        )
        attempts: dict[int, int] = {}

        pending = dict(enumerate(messages))
        tasks = [
            asyncio.create_task(
                self._run_message(
                    index, message, processor, outcomes, semaphore, thread_pool, attempts
                )
            )
            for index, message in pending.items()
        ]

        loop = asyncio.get_running_loop()
        deadline = (
            loop.time() + self.config.batch_timeout
            if self.config.batch_timeout is not None
            else None
        )

        try:
            while pending:
                if deadline is None:
                    index, outcome = await outcomes.get()
                else:
                    try:
                        index, outcome = await asyncio.wait_for(
                            outcomes.get(), timeout=max(deadline - loop.time(), 0)
                        )
                    except TimeoutError:
                        await self._expire_pending(tasks, pending, outcomes, result, attempts)
                        break
                del pending[index]
                result.add_outcome(outcome)
        finally:
            for task in tasks:
                if not task.done():
                    task.cancel()
            thread_pool.shutdown(wait=False, cancel_futures=True)

        return result

    async def _run_message(
        self,
        index: int,
        message: SQSMessage,
        processor: MessageProcessorFunc,
        outcomes: asyncio.Queue[tuple[int, ProcessOutcome]],
        semaphore: asyncio.Semaphore | None,
        thread_pool: ThreadPoolExecutor,
        attempts: dict[int, int],
    ) -> None:
        """Execute one message and publish its outcome, converting crashes into failures."""
        run = functools.partial(
            execute,
            message,
            processor,
            self.config.retries,
            self.observers,
            thread_pool=thread_pool,
            on_attempt=functools.partial(attempts.__setitem__, index),
        )
        try:
            if semaphore is None:
                outcome = await run()
            else:
                async with semaphore:
                    outcome = await run()
        except (asyncio.CancelledError, KeyboardInterrupt, SystemExit):
            raise
        except BaseException as e:
            logger.error(
                f"✗ Processing task for {message.message_id} crashed: {type(e).__name__}: {e}"
            )
            crash = ProcessorCrashError(f"processing task crashed: {type(e).__name__}: {e}")
            crash.__cause__ = e
            outcome = ProcessOutcome(message=message, error=crash, attempts=attempts.get(index, 0))
            await self._emit_synthesized_failure(outcome)

        outcomes.put_nowait((index, outcome))

    async def _emit_synthesized_failure(self, outcome: ProcessOutcome) -> None:
        """Report a failure the executor never reported itself."""
        await emit_event(
            self.observers,
            ProcessingEvent.MESSAGE_FAILED,
            {
                "message_id": outcome.message_id,
                "attempts": outcome.attempts,
                "error_type": type(outcome.error).__name__,
            },
        )

    async def _expire_pending(
        self,
        tasks: list[asyncio.Task],
        pending: dict[int, SQSMessage],
        outcomes: asyncio.Queue[tuple[int, ProcessOutcome]],
        result: BatchResult,
        attempts: dict[int, int],
    ) -> None:
        """Cancel unfinished tasks and record a timeout failure for each message without an outcome."""
        for task in tasks:
            if not task.done():
                task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)

        # Tasks may have finished between the deadline and their cancellation
        while not outcomes.empty():
            index, outcome = outcomes.get_nowait()
            del pending[index]
            result.add_outcome(outcome)

        logger.error(
            f"⏱ Batch deadline of {self.config.batch_timeout}s exceeded with "
            f"{len(pending)} message(s) still processing"
        )
        await emit_event(
            self.observers,
            ProcessingEvent.BATCH_TIMEOUT,
            {"timeout": self.config.batch_timeout, "pending": len(pending)},
        )

        for index, message in pending.items():
            error = BatchTimeoutError(
                f"message {message.message_id} not processed within "
                f"{self.config.batch_timeout}s batch deadline"
            )
            # Counts attempts started, including the one interrupted by the deadline
            outcome = ProcessOutcome(message=message, error=error, attempts=attempts.get(index, 0))
            result.add_outcome(outcome)
            await self._emit_synthesized_failure(outcome)
        pending.clear()

    async def _delete_processed(self, result: BatchResult, client: QueueClientLike) -> None:
        """Delete every successful message, one call at a time. The first failure aborts."""
        delete_is_async = inspect.iscoroutinefunction(client.delete_message)

        for outcome in result.successes:
            try:
                if delete_is_async:
                    await client.delete_message(
                        QueueUrl=self.config.queue_url,
                        ReceiptHandle=outcome.message.receipt_handle,
                    )
                else:
                    await asyncio.to_thread(
                        client.delete_message,
                        QueueUrl=self.config.queue_url,
                        ReceiptHandle=outcome.message.receipt_handle,
                    )
            except Exception as e:
                logger.error(
                    f"✗ Failed to delete {outcome.message_id} from {self.config.queue_url}: "
                    f"{type(e).__name__}: {e}"
                )
                raise DeletionError(outcome.message_id, e) from e

            logger.debug(f"Deleted {outcome.message_id} from {self.config.queue_url}")
            await emit_event(
                self.observers,
                ProcessingEvent.MESSAGE_DELETED,
                {"message_id": outcome.message_id},
            )
