"""Error types raised or recorded by the redriver."""

from typing import Any

from .base import BatchResult


class RedriverError(Exception):
    """Base class for all redriver errors."""

    pass


class ConfigurationError(RedriverError, ValueError):
    """Invalid redriver configuration. Raised before any message is dispatched."""

    pass


class TransportInitError(RedriverError):
    """The queue client could not be constructed. Raised before any message is dispatched."""

    pass


class DeletionError(RedriverError):
    """A successfully processed message could not be deleted from the source queue."""

    def __init__(self, message_id: str, cause: BaseException):
        self.message_id = message_id
        self.cause = cause
        super().__init__(
            f"can't delete message {message_id} from queue, reason: {type(cause).__name__}: {cause}"
        )


class BatchTimeoutError(RedriverError, TimeoutError):
    """
    Recorded on outcomes whose processing was still running at the batch deadline.

    This is never raised by ``handle_messages``; it only appears as the error of a
    failed outcome inside a ``BatchProcessingError``.
    """

    pass


class ProcessorCrashError(RedriverError):
    """Recorded on an outcome whose task died outside the retry loop."""

    pass


class BatchProcessingError(RedriverError):
    """
    One or more messages of a batch failed every attempt.

    Raised only after every required deletion succeeded. ``result.successes`` is
    empty when the whole batch failed.
    """

    def __init__(self, result: BatchResult):
        self.result = result
        super().__init__(self._format(result))

    @staticmethod
    def _format(result: BatchResult) -> str:
        lines = [f"messages processing failed ({len(result.failures)}/{result.total}):"]
        for outcome in result.failures:
            lines.append(f"message : {outcome.message_id}, error : {outcome.error}")
        return "\n".join(lines)

    @property
    def failed_message_ids(self) -> list[str]:
        return [outcome.message_id for outcome in self.result.failures]

    @property
    def errors(self) -> dict[str, BaseException | None]:
        """Terminal error per failed message id."""
        return {outcome.message_id: outcome.error for outcome in self.result.failures}

    @property
    def all_failed(self) -> bool:
        return not self.result.successes

    def batch_item_failures(self) -> dict[str, Any]:
        """
        Lambda partial batch response for the failed messages.

        Return this from a handler configured with ``ReportBatchItemFailures`` so
        only the failed messages become visible again.
        """
        return {
            "batchItemFailures": [
                {"itemIdentifier": message_id} for message_id in self.failed_message_ids
            ]
        }
