"""Type protocols for the redriver's collaborators."""

from typing import Any, Protocol


class QueueClientLike(Protocol):
    """Protocol a queue client must satisfy. A boto3 SQS client does."""

    def delete_message(self, *, QueueUrl: str, ReceiptHandle: str) -> Any:  # noqa: N803
        """Delete one message from the queue."""
        ...


class QueueClientFactory(Protocol):
    """Callable that builds a queue client for a region."""

    def __call__(self, region_name: str | None = None) -> QueueClientLike:
        ...
