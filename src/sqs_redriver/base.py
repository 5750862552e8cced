"""Base data model for batch SQS message processing."""

from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class SQSMessage(BaseModel):
    """
    A single SQS message as delivered to a Lambda function or returned by ReceiveMessage.

    Field names follow Python conventions; the Lambda event keys (``messageId``,
    ``receiptHandle``, ...) are accepted as aliases.
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    message_id: str = Field(alias="messageId", min_length=1)
    receipt_handle: str = Field(alias="receiptHandle")
    body: str = ""
    attributes: dict[str, str] = Field(default_factory=dict)
    message_attributes: dict[str, Any] = Field(default_factory=dict, alias="messageAttributes")
    md5_of_body: str | None = Field(default=None, alias="md5OfBody")
    event_source: str | None = Field(default=None, alias="eventSource")
    event_source_arn: str | None = Field(default=None, alias="eventSourceARN")
    aws_region: str | None = Field(default=None, alias="awsRegion")

    @classmethod
    def from_record(cls, record: dict[str, Any]) -> "SQSMessage":
        """
        Build a message from a Lambda SQS record or a ReceiveMessage entry.

        ReceiveMessage uses PascalCase keys (``MessageId``, ``ReceiptHandle``, ``Body``),
        Lambda uses camelCase. Both are accepted.
        """
        if "MessageId" in record:
            record = {
                "messageId": record["MessageId"],
                "receiptHandle": record.get("ReceiptHandle", ""),
                "body": record.get("Body", ""),
                "attributes": record.get("Attributes", {}),
                "messageAttributes": record.get("MessageAttributes", {}),
                "md5OfBody": record.get("MD5OfBody"),
            }
        return cls.model_validate(record)


@dataclass
class ProcessOutcome:
    """
    Terminal result of processing one message.

    Attributes:
        message: The message that was processed
        error: Error from the last attempt, None if an attempt succeeded
        attempts: Number of processor invocations made
    """

    message: SQSMessage
    error: BaseException | None = None
    attempts: int = 0

    @property
    def succeeded(self) -> bool:
        return self.error is None

    @property
    def message_id(self) -> str:
        return self.message.message_id


@dataclass
class BatchResult:
    """
    Outcomes of a batch, partitioned into successes and failures.

    Lists keep arrival order, which follows task completion and not input order.

    Attributes:
        total: Number of messages in the batch
        successes: Outcomes without an error
        failures: Outcomes carrying a terminal error
    """

    total: int
    successes: list[ProcessOutcome] = field(default_factory=list)
    failures: list[ProcessOutcome] = field(default_factory=list)

    def add_outcome(self, outcome: ProcessOutcome) -> None:
        """Record an outcome in exactly one of the two lists."""
        if outcome.error is not None:
            self.failures.append(outcome)
            return

        self.successes.append(outcome)

    @property
    def received(self) -> int:
        return len(self.successes) + len(self.failures)

    @property
    def is_complete(self) -> bool:
        return self.received == self.total

    def has_only_successes(self) -> bool:
        return len(self.successes) == self.total

    def all_failed(self) -> bool:
        return len(self.failures) == self.total and self.total > 0


# Processors may be sync or async. A raised exception or a returned exception
# instance marks the attempt as failed.
MessageProcessorFunc = Callable[[SQSMessage], Awaitable[Any] | Any]
