"""Basic tests for the sqs_redriver module using mock processors and queue clients.

These tests don't require AWS credentials and can be run in CI/CD.
"""

import pytest

from sqs_redriver import (
    BatchProcessingError,
    DeletionPolicy,
    Redriver,
    RedriverConfig,
    SQSMessage,
)
from sqs_redriver.testing import MockProcessor, MockQueueClient, make_messages

QUEUE_URL = "https://sqs.us-east-1.amazonaws.com/123456789012/orders"


@pytest.mark.asyncio
async def test_all_messages_succeed():
    """Test a fully successful batch deletes every message and raises nothing."""
    processor = MockProcessor()
    client = MockQueueClient()
    redriver = Redriver(RedriverConfig(queue_url=QUEUE_URL, retries=3), client=client)

    messages = make_messages("m1", "m2", "m3", "m4", "m5")
    result = await redriver.handle_messages(messages, processor)

    assert result is None
    assert processor.call_count() == 5
    assert sorted(client.deleted) == sorted(m.receipt_handle for m in messages)
    assert all(queue_url == QUEUE_URL for queue_url, _ in client.calls)


@pytest.mark.asyncio
async def test_mixed_batch_scenario():
    """A fails once then succeeds, B always fails, C succeeds (retries=2)."""
    processor = MockProcessor(fail_times={"A": 1}, always_fail={"B"})
    client = MockQueueClient()
    redriver = Redriver(RedriverConfig(queue_url=QUEUE_URL, retries=2), client=client)

    with pytest.raises(BatchProcessingError) as exc_info:
        await redriver.handle_messages(make_messages("A", "B", "C"), processor)

    error = exc_info.value
    assert {o.message_id for o in error.result.successes} == {"A", "C"}
    assert error.failed_message_ids == ["B"]
    assert not error.all_failed

    # Deletion only for the successes
    assert sorted(client.deleted) == ["handle-A", "handle-C"]

    # The reported error is the one from the last attempt
    assert str(error.errors["B"]) == "attempt 2 failed for B"
    assert "message : B, error : attempt 2 failed for B" in str(error)

    assert processor.call_count("A") == 2
    assert processor.call_count("B") == 2
    assert processor.call_count("C") == 1


@pytest.mark.asyncio
async def test_all_messages_fail():
    """Test a wholly failed batch goes through the same structured error without deletions."""
    processor = MockProcessor(always_fail={"m1", "m2", "m3"})
    client = MockQueueClient()
    redriver = Redriver(RedriverConfig(queue_url=QUEUE_URL, retries=3), client=client)

    with pytest.raises(BatchProcessingError) as exc_info:
        await redriver.handle_messages(make_messages("m1", "m2", "m3"), processor)

    error = exc_info.value
    assert error.all_failed
    assert error.result.successes == []
    assert sorted(error.failed_message_ids) == ["m1", "m2", "m3"]
    assert client.calls == []
    assert processor.call_count() == 9


@pytest.mark.asyncio
async def test_success_and_failure_counts_cover_batch():
    """Test every outcome lands in exactly one list."""
    processor = MockProcessor(fail_times={"m2": 5}, always_fail={"m4"})
    redriver = Redriver(RedriverConfig(queue_url=QUEUE_URL, retries=3), client=MockQueueClient())

    messages = make_messages(*(f"m{i}" for i in range(10)))
    with pytest.raises(BatchProcessingError) as exc_info:
        await redriver.handle_messages(messages, processor)

    result = exc_info.value.result
    assert result.total == 10
    assert len(result.successes) + len(result.failures) == 10
    assert result.is_complete
    ids = [o.message_id for o in result.successes + result.failures]
    assert sorted(ids) == sorted(m.message_id for m in messages)


@pytest.mark.asyncio
async def test_on_failure_policy_skips_deletion_on_full_success():
    """Test DeletionPolicy.ON_FAILURE never deletes when the whole batch succeeded."""
    client = MockQueueClient()
    config = RedriverConfig(
        queue_url=QUEUE_URL, retries=2, deletion_policy=DeletionPolicy.ON_FAILURE
    )
    redriver = Redriver(config, client=client)

    await redriver.handle_messages(make_messages("m1", "m2"), MockProcessor())

    assert client.calls == []


@pytest.mark.asyncio
async def test_on_failure_policy_deletes_successes_on_partial_failure():
    """Test DeletionPolicy.ON_FAILURE still deletes successes when something failed."""
    client = MockQueueClient()
    config = RedriverConfig(
        queue_url=QUEUE_URL, retries=2, deletion_policy=DeletionPolicy.ON_FAILURE
    )
    redriver = Redriver(config, client=client)

    with pytest.raises(BatchProcessingError):
        await redriver.handle_messages(
            make_messages("m1", "m2"), MockProcessor(always_fail={"m2"})
        )

    assert client.deleted == ["handle-m1"]


@pytest.mark.asyncio
async def test_debug_mode_skips_client_and_deletion():
    """Test debug mode never builds a client and still reports failures."""

    def exploding_factory(region_name=None):
        raise AssertionError("client factory must not be called in debug mode")

    redriver = Redriver(RedriverConfig(retries=2, debug=True), client_factory=exploding_factory)

    await redriver.handle_messages(make_messages("m1"), MockProcessor())

    with pytest.raises(BatchProcessingError) as exc_info:
        await redriver.handle_messages(
            make_messages("m1", "m2"), MockProcessor(always_fail={"m1"})
        )
    assert exc_info.value.failed_message_ids == ["m1"]


@pytest.mark.asyncio
async def test_handle_event_parses_lambda_records():
    """Test Lambda SQS events are parsed into messages."""
    event = {
        "Records": [
            {
                "messageId": "059f36b4-87a3-44ab-83d2-661975830a7d",
                "receiptHandle": "AQEBwJnKyrHigUMZj6rYigCgxlaS3SLy0a",
                "body": '{"order_id": 1}',
                "attributes": {"ApproximateReceiveCount": "1"},
                "messageAttributes": {},
                "md5OfBody": "e4e68fb7bd0e697a0ae8f1bb342846b3",
                "eventSource": "aws:sqs",
                "eventSourceARN": "arn:aws:sqs:us-east-2:123456789012:my-queue",
                "awsRegion": "us-east-2",
            },
        ]
    }
    received: list[SQSMessage] = []

    async def processor(message: SQSMessage) -> None:
        received.append(message)

    client = MockQueueClient()
    redriver = Redriver(RedriverConfig(queue_url=QUEUE_URL), client=client)
    await redriver.handle_event(event, processor)

    assert len(received) == 1
    assert received[0].message_id == "059f36b4-87a3-44ab-83d2-661975830a7d"
    assert received[0].body == '{"order_id": 1}'
    assert received[0].event_source == "aws:sqs"
    assert client.deleted == ["AQEBwJnKyrHigUMZj6rYigCgxlaS3SLy0a"]


def test_handle_messages_sync():
    """Test the blocking wrapper used from synchronous Lambda handlers."""
    client = MockQueueClient()
    redriver = Redriver(RedriverConfig(queue_url=QUEUE_URL), client=client)

    with pytest.raises(BatchProcessingError) as exc_info:
        redriver.handle_messages_sync(
            make_messages("m1", "m2"), MockProcessor(always_fail={"m2"})
        )

    assert exc_info.value.batch_item_failures() == {
        "batchItemFailures": [{"itemIdentifier": "m2"}]
    }
    assert client.deleted == ["handle-m1"]
