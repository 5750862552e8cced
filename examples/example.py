"""Example demonstrating partial failure handling with a mock queue client.

Runs locally without AWS credentials.
"""

import asyncio
import json
import logging
import random

from pydantic import BaseModel

from sqs_redriver import BatchProcessingError, Redriver, RedriverConfig, SQSMessage
from sqs_redriver.observers import MetricsObserver
from sqs_redriver.testing import MockQueueClient


class Order(BaseModel):
    """Example message payload."""

    order_id: int
    amount: float


async def process_order(message: SQSMessage) -> None:
    """Validate the payload and simulate a flaky downstream call."""
    order = Order.model_validate_json(message.body)
    await asyncio.sleep(0.01)
    if order.amount < 0:
        raise ValueError(f"negative amount for order {order.order_id}")
    if random.random() < 0.3:
        raise ConnectionError("payment service unavailable")


async def main():
    logging.basicConfig(level=logging.INFO, format="%(levelname)s - %(message)s")

    messages = [
        SQSMessage(
            message_id=f"msg-{i}",
            receipt_handle=f"handle-{i}",
            body=json.dumps({"order_id": i, "amount": -5.0 if i == 3 else 10.0 * i}),
        )
        for i in range(8)
    ]

    client = MockQueueClient()
    metrics = MetricsObserver()
    redriver = Redriver(
        RedriverConfig(queue_url="https://sqs.us-east-1.amazonaws.com/123456789012/orders", retries=3),
        client=client,
        observers=[metrics],
    )

    try:
        await redriver.handle_messages(messages, process_order)
        print("✓ All messages processed")
    except BatchProcessingError as e:
        print(f"\n{'=' * 60}")
        print(f"Failed: {len(e.failed_message_ids)}/{e.result.total}")
        for message_id, error in e.errors.items():
            print(f"  {message_id}: {type(error).__name__}: {error}")
        print(f"Lambda response: {e.batch_item_failures()}")
        print(f"{'=' * 60}\n")

    print(f"Deleted {len(client.deleted)} message(s)")
    print(await metrics.export_json())


if __name__ == "__main__":
    asyncio.run(main())
