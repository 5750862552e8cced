"""Example Lambda handler consuming an SQS queue.

Configure the event source mapping with ReportBatchItemFailures so the
returned failures are the only messages made visible again.
"""

import logging
import os

from sqs_redriver import BatchProcessingError, Redriver, RedriverConfig, SQSMessage

logger = logging.getLogger()
logger.setLevel(logging.INFO)

# Built once per container and reused across invocations
redriver = Redriver(
    RedriverConfig(
        queue_url=os.environ.get("QUEUE_URL", ""),
        retries=int(os.environ.get("REDRIVER_RETRIES", "3")),
        debug=os.environ.get("REDRIVER_DEBUG", "").lower() == "true",
    )
)


def process_record(message: SQSMessage) -> None:
    logger.info(f"Processing {message.message_id}: {message.body[:100]}")


def lambda_handler(event, context):
    messages = [SQSMessage.from_record(record) for record in event.get("Records", [])]
    try:
        redriver.handle_messages_sync(messages, process_record)
    except BatchProcessingError as e:
        logger.warning(str(e))
        return e.batch_item_failures()
    return {"batchItemFailures": []}
