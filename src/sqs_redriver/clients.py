"""AWS client construction for queue deletions."""

import logging

import boto3
from botocore.config import Config
from botocore.exceptions import BotoCoreError, ClientError

from .core.protocols import QueueClientLike
from .errors import TransportInitError

logger = logging.getLogger(__name__)

# Deletions are not retried by the redriver; let botocore absorb transient throttling
DEFAULT_CLIENT_CONFIG = Config(retries={"max_attempts": 3, "mode": "standard"})


def create_sqs_client(region_name: str | None = None) -> QueueClientLike:
    """
    Build an SQS client from the default credential chain.

    Args:
        region_name: AWS region, or None to resolve it from the environment/profile

    Returns:
        A boto3 SQS client

    Raises:
        TransportInitError: If the session or client cannot be created
    """
    try:
        session = boto3.session.Session(region_name=region_name)
        client = session.client("sqs", config=DEFAULT_CLIENT_CONFIG)
    except (BotoCoreError, ClientError) as e:
        logger.error(f"✗ Failed to initialize SQS client: {e}")
        raise TransportInitError(f"can't create an AWS session, reason: {e}") from e

    logger.info(f"✓ SQS client initialized (region: {client.meta.region_name})")
    return client
