"""Configuration management for the redriver."""

from dataclasses import dataclass
from enum import Enum

from ..errors import ConfigurationError


class DeletionPolicy(Enum):
    """When successfully processed messages are deleted from the source queue."""

    # Delete every success, including when the whole batch succeeded
    ALWAYS = "always"
    # Delete successes only when at least one message failed
    ON_FAILURE = "on_failure"


@dataclass(frozen=True)
class RedriverConfig:
    """Immutable policy for one redriver."""

    queue_url: str = ""
    retries: int = 3

    # Debug mode skips queue client construction and every deletion
    debug: bool = False

    deletion_policy: DeletionPolicy = DeletionPolicy.ALWAYS

    # None = one concurrent task per message with no cap
    max_concurrency: int | None = None

    # None = wait for every processor indefinitely
    batch_timeout: float | None = None

    region_name: str | None = None

    def validate(self) -> None:
        """Validate configuration."""
        if isinstance(self.retries, bool) or not isinstance(self.retries, int) or self.retries < 1:
            raise ConfigurationError(
                f"retries must be 1 or above (got {self.retries!r}). "
                f"Set config.retries to a positive integer."
            )
        if not self.debug and not self.queue_url:
            raise ConfigurationError(
                "queue_url is required unless debug is enabled. "
                "Set config.queue_url to the URL of the consumed queue."
            )
        if not isinstance(self.deletion_policy, DeletionPolicy):
            raise ConfigurationError(
                f"deletion_policy must be a DeletionPolicy (got {self.deletion_policy!r}). "
                f"Use DeletionPolicy.ALWAYS or DeletionPolicy.ON_FAILURE."
            )
        if self.max_concurrency is not None and self.max_concurrency < 1:
            raise ConfigurationError(
                f"max_concurrency must be >= 1 (got {self.max_concurrency}). "
                f"Set config.max_concurrency to None for unlimited, or a positive integer."
            )
        if self.batch_timeout is not None and self.batch_timeout <= 0:
            raise ConfigurationError(
                f"batch_timeout must be > 0 (got {self.batch_timeout}). "
                f"Set config.batch_timeout to None to disable, or a positive number in seconds."
            )
