"""Metrics collection observer."""

import asyncio
import json
from typing import Any

from .base import BaseObserver, ProcessingEvent


class MetricsObserver(BaseObserver):
    """Collect metrics for monitoring (thread-safe)."""

    def __init__(self):
        """Initialize metrics collector."""
        self.metrics = {
            "batches_processed": 0,
            "messages_processed": 0,
            "messages_succeeded": 0,
            "messages_failed": 0,
            "messages_deleted": 0,
            "attempts_failed": 0,
            "batch_timeouts": 0,
            "processing_times": [],
            "attempts_histogram": {},
            "error_counts": {},
        }
        self._lock = asyncio.Lock()

    async def on_event(
        self,
        event: ProcessingEvent,
        data: dict[str, Any],
    ) -> None:
        """Collect metrics from events (thread-safe)."""
        async with self._lock:
            if event == ProcessingEvent.MESSAGE_SUCCEEDED:
                self.metrics["messages_processed"] += 1
                self.metrics["messages_succeeded"] += 1
                if "duration" in data:
                    self.metrics["processing_times"].append(data["duration"])
                self._count_attempts(data)

            elif event == ProcessingEvent.MESSAGE_FAILED:
                self.metrics["messages_processed"] += 1
                self.metrics["messages_failed"] += 1
                if "error_type" in data:
                    error_type = data["error_type"]
                    self.metrics["error_counts"][error_type] = (
                        self.metrics["error_counts"].get(error_type, 0) + 1
                    )
                self._count_attempts(data)

            elif event == ProcessingEvent.ATTEMPT_FAILED:
                self.metrics["attempts_failed"] += 1

            elif event == ProcessingEvent.MESSAGE_DELETED:
                self.metrics["messages_deleted"] += 1

            elif event == ProcessingEvent.BATCH_TIMEOUT:
                self.metrics["batch_timeouts"] += 1

            elif event == ProcessingEvent.BATCH_COMPLETED:
                self.metrics["batches_processed"] += 1

    def _count_attempts(self, data: dict[str, Any]) -> None:
        if "attempts" in data:
            histogram = self.metrics["attempts_histogram"]
            histogram[data["attempts"]] = histogram.get(data["attempts"], 0) + 1

    async def get_metrics(self) -> dict[str, Any]:
        """Get collected metrics with computed statistics (thread-safe)."""
        async with self._lock:
            processing_times = self.metrics["processing_times"]
            return {
                **self.metrics,
                "avg_processing_time": (
                    sum(processing_times) / len(processing_times) if processing_times else 0
                ),
                "success_rate": (
                    self.metrics["messages_succeeded"] / self.metrics["messages_processed"]
                    if self.metrics["messages_processed"] > 0
                    else 0
                ),
            }

    def reset(self) -> None:
        """Reset all metrics."""
        self.__init__()

    async def export_json(self) -> str:
        """Export metrics as JSON string.

        Returns:
            JSON string containing all metrics and computed statistics
        """
        metrics = await self.get_metrics()
        export_data = {
            **metrics,
            "processing_times_count": len(metrics.get("processing_times", [])),
            # JSON object keys must be strings
            "attempts_histogram": {
                str(attempts): count for attempts, count in metrics["attempts_histogram"].items()
            },
        }
        export_data.pop("processing_times", None)
        return json.dumps(export_data, indent=2)

    async def export_prometheus(self) -> str:
        """Export metrics in Prometheus text format.

        Returns:
            Prometheus-formatted metrics string

        Example:
            >>> observer = MetricsObserver()
            >>> # ... process a batch ...
            >>> prom_text = await observer.export_prometheus()
            >>> print(prom_text)
            # HELP sqs_redriver_messages_processed Total messages processed
            # TYPE sqs_redriver_messages_processed counter
            sqs_redriver_messages_processed 10
            ...
        """
        metrics = await self.get_metrics()

        lines = []

        counters = [
            ("batches_processed", "Total batches processed"),
            ("messages_processed", "Total messages processed"),
            ("messages_succeeded", "Total messages succeeded"),
            ("messages_failed", "Total messages failed"),
            ("messages_deleted", "Total messages deleted from the source queue"),
            ("attempts_failed", "Total failed processor attempts"),
            ("batch_timeouts", "Total batches that hit their deadline"),
        ]

        for metric_name, help_text in counters:
            lines.append(f"# HELP sqs_redriver_{metric_name} {help_text}")
            lines.append(f"# TYPE sqs_redriver_{metric_name} counter")
            lines.append(f"sqs_redriver_{metric_name} {metrics.get(metric_name, 0)}")
            lines.append("")

        gauges = [
            ("avg_processing_time", "Average processing time in seconds"),
            ("success_rate", "Success rate (0.0 to 1.0)"),
        ]

        for metric_name, help_text in gauges:
            lines.append(f"# HELP sqs_redriver_{metric_name} {help_text}")
            lines.append(f"# TYPE sqs_redriver_{metric_name} gauge")
            lines.append(f"sqs_redriver_{metric_name} {metrics.get(metric_name, 0)}")
            lines.append("")

        error_counts = metrics.get("error_counts", {})
        if error_counts:
            lines.append("# HELP sqs_redriver_errors_total Total failed messages by error type")
            lines.append("# TYPE sqs_redriver_errors_total counter")
            for error_type, count in error_counts.items():
                safe_type = error_type.replace('"', '\\"')
                lines.append(f'sqs_redriver_errors_total{{error_type="{safe_type}"}} {count}')
            lines.append("")

        return "\n".join(lines)

    async def export_dict(self) -> dict[str, Any]:
        """Export metrics as a dictionary."""
        return await self.get_metrics()
