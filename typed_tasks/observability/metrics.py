"""
Prometheus metrics collection.
"""

from prometheus_client import (
    CONTENT_TYPE_LATEST,
    REGISTRY,
    CollectorRegistry,
    Counter,
    Histogram,
    generate_latest,
)

from typed_tasks.constants import (
    METRIC_SUBMIT_ATTEMPTS,
    METRIC_SUBMIT_DURATION,
    METRIC_TASKS_HANDLED,
    METRIC_TASKS_SCHEDULED,
)

# Global metrics instance
_metrics: "MetricsCollector | None" = None


class MetricsCollector:
    """
    Prometheus metrics collector for typed-tasks.

    Collects metrics for:
    - Scheduling outcomes (created, deduplicated, failed)
    - Submission attempts and duration
    - Handler dispatch results
    """

    def __init__(self, registry: CollectorRegistry | None = None):
        """
        Initialize the metrics collector.

        Args:
            registry: Optional custom registry. Uses default if not provided.
        """
        self._registry = registry or REGISTRY

        self.tasks_scheduled = Counter(
            METRIC_TASKS_SCHEDULED,
            "Total number of scheduling calls by outcome",
            ["queue", "outcome"],
            registry=self._registry,
        )

        self.submit_attempts = Counter(
            METRIC_SUBMIT_ATTEMPTS,
            "Total number of task creation attempts",
            ["queue"],
            registry=self._registry,
        )

        self.submit_duration = Histogram(
            METRIC_SUBMIT_DURATION,
            "Time spent submitting a task, retries included",
            ["queue"],
            buckets=(0.01, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0, 30.0, 60.0),
            registry=self._registry,
        )

        self.tasks_handled = Counter(
            METRIC_TASKS_HANDLED,
            "Total number of tasks dispatched to handlers by status",
            ["queue", "status"],
            registry=self._registry,
        )

    def record_task_scheduled(
        self,
        queue: str,
        outcome: str,
        attempts: int,
        duration_seconds: float,
    ) -> None:
        """Record the end of a scheduling call."""
        self.tasks_scheduled.labels(queue=queue, outcome=outcome).inc()
        self.submit_attempts.labels(queue=queue).inc(attempts)
        self.submit_duration.labels(queue=queue).observe(duration_seconds)

    def record_task_handled(self, queue: str, status: str) -> None:
        """Record a handler dispatch."""
        self.tasks_handled.labels(queue=queue, status=status).inc()

    def get_metrics(self) -> bytes:
        """Get all metrics in Prometheus format."""
        return generate_latest(self._registry)

    def get_content_type(self) -> str:
        """Get the content type for metrics response."""
        return CONTENT_TYPE_LATEST


def setup_metrics() -> MetricsCollector:
    """
    Set up and return the metrics collector.

    Returns:
        MetricsCollector: The metrics collector instance.
    """
    global _metrics
    if _metrics is None:
        _metrics = MetricsCollector()
    return _metrics


def get_metrics() -> MetricsCollector:
    """Get the metrics collector instance, creating it on first use."""
    if _metrics is None:
        return setup_metrics()
    return _metrics
