"""
Metrics Collection
Prometheus metrics for generation workflows and the event channel.
"""

import time
from contextlib import contextmanager
from typing import Callable

from prometheus_client import Counter, Gauge, Histogram, generate_latest


class MetricsCollector:
    """
    Collects and exposes Prometheus metrics for the service.
    """

    def __init__(self) -> None:
        # Workflow runs
        self.workflow_runs_total = Counter(
            "mockup_workflow_runs_total",
            "Total number of workflow runs",
            ["workflow", "status"],
        )
        self.workflow_duration = Histogram(
            "mockup_workflow_duration_seconds",
            "Workflow run duration in seconds",
            ["workflow"],
            buckets=[1.0, 5.0, 15.0, 30.0, 60.0, 120.0, 300.0, 600.0],
        )
        self.step_attempts_total = Counter(
            "mockup_step_attempts_total",
            "Workflow step attempts",
            ["step", "outcome"],
        )
        self.frames_persisted_total = Counter(
            "mockup_frames_persisted_total",
            "Frames written to the store",
            ["mode"],
        )

        # Model calls
        self.llm_calls_total = Counter(
            "mockup_llm_calls_total",
            "Total number of model calls",
            ["operation", "status"],
        )
        self.llm_duration = Histogram(
            "mockup_llm_duration_seconds",
            "Model call duration in seconds",
            ["operation"],
            buckets=[0.5, 1.0, 2.5, 5.0, 10.0, 30.0, 60.0, 120.0],
        )
        self.image_lookups_total = Counter(
            "mockup_image_lookups_total",
            "Image search tool invocations",
            ["outcome"],
        )

        # Event channel
        self.events_published_total = Counter(
            "mockup_events_published_total",
            "Lifecycle events published",
            ["topic"],
        )
        self.events_dropped_total = Counter(
            "mockup_events_dropped_total",
            "Events dropped because a subscriber queue was full",
            ["topic"],
        )
        self.active_subscriptions = Gauge(
            "mockup_active_subscriptions",
            "Open channel subscriptions",
        )

        self.uptime = Gauge("mockup_uptime_seconds", "Service uptime in seconds")
        self.start_time = time.time()

    def record_workflow_run(self, workflow: str, status: str, duration: float) -> None:
        self.workflow_runs_total.labels(workflow=workflow, status=status).inc()
        self.workflow_duration.labels(workflow=workflow).observe(duration)

    def record_step_attempt(self, step: str, outcome: str) -> None:
        # screen steps share one label value to keep cardinality flat
        kind = step.rsplit("-", 1)[0] if step[-1:].isdigit() else step
        self.step_attempts_total.labels(step=kind, outcome=outcome).inc()

    def record_frame_persisted(self, mode: str) -> None:
        self.frames_persisted_total.labels(mode=mode).inc()

    def record_llm_call(self, operation: str, status: str, duration: float) -> None:
        self.llm_calls_total.labels(operation=operation, status=status).inc()
        self.llm_duration.labels(operation=operation).observe(duration)

    def record_image_lookup(self, outcome: str) -> None:
        self.image_lookups_total.labels(outcome=outcome).inc()

    def record_event_published(self, topic: str) -> None:
        self.events_published_total.labels(topic=topic).inc()

    def record_event_dropped(self, topic: str) -> None:
        self.events_dropped_total.labels(topic=topic).inc()

    @contextmanager
    def measure_duration(self, callback: Callable[[float], None]):
        """Context manager to measure operation duration."""
        start = time.time()
        try:
            yield
        finally:
            callback(time.time() - start)

    def get_metrics(self) -> bytes:
        """Get metrics in Prometheus format."""
        self.uptime.set(time.time() - self.start_time)
        return generate_latest()


# Global metrics collector instance
metrics_collector = MetricsCollector()
