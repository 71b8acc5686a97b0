"""Prometheus metrics for monitoring the feed ingestor."""

import logging
import time
from typing import Optional

from prometheus_client import CollectorRegistry, Counter, Histogram, start_http_server

logger = logging.getLogger(__name__)


class PrometheusExporter:
    """
    Prometheus metrics exporter for the feed ingestor.

    Each exporter owns its metrics in a private ``CollectorRegistry``; one
    instance is created at process start and handed to the fetchers and the
    sink.
    """

    def __init__(self, port: int = 2112, registry: Optional[CollectorRegistry] = None):
        """
        Initialize the Prometheus exporter.

        Args:
            port: Port to expose metrics on
            registry: Registry to register metrics in (a fresh one by default)
        """
        self.port = port
        self.server_started = False
        self.registry = registry if registry is not None else CollectorRegistry()

        self.github_api_calls = Counter(
            "github_api_calls_total",
            "Total number of GitHub API calls",
            registry=self.registry,
        )
        self.stackoverflow_api_calls = Counter(
            "stackoverflow_api_calls_total",
            "Total number of StackOverflow API calls",
            registry=self.registry,
        )
        self.rows_stored = Counter(
            "feed_ingestor_rows_stored_total",
            "Number of rows inserted into destination tables",
            ["table"],
            registry=self.registry,
        )
        self.request_duration = Histogram(
            "feed_ingestor_request_duration_seconds",
            "Duration of upstream API requests in seconds",
            ["api"],
            buckets=[0.1, 0.5, 1.0, 2.0, 5.0, 10.0, 30.0, 60.0],
            registry=self.registry,
        )

    def start_server(self) -> None:
        """Start the Prometheus metrics server in a background thread."""
        if not self.server_started:
            start_http_server(self.port, registry=self.registry)
            self.server_started = True
            logger.info(f"Started Prometheus metrics server on port {self.port}")

    def record_github_call(self) -> None:
        """Record one completed GitHub issue fetch."""
        self.github_api_calls.inc()

    def record_stackoverflow_call(self) -> None:
        """Record one completed Stack Overflow question fetch."""
        self.stackoverflow_api_calls.inc()

    def record_row_stored(self, table: str) -> None:
        """
        Record a row insert.

        Args:
            table: Destination table name
        """
        self.rows_stored.labels(table=table).inc()

    def get_value(self, name: str, labels: Optional[dict] = None) -> float:
        """Current value of a sample in this exporter's registry (0.0 if never set)."""
        value = self.registry.get_sample_value(name, labels or {})
        return value if value is not None else 0.0

    def time_request(self, api: str) -> "RequestTimer":
        """
        Create a context manager for timing API requests.

        Args:
            api: Upstream API label ("github" or "stackexchange")

        Returns:
            RequestTimer context manager
        """
        return RequestTimer(self.request_duration.labels(api=api))


class RequestTimer:
    """Context manager for timing API requests."""

    def __init__(self, histogram):
        self.histogram = histogram
        self.start_time: Optional[float] = None

    def __enter__(self) -> "RequestTimer":
        self.start_time = time.time()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        if self.start_time is not None:
            self.histogram.observe(time.time() - self.start_time)
