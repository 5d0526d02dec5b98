"""
Shared metrics configuration for the bearer token validator.
"""

from prometheus_client import CollectorRegistry, Counter, Gauge, Histogram, Info
from typing import Dict, Any, Optional
import time
import threading
from contextlib import contextmanager


class MetricsCollector:
    """Centralized metrics collector for services.

    Each collector owns its own registry unless one is supplied, so several
    validators or services can live in one process without clashing on
    metric names.
    """

    def __init__(self, service_name: str, registry: Optional[CollectorRegistry] = None):
        self.service_name = service_name
        self.registry = registry if registry is not None else CollectorRegistry()
        self._metrics: Dict[str, Any] = {}
        self._lock = threading.Lock()
        self._setup_metrics()

    def _setup_metrics(self):
        """Set up common metrics for the service."""

        # Service info
        self._metrics["service_info"] = Info(
            "service_info",
            "Service information",
            registry=self.registry
        )
        self._metrics["service_info"].info({
            "service": self.service_name,
            "version": "1.0.0"
        })

        # HTTP metrics
        self._metrics["http_requests_total"] = Counter(
            "http_requests_total",
            "Total HTTP requests",
            ["method", "endpoint", "status_code"],
            registry=self.registry
        )

        self._metrics["http_request_duration_seconds"] = Histogram(
            "http_request_duration_seconds",
            "HTTP request duration in seconds",
            ["method", "endpoint"],
            registry=self.registry
        )

        # Error metrics
        self._metrics["errors_total"] = Counter(
            "errors_total",
            "Total errors",
            ["error_type", "service"],
            registry=self.registry
        )

        self._setup_validator_metrics()

    def _setup_validator_metrics(self):
        """Set up token validation metrics."""
        self._metrics["token_validations_total"] = Counter(
            "token_validations_total",
            "Total token validations by outcome",
            ["outcome"],
            registry=self.registry
        )

        self._metrics["cache_lookups_total"] = Counter(
            "cache_lookups_total",
            "Outcome cache lookups",
            ["cache", "result"],
            registry=self.registry
        )

        self._metrics["remote_validation_duration_seconds"] = Histogram(
            "remote_validation_duration_seconds",
            "Remote validation call duration in seconds",
            ["status"],
            registry=self.registry
        )

        self._metrics["validator_degraded"] = Gauge(
            "validator_degraded",
            "1 when response parsing and caching are disabled",
            registry=self.registry
        )

    def record_http_request(self, method: str, endpoint: str, status_code: int, duration: float):
        """Record HTTP request metrics."""
        self._metrics["http_requests_total"].labels(
            method=method,
            endpoint=endpoint,
            status_code=str(status_code)
        ).inc()

        self._metrics["http_request_duration_seconds"].labels(
            method=method,
            endpoint=endpoint
        ).observe(duration)

    def record_error(self, error_type: str, service: Optional[str] = None):
        """Record error metrics."""
        service_name = service or self.service_name
        self._metrics["errors_total"].labels(error_type=error_type, service=service_name).inc()

    def record_validation(self, outcome: str):
        self._metrics["token_validations_total"].labels(outcome=outcome).inc()

    def record_cache_lookup(self, cache: str, hit: bool):
        self._metrics["cache_lookups_total"].labels(
            cache=cache,
            result="hit" if hit else "miss"
        ).inc()

    @contextmanager
    def time_operation(self, operation_name: str, **labels):
        """Context manager to time an operation.

        Labels may be added to the yielded dict while the block runs, which
        lets the caller label the observation with a value (such as a status
        code) known only once the operation finishes.
        """
        start_time = time.time()
        observed_labels = dict(labels)
        try:
            yield observed_labels
        finally:
            duration = time.time() - start_time
            if operation_name in self._metrics:
                self._metrics[operation_name].labels(**observed_labels).observe(duration)

    def set_gauge(self, metric_name: str, value: float, **labels):
        """Set a gauge metric value."""
        if metric_name not in self._metrics:
            return
        metric = self._metrics[metric_name]
        with self._lock:
            (metric.labels(**labels) if labels else metric).set(value)

    def sample(self, metric_name: str, labels: Optional[Dict[str, str]] = None) -> Optional[float]:
        """Read the current value of a sample from this collector's registry."""
        return self.registry.get_sample_value(metric_name, labels or {})


def get_metrics_collector(service_name: str, registry: Optional[CollectorRegistry] = None) -> MetricsCollector:
    """Get a metrics collector for a service."""
    return MetricsCollector(service_name, registry)
