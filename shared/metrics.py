"""
Shared metrics configuration for the vishing simulation access layer.
"""

from typing import Optional

from prometheus_client import CollectorRegistry, Counter, Histogram, Info, generate_latest


class MetricsCollector:
    """Centralized metrics collector for services.

    Each collector owns its registry unless one is supplied, so several
    service instances (as in tests) never clash on metric names.
    """

    def __init__(self, service_name: str, registry: Optional[CollectorRegistry] = None):
        self.service_name = service_name
        self.registry = registry if registry is not None else CollectorRegistry()
        self._metrics = {}
        self._setup_metrics()

    def _setup_metrics(self):
        """Set up common metrics for the service."""

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

        self._metrics["health_check_total"] = Counter(
            "health_check_total",
            "Total health check requests",
            ["status"],
            registry=self.registry
        )

        self._metrics["errors_total"] = Counter(
            "errors_total",
            "Total errors",
            ["error_type", "service"],
            registry=self.registry
        )

        # Authorization
        self._metrics["token_cache_lookups_total"] = Counter(
            "token_cache_lookups_total",
            "Token cache lookups by result",
            ["result"],
            registry=self.registry
        )

        self._metrics["token_validations_total"] = Counter(
            "token_validations_total",
            "Upstream token validations by outcome",
            ["outcome"],
            registry=self.registry
        )

        # Enrichment calls
        self._metrics["enrichment_calls_total"] = Counter(
            "enrichment_calls_total",
            "Best-effort enrichment calls by result",
            ["provider", "result"],
            registry=self.registry
        )

    def get_metric(self, name: str):
        """Get a metric by name."""
        return self._metrics.get(name)

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

    def record_health_check(self, status: str):
        """Record health check metrics."""
        self._metrics["health_check_total"].labels(status=status).inc()

    def record_error(self, error_type: str, service: Optional[str] = None):
        """Record error metrics."""
        service_name = service or self.service_name
        self._metrics["errors_total"].labels(error_type=error_type, service=service_name).inc()

    def record_token_cache_lookup(self, result: str):
        """Record a token cache lookup (hit_valid, hit_invalid or miss)."""
        self._metrics["token_cache_lookups_total"].labels(result=result).inc()

    def record_token_validation(self, outcome: str):
        """Record the outcome of an upstream token validation."""
        self._metrics["token_validations_total"].labels(outcome=outcome).inc()

    def record_enrichment_call(self, provider: str, result: str):
        """Record a best-effort enrichment call."""
        self._metrics["enrichment_calls_total"].labels(provider=provider, result=result).inc()

    def sample(self, metric_name: str, **labels) -> float:
        """Current value of a labelled counter, 0.0 when never incremented."""
        if not metric_name.endswith("_total"):
            metric_name = f"{metric_name}_total"
        value = self.registry.get_sample_value(metric_name, labels)
        return value or 0.0

    def render(self) -> bytes:
        """Prometheus text exposition of this collector's registry."""
        return generate_latest(self.registry)


def get_metrics_collector(service_name: str, registry: Optional[CollectorRegistry] = None) -> MetricsCollector:
    """Get a metrics collector for a service."""
    return MetricsCollector(service_name, registry)
