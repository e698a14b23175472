"""
Prometheus metrics for the RNG service.
"""
from prometheus_client import Counter, Histogram, Gauge, Info, CollectorRegistry

from .logging import SERVICE_NAME


class Metrics:
    """
    Centralized metrics for the RNG service.

    Every instance owns its registry so several apps (e.g. in tests) can
    coexist in one process.
    """

    def __init__(self, service_name: str = SERVICE_NAME, version: str = "0.1.0", registry=None):
        self.service_name = service_name
        self.version = version
        self.registry = registry or CollectorRegistry()

        # HTTP Metrics
        self.http_requests_total = Counter(
            "http_requests_total",
            "Total HTTP requests",
            ["service", "method", "path", "status"],
            registry=self.registry,
        )

        self.http_request_duration = Histogram(
            "http_request_duration_seconds",
            "HTTP request duration in seconds",
            ["service", "method", "path"],
            registry=self.registry,
        )

        self.http_requests_active = Gauge(
            "http_requests_active",
            "Number of active HTTP requests",
            ["service"],
            registry=self.registry,
        )
        self.http_requests_active.labels(service=service_name).set(0)

        # Application Info
        self.app_info = Info(
            "app",
            "Application information",
            registry=self.registry,
        )
        self.app_info.info({"service": service_name, "version": version})

        self.app_up = Gauge(
            "app_up",
            "Application up status (1=up, 0=down)",
            ["service", "version"],
            registry=self.registry,
        )
        self.app_up.labels(service=service_name, version=version).set(1)

        # Business Metrics
        self.generations_total = Counter(
            "rng_generations_total",
            "Total random values generated and stored",
            registry=self.registry,
        )

        self.generated_value = Histogram(
            "rng_generated_value",
            "Distribution of generated values",
            buckets=[i / 10 for i in range(1, 11)],
            registry=self.registry,
        )

        self.rejected_usernames_total = Counter(
            "rng_rejected_usernames_total",
            "Generation requests rejected for a reserved username",
            registry=self.registry,
        )

        self.auth_failures_total = Counter(
            "rng_auth_failures_total",
            "Requests rejected by the API key check",
            registry=self.registry,
        )

    def record_generation(self, value: float):
        """Record a stored generation event."""
        self.generations_total.inc()
        self.generated_value.observe(value)
