"""
Prometheus metrics exporter for Password Arena.

Exposes metrics for request gating, submissions and realtime broadcast
activity.
"""

import logging
from typing import Dict, Optional
from prometheus_client import (
    CollectorRegistry,
    Counter,
    Gauge,
    Histogram,
    Info,
    start_http_server,
    REGISTRY,
)

logger = logging.getLogger(__name__)


class ArenaMetrics:
    """
    Centralized metrics collection for the arena.

    Args:
        namespace: Prometheus namespace for metrics
        registry: Registry to register collectors in; tests pass a fresh
            CollectorRegistry to avoid duplicate registration
    """

    def __init__(
        self, namespace: str = "arena", registry: CollectorRegistry = REGISTRY
    ):
        self.namespace = namespace
        self.registry = registry

        # Request metrics
        self.requests_total = Counter(
            f"{namespace}_requests_total",
            "Total HTTP requests handled",
            ["method", "status_code"],
            registry=registry,
        )

        self.gate_rejections_total = Counter(
            f"{namespace}_gate_rejections_total",
            "Requests rejected before routing",
            ["reason"],  # reason: banned, rate_limited, honeypot
            registry=registry,
        )

        self.honeypot_hits_total = Counter(
            f"{namespace}_honeypot_hits_total",
            "Requests for honeypot trap paths",
            ["path"],
            registry=registry,
        )

        self.rate_limit_keys = Gauge(
            f"{namespace}_rate_limit_keys",
            "Keys currently tracked by the rate limiter",
            registry=registry,
        )

        # Submission metrics
        self.submissions_total = Counter(
            f"{namespace}_submissions_total",
            "Scored password submissions",
            ["rank", "risk"],
            registry=registry,
        )

        self.submission_score = Histogram(
            f"{namespace}_submission_score",
            "Distribution of password scores",
            buckets=[50, 120, 250, 400, 550, 700, 850, 1000],
            registry=registry,
        )

        # Broadcast metrics
        self.broadcasts_total = Counter(
            f"{namespace}_broadcasts_total",
            "Events published through the broadcast hub",
            ["kind"],
            registry=registry,
        )

        self.broadcast_deliveries_total = Counter(
            f"{namespace}_broadcast_deliveries_total",
            "Event deliveries to individual observers",
            ["kind"],
            registry=registry,
        )

        self.observers_connected = Gauge(
            f"{namespace}_observers_connected",
            "Observers currently registered with the broadcast hub",
            registry=registry,
        )

        # Storage health
        self.store_errors_total = Counter(
            f"{namespace}_store_errors_total",
            "Failed writes or reads against the store",
            ["operation"],
            registry=registry,
        )

        self.info = Info(
            f"{namespace}_info",
            "Password Arena information",
            registry=registry,
        )
        self.info.info({"version": "0.1.0"})

        logger.info(f"Arena metrics initialized with namespace: {namespace}")

    def record_request(self, method: str, status_code: int) -> None:
        """
        Record a handled request.

        Args:
            method: HTTP method
            status_code: Response status code
        """
        self.requests_total.labels(method=method, status_code=str(status_code)).inc()

    def record_gate_rejection(self, reason: str) -> None:
        self.gate_rejections_total.labels(reason=reason).inc()

    def record_honeypot_hit(self, path: str) -> None:
        self.honeypot_hits_total.labels(path=path).inc()

    def set_rate_limit_keys(self, count: int) -> None:
        self.rate_limit_keys.set(count)

    def record_submission(self, rank: str, risk: str, score: int) -> None:
        """
        Record a scored submission.

        Args:
            rank: Rank tier name
            risk: Source risk level
            score: Clamped score
        """
        self.submissions_total.labels(rank=rank, risk=risk).inc()
        self.submission_score.observe(score)

    def record_broadcast(self, kind: str, delivered: int) -> None:
        """
        Record a published event.

        Args:
            kind: Event kind
            delivered: Observers the event reached
        """
        self.broadcasts_total.labels(kind=kind).inc()
        if delivered > 0:
            self.broadcast_deliveries_total.labels(kind=kind).inc(delivered)

    def set_observers(self, count: int) -> None:
        self.observers_connected.set(count)

    def record_store_error(self, operation: str) -> None:
        self.store_errors_total.labels(operation=operation).inc()

    def get_metrics_summary(self) -> Dict[str, float]:
        """
        Get a summary of gauge values.

        Returns:
            Dictionary with current gauge readings
        """
        return {
            "observers_connected": self.registry.get_sample_value(
                f"{self.namespace}_observers_connected"
            ) or 0.0,
            "rate_limit_keys": self.registry.get_sample_value(
                f"{self.namespace}_rate_limit_keys"
            ) or 0.0,
        }


# Global metrics instance
_metrics: Optional[ArenaMetrics] = None


def get_metrics() -> ArenaMetrics:
    """
    Get global metrics instance.

    Returns:
        ArenaMetrics instance
    """
    global _metrics
    if _metrics is None:
        _metrics = ArenaMetrics()
    return _metrics


def start_metrics_server(port: int = 9090) -> None:
    """
    Start Prometheus metrics HTTP server.

    Args:
        port: Port to listen on (default: 9090)
    """
    try:
        start_http_server(port)
        logger.info(f"Metrics server started on port {port}")
    except Exception as e:
        logger.error(f"Failed to start metrics server: {e}")
        raise
