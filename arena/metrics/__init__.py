"""
Arena metrics collection and export.
"""

from arena.metrics.prometheus_exporter import (
    ArenaMetrics,
    get_metrics,
    start_metrics_server,
)

__all__ = [
    "ArenaMetrics",
    "get_metrics",
    "start_metrics_server",
]
