"""
Honeypot path trap detector.

Paths that no legitimate client of the arena requests (default admin panels,
exposed config files). Any hit is reported to observers as an alert.
"""

import logging
from typing import FrozenSet, Optional

from arena.broadcast.events import alert_event
from arena.broadcast.hub import BroadcastHub

logger = logging.getLogger(__name__)

TRAP_PATHS: FrozenSet[str] = frozenset({
    "/wp-admin",
    "/phpmyadmin",
    "/.env",
    "/admin.php",
    "/config.php",
    "/.git/config",
})


def is_trap(path: str, traps: FrozenSet[str] = TRAP_PATHS) -> bool:
    """
    Check whether a request path is a trap.

    Args:
        path: Request path, compared exactly
        traps: Trap path set

    Returns:
        True if the path is a trap
    """
    return path in traps


class TrapDetector:
    """
    Trap check that raises an alert through the broadcast hub on every hit.

    Args:
        hub: Hub that receives the alert events
        traps: Trap path set
        metrics: Optional ArenaMetrics for hit counters
    """

    def __init__(
        self,
        hub: BroadcastHub,
        traps: FrozenSet[str] = TRAP_PATHS,
        metrics=None,
    ):
        self.hub = hub
        self.traps = traps
        self.metrics = metrics

    def check(self, path: str, source_key: Optional[str]) -> bool:
        """
        Test a path and publish one alert if it is a trap.

        Args:
            path: Request path
            source_key: Client address that requested it

        Returns:
            True if the path is a trap and the request must be rejected
        """
        if not is_trap(path, self.traps):
            return False

        logger.warning(
            f"Honeypot path requested: {path}",
            extra={
                "event_type": "honeypot_hit",
                "component": "trap_detector",
                "source_ip": source_key,
                "path": path,
            },
        )
        if self.metrics is not None:
            self.metrics.record_honeypot_hit(path)

        self.hub.publish(alert_event(f"Honeypot: {path}", source_key))
        return True
