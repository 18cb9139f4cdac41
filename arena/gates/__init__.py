"""
Cheap per-request gates run before routing.
"""

from arena.gates.rate_limiter import RateLimiter, RateWindow
from arena.gates.trap_detector import TRAP_PATHS, TrapDetector, is_trap

__all__ = [
    "RateLimiter",
    "RateWindow",
    "TRAP_PATHS",
    "TrapDetector",
    "is_trap",
]
