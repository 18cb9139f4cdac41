"""
Realtime fan-out of arena events to connected observers.
"""

from arena.broadcast.events import (
    BroadcastEvent,
    EventKind,
    alert_event,
    ban_event,
    submission_event,
    welcome_event,
)
from arena.broadcast.hub import BroadcastHub, ObserverConnection

__all__ = [
    "BroadcastEvent",
    "BroadcastHub",
    "EventKind",
    "ObserverConnection",
    "alert_event",
    "ban_event",
    "submission_event",
    "welcome_event",
]
