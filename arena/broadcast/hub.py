"""
Broadcast hub for realtime observers.

Keeps a registry of connected observers and fans out events to them.
Delivery is best effort and at most once: observers that are closed or fail
while sending are skipped and dropped, and nothing is replayed to observers
that connect later.
"""

import itertools
import logging
import threading
import weakref
from typing import Optional, Protocol

from arena.broadcast.events import BroadcastEvent, welcome_event

logger = logging.getLogger(__name__)


class ObserverConnection(Protocol):
    """Transport-side handle for one connected observer."""

    closed: bool

    def send(self, message: str) -> None:
        ...


class BroadcastHub:
    """
    Registry of observer connections with fire-and-forget fan-out.

    Connections are held by weak reference only; the transport owns them.
    Each send is preceded by a liveness check.
    """

    def __init__(self, metrics=None):
        """
        Initialize the hub.

        Args:
            metrics: Optional ArenaMetrics for delivery counters
        """
        self.metrics = metrics
        self._connections: "weakref.WeakValueDictionary[int, ObserverConnection]" = (
            weakref.WeakValueDictionary()
        )
        self._handles = itertools.count(1)
        self._lock = threading.Lock()

    def register(self, connection: ObserverConnection) -> int:
        """
        Register a connection and greet it with a welcome event.

        Args:
            connection: Observer connection

        Returns:
            Handle to pass to unregister()
        """
        with self._lock:
            handle = next(self._handles)
            self._connections[handle] = connection
            count = len(self._connections)

        self._update_observer_gauge(count)
        logger.info(
            f"Observer {handle} connected",
            extra={"event_type": "observer_connected", "component": "broadcast_hub"},
        )

        self._deliver(handle, connection, welcome_event().to_json())
        return handle

    def unregister(self, handle: int) -> None:
        """
        Forget a connection. Unknown handles are ignored.

        Args:
            handle: Handle returned by register()
        """
        with self._lock:
            removed = self._connections.pop(handle, None)
            count = len(self._connections)

        if removed is not None:
            self._update_observer_gauge(count)
            logger.info(
                f"Observer {handle} disconnected",
                extra={"event_type": "observer_disconnected", "component": "broadcast_hub"},
            )

    def publish(self, event: BroadcastEvent) -> int:
        """
        Deliver an event to every open connection.

        Never raises because of a failing connection.

        Args:
            event: Event to deliver

        Returns:
            Number of connections the event was handed to
        """
        message = event.to_json()

        with self._lock:
            targets = list(self._connections.items())

        delivered = 0
        for handle, connection in targets:
            if self._deliver(handle, connection, message):
                delivered += 1

        if self.metrics is not None:
            self.metrics.record_broadcast(event.kind.value, delivered)

        logger.debug(
            f"Published {event.kind.value} event to {delivered} observer(s)",
            extra={"event_type": "broadcast", "component": "broadcast_hub"},
        )
        return delivered

    def _deliver(self, handle: int, connection: ObserverConnection, message: str) -> bool:
        if getattr(connection, "closed", True):
            self._drop(handle)
            return False

        try:
            connection.send(message)
        except Exception as e:
            logger.debug(f"Dropping observer {handle} after send failure: {e}")
            self._drop(handle)
            return False
        return True

    def _drop(self, handle: int) -> None:
        with self._lock:
            self._connections.pop(handle, None)
            count = len(self._connections)
        self._update_observer_gauge(count)

    def _update_observer_gauge(self, count: int) -> None:
        if self.metrics is not None:
            self.metrics.set_observers(count)

    @property
    def observer_count(self) -> int:
        with self._lock:
            return len(self._connections)

    def get_connection(self, handle: int) -> Optional[ObserverConnection]:
        with self._lock:
            return self._connections.get(handle)
