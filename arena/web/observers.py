"""
Server-Sent Events transport for broadcast observers.

Each open ``/api/stream`` response owns one StreamObserver. The broadcast hub
only holds a weak reference to it and pushes serialized events into its
queue; the response generator drains the queue onto the wire.
"""

import queue
from typing import Iterator

DEFAULT_BACKLOG = 256
DEFAULT_HEARTBEAT_SECONDS = 15.0


class StreamObserver:
    """
    Queue-backed observer connection.

    Args:
        backlog: Undelivered messages allowed before the observer is
            considered dead
        heartbeat: Seconds of silence before a keep-alive comment is sent
    """

    def __init__(
        self,
        backlog: int = DEFAULT_BACKLOG,
        heartbeat: float = DEFAULT_HEARTBEAT_SECONDS,
    ):
        self.heartbeat = heartbeat
        self.closed = False
        self._queue: "queue.Queue[str]" = queue.Queue(maxsize=backlog)

    def send(self, message: str) -> None:
        """
        Queue a serialized event for the client.

        Raises:
            ConnectionError: If the observer is closed or its backlog is full
        """
        if self.closed:
            raise ConnectionError("observer closed")
        try:
            self._queue.put_nowait(message)
        except queue.Full:
            self.close()
            raise ConnectionError("observer backlog full")

    def close(self) -> None:
        self.closed = True

    def pending(self) -> int:
        return self._queue.qsize()

    def stream(self) -> Iterator[str]:
        """
        Yield SSE frames until the observer is closed.

        Yields:
            ``data:`` frames for events, comment frames as keep-alives
        """
        while not self.closed:
            try:
                message = self._queue.get(timeout=self.heartbeat)
            except queue.Empty:
                yield ": keep-alive\n\n"
                continue
            yield f"data: {message}\n\n"
