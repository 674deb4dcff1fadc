"""Registry of live server-sent-event streams keyed by resource ID.

Document processing publishes progress messages here; the log-stream endpoint
registers a connection for the document it is watching and drains it.
"""

from __future__ import annotations

import asyncio
import logging
import uuid
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from portfolio_chatbot.models.document import ProcessingLogEvent

logger = logging.getLogger(__name__)

_CLOSED = None


class StreamConnection:
    """One client stream with its pending events."""

    def __init__(self, key: str) -> None:
        self.key = key
        self.id = str(uuid.uuid4())
        self._queue: asyncio.Queue[ProcessingLogEvent | None] = asyncio.Queue()
        self.closed = False

    def push(self, event: ProcessingLogEvent) -> None:
        """Queue an event for delivery."""
        if not self.closed:
            self._queue.put_nowait(event)

    def close(self) -> None:
        """Stop the event iterator once queued events are drained."""
        if not self.closed:
            self.closed = True
            self._queue.put_nowait(_CLOSED)

    async def events(self, heartbeat_seconds: float | None = None) -> AsyncIterator[ProcessingLogEvent]:
        """Yield queued events until the connection is closed.

        Args:
            heartbeat_seconds: Emit a heartbeat event after this long without
                traffic; ``None`` disables heartbeats.
        """
        while True:
            try:
                if heartbeat_seconds is None:
                    event = await self._queue.get()
                else:
                    event = await asyncio.wait_for(self._queue.get(), heartbeat_seconds)
            except asyncio.TimeoutError:
                yield ProcessingLogEvent(type="info", message="Connection heartbeat")
                continue
            if event is _CLOSED:
                return
            yield event


class ConnectionRegistry:
    """Tracks at most one live stream per key."""

    def __init__(self) -> None:
        self._connections: dict[str, StreamConnection] = {}

    def register(self, key: str) -> StreamConnection:
        """Create and register a stream for ``key``.

        A stream already registered under the same key is closed and replaced.
        """
        connection = StreamConnection(key)
        previous = self._connections.get(key)
        if previous is not None:
            logger.debug("Replacing existing stream for %s.", key)
            previous.close()
        self._connections[key] = connection
        logger.debug("Registered stream %s for %s.", connection.id, key)
        return connection

    def lookup(self, key: str) -> StreamConnection | None:
        """Return the live stream for ``key``, if any."""
        return self._connections.get(key)

    def deregister(self, key: str, connection: StreamConnection | None = None) -> None:
        """Remove and close the stream for ``key``.

        When ``connection`` is given, only that exact stream is removed, so a
        stale client cannot drop a newer registration.
        """
        current = self._connections.get(key)
        if current is None or (connection is not None and current is not connection):
            if connection is not None:
                connection.close()
            return
        del self._connections[key]
        current.close()
        logger.debug("Deregistered stream %s for %s.", current.id, key)

    @asynccontextmanager
    async def connect(self, key: str) -> AsyncIterator[StreamConnection]:
        """Register a stream for the lifetime of the ``async with`` block."""
        connection = self.register(key)
        try:
            yield connection
        finally:
            self.deregister(key, connection)

    def publish(self, key: str, message: str, level: str = "info") -> bool:
        """Send a progress message to the stream registered for ``key``.

        Returns:
            True if a stream received the message, False if none is listening.
        """
        connection = self._connections.get(key)
        if connection is None or connection.closed:
            logger.debug("No active stream for %s; dropping '%s'.", key, message)
            return False
        connection.push(ProcessingLogEvent(type=level, message=message))
        return True

    def __len__(self) -> int:
        return len(self._connections)
