"""Session registry and per-session event bus.

Each transfer attempt owns a ``TransferSession``: an append-only list of
``LogEvent`` with one writer (the transfer task) and any number of readers.
A reader subscribes by taking a snapshot of the list and attaching a queue in
the same synchronous step; ``append`` stores and fans out in a single step as
well. Neither contains an ``await``, so on one event loop a subscriber sees
every event exactly once, whether it arrives through the snapshot or the
queue.
"""

import asyncio
import logging
from collections.abc import AsyncIterator
from dataclasses import dataclass, field
from uuid import uuid4

from transfer_monitor.domain.errors import SessionClosedError
from transfer_monitor.domain.events import LogEvent, LogLevel

_logger = logging.getLogger(__name__)

_END = object()


@dataclass
class TransferSession:
    """Ordered event log of one transfer attempt with live fan-out."""

    id: str
    events: list[LogEvent] = field(default_factory=list)
    completed: bool = False
    _subscribers: set[asyncio.Queue] = field(default_factory=set, repr=False)

    def append(self, event: LogEvent) -> None:
        """Store an event and deliver it to every attached subscriber."""
        if self.completed:
            raise SessionClosedError(f"session {self.id} is already complete")
        self.events.append(event)
        for queue in self._subscribers:
            queue.put_nowait(event)

    def log(self, level: LogLevel, message: str) -> LogEvent:
        """Create and append an event stamped with the current time."""
        event = LogEvent(level=level, message=message)
        self.append(event)
        return event

    def subscribe(self) -> "Subscription":
        """Return the backlog followed by a live feed of later events."""
        backlog = list(self.events)
        if self.completed:
            return Subscription(self, backlog, None)
        queue: asyncio.Queue = asyncio.Queue()
        self._subscribers.add(queue)
        return Subscription(self, backlog, queue)

    def complete(self) -> bool:
        """Mark the session terminal and signal the end to live subscribers.

        Returns ``False`` if the session was already complete.
        """
        if self.completed:
            return False
        self.completed = True
        for queue in self._subscribers:
            queue.put_nowait(_END)
        self._subscribers.clear()
        return True

    def detach(self, queue: asyncio.Queue) -> None:
        self._subscribers.discard(queue)

    @property
    def subscriber_count(self) -> int:
        return len(self._subscribers)


class Subscription:
    """One observer's view of a session: replayed backlog, then live events.

    Iteration stops when the session completes. ``close`` detaches the
    observer without touching the writer or other subscribers.
    """

    def __init__(
        self,
        session: TransferSession,
        backlog: list[LogEvent],
        queue: asyncio.Queue | None,
    ) -> None:
        self.session = session
        self.backlog = backlog
        self._queue = queue

    def __aiter__(self) -> AsyncIterator[LogEvent]:
        return self._iterate()

    async def _iterate(self) -> AsyncIterator[LogEvent]:
        for event in self.backlog:
            yield event
        queue = self._queue
        if queue is None:
            return
        while True:
            item = await queue.get()
            if item is _END:
                return
            yield item

    def close(self) -> None:
        if self._queue is not None:
            self.session.detach(self._queue)
            self._queue = None


@dataclass
class SessionRegistry:
    """Owns live sessions from creation until they are removed."""

    retention_seconds: float = 60.0
    _sessions: dict[str, TransferSession] = field(
        default_factory=dict, init=False, repr=False
    )

    def create(self) -> TransferSession:
        """Register a new empty session under a fresh identifier."""
        session = TransferSession(id=uuid4().hex)
        self._sessions[session.id] = session
        _logger.info("Session created: session_id=%s", session.id)
        return session

    def get(self, session_id: str) -> TransferSession | None:
        return self._sessions.get(session_id)

    def append(self, session: TransferSession, event: LogEvent) -> None:
        """Append to a registered session; raises ``KeyError`` for others."""
        if self._sessions.get(session.id) is not session:
            raise KeyError(session.id)
        session.append(event)

    def subscribe(self, session_id: str) -> Subscription | None:
        """Subscribe to a session, or return ``None`` if it is unknown."""
        session = self._sessions.get(session_id)
        if session is None:
            return None
        return session.subscribe()

    def complete(self, session: TransferSession) -> None:
        """Complete a session and schedule its removal.

        Completed sessions stay readable for ``retention_seconds`` so late
        observers still receive the full replay.
        """
        if not session.complete():
            return
        _logger.info("Session completed: session_id=%s", session.id)
        if self.retention_seconds <= 0:
            self.remove(session.id)
            return
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            self.remove(session.id)
            return
        loop.call_later(self.retention_seconds, self.remove, session.id)

    def remove(self, session_id: str) -> None:
        if self._sessions.pop(session_id, None) is not None:
            _logger.info("Session removed: session_id=%s", session_id)

    def __contains__(self, session_id: object) -> bool:
        return session_id in self._sessions

    def __len__(self) -> int:
        return len(self._sessions)
