"""Typing events and the best-effort queue that delivers them to observers."""

from __future__ import annotations

import logging
from collections import deque
from dataclasses import dataclass
from typing import Callable, Deque, Iterator, List, Union

from keytutor.core.models import SessionStats

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class KeyPressed:
    char: str
    correct: bool
    position: int


@dataclass(frozen=True)
class WordCompleted:
    wpm: float


@dataclass(frozen=True)
class MilestoneReached:
    progress: float


@dataclass(frozen=True)
class SessionCompleted:
    stats: SessionStats


@dataclass(frozen=True)
class ErrorCorrected:
    position: int


TypingEvent = Union[KeyPressed, WordCompleted, MilestoneReached, SessionCompleted, ErrorCorrected]
Listener = Callable[[TypingEvent], None]


class EventQueue:
    """Bounded, fire-and-forget event buffer.

    Publishing never blocks and never raises: when the buffer is full the new
    event is dropped, and a listener that raises is logged and skipped.
    Pending events are pulled with :meth:`drain`.
    """

    def __init__(self, maxsize: int = 1024) -> None:
        self._maxsize = maxsize
        self._events: Deque[TypingEvent] = deque()
        self._listeners: List[Listener] = []
        self._dropped = 0

    def __len__(self) -> int:
        return len(self._events)

    @property
    def dropped(self) -> int:
        """Number of events discarded because the buffer was full."""
        return self._dropped

    def subscribe(self, listener: Listener) -> None:
        self._listeners.append(listener)

    def unsubscribe(self, listener: Listener) -> None:
        if listener in self._listeners:
            self._listeners.remove(listener)

    def publish(self, event: TypingEvent) -> None:
        for listener in list(self._listeners):
            try:
                listener(event)
            except Exception:
                logger.warning("Typing event listener %r failed on %r", listener, event, exc_info=True)
        if len(self._events) >= self._maxsize:
            self._dropped += 1
            logger.debug("Event queue full, dropping %r", event)
            return
        self._events.append(event)

    def drain(self) -> Iterator[TypingEvent]:
        """Yield and remove pending events, oldest first."""
        while self._events:
            yield self._events.popleft()

    def clear(self) -> None:
        self._events.clear()
