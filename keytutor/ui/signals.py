"""Qt bridge: re-emit typing events as signals for widgets to connect to."""

from __future__ import annotations

from typing import Optional

from PySide6.QtCore import QObject, Signal

from keytutor.core.events import ErrorCorrected, KeyPressed, MilestoneReached, SessionCompleted, WordCompleted
from keytutor.core.session import TypingSession


class SessionSignals(QObject):
    key_pressed = Signal(str, bool, int)
    word_completed = Signal(float)
    milestone_reached = Signal(float)
    session_completed = Signal(object)
    error_corrected = Signal(int)

    def __init__(self, parent: Optional[QObject] = None) -> None:
        super().__init__(parent)

    def relay(self, session: TypingSession) -> int:
        """Emit every pending event of ``session`` in order. Returns how many were relayed."""
        count = 0
        for event in session.drain_events():
            if isinstance(event, KeyPressed):
                self.key_pressed.emit(event.char, event.correct, event.position)
            elif isinstance(event, WordCompleted):
                self.word_completed.emit(event.wpm)
            elif isinstance(event, MilestoneReached):
                self.milestone_reached.emit(event.progress)
            elif isinstance(event, SessionCompleted):
                self.session_completed.emit(event.stats)
            elif isinstance(event, ErrorCorrected):
                self.error_corrected.emit(event.position)
            count += 1
        return count
