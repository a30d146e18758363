from __future__ import annotations

import logging
import time
from collections import deque
from dataclasses import dataclass, field
from typing import Callable, Deque, FrozenSet, Iterator, List, Optional, Set, Tuple

from keytutor.core.config import EngineConfig
from keytutor.core.events import (
    ErrorCorrected,
    EventQueue,
    KeyPressed,
    Listener,
    MilestoneReached,
    SessionCompleted,
    TypingEvent,
    WordCompleted,
)
from keytutor.core.memory import Shuffler, generate_display_text
from keytutor.core.models import Exercise, ExerciseStats, InputMode, Lesson, MemoryMode, PracticeMode, SessionStats
from keytutor.core.stats import (
    KeystrokeRecord,
    accuracy,
    aggregate_session_stats,
    build_exercise_stats,
    calculate_current_wpm,
)
from keytutor.core.text import LanguageFamily
from keytutor.core.weak_units import analyze_exercises

logger = logging.getLogger(__name__)

BACKSPACE = "\b"
ENTER = "\n"
TAB = "\t"

WORD_BOUNDARIES = (" ", ENTER)


@dataclass(frozen=True)
class SessionSnapshot:
    """Lightweight view of the current exercise for UI polling."""

    cursor_position: int
    recent_errors: Tuple[int, ...]
    current_wpm: float
    accuracy: float
    progress: float


@dataclass
class SessionState:
    """Mutable state of a typing session; the per-exercise part is cleared on every exercise change."""

    exercise_index: int = 0
    input_buffer: List[str] = field(default_factory=list)
    cursor_position: int = 0
    error_positions: Set[int] = field(default_factory=set)
    start_time: Optional[float] = None
    total_keystrokes: int = 0
    correct_keystrokes: int = 0
    history: Deque[KeystrokeRecord] = field(default_factory=deque)
    reached_milestones: Set[float] = field(default_factory=set)
    completed: List[ExerciseStats] = field(default_factory=list)

    def reset_exercise(self) -> None:
        self.input_buffer.clear()
        self.cursor_position = 0
        self.error_positions.clear()
        self.start_time = None
        self.total_keystrokes = 0
        self.correct_keystrokes = 0
        self.history.clear()
        self.reached_milestones.clear()


class TypingSession:
    """Keystroke state machine and exercise progression for one lesson attempt.

    Characters are fed one at a time through :meth:`handle_keystroke`; the
    backspace, enter and tab keys are passed as ``BACKSPACE``, ``ENTER`` and
    ``TAB``. State changes are published as typing events which observers
    either receive through :meth:`subscribe` or pull with :meth:`drain_events`.
    """

    def __init__(
        self,
        lesson: Lesson,
        config: Optional[EngineConfig] = None,
        rng: Optional[Shuffler] = None,
        clock: Callable[[], float] = time.monotonic,
        wall_clock: Callable[[], float] = time.time,
    ) -> None:
        if not lesson.exercises:
            raise ValueError(f"Cannot start a session: lesson {lesson.id} has no exercises")
        self._lesson = lesson
        self._config = config or EngineConfig()
        self._rng = rng
        self._clock = clock
        self._wall_clock = wall_clock
        self._family = LanguageFamily.resolve(lesson.language)
        self._events = EventQueue(self._config.event_queue_size)
        self._state = SessionState()
        self._completed_errors: List[Tuple[str, FrozenSet[int]]] = []
        self._final_stats: Optional[SessionStats] = None
        self._snapshot: Optional[SessionSnapshot] = None

    # ------------------------------------------------------------------
    # Read-only views
    # ------------------------------------------------------------------

    @property
    def lesson(self) -> Lesson:
        """The lesson being practised."""
        return self._lesson

    @property
    def family(self) -> LanguageFamily:
        """Language family resolved once from the lesson's language tag."""
        return self._family

    @property
    def input_mode(self) -> InputMode:
        """How mismatched keystrokes are handled."""
        return self._config.input_mode

    @property
    def practice_mode(self) -> PracticeMode:
        """Practice mode from the engine config."""
        return self._config.practice_mode

    @property
    def state(self) -> SessionState:
        """Mutable per-exercise state; callers should treat it as read-only."""
        return self._state

    @property
    def current_exercise(self) -> Exercise:
        """The exercise at the current index."""
        return self._lesson.exercises[self._state.exercise_index]

    @property
    def target_text(self) -> str:
        """Text of the current exercise."""
        return self.current_exercise.content

    @property
    def input_text(self) -> str:
        """Characters accepted so far in the current exercise."""
        return "".join(self._state.input_buffer)

    @property
    def cursor_position(self) -> int:
        """Index into the target of the next expected character."""
        return self._state.cursor_position

    @property
    def error_positions(self) -> FrozenSet[int]:
        """Target positions currently marked as mistyped."""
        return frozenset(self._state.error_positions)

    @property
    def total_keystrokes(self) -> int:
        """Keystrokes in the current exercise, backspace included."""
        return self._state.total_keystrokes

    @property
    def correct_keystrokes(self) -> int:
        """Keystrokes in the current exercise that matched the target."""
        return self._state.correct_keystrokes

    @property
    def completed_exercises(self) -> Tuple[ExerciseStats, ...]:
        """Stats of the exercises recorded so far, in order."""
        return tuple(self._state.completed)

    # ------------------------------------------------------------------
    # Events
    # ------------------------------------------------------------------

    def subscribe(self, listener: Listener) -> None:
        """Call ``listener`` synchronously for every event published from now on."""
        self._events.subscribe(listener)

    def drain_events(self) -> Iterator[TypingEvent]:
        """Yield pending events, oldest first, removing them from the queue."""
        return self._events.drain()

    # ------------------------------------------------------------------
    # Keystrokes
    # ------------------------------------------------------------------

    def handle_keystroke(self, ch: str) -> None:
        """Apply one logical character (or ``BACKSPACE``) to the current exercise."""
        state = self._state
        target = self.target_text
        if ch != BACKSPACE and state.cursor_position >= len(target):
            logger.debug("Ignoring %r: exercise %d is already complete", ch, state.exercise_index)
            return

        now = self._clock()
        if state.start_time is None:
            state.start_time = now
        state.total_keystrokes += 1
        self._snapshot = None

        if ch == BACKSPACE:
            self._handle_backspace()
            return

        position = state.cursor_position
        is_correct = target[position] == ch
        logger.debug("Position %d: expected %r, got %r, correct=%s", position, target[position], ch, is_correct)

        if is_correct:
            state.correct_keystrokes += 1
            state.input_buffer.append(ch)
            state.error_positions.discard(position)
            state.cursor_position += 1
        else:
            mode = self._config.input_mode
            if mode is not InputMode.INVISIBLE:
                state.error_positions.add(position)
            if mode is not InputMode.STRICT:
                state.input_buffer.append(ch)
                state.cursor_position += 1

        self._remember(now, ch, is_correct)

        self._events.publish(KeyPressed(char=ch, correct=is_correct, position=position))
        if is_correct and ch in WORD_BOUNDARIES:
            self._events.publish(WordCompleted(wpm=self.calculate_current_wpm()))
        self._check_milestones()

    def handle_text(self, text: str) -> None:
        """Feed every character of ``text`` in order, e.g. a committed IME composition."""
        for ch in text:
            self.handle_keystroke(ch)

    def _handle_backspace(self) -> None:
        state = self._state
        if state.cursor_position == 0:
            return
        state.cursor_position -= 1
        state.input_buffer.pop()
        if state.cursor_position in state.error_positions:
            state.error_positions.remove(state.cursor_position)
            self._events.publish(ErrorCorrected(position=state.cursor_position))

    def _remember(self, now: float, ch: str, is_correct: bool) -> None:
        history = self._state.history
        history.append(KeystrokeRecord(timestamp=now, char=ch, correct=is_correct))
        window = self._config.history_window_secs
        while history and now - history[0].timestamp > window:
            history.popleft()

    def _check_milestones(self) -> None:
        progress = self._exercise_progress()
        reached = self._state.reached_milestones
        for milestone in self._config.milestones:
            if progress >= milestone and milestone not in reached:
                reached.add(milestone)
                self._events.publish(MilestoneReached(progress=milestone))

    def _exercise_progress(self) -> float:
        length = len(self.target_text)
        if length == 0:
            return 0.0
        return self._state.cursor_position / length

    # ------------------------------------------------------------------
    # Statistics
    # ------------------------------------------------------------------

    def calculate_current_wpm(self) -> float:
        return calculate_current_wpm(
            self._state.history,
            self._clock(),
            self._family.is_cjk,
            self._config.history_window_secs,
            self._config.min_wpm_elapsed_secs,
        )

    def get_snapshot(self) -> SessionSnapshot:
        """Current cursor, recent errors and rates; unchanged until the next keystroke."""
        if self._snapshot is None:
            state = self._state
            floor = max(0, state.cursor_position - self._config.recent_error_span)
            self._snapshot = SessionSnapshot(
                cursor_position=state.cursor_position,
                recent_errors=tuple(sorted(p for p in state.error_positions if p >= floor)),
                current_wpm=self.calculate_current_wpm(),
                accuracy=accuracy(state.correct_keystrokes, state.total_keystrokes),
                progress=self._exercise_progress(),
            )
        return self._snapshot

    def display_text(self, mode: MemoryMode) -> str:
        """The current target as shown in ``mode``."""
        return generate_display_text(self.target_text, mode, self._family, self._rng)

    # ------------------------------------------------------------------
    # Exercise progression
    # ------------------------------------------------------------------

    def get_progress(self) -> Tuple[int, int]:
        """Return (current exercise index, number of exercises)."""
        return self._state.exercise_index, len(self._lesson.exercises)

    def has_next(self) -> bool:
        return self._state.exercise_index + 1 < len(self._lesson.exercises)

    def has_previous(self) -> bool:
        return self._state.exercise_index > 0

    def is_current_exercise_complete(self) -> bool:
        return self._state.cursor_position == len(self.target_text)

    def current_exercise_has_errors(self) -> bool:
        return bool(self._state.error_positions)

    def is_lesson_complete(self) -> bool:
        return self._final_stats is not None

    def go_to_next_exercise(self) -> bool:
        """Browse forward without recording statistics."""
        if not self.has_next():
            return False
        self._move_to(self._state.exercise_index + 1)
        return True

    def go_to_previous_exercise(self) -> bool:
        """Browse back without recording statistics."""
        if not self.has_previous():
            return False
        self._move_to(self._state.exercise_index - 1)
        return True

    def advance_to_next_exercise(self) -> bool:
        """Record the current exercise and move on.

        Returns False when there was no next exercise; the session is then
        finalized and a ``SessionCompleted`` event is published.
        """
        if self._final_stats is not None:
            return False
        self._record_current_exercise()
        if self.has_next():
            self._move_to(self._state.exercise_index + 1)
            return True
        self.finalize_session()
        return False

    def finalize_session(self) -> SessionStats:
        """Build the session statistics once; later calls return the same object."""
        if self._final_stats is not None:
            return self._final_stats
        config = self._config
        weak_units = analyze_exercises(
            self._completed_errors,
            self._family,
            min_occurrences=config.weak_min_occurrences,
            threshold=config.weak_session_threshold,
            limit=config.weak_session_limit,
        )
        stats = aggregate_session_stats(
            self._lesson.id,
            self._state.completed,
            self._family.is_cjk,
            timestamp=int(self._wall_clock()),
            weak_units=weak_units,
        )
        self._final_stats = stats
        self._snapshot = None
        logger.info(
            "Lesson %d finished: %d exercises, %.1f wpm, %.1f%% accuracy",
            self._lesson.id,
            len(stats.exercise_stats),
            stats.overall_wpm,
            stats.overall_accuracy * 100.0,
        )
        self._events.publish(SessionCompleted(stats=stats))
        return stats

    def restart(self) -> None:
        """Discard all progress and start again from the first exercise."""
        self._state = SessionState()
        self._completed_errors.clear()
        self._final_stats = None
        self._snapshot = None

    def _record_current_exercise(self) -> None:
        state = self._state
        duration = self._clock() - state.start_time if state.start_time is not None else 0.0
        stats = build_exercise_stats(
            self.current_exercise,
            state.exercise_index,
            total_keystrokes=state.total_keystrokes,
            correct_keystrokes=state.correct_keystrokes,
            error_count=len(state.error_positions),
            duration_secs=duration,
            cjk=self._family.is_cjk,
        )
        state.completed.append(stats)
        self._completed_errors.append((self.target_text, frozenset(state.error_positions)))
        logger.info(
            "Exercise %d of lesson %d done: %.1f wpm, %.1f%% accuracy",
            state.exercise_index,
            self._lesson.id,
            stats.wpm,
            stats.accuracy * 100.0,
        )

    def _move_to(self, index: int) -> None:
        self._state.exercise_index = index
        self._state.reset_exercise()
        self._snapshot = None
