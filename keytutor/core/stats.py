"""Speed and accuracy computation.

Rates follow the usual convention:
  * **CPM** - correct characters per minute.
  * **WPM** - CPM / 5 (five characters make a word), except for CJK
    languages where one character already counts as one word.
  * **Accuracy** - correct keystrokes / total keystrokes, as a 0-1 fraction.

Session figures are recomputed from summed counts and durations rather
than averaged over exercises.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, Sequence

from keytutor.core.models import Exercise, ExerciseStats, SessionStats, WeakUnit

CHARS_PER_WORD = 5.0


@dataclass(frozen=True)
class KeystrokeRecord:
    timestamp: float
    char: str
    correct: bool


def cpm_to_wpm(cpm: float, cjk: bool) -> float:
    return cpm if cjk else cpm / CHARS_PER_WORD


def accuracy(correct: int, total: int) -> float:
    if total <= 0:
        return 0.0
    return correct / total


def chars_per_minute(chars: int, elapsed_secs: float) -> float:
    if elapsed_secs <= 0:
        return 0.0
    return chars / elapsed_secs * 60.0


def calculate_current_wpm(
    history: Iterable[KeystrokeRecord],
    now: float,
    cjk: bool,
    window_secs: float = 10.0,
    min_elapsed_secs: float = 0.1,
) -> float:
    """Real-time WPM over the correct keystrokes of the last ``window_secs``."""
    recent = [r for r in history if r.correct and now - r.timestamp <= window_secs]
    if not recent:
        return 0.0
    elapsed = now - min(r.timestamp for r in recent)
    # Very short spans produce meaningless spikes.
    if elapsed < min_elapsed_secs:
        return 0.0
    return cpm_to_wpm(chars_per_minute(len(recent), elapsed), cjk)


def build_exercise_stats(
    exercise: Exercise,
    index: int,
    total_keystrokes: int,
    correct_keystrokes: int,
    error_count: int,
    duration_secs: float,
    cjk: bool,
) -> ExerciseStats:
    cpm = chars_per_minute(correct_keystrokes, duration_secs)
    return ExerciseStats(
        exercise_index=index,
        content_preview=exercise.preview(),
        wpm=cpm_to_wpm(cpm, cjk),
        accuracy=accuracy(correct_keystrokes, total_keystrokes),
        total_keystrokes=total_keystrokes,
        correct_keystrokes=correct_keystrokes,
        error_count=error_count,
        duration_secs=duration_secs,
    )


def aggregate_session_stats(
    lesson_id: int,
    exercise_stats: Sequence[ExerciseStats],
    cjk: bool,
    timestamp: int,
    weak_units: Sequence[WeakUnit] = (),
) -> SessionStats:
    total_keystrokes = sum(s.total_keystrokes for s in exercise_stats)
    correct_keystrokes = sum(s.correct_keystrokes for s in exercise_stats)
    duration = sum(s.duration_secs for s in exercise_stats)
    cpm = chars_per_minute(correct_keystrokes, duration)
    return SessionStats(
        lesson_id=lesson_id,
        exercise_stats=tuple(exercise_stats),
        overall_wpm=cpm_to_wpm(cpm, cjk),
        overall_cpm=cpm,
        overall_accuracy=accuracy(correct_keystrokes, total_keystrokes),
        total_keystrokes=total_keystrokes,
        error_count=sum(s.error_count for s in exercise_stats),
        duration_secs=duration,
        timestamp=timestamp,
        weak_units=tuple(weak_units),
    )
