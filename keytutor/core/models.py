"""Lesson data and the statistics records handed to persistence."""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from enum import Enum
from typing import Dict, List, Optional, Tuple

PREVIEW_LENGTH = 20


class Difficulty(Enum):
    BEGINNER = "beginner"
    INTERMEDIATE = "intermediate"
    ADVANCED = "advanced"


class LessonType(Enum):
    PROSE = "prose"
    CODE = "code"
    SPECIAL_CHARS = "special_chars"
    CHINESE = "chinese"


class InputMode(Enum):
    """How a mismatched keystroke is treated."""

    STRICT = "strict"  # must be corrected before the cursor moves on
    FORGIVING = "forgiving"  # marked, cursor moves on
    INVISIBLE = "invisible"  # not marked, cursor moves on


class PracticeMode(Enum):
    ZEN = "zen"
    TIMED = "timed"
    ENDLESS = "endless"


class PartialLevel(Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


_PARTIAL_RATIOS: Dict[PartialLevel, float] = {
    PartialLevel.LOW: 0.3,
    PartialLevel.MEDIUM: 0.5,
    PartialLevel.HIGH: 0.7,
}


class MemoryMode(Enum):
    """How much of the target text is hidden while typing from memory."""

    OFF = "off"
    PARTIAL_LOW = "partial_low"
    PARTIAL_MEDIUM = "partial_medium"
    PARTIAL_HIGH = "partial_high"
    COMPLETE = "complete"
    FIRST_LETTER = "first_letter"

    @classmethod
    def partial(cls, level: PartialLevel) -> "MemoryMode":
        return cls("partial_" + level.value)

    @property
    def partial_level(self) -> Optional[PartialLevel]:
        if self.value.startswith("partial_"):
            return PartialLevel(self.value[len("partial_"):])
        return None

    @property
    def hide_ratio(self) -> float:
        """Fraction of units hidden. FIRST_LETTER is structural and reports 0.0."""
        level = self.partial_level
        if level is not None:
            return _PARTIAL_RATIOS[level]
        if self is MemoryMode.COMPLETE:
            return 1.0
        return 0.0


class UnitType(Enum):
    CHARACTER = "character"
    WORD = "word"
    PHRASE = "phrase"
    TOKEN = "token"

    @classmethod
    def from_str(cls, value: str) -> "UnitType":
        try:
            return cls(value)
        except ValueError:
            return cls.CHARACTER


@dataclass(frozen=True)
class Exercise:
    content: str
    hint: Optional[str] = None

    def preview(self) -> str:
        """First 20 characters of the content, with '...' when truncated."""
        if len(self.content) > PREVIEW_LENGTH:
            return self.content[:PREVIEW_LENGTH] + "..."
        return self.content


@dataclass(frozen=True)
class LessonMeta:
    difficulty: Difficulty = Difficulty.BEGINNER
    tags: Tuple[str, ...] = ()
    estimated_time_secs: float = 0.0
    prerequisite_ids: Tuple[int, ...] = ()


@dataclass(frozen=True)
class Lesson:
    """An immutable lesson: an ordered, non-empty sequence of exercises."""

    id: int
    language: str
    exercises: Tuple[Exercise, ...]
    title: str = ""
    description: str = ""
    lesson_type: LessonType = LessonType.PROSE
    meta: LessonMeta = field(default_factory=LessonMeta)

    def __post_init__(self) -> None:
        # Lists are accepted for convenience and frozen here.
        object.__setattr__(self, "exercises", tuple(self.exercises))
        if not self.exercises:
            raise ValueError(f"Lesson {self.id} has no exercises")


@dataclass(frozen=True)
class WeakUnit:
    content: str
    unit_type: UnitType
    error_count: int = 0
    total_count: int = 0

    @property
    def error_rate(self) -> float:
        if self.total_count == 0:
            return 0.0
        return self.error_count / self.total_count

    def to_dict(self) -> Dict[str, object]:
        return {
            "content": self.content,
            "unit_type": self.unit_type.value,
            "error_count": self.error_count,
            "total_count": self.total_count,
            "error_rate": self.error_rate,
        }


@dataclass(frozen=True)
class ExerciseStats:
    """Statistics captured once when an exercise is finished."""

    exercise_index: int
    content_preview: str
    wpm: float
    accuracy: float
    total_keystrokes: int
    correct_keystrokes: int
    error_count: int
    duration_secs: float

    def to_dict(self) -> Dict[str, object]:
        return asdict(self)


@dataclass(frozen=True)
class SessionStats:
    """Aggregate over all finished exercises of one lesson attempt."""

    lesson_id: int
    exercise_stats: Tuple[ExerciseStats, ...]
    overall_wpm: float
    overall_cpm: float
    overall_accuracy: float
    total_keystrokes: int
    error_count: int
    duration_secs: float
    timestamp: int
    weak_units: Tuple[WeakUnit, ...] = ()

    def to_dict(self) -> Dict[str, object]:
        return {
            "lesson_id": self.lesson_id,
            "exercise_stats": [s.to_dict() for s in self.exercise_stats],
            "overall_wpm": self.overall_wpm,
            "overall_cpm": self.overall_cpm,
            "overall_accuracy": self.overall_accuracy,
            "total_keystrokes": self.total_keystrokes,
            "error_count": self.error_count,
            "duration_secs": self.duration_secs,
            "timestamp": self.timestamp,
            "weak_units": [u.to_dict() for u in self.weak_units],
        }


def weak_units_from_dicts(items: List[Dict[str, object]]) -> List[WeakUnit]:
    """Rebuild weak units from their persisted ``to_dict`` form."""
    return [
        WeakUnit(
            content=str(item.get("content", "")),
            unit_type=UnitType.from_str(str(item.get("unit_type", ""))),
            error_count=int(item.get("error_count", 0)),
            total_count=int(item.get("total_count", 0)),
        )
        for item in items
    ]
