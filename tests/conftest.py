from __future__ import annotations

from typing import Callable, Sequence

import pytest

from keytutor.core.models import Exercise, Lesson


class FakeClock:
    """Manually advanced monotonic clock."""

    def __init__(self, start: float = 0.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, secs: float) -> None:
        self.now += secs


@pytest.fixture()
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture()
def make_lesson() -> Callable[..., Lesson]:
    def _make(contents: Sequence[str], language: str = "en-US", lesson_id: int = 1) -> Lesson:
        return Lesson(
            id=lesson_id,
            language=language,
            exercises=tuple(Exercise(content=c) for c in contents),
            title="Test Lesson",
        )

    return _make
