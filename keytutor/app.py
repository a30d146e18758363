"""Application setup for the keytutor typing engine."""

import logging
from pathlib import Path
from typing import Optional

from keytutor.core.config import load_config
from keytutor.core.lessons import load_lesson
from keytutor.core.memory import Shuffler
from keytutor.core.session import TypingSession


def configure_logging(level: int = logging.INFO) -> None:
    """Configure application-wide logging with a standard format."""
    logging.basicConfig(
        level=level,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )


def default_config_path() -> Path:
    return Path.home() / ".keytutor" / "config.yaml"


def build_session(
    lesson_path: Path,
    config_path: Optional[Path] = None,
    rng: Optional[Shuffler] = None,
) -> TypingSession:
    """Load a lesson file and the engine config and start a session on it."""
    config = load_config(config_path if config_path is not None else default_config_path())
    lesson = load_lesson(lesson_path)
    logging.info(
        "Starting lesson %d (%s, %s): %d exercises, %s input",
        lesson.id,
        lesson.title or "untitled",
        lesson.language,
        len(lesson.exercises),
        config.input_mode.value,
    )
    return TypingSession(lesson, config=config, rng=rng)
