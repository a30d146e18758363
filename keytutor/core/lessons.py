from __future__ import annotations

from pathlib import Path
from typing import Any, Dict, List

import yaml

from keytutor.core.models import Difficulty, Exercise, Lesson, LessonMeta, LessonType


def _parse_exercises(raw: Any, source: str) -> List[Exercise]:
    if raw is None:
        raise ValueError(f"{source}: missing 'exercises'")
    if isinstance(raw, str):
        # allow exercises as a multiline string, one per line
        raw = raw.splitlines()
    if not isinstance(raw, list):
        raise ValueError(f"{source}: 'exercises' must be a list")
    exercises: List[Exercise] = []
    for item in raw:
        if isinstance(item, dict):
            content = str(item.get("content") or "").strip()
            hint = item.get("hint")
            if content:
                exercises.append(Exercise(content=content, hint=str(hint).strip() if hint else None))
        elif item is not None and str(item).strip():
            exercises.append(Exercise(content=str(item).strip()))
    if not exercises:
        raise ValueError(f"{source}: 'exercises' has no content")
    return exercises


def _parse_enum(enum_cls: Any, value: Any, field_name: str, source: str) -> Any:
    try:
        return enum_cls(str(value).strip().lower())
    except ValueError:
        raise ValueError(f"{source}: invalid '{field_name}': {value!r}") from None


def _parse_tags(raw: Any, source: str) -> tuple:
    if raw is None:
        return ()
    if isinstance(raw, str):
        # a bare string is one tag
        return (raw.strip(),) if raw.strip() else ()
    if not isinstance(raw, list):
        raise ValueError(f"{source}: invalid 'tags': {raw!r}")
    return tuple(str(tag).strip() for tag in raw if tag is not None and str(tag).strip())


def _parse_meta(raw: Any, source: str) -> LessonMeta:
    if raw is None:
        return LessonMeta()
    if not isinstance(raw, dict):
        raise ValueError(f"{source}: 'meta' must be a mapping")
    estimated = raw.get("estimated_time", 0)
    try:
        estimated_time_secs = float(estimated)
    except (TypeError, ValueError):
        raise ValueError(f"{source}: invalid 'estimated_time': {estimated!r}") from None
    prerequisites = raw.get("prerequisite_ids") or []
    if not isinstance(prerequisites, list) or any(isinstance(i, bool) or not isinstance(i, int) for i in prerequisites):
        raise ValueError(f"{source}: invalid 'prerequisite_ids': {prerequisites!r}")
    return LessonMeta(
        difficulty=_parse_enum(Difficulty, raw.get("difficulty", "beginner"), "difficulty", source),
        tags=_parse_tags(raw.get("tags"), source),
        estimated_time_secs=estimated_time_secs,
        prerequisite_ids=tuple(prerequisites),
    )


def lesson_from_dict(raw: Dict[str, Any], source: str = "<lesson>") -> Lesson:
    """Validate a lesson mapping and build a :class:`Lesson`."""
    if not raw or not isinstance(raw, dict):
        raise ValueError(f"{source}: expected a mapping with 'id', 'language' and 'exercises'")
    lesson_id = raw.get("id")
    if isinstance(lesson_id, bool) or not isinstance(lesson_id, int):
        raise ValueError(f"{source}: missing or invalid 'id'")
    language = raw.get("language")
    if not language or not isinstance(language, str):
        raise ValueError(f"{source}: missing or invalid 'language'")
    return Lesson(
        id=lesson_id,
        language=language.strip(),
        exercises=tuple(_parse_exercises(raw.get("exercises"), source)),
        title=str(raw.get("title") or "").strip(),
        description=str(raw.get("description") or "").strip(),
        lesson_type=_parse_enum(LessonType, raw.get("lesson_type", "prose"), "lesson_type", source),
        meta=_parse_meta(raw.get("meta"), source),
    )


def load_lesson(path: Path) -> Lesson:
    """Read a single YAML lesson file."""
    if not path.exists():
        raise FileNotFoundError(f"Lesson file not found: {path}")
    raw = yaml.safe_load(path.read_text(encoding="utf-8"))
    return lesson_from_dict(raw, source=path.name)
