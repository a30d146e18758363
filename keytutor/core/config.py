from __future__ import annotations

import logging
from dataclasses import dataclass, fields, replace
from pathlib import Path
from typing import Any, Dict, Optional, Tuple

import yaml

from keytutor.core.models import InputMode, PracticeMode

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class EngineConfig:
    """Tunable constants of the typing engine. Defaults match the standard behaviour."""

    input_mode: InputMode = InputMode.FORGIVING
    practice_mode: PracticeMode = PracticeMode.ZEN
    history_window_secs: float = 10.0
    min_wpm_elapsed_secs: float = 0.1
    recent_error_span: int = 50
    milestones: Tuple[float, ...] = (0.25, 0.5, 0.75, 1.0)
    event_queue_size: int = 1024
    weak_min_occurrences: int = 3
    weak_session_threshold: float = 0.15
    weak_session_limit: int = 10
    weak_aggregate_threshold: float = 0.10


_ENUM_FIELDS = {"input_mode": InputMode, "practice_mode": PracticeMode}
_FLOAT_FIELDS = {"history_window_secs", "min_wpm_elapsed_secs", "weak_session_threshold", "weak_aggregate_threshold"}
_INT_FIELDS = {"recent_error_span", "event_queue_size", "weak_min_occurrences", "weak_session_limit"}


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def _convert(key: str, value: Any) -> Any:
    if key in _ENUM_FIELDS:
        try:
            return _ENUM_FIELDS[key](str(value).strip().lower())
        except ValueError:
            raise ValueError(f"Invalid value for {key}: {value!r}") from None
    if key == "milestones":
        if isinstance(value, (list, tuple)) and all(_is_number(v) for v in value):
            return tuple(sorted(float(v) for v in value))
    elif key in _FLOAT_FIELDS:
        if _is_number(value):
            return float(value)
    elif key in _INT_FIELDS:
        if isinstance(value, int) and not isinstance(value, bool):
            return value
    raise ValueError(f"Invalid value for {key}: {value!r}")


def config_from_dict(raw: Dict[str, Any], base: Optional[EngineConfig] = None) -> EngineConfig:
    """Overlay the keys of ``raw`` on ``base`` (or the defaults).

    Every value is checked against its field's type; a mistyped value raises
    ``ValueError`` naming the key rather than surfacing later in the session.
    """
    known = {f.name for f in fields(EngineConfig)}
    values: Dict[str, Any] = {}
    for key, value in raw.items():
        if key not in known:
            raise ValueError(f"Unknown config key: {key!r}")
        values[key] = _convert(key, value)
    return replace(base or EngineConfig(), **values)


def load_config(path: Optional[Path] = None) -> EngineConfig:
    """Load an :class:`EngineConfig` from a YAML file; defaults when it is absent or unreadable."""
    if path is None or not path.exists():
        return EngineConfig()
    try:
        raw = yaml.safe_load(path.read_text(encoding="utf-8"))
    except (yaml.YAMLError, OSError) as e:
        logger.warning("Could not load config from %s: %s", path, e)
        return EngineConfig()
    if raw is None:
        return EngineConfig()
    if not isinstance(raw, dict):
        logger.warning("Ignoring config %s: expected a mapping, got %s", path, type(raw).__name__)
        return EngineConfig()
    return config_from_dict(raw)
