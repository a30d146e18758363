"""Weak-unit analysis: which characters, words and phrases go wrong most often."""

from __future__ import annotations

from collections import defaultdict
from typing import AbstractSet, DefaultDict, Dict, Iterable, List, Tuple

from keytutor.core.models import UnitType, WeakUnit
from keytutor.core.text import LanguageFamily, is_cjk_char

UnitKey = Tuple[str, UnitType]

MIN_OCCURRENCES = 3
SESSION_ERROR_THRESHOLD = 0.15
SESSION_LIMIT = 10
AGGREGATE_ERROR_THRESHOLD = 0.10


# (content, unit_type) -> [error occurrences, total occurrences]
Tally = DefaultDict[UnitKey, List[int]]


def _new_tally() -> Tally:
    return defaultdict(lambda: [0, 0])


def _units(tally: Tally) -> Dict[UnitKey, WeakUnit]:
    return {
        (content, unit_type): WeakUnit(content=content, unit_type=unit_type, error_count=errors, total_count=total)
        for (content, unit_type), (errors, total) in tally.items()
    }


def _record(tally: Tally, content: str, unit_type: UnitType, had_error: bool) -> None:
    entry = tally[(content, unit_type)]
    entry[1] += 1
    if had_error:
        entry[0] += 1


def _extract_cjk(target: str, errors: AbstractSet[int], tally: Tally) -> None:
    for i, ch in enumerate(target):
        if ch.isspace():
            continue
        _record(tally, ch, UnitType.CHARACTER, i in errors)
    for i in range(len(target) - 1):
        first, second = target[i], target[i + 1]
        if is_cjk_char(first) and is_cjk_char(second):
            _record(tally, first + second, UnitType.PHRASE, i in errors or i + 1 in errors)


def _extract_latin(target: str, errors: AbstractSet[int], tally: Tally) -> None:
    i = 0
    n = len(target)
    while i < n:
        if target[i].isspace():
            i += 1
            continue
        end = i
        while end < n and not target[end].isspace():
            end += 1
        start, stop = i, end
        while start < stop and not target[start].isalnum():
            start += 1
        while stop > start and not target[stop - 1].isalnum():
            stop -= 1
        if start < stop:
            had_error = any(p in errors for p in range(start, stop))
            _record(tally, target[start:stop], UnitType.WORD, had_error)
        for p in range(i, end):
            if not target[p].isalnum():
                _record(tally, target[p], UnitType.CHARACTER, p in errors)
        i = end


def _extract_characters(target: str, errors: AbstractSet[int], tally: Tally) -> None:
    # TODO: extract identifier/keyword tokens (UnitType.TOKEN) for code lessons.
    for i, ch in enumerate(target):
        if not ch.isspace():
            _record(tally, ch, UnitType.CHARACTER, i in errors)


def extract_units(
    target: str,
    error_positions: AbstractSet[int],
    family: LanguageFamily,
) -> Dict[UnitKey, WeakUnit]:
    """Count occurrences and erroneous occurrences of every unit in ``target``.

    A unit occurrence counts as an error when any position it spans is in
    ``error_positions``.
    """
    tally = _new_tally()
    if family is LanguageFamily.CJK:
        _extract_cjk(target, error_positions, tally)
    elif family is LanguageFamily.LATIN:
        _extract_latin(target, error_positions, tally)
    else:
        _extract_characters(target, error_positions, tally)
    return _units(tally)


def _merge(units: Iterable[WeakUnit]) -> List[WeakUnit]:
    tally = _new_tally()
    for unit in units:
        entry = tally[(unit.content, unit.unit_type)]
        entry[0] += unit.error_count
        entry[1] += unit.total_count
    return list(_units(tally).values())


def rank_weak_units(
    units: Iterable[WeakUnit],
    min_occurrences: int = MIN_OCCURRENCES,
    threshold: float = SESSION_ERROR_THRESHOLD,
    limit: int = SESSION_LIMIT,
) -> List[WeakUnit]:
    """Keep frequent units whose error rate exceeds ``threshold``, worst first."""
    kept = [u for u in units if u.total_count >= min_occurrences and u.error_rate > threshold]
    kept.sort(key=lambda u: (-u.error_rate, -u.error_count, u.content))
    return kept[:limit]


def analyze_exercises(
    completed: Iterable[Tuple[str, AbstractSet[int]]],
    family: LanguageFamily,
    min_occurrences: int = MIN_OCCURRENCES,
    threshold: float = SESSION_ERROR_THRESHOLD,
    limit: int = SESSION_LIMIT,
) -> List[WeakUnit]:
    """Session-level weak units from ``(target, error_positions)`` pairs."""
    units: List[WeakUnit] = []
    for target, errors in completed:
        units.extend(extract_units(target, errors, family).values())
    return rank_weak_units(_merge(units), min_occurrences, threshold, limit)


def aggregate_weak_units(
    units: Iterable[WeakUnit],
    limit: int,
    min_occurrences: int = MIN_OCCURRENCES,
    threshold: float = AGGREGATE_ERROR_THRESHOLD,
) -> List[WeakUnit]:
    """Combine weak units stored from many sessions and rank them again."""
    return rank_weak_units(_merge(units), min_occurrences, threshold, limit)
