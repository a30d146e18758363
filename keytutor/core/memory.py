"""Memory-mode display text: hide parts of the target so it is typed from recall."""

from __future__ import annotations

import random
from typing import List, MutableSequence, Optional, Protocol, Tuple, Union

from keytutor.core.models import MemoryMode
from keytutor.core.text import LanguageFamily, is_ascii_punctuation, is_cjk_char, is_cjk_punctuation

HIDDEN_CHAR = "_"


class Shuffler(Protocol):
    """Anything that can shuffle a list in place; ``random.Random`` qualifies."""

    def shuffle(self, x: MutableSequence) -> None: ...


def generate_display_text(
    target: str,
    mode: MemoryMode,
    language: Union[str, LanguageFamily],
    rng: Optional[Shuffler] = None,
) -> str:
    """Return ``target`` with characters replaced by ``_`` according to ``mode``.

    ``language`` is either a lesson language tag or an already resolved
    :class:`LanguageFamily`. ``rng`` is only consulted by the partial modes;
    pass a seeded ``random.Random`` for reproducible output.
    """
    family = language if isinstance(language, LanguageFamily) else LanguageFamily.resolve(language)

    if mode is MemoryMode.OFF:
        return target
    if mode is MemoryMode.COMPLETE:
        return _hide_complete(target)
    if mode is MemoryMode.FIRST_LETTER:
        if family.is_cjk:
            return _first_letter_cjk(target)
        return _first_letter_words(target)

    ratio = mode.hide_ratio
    if rng is None:
        rng = random.Random()
    if family.is_cjk:
        return _partial_cjk(target, ratio, rng)
    return _partial_words(target, ratio, rng)


def _is_visible_mark(ch: str) -> bool:
    return ch.isspace() or is_ascii_punctuation(ch) or is_cjk_punctuation(ch)


def _hide_complete(target: str) -> str:
    return "".join(ch if _is_visible_mark(ch) else HIDDEN_CHAR for ch in target)


def _first_letter_cjk(target: str) -> str:
    out: List[str] = []
    in_run = False
    for ch in target:
        if is_cjk_char(ch):
            out.append(HIDDEN_CHAR if in_run else ch)
            in_run = True
        else:
            out.append(ch)
            in_run = False
    return "".join(out)


def _first_letter_words(target: str) -> str:
    out: List[str] = []
    revealed = False
    for ch in target:
        if ch.isspace():
            revealed = False
            out.append(ch)
        elif ch.isalnum():
            out.append(HIDDEN_CHAR if revealed else ch)
            revealed = True
        else:
            out.append(ch)
    return "".join(out)


def _hide_count(ratio: float, count: int) -> int:
    # Halves round up: Medium on one word hides it.
    return int(ratio * count + 0.5)


def _partial_cjk(target: str, ratio: float, rng: Shuffler) -> str:
    chars = list(target)
    indices = [i for i, ch in enumerate(chars) if is_cjk_char(ch)]
    rng.shuffle(indices)
    for i in indices[: _hide_count(ratio, len(indices))]:
        chars[i] = HIDDEN_CHAR
    return "".join(chars)


def _word_spans(target: str) -> List[Tuple[int, int]]:
    """Half-open ``(start, end)`` spans of the alphanumeric runs in ``target``."""
    spans: List[Tuple[int, int]] = []
    start: Optional[int] = None
    for i, ch in enumerate(target):
        if ch.isalnum():
            if start is None:
                start = i
        elif start is not None:
            spans.append((start, i))
            start = None
    if start is not None:
        spans.append((start, len(target)))
    return spans


def _partial_words(target: str, ratio: float, rng: Shuffler) -> str:
    chars = list(target)
    spans = _word_spans(target)
    rng.shuffle(spans)
    for start, end in spans[: _hide_count(ratio, len(spans))]:
        for i in range(start, end):
            chars[i] = HIDDEN_CHAR
    return "".join(chars)
