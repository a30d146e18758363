"""Language and character classification shared by obfuscation and weak-unit analysis."""

from __future__ import annotations

from enum import Enum
from typing import FrozenSet, Tuple

CJK_LANGUAGE_PREFIXES: Tuple[str, ...] = ("zh-", "ja-", "ko-")

# Unified ideographs, extensions A-E and the compatibility blocks.
CJK_RANGES: Tuple[Tuple[int, int], ...] = (
    (0x4E00, 0x9FFF),
    (0x3400, 0x4DBF),
    (0x20000, 0x2A6DF),
    (0x2A700, 0x2B73F),
    (0x2B740, 0x2B81F),
    (0x2B820, 0x2CEAF),
    (0xF900, 0xFAFF),
    (0x2F800, 0x2FA1F),
)

CJK_PUNCTUATION: FrozenSet[str] = frozenset(
    "，。！？；：、“”‘’（）《》【】「」『』〈〉…—～·"
)

CODE_LANGUAGES: FrozenSet[str] = frozenset(
    {
        "rust",
        "python",
        "javascript",
        "typescript",
        "go",
        "c",
        "cpp",
        "c++",
        "java",
        "kotlin",
        "swift",
        "ruby",
        "shell",
        "bash",
        "sql",
    }
)

LATIN_LANGUAGE_PREFIXES: Tuple[str, ...] = (
    "en", "fr", "de", "es", "it", "pt", "nl", "sv", "da", "no", "nb", "fi", "pl", "cs", "ro", "tr", "id", "vi",
)


def is_cjk_language(tag: str) -> bool:
    return tag.startswith(CJK_LANGUAGE_PREFIXES)


def is_cjk_char(ch: str) -> bool:
    code = ord(ch)
    return any(start <= code <= end for start, end in CJK_RANGES)


def is_cjk_punctuation(ch: str) -> bool:
    return ch in CJK_PUNCTUATION


def is_ascii_punctuation(ch: str) -> bool:
    return ch.isascii() and not ch.isalnum() and not ch.isspace() and ch.isprintable()


class LanguageFamily(Enum):
    """Closed set of language families, resolved once per lesson."""

    CJK = "cjk"
    LATIN = "latin"
    CODE = "code"
    UNKNOWN = "unknown"

    @classmethod
    def resolve(cls, tag: str) -> "LanguageFamily":
        """Map a lesson language tag such as ``"zh-CN"``, ``"en-US"`` or ``"rust"`` to its family."""
        normalized = tag.strip()
        if is_cjk_language(normalized):
            return cls.CJK
        lowered = normalized.lower()
        if lowered in CODE_LANGUAGES:
            return cls.CODE
        primary = lowered.split("-", 1)[0]
        if primary in LATIN_LANGUAGE_PREFIXES:
            return cls.LATIN
        return cls.UNKNOWN

    @property
    def is_cjk(self) -> bool:
        return self is LanguageFamily.CJK
