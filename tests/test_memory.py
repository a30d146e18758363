"""Tests for keytutor.core.memory – memory-mode display text."""

from __future__ import annotations

import random

import pytest

from keytutor.core.memory import HIDDEN_CHAR, generate_display_text
from keytutor.core.models import MemoryMode, PartialLevel
from keytutor.core.text import LanguageFamily


class ReverseShuffler:
    """Deterministic stand-in for random.Random: 'shuffles' by reversing."""

    def shuffle(self, x):
        x.reverse()


TEN_WORDS = "one two three four five six seven eight nine ten"


def _hidden_words(display: str) -> int:
    return sum(1 for word in display.split() if set(word) == {HIDDEN_CHAR})


# ---------------------------------------------------------------------------
# Off / Complete
# ---------------------------------------------------------------------------

class TestOffAndComplete:
    def test_off_is_identity(self):
        assert generate_display_text("hello, world", MemoryMode.OFF, "en-US") == "hello, world"

    def test_complete_keeps_punctuation_and_spaces(self):
        assert generate_display_text("ab, cd", MemoryMode.COMPLETE, "en-US") == "__, __"

    def test_complete_cjk_keeps_cjk_punctuation(self):
        assert generate_display_text("你好，世界。", MemoryMode.COMPLETE, "zh-CN") == "__，__。"

    def test_complete_keeps_newlines_and_code_symbols(self):
        text = "fn main() {\n    x;\n}"
        assert generate_display_text(text, MemoryMode.COMPLETE, "rust") == "__ ____() {\n    _;\n}"


# ---------------------------------------------------------------------------
# First letter
# ---------------------------------------------------------------------------

class TestFirstLetter:
    def test_latin_words(self):
        assert generate_display_text("hello world", MemoryMode.FIRST_LETTER, "en-US") == "h____ w____"

    def test_latin_punctuation_untouched(self):
        assert generate_display_text("don't stop.", MemoryMode.FIRST_LETTER, "en-US") == "d__'_ s___."

    def test_leading_punctuation_then_first_alnum(self):
        assert generate_display_text('"quoted"', MemoryMode.FIRST_LETTER, "en-US") == '"q_____"'

    def test_cjk_runs(self):
        assert generate_display_text("你好，世界", MemoryMode.FIRST_LETTER, "zh-CN") == "你_，世_"

    def test_cjk_run_broken_by_latin(self):
        assert generate_display_text("我爱Python语言", MemoryMode.FIRST_LETTER, "zh-CN") == "我_Python语_"


# ---------------------------------------------------------------------------
# Partial
# ---------------------------------------------------------------------------

class TestPartial:
    @pytest.mark.parametrize(
        "level, expected",
        [(PartialLevel.LOW, 3), (PartialLevel.MEDIUM, 5), (PartialLevel.HIGH, 7)],
    )
    def test_hidden_word_count(self, level, expected):
        display = generate_display_text(TEN_WORDS, MemoryMode.partial(level), "en-US", random.Random(42))
        assert _hidden_words(display) == expected

    def test_visible_words_unchanged(self):
        display = generate_display_text(TEN_WORDS, MemoryMode.PARTIAL_MEDIUM, "en-US", random.Random(1))
        for shown, original in zip(display.split(), TEN_WORDS.split()):
            assert shown == original or shown == HIDDEN_CHAR * len(original)

    def test_injected_shuffler_selects_positions(self):
        display = generate_display_text("one two three four", MemoryMode.PARTIAL_MEDIUM, "en-US", ReverseShuffler())
        assert display == "one two _____ ____"

    def test_punctuation_inside_text_untouched(self):
        display = generate_display_text("a, b; c.", MemoryMode.PARTIAL_HIGH, "en-US", random.Random(0))
        assert display.count(HIDDEN_CHAR) == 2
        assert display[1:3] == ", " and display[4:6] == "; " and display[-1] == "."

    def test_cjk_hides_characters(self):
        text = "春眠不觉晓，处处闻啼鸟"
        display = generate_display_text(text, MemoryMode.PARTIAL_LOW, "zh-CN", random.Random(7))
        assert display.count(HIDDEN_CHAR) == 3
        assert display[5] == "，"

    def test_accepts_resolved_family(self):
        display = generate_display_text("one two", MemoryMode.PARTIAL_HIGH, LanguageFamily.CODE, ReverseShuffler())
        # 0.7 * 2 rounds to 1
        assert display == "one ___"

    def test_medium_hides_single_word(self):
        assert generate_display_text("hello", MemoryMode.PARTIAL_MEDIUM, "en-US", random.Random(0)) == "_____"

    def test_medium_rounds_half_up(self):
        display = generate_display_text("a b c d e", MemoryMode.PARTIAL_MEDIUM, "en-US", random.Random(3))
        assert _hidden_words(display) == 3

    def test_cjk_medium_rounds_half_up(self):
        display = generate_display_text("春眠不觉晓", MemoryMode.PARTIAL_MEDIUM, "zh-CN", random.Random(3))
        assert display.count(HIDDEN_CHAR) == 3

    def test_same_seed_same_output(self):
        a = generate_display_text(TEN_WORDS, MemoryMode.PARTIAL_LOW, "en-US", random.Random(5))
        b = generate_display_text(TEN_WORDS, MemoryMode.PARTIAL_LOW, "en-US", random.Random(5))
        assert a == b

    def test_empty_text(self):
        assert generate_display_text("", MemoryMode.PARTIAL_HIGH, "en-US", random.Random(0)) == ""
