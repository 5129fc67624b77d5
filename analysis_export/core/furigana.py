"""Furigana alignment: which part of a word gets the ruby reading.

WHY: The analyzer gives a whole-word reading ("たべる" for "食べる"), but
ruby text should only sit above the kanji ("食" → "た"), not above the
okurigana that is already written in kana. The renderer needs the word
split into plain and glossed segments.

HOW: Strip the longest common prefix and then the longest common suffix
shared by the word and its reading. What remains in the middle is the
kanji run; the matching middle of the reading is its ruby. Hiragana and
katakana compare equal while matching, so a katakana reading from the
analyzer still lines up with hiragana okurigana.

RULES:
- align() never raises; doubtful input degrades to one plain segment
- "".join(segment.base) always equals the input word (verified)
- prefix + suffix never exceed the shorter of word and reading
- Only ONE contiguous kanji run is handled: in kanji–kana–kanji words the
  inner kana ends up inside the ruby segment
- O(n) in the word length, no backtracking
"""

from __future__ import annotations

from typing import List, Optional

from analysis_export.core.ir import Segment, Token
from analysis_export.core.pos import primary_tag

_SYMBOL_TAG = "記号"

# Katakana ァ..ヶ sit exactly 0x60 above hiragana ぁ..ゖ
_KATAKANA_START = 0x30A1
_KATAKANA_END = 0x30F6
_KANA_OFFSET = 0x60


def is_kana(char: str) -> bool:
    """True for hiragana, katakana (incl. "ー") and half-width katakana."""
    code = ord(char)
    return (
        0x3041 <= code <= 0x309F
        or 0x30A0 <= code <= 0x30FF
        or 0xFF66 <= code <= 0xFF9F
    )


def is_kanji(char: str) -> bool:
    code = ord(char)
    return (
        0x4E00 <= code <= 0x9FFF
        or 0x3400 <= code <= 0x4DBF
        or 0xF900 <= code <= 0xFAFF
        or char in "々〆"
    )


def contains_kanji(text: str) -> bool:
    return any(is_kanji(char) for char in text)


def _fold(char: str) -> str:
    code = ord(char)
    if _KATAKANA_START <= code <= _KATAKANA_END:
        return chr(code - _KANA_OFFSET)
    return char


def _plain(word: str) -> List[Segment]:
    return [Segment(base=word)]


def align(word: str, reading: Optional[str]) -> List[Segment]:
    """Split ``word`` into plain and ruby segments using its ``reading``.

    Args:
        word: Surface form, e.g. ``"食べる"``.
        reading: Whole-word reading, e.g. ``"たべる"``; may be None.

    Returns:
        Segments in order. Examples::

            align("食べる", "たべる") == [Segment("食", "た"), Segment("べる")]
            align("お茶", "おちゃ") == [Segment("お"), Segment("茶", "ちゃ")]
            align("ねこ", "ねこ") == [Segment("ねこ")]
    """
    if not isinstance(word, str):
        word = "" if word is None else str(word)
    if not reading or not isinstance(reading, str) or reading == word:
        return _plain(word)
    if all(is_kana(char) for char in word):
        return _plain(word)

    word_len = len(word)
    reading_len = len(reading)
    limit = min(word_len, reading_len)

    prefix = 0
    while prefix < limit and _fold(word[prefix]) == _fold(reading[prefix]):
        prefix += 1

    suffix = 0
    while (
        prefix + suffix < limit
        and _fold(word[word_len - 1 - suffix]) == _fold(reading[reading_len - 1 - suffix])
    ):
        suffix += 1

    middle = word[prefix:word_len - suffix]
    middle_reading = reading[prefix:reading_len - suffix]
    if not middle or not middle_reading:
        return _plain(word)

    segments: List[Segment] = []
    if prefix:
        segments.append(Segment(base=word[:prefix]))
    segments.append(Segment(base=middle, ruby=middle_reading))
    if suffix:
        segments.append(Segment(base=word[word_len - suffix:]))

    if "".join(segment.base for segment in segments) != word:
        return _plain(word)
    return segments


def ruby_segments(token: Token) -> List[Segment]:
    """Segments the interactive renderer should draw for one token.

    Ruby is only attached when the token has a reading that differs from
    the word, the word actually contains kanji, and the token is not a
    symbol or a row break. Everything else renders as one plain segment.
    """
    if token.is_row_break:
        return _plain(token.word)
    if (
        not token.furigana
        or token.furigana == token.word
        or not contains_kanji(token.word)
        or primary_tag(token.pos) == _SYMBOL_TAG
    ):
        return _plain(token.word)
    return align(token.word, token.furigana)
