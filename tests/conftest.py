"""Shared test fixtures for the analysis_export test suite.

WHY: Most test modules need the same small, fully known analysis (a
sentence with a pronoun, a particle, a row break, a verb with okurigana
and a symbol) so expected outputs can be written out by hand.

HOW: Pytest fixtures provide the record, export options, a deterministic
text measurer (10px per character, independent of font size) and an
explicit LayoutConfig so tests do not depend on environment overrides.

RULES:
- Timestamps are fixed UTC values
- The record ID is deterministic
- fake_measure never touches an imaging library
"""

from datetime import datetime, timezone

import pytest

from analysis_export.core.ir import AnalysisRecord, ExportFormat, ExportOptions, Token
from analysis_export.core.layout import LayoutConfig

RECORD_ID = "analysis_1714555800000_abc123xyz"
CREATED_AT = datetime(2024, 5, 1, 9, 30, 0, tzinfo=timezone.utc)
UPDATED_AT = datetime(2024, 5, 2, 10, 0, 0, tzinfo=timezone.utc)

SAMPLE_TOKENS = (
    Token(word="私", pos="代名詞", furigana="わたし", romaji="watashi"),
    Token(word="は", pos="助詞-係助詞", furigana="は", romaji="wa"),
    Token(word="", pos="改行"),
    Token(word="食べる", pos="動詞-一般", furigana="たべる", romaji="taberu"),
    Token(word="。", pos="記号"),
)


def fake_measure(text, size):
    return len(text) * 10


@pytest.fixture
def sample_record():
    return AnalysisRecord(
        id=RECORD_ID,
        sentence="私は食べる。",
        tokens=SAMPLE_TOKENS,
        created_at=CREATED_AT,
        updated_at=UPDATED_AT,
        translation="I eat.",
        audio_ref="blob:audio/1",
    )


@pytest.fixture
def text_options():
    return ExportOptions(format=ExportFormat.TXT, include_translation=True)


@pytest.fixture
def layout_config():
    return LayoutConfig(
        width=800,
        height=600,
        margin=40,
        row_height=40,
        token_gap=10,
        chip_padding=10,
        chip_height=25,
        translation_line_chars=35,
    )


@pytest.fixture
def measure():
    return fake_measure
