"""Unit tests for the layout engine and the translation wrapper.

WHY: The layout decides where every chip lands on a fixed canvas. A wrong
row break either pushes chips off the right edge or leaves gaps; a wrong
translation wrap splits words mid-way.

HOW: A fake measurer (10px per character) makes every width predictable.
Tests inspect the returned draw operations directly, without an imaging library.
"""

from datetime import datetime, timezone

from analysis_export.core.ir import AnalysisRecord, ExportFormat, ExportOptions, Token
from analysis_export.core.layout import (
    DrawText,
    FillRect,
    TITLE_TEXT,
    TRANSLATION_HEADING,
    layout,
    token_label,
    wrap_translation,
)

NOW = datetime(2024, 5, 1, tzinfo=timezone.utc)
PNG = ExportOptions(format=ExportFormat.PNG, include_translation=True)


def _record(tokens, translation=None):
    return AnalysisRecord(
        id="r1",
        sentence="テスト",
        tokens=tokens,
        created_at=NOW,
        updated_at=NOW,
        translation=translation,
    )


def _chips(ops):
    # ops[0] is the full-canvas background
    return [op for op in ops[1:] if isinstance(op, FillRect)]


def _texts(ops):
    return [op.text for op in ops if isinstance(op, DrawText)]


class TestTokenFlow:

    def test_one_chip_and_label_per_word(self, sample_record, measure, layout_config):
        ops = layout(sample_record, PNG, measure, layout_config)
        chips = _chips(ops)
        assert len(chips) == 4  # five tokens, one of them a row break
        texts = _texts(ops)
        assert "私(代词)" in texts
        assert "食べる(动词)" in texts
        assert not any("改行" in text for text in texts)

    def test_chip_color_from_category(self, measure, layout_config):
        ops = layout(_record([Token("猫", "名詞")]), PNG, measure, layout_config)
        assert _chips(ops)[0].color == "#89CFF0"

    def test_chips_advance_by_width_plus_gap(self, measure, layout_config):
        ops = layout(_record([Token("ab", "名詞"), Token("cd", "名詞")]), PNG, measure, layout_config)
        first, second = _chips(ops)
        # "ab(名词)" is 6 chars → 60px + 2 * 10px padding
        assert first.width == 80
        assert first.x == 40
        assert second.x == 40 + 80 + 10
        assert second.y == first.y

    def test_row_breaks_when_right_edge_would_be_crossed(self, measure, layout_config):
        tokens = [Token("ab", "名詞") for _ in range(9)]
        chips = _chips(layout(_record(tokens), PNG, measure, layout_config))
        first_row = [chip for chip in chips if chip.y == chips[0].y]
        assert len(first_row) == 8
        assert chips[8].x == 40
        assert chips[8].y == chips[0].y + 40

    def test_row_break_token_starts_new_row(self, measure, layout_config):
        tokens = [Token("ab", "名詞"), Token("", "改行"), Token("cd", "名詞")]
        first, second = _chips(layout(_record(tokens), PNG, measure, layout_config))
        assert second.x == 40
        assert second.y == first.y + 40

    def test_right_edge_bound_for_fitting_chips(self, measure, layout_config):
        words = ["a" * n for n in (1, 5, 12, 3, 30, 8, 2, 20, 7, 15, 4, 25, 9)]
        tokens = [Token(word, "動詞") for word in words]
        chips = _chips(layout(_record(tokens), PNG, measure, layout_config))
        assert len(chips) == len(words)
        usable = layout_config.width - 2 * layout_config.margin
        for chip in chips:
            if chip.width <= usable:
                assert chip.x + chip.width <= layout_config.width - layout_config.margin

    def test_oversized_chip_is_placed_not_dropped(self, measure, layout_config):
        tokens = [Token("ab", "名詞"), Token("x" * 100, "名詞"), Token("cd", "名詞")]
        chips = _chips(layout(_record(tokens), PNG, measure, layout_config))
        assert len(chips) == 3
        wide = chips[1]
        assert wide.x == 40
        assert wide.x + wide.width > layout_config.width - layout_config.margin
        # the chip after the overflow goes to the next row
        assert chips[2].y == wide.y + 40

    def test_oversized_first_chip_still_breaks_the_row(self, measure, layout_config):
        chips = _chips(layout(_record([Token("x" * 100, "名詞")]), PNG, measure, layout_config))
        heading = [op for op in layout(_record([]), PNG, measure, layout_config)
                   if isinstance(op, DrawText) and op.text == "词汇分析："][0]
        flow_top = heading.y + layout_config.row_height
        assert chips[0].x == layout_config.margin
        assert chips[0].y == flow_top + layout_config.row_height


class TestFixedBlocks:

    def test_order_of_blocks(self, sample_record, measure, layout_config):
        ops = layout(sample_record, PNG, measure, layout_config)
        texts = _texts(ops)
        assert texts[0] == TITLE_TEXT
        assert texts[1] == "原句：私は食べる。"
        assert texts[2] == "词汇分析："
        assert TRANSLATION_HEADING in texts
        assert texts[-1] == "生成时间：2024/05/01 09:30:00"

    def test_background_covers_canvas(self, sample_record, measure, layout_config):
        background = layout(sample_record, PNG, measure, layout_config)[0]
        assert isinstance(background, FillRect)
        assert (background.x, background.y, background.width, background.height) == (0, 0, 800, 600)

    def test_title_is_bold(self, sample_record, measure, layout_config):
        title = layout(sample_record, PNG, measure, layout_config)[1]
        assert isinstance(title, DrawText)
        assert title.bold

    def test_translation_omitted_when_not_requested(self, sample_record, measure, layout_config):
        options = ExportOptions(format=ExportFormat.PNG, include_translation=False)
        texts = _texts(layout(sample_record, options, measure, layout_config))
        assert TRANSLATION_HEADING not in texts
        assert "I eat." not in texts

    def test_translation_omitted_when_absent(self, measure, layout_config):
        texts = _texts(layout(_record([Token("猫", "名詞")]), PNG, measure, layout_config))
        assert TRANSLATION_HEADING not in texts

    def test_translation_lines_follow_heading(self, measure, layout_config):
        translation = "The quick brown fox jumps over the lazy dog and keeps running far away"
        ops = layout(_record([], translation=translation), PNG, measure, layout_config)
        texts = _texts(ops)
        start = texts.index(TRANSLATION_HEADING)
        assert texts[start + 1:-1] == wrap_translation(translation, 35)

    def test_layout_is_deterministic(self, sample_record, measure, layout_config):
        assert layout(sample_record, PNG, measure, layout_config) == layout(
            sample_record, PNG, measure, layout_config
        )


class TestWrapTranslation:

    def test_short_text_single_line(self):
        assert wrap_translation("I eat.", 35) == ["I eat."]

    def test_breaks_only_at_space_after_threshold(self):
        assert wrap_translation("ab cd ef", 4) == ["ab cd", "ef"]

    def test_no_space_no_break(self):
        text = "我吃饭" * 20
        assert wrap_translation(text, 35) == [text]

    def test_long_run_then_space(self):
        assert wrap_translation("a" * 10 + " bbb", 5) == ["a" * 10, "bbb"]

    def test_empty(self):
        assert wrap_translation("", 35) == []


def test_token_label():
    assert token_label("食べる", "動詞-一般") == "食べる(动词)"
    assert token_label("ズ", "ズズズ") == "ズ(未知)"
