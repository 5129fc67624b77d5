"""Layout engine: reflow an analysis into draw operations for a fixed canvas.

WHY: The exported image card has a fixed size, but sentences vary in length
and token labels vary in width. The layout has to decide where each colored
chip goes, deterministically, without knowing how the pixels are drawn.
Separating layout from rasterization keeps it testable with a fake text
measurer and no imaging library.

HOW: A cursor walks down the canvas emitting DrawOp records:
  1. background, title, original sentence, vocabulary heading
  2. token chips, wrapped greedily by MEASURED WIDTH
  3. optional translation, wrapped by CHARACTER COUNT at spaces
  4. generation timestamp
The two wrapping policies are deliberately separate functions with their
own constants; they break lines under different rules.

RULES:
- Row-break tokens ("改行") move the cursor to a new row and draw nothing
- A chip that would cross W - M starts a new row first, even when it
  would be the first chip of its row
- Chips are never dropped; a chip wider than the row overflows
- Translation lines break only at a space, once the buffer has reached
  the character threshold; the breaking space is dropped
- The canvas is never resized; content below H - M is clipped by the
  raster surface
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, List, Optional, Tuple, Union

from analysis_export import config
from analysis_export.core.ir import AnalysisRecord, ExportOptions
from analysis_export.core.pos import classify

TextMeasurer = Callable[[str, int], float]
"""measure(text, font_size) -> rendered width in pixels."""

TITLE_TEXT = "日语句子分析"
SENTENCE_PREFIX = "原句："
VOCABULARY_HEADING = "词汇分析："
TRANSLATION_HEADING = "翻译："
TIMESTAMP_PREFIX = "生成时间："
TIMESTAMP_FORMAT = "%Y/%m/%d %H:%M:%S"

TITLE_SIZE = 28
SENTENCE_SIZE = 20
TOKEN_SIZE = 16
TRANSLATION_SIZE = 18
TIMESTAMP_SIZE = 12


@dataclass(frozen=True)
class LayoutConfig:
    """Canvas geometry and wrapping thresholds.

    Defaults come from analysis_export.config so they can be tuned via
    the environment; tests pass explicit values.
    """

    width: int = config.CANVAS_WIDTH
    height: int = config.CANVAS_HEIGHT
    margin: int = config.MARGIN
    row_height: int = config.ROW_HEIGHT
    token_gap: int = config.TOKEN_GAP
    chip_padding: int = 10
    chip_height: int = 25
    translation_line_chars: int = config.TRANSLATION_LINE_CHARS

    @property
    def right_edge(self) -> int:
        return self.width - self.margin


@dataclass(frozen=True)
class FillRect:
    x: float
    y: float
    width: float
    height: float
    color: str


@dataclass(frozen=True)
class DrawText:
    x: float
    y: float
    text: str
    size: int
    color: str
    bold: bool = False


DrawOp = Union[FillRect, DrawText]


def token_label(word: str, pos: str) -> str:
    """Chip text for a token: ``word(category)``."""
    return "{}({})".format(word, classify(pos).label)


def format_generated_at(record: AnalysisRecord) -> str:
    return TIMESTAMP_PREFIX + record.created_at.strftime(TIMESTAMP_FORMAT)


def wrap_translation(text: str, max_chars: int = config.TRANSLATION_LINE_CHARS) -> List[str]:
    """Break a translation into lines by character count.

    WHY: Translations are usually English or Chinese prose; breaking at
    spaces after a fixed number of characters is good enough for a card and
    needs no font metrics.

    HOW: Scan character by character. While the buffer is shorter than
    ``max_chars`` every character is appended. Once it has reached the
    threshold, the next space flushes the buffer as a line and is itself
    dropped. Text without spaces is never broken.
    """
    lines: List[str] = []
    line = ""
    for char in text:
        if len(line) >= max_chars and char == " ":
            lines.append(line)
            line = ""
        else:
            line += char
    if line:
        lines.append(line)
    return lines


def _layout_tokens(
    record: AnalysisRecord,
    measure: TextMeasurer,
    cfg: LayoutConfig,
    top: float,
) -> Tuple[List[DrawOp], float]:
    """Place token chips greedily by measured width; return ops and last row y."""
    ops: List[DrawOp] = []
    x: float = cfg.margin
    y = top

    for token in record.tokens:
        if token.is_row_break:
            y += cfg.row_height
            x = cfg.margin
            continue

        category = classify(token.pos)
        label = token_label(token.word, token.pos)
        chip_width = measure(label, TOKEN_SIZE) + 2 * cfg.chip_padding

        if x + chip_width > cfg.right_edge:
            y += cfg.row_height
            x = cfg.margin

        ops.append(FillRect(x, y, chip_width, cfg.chip_height, category.color))
        ops.append(DrawText(
            x + cfg.chip_padding,
            y + (cfg.chip_height - TOKEN_SIZE) / 2,
            label,
            TOKEN_SIZE,
            config.CHIP_TEXT_COLOR,
        ))
        x += chip_width + cfg.token_gap

    return ops, y


def layout(
    record: AnalysisRecord,
    options: ExportOptions,
    measure: TextMeasurer,
    layout_config: Optional[LayoutConfig] = None,
) -> List[DrawOp]:
    """Compute the draw operations for one export card.

    Args:
        record: The analysis to draw.
        options: Export options; only ``include_translation`` matters here.
        measure: Width of a string at a font size, supplied by the
            rasterizer so layout and drawing agree on metrics.
        layout_config: Geometry overrides; defaults to LayoutConfig().

    Returns:
        Draw operations in painting order.
    """
    cfg = layout_config or LayoutConfig()
    left = cfg.margin
    ops: List[DrawOp] = [FillRect(0, 0, cfg.width, cfg.height, config.BACKGROUND_COLOR)]

    y: float = cfg.margin
    ops.append(DrawText(left, y, TITLE_TEXT, TITLE_SIZE, config.TEXT_COLOR, bold=True))
    y += cfg.row_height * 1.5

    ops.append(DrawText(
        left, y, SENTENCE_PREFIX + record.sentence, SENTENCE_SIZE, config.SENTENCE_COLOR,
    ))
    y += cfg.row_height + 20

    ops.append(DrawText(left, y, VOCABULARY_HEADING, SENTENCE_SIZE, config.TEXT_COLOR))
    y += cfg.row_height

    token_ops, y = _layout_tokens(record, measure, cfg, y)
    ops.extend(token_ops)

    if options.include_translation and record.translation:
        y += cfg.row_height * 2
        ops.append(DrawText(left, y, TRANSLATION_HEADING, TRANSLATION_SIZE, config.TEXT_COLOR))
        for line in wrap_translation(record.translation, cfg.translation_line_chars):
            y += cfg.row_height
            ops.append(DrawText(left, y, line, TRANSLATION_SIZE, config.TEXT_COLOR))

    y += cfg.row_height * 2
    ops.append(DrawText(
        left, y, format_generated_at(record), TIMESTAMP_SIZE, config.TIMESTAMP_COLOR,
    ))
    return ops
