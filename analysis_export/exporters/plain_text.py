"""Plain text analysis report.

WHY: A text report is the easiest thing to paste into notes or a chat:
the sentence, one line per word with its category, reading and romaji,
and the translation.

HOW: Straight string building over the record. Row-break tokens become
blank lines so the report keeps the analyzer's row structure.

RULES:
- Header "日语句子分析" underlined with 20 "="
- Token rows: "word - label", then " (furigana)" when the reading is
  present and differs from the word, then " [romaji]" when present
- A row-break token emits a bare newline and never a label
- Translation block only when requested AND present
- Last line: "生成时间：<created_at>"
- Output is UTF-8, media type text/plain
"""

from __future__ import annotations

from typing import List

from analysis_export.core.ir import AnalysisRecord, ExportFormat, ExportOptions, Token, export_filename
from analysis_export.core.layout import format_generated_at
from analysis_export.core.pos import category_label
from analysis_export.exporters.base import BaseExporter, ExportOutput

HEADER = "日语句子分析"


def _token_row(token: Token) -> str:
    row = "{} - {}".format(token.word, category_label(token.pos))
    if token.furigana and token.furigana != token.word:
        row += " ({})".format(token.furigana)
    if token.romaji:
        row += " [{}]".format(token.romaji)
    return row


def export_as_text(record: AnalysisRecord, options: ExportOptions) -> str:
    """Build the plain text report for ``record``."""
    parts: List[str] = [
        HEADER + "\n",
        "=" * 20 + "\n\n",
        "原句：{}\n\n".format(record.sentence),
        "词汇分析：\n",
        "-" * 10 + "\n",
    ]

    for token in record.tokens:
        if token.is_row_break:
            parts.append("\n")
            continue
        parts.append(_token_row(token) + "\n")

    if options.include_translation and record.translation:
        parts.append("\n翻译：\n")
        parts.append("-" * 10 + "\n")
        parts.append(record.translation + "\n")

    parts.append("\n{}\n".format(format_generated_at(record)))
    return "".join(parts)


class TextExporter(BaseExporter):
    """Exporter producing the plain text report."""

    @property
    def name(self) -> str:
        return "Plain Text"

    def export(self, record: AnalysisRecord, options: ExportOptions) -> ExportOutput:
        content = export_as_text(record, options)
        return ExportOutput(
            filename=export_filename(record.id, ExportFormat.TXT),
            content=content.encode("utf-8"),
            media_type=ExportFormat.TXT.media_type,
        )
