"""Unit tests for the exporters and the export orchestrator.

WHY: Exports leave the app. A malformed JSON export cannot be loaded
back, a text report with "改行" labels looks broken, and an image export
that fails halfway must not produce a file.

HOW: Text output is compared against a hand-written expected report. JSON
output is parsed and compared with the record. Image output is decoded
with Pillow to check size and format. Orchestrator tests check dispatch,
filenames and sink behavior.
"""

import io
import json
from datetime import datetime, timezone

import jsonschema
import pytest
from PIL import Image

from analysis_export.core.ir import AnalysisRecord, ExportFormat, ExportOptions, format_timestamp
from analysis_export.exceptions import SurfaceUnavailableError, UnsupportedFormatError
from analysis_export.exporters import EXPORTERS, export_record, get_exporter
from analysis_export.exporters import image as image_module
from analysis_export.exporters.image import FontBook, ImageExporter, export_as_image
from analysis_export.exporters.json_document import JsonExporter, export_as_json
from analysis_export.exporters.plain_text import TextExporter, export_as_text

EXPORTED_AT = datetime(2024, 6, 1, 12, 0, 0, tzinfo=timezone.utc)

EXPECTED_TEXT = (
    "日语句子分析\n"
    + "=" * 20 + "\n\n"
    + "原句：私は食べる。\n\n"
    + "词汇分析：\n"
    + "-" * 10 + "\n"
    + "私 - 代词 (わたし) [watashi]\n"
    + "は - 助词 [wa]\n"
    + "\n"
    + "食べる - 动词 (たべる) [taberu]\n"
    + "。 - 符号\n"
    + "\n翻译：\n"
    + "-" * 10 + "\n"
    + "I eat.\n"
    + "\n生成时间：2024/05/01 09:30:00\n"
)


# =========================================================================
# Text
# =========================================================================

class TestTextExport:

    def test_full_report(self, sample_record, text_options):
        assert export_as_text(sample_record, text_options) == EXPECTED_TEXT

    def test_row_break_is_newline_not_label(self, sample_record, text_options):
        text = export_as_text(sample_record, text_options)
        assert "改行" not in text
        assert "[wa]\n\n食べる" in text

    def test_translation_can_be_excluded(self, sample_record):
        options = ExportOptions(format=ExportFormat.TXT, include_translation=False)
        text = export_as_text(sample_record, options)
        assert "翻译" not in text
        assert "I eat." not in text

    def test_reading_equal_to_word_is_omitted(self, sample_record, text_options):
        text = export_as_text(sample_record, text_options)
        assert "は (は)" not in text

    def test_exporter_output(self, sample_record, text_options):
        output = TextExporter().export(sample_record, text_options)
        assert output.filename == "japanese_analysis_{}.txt".format(sample_record.id)
        assert output.media_type.startswith("text/plain")
        assert output.content.decode("utf-8") == EXPECTED_TEXT


# =========================================================================
# JSON
# =========================================================================

class TestJsonExport:

    def test_round_trip(self, sample_record):
        data = json.loads(export_as_json(sample_record, now=EXPORTED_AT))
        assert data.pop("exportedAt") == "2024-06-01T12:00:00.000Z"
        assert data == sample_record.to_dict()
        assert data["createdAt"] == format_timestamp(sample_record.created_at)
        assert data["updatedAt"] == "2024-05-02T10:00:00.000Z"

    def test_loads_back_into_record(self, sample_record):
        data = json.loads(export_as_json(sample_record, now=EXPORTED_AT))
        assert AnalysisRecord.from_dict(data) == sample_record

    def test_keeps_row_break_tokens_verbatim(self, sample_record):
        data = json.loads(export_as_json(sample_record, now=EXPORTED_AT))
        assert {"word": "", "pos": "改行"} in data["tokens"]

    def test_non_ascii_is_not_escaped(self, sample_record):
        content = export_as_json(sample_record, now=EXPORTED_AT).decode("utf-8")
        assert "私は食べる。" in content
        assert "\\u" not in content

    def test_non_serializable_field_propagates_type_error(self, sample_record):
        broken = AnalysisRecord(
            id=sample_record.id,
            sentence=sample_record.sentence,
            tokens=sample_record.tokens,
            created_at=sample_record.created_at,
            updated_at=sample_record.updated_at,
            translation={"not", "json"},
        )
        with pytest.raises(TypeError):
            export_as_json(broken)

    def test_schema_violation_propagates(self, sample_record):
        broken = AnalysisRecord(
            id=sample_record.id,
            sentence=sample_record.sentence,
            tokens=sample_record.tokens,
            created_at=sample_record.created_at,
            updated_at=sample_record.updated_at,
            translation=123,
        )
        with pytest.raises(jsonschema.ValidationError):
            export_as_json(broken)

    def test_exporter_output(self, sample_record):
        output = JsonExporter().export(sample_record, ExportOptions(format=ExportFormat.JSON))
        assert output.filename == "japanese_analysis_{}.json".format(sample_record.id)
        assert output.media_type == "application/json"
        assert "exportedAt" in json.loads(output.content)


# =========================================================================
# Image
# =========================================================================

class TestImageExport:

    @pytest.mark.parametrize("export_format,pil_format", [
        (ExportFormat.PNG, "PNG"),
        (ExportFormat.JPEG, "JPEG"),
    ])
    def test_raster_format_and_size(self, sample_record, export_format, pil_format):
        content = export_as_image(sample_record, ExportOptions(format=export_format))
        with Image.open(io.BytesIO(content)) as img:
            assert img.format == pil_format
            assert img.size == (800, 600)

    def test_background_color(self, sample_record):
        content = export_as_image(sample_record, ExportOptions(format=ExportFormat.PNG))
        with Image.open(io.BytesIO(content)) as img:
            assert img.convert("RGB").getpixel((799, 599)) == (0xF7, 0xF2, 0xFA)

    def test_text_format_is_rejected(self, sample_record):
        with pytest.raises(UnsupportedFormatError):
            export_as_image(sample_record, ExportOptions(format=ExportFormat.TXT))

    def test_surface_failure_is_classified(self, sample_record, monkeypatch):
        def _no_memory(*args, **kwargs):
            raise MemoryError("no room")

        monkeypatch.setattr(image_module.Image, "new", _no_memory)
        with pytest.raises(SurfaceUnavailableError):
            export_as_image(sample_record, ExportOptions(format=ExportFormat.PNG))

    def test_font_book_measures_positive_width(self):
        fonts = FontBook()
        assert fonts.measure("abc", 16) > 0
        assert fonts.get(16) is fonts.get(16)

    def test_exporter_filename_uses_format_extension(self, sample_record):
        output = ImageExporter().export(sample_record, ExportOptions(format=ExportFormat.JPEG))
        assert output.filename == "japanese_analysis_{}.jpeg".format(sample_record.id)
        assert output.media_type == "image/jpeg"


# =========================================================================
# Orchestrator
# =========================================================================

class TestExportRecord:

    def test_registry_is_exhaustive(self):
        assert set(EXPORTERS) == set(ExportFormat)

    @pytest.mark.parametrize("export_format,cls", [
        (ExportFormat.PNG, ImageExporter),
        (ExportFormat.JPEG, ImageExporter),
        (ExportFormat.TXT, TextExporter),
        (ExportFormat.JSON, JsonExporter),
    ])
    def test_dispatch(self, export_format, cls):
        assert isinstance(get_exporter(export_format), cls)

    def test_sink_receives_finished_output(self, sample_record, text_options):
        received = []
        output = export_record(sample_record, text_options, sink=received.append)
        assert received == [output]
        assert output.content.decode("utf-8") == EXPECTED_TEXT

    def test_sink_not_called_on_failure(self, sample_record, monkeypatch):
        def _fail(*args, **kwargs):
            raise SurfaceUnavailableError("no surface")

        monkeypatch.setattr(image_module, "acquire_surface", _fail)
        received = []
        with pytest.raises(SurfaceUnavailableError):
            export_record(sample_record, ExportOptions(format=ExportFormat.PNG), sink=received.append)
        assert received == []


class TestExportFormat:

    @pytest.mark.parametrize("name,expected", [
        ("png", ExportFormat.PNG),
        ("image-png", ExportFormat.PNG),
        ("image-jpeg", ExportFormat.JPEG),
        ("JPG", ExportFormat.JPEG),
        ("text", ExportFormat.TXT),
        ("json", ExportFormat.JSON),
    ])
    def test_parse_aliases(self, name, expected):
        assert ExportFormat.parse(name) is expected

    def test_unknown_format(self):
        with pytest.raises(UnsupportedFormatError):
            ExportFormat.parse("gif")
