"""JSON export: the record verbatim plus an export timestamp.

WHY: The JSON export is the only format that can be loaded back into the
app, so it must carry the record exactly as stored. Validating it against
a schema before handing it out catches drift between the data model and
what other tools expect.

HOW: Serialize AnalysisRecord.to_dict(), add "exportedAt", dump with
2-space indentation (non-ASCII kept readable), then validate the payload
against schemas/analysis_export.schema.json with jsonschema.

RULES:
- Every record field is present under its camelCase key
- createdAt / updatedAt / exportedAt are ISO-8601 UTC with milliseconds
- json.loads(output) minus "exportedAt" == record.to_dict()
- Serialization errors (TypeError) and schema violations
  (jsonschema.ValidationError) propagate unchanged
"""

from __future__ import annotations

import json
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, Optional

import jsonschema

from analysis_export.core.ir import (
    AnalysisRecord,
    ExportFormat,
    ExportOptions,
    export_filename,
    format_timestamp,
)
from analysis_export.exporters.base import BaseExporter, ExportOutput

_SCHEMA_PATH = Path(__file__).resolve().parent.parent / "schemas" / "analysis_export.schema.json"

_CACHED_SCHEMA: Optional[Dict[str, Any]] = None


def get_schema() -> Dict[str, Any]:
    """Load and cache the export JSON schema."""
    global _CACHED_SCHEMA
    if _CACHED_SCHEMA is None:
        with open(_SCHEMA_PATH, encoding="utf-8") as f:
            _CACHED_SCHEMA = json.load(f)
    return _CACHED_SCHEMA


def export_as_json(record: AnalysisRecord, now: Optional[datetime] = None) -> bytes:
    """Serialize ``record`` as a JSON export document.

    Args:
        record: The analysis to export.
        now: Export time; defaults to the current UTC time.

    Returns:
        UTF-8 encoded JSON.

    Raises:
        jsonschema.ValidationError: If the payload does not match the
            export schema (e.g. a non-string translation).
    """
    payload = record.to_dict()
    payload["exportedAt"] = format_timestamp(now or datetime.now(timezone.utc))

    content = json.dumps(payload, indent=2, ensure_ascii=False)
    jsonschema.validate(instance=payload, schema=get_schema())
    return content.encode("utf-8")


class JsonExporter(BaseExporter):
    """Exporter producing the round-trippable JSON document."""

    @property
    def name(self) -> str:
        return "JSON"

    def export(self, record: AnalysisRecord, options: ExportOptions) -> ExportOutput:
        return ExportOutput(
            filename=export_filename(record.id, ExportFormat.JSON),
            content=export_as_json(record),
            media_type=ExportFormat.JSON.media_type,
        )
