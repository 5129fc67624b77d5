"""Pydantic request/response models for the HTTP API.

WHY: The FastAPI endpoints need typed schemas for request validation,
response serialization, and OpenAPI documentation. Records travel in the
same camelCase layout as the history file and the JSON export, so a JSON
export can be posted back as-is.

HOW: Payload models mirror the serialized AnalysisRecord. Handlers convert
them with AnalysisRecord.from_dict() so there is one parsing path for
files, CLI input and HTTP bodies.

RULES:
- Field names are camelCase to match the serialized record
- Format names are resolved by ExportFormat.parse(), so unknown names
  surface as 400 responses rather than validation errors
- Response models never expose internal implementation details
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field


# ---------------------------------------------------------------------------
# Request models
# ---------------------------------------------------------------------------


class TokenPayload(BaseModel):
    """One analyzed word as produced by the analyzer."""

    word: str = Field(default="", description="Surface form (empty for row breaks).")
    pos: str = Field(description="Part-of-speech tag, optionally 'category-subtag'; '改行' is a row break.")
    furigana: Optional[str] = Field(default=None, description="Reading of the whole word.")
    romaji: Optional[str] = Field(default=None, description="Romanized reading.")


class RecordPayload(BaseModel):
    """A saved analysis in its serialized form."""

    id: str = Field(description="Record identifier.")
    sentence: str = Field(description="The analyzed Japanese sentence.")
    tokens: List[TokenPayload] = Field(description="Tokens in sentence order.")
    translation: Optional[str] = Field(default=None, description="Optional translation.")
    audioRef: Optional[str] = Field(default=None, description="Optional reference to recorded audio.")
    createdAt: str = Field(description="Creation time, ISO-8601.")
    updatedAt: str = Field(description="Last update time, ISO-8601.")

    def to_record_dict(self) -> Dict[str, Any]:
        return self.model_dump(exclude_none=True)


class OptionsPayload(BaseModel):
    """Export switches chosen by the user."""

    format: str = Field(
        default="png",
        description="Output format: png, jpeg, txt or json (aliases such as 'jpg' and 'text' are accepted).",
    )
    includeAudio: bool = Field(default=False, description="Accepted for compatibility; no format embeds audio.")
    includeTranslation: bool = Field(default=True, description="Include the translation block when present.")


class ExportRequest(BaseModel):
    """Body of POST /exports."""

    record: RecordPayload
    options: OptionsPayload = Field(default_factory=OptionsPayload)

    model_config = {"json_schema_extra": {
        "examples": [
            {
                "record": {
                    "id": "analysis_1714555800000_k3j9x0a1b",
                    "sentence": "私は食べる",
                    "tokens": [
                        {"word": "私", "pos": "代名詞", "furigana": "わたし", "romaji": "watashi"},
                        {"word": "は", "pos": "助詞", "romaji": "wa"},
                        {"word": "食べる", "pos": "動詞", "furigana": "たべる", "romaji": "taberu"},
                    ],
                    "translation": "I eat",
                    "createdAt": "2024-05-01T09:30:00.000Z",
                    "updatedAt": "2024-05-01T09:30:00.000Z",
                },
                "options": {"format": "png", "includeAudio": False, "includeTranslation": True},
            }
        ]
    }}


class SaveAnalysisRequest(BaseModel):
    """Body of POST /history."""

    sentence: str = Field(description="The analyzed Japanese sentence.")
    tokens: List[TokenPayload] = Field(description="Tokens in sentence order.")
    translation: Optional[str] = Field(default=None, description="Optional translation.")
    audioRef: Optional[str] = Field(default=None, description="Optional reference to recorded audio.")


# ---------------------------------------------------------------------------
# Response models
# ---------------------------------------------------------------------------


class RubySegmentModel(BaseModel):
    base: str = Field(description="Slice of the word.")
    ruby: Optional[str] = Field(default=None, description="Reading shown above the slice.")


class RubyTokenModel(BaseModel):
    """A token prepared for the interactive renderer."""

    word: str
    pos: str
    rowBreak: bool = Field(description="True for '改行' tokens; nothing else applies then.")
    category: Optional[str] = Field(default=None, description="Primary category key, e.g. '名詞'.")
    label: Optional[str] = Field(default=None, description="Display label, e.g. '名词'.")
    cssClass: Optional[str] = Field(default=None, description="Style class, e.g. 'pos-名詞'.")
    color: Optional[str] = Field(default=None, description="Chip color '#RRGGBB'.")
    romaji: Optional[str] = None
    segments: List[RubySegmentModel] = Field(default_factory=list)


class RubyResponse(BaseModel):
    id: str
    sentence: str
    tokens: List[RubyTokenModel]


class FormatInfo(BaseModel):
    """Description of an available export format."""

    key: str = Field(description="Format identifier used in requests.")
    name: str = Field(description="Human-readable format name.")
    extension: str = Field(description="File extension produced.")
    media_type: str = Field(description="MIME type of the produced file.")


class ErrorResponse(BaseModel):
    """Standard error response body."""

    detail: str = Field(description="Human-readable error description.")


class HealthResponse(BaseModel):
    status: str = Field(description="Service health status.", json_schema_extra={"example": "ok"})
    version: str = Field(description="API version string.", json_schema_extra={"example": "0.1.0"})
