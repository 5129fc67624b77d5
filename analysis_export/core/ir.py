"""Data model for analyzed sentences and export requests.

WHY: The analyzer, the history store, the exporters and the HTTP API all
pass the same few shapes around: a tagged word, a saved analysis, and an
export request. Defining them once keeps every consumer honest about the
row-break sentinel, optional readings and timestamp handling.

HOW: Frozen dataclasses for Token, Segment and AnalysisRecord; a str Enum
for ExportFormat. Records convert to and from the camelCase dict layout used
by the history file and the JSON export.

RULES:
- A token whose pos is "改行" is a row break, not a word; check
  Token.is_row_break before using Token.word
- Timestamps are timezone-aware; naive datetimes are treated as UTC
- Record timestamps are held at millisecond precision
- from_dict() raises InvalidRecordError for any string field of the
  wrong type; optional ones may be null
- created_at <= updated_at, enforced at construction
- Serialized dicts omit absent optional fields (translation, audioRef,
  furigana, romaji)
- "audioUrl" is accepted on input as an alias of "audioRef"
"""

from __future__ import annotations

import enum
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Dict, Iterable, Optional, Tuple, Union

from analysis_export.exceptions import InvalidRecordError, UnsupportedFormatError

ROW_BREAK_POS = "改行"
"""Sentinel POS tag the analyzer emits to force a new row."""


# ---------------------------------------------------------------------------
# Timestamps
# ---------------------------------------------------------------------------


def _as_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def _to_millis(value: datetime) -> datetime:
    # Serialized timestamps carry milliseconds only
    return _as_utc(value).replace(microsecond=value.microsecond // 1000 * 1000)


def format_timestamp(value: datetime) -> str:
    """Render a datetime as ISO-8601 UTC with millisecond precision.

    Matches the browser's ``Date.toISOString()``, e.g.
    ``"2024-05-01T09:30:00.000Z"``, so exports written by either side
    compare equal.
    """
    text = _as_utc(value).isoformat(timespec="milliseconds")
    return text.replace("+00:00", "Z")


def parse_timestamp(value: Union[str, datetime]) -> datetime:
    """Parse an ISO-8601 string (or pass through a datetime) as aware UTC.

    Raises:
        InvalidRecordError: If the value is neither a datetime nor a
            parsable ISO-8601 string.
    """
    if isinstance(value, datetime):
        return _as_utc(value)
    if not isinstance(value, str):
        raise InvalidRecordError("Timestamp must be an ISO-8601 string, got {!r}".format(value))
    text = value.strip()
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    try:
        return _as_utc(datetime.fromisoformat(text))
    except ValueError:
        raise InvalidRecordError("Invalid ISO-8601 timestamp: {!r}".format(value))


# ---------------------------------------------------------------------------
# Tokens and segments
# ---------------------------------------------------------------------------


def _optional_str(data: Dict[str, Any], key: str, owner: str) -> Optional[str]:
    value = data.get(key)
    if value is not None and not isinstance(value, str):
        raise InvalidRecordError("{} field '{}' must be a string, got {!r}".format(owner, key, value))
    return value


def _required_str(data: Dict[str, Any], key: str, owner: str) -> str:
    value = data.get(key)
    if not isinstance(value, str):
        raise InvalidRecordError("{} field '{}' must be a string, got {!r}".format(owner, key, value))
    return value


@dataclass(frozen=True)
class Token:
    """One word unit produced by the external analyzer.

    RULES:
    - pos may carry a subtag after the first hyphen ("助動詞-バ")
    - furigana is the reading of the whole word, romaji its romanization
    - Row-break tokens (pos == "改行") may have an empty word
    """

    word: str
    pos: str
    furigana: Optional[str] = None
    romaji: Optional[str] = None

    @property
    def is_row_break(self) -> bool:
        return self.pos == ROW_BREAK_POS

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {"word": self.word, "pos": self.pos}
        if self.furigana is not None:
            data["furigana"] = self.furigana
        if self.romaji is not None:
            data["romaji"] = self.romaji
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Token":
        if not isinstance(data, dict):
            raise InvalidRecordError("Token must be an object, got {!r}".format(data))
        pos = data.get("pos")
        if not isinstance(pos, str):
            raise InvalidRecordError("Token is missing a string 'pos': {!r}".format(data))
        word = data.get("word", "" if pos == ROW_BREAK_POS else None)
        if not isinstance(word, str):
            raise InvalidRecordError("Token is missing a string 'word': {!r}".format(data))
        return cls(
            word=word,
            pos=pos,
            furigana=_optional_str(data, "furigana", "Token"),
            romaji=_optional_str(data, "romaji", "Token"),
        )


@dataclass(frozen=True)
class Segment:
    """A slice of a word, optionally glossed with a ruby reading."""

    base: str
    ruby: Optional[str] = None


# ---------------------------------------------------------------------------
# Analysis records
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class AnalysisRecord:
    """A saved analysis: the sentence, its tokens, and metadata.

    WHY: Every export starts from one of these. Freezing it guarantees
    that an exporter can never alter what the history store holds.

    RULES:
    - tokens is stored as a tuple, in analyzer order
    - created_at and updated_at are aware UTC datetimes
    - Timestamps are truncated to whole milliseconds, the precision they
      are serialized with
    - created_at <= updated_at or InvalidRecordError is raised
    """

    id: str
    sentence: str
    tokens: Tuple[Token, ...]
    created_at: datetime
    updated_at: datetime
    translation: Optional[str] = None
    audio_ref: Optional[str] = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "tokens", tuple(self.tokens))
        object.__setattr__(self, "created_at", _to_millis(self.created_at))
        object.__setattr__(self, "updated_at", _to_millis(self.updated_at))
        if self.created_at > self.updated_at:
            raise InvalidRecordError(
                "Record {} has createdAt after updatedAt".format(self.id)
            )

    def to_dict(self) -> Dict[str, Any]:
        """Serialize to the camelCase layout used on disk and in JSON exports."""
        data: Dict[str, Any] = {
            "id": self.id,
            "sentence": self.sentence,
            "tokens": [token.to_dict() for token in self.tokens],
        }
        if self.translation is not None:
            data["translation"] = self.translation
        if self.audio_ref is not None:
            data["audioRef"] = self.audio_ref
        data["createdAt"] = format_timestamp(self.created_at)
        data["updatedAt"] = format_timestamp(self.updated_at)
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "AnalysisRecord":
        """Build a record from its serialized form.

        Unknown keys (such as ``exportedAt`` on a JSON export) are ignored,
        so an exported document loads straight back into a record.

        Raises:
            InvalidRecordError: On missing keys, wrong types, or bad
                timestamps.
        """
        if not isinstance(data, dict):
            raise InvalidRecordError("Record must be an object, got {}".format(type(data).__name__))
        for key in ("id", "sentence", "tokens", "createdAt", "updatedAt"):
            if key not in data:
                raise InvalidRecordError("Record is missing required key '{}'".format(key))
        if not isinstance(data["tokens"], list):
            raise InvalidRecordError("Record 'tokens' must be a list")

        audio_key = "audioRef" if "audioRef" in data else "audioUrl"
        return cls(
            id=_required_str(data, "id", "Record"),
            sentence=_required_str(data, "sentence", "Record"),
            tokens=tuple(Token.from_dict(item) for item in data["tokens"]),
            created_at=parse_timestamp(data["createdAt"]),
            updated_at=parse_timestamp(data["updatedAt"]),
            translation=_optional_str(data, "translation", "Record"),
            audio_ref=_optional_str(data, audio_key, "Record"),
        )


def tokens_from_dicts(items: Iterable[Dict[str, Any]]) -> Tuple[Token, ...]:
    """Convert a list of serialized tokens, validating each one."""
    return tuple(Token.from_dict(item) for item in items)


# ---------------------------------------------------------------------------
# Export requests
# ---------------------------------------------------------------------------


class ExportFormat(str, enum.Enum):
    """The closed set of export formats.

    WHY: The format value drives both handler dispatch and the output file
    extension. An enum keeps the set closed so the exporter registry can be
    checked for exhaustiveness.

    HOW: Inherits from str so values serialize cleanly to JSON and compare
    equal to their extension strings.
    """

    PNG = "png"
    JPEG = "jpeg"
    TXT = "txt"
    JSON = "json"

    @property
    def extension(self) -> str:
        return self.value

    @property
    def media_type(self) -> str:
        return _MEDIA_TYPES[self]

    @property
    def is_image(self) -> bool:
        return self in (ExportFormat.PNG, ExportFormat.JPEG)

    @classmethod
    def parse(cls, value: Union[str, "ExportFormat"]) -> "ExportFormat":
        """Resolve a format name or alias ("image-png", "text", "jpg", ...).

        Raises:
            UnsupportedFormatError: For any other name.
        """
        if isinstance(value, ExportFormat):
            return value
        key = str(value).strip().lower()
        key = _FORMAT_ALIASES.get(key, key)
        try:
            return cls(key)
        except ValueError:
            available = ", ".join(member.value for member in cls)
            raise UnsupportedFormatError(
                "Unknown export format '{}'. Available: {}".format(value, available)
            )


_MEDIA_TYPES = {
    ExportFormat.PNG: "image/png",
    ExportFormat.JPEG: "image/jpeg",
    ExportFormat.TXT: "text/plain; charset=utf-8",
    ExportFormat.JSON: "application/json",
}

_FORMAT_ALIASES = {
    "image-png": "png",
    "image-jpeg": "jpeg",
    "image-jpg": "jpeg",
    "jpg": "jpeg",
    "text": "txt",
}


@dataclass(frozen=True)
class ExportOptions:
    """What the user asked for when pressing "export".

    include_audio is accepted for compatibility with saved UI settings;
    none of the current formats embed audio.
    """

    format: ExportFormat = ExportFormat.PNG
    include_audio: bool = False
    include_translation: bool = True

    def __post_init__(self) -> None:
        object.__setattr__(self, "format", ExportFormat.parse(self.format))

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ExportOptions":
        return cls(
            format=ExportFormat.parse(data.get("format", ExportFormat.PNG)),
            include_audio=bool(data.get("includeAudio", False)),
            include_translation=bool(data.get("includeTranslation", True)),
        )


def export_filename(record_id: str, export_format: ExportFormat) -> str:
    """File name for an exported record: ``japanese_analysis_{id}.{ext}``."""
    return "japanese_analysis_{}.{}".format(record_id, export_format.extension)
