"""Exception hierarchy for the analysis exporter.

WHY: Callers (CLI, HTTP API) need to tell "your input is wrong" apart from
"the machine could not give us a drawing surface". A small hierarchy under
one base class lets them catch either precisely or everything at once.

RULES:
- InvalidRecordError and UnsupportedFormatError are also ValueErrors
- SurfaceUnavailableError is the only failure mode of the export core
- Serialization errors on malformed input are NOT wrapped; they propagate
"""


class AnalysisExportError(Exception):
    """Base class for all errors raised by analysis_export."""


class InvalidRecordError(AnalysisExportError, ValueError):
    """Raised when an AnalysisRecord (or its serialized form) is malformed.

    Examples: missing required keys, unparsable timestamps, or
    ``created_at`` later than ``updated_at``.
    """


class UnsupportedFormatError(AnalysisExportError, ValueError):
    """Raised when an export format name is not one of the known formats."""


class SurfaceUnavailableError(AnalysisExportError):
    """Raised when a drawing surface for image export cannot be obtained."""


class HistoryStorageError(AnalysisExportError):
    """Raised when the history file cannot be written."""
