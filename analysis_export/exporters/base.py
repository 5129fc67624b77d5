"""Abstract base exporter and output container.

WHY: Every export format consumes the same AnalysisRecord but produces
different bytes. A shared interface lets the CLI, the HTTP API and the
orchestrator treat all formats the same way.

HOW: BaseExporter is an ABC with a ``name`` property and an ``export()``
method. ExportOutput bundles the finished file name, its bytes and its MIME
type.

RULES:
- export() returns a complete ExportOutput or raises, never a partial one
- content is always bytes (text is UTF-8 encoded)
- filename follows japanese_analysis_{id}.{ext}
- Exporters never write files or talk to the network; sinks do that
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass

from analysis_export.core.ir import AnalysisRecord, ExportOptions


@dataclass(frozen=True)
class ExportOutput:
    """One finished export artifact.

    Attributes:
        filename: ``japanese_analysis_{id}.{ext}``.
        content: The file bytes.
        media_type: MIME type, e.g. ``"image/png"``.
    """

    filename: str
    content: bytes
    media_type: str


class BaseExporter(ABC):
    """Abstract base for all exporters.

    To add a new export format:
    1. Add a member to ExportFormat in core/ir.py
    2. Create a module in exporters/ with a BaseExporter subclass
    3. Register it in EXPORTERS in exporters/__init__.py
    """

    @property
    @abstractmethod
    def name(self) -> str:
        """Human-readable format name, e.g. 'Plain Text'."""

    @abstractmethod
    def export(self, record: AnalysisRecord, options: ExportOptions) -> ExportOutput:
        """Render ``record`` according to ``options``."""
