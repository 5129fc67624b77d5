"""Exporter registry and export orchestration.

WHY: The CLI and the HTTP API only know the format the user picked. One
registry keyed by ExportFormat turns that choice into the right exporter,
and export_record() is the single entry point that runs it.

HOW: EXPORTERS maps every ExportFormat member to an exporter *class*.
export_record() instantiates it, runs it to completion, and only then
hands the output to the optional sink.

RULES:
- EXPORTERS covers every ExportFormat member (tested)
- Both image formats share ImageExporter; it reads options.format
- A sink never sees a partial artifact: if the exporter raises, the sink
  is not called
"""

from __future__ import annotations

import logging
from typing import Callable, Optional

from analysis_export.core.ir import AnalysisRecord, ExportFormat, ExportOptions
from analysis_export.exceptions import UnsupportedFormatError
from analysis_export.exporters.base import BaseExporter, ExportOutput
from analysis_export.exporters.image import ImageExporter
from analysis_export.exporters.json_document import JsonExporter
from analysis_export.exporters.plain_text import TextExporter

logger = logging.getLogger(__name__)

ExportSink = Callable[[ExportOutput], None]

EXPORTERS: dict[ExportFormat, type[BaseExporter]] = {
    ExportFormat.PNG: ImageExporter,
    ExportFormat.JPEG: ImageExporter,
    ExportFormat.TXT: TextExporter,
    ExportFormat.JSON: JsonExporter,
}


def get_exporter(export_format: ExportFormat) -> BaseExporter:
    """Instantiate the exporter registered for ``export_format``.

    Raises:
        UnsupportedFormatError: If no exporter is registered.
    """
    exporter_cls = EXPORTERS.get(export_format)
    if exporter_cls is None:
        raise UnsupportedFormatError("No exporter registered for '{}'".format(export_format))
    return exporter_cls()


def export_record(
    record: AnalysisRecord,
    options: ExportOptions,
    sink: Optional[ExportSink] = None,
) -> ExportOutput:
    """Export ``record`` in the format named by ``options``.

    Args:
        record: The analysis to export.
        options: Format and content switches.
        sink: Optional consumer (file writer, HTTP response builder) that
            receives the finished output.

    Returns:
        The finished ExportOutput.
    """
    exporter = get_exporter(options.format)
    output = exporter.export(record, options)
    logger.info("Exported record %s as %s (%d bytes)", record.id, options.format.value, len(output.content))
    if sink is not None:
        sink(output)
    return output


__all__ = [
    "EXPORTERS",
    "BaseExporter",
    "ExportOutput",
    "ExportSink",
    "export_record",
    "get_exporter",
]
