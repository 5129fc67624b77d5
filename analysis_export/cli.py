"""Command-line interface for exporting saved analyses.

WHY: Exports are useful outside the browser too: batch-rendering cards
from a history file, re-rendering an old JSON export, or inspecting what
is stored. The CLI wires the history store and the exporters behind a
single command, and can also start the HTTP API.

HOW: argparse with four subcommands:
  export   : load a record (single-record JSON or a history file) and
             write japanese_analysis_{id}.{ext} to the output directory
  history  : list / show / delete / search the history file
  formats  : list export formats
  serve    : run the HTTP API with uvicorn
Status messages go to stderr; errors exit with status 1.

RULES:
- SOURCE may hold one record (e.g. a previous JSON export) or a list of
  records (a history file); --id picks one, default is the newest
- Output naming: japanese_analysis_{id}.{ext}, numeric suffix on conflict
  (japanese_analysis_{id}-2.png)
- Files are written only after the export fully succeeded
- Status output goes to stderr (not stdout)
"""

from __future__ import annotations

import argparse
import json
import logging
import os
import sys
from pathlib import Path
from typing import Any, List, Optional

from analysis_export import config
from analysis_export.core.ir import AnalysisRecord, ExportFormat, ExportOptions
from analysis_export.exceptions import AnalysisExportError
from analysis_export.exporters import EXPORTERS, ExportOutput, export_record
from analysis_export.history import HistoryStore


def _status(msg: str) -> None:
    """Print a status message to stderr so stdout stays pipeable."""
    print(msg, file=sys.stderr, flush=True)


def _fail(msg: str) -> None:
    print("Error: {}".format(msg), file=sys.stderr)
    sys.exit(1)


def _resolve_output_path(filename: str, output_dir: Path) -> Path:
    """Return a path in ``output_dir`` that does not exist yet.

    japanese_analysis_x.png → japanese_analysis_x-2.png → -3 ...
    """
    base_path = output_dir / filename
    if not base_path.exists():
        return base_path

    stem = base_path.stem
    suffix = base_path.suffix
    counter = 2
    while True:
        candidate = output_dir / "{}-{}{}".format(stem, counter, suffix)
        if not candidate.exists():
            return candidate
        counter += 1


class FileSink:
    """Export sink that writes finished outputs into a directory.

    Content goes to a ".part" file first and is renamed into place, so a
    failed write never leaves a truncated export behind.
    """

    def __init__(self, output_dir: Path) -> None:
        self.output_dir = output_dir
        self.saved: List[Path] = []

    def __call__(self, output: ExportOutput) -> None:
        path = _resolve_output_path(output.filename, self.output_dir)
        part_path = path.with_name(path.name + ".part")
        try:
            part_path.write_bytes(output.content)
            os.replace(part_path, path)
        finally:
            if part_path.exists():
                part_path.unlink()
        self.saved.append(path)


def load_record(source: Path, record_id: Optional[str] = None) -> AnalysisRecord:
    """Load one record from a single-record file or a history file.

    Raises:
        InvalidRecordError: On malformed content.
        LookupError: If ``record_id`` is not in the file, or it holds none.
    """
    data: Any = json.loads(source.read_text(encoding="utf-8"))
    if isinstance(data, dict):
        record = AnalysisRecord.from_dict(data)
        if record_id is not None and record.id != record_id:
            raise LookupError("Record {} not found in {}".format(record_id, source))
        return record

    records = [AnalysisRecord.from_dict(item) for item in data] if isinstance(data, list) else []
    if record_id is not None:
        for record in records:
            if record.id == record_id:
                return record
        raise LookupError("Record {} not found in {}".format(record_id, source))
    if not records:
        raise LookupError("No records found in {}".format(source))
    return max(records, key=lambda record: record.created_at)


def _describe(record: AnalysisRecord) -> str:
    return "{}  {}  {}".format(
        record.id,
        record.created_at.strftime("%Y-%m-%d %H:%M"),
        record.sentence,
    )


# ---------------------------------------------------------------------------
# Subcommands
# ---------------------------------------------------------------------------


def _cmd_export(args: argparse.Namespace) -> None:
    source = Path(args.source).resolve()
    if not source.is_file():
        _fail("File not found: {}".format(source))

    output_dir = Path(args.output_dir).resolve() if args.output_dir else Path.cwd()
    if not output_dir.is_dir():
        _fail("Output directory does not exist: {}".format(output_dir))

    try:
        export_format = ExportFormat.parse(args.format)
        record = load_record(source, args.id)
    except (ValueError, LookupError) as exc:
        _fail(str(exc))

    options = ExportOptions(
        format=export_format,
        include_audio=args.include_audio,
        include_translation=args.include_translation,
    )
    sink = FileSink(output_dir)
    _status("Exporting {} as {}...".format(record.id, export_format.value))
    try:
        export_record(record, options, sink=sink)
    except (AnalysisExportError, OSError) as exc:
        _fail(str(exc))

    for path in sink.saved:
        _status("Saved {}".format(path))


def _cmd_history(args: argparse.Namespace) -> None:
    store = HistoryStore(Path(args.history) if args.history else None)

    if args.action == "list":
        for record in store.list_records():
            print(_describe(record))
    elif args.action == "search":
        if not args.value:
            _fail("search needs a query")
        for record in store.search(args.value):
            print(_describe(record))
    elif args.action == "show":
        record = store.get(args.value or "")
        if record is None:
            _fail("Record not found: {}".format(args.value))
        print(json.dumps(record.to_dict(), indent=2, ensure_ascii=False))
    elif args.action == "delete":
        if not store.delete(args.value or ""):
            _fail("Record not found: {}".format(args.value))
        _status("Deleted {}".format(args.value))


def _cmd_formats(args: argparse.Namespace) -> None:
    for export_format in ExportFormat:
        exporter = EXPORTERS[export_format]()
        print("{:<6} {:<18} {}".format(export_format.value, exporter.name, export_format.media_type))


def _cmd_serve(args: argparse.Namespace) -> None:
    from analysis_export.server.app import run_api
    run_api(host=args.host, port=args.port)


def build_parser() -> argparse.ArgumentParser:
    """Build the argparse parser (separate from main() for testing)."""
    parser = argparse.ArgumentParser(
        prog="analysis-export",
        description="Export saved Japanese sentence analyses as images, text, or JSON.",
    )
    parser.add_argument(
        "--verbose", "-v",
        action="store_true",
        help="Enable debug logging.",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    export_parser = subparsers.add_parser("export", help="Export one analysis to a file.")
    export_parser.add_argument(
        "source",
        help="JSON file holding one record (e.g. a previous export) or a history list.",
    )
    export_parser.add_argument("--id", default=None, help="Record ID to export (default: newest).")
    export_parser.add_argument(
        "--format",
        default=ExportFormat.PNG.value,
        help="Output format: {} (default: %(default)s).".format(
            ", ".join(member.value for member in ExportFormat)
        ),
    )
    export_parser.add_argument(
        "--include-translation",
        action=argparse.BooleanOptionalAction,
        default=True,
        help="Include the translation block (default: %(default)s).",
    )
    export_parser.add_argument(
        "--include-audio",
        action="store_true",
        help="Accepted for compatibility; no format embeds audio.",
    )
    export_parser.add_argument(
        "--output-dir",
        default=None,
        help="Directory to save the export (default: current directory).",
    )
    export_parser.set_defaults(handler=_cmd_export)

    history_parser = subparsers.add_parser("history", help="Inspect the history file.")
    history_parser.add_argument("action", choices=["list", "show", "delete", "search"])
    history_parser.add_argument("value", nargs="?", default=None, help="Record ID or search query.")
    history_parser.add_argument(
        "--history",
        default=None,
        help="History file (default: {}).".format(config.HISTORY_PATH),
    )
    history_parser.set_defaults(handler=_cmd_history)

    formats_parser = subparsers.add_parser("formats", help="List export formats.")
    formats_parser.set_defaults(handler=_cmd_formats)

    serve_parser = subparsers.add_parser("serve", help="Run the HTTP API.")
    serve_parser.add_argument("--host", default="127.0.0.1")
    serve_parser.add_argument("--port", type=int, default=8000)
    serve_parser.set_defaults(handler=_cmd_serve)

    return parser


def main(argv: Optional[List[str]] = None) -> None:
    """Entry point for ``analysis-export`` and ``python -m analysis_export``.

    argv=None means use sys.argv; explicit argv is for testing.
    """
    parser = build_parser()
    args = parser.parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )
    args.handler(args)


if __name__ == "__main__":
    main()
