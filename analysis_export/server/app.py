"""FastAPI application exposing export and history routes.

WHY: The web front end (and curl, scripts, other tools) needs an HTTP way
to save analyses, list them, fetch ruby segments for rendering, and
download exports. FastAPI gives request validation and OpenAPI docs.

HOW: One app with three route groups (exports, history, meta). Export
routes build an AnalysisRecord (from the body or the history store), run
export_record() and return the bytes as an attachment. The history store
is injected via a dependency so tests can swap it. Handlers that render
images or touch the history file are plain functions, which FastAPI runs
in its threadpool instead of on the event loop.

RULES:
- Every error response uses the ErrorResponse schema
- Invalid records or formats → 400, unknown record IDs → 404,
  drawing-surface failures → 503
- Downloads carry Content-Disposition with japanese_analysis_{id}.{ext}
"""

from __future__ import annotations

import logging
from typing import Annotated, List

from fastapi import Depends, FastAPI, HTTPException, Query
from fastapi.responses import Response

from analysis_export import __version__
from analysis_export.core.furigana import ruby_segments
from analysis_export.core.ir import AnalysisRecord, ExportFormat, ExportOptions, Token, tokens_from_dicts
from analysis_export.core.pos import classify
from analysis_export.exceptions import InvalidRecordError, SurfaceUnavailableError, UnsupportedFormatError
from analysis_export.exporters import EXPORTERS, ExportOutput, export_record
from analysis_export.history import HistoryStore, records_to_dicts
from analysis_export.server.models import (
    ErrorResponse,
    ExportRequest,
    FormatInfo,
    HealthResponse,
    RubyResponse,
    RubySegmentModel,
    RubyTokenModel,
    SaveAnalysisRequest,
    TokenPayload,
)

logger = logging.getLogger(__name__)

app = FastAPI(
    title="Japanese Analysis Export API",
    description=(
        "Save analyzed Japanese sentences, fetch ruby segments for display, "
        "and export analyses as PNG/JPEG cards, plain text, or JSON."
    ),
    version=__version__,
    docs_url="/docs",
    redoc_url="/redoc",
)

_history_store = None


def get_history_store() -> HistoryStore:
    """Dependency returning the process-wide history store."""
    global _history_store
    if _history_store is None:
        _history_store = HistoryStore()
    return _history_store


StoreDep = Annotated[HistoryStore, Depends(get_history_store)]


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _to_tokens(payloads: List[TokenPayload]) -> List[Token]:
    return list(tokens_from_dicts(payload.model_dump(exclude_none=True) for payload in payloads))


def _get_record_or_404(store: HistoryStore, record_id: str) -> AnalysisRecord:
    record = store.get(record_id)
    if record is None:
        raise HTTPException(status_code=404, detail="Record not found: {}".format(record_id))
    return record


def _run_export(record: AnalysisRecord, options: ExportOptions) -> Response:
    try:
        output: ExportOutput = export_record(record, options)
    except SurfaceUnavailableError as exc:
        logger.exception("Image export failed for record %s", record.id)
        raise HTTPException(status_code=503, detail=str(exc))
    return Response(
        content=output.content,
        media_type=output.media_type,
        headers={"Content-Disposition": 'attachment; filename="{}"'.format(output.filename)},
    )


def _ruby_token(token: Token) -> RubyTokenModel:
    if token.is_row_break:
        return RubyTokenModel(word=token.word, pos=token.pos, rowBreak=True)
    category = classify(token.pos)
    return RubyTokenModel(
        word=token.word,
        pos=token.pos,
        rowBreak=False,
        category=category.key,
        label=category.label,
        cssClass=category.css_class,
        color=category.color,
        romaji=token.romaji,
        segments=[
            RubySegmentModel(base=segment.base, ruby=segment.ruby)
            for segment in ruby_segments(token)
        ],
    )


# ---------------------------------------------------------------------------
# Endpoints: Exports
# ---------------------------------------------------------------------------


@app.post(
    "/exports",
    tags=["exports"],
    summary="Export an analysis supplied in the request body",
    responses={
        400: {"model": ErrorResponse, "description": "Invalid record or format"},
        503: {"model": ErrorResponse, "description": "Drawing surface unavailable"},
    },
)
def create_export(request: ExportRequest) -> Response:
    try:
        record = AnalysisRecord.from_dict(request.record.to_record_dict())
    except InvalidRecordError as exc:
        raise HTTPException(status_code=400, detail=str(exc))
    try:
        options = ExportOptions.from_dict(request.options.model_dump())
    except UnsupportedFormatError as exc:
        raise HTTPException(status_code=400, detail=str(exc))
    return _run_export(record, options)


# ---------------------------------------------------------------------------
# Endpoints: History
# ---------------------------------------------------------------------------


@app.get("/history", tags=["history"], summary="List saved analyses, newest first")
def list_history(
    store: StoreDep,
    q: Annotated[str, Query(description="Optional case-insensitive search text.")] = "",
) -> List[dict]:
    records = store.search(q) if q else store.list_records()
    return records_to_dicts(records)


@app.post(
    "/history",
    status_code=201,
    tags=["history"],
    summary="Save a new analysis",
    responses={400: {"model": ErrorResponse, "description": "Invalid tokens"}},
)
def save_history(request: SaveAnalysisRequest, store: StoreDep) -> dict:
    try:
        tokens = _to_tokens(request.tokens)
    except InvalidRecordError as exc:
        raise HTTPException(status_code=400, detail=str(exc))
    record = store.save(
        request.sentence,
        tokens,
        translation=request.translation,
        audio_ref=request.audioRef,
    )
    return record.to_dict()


@app.get(
    "/history/{record_id}",
    tags=["history"],
    summary="Get one saved analysis",
    responses={404: {"model": ErrorResponse, "description": "Record not found"}},
)
def get_history(record_id: str, store: StoreDep) -> dict:
    return _get_record_or_404(store, record_id).to_dict()


@app.delete(
    "/history/{record_id}",
    status_code=204,
    tags=["history"],
    summary="Delete a saved analysis",
    responses={404: {"model": ErrorResponse, "description": "Record not found"}},
)
def delete_history(record_id: str, store: StoreDep) -> Response:
    if not store.delete(record_id):
        raise HTTPException(status_code=404, detail="Record not found: {}".format(record_id))
    return Response(status_code=204)


@app.get(
    "/history/{record_id}/export",
    tags=["history", "exports"],
    summary="Export a saved analysis",
    responses={
        400: {"model": ErrorResponse, "description": "Unknown format"},
        404: {"model": ErrorResponse, "description": "Record not found"},
        503: {"model": ErrorResponse, "description": "Drawing surface unavailable"},
    },
)
def export_history(
    record_id: str,
    store: StoreDep,
    format: Annotated[str, Query(description="Output format: png, jpeg, txt or json.")] = "png",
    include_translation: Annotated[bool, Query(description="Include the translation block.")] = True,
    include_audio: Annotated[bool, Query(description="Accepted for compatibility.")] = False,
) -> Response:
    record = _get_record_or_404(store, record_id)
    try:
        options = ExportOptions(
            format=ExportFormat.parse(format),
            include_audio=include_audio,
            include_translation=include_translation,
        )
    except UnsupportedFormatError as exc:
        raise HTTPException(status_code=400, detail=str(exc))
    return _run_export(record, options)


@app.get(
    "/history/{record_id}/ruby",
    response_model=RubyResponse,
    tags=["history"],
    summary="Tokens with ruby segments and category styling",
    responses={404: {"model": ErrorResponse, "description": "Record not found"}},
)
def get_ruby(record_id: str, store: StoreDep) -> RubyResponse:
    record = _get_record_or_404(store, record_id)
    return RubyResponse(
        id=record.id,
        sentence=record.sentence,
        tokens=[_ruby_token(token) for token in record.tokens],
    )


# ---------------------------------------------------------------------------
# Endpoints: Meta
# ---------------------------------------------------------------------------


@app.get("/formats", response_model=List[FormatInfo], tags=["meta"], summary="List export formats")
async def list_formats() -> List[FormatInfo]:
    return [
        FormatInfo(
            key=export_format.value,
            name=EXPORTERS[export_format]().name,
            extension=export_format.extension,
            media_type=export_format.media_type,
        )
        for export_format in ExportFormat
    ]


@app.get("/health", response_model=HealthResponse, tags=["meta"], summary="Health check")
async def health_check() -> HealthResponse:
    return HealthResponse(status="ok", version=__version__)


def run_api(host: str = "127.0.0.1", port: int = 8000) -> None:
    """Serve the API with uvicorn."""
    import uvicorn
    uvicorn.run(app, host=host, port=port)
