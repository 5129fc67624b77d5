"""Image export: rasterize the layout onto a fixed-size card.

WHY: A picture of the analysis is the format people actually share. The
layout engine decides where everything goes; this module owns the drawing
surface and turns draw operations into PNG or JPEG bytes.

HOW: For each call a fresh Pillow image is created (the "surface"), a
FontBook provides fonts and the text measurer the layout needs, the draw
operations are painted in order, and the image is encoded in memory.

RULES:
- One new surface per export call; surfaces are never shared or reused
- Failure to create the surface raises SurfaceUnavailableError
- JPEG uses quality config.JPEG_QUALITY (0.9 → Pillow quality=90);
  PNG is lossless and ignores it
- Bold text is simulated with a 1px stroke on TrueType fonts only
- Nothing is returned unless encoding finished
"""

from __future__ import annotations

import io
import logging
from typing import Dict, List, Optional, Tuple, Union

from PIL import Image, ImageDraw, ImageFont

from analysis_export import config
from analysis_export.core.ir import AnalysisRecord, ExportFormat, ExportOptions, export_filename
from analysis_export.core.layout import DrawOp, DrawText, FillRect, LayoutConfig, layout
from analysis_export.exceptions import SurfaceUnavailableError, UnsupportedFormatError
from analysis_export.exporters.base import BaseExporter, ExportOutput

logger = logging.getLogger(__name__)

Font = Union[ImageFont.FreeTypeFont, ImageFont.ImageFont]

_PIL_FORMATS = {
    ExportFormat.PNG: "PNG",
    ExportFormat.JPEG: "JPEG",
}


class FontBook:
    """Lazily loaded fonts keyed by pixel size.

    WHY: Layout measures text and the rasterizer draws it; both must use the
    same font objects or chips will not fit their labels.

    HOW: The first request for a size loads the configured CJK font (or
    the first available candidate); without one, Pillow's default font is
    used at that size and a warning is logged once.
    """

    def __init__(self, font_path: Optional[str] = None) -> None:
        self._font_path = font_path if font_path is not None else config.find_font_path()
        self._fonts: Dict[int, Font] = {}
        if self._font_path is None:
            logger.warning("No CJK font found; falling back to Pillow's default font")

    def get(self, size: int) -> Font:
        font = self._fonts.get(size)
        if font is None:
            font = self._load(size)
            self._fonts[size] = font
        return font

    def _load(self, size: int) -> Font:
        if self._font_path is not None:
            try:
                return ImageFont.truetype(self._font_path, size)
            except OSError:
                logger.warning("Could not load font %s; using default font", self._font_path)
                self._font_path = None
        return ImageFont.load_default(size=size)

    def measure(self, text: str, size: int) -> float:
        """Rendered width of ``text`` at ``size`` pixels."""
        return self.get(size).getlength(text)


def acquire_surface(width: int, height: int, background: str) -> Image.Image:
    """Create a fresh RGB drawing surface.

    Raises:
        SurfaceUnavailableError: If Pillow cannot allocate the image.
    """
    try:
        return Image.new("RGB", (width, height), background)
    except (ValueError, MemoryError, OSError) as exc:
        logger.error("Could not create %dx%d drawing surface: %s", width, height, exc)
        raise SurfaceUnavailableError(
            "Could not create a {}x{} drawing surface".format(width, height)
        ) from exc


def _box(op: FillRect) -> Tuple[int, int, int, int]:
    left = int(round(op.x))
    top = int(round(op.y))
    return left, top, left + int(round(op.width)), top + int(round(op.height))


def render_ops(surface: Image.Image, ops: List[DrawOp], fonts: FontBook) -> None:
    """Paint draw operations onto ``surface`` in order."""
    draw = ImageDraw.Draw(surface)
    for op in ops:
        if isinstance(op, FillRect):
            draw.rectangle(_box(op), fill=op.color)
        elif isinstance(op, DrawText):
            font = fonts.get(op.size)
            position = (int(round(op.x)), int(round(op.y)))
            if op.bold and isinstance(font, ImageFont.FreeTypeFont):
                draw.text(position, op.text, font=font, fill=op.color,
                          stroke_width=1, stroke_fill=op.color)
            else:
                draw.text(position, op.text, font=font, fill=op.color)


def export_as_image(
    record: AnalysisRecord,
    options: ExportOptions,
    layout_config: Optional[LayoutConfig] = None,
    fonts: Optional[FontBook] = None,
) -> bytes:
    """Render ``record`` to PNG or JPEG bytes according to ``options.format``.

    Raises:
        UnsupportedFormatError: If ``options.format`` is not an image format.
        SurfaceUnavailableError: If the drawing surface cannot be created.
    """
    if not options.format.is_image:
        raise UnsupportedFormatError(
            "'{}' is not an image format".format(options.format.value)
        )

    pil_format = _PIL_FORMATS[options.format]
    cfg = layout_config or LayoutConfig()
    fonts = fonts or FontBook()
    surface = acquire_surface(cfg.width, cfg.height, config.BACKGROUND_COLOR)

    ops = layout(record, options, fonts.measure, cfg)
    render_ops(surface, ops, fonts)

    buffer = io.BytesIO()
    if pil_format == "JPEG":
        quality = int(round(config.JPEG_QUALITY * 100))
        surface.save(buffer, format=pil_format, quality=quality)
    else:
        surface.save(buffer, format=pil_format)
    logger.debug("Rendered %s for record %s (%d ops)", pil_format, record.id, len(ops))
    return buffer.getvalue()


class ImageExporter(BaseExporter):
    """Exporter producing the PNG or JPEG card."""

    def __init__(self, layout_config: Optional[LayoutConfig] = None) -> None:
        self._layout_config = layout_config

    @property
    def name(self) -> str:
        return "Image (PNG/JPEG)"

    def export(self, record: AnalysisRecord, options: ExportOptions) -> ExportOutput:
        content = export_as_image(record, options, self._layout_config)
        return ExportOutput(
            filename=export_filename(record.id, options.format),
            content=content,
            media_type=options.format.media_type,
        )
