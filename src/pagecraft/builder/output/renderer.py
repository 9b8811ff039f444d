"""
Module: builder.output.renderer

Purpose:
    PageSink implementation writing PDF with ReportLab. Each add_page
    starts a new PDF page and draws the JPEG raster at its placement;
    coordinates arrive in page units with a top-left origin and are
    converted to PDF points with a bottom-left origin.

Key Classes:
    - ReportLabPageSink: In-memory PDF backend

Key Functions:
    - save_document(): Write finalized bytes to disk

Dependencies:
    - reportlab: PDF generation

Used By:
    - cli: Default sink
"""

from __future__ import annotations

import io
import logging
from pathlib import Path
from typing import Optional, Tuple

from reportlab.lib.units import cm, inch, mm
from reportlab.lib.utils import ImageReader
from reportlab.pdfgen import canvas

from pagecraft.core.models import PlacementRect, ResampledRaster

from ..config import Orientation
from ..errors import SinkError
from .sink import ALIGN_CENTER, ALIGN_LEFT, ALIGN_RIGHT, PageSink

logger = logging.getLogger(__name__)

# Constants
PAGE_NUMBER_FONT = "Helvetica"
PAGE_NUMBER_FONT_SIZE = 10
UNIT_TO_POINTS = {
    "mm": mm,
    "cm": cm,
    "in": inch,
    "pt": 1.0,
}


def _get_creator() -> str:
    """Creator string with the current version number."""
    try:
        from pagecraft import __version__
        version = __version__
    except ImportError:
        version = "unknown"
    return f"pagecraft v{version}"


class ReportLabPageSink(PageSink):
    """
    Render pages into an in-memory PDF.

    Example:
        >>> sink = ReportLabPageSink(title="Scans")
        >>> sink.begin_document((210, 297), Orientation.PORTRAIT, "mm")
        >>> sink.add_page(raster, placement, 0, 1)
        >>> pdf_bytes = sink.finalize()
    """

    def __init__(self, *, title: Optional[str] = None) -> None:
        self._title = title
        self._buffer: Optional[io.BytesIO] = None
        self._canvas: Optional[canvas.Canvas] = None
        self._page_open = False
        self._page_count = 0
        self._scale = 1.0
        self._page_height_pt = 0.0

    @property
    def page_count(self) -> int:
        """Pages added so far."""
        return self._page_count

    def begin_document(
        self,
        page_size: Tuple[float, float],
        orientation: Orientation,
        unit: str,
    ) -> None:
        if unit not in UNIT_TO_POINTS:
            raise SinkError(f"Unsupported unit {unit!r}; expected one of {', '.join(UNIT_TO_POINTS)}")

        self._scale = UNIT_TO_POINTS[unit]
        width_pt = page_size[0] * self._scale
        height_pt = page_size[1] * self._scale
        self._page_height_pt = height_pt

        self._buffer = io.BytesIO()
        self._canvas = canvas.Canvas(self._buffer, pagesize=(width_pt, height_pt))
        self._canvas.setCreator(_get_creator())
        if self._title:
            self._canvas.setTitle(self._title)
        self._page_open = False
        self._page_count = 0

        logger.debug(
            f"Began {orientation.value} document {page_size[0]}x{page_size[1]}{unit} "
            f"({width_pt:.1f}x{height_pt:.1f}pt)"
        )

    def add_page(
        self,
        raster: ResampledRaster,
        placement: PlacementRect,
        page_index: int,
        page_count: int,
    ) -> None:
        c = self._require_canvas()
        if self._page_open:
            c.showPage()

        try:
            c.drawImage(
                ImageReader(io.BytesIO(raster.data)),
                placement.x * self._scale,
                self._transform_y(placement.y, placement.height),
                width=placement.width * self._scale,
                height=placement.height * self._scale,
            )
        except Exception as e:
            raise SinkError(f"Failed to draw page {page_index + 1}: {e}", page_index=page_index) from e

        self._page_open = True
        self._page_count += 1

    def annotate_text(self, text: str, x: float, y: float, align: str = ALIGN_LEFT) -> None:
        c = self._require_canvas()
        if not self._page_open:
            raise SinkError("annotate_text called before any page was added")

        x_pt = x * self._scale
        y_pt = self._transform_y(y, 0.0)

        c.saveState()
        c.setFont(PAGE_NUMBER_FONT, PAGE_NUMBER_FONT_SIZE)
        if align == ALIGN_RIGHT:
            c.drawRightString(x_pt, y_pt, text)
        elif align == ALIGN_CENTER:
            c.drawCentredString(x_pt, y_pt, text)
        else:
            c.drawString(x_pt, y_pt, text)
        c.restoreState()

    def finalize(self) -> bytes:
        c = self._require_canvas()
        if self._page_open:
            c.showPage()
        try:
            c.save()
        except Exception as e:
            raise SinkError(f"Failed to write PDF: {e}") from e

        data = self._buffer.getvalue()
        logger.debug(f"Finalized PDF: {self._page_count} pages, {len(data)} bytes")

        self._canvas = None
        self._buffer = None
        self._page_open = False
        return data

    def _require_canvas(self) -> canvas.Canvas:
        if self._canvas is None:
            raise SinkError("No open document; call begin_document() first")
        return self._canvas

    def _transform_y(self, y_top: float, height: float) -> float:
        """
        Convert a top-down y in page units to bottom-up PDF points.

        Args:
            y_top: Distance of the element's top edge from the page top
            height: Element height in page units

        Returns:
            Y of the element's bottom edge from the page bottom, in points
        """
        return self._page_height_pt - (y_top + height) * self._scale


def save_document(data: bytes, output_path: Path) -> Path:
    """
    Write finalized document bytes, creating parent directories.

    Raises:
        SinkError: If the file cannot be written
    """
    output_path = Path(output_path)
    try:
        output_path.parent.mkdir(parents=True, exist_ok=True)
        output_path.write_bytes(data)
    except OSError as e:
        raise SinkError(f"Cannot write {output_path}: {e}") from e
    logger.info(f"Wrote {len(data)} bytes to {output_path}")
    return output_path
