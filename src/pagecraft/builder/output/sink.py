"""
Module: builder.output.sink

Purpose:
    Abstract interface for the document backend. The page assembler
    only sequences calls on a PageSink; it never inspects the bytes a
    sink produces.

Key Classes:
    - PageSink: Abstract base class for document backends

Used By:
    - builder.controller: PageAssembler
    - builder.output.renderer: ReportLabPageSink
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Tuple

from pagecraft.core.models import PlacementRect, ResampledRaster

from ..config import Orientation

ALIGN_LEFT = "left"
ALIGN_CENTER = "center"
ALIGN_RIGHT = "right"


class PageSink(ABC):
    """
    Document backend receiving pages in order.

    Call sequence for one document:
        begin_document, then per page add_page (optionally followed by
        annotate_text for that page), then finalize once.
    """

    @abstractmethod
    def begin_document(
        self,
        page_size: Tuple[float, float],
        orientation: Orientation,
        unit: str,
    ) -> None:
        """
        Start a new document.

        Args:
            page_size: (width, height) with orientation already applied
            orientation: Page orientation
            unit: Unit of every coordinate passed afterwards
        """

    @abstractmethod
    def add_page(
        self,
        raster: ResampledRaster,
        placement: PlacementRect,
        page_index: int,
        page_count: int,
    ) -> None:
        """
        Append a page holding raster at placement.

        Args:
            raster: JPEG raster for this page
            placement: Rectangle in page units, top-left origin
            page_index: 0-based index of this page
            page_count: Total pages in the document
        """

    @abstractmethod
    def annotate_text(self, text: str, x: float, y: float, align: str = ALIGN_LEFT) -> None:
        """
        Draw text on the most recently added page.

        Args:
            text: Text to draw
            x: Anchor x in page units (left, centre or right edge per align)
            y: Baseline y in page units from the top of the page
            align: "left", "center" or "right"
        """

    @abstractmethod
    def finalize(self) -> bytes:
        """Close the document and return its bytes."""
