"""
Tests for the ReportLab PDF sink.

Uses pypdf to inspect generated PDFs.

Test Coverage:
- ReportLabPageSink: page count, page size, call ordering errors
- save_document(): writing bytes to disk
"""

import io

import pytest

from pagecraft.builder.config import Orientation
from pagecraft.builder.errors import SinkError
from pagecraft.builder.images.transform import transform_image
from pagecraft.builder.output import ReportLabPageSink, save_document
from pagecraft.builder.output.sink import ALIGN_RIGHT
from pagecraft.core.models import PlacementRect

# Try to import pypdf for PDF inspection
try:
    from pypdf import PdfReader
    PYPDF_AVAILABLE = True
except ImportError:
    PYPDF_AVAILABLE = False


# A4 dimensions in points (1/72 inch)
A4_WIDTH_PT = 595.276  # 210mm
A4_HEIGHT_PT = 841.890  # 297mm
TOLERANCE_PT = 1.0


@pytest.fixture
def raster(image_factory):
    return transform_image(image_factory(200, 100))


def _render(raster, pages: int, *, page_size=(210.0, 297.0), numbers: bool = False, title=None) -> bytes:
    sink = ReportLabPageSink(title=title)
    sink.begin_document(page_size, Orientation.PORTRAIT, "mm")
    placement = PlacementRect(x=10.0, y=101.0, width=190.0, height=95.0)
    for i in range(pages):
        sink.add_page(raster, placement, i, pages)
        if numbers:
            sink.annotate_text(f"{i + 1} / {pages}", page_size[0] - 10, page_size[1] - 10, ALIGN_RIGHT)
    return sink.finalize()


class TestReportLabPageSink:

    def test_finalize_when_pages_added_then_pdf_bytes(self, raster):
        data = _render(raster, 2)
        assert data.startswith(b"%PDF")

    def test_page_count_when_pages_added_then_tracked(self, raster):
        sink = ReportLabPageSink()
        sink.begin_document((210.0, 297.0), Orientation.PORTRAIT, "mm")
        placement = PlacementRect(0.0, 0.0, 10.0, 10.0)
        sink.add_page(raster, placement, 0, 2)
        sink.add_page(raster, placement, 1, 2)
        assert sink.page_count == 2

    def test_add_page_when_no_document_then_raises_sink_error(self, raster):
        with pytest.raises(SinkError, match="begin_document"):
            ReportLabPageSink().add_page(raster, PlacementRect(0.0, 0.0, 1.0, 1.0), 0, 1)

    def test_annotate_when_no_page_then_raises_sink_error(self):
        sink = ReportLabPageSink()
        sink.begin_document((210.0, 297.0), Orientation.PORTRAIT, "mm")
        with pytest.raises(SinkError, match="before any page"):
            sink.annotate_text("1 / 1", 200, 287, ALIGN_RIGHT)

    def test_begin_when_unknown_unit_then_raises_sink_error(self):
        with pytest.raises(SinkError, match="Unsupported unit"):
            ReportLabPageSink().begin_document((8.5, 11.0), Orientation.PORTRAIT, "furlong")

    def test_add_page_when_raster_bytes_invalid_then_raises_sink_error_with_index(self, raster):
        from dataclasses import replace

        broken = replace(raster, data=b"not a jpeg")
        sink = ReportLabPageSink()
        sink.begin_document((210.0, 297.0), Orientation.PORTRAIT, "mm")

        with pytest.raises(SinkError) as exc:
            sink.add_page(broken, PlacementRect(0.0, 0.0, 10.0, 10.0), 3, 5)
        assert exc.value.page_index == 3

    def test_finalize_when_called_then_sink_can_start_a_new_document(self, raster):
        sink = ReportLabPageSink()
        sink.begin_document((210.0, 297.0), Orientation.PORTRAIT, "mm")
        sink.add_page(raster, PlacementRect(0.0, 0.0, 10.0, 10.0), 0, 1)
        sink.finalize()

        with pytest.raises(SinkError):
            sink.finalize()


@pytest.mark.skipif(not PYPDF_AVAILABLE, reason="pypdf not installed")
class TestRenderedPdf:
    """Inspect the rendered PDF structure."""

    def test_pdf_when_three_pages_then_reader_sees_three(self, raster):
        reader = PdfReader(io.BytesIO(_render(raster, 3, numbers=True)))
        assert len(reader.pages) == 3

    def test_pdf_when_a4_then_mediabox_is_a4_points(self, raster):
        page = PdfReader(io.BytesIO(_render(raster, 1))).pages[0]

        assert abs(float(page.mediabox.width) - A4_WIDTH_PT) < TOLERANCE_PT
        assert abs(float(page.mediabox.height) - A4_HEIGHT_PT) < TOLERANCE_PT

    def test_pdf_when_landscape_size_then_mediabox_wider_than_tall(self, raster):
        page = PdfReader(io.BytesIO(_render(raster, 1, page_size=(297.0, 210.0)))).pages[0]
        assert float(page.mediabox.width) > float(page.mediabox.height)

    def test_pdf_when_page_numbers_then_text_extractable(self, raster):
        reader = PdfReader(io.BytesIO(_render(raster, 2, numbers=True)))
        assert "2 / 2" in reader.pages[1].extract_text()

    def test_pdf_when_title_then_in_metadata(self, raster):
        reader = PdfReader(io.BytesIO(_render(raster, 1, title="Receipts")))
        assert reader.metadata.title == "Receipts"


class TestSaveDocument:

    def test_save_when_nested_path_then_parents_created(self, tmp_path):
        target = tmp_path / "out" / "nested" / "doc.pdf"

        result = save_document(b"%PDF-1.4 test", target)

        assert result == target
        assert target.read_bytes() == b"%PDF-1.4 test"

    def test_save_when_parent_is_a_file_then_raises_sink_error(self, tmp_path):
        blocker = tmp_path / "blocker"
        blocker.write_text("x")
        with pytest.raises(SinkError, match="Cannot write"):
            save_document(b"data", blocker / "doc.pdf")
