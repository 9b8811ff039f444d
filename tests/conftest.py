import io
import sys
from pathlib import Path
from typing import List, Optional, Tuple

import pytest
from PIL import Image

# Add src to sys.path so we can import pagecraft
SRC_PATH = Path(__file__).resolve().parent.parent / "src"
if SRC_PATH.as_posix() not in sys.path:
    sys.path.insert(0, SRC_PATH.as_posix())

from pagecraft.builder.config import Orientation, PageSettings
from pagecraft.builder.output.sink import PageSink
from pagecraft.core.models import PlacementRect, ResampledRaster, SourceImage


def encode_image(
    width: int,
    height: int,
    fmt: str = "PNG",
    *,
    mode: str = "RGB",
    color=(200, 30, 30),
) -> bytes:
    """Encode a solid image to bytes in the given format."""
    img = Image.new(mode, (width, height), color=color)
    buf = io.BytesIO()
    img.save(buf, format=fmt)
    return buf.getvalue()


class RecordingSink(PageSink):
    """PageSink that records every call in order."""

    def __init__(self, fail_on_page: Optional[int] = None) -> None:
        self.calls: List[Tuple] = []
        self.fail_on_page = fail_on_page

    def begin_document(self, page_size, orientation, unit) -> None:
        self.calls.append(("begin_document", page_size, orientation, unit))

    def add_page(self, raster: ResampledRaster, placement: PlacementRect, page_index: int, page_count: int) -> None:
        if page_index == self.fail_on_page:
            raise RuntimeError("disk full")
        self.calls.append(("add_page", raster, placement, page_index, page_count))

    def annotate_text(self, text: str, x: float, y: float, align: str = "left") -> None:
        self.calls.append(("annotate_text", text, x, y, align))

    def finalize(self) -> bytes:
        self.calls.append(("finalize",))
        return b"%PDF-recorded"

    def names(self) -> List[str]:
        return [call[0] for call in self.calls]

    def pages(self) -> List[Tuple]:
        return [call for call in self.calls if call[0] == "add_page"]


# Common test fixtures
@pytest.fixture
def image_factory():
    """Factory creating SourceImages backed by real encoded pixels."""
    def _create(
        width: int = 200,
        height: int = 100,
        *,
        name: Optional[str] = None,
        fmt: str = "PNG",
        rotation: int = 0,
    ) -> SourceImage:
        data = encode_image(width, height, fmt)
        mime = {"PNG": "image/png", "JPEG": "image/jpeg", "WEBP": "image/webp"}[fmt]
        return SourceImage.from_bytes(name or f"img_{width}x{height}.{fmt.lower()}", data, mime, rotation=rotation)
    return _create


@pytest.fixture
def corrupt_image():
    """SourceImage whose bytes are not an image."""
    return SourceImage.from_bytes("broken.png", b"not really a png", "image/png")


@pytest.fixture
def recording_sink():
    return RecordingSink()


@pytest.fixture
def failing_sink_factory():
    return RecordingSink


@pytest.fixture
def a4_settings():
    """A4 portrait, 10mm margin, fit mode, no page numbers."""
    return PageSettings(page_width=210.0, page_height=297.0, orientation=Orientation.PORTRAIT, margin=10.0)


@pytest.fixture
def sample_image(tmp_path: Path):
    """Create a simple test image file."""
    img = Image.new("RGB", (200, 100), color="white")
    img_path = tmp_path / "sample.png"
    img.save(img_path)
    return img_path
