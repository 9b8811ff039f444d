"""
Module: builder

Purpose:
    Image-to-document building pipeline. Resolves settings, normalizes
    each image (rotation, resolution cap, JPEG quality), lays it out on
    its page and drives a document backend page by page.

Key Functions:
    - resolve_settings(): Raw user settings -> PageSettings
    - build_document(): Main entry point for a one-shot run

Key Classes:
    - PageAssembler: Run orchestrator with progress and cancellation
    - PageSettings / RawSettings: Configuration
    - ImageCollection: Ordered upload list
    - ReportLabPageSink: PDF backend

Dependencies:
    - PIL: Image manipulation
    - reportlab: PDF generation

Used By:
    - pagecraft.cli
"""

from .config import (
    FitMode,
    Orientation,
    PAGE_SIZES_MM,
    PageSettings,
    RawSettings,
    load_raw_settings,
    resolve_settings,
)
from .errors import (
    AlreadyRunningError,
    DecodeError,
    DuplicateImageError,
    EmptyInputError,
    InvalidConfigError,
    PageCraftError,
    ProcessingError,
    SinkError,
    UnsupportedImageError,
)
from .images import ImageCollection, IntakeReport, transform_image
from .layout import solve_placement
from .output import PageSink, ReportLabPageSink, save_document
from .controller import (
    PageAssembler,
    RunProgress,
    RunResult,
    RunState,
    build_document,
)

__all__ = [
    # Config
    "FitMode",
    "Orientation",
    "PAGE_SIZES_MM",
    "PageSettings",
    "RawSettings",
    "load_raw_settings",
    "resolve_settings",
    # Errors
    "AlreadyRunningError",
    "DecodeError",
    "DuplicateImageError",
    "EmptyInputError",
    "InvalidConfigError",
    "PageCraftError",
    "ProcessingError",
    "SinkError",
    "UnsupportedImageError",
    # Images
    "ImageCollection",
    "IntakeReport",
    "transform_image",
    # Layout
    "solve_placement",
    # Output
    "PageSink",
    "ReportLabPageSink",
    "save_document",
    # Controller
    "PageAssembler",
    "RunProgress",
    "RunResult",
    "RunState",
    "build_document",
]
