"""
Module: builder.errors

Purpose:
    Exception hierarchy for the build pipeline. Every error a run can
    raise derives from PageCraftError so callers can catch one type.

Key Classes:
    - DecodeError: Raster bytes could not be decoded
    - EmptyInputError: Run requested with no images
    - InvalidConfigError: Settings rejected by the resolver
    - AlreadyRunningError: Second run while one is in progress
    - ProcessingError: Page failure, carries the failing index and stage
    - SinkError: Document backend rejected a page or finalize

Used By:
    - builder.config, builder.images, builder.controller, builder.output
"""

from __future__ import annotations

from typing import Optional


class PageCraftError(Exception):
    """Base class for all pagecraft errors."""
    pass


class DecodeError(PageCraftError):
    """Encoded bytes could not be decoded as a raster image."""
    pass


class EmptyInputError(PageCraftError):
    """No images to process."""
    pass


class InvalidConfigError(PageCraftError, ValueError):
    """Settings resolution rejected a field."""

    def __init__(self, message: str, *, field: Optional[str] = None) -> None:
        super().__init__(message)
        self.field = field


class AlreadyRunningError(PageCraftError):
    """A run is already in progress on this assembler."""
    pass


class UnsupportedImageError(PageCraftError):
    """Upload mime type is not in the allow-list."""
    pass


class DuplicateImageError(PageCraftError):
    """Upload with the same filename and size already present."""
    pass


class ProcessingError(PageCraftError):
    """
    A single page failed and aborted the run.

    Attributes:
        failing_index: 0-based index of the image that failed
        stage: Pipeline stage that failed ("decode" or "layout")
    """

    def __init__(self, message: str, *, failing_index: int, stage: str) -> None:
        super().__init__(message)
        self.failing_index = failing_index
        self.stage = stage

    @property
    def page_number(self) -> int:
        """1-based page number for user-facing messages."""
        return self.failing_index + 1


class SinkError(PageCraftError):
    """
    The document backend failed to accept a page or to finalize.

    Attributes:
        page_index: 0-based page being written, or None for begin/finalize
    """

    stage = "sink"

    def __init__(self, message: str, *, page_index: Optional[int] = None) -> None:
        super().__init__(message)
        self.page_index = page_index
