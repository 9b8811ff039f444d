"""
Module: builder.controller

Purpose:
    Orchestrate a document run: for each image in order,
    Transform → Layout → Sink (→ page number), then finalize.
    Owns the run state machine, progress reporting, cooperative
    cancellation and the reentrancy guard.

Key Classes:
    - PageAssembler: Stateful, single-owner run orchestrator
    - RunResult: Terminal outcome of a run
    - RunProgress: Progress update passed to callbacks
    - RunState: IDLE → RUNNING → COMPLETED | FAILED | CANCELLED

Key Functions:
    - build_document(): One-shot run with a ReportLab sink

Dependencies:
    - builder.images: transform_image
    - builder.layout: solve_placement
    - builder.output: PageSink, ReportLabPageSink
    - timing: Per-page phase timings

Used By:
    - cli
"""

from __future__ import annotations

import logging
import threading
import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Iterable, Optional, Sequence

from pagecraft.core.models import SourceImage
from pagecraft.timing import TimingLog, timed_phase

from .config import PageSettings
from .errors import (
    AlreadyRunningError,
    DecodeError,
    EmptyInputError,
    ProcessingError,
    SinkError,
)
from .images import DEFAULT_RESOLUTION_CAP, transform_image
from .layout import clamp_margin, solve_placement
from .output import ALIGN_RIGHT, PageSink, ReportLabPageSink

logger = logging.getLogger(__name__)

STAGE_DECODE = "decode"
STAGE_LAYOUT = "layout"
STAGE_SINK = "sink"


class RunState(str, Enum):
    IDLE = "idle"
    RUNNING = "running"
    COMPLETED = "completed"
    FAILED = "failed"
    CANCELLED = "cancelled"

    @property
    def is_terminal(self) -> bool:
        return self in (RunState.COMPLETED, RunState.FAILED, RunState.CANCELLED)


@dataclass(frozen=True)
class RunProgress:
    """
    Progress update emitted before each page and once after finalize.

    Attributes:
        page_index: Pages completed so far (0..page_count)
        page_count: Total pages in the run
    """
    page_index: int
    page_count: int

    @property
    def fraction(self) -> float:
        """Completed fraction in [0, 1]."""
        return self.page_index / self.page_count if self.page_count else 0.0


@dataclass(frozen=True)
class RunResult:
    """
    Terminal outcome of a run (immutable).

    Attributes:
        status: COMPLETED, FAILED or CANCELLED
        data: Finalized document bytes (COMPLETED only)
        page_count: Pages handed to the sink
        reason: Failure or cancellation message
        failing_index: 0-based index of the failing image, if any
        stage: Failing stage ("decode", "layout", "sink"), if any
        timings: Phase timings collected during the run

    Example:
        >>> result = assembler.run(images, settings, sink)
        >>> if result.succeeded:
        ...     Path("out.pdf").write_bytes(result.data)
    """
    status: RunState
    data: Optional[bytes] = field(default=None, repr=False)
    page_count: int = 0
    reason: Optional[str] = None
    failing_index: Optional[int] = None
    stage: Optional[str] = None
    timings: Optional[TimingLog] = field(default=None, repr=False, compare=False)

    @property
    def succeeded(self) -> bool:
        return self.status is RunState.COMPLETED

    @property
    def failing_page_number(self) -> Optional[int]:
        """1-based page number for user-facing messages."""
        return None if self.failing_index is None else self.failing_index + 1


ProgressCallback = Callable[[RunProgress], Any]


class PageAssembler:
    """
    Turn an ordered image sequence into one finalized document.

    Runs are strictly sequential, one page at a time. The image
    sequence is snapshotted when a run starts. Any failure aborts the
    whole run and finalize() is never called on the sink.

    cancel() may be called from the progress callback or another
    thread; it takes effect before the next page starts.

    Example:
        >>> assembler = PageAssembler(on_progress=print)
        >>> result = assembler.run(images, settings, ReportLabPageSink())
        >>> result.page_count
        3
    """

    def __init__(
        self,
        *,
        resolution_cap: int = DEFAULT_RESOLUTION_CAP,
        on_progress: Optional[ProgressCallback] = None,
    ) -> None:
        if resolution_cap <= 0:
            raise ValueError(f"resolution_cap must be positive: {resolution_cap}")
        self.resolution_cap = resolution_cap
        self.on_progress = on_progress
        self._lock = threading.Lock()
        self._cancel_requested = threading.Event()
        self._state = RunState.IDLE
        self._last_result: Optional[RunResult] = None
        self._pages_added = 0

    @property
    def state(self) -> RunState:
        return self._state

    @property
    def is_running(self) -> bool:
        return self._state is RunState.RUNNING

    @property
    def last_result(self) -> Optional[RunResult]:
        """Result of the most recent finished run (None while idle or running)."""
        return self._last_result

    def cancel(self) -> None:
        """Request cancellation; the page in progress completes first."""
        if self._state is RunState.RUNNING:
            logger.info("Cancellation requested")
            self._cancel_requested.set()

    def reset(self) -> None:
        """
        Return a finished assembler to IDLE.

        Raises:
            AlreadyRunningError: If a run is in progress
        """
        with self._lock:
            if self._state is RunState.RUNNING:
                raise AlreadyRunningError("Cannot reset while a run is in progress")
            self._state = RunState.IDLE
            self._last_result = None
            self._cancel_requested.clear()

    def run(
        self,
        images: Iterable[SourceImage],
        settings: PageSettings,
        sink: PageSink,
    ) -> RunResult:
        """
        Assemble one page per image into sink and finalize it.

        Args:
            images: Ordered images; page i is image i
            settings: Resolved page settings
            sink: Document backend

        Returns:
            RunResult with status COMPLETED (and the document bytes) or
            CANCELLED

        Raises:
            AlreadyRunningError: A run is in progress
            EmptyInputError: images is empty (sink untouched)
            ProcessingError: An image failed to decode or lay out
            SinkError: The sink rejected a page or finalize
        """
        snapshot = tuple(images)

        with self._lock:
            if self._state is RunState.RUNNING:
                raise AlreadyRunningError("A run is already in progress")
            self._state = RunState.IDLE
            self._last_result = None
            self._pages_added = 0
            self._cancel_requested.clear()
            if not snapshot:
                raise EmptyInputError("No images to process")
            self._state = RunState.RUNNING

        timing = TimingLog()
        try:
            result = self._execute(snapshot, settings, sink, timing)
        except Exception as e:
            self._finish(self._failure_result(e, timing))
            raise

        self._finish(result)
        return result

    # ─────────────────────────────────────────────────────────────────────────
    # Pipeline
    # ─────────────────────────────────────────────────────────────────────────

    def _execute(
        self,
        images: Sequence[SourceImage],
        settings: PageSettings,
        sink: PageSink,
        timing: TimingLog,
    ) -> RunResult:
        count = len(images)
        start_time = time.perf_counter()
        logger.info(
            f"Starting run: {count} pages, {settings.page_format} "
            f"{settings.page_width}x{settings.page_height}{settings.unit}, fit={settings.fit_mode.value}"
        )

        with timed_phase(timing, "begin"):
            self._call_sink(sink.begin_document, settings.page_size, settings.orientation, settings.unit)

        for index, image in enumerate(images):
            if self._cancel_requested.is_set():
                reason = f"Cancelled before page {index + 1} of {count}"
                logger.info(reason)
                return RunResult(
                    status=RunState.CANCELLED,
                    page_count=index,
                    reason=reason,
                    timings=timing,
                )
            self._emit_progress(index, count)
            self._process_page(index, count, image, settings, sink, timing)

        with timed_phase(timing, "finalize"):
            data = self._call_sink(sink.finalize)
        self._emit_progress(count, count)

        elapsed = time.perf_counter() - start_time
        timing.log_run("total", elapsed)
        logger.info(f"Run completed: {count} pages, {len(data)} bytes in {elapsed:.2f}s")
        logger.debug(timing.summary())

        return RunResult(
            status=RunState.COMPLETED,
            data=data,
            page_count=count,
            timings=timing,
        )

    def _process_page(
        self,
        index: int,
        count: int,
        image: SourceImage,
        settings: PageSettings,
        sink: PageSink,
        timing: TimingLog,
    ) -> None:
        try:
            with timed_phase(timing, "transform", page_index=index):
                raster = transform_image(image, self.resolution_cap, settings.jpeg_quality)
        except DecodeError as e:
            raise ProcessingError(
                f"Page {index + 1} ({image.name}) failed at decode: {e}",
                failing_index=index,
                stage=STAGE_DECODE,
            ) from e

        try:
            with timed_phase(timing, "layout", page_index=index):
                placement = solve_placement(
                    raster.pixel_width,
                    raster.pixel_height,
                    settings.page_width,
                    settings.page_height,
                    settings.margin,
                    settings.fit_mode,
                )
        except ValueError as e:
            raise ProcessingError(
                f"Page {index + 1} ({image.name}) failed at layout: {e}",
                failing_index=index,
                stage=STAGE_LAYOUT,
            ) from e

        with timed_phase(timing, "sink", page_index=index):
            self._call_sink(sink.add_page, raster, placement, index, count, page_index=index)
            self._pages_added += 1
            if settings.page_numbers:
                margin = clamp_margin(settings.margin, settings.page_width, settings.page_height)
                self._call_sink(
                    sink.annotate_text,
                    f"{index + 1} / {count}",
                    settings.page_width - margin,
                    settings.page_height - margin,
                    ALIGN_RIGHT,
                    page_index=index,
                )

        logger.debug(
            f"Page {index + 1}/{count}: {image.name} {raster.pixel_width}x{raster.pixel_height}px "
            f"at ({placement.x:.1f}, {placement.y:.1f}) {placement.width:.1f}x{placement.height:.1f}{settings.unit}"
        )

    # ─────────────────────────────────────────────────────────────────────────
    # Helpers
    # ─────────────────────────────────────────────────────────────────────────

    @staticmethod
    def _call_sink(method: Callable[..., Any], *args: Any, page_index: Optional[int] = None) -> Any:
        """Call a sink method, wrapping backend exceptions in SinkError."""
        try:
            return method(*args)
        except SinkError:
            raise
        except Exception as e:
            name = getattr(method, "__name__", "sink call")
            raise SinkError(f"Document backend failed in {name}: {e}", page_index=page_index) from e

    def _emit_progress(self, index: int, count: int) -> None:
        if self.on_progress is not None:
            self.on_progress(RunProgress(page_index=index, page_count=count))

    def _failure_result(self, error: Exception, timing: TimingLog) -> RunResult:
        failing_index: Optional[int] = None
        stage: Optional[str] = None
        if isinstance(error, ProcessingError):
            failing_index, stage = error.failing_index, error.stage
        elif isinstance(error, SinkError):
            failing_index, stage = error.page_index, STAGE_SINK

        logger.error(
            f"Run failed: {error}",
            extra={"failing_index": failing_index, "stage": stage},
        )
        return RunResult(
            status=RunState.FAILED,
            page_count=self._pages_added,
            reason=str(error),
            failing_index=failing_index,
            stage=stage,
            timings=timing,
        )

    def _finish(self, result: RunResult) -> None:
        with self._lock:
            self._last_result = result
            self._state = result.status
            self._cancel_requested.clear()


def build_document(
    images: Iterable[SourceImage],
    settings: PageSettings,
    *,
    sink: Optional[PageSink] = None,
    resolution_cap: int = DEFAULT_RESOLUTION_CAP,
    on_progress: Optional[ProgressCallback] = None,
) -> RunResult:
    """
    Run a fresh PageAssembler once.

    Args:
        images: Ordered images
        settings: Resolved page settings
        sink: Document backend (default: ReportLabPageSink)
        resolution_cap: Longest raster side in pixels
        on_progress: Optional progress callback

    Returns:
        RunResult (see PageAssembler.run)

    Example:
        >>> result = build_document(collection.snapshot(), resolve_settings())
        >>> save_document(result.data, Path("output.pdf"))
    """
    assembler = PageAssembler(resolution_cap=resolution_cap, on_progress=on_progress)
    return assembler.run(images, settings, sink if sink is not None else ReportLabPageSink())
