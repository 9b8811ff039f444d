"""
Module: timing

Purpose:
    Timing instrumentation for document runs: how long each page spent
    in transform, layout and sink, plus run-level phases.

Key Classes:
    - TimingLog: Collects run-level and per-page timings

Key Functions:
    - timed_phase: Context manager for timing code blocks

Dependencies:
    - time (std)
    - contextlib (std)
    - dataclasses (std)

Used By:
    - builder.controller: PageAssembler
"""

from __future__ import annotations

import json
import logging
import time
from contextlib import contextmanager
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Generator, Optional

logger = logging.getLogger(__name__)


@dataclass
class TimingLog:
    """
    Timing metrics for one run.

    Attributes:
        run_timings: Dict of phase_name -> duration_seconds
        page_timings: Dict of page_index -> {phase_name -> duration_seconds}

    Example:
        >>> log = TimingLog()
        >>> log.log_page(0, "transform", 0.120)
        >>> log.get_page_total(0)
        0.12
    """
    run_timings: Dict[str, float] = field(default_factory=dict)
    page_timings: Dict[int, Dict[str, float]] = field(default_factory=dict)

    def log_run(self, phase: str, duration: float) -> None:
        """Log a run-level timing metric."""
        self.run_timings[phase] = duration

    def log_page(self, page_index: int, phase: str, duration: float) -> None:
        """Log a page-level timing metric."""
        self.page_timings.setdefault(page_index, {})[phase] = duration

    def get_page_total(self, page_index: int) -> float:
        """Get total time for a page."""
        return sum(self.page_timings.get(page_index, {}).values())

    def summary(self) -> str:
        """Generate human-readable timing summary."""
        lines = ["", "=== Run Timing Summary ==="]

        if self.run_timings:
            lines.append("Run-level:")
            for phase, duration in sorted(self.run_timings.items()):
                lines.append(f"  {phase:20s} {duration:.3f}s")

        if self.page_timings:
            lines.append("")
            lines.append("Per page:")
            for index in sorted(self.page_timings):
                phases = ", ".join(f"{p} {d:.3f}s" for p, d in self.page_timings[index].items())
                lines.append(f"  page {index + 1}: {self.get_page_total(index):.3f}s ({phases})")

        lines.append("")
        return "\n".join(lines)

    def to_dict(self) -> Dict[str, Any]:
        """Export timing data as dictionary (JSON keys are strings)."""
        return {
            "run_timings": self.run_timings,
            "page_timings": {str(i): phases for i, phases in self.page_timings.items()},
        }

    def save(self, path: Path) -> None:
        """Save timing data to a JSON file."""
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)
        with open(path, "w", encoding="utf-8") as f:
            json.dump(self.to_dict(), f, indent=2)
        logger.debug(f"Saved timing data to {path}")


@contextmanager
def timed_phase(
    log: TimingLog,
    phase: str,
    page_index: Optional[int] = None,
) -> Generator[None, None, None]:
    """
    Context manager for timing a code phase.

    The duration is recorded even when the block raises.

    Args:
        log: TimingLog instance to record metrics
        phase: Name of the phase being timed
        page_index: If provided, records as page-level metric;
                    otherwise records as run-level metric

    Example:
        >>> log = TimingLog()
        >>> with timed_phase(log, "transform", page_index=0):
        ...     raster = transform_image(image)
    """
    start = time.perf_counter()
    try:
        yield
    finally:
        elapsed = time.perf_counter() - start
        if page_index is not None:
            log.log_page(page_index, phase, elapsed)
        else:
            log.log_run(phase, elapsed)
