"""
Module: cli

Purpose:
    Command-line front end: read image files, resolve settings from a
    JSON settings file and flags (flags win), assemble the PDF and
    write it to disk.

Key Functions:
    - main(): Console entry point, returns the exit code
    - build_parser(): argparse definition

Exit codes:
    0 success, 1 run failure, 2 usage or configuration error

Example:
    $ pagecraft scan1.jpg scan2.png -o scans.pdf --fit cover --page-numbers --rotate 2=90
"""

from __future__ import annotations

import argparse
import logging
import mimetypes
import sys
from pathlib import Path
from typing import Dict, List, Optional, Sequence

from pagecraft import __version__
from pagecraft.builder import (
    FitMode,
    ImageCollection,
    InvalidConfigError,
    Orientation,
    PAGE_SIZES_MM,
    PageCraftError,
    ProcessingError,
    RawSettings,
    ReportLabPageSink,
    RunProgress,
    RunState,
    SinkError,
    build_document,
    load_raw_settings,
    resolve_settings,
    save_document,
)
from pagecraft.builder.images import DEFAULT_RESOLUTION_CAP
from pagecraft.utils.logging_utils import configure_logging

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_FAILED = 1
EXIT_USAGE = 2


def build_parser() -> argparse.ArgumentParser:
    ap = argparse.ArgumentParser(
        prog="pagecraft",
        description="Assemble images into a paginated PDF, one image per page.",
    )
    ap.add_argument("images", nargs="+", type=Path, help="Image files (png, jpeg, webp), in page order")
    ap.add_argument("-o", "--output", required=True, type=Path, help="Output PDF path")
    ap.add_argument("--config", type=Path, default=None, help="JSON settings file; flags override it")

    ap.add_argument("--page-size", choices=[*PAGE_SIZES_MM, "custom"], default=None, help="Named page size or custom")
    ap.add_argument("--width", default=None, help="Custom page width in mm (with --page-size custom)")
    ap.add_argument("--height", default=None, help="Custom page height in mm (with --page-size custom)")
    ap.add_argument("--orientation", choices=[o.value for o in Orientation], default=None)
    ap.add_argument("--margin", type=float, default=None, help="Margin on every side in mm")
    ap.add_argument("--quality", type=float, default=None, help="JPEG quality 0-1")
    ap.add_argument("--fit", choices=[*(m.value for m in FitMode), "fill"], default=None, help="Fit mode")
    ap.add_argument("--page-numbers", action=argparse.BooleanOptionalAction, default=None,
                    help="Print 'n / N' in the bottom-right margin")

    ap.add_argument("--rotate", action="append", default=[], metavar="PAGE=DEG",
                    help="Rotate the image on 1-based PAGE clockwise by DEG (multiple of 90); repeatable")
    ap.add_argument("--max-resolution", type=int, default=DEFAULT_RESOLUTION_CAP,
                    help="Longest side of each embedded image in pixels")
    ap.add_argument("--title", default=None, help="PDF document title")
    ap.add_argument("--timings", type=Path, default=None, help="Write per-page timing JSON here")
    ap.add_argument("-v", "--verbose", action="count", default=0, help="-v for info, -vv for debug")
    ap.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    return ap


def parse_rotations(specs: Sequence[str]) -> Dict[int, int]:
    """
    Parse PAGE=DEG entries into {0-based index: degrees}.

    Repeated pages accumulate, matching repeated rotate clicks.

    Raises:
        ValueError: Malformed entry, page < 1, or degrees not a multiple of 90
    """
    rotations: Dict[int, int] = {}
    for spec in specs:
        page_text, sep, deg_text = spec.partition("=")
        if not sep:
            raise ValueError(f"Rotation must look like PAGE=DEG: {spec!r}")
        try:
            page, degrees = int(page_text), int(deg_text)
        except ValueError:
            raise ValueError(f"Rotation must look like PAGE=DEG: {spec!r}") from None
        if page < 1:
            raise ValueError(f"Rotation page must be >= 1: {spec!r}")
        if degrees % 90 != 0:
            raise ValueError(f"Rotation degrees must be a multiple of 90: {spec!r}")
        rotations[page - 1] = (rotations.get(page - 1, 0) + degrees) % 360
    return rotations


def _raw_settings_from_args(args: argparse.Namespace) -> RawSettings:
    base = load_raw_settings(args.config) if args.config else RawSettings()
    return base.merged(
        page_size=args.page_size,
        custom_width=args.width,
        custom_height=args.height,
        orientation=args.orientation,
        margin=args.margin,
        quality=args.quality,
        fit_mode=args.fit,
        page_numbers=args.page_numbers,
    )


def _read_uploads(paths: Sequence[Path]) -> List[tuple]:
    uploads = []
    for path in paths:
        try:
            data = path.read_bytes()
        except OSError as e:
            logger.warning(f"Cannot read {path}: {e}")
            continue
        mime_type, _ = mimetypes.guess_type(path.name)
        uploads.append((path.name, data, mime_type))
    return uploads


def _log_progress(progress: RunProgress) -> None:
    if progress.page_index < progress.page_count:
        logger.info(f"Processing page {progress.page_index + 1} of {progress.page_count}")


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    configure_logging(args.verbose)

    try:
        settings = resolve_settings(_raw_settings_from_args(args))
        rotations = parse_rotations(args.rotate)
    except (InvalidConfigError, ValueError) as e:
        print(f"pagecraft: invalid settings: {e}", file=sys.stderr)
        return EXIT_USAGE

    collection = ImageCollection()
    report = collection.add_many(_read_uploads(args.images))
    for warning in report.warnings:
        print(f"pagecraft: skipped: {warning}", file=sys.stderr)

    for index, degrees in sorted(rotations.items()):
        if index >= len(collection):
            print(f"pagecraft: --rotate page {index + 1} out of range (have {len(collection)})", file=sys.stderr)
            return EXIT_USAGE
        collection.rotate(index, degrees)

    try:
        result = build_document(
            collection.snapshot(),
            settings,
            sink=ReportLabPageSink(title=args.title),
            resolution_cap=args.max_resolution,
            on_progress=_log_progress,
        )
        if result.status is not RunState.COMPLETED:
            print(f"pagecraft: run {result.status.value}: {result.reason}", file=sys.stderr)
            return EXIT_FAILED
        save_document(result.data, args.output)
    except ProcessingError as e:
        print(f"pagecraft: {e.stage} failed on page {e.page_number}: {e}", file=sys.stderr)
        return EXIT_FAILED
    except SinkError as e:
        where = f" on page {e.page_index + 1}" if e.page_index is not None else ""
        print(f"pagecraft: document backend failed{where}: {e}", file=sys.stderr)
        return EXIT_FAILED
    except PageCraftError as e:
        print(f"pagecraft: {e}", file=sys.stderr)
        return EXIT_FAILED
    except ValueError as e:
        # e.g. --max-resolution <= 0
        print(f"pagecraft: invalid settings: {e}", file=sys.stderr)
        return EXIT_USAGE

    if args.timings and result.timings is not None:
        try:
            result.timings.save(args.timings)
        except OSError as e:
            print(f"pagecraft: cannot write timings to {args.timings}: {e}", file=sys.stderr)
            return EXIT_FAILED

    print(f"Wrote {result.page_count} pages to {args.output}")
    return EXIT_OK


if __name__ == "__main__":
    raise SystemExit(main())
