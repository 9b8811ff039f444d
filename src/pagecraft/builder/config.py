"""
Module: builder.config

Purpose:
    Configuration for a build run. Turns the loosely-typed settings a
    user types into a form or a JSON file (RawSettings) into the frozen
    PageSettings snapshot consumed by the transform, layout and output
    stages. Resolution happens once per run.

Key Classes:
    - RawSettings: User-facing settings, values as entered
    - PageSettings: Canonical, validated settings (immutable)
    - FitMode / Orientation: Enumerated tokens

Key Functions:
    - resolve_settings(): RawSettings or mapping -> PageSettings
    - load_raw_settings(): Read RawSettings from a JSON file
    - clamp_margin(): Keep margins from crossing the page centre

Dependencies:
    - dataclasses (std)
    - json (std)

Used By:
    - builder.controller: PageAssembler reads PageSettings
    - cli: Builds RawSettings from flags and settings file
"""

from __future__ import annotations

import json
import logging
import math
from dataclasses import dataclass, fields, replace
from enum import Enum
from pathlib import Path
from typing import Any, Mapping, Optional, Tuple, Union

from .errors import InvalidConfigError

logger = logging.getLogger(__name__)

# Named page sizes in millimetres, portrait (width, height)
PAGE_SIZES_MM = {
    "a3": (297.0, 420.0),
    "a4": (210.0, 297.0),
    "a5": (148.0, 210.0),
    "letter": (215.9, 279.4),
    "legal": (215.9, 355.6),
}
CUSTOM_PAGE_SIZE = "custom"
DEFAULT_PAGE_SIZE = "a4"
DEFAULT_MARGIN_MM = 10.0
DEFAULT_QUALITY = 0.92
PAGE_UNIT = "mm"


class FitMode(str, Enum):
    """How an image's aspect ratio is reconciled with the safe area."""

    FIT = "fit"
    COVER = "cover"
    STRETCH = "stretch"

    @classmethod
    def parse(cls, value: Union[str, "FitMode"]) -> "FitMode":
        if isinstance(value, FitMode):
            return value
        token = str(value).strip().lower()
        if token == "fill":
            return cls.COVER
        try:
            return cls(token)
        except ValueError:
            raise InvalidConfigError(
                f"fit_mode must be fit, cover/fill or stretch: {value!r}",
                field="fit_mode",
            ) from None


class Orientation(str, Enum):
    PORTRAIT = "portrait"
    LANDSCAPE = "landscape"

    @classmethod
    def parse(cls, value: Union[str, "Orientation"]) -> "Orientation":
        if isinstance(value, Orientation):
            return value
        token = str(value).strip().lower()
        aliases = {"p": cls.PORTRAIT, "l": cls.LANDSCAPE}
        if token in aliases:
            return aliases[token]
        try:
            return cls(token)
        except ValueError:
            raise InvalidConfigError(
                f"orientation must be portrait or landscape: {value!r}",
                field="orientation",
            ) from None


def clamp_margin(margin: float, page_w: float, page_h: float) -> float:
    """Margin limited to [0, min(page_w, page_h) / 2]."""
    return max(0.0, min(margin, page_w / 2, page_h / 2))


@dataclass(frozen=True)
class RawSettings:
    """
    Settings as supplied by the user (immutable).

    Values may be strings, numbers or None exactly as a form or a JSON
    file provides them; nothing is validated until resolve_settings().

    Attributes:
        page_size: Named size token ("a4", "letter", ...) or "custom"
        custom_width: Width in mm when page_size is "custom"
        custom_height: Height in mm when page_size is "custom"
        orientation: "portrait" or "landscape"
        margin: Margin on every side in mm
        quality: JPEG quality on a 0-1 scale
        fit_mode: "fit", "cover"/"fill" or "stretch"
        page_numbers: Whether to print "n / N" on each page
    """

    page_size: str = DEFAULT_PAGE_SIZE
    custom_width: Any = None
    custom_height: Any = None
    orientation: str = Orientation.PORTRAIT.value
    margin: Any = DEFAULT_MARGIN_MM
    quality: Any = DEFAULT_QUALITY
    fit_mode: str = FitMode.FIT.value
    page_numbers: Any = False

    def merged(self, **overrides: Any) -> "RawSettings":
        """Copy with every non-None override applied."""
        changes = {k: v for k, v in overrides.items() if v is not None}
        return replace(self, **changes)


@dataclass(frozen=True)
class PageSettings:
    """
    Canonical settings for one run (immutable).

    page_width/page_height already reflect orientation.

    Example:
        >>> s = resolve_settings(RawSettings(orientation="landscape"))
        >>> (s.page_width, s.page_height)
        (297.0, 210.0)
    """

    page_width: float
    page_height: float
    orientation: Orientation = Orientation.PORTRAIT
    margin: float = DEFAULT_MARGIN_MM
    fit_mode: FitMode = FitMode.FIT
    jpeg_quality: float = DEFAULT_QUALITY
    page_numbers: bool = False
    page_format: str = DEFAULT_PAGE_SIZE
    unit: str = PAGE_UNIT

    def __post_init__(self) -> None:
        """Validate configuration on construction."""
        for name in ("page_width", "page_height", "margin", "jpeg_quality"):
            value = getattr(self, name)
            if not math.isfinite(value):
                raise InvalidConfigError(f"{name} must be a finite number: {value}", field=name)
        if self.page_width <= 0:
            raise InvalidConfigError(f"page_width must be positive: {self.page_width}", field="page_width")
        if self.page_height <= 0:
            raise InvalidConfigError(f"page_height must be positive: {self.page_height}", field="page_height")
        if self.margin < 0:
            raise InvalidConfigError(f"margin must be non-negative: {self.margin}", field="margin")
        if not 0.0 <= self.jpeg_quality <= 1.0:
            raise InvalidConfigError(f"quality must be within [0, 1]: {self.jpeg_quality}", field="quality")

    @property
    def page_size(self) -> Tuple[float, float]:
        return (self.page_width, self.page_height)

    @property
    def safe_width(self) -> float:
        """Width available for content (excluding margins)."""
        return self.page_width - 2 * clamp_margin(self.margin, self.page_width, self.page_height)

    @property
    def safe_height(self) -> float:
        """Height available for content (excluding margins)."""
        return self.page_height - 2 * clamp_margin(self.margin, self.page_width, self.page_height)


def resolve_settings(raw: Union[RawSettings, Mapping[str, Any], None] = None) -> PageSettings:
    """
    Resolve user-facing settings into a PageSettings snapshot.

    Named sizes map to their millimetre dimensions. "custom" uses the
    custom fields, falling back per field to A4 when a field is blank
    or not a number. Landscape puts the longer side horizontal and
    portrait puts it vertical.

    Args:
        raw: RawSettings, a mapping of RawSettings field names, or None
            for defaults

    Returns:
        Frozen PageSettings

    Raises:
        InvalidConfigError: Custom dimension <= 0, quality outside
            [0, 1], negative or non-numeric margin, unknown tokens

    Example:
        >>> resolve_settings({"page_size": "custom", "custom_width": "100"}).page_size
        (100.0, 297.0)
    """
    raw = _coerce_raw(raw)

    size_token = str(raw.page_size or DEFAULT_PAGE_SIZE).strip().lower()
    if size_token == CUSTOM_PAGE_SIZE:
        default_w, default_h = PAGE_SIZES_MM[DEFAULT_PAGE_SIZE]
        width = _custom_dimension(raw.custom_width, default_w, "custom_width")
        height = _custom_dimension(raw.custom_height, default_h, "custom_height")
    elif size_token in PAGE_SIZES_MM:
        width, height = PAGE_SIZES_MM[size_token]
    else:
        known = ", ".join([*PAGE_SIZES_MM, CUSTOM_PAGE_SIZE])
        raise InvalidConfigError(f"page_size must be one of {known}: {raw.page_size!r}", field="page_size")

    orientation = Orientation.parse(raw.orientation)
    if orientation is Orientation.LANDSCAPE and height > width:
        width, height = height, width
    elif orientation is Orientation.PORTRAIT and width > height:
        width, height = height, width

    margin = _number(raw.margin, "margin")
    if margin < 0:
        raise InvalidConfigError(f"margin must be non-negative: {margin}", field="margin")

    quality = _number(raw.quality, "quality")
    if not 0.0 <= quality <= 1.0:
        raise InvalidConfigError(f"quality must be within [0, 1]: {quality}", field="quality")

    settings = PageSettings(
        page_width=width,
        page_height=height,
        orientation=orientation,
        margin=margin,
        fit_mode=FitMode.parse(raw.fit_mode),
        jpeg_quality=quality,
        page_numbers=_flag(raw.page_numbers),
        page_format=size_token,
    )
    logger.debug(
        f"Resolved settings: {settings.page_format} {settings.page_width}x{settings.page_height}{PAGE_UNIT} "
        f"{settings.orientation.value}, margin={settings.margin}, fit={settings.fit_mode.value}"
    )
    return settings


def load_raw_settings(path: Path, base: Optional[RawSettings] = None) -> RawSettings:
    """
    Read RawSettings from a JSON object file.

    Keys are RawSettings field names; missing keys keep the values of
    base (or the defaults).

    Raises:
        InvalidConfigError: File unreadable, not a JSON object, or has
            unknown keys
    """
    try:
        data = json.loads(Path(path).read_text(encoding="utf-8"))
    except OSError as e:
        raise InvalidConfigError(f"Cannot read settings file {path}: {e}") from e
    except json.JSONDecodeError as e:
        raise InvalidConfigError(f"Settings file {path} is not valid JSON: {e}") from e

    if not isinstance(data, dict):
        raise InvalidConfigError(f"Settings file {path} must contain a JSON object")

    return _coerce_raw(data, base=base)


def _coerce_raw(
    raw: Union[RawSettings, Mapping[str, Any], None],
    *,
    base: Optional[RawSettings] = None,
) -> RawSettings:
    if raw is None:
        return base or RawSettings()
    if isinstance(raw, RawSettings):
        return raw

    known = {f.name for f in fields(RawSettings)}
    unknown = sorted(set(raw) - known)
    if unknown:
        raise InvalidConfigError(f"Unknown settings: {', '.join(unknown)}")
    return replace(base or RawSettings(), **dict(raw))


def _parse_float(value: Any) -> Optional[float]:
    """Float value of a number or numeric string, None when blank or not a number."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, str):
        value = value.strip()
        if not value:
            return None
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    if math.isnan(number) or math.isinf(number):
        return None
    return number


def _custom_dimension(value: Any, default: float, field_name: str) -> float:
    number = _parse_float(value)
    if number is None:
        logger.debug(f"{field_name} blank or non-numeric ({value!r}), using {default}")
        return default
    if number <= 0:
        raise InvalidConfigError(f"{field_name} must be positive: {number}", field=field_name)
    return number


def _number(value: Any, field_name: str) -> float:
    number = _parse_float(value)
    if number is None:
        raise InvalidConfigError(f"{field_name} must be a number: {value!r}", field=field_name)
    return number


def _flag(value: Any) -> bool:
    if isinstance(value, str):
        return value.strip().lower() in {"1", "true", "yes", "on"}
    return bool(value)
