"""
Module: builder.layout.solver

Purpose:
    Compute where an image goes on its page. Pure geometry: image size,
    page size, margin and fit mode in; a centered PlacementRect out.

Key Functions:
    - solve_placement(): Main entry point
    - clamp_margin(): Re-exported from builder.config

Dependencies:
    - builder.config: FitMode
    - pagecraft.core.models: PlacementRect

Used By:
    - builder.controller: Once per page
"""

from __future__ import annotations

from typing import Union

from pagecraft.core.models import PlacementRect

from ..config import FitMode, clamp_margin


def solve_placement(
    img_w: float,
    img_h: float,
    page_w: float,
    page_h: float,
    margin: float,
    mode: Union[FitMode, str],
) -> PlacementRect:
    """
    Place an image inside the page's safe area.

    Modes:
        fit: whole image visible; one axis matches the safe area
        cover: image fills the safe area and overflows one axis
            (scaled, never cropped)
        stretch: exactly the safe area, aspect ratio ignored

    The result is always centered in the safe area. A margin of half
    the page or more leaves a zero-area safe area and a zero-size
    rectangle at the page centre.

    Args:
        img_w, img_h: Image size (any unit, only the ratio matters)
        page_w, page_h: Page size in page units
        margin: Margin on every side in page units
        mode: FitMode or its token

    Returns:
        PlacementRect in page units, top-left origin

    Raises:
        ValueError: If any image or page dimension is not positive

    Example:
        >>> solve_placement(2000, 1000, 210, 297, 10, FitMode.FIT)
        PlacementRect(x=10.0, y=101.0, width=190.0, height=95.0)
    """
    if img_w <= 0 or img_h <= 0:
        raise ValueError(f"Image dimensions must be positive: {img_w}x{img_h}")
    if page_w <= 0 or page_h <= 0:
        raise ValueError(f"Page dimensions must be positive: {page_w}x{page_h}")
    mode = FitMode.parse(mode)

    m = clamp_margin(float(margin), page_w, page_h)
    safe_w = page_w - 2 * m
    safe_h = page_h - 2 * m

    if safe_w <= 0 or safe_h <= 0:
        return PlacementRect(x=m + safe_w / 2, y=m + safe_h / 2, width=0.0, height=0.0)

    img_ratio = img_w / img_h
    page_ratio = safe_w / safe_h
    w, h = safe_w, safe_h

    if mode is FitMode.FIT:
        if img_ratio > page_ratio:
            h = safe_w / img_ratio
        else:
            w = safe_h * img_ratio
    elif mode is FitMode.COVER:
        # Inverse of fit's branch: grow along the other axis instead of cropping
        if img_ratio > page_ratio:
            w = safe_h * img_ratio
        else:
            h = safe_w / img_ratio

    return PlacementRect(
        x=m + (safe_w - w) / 2,
        y=m + (safe_h - h) / 2,
        width=w,
        height=h,
    )
