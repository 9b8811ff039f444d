"""
Module: builder.layout

Purpose:
    Page layout for image pages: one image per page, placed in the
    margin-reduced safe area according to the fit mode.

Key Functions:
    - solve_placement(): Compute the placement rectangle
    - clamp_margin(): Margin limited to half the shorter page side

Used By:
    - builder.controller: Page assembly
"""

from .solver import clamp_margin, solve_placement

__all__ = [
    "clamp_margin",
    "solve_placement",
]
