"""
Unit tests for page placement geometry.

Test Coverage:
- solve_placement(): fit, cover, stretch, centering, margins
- clamp_margin(): bounds
"""

import pytest

from pagecraft.builder.config import FitMode
from pagecraft.builder.layout import clamp_margin, solve_placement
from pagecraft.core.models import PlacementRect

A4 = (210.0, 297.0)


def _center(rect: PlacementRect):
    return (rect.x + rect.width / 2, rect.y + rect.height / 2)


class TestSolvePlacementFit:
    """Fit keeps the whole image visible inside the safe area."""

    def test_fit_when_wide_image_on_a4_then_width_limited(self):
        rect = solve_placement(2000, 1000, *A4, 10, FitMode.FIT)

        assert rect.x == pytest.approx(10.0)
        assert rect.width == pytest.approx(190.0)
        assert rect.height == pytest.approx(95.0)
        assert rect.y == pytest.approx(101.0)

    def test_fit_when_tall_image_then_height_limited(self):
        rect = solve_placement(1000, 4000, *A4, 10, FitMode.FIT)

        assert rect.height == pytest.approx(277.0)
        assert rect.width == pytest.approx(277.0 / 4)
        assert rect.y == pytest.approx(10.0)

    @pytest.mark.parametrize("img_w,img_h", [(1, 1), (3000, 200), (200, 3000), (640, 480), (190, 277)])
    def test_fit_when_any_aspect_then_inside_safe_area_with_ratio_kept(self, img_w, img_h):
        rect = solve_placement(img_w, img_h, *A4, 10, "fit")

        assert rect.x >= 10 - 1e-9 and rect.y >= 10 - 1e-9
        assert rect.right <= 200 + 1e-9 and rect.bottom <= 287 + 1e-9
        assert rect.width / rect.height == pytest.approx(img_w / img_h)
        assert rect.width == pytest.approx(190.0) or rect.height == pytest.approx(277.0)

    def test_fit_when_image_small_then_still_scaled_up_to_safe_area(self):
        rect = solve_placement(10, 5, *A4, 10, FitMode.FIT)
        assert rect.width == pytest.approx(190.0)


class TestSolvePlacementCover:
    """Cover fills the safe area and overflows along one axis."""

    def test_cover_when_wide_image_then_height_matches_and_width_overflows(self):
        rect = solve_placement(2000, 1000, *A4, 10, FitMode.COVER)

        assert rect.height == pytest.approx(277.0)
        assert rect.width == pytest.approx(554.0)
        assert rect.x < 10
        assert rect.y == pytest.approx(10.0)

    def test_cover_when_tall_image_then_width_matches_and_height_overflows(self):
        rect = solve_placement(100, 1000, *A4, 10, FitMode.COVER)

        assert rect.width == pytest.approx(190.0)
        assert rect.height == pytest.approx(1900.0)
        assert rect.y < 10

    def test_cover_when_fill_token_then_same_as_cover(self):
        assert solve_placement(300, 200, *A4, 5, "fill") == solve_placement(300, 200, *A4, 5, FitMode.COVER)


class TestSolvePlacementStretch:

    def test_stretch_when_any_image_then_exact_safe_area(self):
        rect = solve_placement(1234, 55, *A4, 10, FitMode.STRETCH)
        assert rect == PlacementRect(x=10.0, y=10.0, width=190.0, height=277.0)

    def test_stretch_when_zero_margin_then_full_page(self):
        rect = solve_placement(1, 1, 100, 50, 0, FitMode.STRETCH)
        assert rect == PlacementRect(x=0.0, y=0.0, width=100.0, height=50.0)


class TestSolvePlacementCentering:

    @pytest.mark.parametrize("mode", list(FitMode))
    @pytest.mark.parametrize("img_w,img_h", [(2000, 1000), (500, 1500), (800, 800)])
    def test_placement_when_any_mode_then_centered_on_page(self, mode, img_w, img_h):
        rect = solve_placement(img_w, img_h, 215.9, 279.4, 12.5, mode)
        cx, cy = _center(rect)

        assert cx == pytest.approx(215.9 / 2)
        assert cy == pytest.approx(279.4 / 2)


class TestSolvePlacementMargins:

    def test_placement_when_margin_exceeds_half_page_then_zero_rect_at_centre(self):
        rect = solve_placement(100, 100, 100, 200, 80, FitMode.FIT)

        assert rect.width == 0.0 and rect.height == 0.0
        assert (rect.x, rect.y) == pytest.approx((50.0, 100.0))

    def test_placement_when_negative_margin_then_treated_as_zero(self):
        rect = solve_placement(1, 1, 100, 100, -5, FitMode.STRETCH)
        assert rect == PlacementRect(x=0.0, y=0.0, width=100.0, height=100.0)

    @pytest.mark.parametrize("args", [
        (0, 100, 210, 297),
        (100, -1, 210, 297),
        (100, 100, 0, 297),
        (100, 100, 210, -297),
    ])
    def test_placement_when_non_positive_dimension_then_raises_error(self, args):
        with pytest.raises(ValueError, match="must be positive"):
            solve_placement(*args, 10, FitMode.FIT)

    def test_placement_when_unknown_mode_then_raises_error(self):
        with pytest.raises(ValueError, match="fit_mode"):
            solve_placement(100, 100, 210, 297, 10, "crop")


class TestClampMargin:

    @pytest.mark.parametrize("margin,expected", [(-3, 0.0), (0, 0.0), (10, 10.0), (60, 50.0), (500, 50.0)])
    def test_clamp_when_margin_then_within_bounds(self, margin, expected):
        assert clamp_margin(margin, 100, 200) == expected
