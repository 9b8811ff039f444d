"""
Module: geometry

Purpose:
    Value types passed between the transform, layout and output stages:
    the resampled raster produced for a page and the rectangle it is
    placed in.

Key Classes:
    - ResampledRaster: Re-encoded image ready for embedding
    - PlacementRect: Position and size on the page (page units, top-left origin)

Dependencies:
    - dataclasses (std)

Used By:
    - builder.images.transform: Produces ResampledRaster
    - builder.layout.solver: Produces PlacementRect
    - builder.output: Consumes both
"""

from __future__ import annotations

from dataclasses import dataclass, field


@dataclass(frozen=True)
class ResampledRaster:
    """
    Output of the transform engine (immutable, ephemeral).

    Attributes:
        pixel_width: Width after rotation and resolution cap
        pixel_height: Height after rotation and resolution cap
        data: JPEG-encoded pixels
        scale: Downscale factor that was applied (1.0 = untouched)
    """

    pixel_width: int
    pixel_height: int
    data: bytes = field(repr=False)
    scale: float = 1.0

    def __post_init__(self) -> None:
        if self.pixel_width <= 0:
            raise ValueError(f"pixel_width must be positive: {self.pixel_width}")
        if self.pixel_height <= 0:
            raise ValueError(f"pixel_height must be positive: {self.pixel_height}")

    @property
    def size(self) -> tuple[int, int]:
        return (self.pixel_width, self.pixel_height)


@dataclass(frozen=True)
class PlacementRect:
    """
    Where an image is drawn on its page.

    Coordinates use the page unit with the origin at the top-left
    corner; output backends with other origins convert on draw.

    Attributes:
        x: Left edge
        y: Top edge
        width: Drawn width
        height: Drawn height

    Example:
        >>> rect = PlacementRect(10, 101, 190, 95)
        >>> rect.bottom
        196
    """

    x: float
    y: float
    width: float
    height: float

    @property
    def right(self) -> float:
        """Right edge (x + width)."""
        return self.x + self.width

    @property
    def bottom(self) -> float:
        """Bottom edge (y + height)."""
        return self.y + self.height

    @property
    def area(self) -> float:
        return self.width * self.height
