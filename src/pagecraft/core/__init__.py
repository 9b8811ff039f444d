"""
pagecraft Core Package

Shared data models for the transform, layout and assembly stages.
"""

from .models import (
    ImageIdentity,
    MimeType,
    PlacementRect,
    ResampledRaster,
    SourceImage,
)

__all__ = [
    "ImageIdentity",
    "MimeType",
    "PlacementRect",
    "ResampledRaster",
    "SourceImage",
]
