"""
Core Models Package

Immutable, validated data models shared by every stage of a run.

All models are frozen dataclasses: a rotation or a new placement
produces a new instance, so a snapshot taken before a run cannot be
changed underneath it.
"""

from .images import ImageIdentity, MimeType, SourceImage, VALID_ROTATIONS
from .geometry import PlacementRect, ResampledRaster

__all__ = [
    "ImageIdentity",
    "MimeType",
    "SourceImage",
    "VALID_ROTATIONS",
    "PlacementRect",
    "ResampledRaster",
]
