"""
Module: builder.images

Purpose:
    Image intake and per-page image normalization.

Key Classes:
    - ImageCollection: Ordered upload list with rotate/remove/move
    - IntakeReport: Outcome of a bulk add

Key Functions:
    - transform_image(): Decode, rotate, cap resolution, re-encode
    - probe_image(): Verify an upload without a full decode

Dependencies:
    - PIL: Image manipulation
    - pagecraft.core.models: SourceImage, ResampledRaster

Used By:
    - builder.controller: Page assembly
    - cli: Reading files into a collection
"""

from .transform import (
    DEFAULT_RESOLUTION_CAP,
    ImageInfo,
    compute_scale,
    decode_image,
    effective_size,
    probe_image,
    transform_image,
)
from .intake import ImageCollection, IntakeReport

__all__ = [
    "DEFAULT_RESOLUTION_CAP",
    "ImageInfo",
    "compute_scale",
    "decode_image",
    "effective_size",
    "probe_image",
    "transform_image",
    "ImageCollection",
    "IntakeReport",
]
