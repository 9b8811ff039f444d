"""
Module: builder.images.transform

Purpose:
    Normalize one source image into the raster embedded on its page:
    decode, apply the user's rotation, downscale to the resolution cap
    and re-encode as JPEG at the requested quality.

Key Functions:
    - transform_image(): SourceImage -> ResampledRaster
    - decode_image(): Bytes -> RGB PIL image (EXIF orientation applied)
    - probe_image(): Cheap format/size check without a full decode
    - effective_size(): Bounding box after a quarter-turn swap
    - compute_scale(): Downscale factor for the resolution cap

Dependencies:
    - PIL: Decode, transpose, resample, JPEG encode

Used By:
    - builder.controller: Once per page
    - builder.images.intake: Upload verification
"""

from __future__ import annotations

import io
import logging
from dataclasses import dataclass
from typing import Optional, Tuple

from PIL import Image, ImageOps, UnidentifiedImageError

from pagecraft.core.models import ResampledRaster, SourceImage

from ..errors import DecodeError

logger = logging.getLogger(__name__)

# Constants
DEFAULT_RESOLUTION_CAP = 2000  # Longest output side in pixels
DEFAULT_QUALITY = 0.92
BACKGROUND_COLOR = (255, 255, 255)

# Clockwise rotation -> PIL transpose (PIL's ROTATE_* turn counter-clockwise)
_CLOCKWISE_TRANSPOSE = {
    90: Image.Transpose.ROTATE_270,
    180: Image.Transpose.ROTATE_180,
    270: Image.Transpose.ROTATE_90,
}

# Errors PIL raises for corrupt, truncated or unsupported payloads
_DECODE_ERRORS = (UnidentifiedImageError, OSError, SyntaxError, ValueError, Image.DecompressionBombError)


@dataclass(frozen=True)
class ImageInfo:
    """Format and natural size read from an image header."""

    format: str
    mime_type: Optional[str]
    width: int
    height: int


def transform_image(
    image: SourceImage,
    resolution_cap: int = DEFAULT_RESOLUTION_CAP,
    quality: float = DEFAULT_QUALITY,
) -> ResampledRaster:
    """
    Produce the page raster for a source image.

    The output box is the image's natural size with width and height
    swapped for 90/270 rotations, shrunk so its longer side is at most
    resolution_cap. Images are never upscaled.

    Args:
        image: Source image (not modified)
        resolution_cap: Maximum output side in pixels
        quality: JPEG quality on a 0-1 scale

    Returns:
        ResampledRaster with post-rotation, post-cap dimensions

    Raises:
        DecodeError: If the bytes cannot be decoded
        ValueError: If resolution_cap <= 0 or quality outside [0, 1]

    Example:
        >>> raster = transform_image(img_2000x1000.rotated(90))
        >>> raster.size
        (1000, 2000)
    """
    if resolution_cap <= 0:
        raise ValueError(f"resolution_cap must be positive: {resolution_cap}")
    if not 0.0 <= quality <= 1.0:
        raise ValueError(f"quality must be within [0, 1]: {quality}")

    decoded = decode_image(image.data, name=image.name)

    eff_w, eff_h = effective_size(decoded.width, decoded.height, image.rotation)
    scale = compute_scale(eff_w, eff_h, resolution_cap)
    out_w = max(1, int(eff_w * scale))
    out_h = max(1, int(eff_h * scale))

    rendered = render_rotated(decoded, image.rotation, (out_w, out_h))
    data = encode_jpeg(rendered, quality)

    logger.debug(
        f"Transformed {image.name}: {decoded.width}x{decoded.height} rot={image.rotation} "
        f"-> {out_w}x{out_h} (scale={scale:.3f}, {len(data)} bytes)"
    )
    return ResampledRaster(pixel_width=out_w, pixel_height=out_h, data=data, scale=scale)


def effective_size(width: int, height: int, rotation: int) -> Tuple[int, int]:
    """Bounding box of a width x height image turned clockwise by rotation."""
    if rotation % 180 == 0:
        return width, height
    return height, width


def compute_scale(width: float, height: float, resolution_cap: float) -> float:
    """
    Downscale factor so max(width, height) fits resolution_cap.

    Returns 1.0 when the image already fits (never upscales).
    """
    longest = max(width, height)
    if longest <= 0:
        return 1.0
    return min(1.0, resolution_cap / longest)


def decode_image(data: bytes, *, name: str = "<bytes>") -> Image.Image:
    """
    Decode raster bytes to an RGB image.

    EXIF orientation is applied so camera photos come out the way they
    were shot; transparency is flattened onto white.

    Raises:
        DecodeError: If PIL cannot decode the bytes
    """
    try:
        with Image.open(io.BytesIO(data)) as img:
            img.load()
            upright = ImageOps.exif_transpose(img)
            return _flatten(upright)
    except _DECODE_ERRORS as e:
        raise DecodeError(f"Cannot decode image {name}: {e}") from e


def probe_image(data: bytes, *, name: str = "<bytes>") -> ImageInfo:
    """
    Read format and size and verify the file structure.

    Cheaper than decode_image(); pixel data is not decompressed, so a
    truncated payload may still pass and fail later at decode time.

    Raises:
        DecodeError: If the header is unreadable or verify() fails
    """
    try:
        with Image.open(io.BytesIO(data)) as img:
            fmt = img.format or ""
            width, height = img.size
            img.verify()
    except _DECODE_ERRORS as e:
        raise DecodeError(f"Cannot decode image {name}: {e}") from e
    return ImageInfo(format=fmt, mime_type=Image.MIME.get(fmt), width=width, height=height)


def render_rotated(img: Image.Image, rotation: int, size: Tuple[int, int]) -> Image.Image:
    """
    Rotate img clockwise about its centre and resample it to fill size exactly.

    Quarter turns are lossless transposes, so the rotated image already
    has the target aspect ratio and only needs resampling.
    """
    transpose = _CLOCKWISE_TRANSPOSE.get(rotation % 360)
    rotated = img.transpose(transpose) if transpose is not None else img
    if rotated.size == size:
        return rotated
    return rotated.resize(size, Image.Resampling.LANCZOS)


def encode_jpeg(img: Image.Image, quality: float) -> bytes:
    """Encode img as JPEG; quality on a 0-1 scale maps to PIL's 0-100."""
    pil_quality = max(0, min(100, int(round(quality * 100))))
    buf = io.BytesIO()
    img.save(buf, format="JPEG", quality=pil_quality)
    return buf.getvalue()


def _flatten(img: Image.Image) -> Image.Image:
    """Convert to RGB, compositing any alpha channel onto white."""
    has_alpha = img.mode in ("RGBA", "LA", "PA") or (
        img.mode == "P" and "transparency" in img.info
    )
    if has_alpha:
        rgba = img.convert("RGBA")
        background = Image.new("RGB", rgba.size, BACKGROUND_COLOR)
        background.paste(rgba, mask=rgba.getchannel("A"))
        return background
    if img.mode != "RGB":
        return img.convert("RGB")
    return img
