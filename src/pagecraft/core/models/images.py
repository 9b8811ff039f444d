"""
Module: images

Purpose:
    Provides the SourceImage dataclass - one user-supplied raster that
    becomes exactly one page. Holds the encoded bytes untouched plus the
    user's rotation choice.

Key Functions:
    - SourceImage.rotated(degrees): New instance rotated clockwise
    - SourceImage.from_bytes(name, data, mime): Build with identity from payload
    - MimeType.parse(value): Validate a mime string against the allow-list

Dependencies:
    - dataclasses (std)
    - enum (std)

Used By:
    - builder.images.intake.ImageCollection
    - builder.images.transform
    - builder.controller.PageAssembler
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from enum import Enum
from typing import NamedTuple, Union

VALID_ROTATIONS = (0, 90, 180, 270)


class MimeType(str, Enum):
    """Raster formats accepted for upload."""

    PNG = "image/png"
    JPEG = "image/jpeg"
    WEBP = "image/webp"

    @classmethod
    def parse(cls, value: Union[str, "MimeType"]) -> "MimeType":
        """
        Resolve a mime string to a member of the allow-list.

        Raises:
            ValueError: If value is not png, jpeg or webp
        """
        if isinstance(value, MimeType):
            return value
        normalized = (value or "").strip().lower()
        if normalized == "image/jpg":
            normalized = MimeType.JPEG.value
        try:
            return cls(normalized)
        except ValueError:
            allowed = ", ".join(m.value for m in cls)
            raise ValueError(f"mime_type must be one of {allowed}: {value!r}") from None


class ImageIdentity(NamedTuple):
    """Filename plus byte size; two uploads with the same identity are duplicates."""

    name: str
    size: int


@dataclass(frozen=True)
class SourceImage:
    """
    One uploaded image (immutable).

    Rotation is the only user-editable property and is changed by
    creating a new instance with rotated().

    Attributes:
        identity: (name, size) pair used for duplicate detection
        data: Encoded raster payload (never decoded here)
        mime_type: One of the accepted MimeType values
        rotation: Clockwise rotation in degrees, one of 0/90/180/270

    Invariants:
        - rotation in VALID_ROTATIONS
        - identity.size >= 0

    Example:
        >>> img = SourceImage.from_bytes("scan.png", payload, "image/png")
        >>> img.rotated().rotated().rotation
        180
    """

    identity: ImageIdentity
    data: bytes = field(repr=False)
    mime_type: MimeType
    rotation: int = 0

    def __post_init__(self) -> None:
        """Validate image on construction."""
        if not isinstance(self.identity, ImageIdentity):
            object.__setattr__(self, "identity", ImageIdentity(*self.identity))
        object.__setattr__(self, "mime_type", MimeType.parse(self.mime_type))
        if self.rotation not in VALID_ROTATIONS:
            raise ValueError(f"rotation must be one of {VALID_ROTATIONS}: {self.rotation}")
        if self.identity.size < 0:
            raise ValueError(f"size must be >= 0: {self.identity.size}")

    @classmethod
    def from_bytes(
        cls,
        name: str,
        data: bytes,
        mime_type: Union[str, MimeType],
        *,
        rotation: int = 0,
    ) -> "SourceImage":
        """Create an image whose identity size is the payload length."""
        return cls(
            identity=ImageIdentity(name, len(data)),
            data=bytes(data),
            mime_type=mime_type,
            rotation=rotation,
        )

    @property
    def name(self) -> str:
        return self.identity.name

    @property
    def size(self) -> int:
        return self.identity.size

    @property
    def is_quarter_turned(self) -> bool:
        """True when rotation swaps width and height (90 or 270)."""
        return self.rotation % 180 != 0

    def rotated(self, degrees: int = 90) -> "SourceImage":
        """
        Return a copy rotated clockwise by degrees.

        Rotations compose modulo 360, so rotated(a).rotated(b) equals
        rotated(a + b).

        Raises:
            ValueError: If degrees is not a multiple of 90
        """
        if degrees % 90 != 0:
            raise ValueError(f"degrees must be a multiple of 90: {degrees}")
        return replace(self, rotation=(self.rotation + degrees) % 360)
