"""
Module: builder.images.intake

Purpose:
    Ordered, user-editable list of uploaded images. Accepts uploads
    (allow-listed formats only, no duplicates, must decode), supports
    rotate / remove / clear / move, and hands an immutable snapshot to
    the page assembler.

Key Classes:
    - ImageCollection: Owner of the image sequence
    - IntakeReport: Outcome of a bulk add

Dependencies:
    - builder.images.transform: probe_image for upload verification

Used By:
    - cli: Builds the collection from files on disk
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Iterable, Iterator, List, Optional, Tuple, Union

from pagecraft.core.models import ImageIdentity, MimeType, SourceImage

from ..errors import DecodeError, DuplicateImageError, UnsupportedImageError
from .transform import probe_image

logger = logging.getLogger(__name__)

# (filename, data) or (filename, data, mime_type)
Upload = Union[Tuple[str, bytes], Tuple[str, bytes, Optional[str]]]


@dataclass
class IntakeReport:
    """
    Result of ImageCollection.add_many().

    Attributes:
        accepted: Images added, in upload order
        skipped: Filenames that were not added
        warnings: One message per skipped upload
    """

    accepted: List[SourceImage] = field(default_factory=list)
    skipped: List[str] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)

    @property
    def accepted_count(self) -> int:
        return len(self.accepted)


class ImageCollection:
    """
    Ordered list of SourceImages backing one document.

    Example:
        >>> images = ImageCollection()
        >>> images.add("a.png", png_bytes)
        >>> images.rotate(0)
        >>> run_input = images.snapshot()
    """

    def __init__(self, images: Iterable[SourceImage] = ()) -> None:
        self._images: List[SourceImage] = list(images)

    def __len__(self) -> int:
        return len(self._images)

    def __iter__(self) -> Iterator[SourceImage]:
        return iter(self.snapshot())

    def __getitem__(self, index: int) -> SourceImage:
        return self._images[index]

    @property
    def total_bytes(self) -> int:
        """Sum of upload sizes in bytes."""
        return sum(img.size for img in self._images)

    @property
    def is_empty(self) -> bool:
        return not self._images

    def contains(self, identity: ImageIdentity) -> bool:
        return any(img.identity == identity for img in self._images)

    def add(self, filename: str, data: bytes, mime_type: Optional[str] = None) -> SourceImage:
        """
        Add an upload at the end of the sequence.

        When mime_type is None it is taken from the decoded format.

        Raises:
            UnsupportedImageError: Mime type is not png, jpeg or webp
            DuplicateImageError: Same filename and size already present
            DecodeError: Bytes are not a readable image
        """
        identity = ImageIdentity(filename, len(data))
        declared = self._allowed_mime(mime_type, filename) if mime_type is not None else None
        if self.contains(identity):
            raise DuplicateImageError(f"Duplicate upload skipped: {filename} ({len(data)} bytes)")

        info = probe_image(data, name=filename)
        if declared is None:
            declared = self._allowed_mime(info.mime_type, filename)

        image = SourceImage(identity=identity, data=bytes(data), mime_type=declared)
        self._images.append(image)
        logger.debug(f"Added {filename}: {info.format} {info.width}x{info.height}, {len(data)} bytes")
        return image

    def add_many(self, uploads: Iterable[Upload]) -> IntakeReport:
        """
        Add several uploads, collecting rejects instead of raising.

        Args:
            uploads: (filename, data) or (filename, data, mime_type) tuples

        Returns:
            IntakeReport listing accepted images and skipped filenames
        """
        report = IntakeReport()
        for upload in uploads:
            filename, data = upload[0], upload[1]
            mime_type = upload[2] if len(upload) > 2 else None
            try:
                report.accepted.append(self.add(filename, data, mime_type))
            except (UnsupportedImageError, DuplicateImageError, DecodeError) as e:
                logger.warning(str(e), extra={"upload_name": filename})
                report.skipped.append(filename)
                report.warnings.append(str(e))
        logger.info(f"Accepted {report.accepted_count} of {report.accepted_count + len(report.skipped)} uploads")
        return report

    def rotate(self, index: int, degrees: int = 90) -> SourceImage:
        """Rotate the image at index clockwise and return the new instance."""
        rotated = self._images[index].rotated(degrees)
        self._images[index] = rotated
        return rotated

    def remove(self, index: int) -> SourceImage:
        return self._images.pop(index)

    def clear(self) -> None:
        self._images.clear()

    def move(self, source: int, destination: int) -> None:
        """
        Move the image at source so it ends up at destination.

        Matches drag-to-reorder: the item is taken out, then inserted
        at destination in the shortened list.
        """
        if source == destination:
            return
        item = self._images.pop(source)
        self._images.insert(destination, item)

    def snapshot(self) -> Tuple[SourceImage, ...]:
        """Immutable copy of the current order for a run."""
        return tuple(self._images)

    @staticmethod
    def _allowed_mime(mime_type: Optional[str], filename: str) -> MimeType:
        try:
            return MimeType.parse(mime_type or "")
        except ValueError:
            raise UnsupportedImageError(
                f"Unsupported image type for {filename}: {mime_type or 'unknown'}"
            ) from None
