"""
Unit Tests for SourceImage and MimeType

Tests for the immutable upload model and its rotation action.
"""

import itertools

import pytest

from pagecraft.core.models import ImageIdentity, MimeType, SourceImage, VALID_ROTATIONS


class TestMimeType:
    """Tests for MimeType.parse()."""

    @pytest.mark.parametrize("value,expected", [
        ("image/png", MimeType.PNG),
        ("image/jpeg", MimeType.JPEG),
        ("IMAGE/JPEG", MimeType.JPEG),
        ("image/jpg", MimeType.JPEG),
        ("image/webp", MimeType.WEBP),
        (MimeType.PNG, MimeType.PNG),
    ])
    def test_parse_when_allowed_then_returns_member(self, value, expected):
        assert MimeType.parse(value) is expected

    @pytest.mark.parametrize("value", ["image/gif", "image/tiff", "text/plain", ""])
    def test_parse_when_not_allowed_then_raises_error(self, value):
        with pytest.raises(ValueError, match="mime_type must be one of"):
            MimeType.parse(value)


class TestSourceImage:
    """Tests for SourceImage dataclass."""

    # ─────────────────────────────────────────────────────────────────────────
    # Constructor Tests
    # ─────────────────────────────────────────────────────────────────────────

    def test_from_bytes_when_valid_then_identity_uses_payload_size(self):
        """Identity size should be the byte length of the payload."""
        img = SourceImage.from_bytes("a.png", b"12345", "image/png")

        assert img.identity == ImageIdentity("a.png", 5)
        assert img.name == "a.png"
        assert img.size == 5
        assert img.mime_type is MimeType.PNG
        assert img.rotation == 0

    def test_init_when_identity_is_plain_tuple_then_coerced(self):
        img = SourceImage(identity=("a.png", 3), data=b"abc", mime_type="image/png")
        assert isinstance(img.identity, ImageIdentity)

    def test_init_when_rotation_invalid_then_raises_error(self):
        with pytest.raises(ValueError, match="rotation must be one of"):
            SourceImage.from_bytes("a.png", b"x", "image/png", rotation=45)

    def test_init_when_mime_not_allowed_then_raises_error(self):
        with pytest.raises(ValueError, match="mime_type must be one of"):
            SourceImage.from_bytes("a.gif", b"x", "image/gif")

    def test_init_when_frozen_then_cannot_mutate(self):
        img = SourceImage.from_bytes("a.png", b"x", "image/png")
        with pytest.raises(AttributeError):
            img.rotation = 90

    # ─────────────────────────────────────────────────────────────────────────
    # Rotation Tests
    # ─────────────────────────────────────────────────────────────────────────

    def test_rotated_when_default_then_adds_quarter_turn(self):
        img = SourceImage.from_bytes("a.png", b"x", "image/png")
        assert img.rotated().rotation == 90

    def test_rotated_when_full_turn_then_wraps_to_zero(self):
        img = SourceImage.from_bytes("a.png", b"x", "image/png", rotation=270)
        assert img.rotated().rotation == 0

    def test_rotated_when_called_then_original_unchanged(self):
        img = SourceImage.from_bytes("a.png", b"x", "image/png")
        img.rotated()
        assert img.rotation == 0

    @pytest.mark.parametrize("a,b", list(itertools.product(VALID_ROTATIONS, repeat=2)))
    def test_rotated_when_applied_twice_then_composes_modulo_360(self, a, b):
        """Rotating by a then b equals rotating by (a + b) mod 360."""
        img = SourceImage.from_bytes("a.png", b"x", "image/png")
        assert img.rotated(a).rotated(b).rotation == (a + b) % 360

    def test_rotated_when_not_multiple_of_90_then_raises_error(self):
        img = SourceImage.from_bytes("a.png", b"x", "image/png")
        with pytest.raises(ValueError, match="multiple of 90"):
            img.rotated(30)

    @pytest.mark.parametrize("rotation,expected", [(0, False), (90, True), (180, False), (270, True)])
    def test_is_quarter_turned_when_rotation_then_matches_axis_swap(self, rotation, expected):
        img = SourceImage.from_bytes("a.png", b"x", "image/png", rotation=rotation)
        assert img.is_quarter_turned is expected

    def test_repr_when_large_payload_then_omits_bytes(self):
        img = SourceImage.from_bytes("a.png", b"\x00" * 1000, "image/png")
        assert "\\x00" not in repr(img)
