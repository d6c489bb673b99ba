"""Tests for irispreview.core.overlay - pupil disk compositing.

Tests cover:
- The disk is black, centred, and of the requested radius.
- Pixels outside the disk are untouched.
- Output is PNG whatever the input encoding.
- Byte-identical output for identical inputs.
- DecodeError for undecodable or oversized input, CompositeError for drawing
  failures.
- Media type detection for pass-through images.
"""

from __future__ import annotations

import io

import pytest
from PIL import Image

from irispreview.core import overlay
from irispreview.core.errors import CompositeError, DecodeError
from irispreview.core.overlay import detect_media_type, draw_pupil_layer, overlay_pupil

SIDE = 256
BASE_COLOUR = (40, 80, 30)


def _open(data: bytes) -> Image.Image:
    return Image.open(io.BytesIO(data))


class TestOverlayPupil:
    """Test overlay_pupil."""

    def test_centre_is_black(self, generated_png):
        result = _open(overlay_pupil(generated_png, 40.0, SIDE)).convert("RGB")
        assert result.getpixel((SIDE // 2, SIDE // 2)) == (0, 0, 0)

    def test_disk_radius(self, generated_png):
        """Pixels well inside the radius are black, well outside are unchanged."""
        radius = 50.0
        result = _open(overlay_pupil(generated_png, radius, SIDE)).convert("RGB")
        center = SIDE // 2

        assert result.getpixel((center + 45, center)) == (0, 0, 0)
        assert result.getpixel((center, center - 45)) == (0, 0, 0)
        assert result.getpixel((center + 56, center)) == BASE_COLOUR
        assert result.getpixel((center, center + 56)) == BASE_COLOUR

    def test_corners_untouched(self, generated_png):
        result = _open(overlay_pupil(generated_png, 60.0, SIDE)).convert("RGB")
        for xy in [(0, 0), (SIDE - 1, 0), (0, SIDE - 1), (SIDE - 1, SIDE - 1)]:
            assert result.getpixel(xy) == BASE_COLOUR

    def test_output_is_png_size_of_frame(self, generated_png):
        result = _open(overlay_pupil(generated_png, 30.0, SIDE))
        assert result.format == "PNG"
        assert result.size == (SIDE, SIDE)

    def test_jpeg_input_becomes_png(self, png_factory):
        jpeg = png_factory(side=SIDE, colour=BASE_COLOUR, fmt="JPEG")
        result = _open(overlay_pupil(jpeg, 30.0, SIDE))
        assert result.format == "PNG"

    def test_mismatched_input_is_resized_to_frame(self, png_factory):
        small = png_factory(side=128, colour=BASE_COLOUR)
        result = _open(overlay_pupil(small, 30.0, SIDE)).convert("RGB")
        assert result.size == (SIDE, SIDE)
        assert result.getpixel((SIDE // 2, SIDE // 2)) == (0, 0, 0)

    def test_idempotent(self, generated_png):
        """Same inputs give byte-identical output."""
        first = overlay_pupil(generated_png, 45.5, SIDE)
        second = overlay_pupil(generated_png, 45.5, SIDE)
        assert first == second

    def test_input_not_modified(self, generated_png):
        original = bytes(generated_png)
        overlay_pupil(generated_png, 45.5, SIDE)
        assert generated_png == original

    def test_oversized_radius_blacks_out_frame(self, generated_png):
        result = _open(overlay_pupil(generated_png, SIDE * 2, SIDE)).convert("RGB")
        assert result.getpixel((0, 0)) == (0, 0, 0)

    def test_undecodable_input_raises_decode_error(self):
        with pytest.raises(DecodeError):
            overlay_pupil(b"definitely not an image", 30.0, SIDE)

    def test_empty_input_raises_decode_error(self):
        with pytest.raises(DecodeError):
            overlay_pupil(b"", 30.0, SIDE)

    def test_negative_radius_raises_composite_error(self, generated_png):
        with pytest.raises(CompositeError):
            overlay_pupil(generated_png, -10.0, SIDE)

    def test_oversized_image_raises_decode_error(self, generated_png, monkeypatch):
        """Images over Pillow's pixel limit are reported as undecodable."""
        monkeypatch.setattr(Image, "MAX_IMAGE_PIXELS", 1000)
        with pytest.raises(DecodeError, match="could not be decoded"):
            overlay_pupil(generated_png, 30.0, SIDE)

    def test_unexpected_drawing_failure_raises_composite_error(self, generated_png, monkeypatch):
        def _broken_layer(radius_px, frame_side):
            raise RuntimeError("draw failed")

        monkeypatch.setattr(overlay, "draw_pupil_layer", _broken_layer)
        with pytest.raises(CompositeError, match="draw failed"):
            overlay_pupil(generated_png, 30.0, SIDE)


class TestDrawPupilLayer:
    """Test draw_pupil_layer."""

    def test_layer_transparent_outside_disk(self):
        layer = draw_pupil_layer(20.0, 100)
        assert layer.mode == "RGBA"
        assert layer.getpixel((0, 0)) == (0, 0, 0, 0)
        assert layer.getpixel((50, 50)) == (0, 0, 0, 255)


class TestDetectMediaType:
    """Test detect_media_type."""

    def test_png(self, generated_png):
        assert detect_media_type(generated_png) == "image/png"

    @pytest.mark.parametrize("fmt,expected", [("JPEG", "image/jpeg"), ("WEBP", "image/webp")])
    def test_other_formats(self, png_factory, fmt, expected):
        assert detect_media_type(png_factory(side=32, colour=BASE_COLOUR, fmt=fmt)) == expected

    def test_unrecognised_data_defaults_to_png(self):
        assert detect_media_type(b"not an image") == "image/png"
