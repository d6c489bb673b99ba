"""Pupil overlay rendering.

Draws an exact, pure-black pupil disk at the centre of a generated iris
image.  The generator is only asked to honour the pupil size; this module
enforces it afterwards regardless of what the generator produced.

The disk is drawn on a transparent RGBA layer the size of the frame and
composited over the decoded image with source-over blending, so opaque disk
pixels fully replace the pixels beneath.  The result is always encoded as
PNG, whatever the input encoding was.

If the generated image is not exactly ``frame_side`` square it is resized to
the frame before compositing, so the disk is always centred on the output.
"""

from __future__ import annotations

import io
import logging
import math

from PIL import Image, ImageDraw, UnidentifiedImageError

from irispreview.core.errors import CompositeError, DecodeError

logger = logging.getLogger(__name__)

PUPIL_COLOUR = (0, 0, 0, 255)
OUTPUT_FORMAT = "PNG"
OUTPUT_MEDIA_TYPE = "image/png"

_DECODE_ERRORS = (UnidentifiedImageError, Image.DecompressionBombError, OSError, ValueError)


def _decode(image: bytes) -> Image.Image:
    try:
        decoded = Image.open(io.BytesIO(image))
        decoded.load()
    except _DECODE_ERRORS as e:
        raise DecodeError(f"Generated image could not be decoded: {e}") from e
    return decoded


def detect_media_type(image: bytes) -> str:
    """Return the MIME type of an encoded image, read from its header.

    Only the header is parsed.  Unrecognised data is reported as PNG, the
    format the generator is asked for.
    """
    try:
        with Image.open(io.BytesIO(image)) as header:
            image_format = header.format
    except _DECODE_ERRORS:
        logger.warning(f"Could not identify generated image format; assuming {OUTPUT_MEDIA_TYPE}")
        return OUTPUT_MEDIA_TYPE
    return Image.MIME.get(image_format or "", OUTPUT_MEDIA_TYPE)


def draw_pupil_layer(radius_px: float, frame_side: int) -> Image.Image:
    """Return a transparent ``frame_side`` square layer holding the pupil disk.

    Args:
        radius_px: Disk radius in pixels.
        frame_side: Side of the square layer in pixels.

    Returns:
        RGBA image, fully transparent except for the black disk.
    """
    layer = Image.new("RGBA", (frame_side, frame_side), (0, 0, 0, 0))
    center = frame_side / 2
    bbox = (center - radius_px, center - radius_px, center + radius_px, center + radius_px)
    ImageDraw.Draw(layer).ellipse(bbox, fill=PUPIL_COLOUR)
    return layer


def overlay_pupil(image: bytes, radius_px: float, frame_side: int) -> bytes:
    """Composite a black pupil disk over ``image`` and return PNG bytes.

    Args:
        image: Encoded image returned by the generator.
        radius_px: Pupil radius in pixels, see
            :func:`irispreview.core.geometry.compute_pupil_radius_px`.
        frame_side: Side of the square output frame in pixels.

    Returns:
        PNG-encoded bytes of the composited image.  Identical inputs give
        byte-identical output.

    Raises:
        DecodeError: If ``image`` cannot be decoded.
        CompositeError: If drawing, compositing or encoding fails.
    """
    base = _decode(image)

    if not math.isfinite(radius_px) or radius_px <= 0:
        raise CompositeError(f"Pupil radius must be a positive number, got {radius_px!r}")

    try:
        base = base.convert("RGBA")
        if base.size != (frame_side, frame_side):
            logger.info(
                f"Resizing generated image from {base.size[0]}x{base.size[1]} "
                f"to {frame_side}x{frame_side} before overlay"
            )
            base = base.resize((frame_side, frame_side), Image.Resampling.LANCZOS)

        composed = Image.alpha_composite(base, draw_pupil_layer(radius_px, frame_side))

        buffer = io.BytesIO()
        composed.save(buffer, format=OUTPUT_FORMAT)
    except Exception as e:
        raise CompositeError(f"Failed to composite pupil overlay: {e}") from e

    return buffer.getvalue()
