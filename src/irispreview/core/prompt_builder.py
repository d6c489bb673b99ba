"""Prompt composition for iris preview generation.

The prompt sent to the image generator is built from three sections,
separated by blank lines:

Prompt Structure::

    [Fixed: base instruction block - framing, background, texture, geometry]

    [Pupil section - natural or fixed-size variant]

    [Fixed: closing note - no extra shapes or markings]

Pupil Variants
--------------
**natural**
    The generator picks a natural pupil size for normal indoor lighting.

**fixed**
    The generator is told the iris is 12.5 mm across, the requested pupil
    diameter in millimetres, and the resulting fraction of the iris
    diameter.  This only nudges the generator; the exact pupil is drawn
    afterwards by :mod:`irispreview.core.overlay`.

The only values interpolated into the prompt are the validated pupil
diameter and its derived fraction, both floats.

Usage
-----
::

    from irispreview.core.geometry import PupilMode

    prompt = build_prompt(PupilMode.fixed(3.5))
"""

from __future__ import annotations

from decimal import Decimal

from irispreview.core.geometry import IRIS_REFERENCE_MM, PupilMode, pupil_fraction

# ---------------------------------------------------------------------------
# Fixed sections.
# Constants rather than configuration: they define what an iris preview is.
# ---------------------------------------------------------------------------

BASE_INSTRUCTION = """\
You are editing an eye photograph into a clean iris preview.

Goal:
- Output a single, perfectly centered CIRCULAR iris on a pure black (#000000) background.
- No eyelids, eyelashes, skin, sclera, or surrounding face at all.
- The iris should fill most of the frame but keep a thin margin of pure black background.
- Preserve detailed iris texture (crypts, striations, radial lines).
- Keep a crisp limbal ring (dark outer border of the iris).
- Remove or suppress all reflections, catchlights, and glints. Do NOT add new reflections.
- No text, no logos, no borders.

Geometry:
- The iris must be perfectly circular and exactly centered in the square image.
- Background must be pure #000000 with no gradient, no vignette."""

_PUPIL_NATURAL = """\
Pupil:
- Pupil is circular and pure black.
- Use a natural-looking pupil size for normal indoor lighting."""

CLOSING_NOTE = (
    "Note: Do not add any extra shapes or markings. Only the iris and the pupil on black."
)


def _format_mm(value: float) -> str:
    """Render a millimetre value exactly as given, in plain decimal notation.

    ``4.0`` becomes ``4``, ``3.14159`` stays ``3.14159`` and ``12345.6`` is
    never written as ``1.235e+04``.
    """
    text = format(Decimal(repr(float(value))), "f")
    if "." in text:
        text = text.rstrip("0").rstrip(".")
    return text


def _pupil_fixed(pupil_mm: float) -> str:
    mm = _format_mm(pupil_mm)
    reference = _format_mm(IRIS_REFERENCE_MM)
    fraction = pupil_fraction(pupil_mm)
    return (
        "Pupil:\n"
        "- Pupil is circular and pure black.\n"
        f"- The iris corresponds to {reference} mm in real life.\n"
        f"- The pupil diameter in the final image should correspond to approximately "
        f"{mm} mm in real life.\n"
        f"- This means the pupil diameter is about {fraction:.3f} "
        f"({mm} / {reference}) of the iris diameter.\n"
        "- Keep it anatomically realistic, exactly centered."
    )


def build_pupil_section(mode: PupilMode) -> str:
    """Return the pupil instruction for ``mode``."""
    if mode.is_fixed:
        return _pupil_fixed(mode.pupil_mm)
    return _PUPIL_NATURAL


def build_prompt(mode: PupilMode) -> str:
    """Compile the full generator prompt for ``mode``.

    Args:
        mode: Natural or fixed pupil mode.  Fixed modes carry a validated
            positive diameter.

    Returns:
        The base instruction block, the pupil section and the closing note
        joined with double newlines.
    """
    parts = [BASE_INSTRUCTION, build_pupil_section(mode), CLOSING_NOTE]
    return "\n\n".join(parts)
