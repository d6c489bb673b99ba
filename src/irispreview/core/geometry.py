"""Measurement model: real-world pupil size to pixel geometry.

The service never measures the generated iris.  Instead it assumes the iris
disk spans a fixed fraction of a square frame and that a human iris is
:data:`IRIS_REFERENCE_MM` across.  A pupil diameter in millimetres therefore
maps to pixels as::

    iris_diameter_px  = frame_side * iris_fraction
    pupil_fraction    = pupil_mm / iris_reference_mm
    pupil_diameter_px = iris_diameter_px * pupil_fraction
    pupil_radius_px   = pupil_diameter_px / 2

With the default 2048 px frame and 0.9 iris fraction, a 3.5 mm pupil has a
radius of ``2048 * 0.9 * (3.5 / 12.5) / 2 = 258.048`` px.

Radii are not capped.  A pupil wider than the reference iris yields a disk
larger than the assumed iris (and possibly the frame);
:func:`clamp_pupil_radius` is available for callers that want a cap.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Literal

# Real-world diameter of a human iris.  A physical assumption, never derived
# from input.
IRIS_REFERENCE_MM: float = 12.5


@dataclass(frozen=True)
class RenderFrame:
    """Square output frame and the share of it covered by the iris.

    Attributes:
        side: Side length of the square image in pixels.
        iris_fraction: Fraction of ``side`` covered by the iris diameter,
            in ``(0, 1]``.
    """

    side: int = 2048
    iris_fraction: float = 0.9

    def __post_init__(self) -> None:
        if self.side <= 0:
            raise ValueError(f"Frame side must be positive, got {self.side}")
        if not 0.0 < self.iris_fraction <= 1.0:
            raise ValueError(f"iris_fraction must be in (0, 1], got {self.iris_fraction}")

    @property
    def center(self) -> float:
        return self.side / 2


@dataclass(frozen=True)
class PupilMode:
    """Whether the pupil size is left to the generator or fixed in millimetres.

    Use :meth:`natural` and :meth:`fixed` rather than the constructor.
    """

    kind: Literal["natural", "fixed"] = "natural"
    pupil_mm: float | None = None

    def __post_init__(self) -> None:
        if self.kind == "fixed":
            if self.pupil_mm is None or not _is_positive_finite(self.pupil_mm):
                raise ValueError(f"Fixed pupil mode needs a positive diameter, got {self.pupil_mm}")
        elif self.kind == "natural":
            if self.pupil_mm is not None:
                raise ValueError("Natural pupil mode does not take a diameter")
        else:
            raise ValueError(f"Unknown pupil mode: {self.kind}")

    @classmethod
    def natural(cls) -> PupilMode:
        return cls(kind="natural")

    @classmethod
    def fixed(cls, pupil_mm: float) -> PupilMode:
        return cls(kind="fixed", pupil_mm=float(pupil_mm))

    @property
    def is_fixed(self) -> bool:
        return self.kind == "fixed"


@dataclass(frozen=True)
class PupilGeometry:
    """Pixel size of the pupil disk for a fixed-size request."""

    diameter_px: float
    radius_px: float


def _is_positive_finite(value: float) -> bool:
    return isinstance(value, (int, float)) and math.isfinite(value) and value > 0


def pupil_fraction(pupil_mm: float, iris_reference_mm: float = IRIS_REFERENCE_MM) -> float:
    """Return the pupil diameter as a fraction of the iris diameter."""
    return pupil_mm / iris_reference_mm


def compute_pupil_radius_px(
    pupil_mm: float,
    frame_side: int,
    iris_fraction: float,
    iris_reference_mm: float = IRIS_REFERENCE_MM,
) -> float:
    """Convert a pupil diameter in millimetres to a pixel radius.

    Args:
        pupil_mm: Real-world pupil diameter.  Must be finite and positive.
        frame_side: Side of the square output image in pixels.
        iris_fraction: Fraction of ``frame_side`` covered by the iris, in
            ``(0, 1]``.
        iris_reference_mm: Real-world iris diameter.

    Returns:
        Pupil radius in pixels.  Not capped to the frame.

    Raises:
        ValueError: If any argument is outside its domain.  Request input is
            validated before this point; this is the last guard.
    """
    if not _is_positive_finite(pupil_mm):
        raise ValueError(f"pupil_mm must be a finite positive number, got {pupil_mm!r}")
    if frame_side <= 0:
        raise ValueError(f"frame_side must be positive, got {frame_side!r}")
    if not 0.0 < iris_fraction <= 1.0:
        raise ValueError(f"iris_fraction must be in (0, 1], got {iris_fraction!r}")
    if not _is_positive_finite(iris_reference_mm):
        raise ValueError(f"iris_reference_mm must be positive, got {iris_reference_mm!r}")

    iris_diameter_px = frame_side * iris_fraction
    pupil_diameter_px = iris_diameter_px * pupil_fraction(pupil_mm, iris_reference_mm)
    return pupil_diameter_px / 2


def compute_pupil_geometry(pupil_mm: float, frame: RenderFrame) -> PupilGeometry:
    """Return the pupil disk diameter and radius for ``frame``."""
    radius = compute_pupil_radius_px(pupil_mm, frame.side, frame.iris_fraction)
    return PupilGeometry(diameter_px=radius * 2, radius_px=radius)


def iris_radius_px(frame: RenderFrame) -> float:
    """Radius of the assumed iris disk in pixels."""
    return frame.side * frame.iris_fraction / 2


def clamp_pupil_radius(radius_px: float, frame: RenderFrame) -> float:
    """Cap ``radius_px`` at the assumed iris radius."""
    return min(radius_px, iris_radius_px(frame))
