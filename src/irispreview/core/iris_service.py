"""Render orchestration: from uploaded eye photo to final iris image.

:class:`IrisService` runs one render request end to end:

1. Compose the generator prompt for the requested pupil mode.
2. Call the image generator strategy (edit or prompt-only).
3. For fixed pupil sizes, compute the pupil radius and composite the black
   disk over the generated image.
4. Return the final image bytes.

Request fields are turned into a :class:`~irispreview.core.geometry.PupilMode`
by :func:`parse_pupil_mode` before the service is called, so an invalid
``pupil_mm`` never reaches the generator.

The service is built once at startup from an explicit
:class:`~irispreview.core.config.IrisPreviewConfig` and holds no per-request
state; concurrent requests share it freely.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass

from fastapi.concurrency import run_in_threadpool

from irispreview.core.config import IrisPreviewConfig
from irispreview.core.errors import InvalidInputError, UpstreamCallError
from irispreview.core.generators import IrisGenerator
from irispreview.core.geometry import (
    PupilMode,
    clamp_pupil_radius,
    compute_pupil_geometry,
    iris_radius_px,
)
from irispreview.core.overlay import OUTPUT_MEDIA_TYPE, detect_media_type, overlay_pupil
from irispreview.core.prompt_builder import build_prompt
from irispreview.core.uploads import StagedUpload

logger = logging.getLogger(__name__)

FIXED_MODE = "fixed"


def parse_pupil_mode(pupil_mode: str | None, pupil_mm: str | None) -> PupilMode:
    """Turn raw request fields into a :class:`PupilMode`.

    Any mode other than ``"fixed"`` (case-insensitive), including a missing
    one, means natural.

    Args:
        pupil_mode: Mode selector from the request.
        pupil_mm: Pupil diameter in millimetres as a decimal string.  Only
            read in fixed mode.

    Returns:
        The parsed pupil mode.

    Raises:
        InvalidInputError: In fixed mode, if ``pupil_mm`` is missing, not a
            number, not finite, or not greater than zero.
    """
    if (pupil_mode or "").strip().lower() != FIXED_MODE:
        return PupilMode.natural()

    try:
        value = float((pupil_mm or "").strip())
    except ValueError:
        raise InvalidInputError("Invalid pupil_mm value") from None

    if not math.isfinite(value) or value <= 0:
        raise InvalidInputError("Invalid pupil_mm value")

    return PupilMode.fixed(value)


@dataclass(frozen=True)
class RenderResult:
    """Final image returned to the caller."""

    content: bytes
    media_type: str
    overlay_applied: bool


class IrisService:
    """Runs render requests against one generator and one render frame.

    Args:
        config: Service configuration (render frame, clamp policy, size).
        generator: Generator strategy, or None when no API key is configured.
    """

    def __init__(self, config: IrisPreviewConfig, generator: IrisGenerator | None) -> None:
        self.config = config
        self.frame = config.frame
        self.generator = generator

    def pupil_radius_px(self, mode: PupilMode) -> float:
        """Pixel radius of the overlay disk for a fixed ``mode``."""
        radius = compute_pupil_geometry(mode.pupil_mm, self.frame).radius_px
        iris_radius = iris_radius_px(self.frame)
        if radius > iris_radius:
            if self.config.clamp_pupil_to_iris:
                logger.warning(
                    f"Pupil radius {radius:.1f}px exceeds iris radius {iris_radius:.1f}px; "
                    "clamping to iris"
                )
                return clamp_pupil_radius(radius, self.frame)
            logger.warning(
                f"Pupil radius {radius:.1f}px exceeds iris radius {iris_radius:.1f}px "
                f"({mode.pupil_mm} mm pupil)"
            )
        return radius

    async def render(self, upload: StagedUpload, mode: PupilMode) -> RenderResult:
        """Produce the final iris image for one request.

        Args:
            upload: The uploaded eye photograph.
            mode: Natural or fixed pupil mode.

        Returns:
            The generated image unchanged for natural mode, labelled with its
            own format, or the PNG with the pupil disk composited for fixed
            mode.

        Raises:
            UpstreamCallError: If the generator is not configured or its call
                fails.
            UpstreamEmptyResponseError: If the generator returned no image.
            DecodeError: If the generated image cannot be decoded.
            CompositeError: If the overlay fails.
        """
        if self.generator is None:
            raise UpstreamCallError(
                "Image generator call failed", detail="OpenAI API key is not configured"
            )

        logger.info(
            f"Rendering iris (mode={mode.kind}"
            + (f", pupil_mm={mode.pupil_mm}" if mode.is_fixed else "")
            + ")"
        )

        prompt = build_prompt(mode)
        image = await self.generator.generate(
            prompt,
            image=upload.data,
            size=self.config.output_size,
            content_type=upload.content_type,
        )

        if not mode.is_fixed:
            return RenderResult(
                content=image, media_type=detect_media_type(image), overlay_applied=False
            )

        radius = self.pupil_radius_px(mode)
        final = await run_in_threadpool(overlay_pupil, image, radius, self.frame.side)
        return RenderResult(content=final, media_type=OUTPUT_MEDIA_TYPE, overlay_applied=True)
