"""Pydantic response models for the Iris Preview API.

The render endpoint takes multipart form data and answers with raw image
bytes, so only the JSON side channels are modelled here.

Models
------
ErrorResponse
    Body of every failed request, ``{"detail": "..."}``.
HealthResponse
    Payload for ``GET /api/health``.
"""

from __future__ import annotations

from pydantic import BaseModel, Field


class ErrorResponse(BaseModel):
    """JSON body returned for any failed request.

    Attributes:
        detail: Human-readable failure message.
    """

    detail: str = Field(
        ...,
        description="Human-readable failure message.",
    )


class HealthResponse(BaseModel):
    """Response body for ``GET /api/health``.

    Attributes:
        status: ``"ok"`` when a generator is configured, ``"degraded"`` when
            the service runs without an API key.
        version: Package version string.
        generator: Name of the selected generator strategy (``"edit"`` or
            ``"generate"``), or None when unconfigured.
        frame_side: Output image side length in pixels.
        iris_fraction: Assumed fraction of the frame covered by the iris.
        iris_reference_mm: Real-world iris diameter used for pupil sizing.
    """

    status: str = Field(..., description="'ok' or 'degraded'.")
    version: str = Field(..., description="Package version.")
    generator: str | None = Field(
        default=None,
        description="Selected generator strategy, None when unconfigured.",
    )
    frame_side: int = Field(..., description="Output image side in pixels.")
    iris_fraction: float = Field(..., description="Assumed iris share of the frame side.")
    iris_reference_mm: float = Field(..., description="Real-world iris diameter in mm.")
