"""Core functionality for iris preview rendering.

- **geometry**: Millimetre to pixel conversion for the pupil disk
- **prompt_builder**: Generator prompt for natural and fixed pupils
- **overlay**: Exact black pupil disk composited over the generated image
- **generators**: Edit and generate-only strategies over the OpenAI Images API
- **iris_service**: Request orchestration
- **uploads**: Scoped in-memory staging of uploaded photographs
- **errors**: Failure taxonomy mapped to HTTP statuses
- **config**: Pydantic Settings configuration

Nothing in this package reads process-wide state; the configuration is
built by the application factory and passed in.
"""

from irispreview.core.config import IrisPreviewConfig
from irispreview.core.errors import (
    CompositeError,
    DecodeError,
    InvalidInputError,
    IrisPreviewError,
    UpstreamCallError,
    UpstreamEmptyResponseError,
)
from irispreview.core.geometry import (
    IRIS_REFERENCE_MM,
    PupilGeometry,
    PupilMode,
    RenderFrame,
    compute_pupil_radius_px,
)

__all__ = [
    "IRIS_REFERENCE_MM",
    "CompositeError",
    "DecodeError",
    "InvalidInputError",
    "IrisPreviewConfig",
    "IrisPreviewError",
    "PupilGeometry",
    "PupilMode",
    "RenderFrame",
    "UpstreamCallError",
    "UpstreamEmptyResponseError",
    "compute_pupil_radius_px",
]
