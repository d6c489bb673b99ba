"""Iris Preview - standardised circular iris renders from eye photographs."""

__version__ = "0.1.0"

from irispreview.core.config import IrisPreviewConfig
from irispreview.core.geometry import IRIS_REFERENCE_MM, PupilMode, RenderFrame

__all__ = [
    "IRIS_REFERENCE_MM",
    "IrisPreviewConfig",
    "PupilMode",
    "RenderFrame",
]
