"""Configuration management for the Iris Preview service.

This module provides the configuration object for the service using Pydantic
Settings.  Values are loaded from environment variables with the
``IRISPREVIEW_`` prefix, allowing deployment-time customisation without code
changes.

Environment Variable Loading
-----------------------------
Configuration values are loaded in the following priority order:
1. Keyword arguments passed to :class:`IrisPreviewConfig`
2. Environment variables (``IRISPREVIEW_*`` prefix)
3. ``.env`` file in the working directory
4. Default values defined in :class:`IrisPreviewConfig`

The OpenAI API key is also accepted from the conventional ``OPENAI_API_KEY``
variable so existing deployments keep working.

Example .env file::

    IRISPREVIEW_OPENAI_API_KEY=sk-...
    IRISPREVIEW_FRAME_SIDE=2048
    IRISPREVIEW_IRIS_FRACTION=0.9
    IRISPREVIEW_SERVER_PORT=3000

Explicit Configuration
----------------------
Unlike a process-wide singleton, the configuration is constructed once by the
application factory (:func:`irispreview.api.main.create_app`) and handed to
the generator factory and the request service.  Nothing under
``irispreview.core`` reads the environment on its own.

Usage Example
-------------
::

    from irispreview.core.config import IrisPreviewConfig

    config = IrisPreviewConfig()
    print(config.frame.side, config.frame.iris_fraction)
"""

from typing import Literal

from pydantic import AliasChoices, Field, SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict

from irispreview.core.geometry import RenderFrame


class IrisPreviewConfig(BaseSettings):
    """Main configuration for the Iris Preview service.

    Attributes
    ----------
    Image Generator Settings:
        openai_api_key : SecretStr | None
            API key for the OpenAI Images API.  When missing the service
            still starts but every render request fails with an upstream
            error.
        openai_model : str
            Image model used for edit and generate calls.
        openai_base_url : str | None
            Optional override of the API base URL (proxies, gateways).
        openai_timeout : float
            Per-call timeout in seconds for the image API.

    Render Frame:
        frame_side : int
            Side length of the square output image in pixels.
        iris_fraction : float
            Assumed fraction of the frame side covered by the generated iris
            disk.  Not measured from the generated image.
        clamp_pupil_to_iris : bool
            Cap the overlay pupil radius at the assumed iris radius.  Off by
            default, so oversized pupils are drawn as requested.

    Server Settings:
        server_host : str
            Bind address for uvicorn.
        server_port : int
            Port for uvicorn.
        cors_allow_origins : list[str]
            Origins allowed to call the API from a browser.
        log_level : str
            Root logging level used by the CLI entry point.

    Examples
    --------
        >>> cfg = IrisPreviewConfig(frame_side=1024, _env_file=None)
        >>> cfg.frame.side
        1024
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_prefix="IRISPREVIEW_",
        case_sensitive=False,
        extra="ignore",
        populate_by_name=True,
    )

    # Image generator settings
    openai_api_key: SecretStr | None = Field(
        default=None,
        validation_alias=AliasChoices(
            "openai_api_key", "IRISPREVIEW_OPENAI_API_KEY", "OPENAI_API_KEY"
        ),
        description="API key for the OpenAI Images API",
    )
    openai_model: str = Field(
        default="gpt-image-1",
        description="Image model used for edit/generate calls",
    )
    openai_base_url: str | None = Field(
        default=None,
        description="Optional API base URL override",
    )
    openai_timeout: float = Field(
        default=120.0,
        description="Per-call timeout for the image API in seconds",
        gt=0,
    )

    # Render frame
    frame_side: int = Field(
        default=2048,
        description="Side length of the square output image in pixels",
        ge=256,
        le=4096,
    )
    iris_fraction: float = Field(
        default=0.9,
        description="Assumed fraction of the frame side covered by the iris",
        gt=0.0,
        le=1.0,
    )
    clamp_pupil_to_iris: bool = Field(
        default=False,
        description="Cap the pupil overlay radius at the assumed iris radius",
    )

    # Server settings
    server_host: str = Field(
        default="0.0.0.0",
        description="Server bind address",
    )
    server_port: int = Field(
        default=3000,
        description="Server port",
        ge=1,
        le=65535,
    )
    cors_allow_origins: list[str] = Field(
        default_factory=lambda: ["*"],
        description="Origins allowed by the CORS middleware",
    )
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = Field(
        default="INFO",
        description="Root logging level",
    )

    @property
    def frame(self) -> RenderFrame:
        """The render frame described by ``frame_side`` and ``iris_fraction``."""
        return RenderFrame(side=self.frame_side, iris_fraction=self.iris_fraction)

    @property
    def output_size(self) -> str:
        """Generator size string, e.g. ``"2048x2048"``."""
        return f"{self.frame_side}x{self.frame_side}"
