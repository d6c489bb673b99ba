"""Iris Preview - FastAPI Application.

This module defines the application factory, the module-level ``app``
instance served by uvicorn, all routes, and the ``main()`` CLI entry point.

Architecture
------------
The application is stateless between requests:

- **Configuration** is an :class:`~irispreview.core.config.IrisPreviewConfig`
  built once in :func:`create_app` and passed down explicitly.
- **Image generation** goes through an
  :class:`~irispreview.core.generators.IrisGenerator` strategy chosen at
  startup from the OpenAI client's capabilities.
- **Rendering** (prompt, generator call, pupil overlay) is done by
  :class:`~irispreview.core.iris_service.IrisService`, stored on
  ``app.state`` by the lifespan hook.
- **Uploads** are held in memory for the request and released on every exit
  path by :func:`~irispreview.core.uploads.staged_upload`.
- **Errors** are :class:`~irispreview.core.errors.IrisPreviewError`
  subclasses, turned into ``{"detail": ...}`` JSON responses by one
  exception handler.

Endpoints
---------
========  ==================  ==========================================
Method    Path                Purpose
========  ==================  ==========================================
POST      ``/api/iris``       Render an iris preview from an eye photo
GET       ``/api/health``     Service status and render frame
========  ==================  ==========================================

Usage
-----
CLI (installed entry point)::

    irispreview

Direct invocation::

    python -m irispreview.api.main
"""

from __future__ import annotations

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from typing import Any

from fastapi import FastAPI, File, Form, Request, UploadFile
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, Response

from irispreview import __version__
from irispreview.api.models import ErrorResponse, HealthResponse
from irispreview.core.config import IrisPreviewConfig
from irispreview.core.errors import IrisPreviewError
from irispreview.core.generators import build_openai_client, select_generator
from irispreview.core.geometry import IRIS_REFERENCE_MM
from irispreview.core.iris_service import IrisService, parse_pupil_mode
from irispreview.core.uploads import staged_upload

logger = logging.getLogger(__name__)

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

_ERROR_RESPONSES: dict[int | str, dict[str, Any]] = {
    400: {"model": ErrorResponse, "description": "Missing image or invalid pupil_mm"},
    500: {"model": ErrorResponse, "description": "Overlay decoding or compositing failed"},
    502: {"model": ErrorResponse, "description": "Image generator failed or returned no image"},
}


def create_app(config: IrisPreviewConfig | None = None, client: Any = None) -> FastAPI:
    """Build the FastAPI application.

    Args:
        config: Service configuration.  Loaded from the environment when
            omitted.
        client: OpenAI-compatible client to use instead of building an
            ``AsyncOpenAI`` from ``config``.  Its ``images`` surface decides
            the generator strategy.

    Returns:
        The configured application.
    """
    config = config or IrisPreviewConfig()

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        """Build the generator and render service on startup.

        The OpenAI client is created here (not at import time) and closed on
        shutdown when this hook owns it.
        """
        # --- Startup -------------------------------------------------------
        owned_client = None
        active_client = client
        if active_client is None:
            active_client = owned_client = build_openai_client(config)

        generator = select_generator(active_client, config) if active_client is not None else None
        app.state.iris_service = IrisService(config, generator)
        logger.info(
            f"Iris Preview ready (frame={config.frame_side}px, "
            f"iris_fraction={config.iris_fraction}, "
            f"generator={generator.name if generator else 'none'})"
        )

        yield  # Application runs here.

        # --- Shutdown ------------------------------------------------------
        if owned_client is not None:
            await owned_client.close()

    app = FastAPI(
        title="Iris Preview",
        description="Circular iris renders with millimetre-accurate pupils.",
        version=__version__,
        lifespan=lifespan,
    )
    app.state.config = config

    # The calling backend lives on another domain.  Restrict the origins via
    # IRISPREVIEW_CORS_ALLOW_ORIGINS in production.
    app.add_middleware(
        CORSMiddleware,
        allow_origins=config.cors_allow_origins,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.exception_handler(IrisPreviewError)
    async def handle_iris_error(request: Request, exc: IrisPreviewError) -> JSONResponse:
        """Report a failed request once, as ``{"detail": message}``."""
        logger.error(f"Error in {request.url.path}: {exc.__class__.__name__}: {exc.message}")
        return JSONResponse(status_code=exc.status_code, content={"detail": exc.message})

    @app.post(
        "/api/iris",
        response_class=Response,
        responses={
            200: {"content": {"image/png": {}, "image/jpeg": {}, "image/webp": {}}},
            **_ERROR_RESPONSES,
        },
    )
    async def render_iris(
        request: Request,
        image: UploadFile | None = File(default=None),
        pupil_mode: str | None = Form(default="natural"),
        pupil_mm: str | None = Form(default=None),
    ) -> Response:
        """Render a circular iris preview from an uploaded eye photograph.

        Form fields:

        - ``image`` - the eye photograph (required).
        - ``pupil_mode`` - ``"natural"`` (default) or ``"fixed"``.  Anything
          else is treated as ``"natural"``.
        - ``pupil_mm`` - pupil diameter in millimetres, required and > 0 in
          fixed mode.

        Returns:
            The image bytes: PNG in fixed mode, the generator's own format
            in natural mode.

        Raises:
            InvalidInputError: 400 for a missing image or bad ``pupil_mm``.
            UpstreamCallError: 502 when the generator call fails.
            UpstreamEmptyResponseError: 502 when no image comes back.
            DecodeError: 500 when the generated image cannot be decoded.
            CompositeError: 500 when the pupil overlay fails.
        """
        service: IrisService = request.app.state.iris_service

        async with staged_upload(image) as upload:
            mode = parse_pupil_mode(pupil_mode, pupil_mm)
            result = await service.render(upload, mode)

        return Response(content=result.content, media_type=result.media_type)

    @app.get("/api/health", response_model=HealthResponse)
    async def health(request: Request) -> HealthResponse:
        """Return service status and the render frame in use.

        No credentials are included.
        """
        service: IrisService = request.app.state.iris_service
        generator = service.generator
        return HealthResponse(
            status="ok" if generator is not None else "degraded",
            version=__version__,
            generator=generator.name if generator is not None else None,
            frame_side=service.frame.side,
            iris_fraction=service.frame.iris_fraction,
            iris_reference_mm=IRIS_REFERENCE_MM,
        )

    return app


# ---------------------------------------------------------------------------
# Module-level application for ``uvicorn irispreview.api.main:app``.
# ---------------------------------------------------------------------------
app = create_app()


# ---------------------------------------------------------------------------
# CLI entry point.
# ---------------------------------------------------------------------------


def main() -> None:
    """Launch the uvicorn ASGI server.

    Reads host, port and log level from :class:`IrisPreviewConfig` (which
    loads from ``IRISPREVIEW_SERVER_HOST``, ``IRISPREVIEW_SERVER_PORT`` and
    ``IRISPREVIEW_LOG_LEVEL``).  Defaults to ``0.0.0.0:3000``.

    This function is registered as the ``irispreview`` console script in
    ``pyproject.toml``.
    """
    import uvicorn

    config: IrisPreviewConfig = app.state.config
    logging.basicConfig(level=config.log_level, format=LOG_FORMAT)
    logger.info(f"Starting Iris Preview on http://{config.server_host}:{config.server_port}")

    uvicorn.run(
        "irispreview.api.main:app",
        host=config.server_host,
        port=config.server_port,
        reload=False,
    )


if __name__ == "__main__":
    main()
