"""Image generator strategies backed by the OpenAI Images API.

The service talks to the image generator through :class:`IrisGenerator`,
which has two implementations:

- :class:`EditCapableGenerator` - image-conditioned edit of the uploaded eye
  photograph (``client.images.edit``).  Preferred.
- :class:`GenerateOnlyGenerator` - prompt-only generation
  (``client.images.generate``).  Fallback for clients without an edit
  endpoint; the upload is ignored.

Which one is used is decided once, when :func:`select_generator` inspects the
client at startup, never per request.

Both strategies ask for base64-encoded output, decode it, and translate SDK
failures into :class:`~irispreview.core.errors.UpstreamCallError`.  A response
without decodable image data raises
:class:`~irispreview.core.errors.UpstreamEmptyResponseError`.

Usage
-----
::

    from irispreview.core.config import IrisPreviewConfig
    from irispreview.core.generators import build_openai_client, select_generator

    config = IrisPreviewConfig()
    generator = select_generator(build_openai_client(config), config)
    png = await generator.generate(prompt, image=upload_bytes, size="2048x2048")
"""

from __future__ import annotations

import base64
import binascii
import logging
from abc import ABC, abstractmethod
from typing import Any

import openai
from openai import AsyncOpenAI

from irispreview.core.config import IrisPreviewConfig
from irispreview.core.errors import UpstreamCallError, UpstreamEmptyResponseError

logger = logging.getLogger(__name__)

# Extensions for the filename handed to the SDK with the uploaded photo.
_UPLOAD_EXTENSIONS = {
    "image/png": "png",
    "image/jpeg": "jpg",
    "image/webp": "webp",
}


def _upload_filename(content_type: str) -> str:
    return f"eye.{_UPLOAD_EXTENSIONS.get(content_type, 'png')}"


def _wants_response_format(model: str) -> bool:
    """DALL-E models need ``response_format``; gpt-image models always return base64."""
    return model.startswith("dall-e")


def extract_image_bytes(response: Any) -> bytes:
    """Pull the first base64 image out of an Images API response.

    Raises:
        UpstreamEmptyResponseError: If the response holds no image or the
            payload is not valid base64.
    """
    data = getattr(response, "data", None) or []
    b64 = getattr(data[0], "b64_json", None) if data else None
    if not b64:
        raise UpstreamEmptyResponseError("No image returned from the image generator")

    try:
        image = base64.b64decode(b64, validate=True)
    except (binascii.Error, ValueError) as e:
        raise UpstreamEmptyResponseError(
            f"Image generator returned undecodable image data: {e}"
        ) from e

    if not image:
        raise UpstreamEmptyResponseError("No image returned from the image generator")
    return image


def _error_detail(error: openai.OpenAIError) -> str:
    body = getattr(error, "body", None)
    if isinstance(body, dict):
        message = body.get("message")
        if not message and isinstance(body.get("error"), dict):
            message = body["error"].get("message")
        if message:
            return str(message)
    return str(error) or error.__class__.__name__


class IrisGenerator(ABC):
    """Abstract image generator used by the render service.

    Attributes
    ----------
    name : str
        Short strategy name reported by the health endpoint.
    """

    name: str = "base"

    def __init__(self, client: AsyncOpenAI, config: IrisPreviewConfig) -> None:
        self.client = client
        self.model = config.openai_model

    def _request_kwargs(self, prompt: str, size: str) -> dict[str, Any]:
        kwargs: dict[str, Any] = {"model": self.model, "prompt": prompt, "size": size}
        if _wants_response_format(self.model):
            kwargs["response_format"] = "b64_json"
        return kwargs

    @abstractmethod
    async def _call(self, prompt: str, image: bytes | None, size: str, content_type: str) -> Any:
        """Issue the SDK call and return the raw response."""

    async def generate(
        self,
        prompt: str,
        image: bytes | None,
        size: str,
        content_type: str = "image/png",
    ) -> bytes:
        """Generate an iris image and return its encoded bytes.

        Args:
            prompt: Composed generator prompt.
            image: Uploaded eye photograph.  Ignored by prompt-only
                strategies.
            size: Output size as ``"{width}x{height}"``.
            content_type: MIME type of ``image``.

        Raises:
            UpstreamCallError: If the SDK call fails.
            UpstreamEmptyResponseError: If no image data came back.
        """
        logger.info(f"Calling image generator ({self.name}, model={self.model}, size={size})")
        try:
            response = await self._call(prompt, image, size, content_type)
        except openai.OpenAIError as e:
            detail = _error_detail(e)
            logger.error(f"Image generator call failed: {detail}")
            raise UpstreamCallError("Image generator call failed", detail=detail) from e
        return extract_image_bytes(response)


class EditCapableGenerator(IrisGenerator):
    """Edits the uploaded eye photograph into an iris preview."""

    name = "edit"

    async def _call(self, prompt: str, image: bytes | None, size: str, content_type: str) -> Any:
        kwargs = self._request_kwargs(prompt, size)
        if image is not None:
            kwargs["image"] = (_upload_filename(content_type), image, content_type)
            return await self.client.images.edit(**kwargs)
        # Nothing to edit; fall back to plain generation for this call.
        logger.warning("Edit generator called without an input image; generating from prompt")
        return await self.client.images.generate(**kwargs)


class GenerateOnlyGenerator(IrisGenerator):
    """Generates an iris preview from the prompt alone."""

    name = "generate"

    async def _call(self, prompt: str, image: bytes | None, size: str, content_type: str) -> Any:
        return await self.client.images.generate(**self._request_kwargs(prompt, size))


def supports_edit(client: Any) -> bool:
    """Return True if ``client`` exposes a callable ``images.edit``."""
    images = getattr(client, "images", None)
    return callable(getattr(images, "edit", None))


def select_generator(client: Any, config: IrisPreviewConfig) -> IrisGenerator:
    """Pick the generator strategy for ``client``.

    Args:
        client: An ``AsyncOpenAI`` client, or anything with the same
            ``images`` surface.
        config: Service configuration.

    Returns:
        :class:`EditCapableGenerator` when the client can edit images,
        otherwise :class:`GenerateOnlyGenerator`.
    """
    generator_cls: type[IrisGenerator] = (
        EditCapableGenerator if supports_edit(client) else GenerateOnlyGenerator
    )
    logger.info(f"Selected image generator strategy: {generator_cls.name}")
    return generator_cls(client, config)


def build_openai_client(config: IrisPreviewConfig) -> AsyncOpenAI | None:
    """Create the async OpenAI client, or None when no API key is configured.

    Retries are disabled: a failed generation is reported, not repeated.
    """
    if config.openai_api_key is None:
        logger.error("OpenAI API key is not set (IRISPREVIEW_OPENAI_API_KEY / OPENAI_API_KEY)")
        return None

    return AsyncOpenAI(
        api_key=config.openai_api_key.get_secret_value(),
        base_url=config.openai_base_url,
        timeout=config.openai_timeout,
        max_retries=0,
    )
