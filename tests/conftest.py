"""Shared pytest fixtures for Iris Preview tests."""

import base64
import io
import shutil
import tempfile
from pathlib import Path
from types import SimpleNamespace
from typing import Callable, Generator

import pytest
from PIL import Image

from irispreview.core.config import IrisPreviewConfig

# Small frame so overlay tests stay fast.
TEST_FRAME_SIDE = 256


class FakeImagesAPI:
    """Stand-in for ``AsyncOpenAI().images`` without an edit endpoint.

    Records every call and answers with ``payload`` as ``b64_json``, or
    raises ``error`` when one is given.
    """

    def __init__(self, payload: str | None = None, error: Exception | None = None) -> None:
        self.payload = payload
        self.error = error
        self.calls: list[tuple[str, dict]] = []

    async def _respond(self, method: str, kwargs: dict) -> SimpleNamespace:
        self.calls.append((method, kwargs))
        if self.error is not None:
            raise self.error
        if self.payload is None:
            return SimpleNamespace(data=[])
        return SimpleNamespace(data=[SimpleNamespace(b64_json=self.payload)])

    async def generate(self, **kwargs) -> SimpleNamespace:
        return await self._respond("generate", kwargs)


class FakeEditImagesAPI(FakeImagesAPI):
    """Stand-in for ``AsyncOpenAI().images`` with an edit endpoint."""

    async def edit(self, **kwargs) -> SimpleNamespace:
        return await self._respond("edit", kwargs)


class FakeClient:
    """Minimal OpenAI client exposing only ``images``."""

    def __init__(self, images: FakeImagesAPI) -> None:
        self.images = images


def make_png(
    side: int = TEST_FRAME_SIDE,
    colour: tuple[int, int, int] = (90, 120, 160),
    fmt: str = "PNG",
) -> bytes:
    """Encode a solid-colour square image."""
    buffer = io.BytesIO()
    Image.new("RGB", (side, side), colour).save(buffer, format=fmt)
    return buffer.getvalue()


@pytest.fixture
def temp_dir() -> Generator[Path, None, None]:
    """Create a temporary directory for test files.

    Yields:
        Path to temporary directory

    Cleanup:
        Directory is removed after test completes
    """
    temp_path = Path(tempfile.mkdtemp())
    try:
        yield temp_path
    finally:
        shutil.rmtree(temp_path, ignore_errors=True)


@pytest.fixture
def test_config(monkeypatch) -> IrisPreviewConfig:
    """Create a test configuration isolated from the environment.

    Returns:
        IrisPreviewConfig with a dummy key and a small frame
    """
    monkeypatch.delenv("OPENAI_API_KEY", raising=False)
    monkeypatch.delenv("IRISPREVIEW_OPENAI_API_KEY", raising=False)
    return IrisPreviewConfig(
        _env_file=None,
        openai_api_key="sk-test",
        frame_side=TEST_FRAME_SIDE,
        iris_fraction=0.9,
    )


@pytest.fixture
def png_factory() -> Callable[..., bytes]:
    """Factory for encoded test images."""
    return make_png


@pytest.fixture
def generated_png() -> bytes:
    """A generator result the size of the test frame."""
    return make_png(colour=(40, 80, 30))


@pytest.fixture
def generated_b64(generated_png: bytes) -> str:
    """``generated_png`` as the API would return it."""
    return base64.b64encode(generated_png).decode("ascii")


@pytest.fixture
def eye_photo() -> bytes:
    """An uploaded eye photograph (content is irrelevant to the fakes)."""
    return make_png(side=64, colour=(200, 180, 170), fmt="JPEG")


@pytest.fixture
def client_factory(generated_b64: str) -> Callable[..., FakeClient]:
    """Factory for fake clients.

    Keyword Args:
        payload: ``b64_json`` to return (defaults to ``generated_b64``; pass
            None for an empty response).
        error: Exception raised by every call.
        edit: Whether the images API exposes ``edit``.
    """
    _default = object()

    def _make(payload=_default, error: Exception | None = None, edit: bool = True) -> FakeClient:
        images_cls = FakeEditImagesAPI if edit else FakeImagesAPI
        chosen = generated_b64 if payload is _default else payload
        return FakeClient(images_cls(payload=chosen, error=error))

    return _make
