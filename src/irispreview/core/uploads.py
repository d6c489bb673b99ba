"""Scoped staging of uploaded eye photographs.

FastAPI spools multipart uploads to a temporary file.  :func:`staged_upload`
reads that file into memory and closes it when the ``async with`` block
exits, whether the request succeeded or failed, so no temporary file outlives
its request.

Usage
-----
::

    async with staged_upload(image) as upload:
        result = await service.render(upload, mode)
"""

from __future__ import annotations

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from dataclasses import dataclass

from fastapi import UploadFile

from irispreview.core.errors import InvalidInputError

logger = logging.getLogger(__name__)

DEFAULT_CONTENT_TYPE = "image/png"


@dataclass(frozen=True)
class StagedUpload:
    """An uploaded image held in memory for the duration of one request."""

    data: bytes
    content_type: str = DEFAULT_CONTENT_TYPE
    filename: str | None = None


@asynccontextmanager
async def staged_upload(upload: UploadFile | None) -> AsyncIterator[StagedUpload]:
    """Read ``upload`` into memory and release it on exit.

    Args:
        upload: The multipart file, or None when the field was missing.

    Yields:
        The uploaded bytes with their declared content type.

    Raises:
        InvalidInputError: If no image was uploaded or it is empty.
    """
    if upload is None:
        raise InvalidInputError("No image uploaded")

    try:
        data = await upload.read()
        if not data:
            raise InvalidInputError("No image uploaded")

        content_type = upload.content_type or DEFAULT_CONTENT_TYPE
        if not content_type.startswith("image/"):
            content_type = DEFAULT_CONTENT_TYPE

        yield StagedUpload(data=data, content_type=content_type, filename=upload.filename)
    finally:
        await upload.close()
        logger.debug(f"Released upload {upload.filename!r}")
