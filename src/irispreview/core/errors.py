"""Error taxonomy for the Iris Preview service.

Every failure a render request can hit is one of the classes below.  The
message is written for the API caller and is returned verbatim in the
``detail`` field of the JSON error body; ``status_code`` selects the HTTP
status.  None of these errors is retried.
"""


class IrisPreviewError(Exception):
    """Base class for all request failures."""

    status_code: int = 500

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class InvalidInputError(IrisPreviewError):
    """Missing image or an unusable ``pupil_mm`` value."""

    status_code = 400


class UpstreamCallError(IrisPreviewError):
    """The image generator call itself failed (network, auth, quota).

    Attributes:
        detail: Provider-supplied detail, if any.
    """

    status_code = 502

    def __init__(self, message: str, detail: str | None = None) -> None:
        super().__init__(message if not detail else f"{message}: {detail}")
        self.detail = detail


class UpstreamEmptyResponseError(IrisPreviewError):
    """The image generator answered without usable image data."""

    status_code = 502


class DecodeError(IrisPreviewError):
    """The generated image could not be decoded for the overlay."""

    status_code = 500


class CompositeError(IrisPreviewError):
    """Drawing or encoding the pupil overlay failed."""

    status_code = 500
