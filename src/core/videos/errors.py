"""
Request-level failures raised by the ingestion pipeline.

Each error carries the HTTP status it maps to so the API layer can
translate it without a lookup table. Tool and storage failures live
with their infrastructure modules and surface as generic server errors.
"""


class VideoAPIError(Exception):
    """Base class for errors that are reported back to the caller."""
    status_code: int = 400

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class InvalidRequest(VideoAPIError):
    """Malformed input: missing id, missing or non-file form field."""
    status_code = 400


class Unauthenticated(VideoAPIError):
    """Missing, malformed, expired or otherwise invalid credential."""
    status_code = 401


class Forbidden(VideoAPIError):
    """Authenticated, but not the owner of the video."""
    status_code = 403


class NotFound(VideoAPIError):
    status_code = 404


class PayloadTooLarge(VideoAPIError):
    status_code = 413


class UnsupportedMediaType(VideoAPIError):
    status_code = 415
