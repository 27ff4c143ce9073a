"""
Video ingestion logic.

Contains the domain models, orientation classification, error taxonomy
and the upload orchestrator.
"""

from .errors import (
    Forbidden,
    InvalidRequest,
    NotFound,
    PayloadTooLarge,
    Unauthenticated,
    UnsupportedMediaType,
    VideoAPIError,
)
from .ingest import VideoIngestService
from .models import Orientation, ProbeResult, Video
from .orientation import classify_orientation

__all__ = [
    "Forbidden",
    "InvalidRequest",
    "NotFound",
    "PayloadTooLarge",
    "Unauthenticated",
    "UnsupportedMediaType",
    "VideoAPIError",
    "VideoIngestService",
    "Orientation",
    "ProbeResult",
    "Video",
    "classify_orientation",
]
