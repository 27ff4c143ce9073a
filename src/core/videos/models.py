"""
Domain models for hosted videos.

These models represent the core business concepts. They have no dependencies
on external frameworks, databases, or APIs. A video record should be
expressible without knowing how it's stored or transmitted.
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Optional
from uuid import uuid4


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Orientation(Enum):
    """
    Coarse aspect-ratio category of a video.

    Used only to namespace storage keys, so players and CDNs can
    treat vertical and horizontal footage differently.
    """
    LANDSCAPE = "landscape"
    PORTRAIT = "portrait"
    OTHER = "other"


@dataclass(frozen=True)
class ProbeResult:
    """Stream geometry reported by the media prober."""
    width: int
    height: int

    def __post_init__(self) -> None:
        if self.width <= 0 or self.height <= 0:
            raise ValueError("Probe dimensions must be positive")

    @property
    def resolution_display(self) -> str:
        return f"{self.width}x{self.height}"


@dataclass
class Video:
    """
    A hosted video record.

    `video_url` and `thumbnail_url` hold durable storage keys once the
    corresponding asset has been placed. They are turned into consumable
    URLs only when the record is presented to a client.
    """
    id: str = field(default_factory=lambda: str(uuid4()))
    user_id: str = ""
    title: str = ""
    description: str = ""
    video_url: Optional[str] = None
    thumbnail_url: Optional[str] = None
    created_at: datetime = field(default_factory=utcnow)
    updated_at: Optional[datetime] = None

    def __post_init__(self) -> None:
        # a new record is created and last modified at the same instant
        if self.updated_at is None:
            self.updated_at = self.created_at

    def touch(self) -> None:
        """Mark the record as modified."""
        self.updated_at = utcnow()

    def is_owned_by(self, user_id: str) -> bool:
        return self.user_id == user_id

    @property
    def has_video(self) -> bool:
        return self.video_url is not None
