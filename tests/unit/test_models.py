"""
Unit tests for the video domain models.

These tests verify the core business logic without touching
external services (no API calls, no database, no file system).
"""

import time
from datetime import datetime, timedelta, timezone

import pytest

from src.core.videos.models import ProbeResult, Video


class TestProbeResult:
    """Tests for the ProbeResult value object."""

    def test_resolution_display(self):
        assert ProbeResult(width=1920, height=1080).resolution_display == "1920x1080"

    @pytest.mark.parametrize("width,height", [(0, 1080), (1920, -5)])
    def test_rejects_non_positive_dimensions(self, width, height):
        with pytest.raises(ValueError, match="positive"):
            ProbeResult(width=width, height=height)


class TestVideo:
    """Tests for the Video record."""

    def test_new_video_has_no_assets(self):
        """A draft record carries neither video nor thumbnail."""
        video = Video(user_id="user-1", title="Draft")

        assert not video.has_video
        assert video.thumbnail_url is None

    def test_new_video_timestamps_match(self):
        """A fresh record was last modified when it was created."""
        video = Video(user_id="user-1")

        assert video.updated_at == video.created_at

    def test_explicit_updated_at_is_kept(self):
        created = datetime(2026, 1, 1, tzinfo=timezone.utc)
        updated = created + timedelta(hours=2)

        video = Video(created_at=created, updated_at=updated)

        assert video.updated_at == updated

    def test_ids_are_unique(self):
        assert Video().id != Video().id

    def test_touch_moves_updated_at_forward(self):
        video = Video(user_id="user-1")
        original = video.updated_at

        time.sleep(0.01)
        video.touch()

        assert video.updated_at > original
        assert video.created_at == original

    def test_ownership(self):
        video = Video(user_id="user-1")

        assert video.is_owned_by("user-1")
        assert not video.is_owned_by("user-2")
        assert not video.is_owned_by("")
