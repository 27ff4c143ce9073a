"""
Unit tests for orientation classification.

Pure function: no I/O, no fixtures.
"""

import pytest

from src.core.videos.models import Orientation
from src.core.videos.orientation import classify_orientation


class TestClassifyOrientation:
    """Tests for width/height -> orientation."""

    @pytest.mark.parametrize("width,height", [
        (1920, 1080),
        (1280, 720),
        (3840, 2160),
        (854, 480),
    ])
    def test_common_landscape_resolutions(self, width, height):
        """16:9 frames are landscape."""
        assert classify_orientation(width, height) is Orientation.LANDSCAPE

    @pytest.mark.parametrize("width,height", [
        (1080, 1920),
        (720, 1280),
        (2160, 3840),
    ])
    def test_common_portrait_resolutions(self, width, height):
        """9:16 frames are portrait."""
        assert classify_orientation(width, height) is Orientation.PORTRAIT

    @pytest.mark.parametrize("width,height", [
        (800, 800),
        (640, 480),
        (1440, 1080),
        (2560, 1080),
    ])
    def test_other_ratios(self, width, height):
        """Square, 4:3 and ultrawide fall outside both targets."""
        assert classify_orientation(width, height) is Orientation.OTHER

    def test_ratio_just_inside_tolerance_is_landscape(self):
        """1.82 is 0.042 away from 16/9."""
        assert classify_orientation(182, 100) is Orientation.LANDSCAPE

    def test_ratio_just_outside_tolerance_is_other(self):
        """1.84 is 0.062 away from 16/9."""
        assert classify_orientation(184, 100) is Orientation.OTHER

    def test_portrait_tolerance_edges(self):
        """0.60 is inside the portrait band, 0.62 is not."""
        assert classify_orientation(60, 100) is Orientation.PORTRAIT
        assert classify_orientation(62, 100) is Orientation.OTHER

    def test_scaling_does_not_change_result(self):
        """Only the ratio matters, not absolute size."""
        for factor in (1, 2, 10, 37):
            assert classify_orientation(16 * factor, 9 * factor) is Orientation.LANDSCAPE
            assert classify_orientation(9 * factor, 16 * factor) is Orientation.PORTRAIT

    @pytest.mark.parametrize("width,height", [(0, 1080), (1920, 0), (-1, 10)])
    def test_rejects_non_positive_dimensions(self, width, height):
        with pytest.raises(ValueError, match="must be positive"):
            classify_orientation(width, height)


class TestOrientationValues:

    def test_values_are_lowercase_key_prefixes(self):
        assert [o.value for o in Orientation] == ["landscape", "portrait", "other"]
