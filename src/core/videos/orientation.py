"""
Orientation classification from raw pixel dimensions.

Pure function, no I/O. The target ratios and tolerance are fixed:
changing them would silently move existing uploads to a different
storage prefix than new ones.
"""

from .models import Orientation

LANDSCAPE_RATIO = 16 / 9
PORTRAIT_RATIO = 9 / 16
RATIO_TOLERANCE = 0.05


def classify_orientation(width: int, height: int) -> Orientation:
    """
    Map width/height to an orientation category.

    Examples:
        1920x1080 -> LANDSCAPE
        1080x1920 -> PORTRAIT
        800x800   -> OTHER
    """
    if width <= 0 or height <= 0:
        raise ValueError(f"Dimensions must be positive, got {width}x{height}")

    ratio = width / height

    if abs(ratio - LANDSCAPE_RATIO) <= RATIO_TOLERANCE:
        return Orientation.LANDSCAPE
    if abs(ratio - PORTRAIT_RATIO) <= RATIO_TOLERANCE:
        return Orientation.PORTRAIT
    return Orientation.OTHER
