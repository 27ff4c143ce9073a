"""
Scratch-file staging for uploads in flight.
"""

from .manager import StagedFile, StagedSizeExceeded, StagingManager, StagingSession

__all__ = ["StagedFile", "StagedSizeExceeded", "StagingManager", "StagingSession"]
