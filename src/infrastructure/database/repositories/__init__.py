"""
Repository pattern implementations for SQLite.

Repositories translate between domain models and database representations.
"""

from .videos import VideoRepository

__all__ = ["VideoRepository"]
