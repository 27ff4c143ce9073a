"""
Metadata persistence for video records (SQLite).
"""

from .client import create_database_connection, initialize_schema
from .repositories import VideoRepository

__all__ = ["create_database_connection", "initialize_schema", "VideoRepository"]
