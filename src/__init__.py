"""
Reelhouse - a video hosting API.

This package contains the complete application:
- core: Framework-agnostic ingestion logic
- infrastructure: Storage, media tools, database and auth integrations
- api: FastAPI routes and dependencies
- config: Application configuration
"""

__version__ = "0.1.0"
