"""
Object storage integration for hosted assets.

Supports S3 (and S3-compatible stores), local disk, and an in-memory
mock, plus the resolvers that turn storage keys into URLs.
"""

from .client import (
    LocalStorageClient,
    MockStorageClient,
    S3StorageClient,
    StorageClient,
    StorageConfig,
    StorageError,
    create_storage_client,
)
from .urls import (
    PRESIGNED_URL_EXPIRY_SECONDS,
    DataURLResolver,
    PresignedURLResolver,
    PublicURLResolver,
    URLMode,
    URLResolver,
    create_url_resolver,
)

__all__ = [
    "LocalStorageClient",
    "MockStorageClient",
    "S3StorageClient",
    "StorageClient",
    "StorageConfig",
    "StorageError",
    "create_storage_client",
    "PRESIGNED_URL_EXPIRY_SECONDS",
    "DataURLResolver",
    "PresignedURLResolver",
    "PublicURLResolver",
    "URLMode",
    "URLResolver",
    "create_url_resolver",
]
