"""
Turning durable storage keys into URLs a client can use.

Records keep the storage key; the consumable URL is produced only when
a record is presented. One resolver exists per deployment mode and the
mode is picked once at startup, so callers never branch on it:
- public:    static URL under a public base (bucket website, CDN, /assets)
- presigned: time-limited signed URL from the storage backend
- data:      base64 `data:` URI built from the stored bytes
"""

import base64
import logging
import mimetypes
from enum import Enum
from typing import Protocol

from .client import StorageClient

logger = logging.getLogger(__name__)

PRESIGNED_URL_EXPIRY_SECONDS = 10000

_RESOLVED_PREFIXES = ("http://", "https://", "data:")


class URLMode(str, Enum):
    PUBLIC = "public"
    PRESIGNED = "presigned"
    DATA = "data"


class URLResolver(Protocol):
    """Protocol for key -> URL materialization."""

    async def resolve(self, key: str) -> str:
        ...


def is_resolved(value: str) -> bool:
    """True for values that are already URLs rather than storage keys."""
    return value.startswith(_RESOLVED_PREFIXES)


class PublicURLResolver:
    """Joins keys onto a public base URL."""

    def __init__(self, base_url: str) -> None:
        self._base = base_url.rstrip("/")

    async def resolve(self, key: str) -> str:
        if is_resolved(key):
            return key
        return f"{self._base}/{key.lstrip('/')}"


class PresignedURLResolver:
    """Asks the storage backend for a signed GET URL with a fixed expiry."""

    def __init__(
        self,
        storage: StorageClient,
        expiry_seconds: int = PRESIGNED_URL_EXPIRY_SECONDS,
    ) -> None:
        self._storage = storage
        self._expiry = expiry_seconds

    async def resolve(self, key: str) -> str:
        if is_resolved(key):
            return key
        return await self._storage.get_presigned_url(key, expiry_seconds=self._expiry)


class DataURLResolver:
    """
    Inlines the stored bytes as a base64 `data:` URI.

    Meant for thumbnail-sized assets: the whole object is read into
    memory and roughly a third bigger once encoded.
    """

    def __init__(self, storage: StorageClient) -> None:
        self._storage = storage

    async def resolve(self, key: str) -> str:
        if is_resolved(key):
            return key

        data = await self._storage.get_object(key)
        media_type = mimetypes.guess_type(key)[0] or "application/octet-stream"
        encoded = base64.b64encode(data).decode("ascii")

        logger.debug(
            "Built data URL",
            extra={"key": key, "media_type": media_type, "size_bytes": len(data)}
        )

        return f"data:{media_type};base64,{encoded}"


def create_url_resolver(
    mode: str,
    storage: StorageClient,
    public_base_url: str = "",
) -> URLResolver:
    """
    Create the resolver for a deployment's URL mode.

    Args:
        mode: "public", "presigned" or "data"
        storage: Backend used for signing or reading bytes
        public_base_url: Base for public URLs (required for "public")
    """
    url_mode = URLMode(mode)

    if url_mode is URLMode.PUBLIC:
        if not public_base_url:
            raise ValueError("public_base_url is required for public URL mode")
        return PublicURLResolver(public_base_url)

    if url_mode is URLMode.PRESIGNED:
        return PresignedURLResolver(storage)

    return DataURLResolver(storage)
