"""
Object storage client for hosted assets.

Supports three backends behind one protocol:
- S3 (or any S3-compatible store) via boto3, for production
- Local disk under an assets directory, for single-box deployments
- In-memory, for local development and tests

Mock mode stores objects in a dictionary, enabling API testing without
provisioning actual object storage.
"""

import asyncio
import logging
import shutil
from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Protocol

logger = logging.getLogger(__name__)


class StorageError(Exception):
    """Raised when storage operations fail."""
    pass


@dataclass
class StorageConfig:
    """
    Configuration for S3-compatible storage.

    endpoint_url is only needed for non-AWS stores (MinIO, R2, ...).
    """
    bucket_name: str
    region: str = "us-east-1"
    access_key_id: Optional[str] = None
    secret_access_key: Optional[str] = None
    endpoint_url: Optional[str] = None


class StorageClient(Protocol):
    """
    Protocol for object storage operations.

    Using a protocol means tests can provide mocks and we can
    swap storage backends without changing dependent code.
    """

    async def put_file(self, path: Path, key: str, content_type: str) -> None:
        """Upload a local file under key."""
        ...

    async def put_object(self, data: bytes, key: str, content_type: str) -> None:
        """Store raw bytes under key."""
        ...

    async def get_object(self, key: str) -> bytes:
        """Download object data by key."""
        ...

    async def get_presigned_url(self, key: str, expiry_seconds: int = 3600) -> str:
        """Generate temporary download URL."""
        ...


class S3StorageClient:
    """
    S3 object storage client.

    boto3 is synchronous, so every call is pushed to a worker thread
    to keep the event loop free while a large video uploads.
    """

    def __init__(self, config: StorageConfig) -> None:
        """
        Initialize S3 client with boto3.

        We import boto3 here (not at module level) because
        memory and local modes don't need it.
        """
        try:
            import boto3
            from botocore.config import Config
        except ImportError:
            raise ImportError(
                "boto3 is required for S3 storage. Install with: pip install boto3"
            )

        self._config = config

        boto_config = Config(signature_version='s3v4')

        self._s3_client = boto3.client(
            's3',
            endpoint_url=config.endpoint_url,
            aws_access_key_id=config.access_key_id,
            aws_secret_access_key=config.secret_access_key,
            region_name=config.region,
            config=boto_config,
        )

        logger.info(
            "Initialized S3 storage client",
            extra={
                "bucket": config.bucket_name,
                "region": config.region,
                "endpoint": config.endpoint_url,
            }
        )

    async def put_file(self, path: Path, key: str, content_type: str) -> None:
        """
        Upload a file from disk.

        upload_file switches to multipart uploads for large files,
        so a 1 GB video never has to sit in memory.
        """
        try:
            await asyncio.to_thread(
                self._s3_client.upload_file,
                str(path),
                self._config.bucket_name,
                key,
                ExtraArgs={'ContentType': content_type},
            )

            logger.info(
                "Uploaded object",
                extra={"key": key, "content_type": content_type}
            )

        except Exception as e:
            logger.error(
                "Failed to upload object",
                extra={"key": key, "error": str(e)}
            )
            raise StorageError(f"Upload failed: {e}")

    async def put_object(self, data: bytes, key: str, content_type: str) -> None:
        try:
            await asyncio.to_thread(
                self._s3_client.put_object,
                Bucket=self._config.bucket_name,
                Key=key,
                Body=data,
                ContentType=content_type,
            )

            logger.debug(
                "Stored object",
                extra={"key": key, "size_bytes": len(data)}
            )

        except Exception as e:
            logger.error(
                "Failed to store object",
                extra={"key": key, "error": str(e)}
            )
            raise StorageError(f"Upload failed: {e}")

    async def get_object(self, key: str) -> bytes:
        try:
            response = await asyncio.to_thread(
                self._s3_client.get_object,
                Bucket=self._config.bucket_name,
                Key=key,
            )

            return await asyncio.to_thread(response['Body'].read)

        except Exception as e:
            logger.error(
                "Failed to download object",
                extra={"key": key, "error": str(e)}
            )
            raise StorageError(f"Download failed: {e}")

    async def get_presigned_url(self, key: str, expiry_seconds: int = 3600) -> str:
        """
        Generate a temporary download URL.

        Signing is a local computation (no network round trip), so this
        stays on the event loop.
        """
        try:
            return self._s3_client.generate_presigned_url(
                'get_object',
                Params={
                    'Bucket': self._config.bucket_name,
                    'Key': key,
                },
                ExpiresIn=expiry_seconds,
            )

        except Exception as e:
            logger.error(
                "Failed to generate presigned URL",
                extra={"key": key, "error": str(e)}
            )
            raise StorageError(f"Presigned URL generation failed: {e}")


# ---------------------------------------------------------------------------
# Local Disk Storage
# ---------------------------------------------------------------------------

class LocalStorageClient:
    """
    Stores objects as files under an assets directory.

    The key becomes the relative path, so `landscape/abc.mp4` lands in
    `{root}/landscape/abc.mp4` and can be served as a static asset.
    """

    def __init__(self, root: Path) -> None:
        self._root = Path(root).resolve()
        self._root.mkdir(parents=True, exist_ok=True)
        logger.info("Initialized local storage client", extra={"root": str(self._root)})

    def path_for(self, key: str) -> Path:
        path = (self._root / key).resolve()
        if not path.is_relative_to(self._root):
            raise StorageError(f"Key escapes storage root: {key}")
        return path

    async def put_file(self, path: Path, key: str, content_type: str) -> None:
        target = self.path_for(key)
        try:
            target.parent.mkdir(parents=True, exist_ok=True)
            await asyncio.to_thread(shutil.copyfile, path, target)
        except OSError as e:
            logger.error(
                "Failed to write asset",
                extra={"key": key, "error": str(e)}
            )
            raise StorageError(f"Upload failed: {e}")

        logger.info("Wrote asset", extra={"key": key, "path": str(target)})

    async def put_object(self, data: bytes, key: str, content_type: str) -> None:
        target = self.path_for(key)
        try:
            target.parent.mkdir(parents=True, exist_ok=True)
            await asyncio.to_thread(target.write_bytes, data)
        except OSError as e:
            logger.error(
                "Failed to write asset",
                extra={"key": key, "error": str(e)}
            )
            raise StorageError(f"Upload failed: {e}")

    async def get_object(self, key: str) -> bytes:
        target = self.path_for(key)
        try:
            return await asyncio.to_thread(target.read_bytes)
        except OSError as e:
            raise StorageError(f"Asset not found: {key} ({e})")

    async def get_presigned_url(self, key: str, expiry_seconds: int = 3600) -> str:
        raise StorageError("Local storage cannot sign URLs; use public or data URL mode")


# ---------------------------------------------------------------------------
# Mock Storage for Local Development
# ---------------------------------------------------------------------------

class MockStorageClient:
    """
    In-memory storage for local development.

    This mock enables testing the full API flow without provisioning
    real object storage. Objects are stored in a dictionary and
    "URLs" are mock URIs.

    Not suitable for production, but perfect for development and testing.
    """

    def __init__(self) -> None:
        # {key: (data, content_type)}
        self._objects: dict[str, tuple[bytes, str]] = {}
        logger.info("Initialized mock storage client (in-memory)")

    @property
    def keys(self) -> list[str]:
        return list(self._objects)

    def content_type_of(self, key: str) -> Optional[str]:
        entry = self._objects.get(key)
        return entry[1] if entry else None

    async def put_file(self, path: Path, key: str, content_type: str) -> None:
        data = await asyncio.to_thread(Path(path).read_bytes)
        await self.put_object(data, key, content_type)

    async def put_object(self, data: bytes, key: str, content_type: str) -> None:
        self._objects[key] = (data, content_type)

        logger.debug(
            "Stored object in mock storage",
            extra={"key": key, "size_bytes": len(data)}
        )

    async def get_object(self, key: str) -> bytes:
        if key not in self._objects:
            raise StorageError(f"Object not found: {key}")

        return self._objects[key][0]

    async def get_presigned_url(self, key: str, expiry_seconds: int = 3600) -> str:
        """Return a mock URL that still shows the key and expiry."""
        if key not in self._objects:
            raise StorageError(f"Object not found: {key}")

        return f"mock://storage/{key}?expires={expiry_seconds}"


# ---------------------------------------------------------------------------
# Factory Function
# ---------------------------------------------------------------------------

def create_storage_client(
    backend: str = "memory",
    config: Optional[StorageConfig] = None,
    assets_root: Optional[Path] = None,
) -> StorageClient:
    """
    Create storage client based on configuration.

    Args:
        backend: "s3", "local" or "memory"
        config: S3 configuration (required for "s3")
        assets_root: Directory for "local"

    Returns:
        StorageClient implementation
    """
    if backend == "memory":
        return MockStorageClient()

    if backend == "local":
        if assets_root is None:
            raise ValueError("assets_root is required for local storage")
        return LocalStorageClient(assets_root)

    if backend == "s3":
        if config is None:
            raise ValueError("config is required for S3 storage")
        return S3StorageClient(config)

    raise ValueError(f"Unknown storage backend: {backend}")
