"""
Temporary-file lifecycle for uploads in flight.

Uploaded bytes are written to a scratch directory so the media tools
can work on real file paths. Every staged path is request-scoped:
names carry 256 random bits so concurrent uploads never collide, and
a StagingSession deletes everything it tracked when the request is
done, whether processing succeeded or raised.

Usage:
    async with staging.session() as session:
        staged = await session.stage(upload, "mp4", max_bytes=1 << 30)
        output = session.track(remuxer.output_path_for(staged.path))
        ...
    # both files are gone here
"""

import asyncio
import logging
import secrets
import tempfile
from contextlib import asynccontextmanager
from dataclasses import dataclass
from pathlib import Path
from typing import AsyncIterator, Iterable, Optional, Protocol

from src.core.videos.errors import PayloadTooLarge

logger = logging.getLogger(__name__)

CHUNK_SIZE = 1024 * 1024  # 1 MB
RANDOM_NAME_BYTES = 32  # 256 bits


class AsyncReadable(Protocol):
    """Anything with an async read(size), e.g. Starlette's UploadFile."""

    async def read(self, size: int = -1) -> bytes: ...


class StagedSizeExceeded(PayloadTooLarge):
    """Raised when streamed bytes exceed the caller's ceiling."""

    def __init__(self, max_bytes: int) -> None:
        super().__init__(f"Upload exceeds {max_bytes} bytes")
        self.max_bytes = max_bytes


@dataclass(frozen=True)
class StagedFile:
    """A file written to the staging directory."""
    path: Path
    size_bytes: int

    @property
    def name(self) -> str:
        """Random name plus extension, e.g. '3f9c...e1.mp4'."""
        return self.path.name


class StagingManager:
    """Creates staged files and removes them again."""

    def __init__(self, staging_dir: Optional[Path] = None) -> None:
        self._dir = Path(staging_dir) if staging_dir else Path(tempfile.gettempdir())
        self._dir.mkdir(parents=True, exist_ok=True)

    @property
    def directory(self) -> Path:
        return self._dir

    def new_name(self, extension: str) -> str:
        return f"{secrets.token_hex(RANDOM_NAME_BYTES)}.{extension}"

    async def stage(
        self,
        source: AsyncReadable,
        extension: str,
        max_bytes: Optional[int] = None,
    ) -> StagedFile:
        """
        Stream source into a freshly named file.

        A partially written file is removed before the error propagates.

        Raises:
            StagedSizeExceeded: More than max_bytes were read from source
        """
        path = self._dir / self.new_name(extension)
        size = 0

        try:
            with open(path, "wb") as handle:
                while chunk := await source.read(CHUNK_SIZE):
                    size += len(chunk)
                    if max_bytes is not None and size > max_bytes:
                        raise StagedSizeExceeded(max_bytes)
                    await asyncio.to_thread(handle.write, chunk)
        except BaseException:
            self.cleanup([path])
            raise

        logger.debug(
            "Staged upload",
            extra={"path": str(path), "size_bytes": size}
        )

        return StagedFile(path=path, size_bytes=size)

    def cleanup(self, paths: Iterable[Path]) -> None:
        """
        Delete staged paths.

        Missing files are fine (error paths may clean up before anything
        was written) and deletion errors are logged, never raised.
        """
        for path in paths:
            try:
                Path(path).unlink(missing_ok=True)
            except OSError as e:
                logger.warning(
                    "Failed to delete staged file",
                    extra={"path": str(path), "error": str(e)}
                )

    @asynccontextmanager
    async def session(self) -> AsyncIterator["StagingSession"]:
        """Request-scoped staging; tracked paths are removed on exit."""
        session = StagingSession(self)
        try:
            yield session
        finally:
            session.close()


class StagingSession:
    """Tracks every staged path produced while handling one request."""

    def __init__(self, manager: StagingManager) -> None:
        self._manager = manager
        self._paths: list[Path] = []
        self._closed = False

    @property
    def paths(self) -> list[Path]:
        return list(self._paths)

    async def stage(
        self,
        source: AsyncReadable,
        extension: str,
        max_bytes: Optional[int] = None,
    ) -> StagedFile:
        staged = await self._manager.stage(source, extension, max_bytes=max_bytes)
        self.track(staged.path)
        return staged

    def track(self, path: Path) -> Path:
        """Register a derived file (e.g. remux output) for cleanup."""
        path = Path(path)
        if path not in self._paths:
            self._paths.append(path)
        return path

    def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        self._manager.cleanup(self._paths)
        logger.debug(
            "Cleaned up staging session",
            extra={"count": len(self._paths)}
        )
