"""
Fast-start remuxing using FFmpeg.

Moves the MP4 `moov` atom to the front of the file so browsers can start
playback before the whole file has downloaded. Streams are copied
(`-codec copy`), never re-encoded, and global metadata is preserved.
"""

import asyncio
import logging
import shutil
from pathlib import Path
from typing import Optional, Protocol

from .process import DEFAULT_TIMEOUT_SECONDS, ProcessRunner, RemuxFailed, run_process

logger = logging.getLogger(__name__)

PROCESSED_SUFFIX = ".processed"


def output_path_for(input_path: Path) -> Path:
    """Remux output lives next to its input with a fixed marker suffix."""
    input_path = Path(input_path)
    return input_path.with_name(input_path.name + PROCESSED_SUFFIX)


class FastStartRemuxer(Protocol):
    """Protocol for container rewrites without re-encoding."""

    def output_path_for(self, input_path: Path) -> Path:
        """Path remux() will write to for this input."""
        ...

    async def remux(self, input_path: Path) -> Path:
        """Rewrite input with metadata up front; return the output path."""
        ...


class FFmpegFastStartRemuxer:
    """
    Remuxer backed by the ffmpeg binary.

    The caller owns the output file and is responsible for deleting it.
    """

    def __init__(
        self,
        ffmpeg_path: str = "ffmpeg",
        timeout_seconds: Optional[float] = DEFAULT_TIMEOUT_SECONDS,
        runner: ProcessRunner = run_process,
    ) -> None:
        self._ffmpeg = ffmpeg_path
        self._timeout = timeout_seconds
        self._run = runner

    def output_path_for(self, input_path: Path) -> Path:
        return output_path_for(input_path)

    def build_command(self, input_path: Path, output_path: Path) -> list[str]:
        return [
            self._ffmpeg,
            "-y",
            "-i", str(input_path),
            "-movflags", "faststart",
            "-map_metadata", "0",
            "-codec", "copy",
            "-f", "mp4",
            str(output_path),
        ]

    async def remux(self, input_path: Path) -> Path:
        output_path = self.output_path_for(input_path)

        result = await self._run(self.build_command(input_path, output_path), self._timeout)

        if not result.ok:
            logger.error(
                "FFmpeg remux failed",
                extra={
                    "input": str(input_path),
                    "exit_code": result.exit_code,
                    "stderr": result.stderr_text[:500],
                }
            )
            raise RemuxFailed(f"ffmpeg failed: {result.stderr_text}", stderr=result.stderr_text)

        logger.debug(
            "Remuxed for fast start",
            extra={"input": str(input_path), "output": str(output_path)}
        )

        return output_path


class MockFastStartRemuxer:
    """
    Mock remuxer for local development without FFmpeg.

    Copies the input byte-for-byte to the output path.
    """

    def __init__(self) -> None:
        logger.info("Initialized mock fast-start remuxer")

    def output_path_for(self, input_path: Path) -> Path:
        return output_path_for(input_path)

    async def remux(self, input_path: Path) -> Path:
        output_path = self.output_path_for(input_path)
        await asyncio.to_thread(shutil.copyfile, input_path, output_path)
        return output_path


def create_remuxer(
    ffmpeg_path: str = "ffmpeg",
    timeout_seconds: Optional[float] = DEFAULT_TIMEOUT_SECONDS,
    mock_mode: bool = False,
) -> FastStartRemuxer:
    """
    Factory function for remuxers.

    Args:
        ffmpeg_path: Path to ffmpeg binary
        timeout_seconds: Per-invocation time budget
        mock_mode: If True, return mock remuxer (no FFmpeg required)
    """
    if mock_mode:
        return MockFastStartRemuxer()

    return FFmpegFastStartRemuxer(ffmpeg_path=ffmpeg_path, timeout_seconds=timeout_seconds)
