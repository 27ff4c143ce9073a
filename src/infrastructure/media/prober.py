"""
Stream geometry extraction using FFprobe.

FFprobe outputs JSON with stream info; we take the first reported
stream and read its width and height. Anything short of two positive
numbers is treated as malformed output rather than guessed around.
"""

import json
import math
import logging
from pathlib import Path
from typing import Any, Optional, Protocol

from src.core.videos.models import ProbeResult

from .process import (
    DEFAULT_TIMEOUT_SECONDS,
    MalformedProbeOutput,
    ProbeFailed,
    ProcessRunner,
    run_process,
)

logger = logging.getLogger(__name__)

FFPROBE_ARGS = ["-v", "error", "-print_format", "json", "-show_streams"]


class MediaProber(Protocol):
    """Protocol for extracting geometry from a staged media file."""

    async def probe(self, path: Path) -> ProbeResult:
        """Return width/height of the first stream."""
        ...


class FFprobeMediaProber:
    """
    Media prober backed by the ffprobe binary.

    The process runner is injectable so tests can simulate exit codes
    and output without ffprobe installed.
    """

    def __init__(
        self,
        ffprobe_path: str = "ffprobe",
        timeout_seconds: Optional[float] = DEFAULT_TIMEOUT_SECONDS,
        runner: ProcessRunner = run_process,
    ) -> None:
        self._ffprobe = ffprobe_path
        self._timeout = timeout_seconds
        self._run = runner

    def build_command(self, path: Path) -> list[str]:
        return [self._ffprobe, *FFPROBE_ARGS, str(path)]

    async def probe(self, path: Path) -> ProbeResult:
        result = await self._run(self.build_command(path), self._timeout)

        if not result.ok:
            logger.error(
                "FFprobe failed",
                extra={
                    "path": str(path),
                    "exit_code": result.exit_code,
                    "stderr": result.stderr_text[:500],
                }
            )
            raise ProbeFailed(
                f"ffprobe exited with code {result.exit_code}: {result.stderr_text}",
                stderr=result.stderr_text,
            )

        geometry = parse_probe_output(result.stdout_text)

        logger.debug(
            "Probed staged file",
            extra={"path": str(path), "resolution": geometry.resolution_display}
        )

        return geometry


def parse_probe_output(output: str) -> ProbeResult:
    """
    Extract geometry from ffprobe's JSON output.

    Raises:
        MalformedProbeOutput: Not JSON, no streams, or missing dimensions
    """
    try:
        data = json.loads(output)
    except json.JSONDecodeError as e:
        raise MalformedProbeOutput(f"Probe output is not valid JSON: {e}")

    streams = data.get("streams") if isinstance(data, dict) else None
    if not isinstance(streams, list) or not streams:
        raise MalformedProbeOutput(f"No stream found in probe output: {output[:200]}")

    first_stream = streams[0]
    if not isinstance(first_stream, dict):
        raise MalformedProbeOutput("First stream entry is not an object")

    width = _dimension(first_stream.get("width"), "width")
    height = _dimension(first_stream.get("height"), "height")

    return ProbeResult(width=width, height=height)


def _dimension(value: Any, name: str) -> int:
    # bool is an int subclass but never a real dimension
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise MalformedProbeOutput(
            f"{name.capitalize()} is not a number but: {type(value).__name__}"
        )
    # json.loads accepts Infinity and NaN
    if isinstance(value, float) and not math.isfinite(value):
        raise MalformedProbeOutput(f"{name.capitalize()} is not finite: {value}")
    if value <= 0 or value != int(value):
        raise MalformedProbeOutput(f"{name.capitalize()} is not a positive integer: {value}")
    return int(value)


class MockMediaProber:
    """
    Mock prober for local development without FFprobe.

    Reports a fixed geometry for every file (1920x1080 by default).
    """

    def __init__(self, width: int = 1920, height: int = 1080) -> None:
        self._result = ProbeResult(width=width, height=height)
        logger.info("Initialized mock media prober")

    async def probe(self, path: Path) -> ProbeResult:
        if not Path(path).exists():
            raise MalformedProbeOutput(f"Staged file does not exist: {path}")
        return self._result


def create_media_prober(
    ffprobe_path: str = "ffprobe",
    timeout_seconds: Optional[float] = DEFAULT_TIMEOUT_SECONDS,
    mock_mode: bool = False,
) -> MediaProber:
    """
    Factory function for media probers.

    Args:
        ffprobe_path: Path to ffprobe binary (default assumes it's in PATH)
        timeout_seconds: Per-invocation time budget
        mock_mode: If True, return mock prober (no FFprobe required)
    """
    if mock_mode:
        return MockMediaProber()

    return FFprobeMediaProber(ffprobe_path=ffprobe_path, timeout_seconds=timeout_seconds)
