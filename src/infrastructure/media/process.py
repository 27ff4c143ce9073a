"""
Child process execution for external media tools.

FFprobe and FFmpeg are invoked as child processes and awaited on the
event loop, so a long remux never blocks other requests. Every
invocation goes through run_process, which:
- captures stdout and stderr completely before the exit status is inspected
- enforces a timeout (a hung tool is killed and reaped, not leaked)
- returns one ProcessResult instead of live stream handles
"""

import asyncio
import logging
from dataclasses import dataclass
from typing import Awaitable, Callable, Optional, Sequence

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT_SECONDS = 300.0


class MediaToolError(Exception):
    """Raised when an external media tool cannot produce a usable result."""

    def __init__(self, message: str, stderr: str = "") -> None:
        super().__init__(message)
        self.stderr = stderr


class ProbeFailed(MediaToolError):
    """The probe process exited non-zero."""
    pass


class MalformedProbeOutput(MediaToolError):
    """The probe process succeeded but its output is unusable."""
    pass


class RemuxFailed(MediaToolError):
    """The remux process exited non-zero."""
    pass


class MediaToolTimeout(MediaToolError):
    """The child process exceeded its time budget and was killed."""
    pass


@dataclass(frozen=True)
class ProcessResult:
    """Completed child process with fully drained output streams."""
    exit_code: int
    stdout: bytes
    stderr: bytes

    @property
    def ok(self) -> bool:
        return self.exit_code == 0

    @property
    def stdout_text(self) -> str:
        return self.stdout.decode("utf-8", errors="replace")

    @property
    def stderr_text(self) -> str:
        return self.stderr.decode("utf-8", errors="replace")


ProcessRunner = Callable[[Sequence[str], Optional[float]], Awaitable[ProcessResult]]


async def run_process(
    args: Sequence[str],
    timeout: Optional[float] = DEFAULT_TIMEOUT_SECONDS,
) -> ProcessResult:
    """
    Run a command to completion and return its exit code and output.

    Args:
        args: Program followed by its arguments (no shell involved)
        timeout: Seconds to wait before killing the child; None waits forever

    Raises:
        MediaToolError: The program could not be started
        MediaToolTimeout: The program did not finish within timeout
    """
    program = args[0]

    try:
        proc = await asyncio.create_subprocess_exec(
            *args,
            stdin=asyncio.subprocess.DEVNULL,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.PIPE,
        )
    except (FileNotFoundError, PermissionError) as e:
        logger.error(
            "Failed to start media tool",
            extra={"program": program, "error": str(e)}
        )
        raise MediaToolError(f"Could not start {program}: {e}")

    try:
        stdout, stderr = await asyncio.wait_for(proc.communicate(), timeout=timeout)
    except asyncio.TimeoutError:
        proc.kill()
        # reap the child and drain whatever it left in the pipes
        _, stderr = await proc.communicate()
        logger.error(
            "Media tool timed out",
            extra={"program": program, "timeout_seconds": timeout}
        )
        raise MediaToolTimeout(
            f"{program} did not finish within {timeout} seconds",
            stderr=(stderr or b"").decode("utf-8", errors="replace"),
        )
    except BaseException:
        # cancelled: the child must not outlive the request that started it
        if proc.returncode is None:
            proc.kill()
            await asyncio.shield(proc.wait())
        logger.warning("Media tool cancelled", extra={"program": program})
        raise

    result = ProcessResult(
        exit_code=proc.returncode if proc.returncode is not None else -1,
        stdout=stdout or b"",
        stderr=stderr or b"",
    )

    logger.debug(
        "Media tool finished",
        extra={"program": program, "exit_code": result.exit_code}
    )

    return result
