"""
External media tooling: FFprobe for geometry, FFmpeg for fast-start remuxing.

Both run as awaited child processes via run_process.
"""

from .process import (
    MalformedProbeOutput,
    MediaToolError,
    MediaToolTimeout,
    ProbeFailed,
    ProcessResult,
    RemuxFailed,
    run_process,
)
from .prober import FFprobeMediaProber, MediaProber, MockMediaProber, create_media_prober
from .remuxer import FastStartRemuxer, FFmpegFastStartRemuxer, MockFastStartRemuxer, create_remuxer

__all__ = [
    "MalformedProbeOutput",
    "MediaToolError",
    "MediaToolTimeout",
    "ProbeFailed",
    "ProcessResult",
    "RemuxFailed",
    "run_process",
    "FFprobeMediaProber",
    "MediaProber",
    "MockMediaProber",
    "create_media_prober",
    "FastStartRemuxer",
    "FFmpegFastStartRemuxer",
    "MockFastStartRemuxer",
    "create_remuxer",
]
