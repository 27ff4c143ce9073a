"""
Unit tests for the FFprobe/FFmpeg wrappers.

The probe and remux wrappers take an injectable process runner, so
exit codes and output are simulated without the real binaries. The
process runner itself is exercised against the Python interpreter.
"""

import asyncio
import json
import sys
from pathlib import Path

import pytest

from src.core.videos.models import ProbeResult
from src.infrastructure.media.process import (
    MalformedProbeOutput,
    MediaToolError,
    MediaToolTimeout,
    ProbeFailed,
    ProcessResult,
    RemuxFailed,
    run_process,
)
from src.infrastructure.media.prober import (
    FFprobeMediaProber,
    MockMediaProber,
    create_media_prober,
    parse_probe_output,
)
from src.infrastructure.media.remuxer import (
    FFmpegFastStartRemuxer,
    MockFastStartRemuxer,
    create_remuxer,
    output_path_for,
)


class FakeRunner:
    """Records commands and replies with a canned result."""

    def __init__(self, exit_code=0, stdout=b"", stderr=b""):
        self.result = ProcessResult(exit_code=exit_code, stdout=stdout, stderr=stderr)
        self.calls = []

    async def __call__(self, args, timeout):
        self.calls.append((list(args), timeout))
        return self.result


def probe_json(*streams) -> bytes:
    return json.dumps({"streams": list(streams)}).encode()


# ---------------------------------------------------------------------------
# Probe Output Parsing
# ---------------------------------------------------------------------------

class TestParseProbeOutput:
    """Tests for reading geometry out of ffprobe JSON."""

    def test_reads_first_stream(self):
        output = json.dumps({"streams": [
            {"codec_type": "video", "width": 1080, "height": 1920},
            {"codec_type": "audio"},
        ]})

        assert parse_probe_output(output) == ProbeResult(width=1080, height=1920)

    def test_non_finite_literals_are_malformed(self):
        """json.loads accepts bare Infinity and NaN."""
        for literal in ("Infinity", "NaN", "-Infinity"):
            output = '{"streams": [{"width": ' + literal + ', "height": 1080}]}'
            with pytest.raises(MalformedProbeOutput):
                parse_probe_output(output)

    def test_accepts_integral_floats(self):
        output = json.dumps({"streams": [{"width": 1280.0, "height": 720.0}]})
        assert parse_probe_output(output) == ProbeResult(width=1280, height=720)

    @pytest.mark.parametrize("output", [
        "not json",
        json.dumps({}),
        json.dumps({"streams": []}),
        json.dumps({"streams": "nope"}),
        json.dumps([1, 2]),
    ])
    def test_missing_streams_is_malformed(self, output):
        with pytest.raises(MalformedProbeOutput):
            parse_probe_output(output)

    @pytest.mark.parametrize("stream", [
        {"height": 1080},
        {"width": "1920", "height": 1080},
        {"width": 1920, "height": None},
        {"width": True, "height": 1080},
        {"width": 0, "height": 1080},
        {"width": 1920, "height": -1080},
        {"width": 1920.5, "height": 1080},
        {"width": float("inf"), "height": 1080},
        {"width": 1920, "height": float("nan")},
    ])
    def test_bad_dimensions_are_malformed(self, stream):
        with pytest.raises(MalformedProbeOutput):
            parse_probe_output(json.dumps({"streams": [stream]}))


# ---------------------------------------------------------------------------
# Prober
# ---------------------------------------------------------------------------

class TestFFprobeMediaProber:
    """Tests for the ffprobe wrapper."""

    def test_command_shape(self):
        prober = FFprobeMediaProber(ffprobe_path="/usr/bin/ffprobe")

        assert prober.build_command(Path("/tmp/in.mp4")) == [
            "/usr/bin/ffprobe", "-v", "error", "-print_format", "json",
            "-show_streams", "/tmp/in.mp4",
        ]

    @pytest.mark.anyio
    async def test_probe_returns_geometry(self):
        runner = FakeRunner(stdout=probe_json({"width": 1920, "height": 1080}))
        prober = FFprobeMediaProber(timeout_seconds=12.0, runner=runner)

        result = await prober.probe(Path("/tmp/in.mp4"))

        assert result == ProbeResult(width=1920, height=1080)
        assert runner.calls[0][1] == 12.0

    @pytest.mark.anyio
    async def test_non_zero_exit_raises_probe_failed(self):
        runner = FakeRunner(exit_code=1, stderr=b"moov atom not found")
        prober = FFprobeMediaProber(runner=runner)

        with pytest.raises(ProbeFailed) as exc_info:
            await prober.probe(Path("/tmp/in.mp4"))

        assert "moov atom not found" in exc_info.value.stderr

    @pytest.mark.anyio
    async def test_zero_exit_with_empty_streams_is_malformed(self):
        runner = FakeRunner(stdout=probe_json())
        prober = FFprobeMediaProber(runner=runner)

        with pytest.raises(MalformedProbeOutput):
            await prober.probe(Path("/tmp/in.mp4"))


class TestMockMediaProber:

    @pytest.mark.anyio
    async def test_reports_fixed_geometry(self, tmp_path):
        path = tmp_path / "in.mp4"
        path.write_bytes(b"data")

        assert await MockMediaProber(720, 1280).probe(path) == ProbeResult(720, 1280)

    @pytest.mark.anyio
    async def test_missing_file_is_malformed(self, tmp_path):
        with pytest.raises(MalformedProbeOutput):
            await MockMediaProber().probe(tmp_path / "missing.mp4")

    def test_factory_picks_implementation(self):
        assert isinstance(create_media_prober(mock_mode=True), MockMediaProber)
        assert isinstance(create_media_prober(mock_mode=False), FFprobeMediaProber)


# ---------------------------------------------------------------------------
# Remuxer
# ---------------------------------------------------------------------------

class TestFFmpegFastStartRemuxer:
    """Tests for the ffmpeg fast-start wrapper."""

    def test_output_path_is_input_plus_processed(self):
        assert output_path_for(Path("/tmp/abc.mp4")) == Path("/tmp/abc.mp4.processed")

    def test_command_copies_streams_and_moves_moov(self):
        remuxer = FFmpegFastStartRemuxer(ffmpeg_path="ffmpeg")

        command = remuxer.build_command(Path("/tmp/in.mp4"), Path("/tmp/in.mp4.processed"))

        assert command == [
            "ffmpeg", "-y", "-i", "/tmp/in.mp4",
            "-movflags", "faststart",
            "-map_metadata", "0",
            "-codec", "copy",
            "-f", "mp4",
            "/tmp/in.mp4.processed",
        ]

    @pytest.mark.anyio
    async def test_remux_returns_output_path(self):
        runner = FakeRunner()
        remuxer = FFmpegFastStartRemuxer(runner=runner)

        output = await remuxer.remux(Path("/tmp/in.mp4"))

        assert output == Path("/tmp/in.mp4.processed")
        assert runner.calls[0][0][-1] == "/tmp/in.mp4.processed"

    @pytest.mark.anyio
    async def test_non_zero_exit_raises_remux_failed(self):
        runner = FakeRunner(exit_code=183, stderr=b"Invalid data found")
        remuxer = FFmpegFastStartRemuxer(runner=runner)

        with pytest.raises(RemuxFailed, match="Invalid data found"):
            await remuxer.remux(Path("/tmp/in.mp4"))


class TestMockFastStartRemuxer:

    @pytest.mark.anyio
    async def test_copies_bytes(self, tmp_path):
        source = tmp_path / "in.mp4"
        source.write_bytes(b"not really an mp4")

        output = await MockFastStartRemuxer().remux(source)

        assert output == tmp_path / "in.mp4.processed"
        assert output.read_bytes() == b"not really an mp4"

    def test_factory_picks_implementation(self):
        assert isinstance(create_remuxer(mock_mode=True), MockFastStartRemuxer)
        assert isinstance(create_remuxer(mock_mode=False), FFmpegFastStartRemuxer)


# ---------------------------------------------------------------------------
# Process Runner
# ---------------------------------------------------------------------------

class TestRunProcess:
    """Runs the Python interpreter as a stand-in media tool."""

    @pytest.mark.anyio
    async def test_captures_exit_code_and_output(self):
        result = await run_process([
            sys.executable, "-c",
            "import sys; print('out'); print('err', file=sys.stderr); sys.exit(3)",
        ])

        assert result.exit_code == 3
        assert not result.ok
        assert result.stdout_text.strip() == "out"
        assert result.stderr_text.strip() == "err"

    @pytest.mark.anyio
    async def test_large_output_is_fully_drained(self):
        result = await run_process([
            sys.executable, "-c", "import sys; sys.stdout.write('x' * 1000000)",
        ])

        assert result.ok
        assert len(result.stdout) == 1000000

    @pytest.mark.anyio
    async def test_timeout_kills_child(self):
        with pytest.raises(MediaToolTimeout):
            await run_process([sys.executable, "-c", "import time; time.sleep(30)"], timeout=0.5)

    @pytest.mark.anyio
    async def test_missing_program_raises(self, tmp_path):
        with pytest.raises(MediaToolError, match="Could not start"):
            await run_process([str(tmp_path / "no-such-tool")])

    @pytest.mark.anyio
    async def test_cancellation_kills_child(self, tmp_path):
        """A cancelled request doesn't leave the tool running to write files later."""
        marker = tmp_path / "written-after-cancel"
        task = asyncio.create_task(run_process([
            sys.executable, "-c",
            f"import pathlib, time; time.sleep(1); pathlib.Path({str(marker)!r}).touch()",
        ], timeout=30))

        await asyncio.sleep(0.3)
        task.cancel()
        with pytest.raises(asyncio.CancelledError):
            await task

        await asyncio.sleep(1.5)
        assert not marker.exists()
