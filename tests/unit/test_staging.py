"""
Unit tests for upload staging.

Uses pytest's tmp_path so every test gets its own staging directory
and leftovers are easy to assert on.
"""

import re

import pytest

from src.core.videos.errors import PayloadTooLarge
from src.infrastructure.staging.manager import (
    StagedSizeExceeded,
    StagingManager,
)


class BytesSource:
    """Async reader over an in-memory payload, like an UploadFile."""

    def __init__(self, data: bytes) -> None:
        self._data = data
        self._pos = 0
        self.reads = 0

    async def read(self, size: int = -1) -> bytes:
        self.reads += 1
        if size < 0:
            size = len(self._data) - self._pos
        chunk = self._data[self._pos:self._pos + size]
        self._pos += len(chunk)
        return chunk


@pytest.fixture
def staging(tmp_path):
    return StagingManager(tmp_path / "staging")


class TestStagingManager:
    """Tests for staging files and naming them."""

    def test_creates_staging_directory(self, tmp_path):
        manager = StagingManager(tmp_path / "nested" / "staging")
        assert manager.directory.is_dir()

    def test_new_name_is_64_hex_chars_plus_extension(self, staging):
        name = staging.new_name("mp4")
        assert re.fullmatch(r"[0-9a-f]{64}\.mp4", name)

    def test_new_names_do_not_repeat(self, staging):
        names = {staging.new_name("mp4") for _ in range(500)}
        assert len(names) == 500

    @pytest.mark.anyio
    async def test_stage_writes_all_bytes(self, staging):
        payload = b"x" * (3 * 1024 * 1024 + 17)

        staged = await staging.stage(BytesSource(payload), "mp4")

        assert staged.path.parent == staging.directory
        assert staged.path.read_bytes() == payload
        assert staged.size_bytes == len(payload)
        assert staged.name.endswith(".mp4")

    @pytest.mark.anyio
    async def test_stage_accepts_exactly_max_bytes(self, staging):
        staged = await staging.stage(BytesSource(b"a" * 100), "mp4", max_bytes=100)
        assert staged.size_bytes == 100

    @pytest.mark.anyio
    async def test_stage_over_limit_raises_and_removes_partial_file(self, staging):
        with pytest.raises(StagedSizeExceeded) as exc_info:
            await staging.stage(BytesSource(b"a" * 101), "mp4", max_bytes=100)

        assert isinstance(exc_info.value, PayloadTooLarge)
        assert exc_info.value.status_code == 413
        assert list(staging.directory.iterdir()) == []

    def test_cleanup_ignores_missing_files(self, staging):
        """Cleanup of a path that was never written is a no-op."""
        staging.cleanup([staging.directory / "never-written.mp4"])

    def test_cleanup_is_idempotent(self, staging):
        path = staging.directory / staging.new_name("mp4")
        path.write_bytes(b"data")

        staging.cleanup([path])
        staging.cleanup([path])

        assert not path.exists()


class TestStagingSession:
    """Tests for request-scoped cleanup."""

    @pytest.mark.anyio
    async def test_session_removes_staged_and_tracked_files(self, staging):
        async with staging.session() as session:
            staged = await session.stage(BytesSource(b"video"), "mp4")
            derived = session.track(staged.path.with_name(staged.name + ".processed"))
            derived.write_bytes(b"processed")

            assert staged.path.exists() and derived.exists()

        assert not staged.path.exists()
        assert not derived.exists()
        assert list(staging.directory.iterdir()) == []

    @pytest.mark.anyio
    async def test_session_cleans_up_when_body_raises(self, staging):
        with pytest.raises(RuntimeError, match="probe exploded"):
            async with staging.session() as session:
                await session.stage(BytesSource(b"video"), "mp4")
                raise RuntimeError("probe exploded")

        assert list(staging.directory.iterdir()) == []

    @pytest.mark.anyio
    async def test_tracked_path_never_written_is_fine(self, staging):
        async with staging.session() as session:
            session.track(staging.directory / "not-yet-created.processed")

        assert list(staging.directory.iterdir()) == []

    @pytest.mark.anyio
    async def test_track_deduplicates(self, staging):
        async with staging.session() as session:
            path = staging.directory / "a.mp4"
            session.track(path)
            session.track(path)

            assert session.paths == [path]

    @pytest.mark.anyio
    async def test_concurrent_sessions_use_distinct_paths(self, staging):
        async with staging.session() as first, staging.session() as second:
            a = await first.stage(BytesSource(b"one"), "mp4")
            b = await second.stage(BytesSource(b"two"), "mp4")

            assert a.path != b.path
            assert a.path.read_bytes() == b"one"
            assert b.path.read_bytes() == b"two"
