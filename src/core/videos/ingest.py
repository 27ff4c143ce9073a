"""
Video and thumbnail ingestion.

This module contains the upload pipeline: the sequence that takes an
uploaded byte stream through staging, probing, remuxing, storage and
URL materialization. It's framework-agnostic: collaborators arrive as
protocols, and the request only needs `headers` and an awaitable
`form()` (a Starlette Request fits).

Validation happens in a fixed order, each gate with its own error:
    1. video id            -> InvalidRequest
    2. bearer credential   -> Unauthenticated
    3. file field          -> InvalidRequest
    4. size ceiling        -> PayloadTooLarge
    5. record exists       -> NotFound
    6. caller owns record  -> Forbidden
    7. MIME type           -> UnsupportedMediaType

Records keep storage keys. Consumable URLs are produced by present()
at response time, so a signed URL never ends up persisted.
"""

import logging
from contextlib import AbstractAsyncContextManager
from dataclasses import replace
from datetime import datetime
from pathlib import Path
from typing import Any, Mapping, Optional, Protocol
from uuid import UUID

from .errors import (
    Forbidden,
    InvalidRequest,
    NotFound,
    PayloadTooLarge,
    UnsupportedMediaType,
)
from .models import Video
from .orientation import classify_orientation

logger = logging.getLogger(__name__)

MAX_VIDEO_UPLOAD_BYTES = 1 << 30  # 1 GB
MAX_THUMBNAIL_UPLOAD_BYTES = 10 << 20  # 10 MB

ACCEPTED_VIDEO_TYPE = "video/mp4"
ACCEPTED_THUMBNAIL_TYPES = ("image/jpeg", "image/png")

VIDEO_FIELD = "video"
THUMBNAIL_FIELD = "thumbnail"
THUMBNAIL_PREFIX = "thumbnails"


# ---------------------------------------------------------------------------
# Protocols (interfaces)
# ---------------------------------------------------------------------------

class UploadRequest(Protocol):
    """The slice of an HTTP request the pipeline reads."""

    headers: Mapping[str, str]

    def form(self) -> Any:
        """Awaitable resolving to the parsed multipart form."""
        ...


class IncomingFile(Protocol):
    """An uploaded file part, e.g. Starlette's UploadFile."""

    content_type: Optional[str]
    size: Optional[int]

    async def read(self, size: int = -1) -> bytes: ...


class VideoStore(Protocol):
    def get_video(self, video_id: str) -> Optional[Video]: ...
    def set_video_url(self, video_id: str, video_url: str, updated_at: datetime) -> None: ...
    def set_thumbnail_url(self, video_id: str, thumbnail_url: str, updated_at: datetime) -> None: ...


class Authenticator(Protocol):
    def authenticate(self, authorization: Optional[str]) -> str:
        """Return the user id behind an Authorization header value."""
        ...


class StagedFileLike(Protocol):
    path: Path

    @property
    def name(self) -> str: ...


class StagingSessionLike(Protocol):
    async def stage(
        self,
        source: IncomingFile,
        extension: str,
        max_bytes: Optional[int] = None,
    ) -> StagedFileLike: ...

    def track(self, path: Path) -> Path: ...


class Staging(Protocol):
    def new_name(self, extension: str) -> str: ...
    def session(self) -> AbstractAsyncContextManager[StagingSessionLike]: ...


class Prober(Protocol):
    async def probe(self, path: Path) -> Any:
        """Return an object with positive integer width and height."""
        ...


class Remuxer(Protocol):
    def output_path_for(self, input_path: Path) -> Path: ...
    async def remux(self, input_path: Path) -> Path: ...


class AssetStorage(Protocol):
    async def put_file(self, path: Path, key: str, content_type: str) -> None: ...
    async def put_object(self, data: bytes, key: str, content_type: str) -> None: ...


class URLResolver(Protocol):
    async def resolve(self, key: str) -> str: ...


# ---------------------------------------------------------------------------
# Ingestion Service
# ---------------------------------------------------------------------------

class VideoIngestService:
    """
    Orchestrates authenticated asset uploads for video records.

    Stateless apart from its collaborators, so one instance can serve
    any number of concurrent requests. Each upload gets its own staging
    session and nothing else is shared between requests.
    """

    def __init__(
        self,
        videos: VideoStore,
        authenticator: Authenticator,
        staging: Staging,
        prober: Prober,
        remuxer: Remuxer,
        storage: AssetStorage,
        urls: URLResolver,
    ) -> None:
        self._videos = videos
        self._authenticator = authenticator
        self._staging = staging
        self._prober = prober
        self._remuxer = remuxer
        self._storage = storage
        self._urls = urls

    async def upload_video(self, video_id: Optional[str], request: UploadRequest) -> Video:
        """
        Ingest an MP4 for an existing video record.

        The staged input and the remuxed output are deleted before this
        returns or raises.

        Returns:
            The updated record with URLs resolved for display
        """
        video_id = _require_video_id(video_id)
        user_id = self._authenticator.authenticate(request.headers.get("authorization"))

        form = await request.form()
        try:
            upload = _require_file(form, VIDEO_FIELD, "Video is not a file")

            if upload.size is not None and upload.size > MAX_VIDEO_UPLOAD_BYTES:
                raise PayloadTooLarge("Video is too large")

            video = self._owned_video(video_id, user_id)

            if upload.content_type != ACCEPTED_VIDEO_TYPE:
                raise UnsupportedMediaType(
                    f"Incorrect mime type, only accepting {ACCEPTED_VIDEO_TYPE}"
                )

            logger.info(
                "Video upload started",
                extra={
                    "video_id": video_id,
                    "user_id": user_id,
                    "declared_size": upload.size,
                }
            )

            await self._process_video(video, upload, upload.content_type)

        finally:
            await form.close()

        return await self.present(video)

    async def _process_video(self, video: Video, upload: IncomingFile, content_type: str) -> None:
        """Staging -> probe -> remux -> storage -> record update."""
        extension = _extension_for(content_type)

        async with self._staging.session() as session:
            try:
                staged = await session.stage(
                    upload, extension, max_bytes=MAX_VIDEO_UPLOAD_BYTES
                )

                geometry = await self._prober.probe(staged.path)
                orientation = classify_orientation(geometry.width, geometry.height)

                # tracked before ffmpeg runs so a half-written output is removed too
                session.track(self._remuxer.output_path_for(staged.path))
                processed = session.track(await self._remuxer.remux(staged.path))

                key = f"{orientation.value}/{staged.name}"
                await self._storage.put_file(processed, key, content_type)

            except PayloadTooLarge:
                raise
            except Exception as e:
                logger.error(
                    "Video processing failed",
                    extra={"video_id": video.id, "error": str(e)}
                )
                raise

            video.video_url = key
            video.touch()
            # only the video column: a thumbnail set meanwhile must survive
            self._videos.set_video_url(video.id, key, video.updated_at)

        logger.info(
            "Video upload complete",
            extra={
                "video_id": video.id,
                "key": key,
                "orientation": orientation.value,
                "resolution": f"{geometry.width}x{geometry.height}",
            }
        )

    async def upload_thumbnail(self, video_id: Optional[str], request: UploadRequest) -> Video:
        """
        Store a JPEG or PNG thumbnail for an existing video record.

        Thumbnails are small enough to read into memory; they skip
        staging and go straight to storage.
        """
        video_id = _require_video_id(video_id)
        user_id = self._authenticator.authenticate(request.headers.get("authorization"))

        form = await request.form()
        try:
            upload = _require_file(form, THUMBNAIL_FIELD, "Thumbnail is not a file")

            if upload.content_type not in ACCEPTED_THUMBNAIL_TYPES:
                raise UnsupportedMediaType(
                    "Incorrect mime type, only accepting image/jpeg and image/png"
                )

            if upload.size is not None and upload.size > MAX_THUMBNAIL_UPLOAD_BYTES:
                raise PayloadTooLarge("Thumbnail is too large")

            video = self._owned_video(video_id, user_id)

            data = await upload.read(MAX_THUMBNAIL_UPLOAD_BYTES + 1)
            if len(data) > MAX_THUMBNAIL_UPLOAD_BYTES:
                raise PayloadTooLarge("Thumbnail is too large")

        finally:
            await form.close()

        key = f"{THUMBNAIL_PREFIX}/{self._staging.new_name(_extension_for(upload.content_type))}"
        await self._storage.put_object(data, key, upload.content_type)

        video.thumbnail_url = key
        video.touch()
        self._videos.set_thumbnail_url(video.id, key, video.updated_at)

        logger.info(
            "Thumbnail upload complete",
            extra={"video_id": video_id, "key": key, "size_bytes": len(data)}
        )

        return await self.present(video)

    async def present(self, video: Video) -> Video:
        """Copy of video with storage keys replaced by consumable URLs."""
        video_url = await self._urls.resolve(video.video_url) if video.video_url else None
        thumbnail_url = (
            await self._urls.resolve(video.thumbnail_url) if video.thumbnail_url else None
        )
        return replace(video, video_url=video_url, thumbnail_url=thumbnail_url)

    def _owned_video(self, video_id: str, user_id: str) -> Video:
        video = self._videos.get_video(video_id)

        if video is None:
            raise NotFound("Video does not exist")

        if not video.is_owned_by(user_id):
            logger.warning(
                "Upload rejected for non-owner",
                extra={"video_id": video_id, "user_id": user_id}
            )
            raise Forbidden("Video does not belong to this user")

        return video


# ---------------------------------------------------------------------------
# Helper Functions
# ---------------------------------------------------------------------------

def _require_video_id(video_id: Optional[str]) -> str:
    if not video_id:
        raise InvalidRequest("Invalid video ID")
    try:
        return str(UUID(video_id))
    except ValueError:
        raise InvalidRequest("Invalid video ID")


def _require_file(form: Any, field_name: str, message: str) -> IncomingFile:
    upload = form.get(field_name)
    # plain form fields come back as str
    if upload is None or isinstance(upload, str) or not hasattr(upload, "read"):
        raise InvalidRequest(message)
    return upload


def _extension_for(content_type: str) -> str:
    """'video/mp4' -> 'mp4'"""
    return content_type.split("/", 1)[1]
