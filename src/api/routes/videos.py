"""
Video record and upload API endpoints.

Records are created as drafts (title and description only); the video
file and thumbnail are attached afterwards through the upload routes.
Upload handlers hand the raw request to VideoIngestService, which owns
the validation order, so no form parameters are declared here and
FastAPI never parses the body on its own.

Records store storage keys; every response carries URLs resolved for
the deployment's URL mode.
"""

import logging
from datetime import datetime
from typing import Any, Optional
from uuid import UUID, uuid4

from fastapi import APIRouter, Query, Request, status
from pydantic import BaseModel, ConfigDict, Field

from ...core.videos.errors import Forbidden, NotFound
from ...core.videos.ingest import THUMBNAIL_FIELD, VIDEO_FIELD
from ...core.videos.models import Video
from ..dependencies import CurrentUserId, IngestServiceDep, VideoRepositoryDep

logger = logging.getLogger(__name__)

router = APIRouter()


def _multipart_body(field_name: str) -> dict[str, Any]:
    """OpenAPI request body for a single-file multipart upload."""
    return {
        "requestBody": {
            "required": True,
            "content": {
                "multipart/form-data": {
                    "schema": {
                        "type": "object",
                        "required": [field_name],
                        "properties": {
                            field_name: {"type": "string", "format": "binary"},
                        },
                    }
                }
            },
        }
    }


_ERROR_RESPONSES: dict[int | str, dict[str, Any]] = {
    400: {"description": "Invalid video ID or missing file field"},
    401: {"description": "Missing or invalid bearer token"},
    403: {"description": "Video belongs to another user"},
    404: {"description": "Video does not exist"},
    413: {"description": "File exceeds the upload limit"},
    415: {"description": "Unsupported MIME type"},
}


# ---------------------------------------------------------------------------
# Request/Response Models
# ---------------------------------------------------------------------------

class CreateVideoRequest(BaseModel):
    """Draft record to create before uploading assets."""
    title: str = Field(min_length=1, max_length=200, description="Video title")
    description: str = Field(default="", max_length=5000)


class VideoResponse(BaseModel):
    """
    A video record as clients see it.

    Field names on the wire are camelCase (videoURL, createdAt, ...).
    """
    model_config = ConfigDict(populate_by_name=True)

    id: str
    user_id: str = Field(alias="userID")
    title: str
    description: str
    video_url: Optional[str] = Field(default=None, alias="videoURL")
    thumbnail_url: Optional[str] = Field(default=None, alias="thumbnailURL")
    created_at: datetime = Field(alias="createdAt")
    updated_at: datetime = Field(alias="updatedAt")

    @classmethod
    def from_domain(cls, video: Video) -> "VideoResponse":
        return cls(
            id=video.id,
            user_id=video.user_id,
            title=video.title,
            description=video.description,
            video_url=video.video_url,
            thumbnail_url=video.thumbnail_url,
            created_at=video.created_at,
            updated_at=video.updated_at,
        )


# ---------------------------------------------------------------------------
# Record Endpoints
# ---------------------------------------------------------------------------

@router.post(
    "/videos",
    response_model=VideoResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create a draft video record",
)
async def create_video(
    body: CreateVideoRequest,
    user_id: CurrentUserId,
    repository: VideoRepositoryDep,
) -> VideoResponse:
    video = Video(
        id=str(uuid4()),
        user_id=user_id,
        title=body.title,
        description=body.description,
    )
    repository.create_video(video)

    return VideoResponse.from_domain(video)


@router.get(
    "/videos",
    response_model=list[VideoResponse],
    summary="List the caller's videos",
)
async def list_videos(
    user_id: CurrentUserId,
    repository: VideoRepositoryDep,
    service: IngestServiceDep,
    limit: int = Query(default=100, ge=1, le=500),
) -> list[VideoResponse]:
    """Newest first, with URLs resolved."""
    videos = repository.list_videos(user_id, limit=limit)
    return [VideoResponse.from_domain(await service.present(v)) for v in videos]


@router.get(
    "/videos/{video_id}",
    response_model=VideoResponse,
    summary="Get a video record",
    responses={
        403: {"description": "Video belongs to another user"},
        404: {"description": "Video does not exist"},
    },
)
async def get_video(
    video_id: UUID,
    user_id: CurrentUserId,
    repository: VideoRepositoryDep,
    service: IngestServiceDep,
) -> VideoResponse:
    video = repository.get_video(str(video_id))

    if video is None:
        raise NotFound("Video does not exist")

    if not video.is_owned_by(user_id):
        raise Forbidden("Video does not belong to this user")

    return VideoResponse.from_domain(await service.present(video))


# ---------------------------------------------------------------------------
# Upload Endpoints
# ---------------------------------------------------------------------------

@router.post(
    "/video_upload/{video_id}",
    response_model=VideoResponse,
    summary="Upload the video file for a record",
    description=(
        "Multipart upload of an MP4 (field `video`, up to 1 GB). The file is "
        "probed, remuxed for fast start and stored under a key prefixed "
        "with its orientation."
    ),
    responses=_ERROR_RESPONSES,
    openapi_extra=_multipart_body(VIDEO_FIELD),
)
async def upload_video(
    video_id: str,
    request: Request,
    service: IngestServiceDep,
) -> VideoResponse:
    video = await service.upload_video(video_id, request)
    return VideoResponse.from_domain(video)


@router.post(
    "/thumbnail_upload/{video_id}",
    response_model=VideoResponse,
    summary="Upload the thumbnail for a record",
    description="Multipart upload of a JPEG or PNG (field `thumbnail`, up to 10 MB).",
    responses=_ERROR_RESPONSES,
    openapi_extra=_multipart_body(THUMBNAIL_FIELD),
)
async def upload_thumbnail(
    video_id: str,
    request: Request,
    service: IngestServiceDep,
) -> VideoResponse:
    video = await service.upload_thumbnail(video_id, request)
    return VideoResponse.from_domain(video)
