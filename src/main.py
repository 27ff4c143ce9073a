"""
FastAPI application entry point.

This module creates and configures the FastAPI application.
Using an application factory pattern (create_app function) because:
- Easier to test with different configurations
- Explicit about initialization order
- Can create multiple app instances if needed (e.g., for testing)

For local development:
    uvicorn src.main:app --reload

For production:
    gunicorn src.main:app -w 4 -k uvicorn.workers.UvicornWorker
"""

import logging
from contextlib import ExitStack, asynccontextmanager
from pathlib import Path
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles

from .api.routes import health, videos
from .config.settings import Settings, get_settings
from .core.videos.errors import VideoAPIError
from .core.videos.ingest import VideoIngestService
from .infrastructure.auth.tokens import JWTAuthenticator
from .infrastructure.database.client import create_database_connection
from .infrastructure.database.repositories.videos import VideoRepository
from .infrastructure.media.prober import create_media_prober
from .infrastructure.media.remuxer import create_remuxer
from .infrastructure.staging.manager import StagingManager
from .infrastructure.storage.client import StorageConfig, create_storage_client
from .infrastructure.storage.urls import create_url_resolver

# Configure logging
logging.basicConfig(
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    level=logging.INFO,
)

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan manager.

    Builds every long-lived resource once and keeps it on app.state:
    database connection, storage client, URL resolver, media tools,
    staging manager, authenticator and the ingest service that ties
    them together. The database connection is closed on shutdown.
    """
    # Startup
    settings: Settings = app.state.settings

    logger.info(
        "Reelhouse API starting",
        extra={
            "version": settings.api_version,
            "storage_backend": settings.storage_backend,
            "url_mode": settings.url_mode,
            "mock_mode": {
                "database": settings.database_mock_mode,
                "media": settings.media_mock_mode,
            }
        }
    )

    # Validate configuration
    missing_fields = settings.validate_required_fields()
    if missing_fields:
        logger.error(
            "Missing required configuration",
            extra={"missing_fields": missing_fields}
        )
        # Startup continues; /health/ready reports not_ready until fixed

    with ExitStack() as stack:
        db = stack.enter_context(create_database_connection(
            path=settings.database_path,
            mock_mode=settings.database_mock_mode,
        ))

        storage = create_storage_client(
            backend=settings.storage_backend,
            config=StorageConfig(
                bucket_name=settings.s3_bucket,
                region=settings.s3_region,
                access_key_id=settings.s3_access_key_id,
                secret_access_key=settings.s3_secret_access_key,
                endpoint_url=settings.s3_endpoint_url,
            ),
            assets_root=Path(settings.assets_root),
        )

        public_base_url = (
            settings.resolved_public_base_url if settings.url_mode == "public" else ""
        )
        urls = create_url_resolver(settings.url_mode, storage, public_base_url)

        authenticator = JWTAuthenticator(
            secret=settings.jwt_secret,
            algorithm=settings.jwt_algorithm,
            issuer=settings.jwt_issuer,
        )

        app.state.db = db
        app.state.authenticator = authenticator
        app.state.ingest_service = VideoIngestService(
            videos=VideoRepository(db),
            authenticator=authenticator,
            staging=StagingManager(Path(settings.staging_dir)),
            prober=create_media_prober(
                ffprobe_path=settings.ffprobe_path,
                timeout_seconds=settings.media_tool_timeout_seconds,
                mock_mode=settings.media_mock_mode,
            ),
            remuxer=create_remuxer(
                ffmpeg_path=settings.ffmpeg_path,
                timeout_seconds=settings.media_tool_timeout_seconds,
                mock_mode=settings.media_mock_mode,
            ),
            storage=storage,
            urls=urls,
        )

        yield

    # Shutdown
    logger.info("Reelhouse API shutting down")


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    """
    Application factory.

    Creates and configures the FastAPI application.
    Pass settings explicitly in tests; otherwise they come from the
    environment via get_settings().
    """
    settings = settings or get_settings()

    logging.getLogger().setLevel(settings.log_level.upper())

    # Create FastAPI instance
    app = FastAPI(
        title=settings.api_title,
        version=settings.api_version,
        description="""
        Video hosting API.

        ## Authentication

        Every `/api` endpoint requires a bearer token in the
        `Authorization` header (`Bearer <jwt>`).

        ## Workflow

        1. **Create a record**: `POST /api/videos`
        2. **Upload the video**: `POST /api/video_upload/{video_id}`
           - multipart field `video`, MP4 only, up to 1 GB
           - remuxed for fast start and stored by orientation
        3. **Upload a thumbnail**: `POST /api/thumbnail_upload/{video_id}`
           - multipart field `thumbnail`, JPEG or PNG, up to 10 MB
        4. **Fetch**: `GET /api/videos/{video_id}`
        """,
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=lifespan,
    )
    app.state.settings = settings

    # CORS middleware
    # Configure allowed origins via CORS_ORIGINS environment variable
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins_list,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Include routers
    app.include_router(
        health.router,
        prefix="/health",
        tags=["Health"],
    )

    app.include_router(
        videos.router,
        prefix="/api",
        tags=["Videos"],
    )

    # Local assets are served by this process so public URLs resolve
    if settings.storage_backend == "local":
        assets_dir = Path(settings.assets_root)
        assets_dir.mkdir(parents=True, exist_ok=True)
        app.mount("/assets", StaticFiles(directory=assets_dir), name="assets")

    # Root endpoint
    @app.get("/", include_in_schema=False)
    async def root():
        """Root endpoint - points at docs."""
        return {
            "message": "Reelhouse API",
            "version": settings.api_version,
            "docs": "/docs",
            "health": "/health",
        }

    @app.exception_handler(VideoAPIError)
    async def video_api_exception_handler(request: Request, exc: VideoAPIError):
        """Map request-level failures to their status with a JSON detail."""
        logger.info(
            "Request rejected",
            extra={
                "path": request.url.path,
                "status_code": exc.status_code,
                "reason": exc.message,
            }
        )

        return JSONResponse(
            status_code=exc.status_code,
            content={"detail": exc.message},
        )

    # Global exception handler
    @app.exception_handler(Exception)
    async def global_exception_handler(request: Request, exc: Exception):
        """
        Catch-all exception handler.

        Probe, remux and storage failures land here. We log the full
        error server-side but return a generic message.
        """
        logger.error(
            "Unhandled exception",
            extra={
                "path": request.url.path,
                "method": request.method,
                "error": str(exc),
            },
            exc_info=exc,
        )

        return JSONResponse(
            status_code=500,
            content={
                "detail": "Internal server error. Please contact support if this persists."
            }
        )

    logger.info(
        "FastAPI application created",
        extra={
            "title": settings.api_title,
            "version": settings.api_version,
        }
    )

    return app


# Create the application instance
# This is what uvicorn/gunicorn will import
app = create_app()


# For debugging/development
if __name__ == "__main__":
    import uvicorn

    settings = get_settings()

    uvicorn.run(
        "src.main:app",
        host="0.0.0.0",
        port=settings.port,
        reload=True,
        log_level=settings.log_level.lower(),
    )
