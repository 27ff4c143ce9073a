"""
FastAPI dependency injection.

Dependencies provide instances of services, clients, and configuration
to route handlers. Using dependency injection means:
- Routes don't instantiate their own dependencies (easier to test)
- Dependencies can be overridden for testing
- Configuration is centralized

Long-lived resources (database connection, storage client, ingest
service) are created once in the application lifespan and kept on
app.state. The functions here only hand them out, so their lifetime is
the process lifetime and nothing hides in module globals.
"""

import logging
from typing import Annotated, Optional

from fastapi import Depends, Request, Security
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from ..config.settings import Settings
from ..core.videos.ingest import VideoIngestService
from ..infrastructure.auth.tokens import JWTAuthenticator
from ..infrastructure.database.repositories.videos import VideoRepository

logger = logging.getLogger(__name__)

# Bearer security scheme (auto_error off so failures go through our own 401)
bearer_scheme = HTTPBearer(auto_error=False)


# ---------------------------------------------------------------------------
# Application State
# ---------------------------------------------------------------------------

def get_app_settings(request: Request) -> Settings:
    """Settings the running app was created with."""
    return request.app.state.settings


def get_video_repository(request: Request) -> VideoRepository:
    return VideoRepository(request.app.state.db)


def get_ingest_service(request: Request) -> VideoIngestService:
    return request.app.state.ingest_service


# ---------------------------------------------------------------------------
# Authentication
# ---------------------------------------------------------------------------

async def get_current_user_id(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials] = Security(bearer_scheme),
) -> str:
    """
    Resolve the caller's user id from the bearer token.

    Raises Unauthenticated (401) if the token is missing or invalid.
    """
    authenticator: JWTAuthenticator = request.app.state.authenticator

    authorization = None
    if credentials is not None:
        authorization = f"{credentials.scheme} {credentials.credentials}"

    return authenticator.authenticate(authorization)


# ---------------------------------------------------------------------------
# Convenience Type Aliases
# ---------------------------------------------------------------------------

# These type aliases make route signatures cleaner
CurrentUserId = Annotated[str, Depends(get_current_user_id)]
SettingsDep = Annotated[Settings, Depends(get_app_settings)]
VideoRepositoryDep = Annotated[VideoRepository, Depends(get_video_repository)]
IngestServiceDep = Annotated[VideoIngestService, Depends(get_ingest_service)]
