"""
Application configuration using Pydantic settings.

Configuration is loaded from environment variables with sensible defaults.
Using Pydantic's BaseSettings means we get:
- Type validation at startup (fail fast if config is wrong)
- Documentation of what's required vs optional
- Easy testing with different configurations

Mock modes enable local development without external services.
"""

import tempfile
from functools import lru_cache
from typing import Literal, Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.

    All settings can be overridden via environment variables.
    For lists (like cors_origins), use comma-separated values in env.
    """

    # API Configuration
    api_title: str = "Reelhouse API"
    api_version: str = "v1"
    port: int = Field(
        default=8091,
        description="Port the API is served on. Used to build local asset URLs."
    )

    # Authentication
    jwt_secret: str = Field(
        default="",
        description="HS256 secret shared with the login service that issues access tokens."
    )
    jwt_algorithm: str = Field(default="HS256")
    jwt_issuer: str = Field(
        default="reelhouse-access",
        description="Expected `iss` claim on access tokens."
    )

    # Metadata Store
    database_path: str = Field(
        default="reelhouse.db",
        description="SQLite file holding video records"
    )
    database_mock_mode: bool = Field(
        default=False,
        description="Use an in-memory database. Records vanish on restart."
    )

    # Storage
    storage_backend: Literal["s3", "local", "memory"] = Field(
        default="s3",
        description="Where assets are placed: S3 bucket, local assets dir, or in-memory mock."
    )
    url_mode: Literal["public", "presigned", "data"] = Field(
        default="presigned",
        description="How storage keys are turned into URLs in responses."
    )
    s3_bucket: str = Field(default="", description="S3 bucket for video assets")
    s3_region: str = Field(default="us-east-1", description="S3 bucket region")
    s3_access_key_id: Optional[str] = Field(
        default=None,
        description="Leave unset to use the default AWS credential chain"
    )
    s3_secret_access_key: Optional[str] = Field(default=None)
    s3_endpoint_url: Optional[str] = Field(
        default=None,
        description="Custom endpoint for S3-compatible stores (MinIO, R2)"
    )
    public_base_url: Optional[str] = Field(
        default=None,
        description="Base for public URLs (e.g. a CDN). Derived from backend if unset."
    )
    assets_root: str = Field(
        default="assets",
        description="Directory for the local storage backend"
    )

    # Media Processing
    staging_dir: str = Field(
        default_factory=tempfile.gettempdir,
        description="Scratch directory for uploads in flight"
    )
    ffprobe_path: str = Field(default="ffprobe")
    ffmpeg_path: str = Field(default="ffmpeg")
    media_mock_mode: bool = Field(
        default=False,
        description="Skip FFprobe/FFmpeg: fixed 1920x1080 geometry, byte-copy remux."
    )
    media_tool_timeout_seconds: float = Field(
        default=300.0,
        gt=0,
        description="Kill probe/remux processes that run longer than this."
    )

    # Logging
    log_level: str = Field(
        default="INFO",
        description="Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)"
    )

    # CORS
    cors_origins: str = Field(
        default="http://localhost:3000",
        description="Comma-separated list of allowed CORS origins. Use * for development only."
    )

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
    )

    @property
    def cors_origins_list(self) -> list[str]:
        """Parse comma-separated CORS origins into a list."""
        if self.cors_origins == "*":
            return ["*"]
        return [origin.strip() for origin in self.cors_origins.split(",") if origin.strip()]

    @property
    def resolved_public_base_url(self) -> str:
        """
        Base URL for public-mode links.

        S3 objects follow https://{bucket}.s3.{region}.amazonaws.com/{key};
        local assets are expected under /assets on this server.
        """
        if self.public_base_url:
            return self.public_base_url
        if self.storage_backend == "s3":
            return f"https://{self.s3_bucket}.s3.{self.s3_region}.amazonaws.com"
        return f"http://localhost:{self.port}/assets"

    def validate_required_fields(self) -> list[str]:
        """
        Validate that required fields are set for the chosen modes.

        Returns list of missing or inconsistent fields.
        This is separate from Pydantic validation because requirements
        depend on which storage backend and URL mode are active.
        """
        missing = []

        if not self.jwt_secret:
            missing.append("JWT_SECRET")

        if self.storage_backend == "s3" and not self.s3_bucket:
            missing.append("S3_BUCKET")

        # keys are either both set or both left to the credential chain
        if bool(self.s3_access_key_id) != bool(self.s3_secret_access_key):
            missing.append("S3_ACCESS_KEY_ID and S3_SECRET_ACCESS_KEY")

        if self.url_mode == "presigned" and self.storage_backend == "local":
            missing.append("URL_MODE=presigned requires STORAGE_BACKEND=s3 or memory")

        return missing


@lru_cache()
def get_settings() -> Settings:
    """
    Get cached settings instance.

    Using lru_cache means we only load settings once per process.
    This is safe because settings don't change during runtime.
    For tests, you can call get_settings.cache_clear() to reset.
    """
    return Settings()
