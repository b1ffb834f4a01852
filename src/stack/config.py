from __future__ import annotations

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_prefix="STACK_", env_file=".env", extra="ignore", populate_by_name=True
    )

    app_name: str = "stack-media"
    env: str = "dev"
    host: str = "0.0.0.0"  # nosec B104 - intentional for container deployments
    port: int = 8080

    # Observability
    log_level: str = "INFO"
    log_json: bool = Field(default=True, validation_alias="STACK_LOG_JSON")

    # Media storage
    # Storage location URI: file://<path>, gs://<bucket>/<prefix>, gcs://..., objcache://
    media_bucket: str = Field(default="file://", validation_alias="STACK_MEDIA_BUCKET")
    # Uploads directory, relative to the document root
    media_path: str = Field(default="wp-content/uploads", validation_alias="STACK_MEDIA_PATH")
    # Document root used by file:// when the URI carries no path
    media_root: str = Field(default="/var/lib/stack/media", validation_alias="STACK_MEDIA_ROOT")

    # Redis (objcache:// media storage)
    redis_url: str = Field(default="redis://localhost:6379/0", validation_alias="REDIS_URL")
    media_cache_ttl: int | None = Field(default=None, validation_alias="STACK_MEDIA_CACHE_TTL")

    # GCS media storage (gs:// and gcs://)
    gcs_project: str | None = Field(default=None, validation_alias="GCS_PROJECT")
    gcs_credentials_path: str | None = Field(default=None, validation_alias="GCS_CREDENTIALS_PATH")

    @field_validator("media_path")
    @classmethod
    def check_media_path(cls, value: str) -> str:
        # Served as a URL prefix and used as the key prefix for every upload
        value = value.strip("/")
        if not value:
            raise ValueError("STACK_MEDIA_PATH must name a directory below the document root")
        return value


settings = Settings()
