from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


class PublishOptions(BaseModel):
    """Explicit run configuration handed to the publisher."""

    model_config = ConfigDict(frozen=True)

    # Filtering
    max_file_size: Optional[int] = Field(None, ge=0, description="Skip larger files (bytes)")
    allowed_extensions: Optional[List[str]] = None  # e.g. [".py", ".md"]; None = all

    # Batching / retries / pacing
    batch_size: int = Field(10, ge=1)
    max_retries: int = Field(3, ge=1, description="Total attempts per remote call")
    base_retry_delay: float = Field(1.0, ge=0)
    rate_limit_delay: float = Field(0.2, ge=0)

    # Readiness polling
    readiness_timeout: float = Field(30.0, gt=0)
    readiness_poll_interval: float = Field(1.0, ge=0)

    # Repository
    private: bool = False
    description: Optional[str] = None
    create_readme: bool = True
    check_existing: bool = True
    commit_message: Optional[str] = None
    branch: Optional[str] = None  # None = repository default branch

    @field_validator("allowed_extensions")
    @classmethod
    def _normalize_extensions(cls, value: Optional[List[str]]) -> Optional[List[str]]:
        if value is None:
            return None
        return [ext.lower() if ext.startswith(".") else f".{ext.lower()}" for ext in value]

    @classmethod
    def from_settings(cls, settings, **overrides) -> "PublishOptions":
        """Build options from application settings; keyword overrides win."""
        max_file_size = (
            settings.PUBLISH_MAX_FILE_SIZE_MB * 1024 * 1024
            if settings.PUBLISH_MAX_FILE_SIZE_MB
            else None
        )
        values = {
            "max_file_size": max_file_size,
            "allowed_extensions": settings.PUBLISH_ALLOWED_EXTENSIONS,
            "batch_size": settings.PUBLISH_BATCH_SIZE,
            "max_retries": settings.PUBLISH_MAX_RETRIES,
            "base_retry_delay": settings.PUBLISH_RETRY_DELAY_SECONDS,
            "rate_limit_delay": settings.PUBLISH_RATE_LIMIT_DELAY_SECONDS,
            "readiness_timeout": settings.PUBLISH_READINESS_TIMEOUT_SECONDS,
            "readiness_poll_interval": settings.PUBLISH_READINESS_POLL_SECONDS,
            "private": settings.PUBLISH_PRIVATE,
            "create_readme": settings.PUBLISH_CREATE_README,
            "check_existing": settings.PUBLISH_CHECK_EXISTING,
            "commit_message": settings.PUBLISH_COMMIT_MESSAGE,
            "branch": settings.PUBLISH_BRANCH,
        }
        values.update(overrides)
        return cls(**values)
