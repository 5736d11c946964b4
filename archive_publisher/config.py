from typing import List, Optional

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    # Application
    APP_NAME: str = "Archive Publisher"
    APP_VERSION: str = "1.0.0"
    ENV: str = "dev"  # Environment: "dev", "staging", "prod"

    # GitHub
    GITHUB_API_URL: str = "https://api.github.com"
    GITHUB_API_VERSION: str = "2022-11-28"
    GITHUB_TOKEN: Optional[str] = None
    GITHUB_OWNER: Optional[str] = None
    GITHUB_ORGANIZATION: Optional[str] = None  # Create repos under this org instead of the user
    GITHUB_USER_AGENT: str = "archive-publisher/1.0.0"
    GITHUB_REQUEST_TIMEOUT: float = 60.0

    # ==========================================================================
    # Archive Ingestion
    # ==========================================================================

    ARCHIVE_MAX_SIZE_MB: int = 100  # Reject archives larger than this
    ARCHIVE_ALLOWED_EXTENSIONS: List[str] = [".zip"]

    # ==========================================================================
    # Publication
    # ==========================================================================

    # --- Batching ---
    PUBLISH_BATCH_SIZE: int = 10  # Files uploaded concurrently per batch
    PUBLISH_MAX_FILE_SIZE_MB: Optional[int] = None  # Skip files larger than this
    PUBLISH_ALLOWED_EXTENSIONS: Optional[List[str]] = None  # None = every extension

    # --- Retry / Rate Limiting (GitHub API) ---
    PUBLISH_MAX_RETRIES: int = 3  # Total attempts per remote call
    PUBLISH_RETRY_DELAY_SECONDS: float = 1.0  # Base delay for exponential backoff
    PUBLISH_RATE_LIMIT_DELAY_SECONDS: float = 0.2  # Minimum gap between API calls

    # --- Readiness polling ---
    PUBLISH_READINESS_TIMEOUT_SECONDS: float = 30.0
    PUBLISH_READINESS_POLL_SECONDS: float = 1.0

    # --- Repository defaults ---
    PUBLISH_PRIVATE: bool = False
    PUBLISH_CREATE_README: bool = True
    PUBLISH_CHECK_EXISTING: bool = True
    PUBLISH_BRANCH: Optional[str] = None  # None = repository default branch
    PUBLISH_COMMIT_MESSAGE: Optional[str] = None  # Defaults to "Add <file name>"

    @property
    def archive_max_size_bytes(self) -> int:
        return self.ARCHIVE_MAX_SIZE_MB * 1024 * 1024

    class Config:
        env_file = ".env"
        case_sensitive = True


settings = Settings()
