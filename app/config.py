"""
Application configuration using Pydantic Settings.

Loads configuration from environment variables with .env file support.
"""
from functools import lru_cache
from typing import List
from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Database
    DATABASE_URL: str = "sqlite:///./data/skipped-tests.db"

    @field_validator('DATABASE_URL')
    @classmethod
    def validate_database_url(cls, v: str) -> str:
        """Validate DATABASE_URL has an allowed scheme to prevent injection."""
        allowed_schemes = ('sqlite:///', 'postgresql://', 'mysql://', 'mysql+pymysql://')
        if not v.startswith(allowed_schemes):
            raise ValueError(
                f'Invalid database URL scheme. Allowed schemes: {", ".join(allowed_schemes)}'
            )
        return v

    # Target repository
    TARGET_REPO: str = "wix-private/wix-data-client"  # owner/name on GIT_HOST
    REPO_IDENTIFIER: str = "wix-data-client"  # Label stored with every summary row
    GIT_HOST: str = "github.com"
    GH_TOKEN: str = ""  # Optional, unauthenticated clone when empty
    CACHE_DIR: str = "./.cache"  # Checkouts live under this directory
    CHECKOUT_PER_BRANCH: bool = False  # One checkout directory per branch instead of a shared one
    GIT_OPERATION_TIMEOUT_SECONDS: int = 300

    # Scanning
    SCAN_EXTENSIONS: str = ".ts,.tsx,.js,.jsx"
    SCAN_EXCLUDED_DIRS: str = "node_modules,.git"
    SCAN_MAX_WORKERS: int = 8

    # Trend
    TREND_THRESHOLD: float = 1.0  # Minimum change in 7-day average to report up/down

    # Daily fetch
    AUTO_FETCH_ENABLED: bool = True
    FETCH_BRANCHES: str = "master"
    FETCH_CRON_HOUR: int = 6
    FETCH_CRON_MINUTE: int = 0

    # Application
    DEBUG: bool = False
    HOST: str = "0.0.0.0"
    PORT: int = 3000

    # CORS
    ALLOWED_ORIGINS: str = "http://localhost:3000,http://localhost:5173,http://localhost:8080"

    # Security
    API_KEY: str = ""  # Optional API key for write endpoints

    # Logging
    LOG_LEVEL: str = "INFO"
    LOG_FORMAT: str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

    # Rate Limiting
    RATE_LIMIT_ENABLED: bool = True
    RATE_LIMIT_PER_MINUTE: int = 100

    # Caching
    CACHE_ENABLED: bool = True
    CACHE_TTL_SECONDS: int = 300  # 5 minutes default TTL

    @field_validator('TARGET_REPO')
    @classmethod
    def validate_target_repo(cls, v: str) -> str:
        """Require an owner/name slug."""
        parts = v.split('/')
        if len(parts) != 2 or not all(parts):
            raise ValueError('TARGET_REPO must be in owner/name form')
        return v

    @field_validator('CACHE_DIR')
    @classmethod
    def validate_cache_dir(cls, v: str) -> str:
        """Prevent path traversal attacks."""
        if '..' in v:
            raise ValueError('Path traversal not allowed in CACHE_DIR')
        return v

    @field_validator('FETCH_CRON_HOUR')
    @classmethod
    def validate_cron_hour(cls, v: int) -> int:
        if not 0 <= v <= 23:
            raise ValueError('FETCH_CRON_HOUR must be between 0 and 23')
        return v

    @field_validator('FETCH_CRON_MINUTE')
    @classmethod
    def validate_cron_minute(cls, v: int) -> int:
        if not 0 <= v <= 59:
            raise ValueError('FETCH_CRON_MINUTE must be between 0 and 59')
        return v

    @property
    def fetch_branches(self) -> List[str]:
        """Branches fetched by the daily job."""
        return _split_csv(self.FETCH_BRANCHES)

    @property
    def scan_extensions(self) -> List[str]:
        return _split_csv(self.SCAN_EXTENSIONS)

    @property
    def scan_excluded_dirs(self) -> List[str]:
        return _split_csv(self.SCAN_EXCLUDED_DIRS)

    # Model configuration
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra='ignore'  # Allow extra fields in .env without validation errors
    )


def _split_csv(value: str) -> List[str]:
    return [item.strip() for item in value.split(",") if item.strip()]


@lru_cache()
def get_settings() -> Settings:
    """
    Get cached settings instance.

    Uses lru_cache to ensure settings are loaded only once.

    Returns:
        Settings instance
    """
    return Settings()
