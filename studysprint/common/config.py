"""
Configuration module using Pydantic Settings.

CRITICAL: This module uses lazy loading pattern.
No environment variables are loaded at import time.
Each service must call get_settings() explicitly.
"""

from typing import Literal, Optional
from urllib.parse import urlparse

from pydantic import Field, computed_field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.

    IMPORTANT: Do NOT set env_file in Config.
    Environment variables must be loaded externally by the service.
    """

    model_config = SettingsConfigDict(
        env_file=None,
        case_sensitive=False,
        extra="ignore"
    )

    # Supabase
    supabase_url: str = Field(
        ...,
        description="Supabase project URL (https://<ref>.supabase.co)"
    )
    supabase_secret_key: str = Field(
        ...,
        description="Supabase service role secret key"
    )

    # Persistence
    persistence_backend: Literal["rest", "database"] = Field(
        default="rest",
        description="Row API used for persistence: Supabase REST or direct database"
    )
    database_url: Optional[str] = Field(
        default=None,
        description="PostgreSQL connection URL (optional if using Supabase)"
    )

    # Redis
    redis_url: str = Field(
        default="redis://localhost:6379/0",
        description="Redis connection URL"
    )
    catalog_cache_ttl_seconds: int = Field(
        default=300,
        description="How long the fetched problem list stays cached in Redis"
    )

    # Catalog
    problem_batch_size: int = Field(
        default=1000,
        description="Rows per request when fetching the problem list"
    )
    catalog_page_size: int = Field(
        default=50,
        description="Problems per catalog page"
    )

    # Sprints
    sprint_duration_minutes: int = Field(
        default=25,
        description="Configured sprint duration"
    )
    timer_tick_seconds: float = Field(
        default=1.0,
        description="Interval between countdown ticks"
    )
    grader: str = Field(
        default="accept_all",
        description="Grader used to produce submission verdicts"
    )
    sprint_session_ttl_seconds: float = Field(
        default=3600.0,
        description="Idle time after which a session without a live sprint is dropped"
    )

    # Sentry
    sentry_dsn: Optional[str] = Field(
        default=None,
        description="Sentry DSN for error tracking"
    )
    sentry_environment: str = Field(
        default="development",
        description="Sentry environment name"
    )
    sentry_traces_sample_rate: float = Field(
        default=0.1,
        description="Sentry traces sample rate"
    )
    sentry_profiles_sample_rate: float = Field(
        default=1.0,
        description="Sentry profiles sample rate"
    )

    # Application
    app_name: str = Field(
        default="StudySprint API",
        description="Application name"
    )
    debug: bool = Field(
        default=False,
        description="Debug mode flag"
    )

    @computed_field  # type: ignore[misc]
    @property
    def base_url(self) -> str:
        """Supabase project URL without any /rest/v1 suffix."""
        return self.supabase_url.replace("/rest/v1", "").rstrip("/")

    @computed_field  # type: ignore[misc]
    @property
    def rest_url(self) -> str:
        return f"{self.base_url}/rest/v1"

    @computed_field  # type: ignore[misc]
    @property
    def auth_url(self) -> str:
        return f"{self.base_url}/auth/v1"

    @computed_field  # type: ignore[misc]
    @property
    def db_url(self) -> str:
        """
        Get database URL, building from Supabase credentials if DATABASE_URL not provided.

        Returns:
            str: PostgreSQL connection URL
        """
        if self.database_url:
            return self.database_url

        # Supabase URL format: https://[project-ref].supabase.co
        parsed = urlparse(self.base_url)
        hostname = parsed.hostname or ""
        project_ref = hostname.split('.')[0] if hostname else ""

        return (
            f"postgresql://postgres:{self.supabase_secret_key}"
            f"@db.{project_ref}.supabase.co:5432/postgres"
        )


def get_settings() -> Settings:
    """
    Factory function to create Settings instance.

    This function should be called by each service explicitly.
    DO NOT call this at module level.

    Returns:
        Settings: Configured settings instance
    """
    return Settings()  # type: ignore[call-arg]
