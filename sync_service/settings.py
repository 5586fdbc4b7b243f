"""
Centralized settings configuration using Pydantic BaseSettings.

Part of AMA-720: Offline-first sync queue

All environment variables are defined here with types, defaults, and validation.
Use get_settings() for dependency injection compatibility in FastAPI.

Usage:
    from sync_service.settings import get_settings, Settings

    # In FastAPI endpoints (dependency injection)
    @router.get("/")
    def read_root(settings: Settings = Depends(get_settings)):
        return {"environment": settings.environment}

    # Direct access (module-level)
    settings = get_settings()
    print(settings.sync_interval_ms)
"""

from functools import lru_cache
from pathlib import Path
from typing import Optional

from pydantic import Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # -------------------------------------------------------------------------
    # Core Environment
    # -------------------------------------------------------------------------
    environment: str = Field(
        default="development",
        description="Runtime environment: development, staging, production, test",
    )
    log_level: str = Field(
        default="INFO",
        description="Root log level",
    )

    # -------------------------------------------------------------------------
    # Sync Queue Processor
    # -------------------------------------------------------------------------
    sync_enabled: bool = Field(
        default=True,
        description="Master on/off switch for replaying queued mutations",
    )
    sync_interval_ms: int = Field(
        default=5000,
        gt=0,
        description="Drain-trigger period while there is work",
    )
    sync_idle_interval_ms: int = Field(
        default=30000,
        gt=0,
        description="Drain-trigger period after repeated empty passes",
    )
    sync_idle_after_empty_runs: int = Field(
        default=3,
        ge=1,
        description="Consecutive empty passes before switching to the idle period",
    )
    sync_max_attempts: int = Field(
        default=5,
        ge=1,
        description="Retry ceiling; an item failing this many times is abandoned",
    )
    sync_backoff_strategy: str = Field(
        default="exponential",
        description="Backoff after a failure: exponential or fixed",
    )
    sync_backoff_base_ms: int = Field(
        default=1000,
        ge=0,
        description="Backoff delay after the first failure",
    )
    sync_backoff_max_ms: int = Field(
        default=60000,
        gt=0,
        description="Upper bound for exponential backoff",
    )
    sync_batch_size: int = Field(
        default=5,
        ge=1,
        description="Items read per store peek",
    )

    # -------------------------------------------------------------------------
    # Queue Store
    # -------------------------------------------------------------------------
    sync_store_backend: str = Field(
        default="sqlite",
        description="Local queue storage: sqlite (device) or json (browser-style)",
    )
    sync_store_path: Path = Field(
        default=Path("data/sync-queue.db"),
        description="Location of the local queue file",
    )
    sync_store_max_bytes: Optional[int] = Field(
        default=None,
        gt=0,
        description="Storage quota for the json backend",
    )

    # -------------------------------------------------------------------------
    # Network Observer
    # -------------------------------------------------------------------------
    network_observer: str = Field(
        default="manual",
        description="Reachability source: manual (host UI events) or http (probe)",
    )
    network_probe_url: Optional[str] = Field(
        default=None,
        description="Probe URL; defaults to <SUPABASE_URL>/auth/v1/health",
    )
    network_probe_interval_seconds: float = Field(
        default=15.0,
        gt=0,
        description="Seconds between reachability probes",
    )
    network_debounce_ms: int = Field(
        default=1000,
        ge=0,
        description="How long a reachability change must hold before it is emitted",
    )
    network_initially_online: bool = Field(
        default=True,
        description="Initial state of the manual observer",
    )

    # -------------------------------------------------------------------------
    # Supabase
    # -------------------------------------------------------------------------
    supabase_url: Optional[str] = Field(
        default=None,
        description="Supabase project URL",
    )
    supabase_anon_key: Optional[str] = Field(
        default=None,
        description="Supabase anonymous key (row-level security applies)",
    )
    supabase_service_role_key: Optional[str] = Field(
        default=None,
        description="Supabase service role key (full access; tooling only)",
    )
    request_timeout_seconds: float = Field(
        default=30.0,
        gt=0,
        description="Timeout for each remote call so a hung request cannot stall the queue",
    )
    request_retries: int = Field(
        default=2,
        ge=0,
        description="In-call retries for rate-limited (429) responses",
    )

    @property
    def supabase_key(self) -> Optional[str]:
        """Client key: the anon key, so user JWTs and RLS govern access."""
        return self.supabase_anon_key or self.supabase_service_role_key

    # -------------------------------------------------------------------------
    # Observability - Sentry
    # -------------------------------------------------------------------------
    sentry_dsn: Optional[str] = Field(
        default=None,
        description="Sentry DSN for error tracking",
    )

    # -------------------------------------------------------------------------
    # Validators
    # -------------------------------------------------------------------------
    @field_validator("environment")
    @classmethod
    def validate_environment(cls, v: str) -> str:
        """Ensure environment is a valid value."""
        valid_environments = {"development", "staging", "production", "test"}
        if v.lower() not in valid_environments:
            raise ValueError(
                f"Invalid environment '{v}'. Must be one of: {valid_environments}"
            )
        return v.lower()

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        valid_levels = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        if v.upper() not in valid_levels:
            raise ValueError(f"Invalid log level '{v}'. Must be one of: {valid_levels}")
        return v.upper()

    @field_validator("sync_backoff_strategy")
    @classmethod
    def validate_backoff_strategy(cls, v: str) -> str:
        if v.lower() not in {"exponential", "fixed"}:
            raise ValueError(f"Invalid backoff strategy '{v}'. Must be exponential or fixed")
        return v.lower()

    @field_validator("sync_store_backend")
    @classmethod
    def validate_store_backend(cls, v: str) -> str:
        if v.lower() not in {"sqlite", "json"}:
            raise ValueError(f"Invalid store backend '{v}'. Must be sqlite or json")
        return v.lower()

    @field_validator("network_observer")
    @classmethod
    def validate_network_observer(cls, v: str) -> str:
        if v.lower() not in {"manual", "http"}:
            raise ValueError(f"Invalid network observer '{v}'. Must be manual or http")
        return v.lower()

    @model_validator(mode="after")
    def validate_backoff_bounds(self) -> "Settings":
        if self.sync_backoff_base_ms > self.sync_backoff_max_ms:
            raise ValueError(
                f"sync_backoff_base_ms ({self.sync_backoff_base_ms}) cannot exceed "
                f"sync_backoff_max_ms ({self.sync_backoff_max_ms})"
            )
        return self

    # -------------------------------------------------------------------------
    # Helper Properties
    # -------------------------------------------------------------------------
    @property
    def is_production(self) -> bool:
        """Check if running in production environment."""
        return self.environment == "production"

    @property
    def is_development(self) -> bool:
        """Check if running in development environment."""
        return self.environment == "development"

    @property
    def is_test(self) -> bool:
        """Check if running in test environment."""
        return self.environment == "test"

    @property
    def resolved_probe_url(self) -> Optional[str]:
        """Explicit probe URL, else the Supabase auth health endpoint."""
        if self.network_probe_url:
            return self.network_probe_url
        if self.supabase_url:
            return f"{self.supabase_url.rstrip('/')}/auth/v1/health"
        return None


@lru_cache
def get_settings() -> Settings:
    """
    Get cached settings instance.

    Uses lru_cache to ensure settings are only loaded once.
    For testing, you can clear the cache with get_settings.cache_clear().

    Returns:
        Settings: Application settings instance
    """
    return Settings()
