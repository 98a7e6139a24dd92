"""Application settings loaded from environment variables.

Uses Pydantic Settings v2 for validated, type-safe configuration.  Every
option is read exclusively through this module; never call ``os.getenv``
directly elsewhere in the codebase.

Usage::

    from link_archiver.config.settings import get_settings

    settings = get_settings()
    service = settings.archive_service

Per-service rate-limit gaps and cache TTLs are deliberately *not* settings:
they live as module constants in :mod:`link_archiver.core.rate_limiter` and
:mod:`link_archiver.core.cache`.
"""

from __future__ import annotations

from enum import Enum
from functools import lru_cache

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class ArchiveService(str, Enum):
    """Archive services the resolver can query.

    The value doubles as the provider registry key and the rate-limit key.
    """

    WAYBACK = "web.archive.org"
    GHOSTARCHIVE = "ghostarchive.org"


_LOG_LEVELS: frozenset[str] = frozenset({"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"})

DEFAULT_USER_AGENT: str = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/124.0.0.0 Safari/537.36"
)


class Settings(BaseSettings):
    """Resolver configuration backed by environment variables and an optional .env file.

    All variables carry the ``LINK_ARCHIVER_`` prefix, e.g.
    ``LINK_ARCHIVER_ARCHIVE_SERVICE=ghostarchive.org``.
    """

    model_config = SettingsConfigDict(
        env_prefix="LINK_ARCHIVER_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # ------------------------------------------------------------------
    # Archive lookup
    # ------------------------------------------------------------------

    archive_service: ArchiveService = ArchiveService.WAYBACK
    """Archive service queried by :func:`link_archiver.resolver.resolve_archive`."""

    max_snapshots: int = Field(default=5, ge=1, le=300)
    """Upper bound on snapshots returned per lookup (also the CDX ``limit``)."""

    request_timeout: float = Field(default=30.0, gt=0)
    """Timeout in seconds for archive service requests."""

    user_agent: str = DEFAULT_USER_AGENT
    """User-Agent sent to archive services and scraped pages."""

    # ------------------------------------------------------------------
    # Title extraction
    # ------------------------------------------------------------------

    title_fetch_timeout: float = Field(default=10.0, ge=1.0, le=60.0)
    """Timeout in seconds for a single page-title fetch."""

    enable_title_cache: bool = True
    """Memoize scraped titles in the process-wide title cache."""

    # ------------------------------------------------------------------
    # Application behaviour
    # ------------------------------------------------------------------

    app_name: str = "Link Archiver"
    """Human-readable application name shown in the OpenAPI docs."""

    log_level: str = "INFO"
    """Logging verbosity.  One of: DEBUG, INFO, WARNING, ERROR, CRITICAL."""

    @field_validator("log_level")
    @classmethod
    def _validate_log_level(cls, v: str) -> str:
        level = v.upper()
        if level not in _LOG_LEVELS:
            raise ValueError(f"log_level must be one of {sorted(_LOG_LEVELS)}")
        return level


@lru_cache
def get_settings() -> Settings:
    """Return the cached application settings singleton.

    Uses ``functools.lru_cache`` so that Pydantic Settings reads the environment
    and .env file exactly once per process lifetime.  In tests, call
    ``get_settings.cache_clear()`` after patching environment variables.

    Returns:
        Settings: The validated settings object.
    """
    return Settings()
