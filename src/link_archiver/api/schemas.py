"""Pydantic response schemas for the Link Archiver HTTP API.

Used by the route handlers for serialisation and OpenAPI documentation
generation.
"""

from __future__ import annotations

from typing import List, Optional

from pydantic import BaseModel, ConfigDict

from link_archiver.core.models import ResolutionResult


class SnapshotRead(BaseModel):
    """One archived copy of the requested URL."""

    model_config = ConfigDict(from_attributes=True)

    url: str
    timestamp: str
    title: Optional[str] = None


class ResolutionRead(BaseModel):
    """Outcome of an archive lookup.

    Attributes:
        found: Whether at least one snapshot was found.
        best_url: URL of the top-ranked snapshot, ``None`` when not found.
        snapshots: Snapshots ordered by descending relevance.
        rate_limited: The archive service refused the lookup for rate
            reasons.  Batch callers should stop issuing lookups.
        service: Archive service that answered.
        from_cache: Served from the in-process result cache.
    """

    found: bool
    best_url: Optional[str] = None
    snapshots: List[SnapshotRead] = []
    rate_limited: bool = False
    service: Optional[str] = None
    from_cache: bool = False

    @classmethod
    def from_result(cls, result: ResolutionResult) -> ResolutionRead:
        return cls(
            found=result.found,
            best_url=result.best_url,
            snapshots=[SnapshotRead.model_validate(s) for s in result.snapshots],
            rate_limited=result.rate_limited,
            service=result.service,
            from_cache=result.from_cache,
        )


class TitleRead(BaseModel):
    url: str
    title: str


class SubmissionUrlRead(BaseModel):
    """Where a human can ask the configured service to archive ``url``."""

    service: str
    submission_url: str


class HealthRead(BaseModel):
    status: str
    service: str
