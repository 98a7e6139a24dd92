"""Archive lookup route handlers.

``GET /archives/resolve``
    Resolve a URL to its best snapshot.  Provider failures are reported in
    the body (``found=false``, ``rate_limited``), never as HTTP errors.

``GET /archives/titles``
    Best-effort display title for a URL.

``GET /archives/submission-url``
    URL a human can open to ask the configured service to archive a page.

``DELETE /archives/cache``
    Forget every cached resolution result.
"""

from __future__ import annotations

from typing import Annotated

import structlog
from fastapi import APIRouter, Depends, Query, Response, status

from link_archiver.api.dependencies import get_resolver, get_title_extractor, validate_url
from link_archiver.api.schemas import ResolutionRead, SubmissionUrlRead, TitleRead
from link_archiver.resolver import Resolver
from link_archiver.titles import TitleExtractor

logger = structlog.get_logger(__name__)

router = APIRouter(tags=["archives"])

UrlParam = Annotated[str, Query(description="Absolute http(s) URL of the original page.")]


@router.get("/resolve", response_model=ResolutionRead)
async def resolve(
    url: UrlParam,
    resolver: Annotated[Resolver, Depends(get_resolver)],
) -> ResolutionRead:
    """Resolve ``url`` to its ranked archived snapshots."""
    result = await resolver.resolve_archive(validate_url(url))
    return ResolutionRead.from_result(result)


@router.get("/titles", response_model=TitleRead)
async def title(
    url: UrlParam,
    extractor: Annotated[TitleExtractor, Depends(get_title_extractor)],
) -> TitleRead:
    """Return a display title for ``url``."""
    validated = validate_url(url)
    return TitleRead(url=validated, title=await extractor.extract_title(validated))


@router.get("/submission-url", response_model=SubmissionUrlRead)
async def submission_url(
    url: UrlParam,
    resolver: Annotated[Resolver, Depends(get_resolver)],
) -> SubmissionUrlRead:
    """Return the manual archive-request URL for ``url``."""
    return SubmissionUrlRead(
        service=resolver.service,
        submission_url=resolver.submission_url(validate_url(url)),
    )


@router.delete("/cache", status_code=status.HTTP_204_NO_CONTENT)
async def clear_cache(resolver: Annotated[Resolver, Depends(get_resolver)]) -> Response:
    """Clear the resolution result cache."""
    resolver.clear_cache()
    return Response(status_code=status.HTTP_204_NO_CONTENT)
