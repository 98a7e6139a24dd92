"""FastAPI dependency injection providers.

The application factory stores one :class:`~link_archiver.resolver.Resolver`
and one :class:`~link_archiver.titles.TitleExtractor` on ``app.state``;
these dependencies hand them to route handlers.  Tests replace them through
``app.dependency_overrides``.
"""

from __future__ import annotations

from fastapi import HTTPException, Request, status

from link_archiver.core.exceptions import InvalidUrlError
from link_archiver.core.url_utils import normalize_url
from link_archiver.resolver import Resolver
from link_archiver.titles import TitleExtractor


def get_resolver(request: Request) -> Resolver:
    return request.app.state.resolver


def get_title_extractor(request: Request) -> TitleExtractor:
    return request.app.state.title_extractor


def validate_url(url: str) -> str:
    """Reject query parameters that are not absolute http(s) URLs with HTTP 422.

    Returns:
        ``url`` unchanged, so handlers pass the caller's spelling through.
    """
    try:
        normalize_url(url)
    except InvalidUrlError as exc:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail=str(exc),
        ) from exc
    return url
