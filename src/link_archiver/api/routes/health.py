"""Health and metrics route handlers.

``GET /health``
    Process-level liveness.  Performs no I/O and never contacts an archive
    service.

``GET /metrics``
    Prometheus text exposition of the counters in
    :mod:`link_archiver.core.metrics`.
"""

from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Depends, Response

from link_archiver.api.dependencies import get_resolver
from link_archiver.api.schemas import HealthRead
from link_archiver.core.metrics import get_metrics_response
from link_archiver.resolver import Resolver

router = APIRouter(tags=["system"])


@router.get("/health", response_model=HealthRead)
async def health(resolver: Annotated[Resolver, Depends(get_resolver)]) -> HealthRead:
    """Return ``{"status": "ok", "service": <configured archive service>}``."""
    return HealthRead(status="ok", service=resolver.service)


@router.get("/metrics", include_in_schema=False)
async def metrics() -> Response:
    body, content_type = get_metrics_response()
    return Response(content=body, media_type=content_type)
