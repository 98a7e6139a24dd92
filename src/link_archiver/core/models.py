"""Value types exchanged between providers, the scorer and the resolver."""

from __future__ import annotations

import enum
from dataclasses import asdict, dataclass
from typing import Any

from link_archiver.core.url_utils import is_archive_url


@dataclass(frozen=True)
class Snapshot:
    """One archived copy of an original URL.

    Attributes:
        url: Absolute URL of the archived copy.  Must be hosted on a
            recognised archive domain.
        timestamp: Capture time in a service-specific format (14-digit CDX
            stamp, RFC 2822 date, ...) or ``"unknown"``.
        title: Page title when the service listing exposes one.
    """

    url: str
    timestamp: str
    title: str | None = None

    def __post_init__(self) -> None:
        if not is_archive_url(self.url):
            raise ValueError(f"Snapshot URL is not on a recognised archive domain: {self.url}")


@dataclass(frozen=True)
class ResolutionResult:
    """Terminal value of :meth:`link_archiver.resolver.Resolver.resolve_archive`.

    Attributes:
        found: Whether at least one snapshot was found.
        best_url: URL of the top-ranked snapshot; ``None`` when not found.
        snapshots: Snapshots ordered by descending relevance.
        rate_limited: The archive service refused the lookup for rate
            reasons.  Batch callers stop issuing lookups when they see this.
        service: Archive service that answered.
        from_cache: Served from the result cache.  Never stored.
    """

    found: bool
    best_url: str | None = None
    snapshots: tuple[Snapshot, ...] = ()
    rate_limited: bool = False
    service: str | None = None
    from_cache: bool = False

    @classmethod
    def from_snapshots(
        cls, snapshots: list[Snapshot] | tuple[Snapshot, ...], service: str | None = None
    ) -> ResolutionResult:
        """Build a result from already-ranked snapshots."""
        ranked = tuple(snapshots)
        if not ranked:
            return cls.not_found(service=service)
        return cls(found=True, best_url=ranked[0].url, snapshots=ranked, service=service)

    @classmethod
    def not_found(cls, service: str | None = None, rate_limited: bool = False) -> ResolutionResult:
        return cls(found=False, rate_limited=rate_limited, service=service)

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


class ArchiveErrorKind(str, enum.Enum):
    """Closed taxonomy of archive lookup failures."""

    RATE_LIMITED = "rate_limited"
    CAPTCHA_REQUIRED = "captcha_required"
    IP_BLOCKED = "ip_blocked"
    SERVICE_UNAVAILABLE = "service_unavailable"
    NETWORK_ERROR = "network_error"
    UNKNOWN = "unknown"


_RETRYABLE_KINDS: frozenset[ArchiveErrorKind] = frozenset(
    {ArchiveErrorKind.NETWORK_ERROR, ArchiveErrorKind.SERVICE_UNAVAILABLE}
)


@dataclass(frozen=True)
class ArchiveError:
    """A classified failure, ready to be logged or shown to a user.

    Attributes:
        kind: Taxonomy member.
        message: User-facing explanation.
        service_name: Human-readable service name used in ``message``.
        status_code: HTTP status of the underlying failure, when known.
    """

    kind: ArchiveErrorKind
    message: str
    service_name: str
    status_code: int | None = None

    @property
    def retryable(self) -> bool:
        """Transient kinds the resolver retries with backoff."""
        return self.kind in _RETRYABLE_KINDS
