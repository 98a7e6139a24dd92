"""Application-wide exception hierarchy for Link Archiver.

All custom exceptions subclass ``LinkArchiverError``, enabling consistent
error handling and structured logging across the package.

Hierarchy::

    LinkArchiverError
    ├── ArchiveServiceError      (service, status_code, body)
    ├── UnknownServiceError      (service)
    └── InvalidUrlError          (url)
"""

from __future__ import annotations


class LinkArchiverError(Exception):
    """Base class for all Link Archiver exceptions.

    All package-specific exceptions inherit from this class so that callers
    can catch the entire hierarchy with a single ``except`` clause when
    needed.
    """


# ---------------------------------------------------------------------------
# Archive service exceptions
# ---------------------------------------------------------------------------


class ArchiveServiceError(LinkArchiverError):
    """Raised by a snapshot provider on a genuine transport or HTTP failure.

    Malformed or unexpected responses are *not* errors; providers return an
    empty candidate list for those.  This exception is reserved for timeouts,
    connection failures and non-recoverable HTTP statuses, and carries
    exactly the fields :func:`link_archiver.core.error_classifier.classify_error`
    inspects.

    Args:
        message: Human-readable description of the failure.
        service: Archive service name (e.g. ``"web.archive.org"``).
        status_code: HTTP status code, or ``None`` for transport errors.
        body: Response body (truncated), used to spot CAPTCHA challenges.
    """

    def __init__(
        self,
        message: str,
        service: str | None = None,
        status_code: int | None = None,
        body: str | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.service = service
        self.status_code = status_code
        self.body = body


class UnknownServiceError(LinkArchiverError):
    """Raised when no snapshot provider is registered for a service name.

    Args:
        service: The service name that was looked up.
    """

    def __init__(self, service: str) -> None:
        super().__init__(f"No snapshot provider registered for service '{service}'")
        self.service = service


# ---------------------------------------------------------------------------
# Input exceptions
# ---------------------------------------------------------------------------


class InvalidUrlError(LinkArchiverError, ValueError):
    """Raised when an input is not an absolute HTTP(S) URL.

    Args:
        url: The rejected input.
    """

    def __init__(self, url: str) -> None:
        super().__init__(f"Not an absolute http(s) URL: {url!r}")
        self.url = url
