"""Map raw archive lookup failures onto :class:`ArchiveErrorKind`.

:func:`classify_error` is total: it accepts any exception (or any object
carrying ``status_code`` / ``status``, ``body`` / ``text`` and ``message``
attributes) and never raises.  Classification order, first match wins:

1. HTTP 429, or "rate limit" / "too many requests" in the message.
2. HTTP 403 whose body carries CAPTCHA / Cloudflare / challenge markers.
3. Any other HTTP 403 (generic forbidden).
4. HTTP 503/504, or "service unavailable" / "gateway timeout".
5. httpx transport errors, or "network" / "timeout" / "connection refused".
6. Everything else.
"""

from __future__ import annotations

import logging
from typing import Any

import httpx

from link_archiver.core.models import ArchiveError, ArchiveErrorKind

logger = logging.getLogger(__name__)

_RATE_LIMIT_MARKERS: tuple[str, ...] = ("rate limit", "too many requests")
_CAPTCHA_MARKERS: tuple[str, ...] = ("captcha", "cloudflare", "challenge", "cf-chl")
_UNAVAILABLE_MARKERS: tuple[str, ...] = ("service unavailable", "gateway timeout")
_NETWORK_MARKERS: tuple[str, ...] = (
    "network",
    "timeout",
    "timed out",
    "econnrefused",
    "connection refused",
    "connection reset",
)

_MESSAGES: dict[ArchiveErrorKind, str] = {
    ArchiveErrorKind.RATE_LIMITED: (
        "{service} is rate limiting requests. Please wait a moment and try again."
    ),
    ArchiveErrorKind.CAPTCHA_REQUIRED: (
        "{service} requires CAPTCHA verification. This service cannot be automated."
    ),
    ArchiveErrorKind.IP_BLOCKED: (
        "{service} has blocked this request. Your IP may be temporarily blocked."
    ),
    ArchiveErrorKind.SERVICE_UNAVAILABLE: (
        "{service} is currently unavailable. Please try again later."
    ),
    ArchiveErrorKind.NETWORK_ERROR: (
        "Network error connecting to {service}. Check your internet connection."
    ),
    ArchiveErrorKind.UNKNOWN: "Error accessing {service}: {detail}",
}


def _status_of(error: Any) -> int | None:
    for attr in ("status_code", "status"):
        value = getattr(error, attr, None)
        if isinstance(value, int) and not isinstance(value, bool):
            return value
    response = getattr(error, "response", None)
    value = getattr(response, "status_code", None)
    return value if isinstance(value, int) else None


def _text_of(error: Any, *attrs: str) -> str:
    for attr in attrs:
        value = getattr(error, attr, None)
        if isinstance(value, str) and value:
            return value
    return ""


def _has_transport_cause(error: Any) -> bool:
    current = error
    seen = 0
    while current is not None and seen < 5:
        if isinstance(current, httpx.TransportError):
            return True
        current = getattr(current, "__cause__", None)
        seen += 1
    return False


def _kind_for(error: Any) -> tuple[ArchiveErrorKind, int | None, str]:
    status = _status_of(error)
    message = _text_of(error, "message")
    if not message:
        try:
            message = str(error)
        except Exception:  # noqa: BLE001
            message = ""
    body = _text_of(error, "body", "text")
    message_lower = message.lower()
    body_lower = body.lower()

    if status == 429 or any(m in message_lower for m in _RATE_LIMIT_MARKERS):
        return ArchiveErrorKind.RATE_LIMITED, status, message
    if status == 403 and any(m in body_lower for m in _CAPTCHA_MARKERS):
        return ArchiveErrorKind.CAPTCHA_REQUIRED, status, message
    if status == 403:
        return ArchiveErrorKind.IP_BLOCKED, status, message
    if status in (503, 504) or any(m in message_lower for m in _UNAVAILABLE_MARKERS):
        return ArchiveErrorKind.SERVICE_UNAVAILABLE, status, message
    if _has_transport_cause(error) or any(m in message_lower for m in _NETWORK_MARKERS):
        return ArchiveErrorKind.NETWORK_ERROR, status, message
    return ArchiveErrorKind.UNKNOWN, status, message


def classify_error(error: Any, service_name: str) -> ArchiveError:
    """Classify ``error`` raised while querying ``service_name``.

    Args:
        error: The raised exception, or any object with the attributes
            described in the module docstring.
        service_name: Human-readable service name for the message.

    Returns:
        A frozen :class:`ArchiveError`.  Equal inputs give equal outputs.
    """
    try:
        kind, status, detail = _kind_for(error)
    except Exception:  # noqa: BLE001
        logger.debug("classify_error: could not inspect %r", type(error).__name__)
        kind, status, detail = ArchiveErrorKind.UNKNOWN, None, ""

    message = _MESSAGES[kind].format(service=service_name, detail=detail or "Unknown error")
    return ArchiveError(kind=kind, message=message, service_name=service_name, status_code=status)
