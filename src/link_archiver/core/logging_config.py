"""Structured logging configuration using structlog.

Call ``configure_logging()`` once at startup (the API factory does this).
Library modules log through either the stdlib API (providers, titles) or
structlog (resolver, API); both end up in the same handler and renderer.

Two kinds of context are merged into every record:

- request context bound by the API middleware through
  ``structlog.contextvars`` (``request_id``, ``method``, ``path``);
- lookup context set with :func:`lookup_context` while the resolver works
  on one URL (``service``, ``url``, ``attempt``).  Provider records logged
  through stdlib ``logging`` pick it up as well, so a CDX parse warning
  carries the URL and attempt that triggered it.

Usage::

    from link_archiver.core.logging_config import lookup_context

    with lookup_context(service="web.archive.org", url=url, attempt=0):
        logger.info("archive_lookup_complete", found=True)
"""

from __future__ import annotations

import logging
import sys
from contextlib import contextmanager
from contextvars import ContextVar
from types import MappingProxyType
from typing import Any, Iterator, Mapping

import structlog
from structlog.types import EventDict, Processor, WrappedLogger

_EMPTY_CONTEXT: Mapping[str, Any] = MappingProxyType({})

lookup_context_var: ContextVar[Mapping[str, Any]] = ContextVar(
    "lookup_context", default=_EMPTY_CONTEXT
)
"""Fields describing the archive lookup currently in progress."""

_NOISY_LOGGERS: tuple[str, ...] = ("uvicorn.access", "httpx", "httpcore")


@contextmanager
def lookup_context(**fields: Any) -> Iterator[None]:
    """Attach ``fields`` to every record logged inside the block.

    Nested blocks extend the outer context and override keys they repeat,
    so a retry only needs to pass the new ``attempt``.
    """
    token = lookup_context_var.set(MappingProxyType({**lookup_context_var.get(), **fields}))
    try:
        yield
    finally:
        lookup_context_var.reset(token)


def _add_lookup_context(
    logger: WrappedLogger,  # noqa: ARG001
    method_name: str,  # noqa: ARG001
    event_dict: EventDict,
) -> EventDict:
    # Explicit keyword arguments on the log call win over the ambient context.
    for key, value in lookup_context_var.get().items():
        event_dict.setdefault(key, value)
    return event_dict


def _shared_processors() -> list[Processor]:
    return [
        structlog.contextvars.merge_contextvars,
        _add_lookup_context,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
    ]


def _renderer(debug: bool) -> Processor:
    if debug:
        return structlog.dev.ConsoleRenderer(colors=True)
    return structlog.processors.JSONRenderer()


def configure_logging(log_level: str = "INFO") -> None:
    """Route structlog and stdlib records through one stdout handler.

    Records are rendered as JSON lines, or as coloured console output when
    ``log_level`` is ``"DEBUG"``.  Outside DEBUG, httpx, httpcore and the
    uvicorn access log are limited to WARNING.

    Re-running replaces the root handler instead of adding a second one.

    Args:
        log_level: One of ``"DEBUG"``, ``"INFO"``, ``"WARNING"``,
            ``"ERROR"``, ``"CRITICAL"``.  Case-insensitive; unknown values
            fall back to INFO.
    """
    level_name = log_level.upper()
    debug = level_name == "DEBUG"
    shared = _shared_processors()

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(
            foreign_pre_chain=shared,
            processors=[
                structlog.stdlib.ProcessorFormatter.remove_processors_meta,
                _renderer(debug),
            ],
        )
    )

    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(handler)
    root.setLevel(getattr(logging, level_name, logging.INFO))

    for name in _NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.NOTSET if debug else logging.WARNING)

    structlog.configure(
        processors=[*shared, structlog.stdlib.ProcessorFormatter.wrap_for_formatter],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )
