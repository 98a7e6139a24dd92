"""Link Archiver: resolve URLs to their best archived snapshot.

Public entry points::

    from link_archiver import extract_title, resolve_archive

    result = await resolve_archive("https://example.com")
    title = await extract_title("https://example.com")
"""

from __future__ import annotations

__version__ = "0.1.0"

from link_archiver.resolver import Resolver, ResolverState, resolve_archive  # noqa: E402
from link_archiver.titles import TitleExtractor, extract_title  # noqa: E402

__all__ = [
    "Resolver",
    "ResolverState",
    "TitleExtractor",
    "__version__",
    "extract_title",
    "resolve_archive",
]
