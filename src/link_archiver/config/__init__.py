"""Configuration package for Link Archiver.

Re-exports the commonly used configuration symbols so that callers can
write::

    from link_archiver.config import ArchiveService, get_settings
"""

from __future__ import annotations

from link_archiver.config.settings import ArchiveService, Settings, get_settings

__all__ = [
    "ArchiveService",
    "Settings",
    "get_settings",
]
