"""Provider registry for dynamic discovery and registration of snapshot providers.

Providers register themselves on import using the ``@register`` decorator.
The registry is a module-level singleton that maps ``service_name`` strings
to ``SnapshotProvider`` subclasses, so the resolver dispatches on the
configured service without a hard-coded switch.

Example - registering a provider::

    from link_archiver.providers.registry import register
    from link_archiver.providers.base import SnapshotProvider

    @register
    class WaybackProvider(SnapshotProvider):
        service_name = "web.archive.org"
        display_name = "Wayback Machine"
        ...

Example - looking up a provider::

    from link_archiver.providers.registry import autodiscover, get_provider

    autodiscover()
    provider = get_provider("web.archive.org")()
"""

from __future__ import annotations

import importlib
import logging
import pkgutil
from typing import TYPE_CHECKING

from link_archiver.core.exceptions import UnknownServiceError

if TYPE_CHECKING:
    from link_archiver.providers.base import SnapshotProvider

logger = logging.getLogger(__name__)

# Registry singleton: service_name -> SnapshotProvider subclass
_REGISTRY: dict[str, type[SnapshotProvider]] = {}


def register(cls: type[SnapshotProvider]) -> type[SnapshotProvider]:
    """Decorator that registers a ``SnapshotProvider`` subclass in the global registry.

    If a provider with the same ``service_name`` has already been registered,
    the new registration overwrites the old one and a warning is emitted.

    Args:
        cls: ``SnapshotProvider`` subclass to register.

    Returns:
        The same class (decorator pass-through).

    Raises:
        AttributeError: If ``cls`` does not define ``service_name``.
    """
    service_name: str = cls.service_name  # type: ignore[attr-defined]
    if service_name in _REGISTRY and _REGISTRY[service_name] is not cls:
        logger.warning(
            "Service '%s' is already registered (was %s). Overwriting with %s.",
            service_name,
            _REGISTRY[service_name].__qualname__,
            cls.__qualname__,
        )
    _REGISTRY[service_name] = cls
    logger.debug("Registered snapshot provider: service=%s class=%s", service_name, cls.__qualname__)
    return cls


def get_provider(service_name: str) -> type[SnapshotProvider]:
    """Retrieve a registered ``SnapshotProvider`` class by service name.

    Args:
        service_name: The ``service_name`` class attribute value to look up
            (e.g. ``"web.archive.org"``).  ``ArchiveService`` members work
            too since they are ``str`` subclasses.

    Returns:
        The ``SnapshotProvider`` subclass registered under *service_name*.

    Raises:
        UnknownServiceError: If no provider is registered for the name.
            Callers should call :func:`autodiscover` before their first
            lookup if registration may not have happened yet.
    """
    key = getattr(service_name, "value", service_name)
    try:
        return _REGISTRY[key]
    except KeyError:
        logger.debug("get_provider: registered services are %s", sorted(_REGISTRY))
        raise UnknownServiceError(key) from None


def list_providers() -> list[dict[str, str]]:
    """Return metadata for all registered providers, ordered by service name.

    Returns:
        List of dicts with ``service_name``, ``display_name`` and
        ``provider_class`` (fully qualified, for debugging).
    """
    return [
        {
            "service_name": cls.service_name,
            "display_name": cls.display_name,
            "provider_class": f"{cls.__module__}.{cls.__qualname__}",
        }
        for cls in sorted(_REGISTRY.values(), key=lambda c: c.service_name)
    ]


def autodiscover() -> None:
    """Import all ``provider`` modules to trigger ``@register`` decorators.

    Walks the ``link_archiver.providers`` package tree and imports every
    submodule named ``provider``.  Idempotent.
    """
    import link_archiver.providers as providers_pkg  # noqa: PLC0415

    prefix = providers_pkg.__name__ + "."
    for _finder, module_name, _is_pkg in pkgutil.walk_packages(
        path=providers_pkg.__path__, prefix=prefix
    ):
        if module_name.endswith(".provider"):
            try:
                importlib.import_module(module_name)
                logger.debug("Autodiscovered provider module: %s", module_name)
            except Exception as exc:  # noqa: BLE001
                logger.error(
                    "Failed to import provider module '%s': %s",
                    module_name,
                    exc,
                    exc_info=True,
                )
