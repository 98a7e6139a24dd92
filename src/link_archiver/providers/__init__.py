"""Snapshot providers, one sub-package per archive service.

Providers register themselves with :mod:`link_archiver.providers.registry`
when their ``provider`` module is imported; call
:func:`~link_archiver.providers.registry.autodiscover` to import them all.
"""
