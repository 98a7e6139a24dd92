"""Route modules mounted by :func:`link_archiver.api.main.create_app`."""
