"""HTTP service: report endpoints, static UI and the ``/ucp`` reverse proxy."""

from .app import create_app

__all__ = ["create_app"]
