"""Expose the application factory at package level.

Provide convenient access to :func:`identity_service.factory.create_app` so
callers can ``from identity_service import create_app`` (e.g. gunicorn's
``"identity_service:create_app()"``) without traversing the package structure.
"""

from __future__ import annotations

from .factory import create_app

__all__ = ["create_app"]
