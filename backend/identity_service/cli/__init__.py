"""Flask CLI entry points (``flask users ...``)."""

from __future__ import annotations

from flask import Flask

from .users import users_cli


def init_app(app: Flask) -> None:
    """Attach the ``users`` command group (admin bootstrap, token revocation)."""
    app.cli.add_command(users_cli)
