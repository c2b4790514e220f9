"""Application factory for the identity service."""

from __future__ import annotations

import logging

from flask import Flask

from identity_service.core.config import BaseConfig, get_config
from identity_service.core.logger import configure_logging, init_app as init_logging

log = logging.getLogger(__name__)

# Placeholder signing keys shipped in ``BaseConfig``
_PLACEHOLDER_SECRETS = frozenset({"CHANGE_ME", "CHANGE_ME_JWT"})


def _check_secrets(app: Flask) -> None:
    """Refuse to sign tokens with a placeholder key outside debug/testing."""
    if app.debug or app.testing:
        return
    if app.config.get("JWT_SECRET_KEY") in _PLACEHOLDER_SECRETS:
        raise RuntimeError("JWT_SECRET_KEY must be set to a real secret in this environment.")


def create_app(
    config: str | type[BaseConfig] | object | None = None,
    *,
    instance_relative_config: bool = True,
    instance_config_filename: str = "config.py",
) -> Flask:
    """Build and configure the Flask application.

    Wiring order matters: proxy middleware wraps the WSGI app first, then
    extensions (database, JWT, Redis), request logging, CORS, blueprints,
    error handlers (which also own the JWT error loaders) and CLI commands.

    :param config: Config class, object or import path. Defaults to the class
        selected by ``APP_ENV``.
    :param instance_relative_config: Load ``instance/<filename>`` overrides.
    :param instance_config_filename: Name of the optional instance config file.
    :returns: Configured application.
    :rtype: flask.Flask
    :raises RuntimeError: If a placeholder JWT secret is used in production.
    """

    app = Flask(__name__, instance_relative_config=instance_relative_config)
    app.config.from_object(get_config() if config is None else config)
    if instance_relative_config and instance_config_filename:
        app.config.from_pyfile(instance_config_filename, silent=True)

    configure_logging(app.config.get("LOG_LEVEL", "INFO"))
    _check_secrets(app)

    from identity_service import cli
    from identity_service.api import init_app as init_api
    from identity_service.core import cors, errors, extensions, proxy

    proxy.init_app(app)
    extensions.init_app(app)
    init_logging(app)
    cors.init_app(app)
    init_api(app)
    errors.init_app(app)
    cli.init_app(app)

    log.info(
        "Application created",
        extra={"event": "app.created", "endpoint": app.config.get("API_BASE_PREFIX")},
    )
    return app
