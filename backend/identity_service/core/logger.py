"""Structured JSON logging with request correlation and secret redaction.

Every record leaves the process as one JSON object on stdout. Records
emitted while a request is active carry its ``request_id``; the id comes
from ``X-Request-ID``/``X-Correlation-ID`` when the caller sends one and is
echoed back on the response.

Services log domain events through ``extra={"event": ..., "user_id": ...}``;
those keys are promoted to top-level fields. Credential material never
reaches the output: attributes named like a secret are masked.
"""

from __future__ import annotations

import json
import logging
import sys
import time
from datetime import UTC, datetime
from typing import Any
from uuid import uuid4

from flask import Flask, g, has_request_context, request

REQUEST_ID_HEADER = "X-Request-ID"
CORRELATION_HEADERS = ("X-Request-ID", "X-Correlation-ID")

# ``extra=`` keys promoted to top-level JSON fields
EXTRA_KEYS = ("event", "user_id", "endpoint", "elapsed_ms", "method", "path", "status")

# Record attributes that must never be written out in clear
SECRET_KEYS = frozenset(
    {"password", "new_password", "current_password", "access_token", "refresh_token", "token"}
)
REDACTED = "[redacted]"


class JSONFormatter(logging.Formatter):
    """Render log records as single-line JSON objects."""

    def format(self, record: logging.LogRecord) -> str:
        payload: dict[str, Any] = {
            "time": datetime.now(UTC).isoformat(timespec="milliseconds"),
            "level": record.levelname,
            "name": record.name,
            "message": record.getMessage(),
            "request_id": getattr(record, "request_id", None),
        }
        for key in EXTRA_KEYS:
            if hasattr(record, key):
                payload[key] = getattr(record, key)
        if record.exc_info:
            payload["exc_info"] = self.formatException(record.exc_info)
        return json.dumps(payload, default=str)


class RequestIdFilter(logging.Filter):
    """Stamp ``request_id`` on every record (``None`` outside requests)."""

    def filter(self, record: logging.LogRecord) -> bool:
        record.request_id = ensure_request_id() if has_request_context() else None
        return True


class RedactSecretsFilter(logging.Filter):
    """Mask ``extra=`` attributes whose name designates a credential."""

    def filter(self, record: logging.LogRecord) -> bool:
        for key in SECRET_KEYS.intersection(record.__dict__):
            setattr(record, key, REDACTED)
        return True


def ensure_request_id() -> str:
    """Return the current request identifier, generating one when necessary."""

    if not has_request_context():
        return str(uuid4())
    request_id = g.get("request_id")
    if request_id:
        return request_id
    for header in CORRELATION_HEADERS:
        value = request.headers.get(header)
        if value:
            g.request_id = value
            return value
    g.request_id = str(uuid4())
    return g.request_id


def _resolve_level(level: str | int) -> int | str:
    if isinstance(level, int):
        return level
    resolved = logging.getLevelName(level.upper())
    return resolved if isinstance(resolved, int) else level.upper()


def configure_logging(level: str | int = "INFO") -> None:
    """Route the root logger to a single JSON stdout handler."""

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(JSONFormatter())
    handler.addFilter(RequestIdFilter())
    handler.addFilter(RedactSecretsFilter())
    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(handler)
    root.setLevel(_resolve_level(level))


def init_app(app: Flask) -> None:
    """Seed a request id per request, echo it back and emit an access line."""

    app.logger.addFilter(RequestIdFilter())
    access_log = logging.getLogger("identity_service.access")

    @app.before_request
    def _start_request() -> None:
        g.pop("request_id", None)
        g.request_started = time.perf_counter()
        ensure_request_id()

    @app.after_request
    def _finish_request(response):
        response.headers.setdefault(REQUEST_ID_HEADER, ensure_request_id())
        started = g.pop("request_started", None)
        elapsed_ms = round((time.perf_counter() - started) * 1000, 2) if started else None
        access_log.info(
            "%s %s %s",
            request.method,
            request.path,
            response.status_code,
            extra={
                "event": "http.request",
                "method": request.method,
                "path": request.path,
                "status": response.status_code,
                "elapsed_ms": elapsed_ms,
            },
        )
        return response


__all__ = [
    "JSONFormatter",
    "RedactSecretsFilter",
    "configure_logging",
    "ensure_request_id",
    "init_app",
]
