"""
Logging for the admin dashboard.

Every record leaving the app handler carries the current request (id, method,
path, matched endpoint), whether the admin session is signed in, and which
store backend served it. STRUCTURED_LOGS_ENABLED switches between one JSON
object per line and a plain text line with the same request id.
"""
from __future__ import annotations

import json
import logging
import re
import sys
from datetime import datetime, timezone
from typing import Any, Dict
from uuid import uuid4

from flask import Flask, current_app, g, has_request_context, request, session
from flask.logging import default_handler

from src.config import Config

# Incoming ids outside this shape are replaced with a fresh one
REQUEST_ID_PATTERN = re.compile(r"^[A-Za-z0-9._:-]{1,64}$")

TEXT_FORMAT = "%(asctime)s %(levelname)s [%(request_id)s] %(name)s: %(message)s"

# Library loggers held at WARNING unless the app runs at DEBUG
QUIET_LOGGERS = ("urllib3", "sqlalchemy.engine")

CONTEXT_FIELDS = ("request_id", "method", "path", "endpoint", "authenticated", "store_backend")


def _request_fields() -> Dict[str, Any]:
    if not has_request_context():
        return dict.fromkeys(CONTEXT_FIELDS)

    from src.services.auth_service import SESSION_FLAG

    return {
        "request_id": getattr(g, "request_id", None),
        "method": request.method,
        "path": request.path,
        "endpoint": request.endpoint,
        "authenticated": session.get(SESSION_FLAG) is True,
        "store_backend": current_app.config.get("STORE_BACKEND"),
    }


class RequestContextFilter(logging.Filter):
    """Copy the active request's context onto each record."""

    def filter(self, record: logging.LogRecord) -> bool:  # type: ignore[override]
        for name, value in _request_fields().items():
            setattr(record, name, value)
        return True


class JsonFormatter(logging.Formatter):
    # Attributes call sites pass through extra={...}
    EXTRA_FIELDS = ("status_code", "product_id", "fields", "order_count")

    def format(self, record: logging.LogRecord) -> str:  # type: ignore[override]
        payload: Dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        for name in CONTEXT_FIELDS:
            payload[name] = getattr(record, name, None)
        for name in self.EXTRA_FIELDS:
            if hasattr(record, name):
                payload[name] = getattr(record, name)
        if record.exc_info:
            payload["exc_info"] = self.formatException(record.exc_info)
        return json.dumps(payload, default=str)


def configure_logging(app: Flask) -> None:
    """Send root and Flask app logs through a single request-aware stdout handler."""
    handler = logging.StreamHandler(sys.stdout)
    handler.addFilter(RequestContextFilter())
    if app.config.get("STRUCTURED_LOGS_ENABLED", Config.STRUCTURED_LOGS_ENABLED):
        handler.setFormatter(JsonFormatter())
    else:
        handler.setFormatter(logging.Formatter(TEXT_FORMAT))

    root_logger = logging.getLogger()
    root_logger.setLevel(app.config.get("LOG_LEVEL", Config.LOG_LEVEL))
    root_logger.handlers = [handler]

    # app.logger propagates to root
    app.logger.removeHandler(default_handler)
    app.logger.setLevel(logging.NOTSET)

    if root_logger.getEffectiveLevel() > logging.DEBUG:
        for name in QUIET_LOGGERS:
            logging.getLogger(name).setLevel(logging.WARNING)

    app.logger.debug("Logging configured for %s", app.config.get("APP_NAME", Config.APP_NAME))


def ensure_request_id() -> str:
    """Return the request id, adopting a well-formed incoming header or minting one."""
    current = getattr(g, "request_id", None)
    if current:
        return current
    header = current_app.config.get("REQUEST_ID_HEADER", Config.REQUEST_ID_HEADER)
    incoming = request.headers.get(header, "")
    g.request_id = incoming if REQUEST_ID_PATTERN.match(incoming) else uuid4().hex
    return g.request_id
