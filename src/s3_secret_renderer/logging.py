"""Structured logging configuration for the S3 Secret Renderer."""

import json
import logging
import sys
from typing import Any


def setup_structured_logging(level: int | str = logging.INFO) -> None:
    """Configure structured JSON logging.

    Records go to stderr; stdout is reserved for rendered manifests.
    """
    logging.basicConfig(
        level=level,
        format="%(message)s",
        handlers=[logging.StreamHandler(sys.stderr)],
        force=True,
    )


def log_render_event(
    logger: logging.Logger,
    template: str,
    release: str,
    namespace: str,
    event: str,
    reason: str,
    message: str,
    level: int = logging.INFO,
    **kwargs: Any,
) -> None:
    """Log a structured render event."""
    log_data = {
        "template": template,
        "release": release,
        "namespace": namespace,
        "event": event,
        "reason": reason,
        "message": message,
    }
    log_data.update(kwargs)
    logger.log(level, json.dumps(sanitize_secrets(log_data)))


def sanitize_secrets(log_data: dict[str, Any]) -> dict[str, Any]:
    """Remove secret fields from log data."""
    secret_fields = {
        "access_key_id",
        "secret_access_key",
        "accessKeyId",
        "secretAccessKey",
        "session_token",
        "password",
    }
    sanitized = log_data.copy()
    for field in secret_fields:
        if field in sanitized:
            sanitized[field] = "***REDACTED***"
    return sanitized
