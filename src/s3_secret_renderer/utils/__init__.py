"""Utility functions for the S3 Secret Renderer."""

from .encoding import b64decode_str, b64encode_str
from .errors import (
    ObjectStoreUrlError,
    RenderError,
    TemplateError,
    ValuesError,
    sanitize_dict,
    sanitize_error_message,
    sanitize_exception,
)

__all__ = [
    "b64encode_str",
    "b64decode_str",
    "RenderError",
    "ValuesError",
    "TemplateError",
    "ObjectStoreUrlError",
    "sanitize_error_message",
    "sanitize_exception",
    "sanitize_dict",
]
