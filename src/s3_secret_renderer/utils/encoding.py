"""Base64 helpers for Secret data."""

from __future__ import annotations

import base64
import binascii

from .errors import TemplateError


def b64encode_str(value: str) -> str:
    """Encode a string as standard, padded, unwrapped base64 of its UTF-8 bytes."""
    return base64.b64encode(value.encode("utf-8")).decode("ascii")


def b64decode_str(value: str) -> str:
    """Decode standard base64 text back to a UTF-8 string.

    Raises:
        TemplateError: If the input is not valid base64 or not UTF-8
    """
    try:
        return base64.b64decode(value.encode("ascii"), validate=True).decode("utf-8")
    except (binascii.Error, UnicodeError) as e:
        raise TemplateError(f"b64dec: invalid base64 input: {e}") from e
