import html
import re
from typing import Any, Optional

CONTROL_CHARS = re.compile(r"[\x00-\x08\x0B\x0C\x0E-\x1F\x7F]")


def sanitize_string(value: Optional[str]) -> Optional[str]:
    """
    Escape HTML special characters and strip control characters so
    user input can be interpolated into MJML/HTML email bodies.
    Returns None if input is None.
    """
    if value is None:
        return None
    if not isinstance(value, str):
        return value
    return CONTROL_CHARS.sub("", html.escape(value, quote=True))


def sanitize_multiline(value: Optional[str]) -> Optional[str]:
    """Like sanitize_string, but keeps line breaks as <br/>"""
    escaped = sanitize_string(value)
    if escaped is None:
        return None
    return "<br/>".join(escaped.splitlines())


def sanitize_fields(data: dict[str, Any], fields: Optional[list[str]] = None) -> dict[str, Any]:
    """
    Return a copy of ``data`` with string values escaped.
    If fields is None, every top-level string value is escaped.
    """
    sanitized = {}
    for key, value in data.items():
        if isinstance(value, str) and (fields is None or key in fields):
            sanitized[key] = sanitize_string(value)
        else:
            sanitized[key] = value
    return sanitized
