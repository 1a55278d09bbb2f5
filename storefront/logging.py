"""
Logging for the storefront.

Every module logs through `get_logger(__name__)`. Identifiers and free text
that arrive with a request go through the sanitize helpers first, so a
crafted value cannot forge extra log lines.
"""

import logging
import os
import sys
from functools import cache

LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"

# Per-request transport loggers under the Supabase clients
_QUIET_LOGGERS = ("httpx", "httpcore", "hpack")

_CONTROL_CHARS = str.maketrans({"\n": "\\n", "\r": "\\r", "\t": "\\t", "\x00": None})


def _configure_root_logger() -> None:
    root = logging.getLogger()
    if root.handlers:
        return

    level = getattr(logging, os.environ.get("LOG_LEVEL", "INFO").upper(), logging.INFO)
    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    root.addHandler(handler)
    root.setLevel(level)

    for name in _QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)


_configure_root_logger()


@cache
def get_logger(name: str) -> logging.Logger:
    return logging.getLogger(name)


def _clean(value, max_length: int, suffix: str) -> str:
    if not value:
        return "N/A"
    text = str(value).translate(_CONTROL_CHARS)
    if len(text) <= max_length:
        return text
    return text[:max_length] + suffix


def sanitize_id_for_logging(id_value: str | None) -> str:
    """Escaped identifier cut to its first 8 characters ("N/A" when empty)."""
    return _clean(id_value, 8, "")


def sanitize_string_for_logging(value: str | None, max_length: int = 50) -> str:
    """Escaped request text, truncated with an ellipsis past `max_length`."""
    return _clean(value, max_length, "...")


__all__ = ["get_logger", "sanitize_id_for_logging", "sanitize_string_for_logging"]
