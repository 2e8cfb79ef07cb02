"""Decoding for JSON-valued columns that may arrive as text from the store."""

import json
from typing import Any


def decode_json(value: Any, *, default: Any = None) -> Any:
    """Return ``value`` decoded from JSON text, or unchanged if already structured."""
    if value is None or value == "":
        return default
    if isinstance(value, str | bytes):
        return json.loads(value)
    return value
