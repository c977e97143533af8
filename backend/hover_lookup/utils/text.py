"""Text processing helpers."""

from __future__ import annotations

from typing import Any


def as_key(value: Any) -> str:
    """Stringify a token or id value the way keys are stored in the index."""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)
