"""Starter lookup database written by the ``init`` command."""

from __future__ import annotations

from pathlib import Path
from typing import Any

import orjson

EXAMPLE_DATABASE: dict[str, Any] = {
    "version": 1,
    "idField": ["id", "userId", "code"],
    "data": [
        {
            "id": 1,
            "name": "John Doe",
            "email": "john@example.com",
            "role": "admin",
        },
        {
            "userId": 42,
            "name": "Jane Smith",
            "email": "jane@example.com",
            "department": "Engineering",
        },
        {
            "code": "ORD-2024-001",
            "status": "shipped",
            "total": 299.99,
            "customer": "Acme Corp",
        },
    ],
}


def write_example_database(path: Path, overwrite: bool = False) -> Path:
    """Write the example database, refusing to replace an existing file."""
    path = path.expanduser()
    if path.exists() and not overwrite:
        raise FileExistsError(f"{path} already exists")
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_bytes(orjson.dumps(EXAMPLE_DATABASE, option=orjson.OPT_INDENT_2))
    return path


__all__ = ["EXAMPLE_DATABASE", "write_example_database"]
