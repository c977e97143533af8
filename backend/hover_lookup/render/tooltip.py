"""Tooltip formatting for lookup results."""

from __future__ import annotations

from typing import Any

import orjson

from hover_lookup.lookup.types import LookupResult, Record

SEPARATOR = "─" * 50
PREVIEW_ELLIPSIS = "..."


def dump_record(record: Record) -> str:
    """Pretty JSON for a record; BSON and other non-JSON values are stringified."""
    return orjson.dumps(record, default=str, option=orjson.OPT_INDENT_2 | orjson.OPT_NON_STR_KEYS).decode("utf-8")


def format_record(record: Record, max_size: int) -> str:
    """Pretty JSON body, replaced by a truncation marker when longer than ``max_size``."""
    text = dump_record(record)
    if len(text) <= max_size:
        return text
    marker: dict[str, Any] = {
        "_truncated": True,
        "_originalSize": len(text),
        "_preview": text[:max_size] + PREVIEW_ELLIPSIS,
    }
    return dump_record(marker)


def format_header_markdown(token: Any, result: LookupResult) -> str:
    match_info = ""
    if result.via_candidate:
        match_info = f"Matched using: `{result.matched_token}`\n\n"
    return (
        f"{SEPARATOR}\n\n"
        f"**\U0001F50D Database Lookup for `{token}`** ({result.elapsed_ms}ms)\n\n"
        f"Source: `{result.provenance}`\n"
        f"{match_info}\n"
        f"{SEPARATOR}\n\n"
    )


def format_header_plain(result: LookupResult) -> str:
    match_info = ""
    if result.via_candidate:
        match_info = f"Matched using: {result.matched_token}\n"
    return (
        f"\n\n{SEPARATOR}\n"
        f"\U0001F50D Database Lookup ({result.elapsed_ms}ms)\n"
        f"Source: {result.provenance}\n"
        f"{match_info}"
        f"{SEPARATOR}\n\n"
    )


def render_markdown(token: Any, result: LookupResult, max_size: int) -> str:
    """Markdown hover: header followed by a fenced JSON body."""
    body = format_record(result.record, max_size)
    return f"{format_header_markdown(token, result)}```json\n{body}\n```\n"


def enrich_debug_result(original: str, result: LookupResult, max_size: int) -> str:
    """Plain-text debugger hover: original value, header, record."""
    return f"{original}{format_header_plain(result)}{format_record(result.record, max_size)}"


__all__ = [
    "dump_record",
    "format_record",
    "format_header_markdown",
    "format_header_plain",
    "render_markdown",
    "enrich_debug_result",
]
