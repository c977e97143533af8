"""Best-effort extraction of lookup tokens from source text and debugger output."""

from __future__ import annotations

import re
from collections.abc import Mapping
from typing import Any, Sequence

import orjson

Scalar = str | int | float | bool

STRING_PATTERNS = (
    re.compile(r"""["']([^"'\\]*(?:\\.[^"'\\]*)*)["']"""),
    re.compile(r"`([^`\\]*(?:\\.[^`\\]*)*)`"),
)
NUMBER_RE = re.compile(r"-?\d+\.?\d*")
NUMERIC_TEXT_RE = re.compile(r"^-?\d+\.?\d*$")
QUOTED_RE = re.compile(r"""^['"](.*)['"]$""", re.DOTALL)
WORD_RE = re.compile(r"\w+")
IDENTIFIER_RE = re.compile(r"^[A-Za-z_$][\w$]*$")
PAIR_RE = re.compile(
    r"""["']?([A-Za-z_$][\w$]*)["']?\s*[:=]\s*("(?:[^"\\]|\\.)*"|'(?:[^'\\]|\\.)*'|[^,{}\[\]]+)"""
)


def parse_number(text: str) -> int | float:
    return float(text) if "." in text else int(text)


def extract_string_at(line: str, column: int) -> str | None:
    """Contents of the quoted string whose body contains ``column``."""
    for pattern in STRING_PATTERNS:
        for match in pattern.finditer(line):
            if match.start() + 1 <= column < match.end() - 1:
                return match.group(1)
    return None


def extract_number_at(line: str, column: int) -> int | float | None:
    for match in NUMBER_RE.finditer(line):
        if match.start() <= column < match.end():
            return parse_number(match.group(0))
    return None


def word_at(line: str, column: int) -> str | None:
    for match in WORD_RE.finditer(line):
        if match.start() <= column < match.end():
            return match.group(0)
    return None


def token_at(line: str, column: int) -> Scalar | None:
    """Literal under the cursor: a string literal first, then a number."""
    text = extract_string_at(line, column)
    if text is not None:
        return text
    return extract_number_at(line, column)


def strip_quotes(value: Any) -> Any:
    """Drop one pair of surrounding quotes from a debugger result string."""
    if not isinstance(value, str):
        return value
    quoted = QUOTED_RE.match(value)
    return quoted.group(1) if quoted else value


def normalize_debug_value(value: Any) -> Any:
    """Turn a debugger evaluation result into a lookup token.

    Quoted strings lose their quotes and numeric text becomes a number;
    anything else is returned as-is.
    """
    if not isinstance(value, str):
        return value
    quoted = QUOTED_RE.match(value)
    if quoted:
        return quoted.group(1)
    if NUMERIC_TEXT_RE.match(value):
        return parse_number(value)
    return value


def is_scalar(value: Any) -> bool:
    return isinstance(value, (str, int, float, bool))


def candidate_tokens(value: Mapping[str, Any]) -> list[Scalar]:
    """Scalar property values of ``value`` in their natural order."""
    return [item for item in value.values() if is_scalar(item)]


def parse_object_text(text: str) -> list[Scalar]:
    """Candidate tokens from an object-like textual value, or ``[]``."""
    stripped = text.strip()
    if not (stripped.startswith("{") and stripped.endswith("}")):
        return []
    try:
        parsed = orjson.loads(stripped)
    except orjson.JSONDecodeError:
        parsed = None
    if isinstance(parsed, dict):
        return candidate_tokens(parsed)

    inner = stripped[1:-1]
    # nested structures make the flat pair scan ambiguous
    if any(char in inner for char in "{}[]"):
        return []
    candidates: list[Scalar] = []
    for match in PAIR_RE.finditer(inner):
        literal = _literal(match.group(2).strip())
        if literal is not None:
            candidates.append(literal)
    return candidates


def find_variable_value(lines: Sequence[str], name: str, line_no: int, _depth: int = 0) -> Scalar | None:
    """Walk upwards from ``line_no`` looking for a literal assigned to ``name``."""
    if _depth > 16 or not IDENTIFIER_RE.match(name):
        return None
    escaped = re.escape(name)
    patterns = (
        re.compile(rf"(?:const|let|var)\s+{escaped}\s*=\s*([^;,\n]+)", re.IGNORECASE),
        re.compile(rf"^\s*{escaped}\s*=\s*([^;,\n]+)", re.IGNORECASE),
        re.compile(rf"\b{escaped}\s*[=:]\s*([^;,\n}}]+)", re.IGNORECASE),
    )
    for index in range(min(line_no, len(lines) - 1), -1, -1):
        text = lines[index]
        for pattern in patterns:
            match = pattern.search(text)
            if not match:
                continue
            value = match.group(1).strip()
            if IDENTIFIER_RE.match(value) and value not in ("true", "false", "True", "False"):
                return find_variable_value(lines, value, index - 1, _depth + 1)
            literal = _literal(value)
            return literal if literal is not None else value
    return None


def _literal(value: str) -> Scalar | None:
    if len(value) >= 2 and value[0] == value[-1] and value[0] in "\"'`":
        return value[1:-1]
    if NUMERIC_TEXT_RE.match(value):
        return parse_number(value)
    if value in ("true", "True"):
        return True
    if value in ("false", "False"):
        return False
    return None


__all__ = [
    "extract_string_at",
    "extract_number_at",
    "word_at",
    "token_at",
    "strip_quotes",
    "normalize_debug_value",
    "candidate_tokens",
    "parse_object_text",
    "find_variable_value",
]
