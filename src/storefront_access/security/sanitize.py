"""
storefront_access.security.sanitize

Recursive input sanitization.

Responsibilities:
- Strip `<script>` blocks, `javascript:` URLs and inline event handlers
  (`onclick=` ...) from every string in a nested payload.
- Recurse into lists, tuples and dicts; pass every other type through.
- Reject oversized or deeply nested payloads before any of the above runs.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Any

from storefront_access.security.errors import FieldIssue, InputValidationError

_SCRIPT_OPEN = re.compile(r"<script\b", re.IGNORECASE)
_SCRIPT_CLOSE = re.compile(r"</script>", re.IGNORECASE)
_JS_SCHEME = re.compile(r"javascript:", re.IGNORECASE)
# Anchored at word starts and possessive, so each word is scanned once.
_HANDLER_WORD = re.compile(r"(?<!\w)\w++\s*+=")
_ON_PREFIX = re.compile(r"on\w", re.IGNORECASE)


@dataclass(frozen=True, slots=True)
class InputLimits:
    max_string_length: int = 10_000
    max_total_chars: int = 100_000
    max_depth: int = 32
    max_items: int = 1_000


def _strip_script_blocks(value: str) -> str:
    # A block runs from `<script` to the first `</script>` after it.
    parts: list[str] = []
    pos = 0
    while (opened := _SCRIPT_OPEN.search(value, pos)) is not None:
        closed = _SCRIPT_CLOSE.search(value, opened.end())
        if closed is None:
            break
        parts.append(value[pos : opened.start()])
        pos = closed.end()
    parts.append(value[pos:])
    return "".join(parts)


def _cut_handler(match: re.Match[str]) -> str:
    # Keep the part of the word before its first `on<word char>`.
    word = match.group(0)
    prefix = _ON_PREFIX.search(word)
    return match.group(0) if prefix is None else word[: prefix.start()]


def _clean_once(value: str) -> str:
    value = _strip_script_blocks(value)
    value = _JS_SCHEME.sub("", value)
    value = _HANDLER_WORD.sub(_cut_handler, value)
    return value.strip()


def sanitize_string(value: str) -> str:
    # Removing one match can splice together a new one ("jajavascript:vascript:"),
    # so repeat until nothing changes.
    while True:
        cleaned = _clean_once(value)
        if cleaned == value:
            return cleaned
        value = cleaned


def sanitize_input(data: Any) -> Any:
    if isinstance(data, str):
        return sanitize_string(data)
    if isinstance(data, list):
        return [sanitize_input(item) for item in data]
    if isinstance(data, tuple):
        return tuple(sanitize_input(item) for item in data)
    if isinstance(data, dict):
        # Keys are left untouched; only values are user content.
        return {key: sanitize_input(value) for key, value in data.items()}
    return data


def _too_large(path: str, message: str) -> InputValidationError:
    return InputValidationError(
        "Input too large", issues=[FieldIssue(path=path, message=message)]
    )


def enforce_input_limits(data: Any, limits: InputLimits) -> None:
    """
    Raise `InputValidationError` when `data` exceeds `limits`.

    Runs before `sanitize_input` so the sanitizer only ever sees bounded input.
    """

    total = 0

    def visit(value: Any, path: str, depth: int) -> None:
        nonlocal total
        if depth > limits.max_depth:
            raise _too_large(path, f"nested deeper than {limits.max_depth} levels")
        if isinstance(value, str):
            if len(value) > limits.max_string_length:
                raise _too_large(path, f"longer than {limits.max_string_length} characters")
            total += len(value)
            if total > limits.max_total_chars:
                raise _too_large(path, f"payload exceeds {limits.max_total_chars} characters")
        elif isinstance(value, list | tuple | dict):
            if len(value) > limits.max_items:
                raise _too_large(path, f"more than {limits.max_items} items")
            items = value.items() if isinstance(value, dict) else enumerate(value)
            for key, item in items:
                visit(item, f"{path}.{key}" if path else str(key), depth + 1)

    visit(data, "", 0)


# --- Module Notes -----------------------------------------------------------
# Output is a fixed point of `sanitize_string`, so sanitizing twice is the same
# as sanitizing once. Each pass is linear in the string length.
