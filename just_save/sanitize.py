"""Locate and decode the JSON payload inside a reasoning-engine response.

The engine is asked for bare JSON but frequently wraps it in Markdown fences
or surrounds it with conversational text. Nothing here trusts the response
shape; every helper either returns a usable value or raises ``NoJsonFound``.

Algorithm for :func:`extract_json_text`:

1. trim whitespace;
2. when a code fence is present (```` ```json ````, ```` ``` ````, or an
   unterminated fence from a truncated reply), keep only its body;
3. when the remainder does not start with the expected bracket (``[`` for
   arrays, ``{`` for objects), take the greedy first-opener-to-last-closer
   match instead;
4. nothing found: ``NoJsonFound``.

Decoding uses :meth:`json.JSONDecoder.raw_decode`, so trailing prose after a
complete value is ignored.
"""

from __future__ import annotations

import json
import re
from collections.abc import Iterable
from typing import Any, Literal, TypeAlias

from .errors import NoJsonFound

Expect: TypeAlias = Literal["array", "object"]

_FENCE_RE = re.compile(r"```[A-Za-z0-9_-]*[ \t]*\r?\n?(?P<body>.*?)(?:```|\Z)", re.DOTALL)

_OPENERS: dict[str, str] = {"array": "[", "object": "{"}
_GREEDY: dict[str, re.Pattern[str]] = {
    "array": re.compile(r"\[[\s\S]*\]"),
    "object": re.compile(r"\{[\s\S]*\}"),
}
_TYPES: dict[str, type] = {"array": list, "object": dict}

_DECODER = json.JSONDecoder()


def strip_fences(text: str) -> str:
    """Return the body of the first Markdown code fence, or the trimmed text."""

    s = text.strip()
    m = _FENCE_RE.search(s)
    if m is None:
        return s
    return m.group("body").strip()


def extract_json_text(text: str, expect: Expect) -> str:
    """Return the substring of ``text`` most likely to hold the JSON payload."""

    if expect not in _OPENERS:
        raise ValueError(f"expect must be 'array' or 'object', got {expect!r}")

    candidate = strip_fences(text or "")
    if candidate.startswith(_OPENERS[expect]):
        return candidate

    m = _GREEDY[expect].search(candidate)
    if m is None:
        raise NoJsonFound(f"No JSON {expect} found in response", raw_response=text)
    return m.group(0)


def decode_json(text: str, expect: Expect) -> Any:
    """Extract and decode the payload, enforcing the top-level JSON type."""

    candidate = extract_json_text(text, expect)
    try:
        value, _end = _DECODER.raw_decode(candidate)
    except json.JSONDecodeError as e:
        raise NoJsonFound(
            f"Model output was not valid JSON ({e.msg} at char {e.pos})", raw_response=text
        ) from e
    if not isinstance(value, _TYPES[expect]):
        raise NoJsonFound(
            f"Expected a JSON {expect}, got {type(value).__name__}", raw_response=text
        )
    return value


def salvage_object_members(text: str, keys: Iterable[str]) -> dict[str, Any]:
    """Decode individual ``"key": <value>`` members from a broken JSON object.

    Used when the full object cannot be decoded (typically a response cut off
    by the output budget). Each key's first decodable value is returned; keys
    whose value is itself broken are omitted.
    """

    body = strip_fences(text or "")
    out: dict[str, Any] = {}
    for key in keys:
        for m in re.finditer(rf'"{re.escape(key)}"\s*:\s*', body):
            try:
                value, _end = _DECODER.raw_decode(body, m.end())
            except json.JSONDecodeError:
                continue
            out[key] = value
            break
    return out


__all__ = ["Expect", "decode_json", "extract_json_text", "salvage_object_members", "strip_fences"]
