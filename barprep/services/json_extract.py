"""Pull a JSON object out of a noisy LLM reply.

Backends asked for JSON still sometimes wrap it in markdown fences or put a
sentence of commentary in front of it::

    Sure! Here is the question:
    ```json
    {"questionText": "...", "options": ["A) ...", ...]}
    ```

``extract_json_object`` strips the fence markers, finds the first ``{`` and
scans to its balanced closing ``}`` (ignoring braces inside string literals),
then parses only that span. Anything after the first complete object is
ignored.
"""

from __future__ import annotations

import json
import re
from typing import Any

_FENCE = re.compile(r"```(?:json|JSON)?")


class MalformedJSONError(ValueError):
    """No complete JSON object could be found in the text."""


def strip_code_fences(text: str) -> str:
    """Remove markdown code-fence markers (```` ``` ```` / ```` ```json ````)."""
    return _FENCE.sub("", text)


def _balanced_object_end(text: str, start: int) -> int:
    """Index just past the ``}`` that closes the ``{`` at *start*, or -1."""
    depth = 0
    in_string = False
    escaped = False
    for i in range(start, len(text)):
        ch = text[i]
        if in_string:
            if escaped:
                escaped = False
            elif ch == "\\":
                escaped = True
            elif ch == '"':
                in_string = False
            continue
        if ch == '"':
            in_string = True
        elif ch == "{":
            depth += 1
        elif ch == "}":
            depth -= 1
            if depth == 0:
                return i + 1
    return -1


def extract_json_object(text: str | None) -> dict[str, Any]:
    """Return the first balanced JSON object found in *text*.

    Raises:
        MalformedJSONError: no ``{`` at all, the object is truncated, or the
            balanced span is not valid JSON.
    """
    if not text:
        raise MalformedJSONError("empty response")

    cleaned = strip_code_fences(text)
    start = cleaned.find("{")
    if start == -1:
        raise MalformedJSONError(f"no JSON object in response: {text[:200]!r}")

    end = _balanced_object_end(cleaned, start)
    if end == -1:
        raise MalformedJSONError(f"unbalanced JSON object in response: {text[:200]!r}")

    try:
        parsed = json.loads(cleaned[start:end])
    except json.JSONDecodeError as exc:
        raise MalformedJSONError(f"invalid JSON: {exc}") from exc
    return parsed
