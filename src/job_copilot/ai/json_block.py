"""
Structured data from free-form model output.

Grammar, informally:

    output  := prose* [fence] block [fence] prose*
    fence   := "```" ["json"]
    block   := "{" ... "}"      balanced, braces inside strings ignored

The first block that is valid JSON and decodes to an object wins.
"""
from __future__ import annotations

import json
import re
from typing import Any, Dict, Iterator, Optional

from job_copilot.errors import MalformedModelOutput

FENCE_PATTERN = re.compile(r"```(?:json|JSON)?")


def _balanced_blocks(text: str) -> Iterator[str]:
    start = text.find("{")
    while start != -1:
        end = _block_end(text, start)
        if end is not None:
            yield text[start : end + 1]
        start = text.find("{", start + 1)


def _block_end(text: str, start: int) -> Optional[int]:
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
                return i
    return None


def find_json_block(text: str | None) -> Optional[Dict[str, Any]]:
    """First well-formed JSON object in text, or None."""
    if not text:
        return None
    cleaned = FENCE_PATTERN.sub("", text)
    for block in _balanced_blocks(cleaned):
        try:
            value = json.loads(block)
        except json.JSONDecodeError:
            continue
        if isinstance(value, dict):
            return value
    return None


def extract_json_block(text: str | None) -> Dict[str, Any]:
    value = find_json_block(text)
    if value is None:
        preview = (text or "").strip().replace("\n", " ")[:80]
        raise MalformedModelOutput(f"No JSON object in model output: {preview!r}")
    return value
