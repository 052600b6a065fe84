"""Decoding of the chunked batchexecute response format and nested-array lookups."""

from __future__ import annotations

import json
import re
from typing import Any, List, Optional

_SAFETY_PREFIX_RE = re.compile(r"^[\t\n\f\r ]*\)\]\}'[\t\n\f\r ]*\n?")
_DIGIT_LINE_RE = re.compile(r"[0-9]+")


def _reject_constant(name: str) -> Any:
    raise ValueError(f"invalid JSON constant: {name}")


def _parse_array(text: str) -> Optional[List[Any]]:
    """Decode ``text`` as a JSON array; ``null`` counts as an empty array."""
    try:
        value = json.loads(text, parse_constant=_reject_constant)
    except ValueError:
        return None
    if value is None:
        return []
    if isinstance(value, list):
        return value
    return None


def strip_safety_prefix(raw: str) -> str:
    """Remove the leading ``)]}'`` guard and surrounding whitespace."""
    return _SAFETY_PREFIX_RE.sub("", raw, count=1).strip()


def extract_json_chunks(body: str) -> List[List[Any]]:
    """Split a length-prefixed chunked body into its decoded JSON arrays."""
    chunks: List[List[Any]] = []
    lines = body.split("\n")
    i = 0
    while i < len(lines):
        line = lines[i].strip()
        if not line:
            i += 1
            continue

        if not _DIGIT_LINE_RE.fullmatch(line):
            parsed = _parse_array(line)
            if parsed is not None:
                chunks.append(parsed)
            i += 1
            continue

        if i + 1 < len(lines):
            next_line = lines[i + 1].strip()
            if next_line:
                parsed = _parse_array(next_line)
                if parsed is not None:
                    chunks.append(parsed)
                    i += 2
                    continue

        # The chunk spans several lines: gather lines until the declared byte length.
        length = int(line)
        gathered: List[str] = []
        size = 0
        j = i + 1
        while j < len(lines) and size < length:
            if gathered:
                size += 1
            gathered.append(lines[j])
            size += len(lines[j].encode("utf-8"))
            j += 1
        text = "\n".join(gathered).strip()
        if text:
            parsed = _parse_array(text)
            if parsed is not None:
                chunks.append(parsed)
        i = j
    return chunks


def parse_envelopes(raw: str) -> List[List[Any]]:
    """Return the decoded inner payload of every ``wrb.fr`` envelope in ``raw``."""
    results: List[List[Any]] = []
    for chunk in extract_json_chunks(strip_safety_prefix(raw)):
        for item in chunk:
            if not isinstance(item, list) or len(item) < 3:
                continue
            if item[0] != "wrb.fr" or not isinstance(item[2], str):
                continue
            parsed = _parse_array(item[2])
            if parsed is not None:
                results.append(parsed)
    return results


def get_path(data: Any, *args: int) -> Any:
    """Follow list indices through nested arrays; ``None`` if any step is missing."""
    current = data
    for index in args:
        if not isinstance(current, list) or index < 0 or index >= len(current):
            return None
        current = current[index]
    return current


def extract_inner(raw: str) -> Optional[List[Any]]:
    """Return the first envelope payload, or ``None`` if there is none."""
    envelopes = parse_envelopes(raw)
    if envelopes:
        return envelopes[0]
    return None


def extract_all_inner(raw: str) -> List[List[Any]]:
    """Return every envelope payload in order."""
    return list(parse_envelopes(raw))