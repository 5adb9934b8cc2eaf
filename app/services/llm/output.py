"""
Tolerant parsing of model output.

Models are asked for bare JSON or numbered lists but routinely wrap answers in
markdown fences or add chatter. Helpers here strip that noise, and the tagged
``Parsed`` / ``Fallback`` results let callers tell real output from canned
content.
"""
from __future__ import annotations

import json
import re
from dataclasses import dataclass
from typing import Any, Generic, Literal, TypeVar, Union

T = TypeVar("T")

_FENCE_RE = re.compile(r"```(?:json|JSON)?\s*\n?")
_NUMBERED_RE = re.compile(r"^\d+[.):]")
_NUMBERED_PREFIX_RE = re.compile(r"^\d+[.):]\s*")


class OutputParseError(ValueError):
    pass


@dataclass(frozen=True)
class Parsed(Generic[T]):
    value: T
    source: Literal["parsed"] = "parsed"

    @property
    def is_fallback(self) -> bool:
        return False


@dataclass(frozen=True)
class Fallback(Generic[T]):
    value: T
    reason: str = ""
    source: Literal["fallback"] = "fallback"

    @property
    def is_fallback(self) -> bool:
        return True


Generated = Union[Parsed[T], Fallback[T]]


def strip_code_fences(text: str) -> str:
    return _FENCE_RE.sub("", text or "").strip()


def parse_json_object(text: str) -> dict[str, Any]:
    """Decodes a JSON object from model output, tolerating fences and prose around it."""
    cleaned = strip_code_fences(text)
    if not cleaned:
        raise OutputParseError("empty model output")
    try:
        data = json.loads(cleaned)
    except json.JSONDecodeError:
        match = re.search(r"\{.*\}", cleaned, re.DOTALL)
        if not match:
            raise OutputParseError(f"no JSON object in output: {cleaned[:80]!r}")
        try:
            data = json.loads(match.group(0))
        except json.JSONDecodeError as exc:
            raise OutputParseError(f"invalid JSON: {exc}") from exc
    if not isinstance(data, dict):
        raise OutputParseError(f"expected a JSON object, got {type(data).__name__}")
    return data


def parse_numbered_lines(text: str, expected: int) -> list[str]:
    """
    Keeps lines prefixed with a numeral and '.', ')' or ':', strips the prefix
    and returns the first ``expected`` non-empty entries. Anything short of
    ``expected`` is an error; callers never get a partial list.
    """
    items = []
    for line in strip_code_fences(text).splitlines():
        line = line.strip()
        if not _NUMBERED_RE.match(line):
            continue
        item = _NUMBERED_PREFIX_RE.sub("", line).strip()
        if item:
            items.append(item)
    if len(items) < expected:
        raise OutputParseError(f"expected {expected} numbered lines, found {len(items)}")
    return items[:expected]


def clean_plain_text(text: str) -> str:
    """Strips fences and one layer of wrapping quotes from a free-text answer."""
    cleaned = strip_code_fences(text)
    if len(cleaned) >= 2 and cleaned[0] == cleaned[-1] and cleaned[0] in "\"'":
        cleaned = cleaned[1:-1].strip()
    return cleaned
