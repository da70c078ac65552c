"""Helpers for cleaning and parsing text returned by chat models."""

from __future__ import annotations

import json
import re
from typing import Any, Optional

_THINK_BLOCK = re.compile(r"<think(?:\s[^>]*)?>[\s\S]*?</think>", re.IGNORECASE)
_ORPHAN_THINK = re.compile(r"<think(?:\s[^>]*)?>[\s\S]*$", re.IGNORECASE)
_FENCED_JSON = re.compile(r"```(?:json)?\s*([\s\S]*?)\s*```", re.IGNORECASE)
_BARE_OBJECT = re.compile(r"\{[\s\S]*\}")


def strip_thinking(text: Optional[str]) -> str:
    """Remove ``<think>`` blocks, including an unterminated trailing one."""
    if not text:
        return ""
    cleaned = _THINK_BLOCK.sub("", text)
    cleaned = _ORPHAN_THINK.sub("", cleaned)
    return cleaned.strip()


def extract_json_payload(text: Optional[str]) -> Optional[Any]:
    """Return the first JSON document embedded in *text*.

    A fenced ```json block wins over a bare ``{...}`` object. Returns ``None`` when
    neither parses.
    """
    if not text:
        return None

    candidates = []
    fenced = _FENCED_JSON.search(text)
    if fenced:
        candidates.append(fenced.group(1))
    bare = _BARE_OBJECT.search(text)
    if bare:
        candidates.append(bare.group(0))

    for candidate in candidates:
        try:
            return json.loads(candidate)
        except json.JSONDecodeError:
            continue
    return None
