"""Shape detection for Animechan payloads.

The quote API has answered with several JSON layouts over time. Each known layout is a
``ShapeDetector``: a predicate that recognises the payload and an extractor that turns
it into ``QuoteRecord`` objects. Detectors are tried in order and the first match wins.
A payload no detector recognises raises ``UnexpectedResponseFormat``.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional, Sequence

from ..errors import UnexpectedResponseFormat
from ..models import UNKNOWN, QuoteRecord


@dataclass(frozen=True)
class ShapeDetector:
    name: str
    matches: Callable[[Any], bool]
    extract: Callable[[Any], List[QuoteRecord]]


def _text_or_unknown(value: Any) -> str:
    if isinstance(value, str) and value.strip():
        return value
    return UNKNOWN


def _name_of(value: Any, *, alt_key: Optional[str] = None) -> str:
    """Resolve a name given either as a plain string or as ``{"name": ...}``."""
    if isinstance(value, str):
        return _text_or_unknown(value)
    if isinstance(value, dict):
        name = value.get("name")
        if not name and alt_key:
            name = value.get(alt_key)
        return _text_or_unknown(name)
    return UNKNOWN


def _from_wrapped_item(item: Dict[str, Any]) -> QuoteRecord:
    return QuoteRecord(
        text=_text_or_unknown(item.get("content")),
        anime=_name_of(item.get("anime"), alt_key="altName"),
        character=_name_of(item.get("character")),
    )


def _from_bare_item(item: Dict[str, Any]) -> QuoteRecord:
    return QuoteRecord(
        text=_text_or_unknown(item.get("quote") or item.get("content")),
        anime=_name_of(item.get("anime")),
        character=_name_of(item.get("character")),
    )


def _is_wrapped(payload: Any) -> bool:
    return isinstance(payload, dict) and bool(payload.get("status")) and "data" in payload


def _is_wrapped_list(payload: Any) -> bool:
    return _is_wrapped(payload) and isinstance(payload["data"], list)


def _is_wrapped_single(payload: Any) -> bool:
    return _is_wrapped(payload) and isinstance(payload["data"], dict)


def _is_bare_list(payload: Any) -> bool:
    return isinstance(payload, list)


def _is_bare_object(payload: Any) -> bool:
    return isinstance(payload, dict) and ("quote" in payload or "content" in payload)


def _dict_items(items: Sequence[Any]) -> List[Dict[str, Any]]:
    return [item for item in items if isinstance(item, dict)]


WRAPPED_LIST = ShapeDetector(
    "wrapped_list",
    _is_wrapped_list,
    lambda payload: [_from_wrapped_item(item) for item in _dict_items(payload["data"])],
)
BARE_LIST = ShapeDetector(
    "bare_list",
    _is_bare_list,
    lambda payload: [_from_bare_item(item) for item in _dict_items(payload)],
)
WRAPPED_SINGLE = ShapeDetector(
    "wrapped_single",
    _is_wrapped_single,
    lambda payload: [_from_wrapped_item(payload["data"])],
)
WRAPPED_LIST_FIRST = ShapeDetector(
    "wrapped_list_first",
    lambda payload: _is_wrapped_list(payload) and bool(_dict_items(payload["data"])),
    lambda payload: [_from_wrapped_item(_dict_items(payload["data"])[0])],
)
BARE_LIST_FIRST = ShapeDetector(
    "bare_list_first",
    lambda payload: _is_bare_list(payload) and bool(_dict_items(payload)),
    lambda payload: [_from_bare_item(_dict_items(payload)[0])],
)
BARE_OBJECT = ShapeDetector("bare_object", _is_bare_object, lambda payload: [_from_bare_item(payload)])

QUOTE_LIST_SHAPES: Sequence[ShapeDetector] = (WRAPPED_LIST, BARE_LIST)
SINGLE_QUOTE_SHAPES: Sequence[ShapeDetector] = (
    WRAPPED_SINGLE,
    WRAPPED_LIST_FIRST,
    BARE_LIST_FIRST,
    BARE_OBJECT,
)


def detect_shape(payload: Any, detectors: Sequence[ShapeDetector]) -> ShapeDetector:
    for detector in detectors:
        if detector.matches(payload):
            return detector
    raise UnexpectedResponseFormat()


def parse_quote_list(payload: Any) -> List[QuoteRecord]:
    return detect_shape(payload, QUOTE_LIST_SHAPES).extract(payload)


def parse_single_quote(payload: Any) -> QuoteRecord:
    return detect_shape(payload, SINGLE_QUOTE_SHAPES).extract(payload)[0]
