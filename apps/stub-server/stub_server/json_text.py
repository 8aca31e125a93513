"""Canonical JSON text used for every stub content field.

Content is stored as compacted JSON text: the exact document the stub author
wrote, minus insignificant whitespace. Unset content is the empty string and
always renders as ``{}`` so stored content stays parseable.
"""

from __future__ import annotations

import json
from enum import Enum
from typing import Annotated, Any, TypeAlias

import structlog
from pydantic import BeforeValidator, PlainSerializer, SerializationInfo

LOGGER = structlog.get_logger("stub_server")

JSONScalar: TypeAlias = str | int | float | bool | None
JSONValue: TypeAlias = JSONScalar | list["JSONValue"] | dict[str, "JSONValue"]
JSONObject: TypeAlias = dict[str, JSONValue]
JSONArray: TypeAlias = list[JSONValue]

EMPTY_OBJECT = "{}"

_JSON_WHITESPACE = frozenset(" \t\n\r")


class JsonKind(str, Enum):
    OBJECT = "object"
    ARRAY = "array"
    STRING = "string"
    NUMBER = "number"
    BOOLEAN = "boolean"
    NULL = "null"


def kind_of(value: JSONValue) -> JsonKind:
    """Classify a decoded JSON node."""

    # bool before number: bool is an int subclass
    if isinstance(value, bool):
        return JsonKind.BOOLEAN
    if isinstance(value, dict):
        return JsonKind.OBJECT
    if isinstance(value, list):
        return JsonKind.ARRAY
    if isinstance(value, str):
        return JsonKind.STRING
    if isinstance(value, (int, float)):
        return JsonKind.NUMBER
    if value is None:
        return JsonKind.NULL
    raise TypeError(f"Not a decoded JSON value: {type(value).__name__}")


def _reject_constant(name: str) -> Any:
    raise ValueError(f"{name} is not valid JSON")


def _loads(text: str) -> JSONValue:
    return json.loads(text, parse_constant=_reject_constant)


def _strip_whitespace(text: str) -> str:
    out: list[str] = []
    in_string = False
    escaped = False
    for char in text:
        if in_string:
            out.append(char)
            if escaped:
                escaped = False
            elif char == "\\":
                escaped = True
            elif char == '"':
                in_string = False
        elif char in _JSON_WHITESPACE:
            continue
        else:
            out.append(char)
            if char == '"':
                in_string = True
    return "".join(out)


def canonicalize(raw_text: str | bytes) -> str:
    """Return the whitespace-compacted form of ``raw_text``.

    Key order and number spelling are kept as written. Blank input is unset
    content. Invalid JSON is logged and also yields unset content; this
    function never raises for bad input.
    """

    try:
        if isinstance(raw_text, (bytes, bytearray)):
            raw_text = raw_text.decode("utf-8")
        if not raw_text.strip():
            return ""
        _loads(raw_text)
    except (ValueError, RecursionError) as exc:
        LOGGER.error("json_compact_failed", raw=repr(raw_text)[:200], error=str(exc))
        return ""
    return _strip_whitespace(raw_text)


def dumps_compact(value: Any) -> str:
    """Canonical text for an already-decoded value.

    Values JSON cannot represent (NaN, infinities, cycles) are logged and
    yield unset content.
    """

    try:
        return json.dumps(value, separators=(",", ":"), ensure_ascii=False, allow_nan=False, default=str)
    except (ValueError, RecursionError) as exc:
        LOGGER.error("json_compact_failed", raw=repr(value)[:200], error=str(exc))
        return ""


def render(text: str | None) -> str:
    """Serialization form of stored content: unset renders as ``{}``."""

    return text or EMPTY_OBJECT


def decode_object(text: str | None) -> JSONObject:
    """Decode stored content into a fresh object tree for matching.

    Unset text, invalid JSON and non-object documents all decode to ``{}``.
    """

    if not text:
        return {}
    try:
        value = _loads(text)
    except (ValueError, RecursionError) as exc:
        LOGGER.warning("json_decode_failed", text=text[:200], error=str(exc))
        return {}
    if not isinstance(value, dict):
        return {}
    return value


def _coerce_json_text(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, (bytes, bytearray, str)):
        return canonicalize(value)
    return dumps_compact(value)


def _serialize_json_text(value: str, info: SerializationInfo) -> Any:
    text = render(value)
    if info.mode_is_json():
        return _loads(text)
    return text


JsonString = Annotated[
    str,
    BeforeValidator(_coerce_json_text),
    PlainSerializer(_serialize_json_text, return_type=Any, when_used="always"),
]
