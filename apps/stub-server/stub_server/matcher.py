"""Structural matching of expected stub content against request payloads."""

from __future__ import annotations

from typing import Mapping, Sequence

import structlog

from .json_text import JSONArray, JSONObject, JSONValue, JsonKind, decode_object, kind_of

MATCH_PARTIAL = "partial"
MATCH_EXACT = "exact"

LOGGER = structlog.get_logger("stub_server")


def compare(expected: JSONObject, actual: JSONObject, exact: bool) -> bool:
    """Return True when ``actual`` satisfies every field of ``expected``.

    With ``exact`` set, objects must also carry the same number of fields at
    every level. Arrays always need equal lengths and match unordered.
    Trees too deep to walk never match.
    """

    try:
        return _compare(expected, actual, exact)
    except RecursionError:
        LOGGER.warning("content_too_deep", exact=exact)
        return False


def _compare(expected: JSONObject, actual: JSONObject, exact: bool) -> bool:
    if exact and len(expected) != len(actual):
        return False
    for key, value in expected.items():
        if key not in actual:
            return False
        if not _values_match(value, actual[key], exact):
            return False
    return True


def _values_match(expected: JSONValue, actual: JSONValue, exact: bool) -> bool:
    kind = kind_of(expected)
    if kind is not kind_of(actual):
        return False
    if kind is JsonKind.OBJECT:
        return _compare(expected, actual, exact)  # type: ignore[arg-type]
    if kind is JsonKind.ARRAY:
        return _arrays_match(expected, actual, exact)  # type: ignore[arg-type]
    return expected == actual


def _arrays_match(expected: JSONArray, actual: JSONArray, exact: bool) -> bool:
    # Length is strict in both modes. Matched actual elements are not
    # reserved, so one actual element may satisfy several expected ones.
    if len(expected) != len(actual):
        return False
    return all(
        any(_values_match(item, candidate, exact) for candidate in actual)
        for item in expected
    )


def matches(expected: JSONObject, actual: JSONObject) -> bool:
    """Partial match: extra fields in ``actual`` are ignored."""

    return compare(expected, actual, exact=False)


def equals(expected: JSONObject, actual: JSONObject) -> bool:
    """Exact match: no extra fields allowed at any object level."""

    return compare(expected, actual, exact=True)


def text_matches(expected_text: str, actual_text: str) -> bool:
    return matches(decode_object(expected_text), decode_object(actual_text))


def text_equals(expected_text: str, actual_text: str) -> bool:
    return equals(decode_object(expected_text), decode_object(actual_text))


def content_matches(match_mode: str, expected_text: str, actual: str | JSONObject | None) -> bool:
    """Compare stub content with a request payload under the stub's match mode."""

    expected = decode_object(expected_text)
    if actual is None or isinstance(actual, str):
        actual = decode_object(actual)
    if match_mode == MATCH_PARTIAL:
        return matches(expected, actual)
    return equals(expected, actual)


def metadata_matches(
    match_mode: str,
    expected: Mapping[str, Sequence[str]] | None,
    actual: Mapping[str, Sequence[str] | str] | None,
) -> bool:
    """Compare expected request headers with the incoming ones.

    Header names are case-insensitive and extra incoming headers are always
    allowed. Partial mode needs every expected value among the incoming
    values; exact mode needs the same values in the same order.
    """

    if not expected:
        return True
    incoming: dict[str, list[str]] = {}
    for name, values in (actual or {}).items():
        if isinstance(values, str):
            values = [values]
        incoming.setdefault(name.lower(), []).extend(values)

    for name, values in expected.items():
        found = incoming.get(name.lower())
        if found is None:
            return False
        if match_mode == MATCH_PARTIAL:
            if any(value not in found for value in values):
                return False
        elif list(values) != found:
            return False
    return True
