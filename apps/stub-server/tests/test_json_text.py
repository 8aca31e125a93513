from __future__ import annotations

import pytest

from stub_server.json_text import JsonKind, canonicalize, decode_object, dumps_compact, kind_of, render


def test_canonicalize_strips_insignificant_whitespace() -> None:
    raw = '{\n  "name" : "Jane Doe",\n  "tags": [ 1,\t2 ],\r\n  "nested": { "x": null }\n}'
    assert canonicalize(raw) == '{"name":"Jane Doe","tags":[1,2],"nested":{"x":null}}'


def test_canonicalize_keeps_key_order_and_number_spelling() -> None:
    assert canonicalize('{ "z": 1.50, "a": 1e3 }') == '{"z":1.50,"a":1e3}'


def test_canonicalize_keeps_escaped_quotes_inside_strings() -> None:
    assert canonicalize('{"q": "say \\"hi  there\\" "}') == '{"q":"say \\"hi  there\\" "}'


def test_canonicalize_accepts_bytes() -> None:
    assert canonicalize(b'{ "a": 1 }') == '{"a":1}'


@pytest.mark.parametrize("raw", ["{not json", '{"a": NaN}', '{"a": 1,}'])
def test_invalid_json_is_unset_rather_than_an_error(raw: str) -> None:
    assert canonicalize(raw) == ""


def test_blank_text_is_unset() -> None:
    assert canonicalize("   ") == ""


def test_unset_content_renders_as_empty_object() -> None:
    assert render("") == "{}"
    assert render(None) == "{}"
    assert render(canonicalize("")) == "{}"
    assert render('{"a":1}') == '{"a":1}'


def test_decode_object_falls_back_to_empty_object() -> None:
    assert decode_object('{"a":[1]}') == {"a": [1]}
    assert decode_object("") == {}
    assert decode_object("{broken") == {}
    assert decode_object("[1, 2]") == {}


def test_decode_object_returns_fresh_trees() -> None:
    first = decode_object('{"a":{"b":1}}')
    first["a"]["b"] = 2
    assert decode_object('{"a":{"b":1}}') == {"a": {"b": 1}}


def test_dumps_compact() -> None:
    assert dumps_compact({"a": [1, "é"], "b": None}) == '{"a":[1,"é"],"b":null}'


def test_kind_of() -> None:
    assert kind_of({}) is JsonKind.OBJECT
    assert kind_of([]) is JsonKind.ARRAY
    assert kind_of("x") is JsonKind.STRING
    assert kind_of(3) is JsonKind.NUMBER
    assert kind_of(3.5) is JsonKind.NUMBER
    assert kind_of(True) is JsonKind.BOOLEAN
    assert kind_of(None) is JsonKind.NULL


def _deeply_nested_text(depth: int) -> str:
    return '{"a":' * depth + "1" + "}" * depth


def test_invalid_utf8_bytes_are_unset() -> None:
    assert canonicalize(b"\xff{") == ""


def test_too_deep_documents_degrade_quietly() -> None:
    text = _deeply_nested_text(100_000)
    assert canonicalize(text) == ""
    assert decode_object(text) == {}


@pytest.mark.parametrize("value", [float("nan"), float("inf"), -float("inf")])
def test_dumps_compact_rejects_non_json_numbers(value: float) -> None:
    assert dumps_compact({"ratio": value}) == ""
