from __future__ import annotations

import json
from pathlib import Path

import yaml
from typer.testing import CliRunner

from stub_server.main import app

runner = CliRunner()

METHOD = "/payments.v1.PaymentService/GetPayment"


def _write_stubs(tmp_path: Path, stubs: list[dict]) -> Path:
    target = tmp_path / "stubs.yaml"
    target.write_text(yaml.safe_dump(stubs), encoding="utf-8")
    return target


def _valid_stub() -> dict:
    return {
        "fullMethod": METHOD,
        "request": {"match": "exact", "content": {"paymentId": "p-1"}},
        "response": {"type": "success", "content": {"status": "SETTLED"}},
    }


def test_validate_accepts_valid_stubs(tmp_path: Path) -> None:
    stub_file = _write_stubs(tmp_path, [_valid_stub()])

    result = runner.invoke(app, ["validate", str(stub_file)])

    assert result.exit_code == 0, result.output
    assert "1 stub(s) valid" in result.output


def test_validate_reports_errors_with_example(tmp_path: Path) -> None:
    stub_file = _write_stubs(tmp_path, [_valid_stub(), {"fullMethod": "/svc.A/Fwd", "type": "forward", "request": {"match": "exact"}}])

    result = runner.invoke(app, ["validate", str(stub_file)])

    assert result.exit_code == 1
    assert "Stub #1 (/svc.A/Fwd) is invalid" in result.output
    assert "forward is required when type is forward" in result.output
    assert "Example of a valid stub" in result.output


def test_match_prints_the_matching_stub(tmp_path: Path) -> None:
    stub_file = _write_stubs(tmp_path, [_valid_stub()])

    result = runner.invoke(
        app,
        ["match", str(stub_file), "--method", METHOD, "--content", '{"paymentId": "p-1"}'],
    )

    assert result.exit_code == 0, result.output
    payload = json.loads(result.output[result.output.index("{"):])
    assert payload["response"]["content"] == {"status": "SETTLED"}


def test_match_reports_no_match(tmp_path: Path) -> None:
    stub_file = _write_stubs(tmp_path, [_valid_stub()])

    result = runner.invoke(
        app,
        ["match", str(stub_file), "--method", METHOD, "--content", '{"paymentId": "p-1", "extra": true}'],
    )

    assert result.exit_code == 1
    assert "No stub matched" in result.output


def test_match_rejects_non_object_content(tmp_path: Path) -> None:
    stub_file = _write_stubs(tmp_path, [_valid_stub()])

    result = runner.invoke(app, ["match", str(stub_file), "--method", METHOD, "--content", "[1]"])

    assert result.exit_code == 2


def test_match_skips_invalid_stubs(tmp_path: Path) -> None:
    incomplete = {"fullMethod": METHOD, "request": {"match": "partial", "content": {}}}
    stub_file = _write_stubs(tmp_path, [incomplete])

    result = runner.invoke(app, ["match", str(stub_file), "--method", METHOD, "--content", "{}"])

    assert result.exit_code == 1
    assert "No stub matched" in result.output
