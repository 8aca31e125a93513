"""Stub file loading utilities."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

import structlog
import yaml
from pydantic import ValidationError

from .models import InvalidStubResponse, Stub
from .validation import validate_stub

LOGGER = structlog.get_logger("stub_server")

STUB_FILE_SUFFIXES = {".yaml", ".yml", ".json"}


class StubConfigError(ValueError):
    """Raised when a stub file or directory cannot be turned into stubs."""


def _stub_files(path: Path) -> list[Path]:
    if path.is_dir():
        return sorted(item for item in path.iterdir() if item.is_file() and item.suffix.lower() in STUB_FILE_SUFFIXES)
    if path.is_file():
        return [path]
    raise StubConfigError(f"Stub path {path} does not exist")


def _parse(path: Path) -> Any:
    raw = path.read_text(encoding="utf-8")
    if path.suffix.lower() == ".json":
        # YAML 1.1 reads 1e3 as a string and rejects tab indentation
        try:
            return json.loads(raw)
        except (ValueError, RecursionError) as exc:
            raise StubConfigError(f"Stub file {path} is not valid JSON: {exc}") from exc
    try:
        return yaml.safe_load(raw)
    except yaml.YAMLError as exc:
        raise StubConfigError(f"Stub file {path} is not valid YAML: {exc}") from exc


def _records(path: Path) -> list[Any]:
    data = _parse(path)
    if data is None:
        return []
    if isinstance(data, dict):
        return [data]
    if isinstance(data, list):
        return data
    raise StubConfigError(f"Stub file {path} must contain a mapping or a list of mappings")


def load_stubs(path: Path) -> list[Stub]:
    """Load every stub from a file or from the stub files of a directory."""

    stubs: list[Stub] = []
    for stub_file in _stub_files(path):
        for position, record in enumerate(_records(stub_file)):
            if not isinstance(record, dict):
                raise StubConfigError(f"Stub #{position} in {stub_file} must be a mapping")
            try:
                stubs.append(Stub.model_validate(record))
            except ValidationError as exc:
                raise StubConfigError(f"Stub #{position} in {stub_file} is invalid: {exc}") from exc
        LOGGER.debug("stub_file_loaded", path=str(stub_file))
    LOGGER.info("stubs_loaded", path=str(path), stub_count=len(stubs))
    return stubs


def validate_file(path: Path) -> list[tuple[Stub, InvalidStubResponse]]:
    """Load stubs from ``path`` and pair each one with its validation report."""

    return [(stub, validate_stub(stub)) for stub in load_stubs(path)]
