"""CLI entrypoint for the stub server."""

from __future__ import annotations

import json
import sys
from pathlib import Path
from typing import Any, Optional

import typer

if __package__ in {None, ""}:
    package_root = Path(__file__).resolve().parents[1]
    if str(package_root) not in sys.path:
        sys.path.insert(0, str(package_root))
    __package__ = "stub_server"

from .config import StubConfigError, load_stubs, validate_file
from .logging_utils import configure_logging
from .models import Stub
from .output_config import get_admin_port, get_host, get_log_format, get_stubs_path
from .registry import StubRegistry
from .server import StubAdminServer
from .validation import EXAMPLE_STUB, validate_stub

app = typer.Typer(help="Serve, validate and try out gRPC stub definitions.")


def _load(path: Path) -> list[Stub]:
    try:
        return load_stubs(path)
    except StubConfigError as exc:
        raise typer.BadParameter(str(exc)) from exc


def _load_valid(path: Path, logger: Any) -> list[Stub]:
    stubs: list[Stub] = []
    for stub in _load(path):
        report = validate_stub(stub)
        if not report.is_valid:
            logger.warning("stub_skipped", full_method=stub.full_method, errors=report.errors)
            continue
        stubs.append(stub)
    return stubs


def _parse_metadata(pairs: list[str]) -> dict[str, list[str]]:
    metadata: dict[str, list[str]] = {}
    for item in pairs:
        if "=" not in item:
            raise typer.BadParameter("Metadata must use name=value format")
        name, value = item.split("=", 1)
        name = name.strip()
        if not name:
            raise typer.BadParameter("Metadata name cannot be empty")
        metadata.setdefault(name, []).append(value.strip())
    return metadata


@app.command()
def serve(
    stubs: Optional[Path] = typer.Option(
        None,
        "--stubs",
        "-s",
        help="Stub file or directory to preload (falls back to STUB_SERVER_STUBS).",
    ),
    host: Optional[str] = typer.Option(None, help="Admin API bind host (falls back to STUB_SERVER_HOST)."),
    port: Optional[int] = typer.Option(None, help="Admin API port (falls back to STUB_SERVER_ADMIN_PORT)."),
    log_level: str = typer.Option("info", help="Log level: debug, info, warning, error."),
    log_format: Optional[str] = typer.Option(None, help="Log format: console, plain or json."),
) -> None:
    """Load stubs and serve the admin API until interrupted."""

    logger = configure_logging(log_level, get_log_format(log_format))
    try:
        admin_port = get_admin_port(port)
    except ValueError as exc:
        raise typer.BadParameter(str(exc)) from exc

    registry = StubRegistry()
    stubs_path = get_stubs_path(str(stubs) if stubs else None)
    if stubs_path:
        registry.extend(_load_valid(Path(stubs_path), logger))

    server = StubAdminServer(registry, host=get_host(host), port=admin_port)
    server.start()
    try:
        server.join()
    except KeyboardInterrupt:
        logger.info("shutdown_requested")
    finally:
        server.stop()


@app.command()
def validate(
    path: Path = typer.Argument(..., exists=True, readable=True, help="Stub file or directory."),
    log_level: str = typer.Option("warning", help="Log level: debug, info, warning, error."),
) -> None:
    """Report stubs missing the records their type requires."""

    configure_logging(log_level, get_log_format("plain"))
    try:
        reports = validate_file(path)
    except StubConfigError as exc:
        raise typer.BadParameter(str(exc)) from exc

    invalid = 0
    for index, (stub, report) in enumerate(reports):
        if report.is_valid:
            continue
        invalid += 1
        typer.secho(f"Stub #{index} ({stub.full_method or '<no fullMethod>'}) is invalid:", fg=typer.colors.RED)
        for error in report.errors:
            typer.echo(f"  - {error}")

    if invalid:
        typer.echo("Example of a valid stub:")
        typer.echo(json.dumps(EXAMPLE_STUB.as_serializable(), indent=2))
        raise typer.Exit(code=1)
    typer.secho(f"{len(reports)} stub(s) valid", fg=typer.colors.GREEN)


@app.command()
def match(
    path: Path = typer.Argument(..., exists=True, readable=True, help="Stub file or directory."),
    method: str = typer.Option(..., "--method", "-m", help="Full gRPC method, e.g. /pkg.Service/Method."),
    content: str = typer.Option("{}", "--content", "-c", help="Request payload as JSON."),
    metadata: list[str] = typer.Option(
        [],
        "--metadata",
        help="Request metadata as name=value, repeatable.",
    ),
    log_level: str = typer.Option("warning", help="Log level: debug, info, warning, error."),
) -> None:
    """Print the stub that would answer a request."""

    logger = configure_logging(log_level, get_log_format("plain"))
    try:
        payload = json.loads(content)
    except json.JSONDecodeError as exc:
        raise typer.BadParameter(f"Content is not valid JSON: {exc}") from exc
    if not isinstance(payload, dict):
        raise typer.BadParameter("Content must be a JSON object")

    registry = StubRegistry(_load_valid(path, logger))
    stub = registry.find(method, payload, _parse_metadata(metadata))
    if stub is None:
        typer.secho("No stub matched", fg=typer.colors.YELLOW)
        raise typer.Exit(code=1)
    typer.echo(json.dumps(stub.as_serializable(), indent=2))


def run() -> None:
    """Console_scripts hook."""

    app()


if __name__ == "__main__":  # pragma: no cover
    run()
