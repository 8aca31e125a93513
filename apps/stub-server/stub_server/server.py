"""Admin HTTP server exposing the stub registry as JSON endpoints."""

from __future__ import annotations

import json
import socketserver
import threading
from http import HTTPStatus
from http.server import BaseHTTPRequestHandler, HTTPServer
from typing import Any

import structlog
from pydantic import ValidationError

from .models import Stub
from .registry import StubRegistry
from .validation import validate_stub

LOGGER = structlog.get_logger("stub_server")


class BadRequest(ValueError):
    """Client sent a body the admin API cannot use."""


class ThreadedHTTPServer(socketserver.ThreadingMixIn, HTTPServer):
    daemon_threads = True


class StubAdminServer:
    """Runs the admin API for one registry on a background thread."""

    def __init__(self, registry: StubRegistry, host: str = "127.0.0.1", port: int = 4771) -> None:
        self._registry = registry
        self._host = host
        self._port = port
        self._httpd: ThreadedHTTPServer | None = None
        self._thread: threading.Thread | None = None
        self._ready = threading.Event()
        self._logger = LOGGER.bind(component="admin")

    @property
    def address(self) -> tuple[str, int]:
        if not self._httpd:
            raise RuntimeError("Admin server is not running")
        host, port = self._httpd.server_address[:2]
        return str(host), int(port)

    def start(self) -> None:
        self._logger.info("server_starting", host=self._host, port=self._port)
        httpd = ThreadedHTTPServer((self._host, self._port), _build_handler(self._registry))
        self._httpd = httpd
        self._thread = threading.Thread(target=httpd.serve_forever, daemon=True)
        self._thread.start()
        self._ready.set()
        host, port = self.address
        self._logger = self._logger.bind(host=host, port=port)
        self._logger.info("server_started", stub_count=len(self._registry))
        for line in _console_summary(host, port, self._registry):
            print(line)

    def stop(self) -> None:
        if not self._httpd:
            return
        self._logger.info("server_stopping")
        try:
            self._httpd.shutdown()
            self._httpd.server_close()
        finally:
            if self._thread:
                self._thread.join(timeout=2)
            self._httpd = None
            self._ready.clear()
        self._logger.info("server_stopped")

    def wait_until_ready(self, timeout: float = 1.0) -> bool:
        return self._ready.wait(timeout=timeout)

    def join(self, timeout: float | None = None) -> None:
        if self._thread:
            self._thread.join(timeout=timeout)

    def __enter__(self) -> "StubAdminServer":
        self.start()
        return self

    def __exit__(self, exc_type, exc, tb) -> None:  # pragma: no cover - context helper
        self.stop()


def _build_handler(registry: StubRegistry) -> type[BaseHTTPRequestHandler]:
    handler_logger = LOGGER.bind(component="admin")

    class Handler(BaseHTTPRequestHandler):
        def log_message(self, format: str, *args: Any) -> None:  # pragma: no cover - avoid stderr
            handler_logger.debug(
                "http_trace",
                client_ip=self.client_address[0],
                message=format % args,
            )

        def do_GET(self) -> None:  # noqa: N802 (BaseHTTPRequestHandler requirement)
            self._handle()

        def do_POST(self) -> None:  # noqa: N802
            self._handle()

        def _handle(self) -> None:
            path = self.path.split("?", 1)[0].rstrip("/") or "/"
            route = ROUTES.get((self.command, path))
            handler_logger.info("request_received", method=self.command, path=path)
            if route is None:
                self._respond(HTTPStatus.NOT_FOUND, {"error": f"Unknown endpoint {self.command} {path}"})
                return
            try:
                status, payload = route(registry, self._read_json())
            except BadRequest as exc:
                handler_logger.warning("request_rejected", method=self.command, path=path, error=str(exc))
                self._respond(HTTPStatus.BAD_REQUEST, {"error": str(exc)})
                return
            except Exception:
                handler_logger.exception("request_failed", method=self.command, path=path)
                self._respond(HTTPStatus.INTERNAL_SERVER_ERROR, {"error": "stub server failure"})
                return
            self._respond(status, payload)
            handler_logger.info("request_served", method=self.command, path=path, status=int(status))

        def _read_json(self) -> Any:
            length = int(self.headers.get("Content-Length", 0) or 0)
            body = self.rfile.read(length) if length else b""
            if not body.strip():
                return None
            try:
                return json.loads(body.decode("utf-8"))
            except (ValueError, RecursionError) as exc:
                raise BadRequest(f"Request body is not valid JSON: {exc}") from exc

        def _respond(self, status: HTTPStatus, payload: Any) -> None:
            body = json.dumps(payload).encode("utf-8")
            self.send_response(status)
            self.send_header("Content-Type", "application/json")
            self.send_header("Content-Length", str(len(body)))
            self.end_headers()
            self.wfile.write(body)

    return Handler


def _list_stubs(registry: StubRegistry, body: Any) -> tuple[HTTPStatus, Any]:
    return HTTPStatus.OK, [stub.as_serializable() for stub in registry.all()]


def _add_stubs(registry: StubRegistry, body: Any) -> tuple[HTTPStatus, Any]:
    records = body if isinstance(body, list) else [body]
    stubs: list[Stub] = []
    for record in records:
        if not isinstance(record, dict):
            raise BadRequest("Stub must be a JSON object")
        try:
            stub = Stub.model_validate(record)
        except ValidationError as exc:
            raise BadRequest(f"Stub could not be decoded: {exc}") from exc
        report = validate_stub(stub)
        if not report.is_valid:
            LOGGER.warning("stub_invalid", full_method=stub.full_method, errors=report.errors)
            return HTTPStatus.BAD_REQUEST, report.as_serializable()
        stubs.append(stub)
    registry.extend(stubs)
    LOGGER.info("stubs_added", added=len(stubs), stub_count=len(registry))
    return HTTPStatus.OK, {"added": len(stubs)}


def _is_metadata(value: Any) -> bool:
    if not isinstance(value, dict):
        return False
    for values in value.values():
        if isinstance(values, str):
            continue
        if not isinstance(values, list) or not all(isinstance(item, str) for item in values):
            return False
    return True


def _find_stub(registry: StubRegistry, body: Any) -> tuple[HTTPStatus, Any]:
    if not isinstance(body, dict) or not body.get("fullMethod"):
        raise BadRequest("Body must be an object with a fullMethod")
    content = body.get("content", body.get("data"))
    if not isinstance(content, (dict, str)):
        content = None
    metadata = body.get("metadata")
    if metadata is not None and not _is_metadata(metadata):
        raise BadRequest("metadata must map header names to a string or a list of strings")
    stub = registry.find(body["fullMethod"], content, metadata)
    if stub is None:
        return HTTPStatus.NOT_FOUND, {"error": "No stub matched"}
    payload = stub.as_serializable()
    if stub.is_forward:
        return HTTPStatus.OK, {"type": stub.type, "forward": payload["forward"]}
    return HTTPStatus.OK, {"type": stub.type, "response": payload["response"]}


def _clear_stubs(registry: StubRegistry, body: Any) -> tuple[HTTPStatus, Any]:
    removed = registry.clear()
    LOGGER.info("stubs_cleared", removed=removed)
    return HTTPStatus.OK, {"cleared": removed}


ROUTES = {
    ("GET", "/"): _list_stubs,
    ("GET", "/stubs"): _list_stubs,
    ("POST", "/add"): _add_stubs,
    ("POST", "/find"): _find_stub,
    ("POST", "/clear"): _clear_stubs,
}


def _console_summary(host: str, port: int, registry: StubRegistry) -> list[str]:
    header = f"[stub-server] admin API listening on {host}:{port}"
    lines = ["    stubs:"]
    stubs = registry.all()
    if stubs:
        lines.extend(f"      - {stub.type:<7} {stub.full_method}" for stub in stubs)
    else:
        lines.append("      (no stubs loaded)")
    return [header, *lines]
