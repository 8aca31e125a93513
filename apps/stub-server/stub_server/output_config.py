"""Shared output and environment configuration for the stub server."""

import os
from typing import Literal


LogFormat = Literal["json", "console", "plain"]

ENV_VAR_NAME = "CONSOLE_OUTPUT_FORMAT"
HOST_ENV_VAR = "STUB_SERVER_HOST"
PORT_ENV_VAR = "STUB_SERVER_ADMIN_PORT"
STUBS_ENV_VAR = "STUB_SERVER_STUBS"

DEFAULT_HOST = "127.0.0.1"
DEFAULT_ADMIN_PORT = 4771


def get_log_format(cli_override: str | None = None) -> LogFormat:
    """
    Resolve the log renderer: --log-format flag, then CONSOLE_OUTPUT_FORMAT, then console.

    The environment variable also accepts the console reporter spellings
    auto/rich, both meaning colored console output.
    """
    if cli_override:
        format_lower = cli_override.lower()
        if format_lower in ("json", "console", "plain"):
            return format_lower  # type: ignore

    env_value = os.environ.get(ENV_VAR_NAME)
    if env_value:
        format_lower = env_value.lower()
        if format_lower == "json":
            return "json"
        elif format_lower == "plain":
            return "plain"
        elif format_lower in ("auto", "rich", "console"):
            return "console"

    return "console"


def get_host(cli_override: str | None = None) -> str:
    return cli_override or os.environ.get(HOST_ENV_VAR) or DEFAULT_HOST


def get_admin_port(cli_override: int | None = None) -> int:
    """Resolve the admin port from the CLI flag, then the environment."""

    if cli_override is not None:
        return cli_override
    raw = os.environ.get(PORT_ENV_VAR)
    if not raw:
        return DEFAULT_ADMIN_PORT
    try:
        port = int(raw)
    except ValueError as exc:
        raise ValueError(f"{PORT_ENV_VAR} must be an integer, got {raw!r}") from exc
    if port < 0 or port > 65535:
        raise ValueError(f"{PORT_ENV_VAR} must be between 0 and 65535")
    return port


def get_stubs_path(cli_override: str | None = None) -> str | None:
    return cli_override or os.environ.get(STUBS_ENV_VAR) or None
