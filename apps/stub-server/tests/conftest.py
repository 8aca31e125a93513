"""Test bootstrap for stub-server."""

from __future__ import annotations

import logging
import sys
from pathlib import Path

import pytest
import structlog

APP_ROOT = Path(__file__).resolve().parents[1]

path_str = str(APP_ROOT)
if path_str not in sys.path:
    sys.path.insert(0, path_str)


@pytest.fixture(autouse=True)
def _reset_structlog():
    # CLI commands reconfigure logging against the runner's captured stdout
    yield
    structlog.reset_defaults()
    logging.getLogger().handlers.clear()
