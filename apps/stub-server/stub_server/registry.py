"""In-memory, ordered stub storage with request lookup."""

from __future__ import annotations

import threading
from typing import Iterable, Mapping, Sequence

import structlog

from .json_text import JSONObject
from .matcher import content_matches, metadata_matches
from .models import Stub

LOGGER = structlog.get_logger("stub_server")


class StubRegistry:
    """Holds stubs in insertion order; the first matching stub wins."""

    def __init__(self, stubs: Iterable[Stub] | None = None) -> None:
        self._lock = threading.Lock()
        self._stubs: list[Stub] = list(stubs or [])

    def add(self, stub: Stub) -> None:
        with self._lock:
            self._stubs.append(stub)

    def extend(self, stubs: Iterable[Stub]) -> None:
        with self._lock:
            self._stubs.extend(stubs)

    def clear(self) -> int:
        with self._lock:
            removed = len(self._stubs)
            self._stubs = []
        return removed

    def all(self) -> list[Stub]:
        with self._lock:
            return list(self._stubs)

    def __len__(self) -> int:
        with self._lock:
            return len(self._stubs)

    def find(
        self,
        full_method: str,
        content: str | JSONObject | None,
        metadata: Mapping[str, Sequence[str] | str] | None = None,
    ) -> Stub | None:
        """Return the first stub for ``full_method`` matching the payload and headers."""

        for index, stub in enumerate(self.all()):
            if stub.full_method != full_method or stub.request is None:
                continue
            request = stub.request
            if not content_matches(request.match, request.content, content):
                continue
            if not metadata_matches(request.match, request.metadata, metadata):
                continue
            LOGGER.debug("stub_matched", full_method=full_method, index=index, stub_type=stub.type)
            return stub
        LOGGER.debug("stub_unmatched", full_method=full_method)
        return None
