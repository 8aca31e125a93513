"""Pydantic models describing stub records."""

from __future__ import annotations

import json
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from .json_text import JsonString
from .matcher import MATCH_EXACT, MATCH_PARTIAL

STUB_TYPE_MOCK = "mock"
STUB_TYPE_FORWARD = "forward"
STUB_TYPES = (STUB_TYPE_MOCK, STUB_TYPE_FORWARD)

MATCH_MODES = (MATCH_EXACT, MATCH_PARTIAL)

RESPONSE_SUCCESS = "success"
RESPONSE_ERROR = "error"
RESPONSE_TYPES = (RESPONSE_SUCCESS, RESPONSE_ERROR)

UINT32_MAX = 2**32 - 1


class StubModel(BaseModel):
    """Base for stub records: camelCase on the wire, immutable once built."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)

    def as_serializable(self) -> dict[str, Any]:
        """Return a JSON/YAML friendly payload using wire field names."""

        return self.model_dump(mode="json", by_alias=True)


class ErrorDetailsSpec(StubModel):
    """Identifies the message type of an error detail (import path + type name)."""

    import_: str = Field(default="", alias="import")
    type: str = ""


class ErrorDetailsValue(StubModel):
    spec_override: ErrorDetailsSpec | None = None
    value: JsonString = ""

    def effective_spec(self, parent: ErrorDetailsSpec | None) -> ErrorDetailsSpec | None:
        return self.spec_override or parent


class ErrorDetails(StubModel):
    spec: ErrorDetailsSpec | None = None
    values: list[ErrorDetailsValue] = Field(default_factory=list)


class ErrorResponse(StubModel):
    """gRPC status returned instead of a success payload."""

    code: int = Field(default=0, ge=0, le=UINT32_MAX)
    message: str = ""
    details: ErrorDetails | None = None


class StubForward(StubModel):
    """Real backend the call is proxied to, optionally recording the exchange."""

    server_address: str = ""
    record: bool = False


class StubResponse(StubModel):
    type: str = RESPONSE_SUCCESS
    content: JsonString = ""
    error: ErrorResponse | None = None


class StubRequest(StubModel):
    """Expected request shape: content plus metadata, and how to compare them."""

    match: str = ""
    content: JsonString = ""
    metadata: dict[str, list[str]] = Field(default_factory=dict)

    @field_validator("metadata", mode="before")
    @classmethod
    def _wrap_single_values(cls, value: Any) -> Any:
        if value is None:
            return {}
        if isinstance(value, dict):
            return {key: [item] if isinstance(item, str) else item for key, item in value.items()}
        return value

    def __str__(self) -> str:
        return json.dumps(self.as_serializable(), separators=(",", ":"))


class Stub(StubModel):
    """One mock or forward rule for a gRPC method."""

    full_method: str = ""
    type: str = STUB_TYPE_MOCK
    request: StubRequest | None = None
    response: StubResponse | None = None
    forward: StubForward | None = None

    @field_validator("type", mode="before")
    @classmethod
    def _default_type(cls, value: Any) -> Any:
        # stub files written before forwarding existed carry no type
        if value is None or value == "":
            return STUB_TYPE_MOCK
        return value

    @property
    def is_mock(self) -> bool:
        return self.type == STUB_TYPE_MOCK

    @property
    def is_forward(self) -> bool:
        return self.type == STUB_TYPE_FORWARD


class InvalidStubResponse(StubModel):
    """Explains why a stub record is malformed, with a well-formed example."""

    errors: list[str] = Field(default_factory=list)
    example: Stub

    @property
    def is_valid(self) -> bool:
        return not self.errors
