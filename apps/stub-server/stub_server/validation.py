"""Human-readable validation of stub records."""

from __future__ import annotations

from .models import (
    MATCH_MODES,
    RESPONSE_ERROR,
    RESPONSE_TYPES,
    STUB_TYPES,
    InvalidStubResponse,
    Stub,
)

EXAMPLE_STUB = Stub.model_validate(
    {
        "fullMethod": "/payments.v1.PaymentService/GetPayment",
        "type": "mock",
        "request": {
            "match": "partial",
            "content": {"paymentId": "pay-123"},
            "metadata": {"authorization": ["Bearer token"]},
        },
        "response": {
            "type": "success",
            "content": {"paymentId": "pay-123", "status": "SETTLED", "amount": {"units": 42, "currency": "EUR"}},
        },
    }
)


def _stub_errors(stub: Stub) -> list[str]:
    errors: list[str] = []
    if not stub.full_method:
        errors.append("fullMethod is required, e.g. /package.Service/Method")
    if stub.type not in STUB_TYPES:
        errors.append(f"type must be one of {', '.join(STUB_TYPES)}, got '{stub.type}'")

    if stub.request is None:
        errors.append("request is required")
    elif stub.request.match not in MATCH_MODES:
        errors.append(f"request.match must be one of {', '.join(MATCH_MODES)}, got '{stub.request.match}'")

    if stub.is_mock:
        response = stub.response
        if response is None:
            errors.append("response is required when type is mock")
        elif response.type not in RESPONSE_TYPES:
            errors.append(f"response.type must be one of {', '.join(RESPONSE_TYPES)}, got '{response.type}'")
        elif response.type == RESPONSE_ERROR and response.error is None:
            errors.append("response.error is required when response.type is error")

    if stub.is_forward:
        if stub.forward is None:
            errors.append("forward is required when type is forward")
        elif not stub.forward.server_address:
            errors.append("forward.serverAddress is required when type is forward")
    return errors


def validate_stub(stub: Stub) -> InvalidStubResponse:
    """Explain what is missing from ``stub``; an empty error list means it is usable."""

    return InvalidStubResponse(errors=_stub_errors(stub), example=EXAMPLE_STUB)
