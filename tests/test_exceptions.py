"""Exception handler tests."""

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from fastapi_myparcel.exceptions import (
    CommunicationError,
    ConfigurationError,
    ConsignmentConflictError,
    ConsignmentNotFoundError,
    DeliveryOptionsError,
    IncompleteAddressError,
    MissingPickupFieldsError,
    MyParcelError,
    OrderNotFoundError,
    PreconditionError,
    UnsupportedCarrierError,
    register_exception_handlers,
)


def _client_raising(exc: Exception) -> TestClient:
    app = FastAPI()
    register_exception_handlers(app)

    @app.get("/boom")
    async def boom():
        raise exc

    return TestClient(app, raise_server_exceptions=False)


def test_consignment_not_found_error_has_consignment_id() -> None:
    exc = ConsignmentNotFoundError("mpc_42")
    assert exc.consignment_id == "mpc_42"
    assert str(exc) == "Consignment mpc_42 not found"


def test_missing_pickup_fields_message() -> None:
    exc = MissingPickupFieldsError(["cc", "city"])
    assert exc.missing == ("cc", "city")
    assert str(exc) == (
        "Pickup selection is missing required fields (cc, city). "
        "Use force override to provide pickup data."
    )


@pytest.mark.parametrize(
    ("exc", "status", "code"),
    [
        (ConsignmentNotFoundError("mpc_1"), 404, "consignment_not_found"),
        (OrderNotFoundError("order_1"), 404, "order_not_found"),
        (ConsignmentConflictError("order_1"), 409, "consignment_conflict"),
        (PreconditionError("no id"), 409, "precondition_failed"),
        (CommunicationError("carrier down"), 502, "communication_error"),
        (DeliveryOptionsError("lookup down"), 502, "delivery_options_error"),
        (UnsupportedCarrierError("ups"), 400, "unsupported_carrier"),
        (IncompleteAddressError("no number"), 400, "incomplete_address"),
        (MissingPickupFieldsError(["cc"]), 400, "missing_pickup_fields"),
        (ConfigurationError("no key"), 500, "configuration_error"),
        (MyParcelError("generic"), 400, "myparcel_error"),
    ],
)
def test_error_status_mapping(exc, status, code) -> None:
    resp = _client_raising(exc).get("/boom")

    assert resp.status_code == status
    body = resp.json()
    assert body["detail"] == str(exc)
    assert body["code"] == code
