"""MyParcel exceptions and their HTTP mapping."""

from __future__ import annotations

from collections.abc import Iterable

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse


class MyParcelError(Exception):
    """Base class for all MyParcel errors."""

    code = "myparcel_error"


class ConfigurationError(MyParcelError):
    """Missing or malformed encryption key or API key."""

    code = "configuration_error"


class ValidationError(MyParcelError):
    """User-correctable input problem."""

    code = "validation_error"


class UnsupportedCarrierError(ValidationError):
    code = "unsupported_carrier"

    def __init__(self, carrier: object) -> None:
        self.carrier = carrier
        super().__init__(f"Unsupported carrier: {carrier}")


class IncompleteAddressError(ValidationError):
    code = "incomplete_address"


class MissingPickupFieldsError(ValidationError):
    """Pickup data could not be completed.

    ``missing`` lists the absent field names in their canonical order.
    """

    code = "missing_pickup_fields"

    def __init__(self, missing: Iterable[str]) -> None:
        self.missing = tuple(missing)
        super().__init__(
            "Pickup selection is missing required fields "
            f"({', '.join(self.missing)}). "
            "Use force override to provide pickup data."
        )


class PreconditionError(MyParcelError):
    """Operation is not allowed in the consignment's current state."""

    code = "precondition_failed"


class CommunicationError(MyParcelError):
    """Non-2xx response from the carrier API."""

    code = "communication_error"

    def __init__(
        self,
        message: str,
        *,
        status_code: int | None = None,
        body: str = "",
    ) -> None:
        self.status_code = status_code
        self.body = body
        super().__init__(message)


class DeliveryOptionsError(CommunicationError):
    code = "delivery_options_error"


class ConsignmentNotFoundError(MyParcelError):
    code = "consignment_not_found"

    def __init__(self, consignment_id: str) -> None:
        self.consignment_id = consignment_id
        super().__init__(f"Consignment {consignment_id} not found")


class ConsignmentConflictError(MyParcelError):
    """A live consignment for the order was written concurrently."""

    code = "consignment_conflict"

    def __init__(self, order_id: str) -> None:
        self.order_id = order_id
        super().__init__(f"Order {order_id} has already been exported")


class OrderNotFoundError(MyParcelError):
    code = "order_not_found"

    def __init__(self, order_id: str) -> None:
        self.order_id = order_id
        super().__init__(f"Order {order_id} not found")


_STATUS_CODES: list[tuple[type[MyParcelError], int]] = [
    (ConsignmentNotFoundError, 404),
    (OrderNotFoundError, 404),
    (ConsignmentConflictError, 409),
    (PreconditionError, 409),
    (CommunicationError, 502),
    (ValidationError, 400),
    (ConfigurationError, 500),
    (MyParcelError, 400),
]


def register_exception_handlers(app: FastAPI) -> None:
    """Register MyParcel exception handlers on a FastAPI app.

    More specific handlers are registered first so that subclasses
    keep their own status code. Every response body has the shape
    ``{"detail": str(exc), "code": exc.code}``.
    """

    def _make_handler(status_code: int):
        async def _handler(request: Request, exc: Exception) -> JSONResponse:
            return JSONResponse(
                status_code=status_code,
                content={
                    "detail": str(exc),
                    "code": getattr(exc, "code", MyParcelError.code),
                },
            )

        return _handler

    for exc_class, status_code in _STATUS_CODES:
        app.add_exception_handler(exc_class, _make_handler(status_code))
