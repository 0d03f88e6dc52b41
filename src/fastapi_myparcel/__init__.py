"""MyParcel delivery pricing and consignment export for FastAPI."""

from typing import TYPE_CHECKING

__version__ = "0.1.0"

__all__ = [
    "ConsignmentNotFoundError",
    "MyParcelConfig",
    "MyParcelError",
    "MyParcelFulfillmentProvider",
    "MyParcelService",
    "OrderResolver",
    "CartResolver",
    "__version__",
    "create_myparcel_router",
    "register_exception_handlers",
]

if TYPE_CHECKING:
    from fastapi_myparcel.config import MyParcelConfig
    from fastapi_myparcel.exceptions import (
        ConsignmentNotFoundError,
        MyParcelError,
        register_exception_handlers,
    )
    from fastapi_myparcel.pricing import MyParcelFulfillmentProvider
    from fastapi_myparcel.protocols import CartResolver, OrderResolver
    from fastapi_myparcel.router import create_myparcel_router
    from fastapi_myparcel.service import MyParcelService


def __getattr__(name: str):
    # Lazy imports to avoid loading all submodules on package import.
    if name == "MyParcelConfig":
        from fastapi_myparcel.config import MyParcelConfig

        return MyParcelConfig
    if name == "create_myparcel_router":
        from fastapi_myparcel.router import create_myparcel_router

        return create_myparcel_router
    if name == "MyParcelService":
        from fastapi_myparcel.service import MyParcelService

        return MyParcelService
    if name == "MyParcelFulfillmentProvider":
        from fastapi_myparcel.pricing import MyParcelFulfillmentProvider

        return MyParcelFulfillmentProvider
    if name in (
        "ConsignmentNotFoundError",
        "MyParcelError",
        "register_exception_handlers",
    ):
        from fastapi_myparcel import exceptions

        return getattr(exceptions, name)
    if name in ("OrderResolver", "CartResolver"):
        from fastapi_myparcel import protocols

        return getattr(protocols, name)
    raise AttributeError(
        f"module 'fastapi_myparcel' has no attribute {name!r}"
    )
