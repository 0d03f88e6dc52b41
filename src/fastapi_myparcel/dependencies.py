"""Dependency providers for request handlers."""

from __future__ import annotations

from fastapi import HTTPException, Request

from fastapi_myparcel.config import MyParcelConfig
from fastapi_myparcel.protocols import CartResolver, OrderResolver
from fastapi_myparcel.service import MyParcelService


def get_config(request: Request) -> MyParcelConfig:
    """Read config from FastAPI app state."""
    return request.app.state.myparcel_config


def get_service(request: Request) -> MyParcelService:
    """Read the MyParcel service from FastAPI app state."""
    return request.app.state.myparcel_service


def get_order_resolver(request: Request) -> OrderResolver:
    resolver = getattr(request.app.state, "myparcel_order_resolver", None)
    if resolver is None:
        raise HTTPException(
            status_code=500, detail="Order resolver not configured"
        )
    return resolver


def get_cart_resolver(request: Request) -> CartResolver:
    resolver = getattr(request.app.state, "myparcel_cart_resolver", None)
    if resolver is None:
        raise HTTPException(
            status_code=500, detail="Cart resolver not configured"
        )
    return resolver
