"""Router factory for fastapi-myparcel."""

from __future__ import annotations

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import APIRouter, FastAPI

from fastapi_myparcel.config import MyParcelConfig
from fastapi_myparcel.exceptions import register_exception_handlers
from fastapi_myparcel.protocols import CartResolver, OrderResolver
from fastapi_myparcel.routes.admin import router as admin_router
from fastapi_myparcel.routes.store import router as store_router
from fastapi_myparcel.service import MyParcelService


def create_myparcel_router(
    *,
    config: MyParcelConfig,
    service: MyParcelService,
    order_resolver: OrderResolver | None = None,
    cart_resolver: CartResolver | None = None,
) -> APIRouter:
    """Create a configured API router with admin and store endpoints."""

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncGenerator[None]:
        app.state.myparcel_config = config
        app.state.myparcel_service = service
        app.state.myparcel_order_resolver = order_resolver
        app.state.myparcel_cart_resolver = cart_resolver
        register_exception_handlers(app)
        yield

    router = APIRouter(lifespan=lifespan)
    router.include_router(admin_router)
    router.include_router(store_router)
    return router
