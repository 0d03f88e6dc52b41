"""Storefront delivery-options endpoint."""

from __future__ import annotations

import asyncio

from fastapi import APIRouter, Depends, HTTPException, Query

from fastapi_myparcel.address import parse_street
from fastapi_myparcel.constants import (
    DEFAULT_ALLOWED_CARRIERS,
    DELIVERY_OPTIONS_PACKAGE_TYPE,
    DELIVERY_OPTIONS_PLATFORM,
)
from fastapi_myparcel.dependencies import get_cart_resolver, get_service
from fastapi_myparcel.protocols import CartResolver
from fastapi_myparcel.schemas import DeliveryOptionsResponse
from fastapi_myparcel.service import MyParcelService

router = APIRouter(prefix="/store/myparcel", tags=["myparcel-store"])


@router.get("/delivery-options", response_model=DeliveryOptionsResponse)
async def delivery_options(
    cart_id: str = Query(""),
    carrier: list[str] | None = Query(None),
    service: MyParcelService = Depends(get_service),
    cart_resolver: CartResolver = Depends(get_cart_resolver),
) -> DeliveryOptionsResponse:
    """Delivery windows and pickup points for every allowed carrier."""
    if not cart_id:
        raise HTTPException(status_code=400, detail="cart_id is required")

    cart = await cart_resolver.resolve(cart_id)
    address = (cart or {}).get("shipping_address") or {}
    if not address.get("postal_code") or not address.get("country_code"):
        raise HTTPException(
            status_code=400, detail="Cart shipping address is incomplete"
        )

    settings = await service.get_settings()
    allowed = settings.allowed_carriers or DEFAULT_ALLOWED_CARRIERS
    carriers = [c for c in allowed if not carrier or c in carrier]

    street, number, _ = parse_street(
        address.get("address_1"), address.get("address_2")
    )
    base_params = {
        "cc": str(address["country_code"]).upper(),
        "postal_code": address["postal_code"],
        "city": address.get("city") or None,
        "street": street or None,
        "number": number or None,
    }
    client = service.delivery_options

    async def fetch(carrier_key: str):
        return await asyncio.gather(
            client.fetch_delivery_options(carrier=carrier_key, **base_params),
            client.fetch_pickup_locations(carrier=carrier_key, **base_params),
        )

    results = await asyncio.gather(*(fetch(c) for c in carriers))
    return DeliveryOptionsResponse(
        platform=DELIVERY_OPTIONS_PLATFORM,
        package_type=DELIVERY_OPTIONS_PACKAGE_TYPE,
        carriers=carriers,
        deliveries={
            c: deliveries.deliveries
            for c, (deliveries, _) in zip(carriers, results, strict=True)
        },
        pickup_locations={
            c: pickups.pickup_locations
            for c, (_, pickups) in zip(carriers, results, strict=True)
        },
    )
