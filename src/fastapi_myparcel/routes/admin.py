"""Admin endpoints for settings and consignments."""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Body, Depends, HTTPException, Query
from fastapi.responses import Response

from fastapi_myparcel.constants import LABEL_FORMATS
from fastapi_myparcel.dependencies import get_order_resolver, get_service
from fastapi_myparcel.exceptions import OrderNotFoundError
from fastapi_myparcel.protocols import OrderResolver
from fastapi_myparcel.schemas import (
    ConsignmentListResponse,
    ConsignmentResponse,
    CreateConsignmentInput,
    OrderConsignmentResponse,
    SettingsResponse,
    SettingsUpdate,
)
from fastapi_myparcel.selection import resolve_selection
from fastapi_myparcel.service import MyParcelService

router = APIRouter(prefix="/admin/myparcel", tags=["myparcel-admin"])


async def _load_order(
    resolver: OrderResolver, order_id: str
) -> dict[str, Any]:
    order = await resolver.resolve(order_id)
    if order is None:
        raise OrderNotFoundError(order_id)
    return order


async def _require_consignment(service: MyParcelService, order_id: str) -> Any:
    consignment = await service.get_order_consignment(order_id)
    if consignment is None:
        raise HTTPException(status_code=404, detail="Consignment not found")
    return consignment


@router.get("/settings")
async def read_settings(
    service: MyParcelService = Depends(get_service),
) -> dict[str, SettingsResponse]:
    settings = await service.get_settings()
    return {"settings": SettingsResponse.from_settings(settings)}


@router.put("/settings")
async def update_settings(
    body: SettingsUpdate,
    service: MyParcelService = Depends(get_service),
) -> dict[str, SettingsResponse]:
    settings = await service.update_settings(body)
    return {"settings": SettingsResponse.from_settings(settings)}


@router.post("/settings/test")
async def check_connection(
    service: MyParcelService = Depends(get_service),
) -> dict[str, bool]:
    """Check the stored API key against the carrier API."""
    await service.test_connection()
    return {"ok": True}


@router.get("/consignments", response_model=ConsignmentListResponse)
async def list_consignments(
    limit: int = Query(20, ge=1),
    offset: int = Query(0, ge=0),
    status: str | None = None,
    carrier: str | None = None,
    order_id: str | None = None,
    service: MyParcelService = Depends(get_service),
) -> ConsignmentListResponse:
    limit = min(limit, 100)
    consignments, count = await service.list_consignments(
        {"status": status, "carrier": carrier, "order_id": order_id},
        limit=limit,
        offset=offset,
    )
    return ConsignmentListResponse(
        consignments=[
            ConsignmentResponse.from_consignment(c) for c in consignments
        ],
        count=count,
        limit=limit,
        offset=offset,
    )


@router.get(
    "/orders/{order_id}/consignment",
    response_model=OrderConsignmentResponse,
)
async def order_consignment(
    order_id: str,
    service: MyParcelService = Depends(get_service),
    resolver: OrderResolver = Depends(get_order_resolver),
) -> OrderConsignmentResponse:
    """Return the order's consignment (if any) and its resolved selection."""
    consignment = await service.get_order_consignment(order_id)
    order = await _load_order(resolver, order_id)
    return OrderConsignmentResponse(
        consignment=ConsignmentResponse.from_consignment(consignment)
        if consignment is not None
        else None,
        selection=resolve_selection(order),
    )


@router.post("/orders/{order_id}/export")
async def export_order(
    order_id: str,
    body: CreateConsignmentInput | None = Body(default=None),
    service: MyParcelService = Depends(get_service),
    resolver: OrderResolver = Depends(get_order_resolver),
) -> dict[str, ConsignmentResponse]:
    order = await _load_order(resolver, order_id)
    consignment = await service.export_order(
        order, body or CreateConsignmentInput()
    )
    return {"consignment": ConsignmentResponse.from_consignment(consignment)}


@router.post("/orders/{order_id}/register")
async def register_consignment(
    order_id: str,
    service: MyParcelService = Depends(get_service),
) -> dict[str, ConsignmentResponse]:
    consignment = await _require_consignment(service, order_id)
    updated = await service.register_consignment(consignment.id)
    return {"consignment": ConsignmentResponse.from_consignment(updated)}


@router.get("/orders/{order_id}/label")
async def order_label(
    order_id: str,
    label_format: str | None = Query(None, alias="format"),
    position: int | None = Query(None, ge=1, le=4),
    service: MyParcelService = Depends(get_service),
) -> Response:
    """Stream the consignment's label PDF."""
    consignment = await _require_consignment(service, order_id)
    requested = (label_format or "").upper()
    pdf = await service.get_label(
        consignment.id,
        format=requested if requested in LABEL_FORMATS else None,
        position=position,
    )
    return Response(
        content=pdf,
        media_type="application/pdf",
        headers={
            "Content-Disposition": (
                f"inline; filename=label-{order_id}-{consignment.id}.pdf"
            ),
        },
    )


@router.post("/orders/{order_id}/return-label/email")
async def email_return_label(
    order_id: str,
    service: MyParcelService = Depends(get_service),
    resolver: OrderResolver = Depends(get_order_resolver),
) -> dict[str, ConsignmentResponse]:
    order = await _load_order(resolver, order_id)
    consignment = await _require_consignment(service, order_id)

    email = order.get("email")
    if not email:
        raise HTTPException(status_code=400, detail="Order email is missing")

    address = order.get("shipping_address") or {}
    name = " ".join(
        part
        for part in (address.get("first_name"), address.get("last_name"))
        if part
    )
    updated = await service.email_return_label(consignment.id, email, name)
    return {"consignment": ConsignmentResponse.from_consignment(updated)}


@router.post("/orders/{order_id}/track-trace/refresh")
async def refresh_track_trace(
    order_id: str,
    service: MyParcelService = Depends(get_service),
) -> dict[str, ConsignmentResponse]:
    consignment = await _require_consignment(service, order_id)
    updated = await service.refresh_track_trace(consignment.id)
    return {"consignment": ConsignmentResponse.from_consignment(updated)}
