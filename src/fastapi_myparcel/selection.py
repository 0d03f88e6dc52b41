"""Locate and normalize the shopper's delivery selection.

Checkout widgets store the MyParcel choice on the shipping method's
``data`` either under a wrapper key or flattened at the top level, in
snake_case or camelCase. :func:`resolve_selection` turns any of those
into a :class:`~fastapi_myparcel.schemas.DeliverySelection`, or ``None``
when the order did not use a MyParcel option.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping
from typing import Any

import pydantic

from fastapi_myparcel.extract import first_present, first_truthy, pick_value
from fastapi_myparcel.schemas import DeliverySelection

logger = logging.getLogger(__name__)

WRAPPER_KEYS = ("myparcel", "myparcel_delivery", "myparcel_selection")

# Boundary heuristic: another provider's data sharing one of these keys is
# treated as a MyParcel selection.
SELECTION_MARKER_KEYS = frozenset(
    {"delivery_type", "is_pickup", "date", "pickup", "carrier"}
)


def looks_like_selection(data: Mapping[str, Any]) -> bool:
    return any(key in data for key in SELECTION_MARKER_KEYS)


def _mapping(value: Any) -> Mapping[str, Any]:
    return value if isinstance(value, Mapping) else {}


def normalize_pickup(candidate: Any) -> dict[str, Any] | None:
    """Normalize a pickup location blob, or return ``None`` when empty."""
    if not isinstance(candidate, Mapping):
        return None

    location = _mapping(candidate.get("location"))
    address = _mapping(
        first_truthy(
            candidate.get("address"),
            candidate.get("location_address"),
            candidate.get("locationAddress"),
            location.get("address"),
            location.get("location_address"),
            location.get("locationAddress"),
        )
    )

    pickup = {
        "location_code": pick_value(
            candidate.get("location_code"),
            candidate.get("locationCode"),
            candidate.get("code"),
            location.get("location_code"),
            location.get("locationCode"),
        ),
        "retail_network_id": pick_value(
            candidate.get("retail_network_id"),
            candidate.get("retailNetworkId"),
            candidate.get("networkId"),
            candidate.get("retail_network"),
            location.get("retail_network_id"),
            location.get("retailNetworkId"),
        ),
        "location_name": pick_value(
            candidate.get("location_name"),
            candidate.get("locationName"),
            candidate.get("name"),
            location.get("location_name"),
            location.get("locationName"),
            location.get("name"),
        ),
        "address": {
            "cc": pick_value(
                address.get("cc"),
                address.get("country_code"),
                address.get("countryCode"),
                address.get("country"),
            ),
            "city": pick_value(address.get("city")),
            "number": pick_value(
                address.get("number"),
                address.get("house_number"),
                address.get("houseNumber"),
            ),
            "number_suffix": pick_value(
                address.get("number_suffix"),
                address.get("numberSuffix"),
                address.get("number_addition"),
                address.get("numberAddition"),
                address.get("addition"),
            ),
            "postal_code": pick_value(
                address.get("postal_code"),
                address.get("postalCode"),
                address.get("zip"),
                address.get("zipCode"),
            ),
            "street": pick_value(
                address.get("street"),
                address.get("street_name"),
                address.get("streetName"),
            ),
        },
    }

    meaningful = (
        pickup["location_code"],
        pickup["retail_network_id"],
        pickup["location_name"],
        *(
            pickup["address"][key]
            for key in ("cc", "city", "postal_code", "street", "number")
        ),
    )
    if not any(meaningful):
        return None
    return pickup


def normalize_selection(candidate: Mapping[str, Any]) -> dict[str, Any]:
    """Fold field-name variants into the canonical selection keys."""
    delivery_type = first_present(
        candidate.get("delivery_type"),
        candidate.get("deliveryType"),
        candidate.get("delivery_type_id"),
        candidate.get("deliveryTypeId"),
        candidate.get("delivery_type_name"),
        candidate.get("deliveryTypeName"),
    )

    pickup = None
    for key in (
        "pickup",
        "pickup_location",
        "pickupLocation",
        "pickup_point",
        "pickupPoint",
        "location",
    ):
        pickup = normalize_pickup(candidate.get(key))
        if pickup:
            break

    carrier = first_truthy(
        candidate.get("carrier"),
        candidate.get("carrier_id"),
        candidate.get("carrierId"),
        candidate.get("shipment_carrier"),
        candidate.get("shipmentCarrier"),
    )
    if isinstance(carrier, str):
        carrier = carrier.lower()

    is_pickup = first_present(
        candidate.get("is_pickup"),
        candidate.get("isPickup"),
        candidate.get("is_pickup_point"),
        candidate.get("isPickupPoint"),
    )
    if not isinstance(is_pickup, bool):
        is_pickup = pickup is not None

    time_frame = first_truthy(
        candidate.get("time_frame"), candidate.get("timeFrame")
    )
    if not time_frame and (
        candidate.get("timeFrameStart") or candidate.get("timeFrameEnd")
    ):
        time_frame = {
            "start": candidate.get("timeFrameStart"),
            "end": candidate.get("timeFrameEnd"),
        }

    normalized = dict(candidate)
    normalized.update(
        carrier=carrier,
        is_pickup=is_pickup,
        delivery_type=delivery_type,
        date=first_truthy(
            candidate.get("date"),
            candidate.get("delivery_date"),
            candidate.get("deliveryDate"),
            candidate.get("selected_date"),
        ),
        time_frame=time_frame if isinstance(time_frame, Mapping) else None,
        pickup=pickup,
        shipment_options=first_truthy(
            candidate.get("shipment_options"),
            candidate.get("shipmentOptions"),
            candidate.get("options"),
            candidate.get("shipment_options_data"),
        ),
    )
    if not isinstance(normalized["shipment_options"], Mapping):
        normalized["shipment_options"] = None
    return normalized


def selection_from_data(data: Any) -> DeliverySelection | None:
    """Resolve a selection from one shipping method's ``data`` blob."""
    if not isinstance(data, Mapping):
        return None

    candidate = None
    for key in WRAPPER_KEYS:
        wrapped = data.get(key)
        if wrapped and isinstance(wrapped, Mapping):
            candidate = wrapped
            break
    if candidate is None and looks_like_selection(data):
        candidate = data
    if candidate is None:
        return None

    normalized = normalize_selection(candidate)
    try:
        return DeliverySelection.model_validate(normalized)
    except pydantic.ValidationError as exc:
        # Keep the selection; only the malformed fields fall back to
        # their defaults.
        invalid = {error["loc"][0] for error in exc.errors() if error["loc"]}
        logger.warning(
            "Dropping malformed MyParcel selection fields: %s",
            ", ".join(sorted(map(str, invalid))),
        )
        return DeliverySelection.model_validate(
            {key: value for key, value in normalized.items() if key not in invalid}
        )


def resolve_selection(order: Any) -> DeliverySelection | None:
    """Return the first MyParcel selection found on the order's
    shipping methods, or ``None``."""
    methods: Iterable[Any] = _mapping(order).get("shipping_methods") or []
    for method in methods:
        selection = selection_from_data(_mapping(method).get("data"))
        if selection is not None:
            return selection
    return None
