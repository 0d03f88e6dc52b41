"""Public delivery-options discovery: client, cache and price matching."""

from __future__ import annotations

import json
import logging
import time
from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from typing import Any

import httpx

from fastapi_myparcel.constants import (
    CARRIER_IDS,
    DELIVERY_OPTIONS_PACKAGE_TYPE,
    DELIVERY_OPTIONS_PLATFORM,
    DELIVERY_TYPE_ID_TO_NAME,
    DELIVERY_TYPE_NAME_TO_ID,
)
from fastapi_myparcel.exceptions import (
    DeliveryOptionsError,
    UnsupportedCarrierError,
)
from fastapi_myparcel.extract import as_mapping, dig, first_truthy
from fastapi_myparcel.schemas import DeliverySelection

logger = logging.getLogger(__name__)

DEFAULT_CACHE_TTL = 5 * 60


@dataclass
class DeliveryOptionsResult:
    deliveries: list[Any] = field(default_factory=list)
    pickup_locations: list[Any] = field(default_factory=list)


@dataclass
class DeliveryPrice:
    amount: float
    currency: str | None = None


class TTLCache:
    """Wall-clock TTL cache with lazy eviction on lookup. Unbounded."""

    def __init__(
        self,
        ttl: float = DEFAULT_CACHE_TTL,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self.ttl = ttl
        self.clock = clock
        self._entries: dict[str, tuple[float, Any]] = {}

    def __len__(self) -> int:
        return len(self._entries)

    def get(self, key: str) -> Any:
        entry = self._entries.get(key)
        if entry is None:
            return None
        expires_at, value = entry
        if self.clock() > expires_at:
            self.evict(key)
            return None
        return value

    def set(self, key: str, value: Any) -> None:
        self._entries[key] = (self.clock() + self.ttl, value)

    def evict(self, key: str) -> None:
        self._entries.pop(key, None)

    def clear(self) -> None:
        self._entries.clear()


def normalize_delivery_type(value: str | int | None) -> str | None:
    """Map a delivery type id or name to its lower-case name.

    Unknown ids map to their string form.
    """
    if isinstance(value, bool) or value is None:
        return None
    if isinstance(value, int):
        return DELIVERY_TYPE_ID_TO_NAME.get(value, str(value))
    if isinstance(value, str):
        stripped = value.strip()
        if stripped.isdigit():
            return DELIVERY_TYPE_ID_TO_NAME.get(int(stripped), stripped)
        return stripped.lower() or None
    return None


def resolve_carrier_key(value: Any) -> str:
    """Map a carrier name or numeric id to its key, or raise."""
    if isinstance(value, int) and not isinstance(value, bool):
        for key, carrier_id in CARRIER_IDS.items():
            if carrier_id == value:
                return key
        raise UnsupportedCarrierError(value)
    if isinstance(value, str):
        key = value.strip().lower()
        if key in CARRIER_IDS:
            return key
        if key.isdigit():
            return resolve_carrier_key(int(key))
    raise UnsupportedCarrierError(value)


def normalize_delivery_type_id(value: str | int | None) -> int | None:
    """Map a delivery type name or id to the carrier's numeric id.

    Numeric input passes through. Unknown names yield ``None`` because
    the shipment API only accepts numeric delivery types; the name
    direction (:func:`normalize_delivery_type`) keeps them unchanged.
    """
    if isinstance(value, bool) or value is None:
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, str):
        stripped = value.strip()
        if stripped.isdigit():
            return int(stripped)
        return DELIVERY_TYPE_NAME_TO_ID.get(stripped.lower())
    return None


def _normalize_response(raw: Any) -> DeliveryOptionsResult:
    data = raw.get("data", raw) if isinstance(raw, Mapping) else raw
    data = as_mapping(data)
    deliveries = first_truthy(data.get("deliveries"), data.get("delivery"))
    pickups = first_truthy(data.get("pickup_locations"), data.get("pickup"))
    return DeliveryOptionsResult(
        deliveries=deliveries if isinstance(deliveries, list) else [],
        pickup_locations=pickups if isinstance(pickups, list) else [],
    )


class DeliveryOptionsClient:
    """Read-only client for the unauthenticated discovery endpoints.

    Construct once per process; the cache lives on the instance.
    """

    def __init__(
        self,
        *,
        base_url: str = "https://api.myparcel.nl",
        user_agent: str = "fastapi-myparcel",
        http_client: httpx.AsyncClient | None = None,
        cache: TTLCache | None = None,
        timeout: float = 30.0,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.user_agent = user_agent
        self.http_client = http_client or httpx.AsyncClient(timeout=timeout)
        self.cache = cache if cache is not None else TTLCache()

    async def aclose(self) -> None:
        await self.http_client.aclose()

    async def fetch_delivery_options(
        self,
        *,
        carrier: str,
        cc: str,
        postal_code: str,
        city: str | None = None,
        street: str | None = None,
        number: str | int | None = None,
        **extra: Any,
    ) -> DeliveryOptionsResult:
        params = {
            "platform": DELIVERY_OPTIONS_PLATFORM,
            "package_type": DELIVERY_OPTIONS_PACKAGE_TYPE,
            "include": "shipment_options",
            "carrier": carrier,
            "cc": cc,
            "postal_code": postal_code,
            "city": city,
            "street": street,
            "number": number,
            **extra,
        }
        return await self._cached_get("/delivery_options", params)

    async def fetch_pickup_locations(
        self,
        *,
        carrier: str,
        cc: str,
        postal_code: str,
        city: str | None = None,
        street: str | None = None,
        number: str | int | None = None,
        **extra: Any,
    ) -> DeliveryOptionsResult:
        params = {
            "platform": DELIVERY_OPTIONS_PLATFORM,
            "package_type": DELIVERY_OPTIONS_PACKAGE_TYPE,
            "carrier": carrier,
            "cc": cc,
            "postal_code": postal_code,
            "city": city,
            "street": street,
            "number": number,
            **extra,
        }
        return await self._cached_get("/pickup_locations", params)

    async def _cached_get(
        self, path: str, params: dict[str, Any]
    ) -> DeliveryOptionsResult:
        query = {
            key: str(value)
            for key, value in params.items()
            if value is not None and value != ""
        }
        cache_key = f"{path}:{json.dumps(query, sort_keys=True)}"
        cached = self.cache.get(cache_key)
        if cached is not None:
            logger.debug("Delivery options cache hit for %s", cache_key)
            return cached

        response = await self.http_client.get(
            f"{self.base_url}{path}",
            params=query,
            headers={
                "Accept": "application/json;version=2.0",
                "User-Agent": self.user_agent,
            },
        )
        if not response.is_success:
            raise DeliveryOptionsError(
                "MyParcel delivery options request failed "
                f"({response.status_code}): {response.text}",
                status_code=response.status_code,
                body=response.text,
            )

        result = _normalize_response(response.json())
        self.cache.set(cache_key, result)
        return result


def extract_price(candidate: Any) -> DeliveryPrice | None:
    """Read a price from a bare number, ``{amount}``, ``{price}`` or
    ``{price: {amount}}``."""
    if not candidate or isinstance(candidate, bool):
        return None
    if isinstance(candidate, int | float):
        return DeliveryPrice(amount=candidate)
    if not isinstance(candidate, Mapping):
        return None
    amount = candidate.get("amount")
    if _is_number(amount):
        return DeliveryPrice(amount=amount, currency=candidate.get("currency"))
    price = candidate.get("price")
    if _is_number(price):
        return DeliveryPrice(amount=price)
    if isinstance(price, Mapping) and _is_number(price.get("amount")):
        return DeliveryPrice(
            amount=price["amount"], currency=price.get("currency")
        )
    return None


def _is_number(value: Any) -> bool:
    return isinstance(value, int | float) and not isinstance(value, bool)


def _price_source(entry: Mapping[str, Any]) -> Any:
    price = entry.get("price")
    return entry if price is None else price


def _matches_time(
    selection: DeliverySelection, start: Any, end: Any
) -> bool:
    frame = selection.time_frame
    if frame is None or (not frame.start and not frame.end):
        return True
    if frame.start and start and frame.start != start:
        return False
    if frame.end and end and frame.end != end:
        return False
    return True


def _type_mismatch(selection_type: str | None, candidate: Any) -> bool:
    entry_type = normalize_delivery_type(candidate)
    return bool(selection_type and entry_type and selection_type != entry_type)


def resolve_delivery_price(
    selection: DeliverySelection, deliveries: list[Any]
) -> DeliveryPrice | None:
    """Match a home-delivery selection against live delivery windows.

    Deliveries are filtered by date, then per-time-frame prices are tried
    before per-possibility prices. The first match wins.
    """
    if not deliveries or not selection.delivery_type:
        return None

    selection_type = normalize_delivery_type(selection.delivery_type)
    selection_date = selection.date

    for delivery in deliveries:
        if not isinstance(delivery, Mapping):
            continue
        date = first_truthy(
            delivery.get("date"),
            delivery.get("day"),
            delivery.get("delivery_date"),
        )
        if selection_date and date and str(date)[:10] != selection_date:
            continue

        time_frames = first_truthy(
            delivery.get("time"), delivery.get("delivery_time_frames")
        )
        for frame in time_frames if isinstance(time_frames, list) else []:
            if not isinstance(frame, Mapping):
                continue
            if _type_mismatch(
                selection_type,
                first_truthy(
                    frame.get("type"),
                    frame.get("delivery_type"),
                    frame.get("delivery_type_name"),
                    frame.get("delivery_type_id"),
                ),
            ):
                continue
            start = first_truthy(
                frame.get("start"),
                dig(frame, "time_frame", "start"),
                dig(frame, "delivery_time_frame", "start"),
            )
            end = first_truthy(
                frame.get("end"),
                dig(frame, "time_frame", "end"),
                dig(frame, "delivery_time_frame", "end"),
            )
            if not _matches_time(selection, start, end):
                continue
            price = extract_price(_price_source(frame))
            if price:
                return price

        possibilities = delivery.get("possibilities")
        for possibility in possibilities if isinstance(possibilities, list) else []:
            if not isinstance(possibility, Mapping):
                continue
            if _type_mismatch(
                selection_type,
                first_truthy(
                    possibility.get("type"),
                    possibility.get("delivery_type"),
                    possibility.get("delivery_type_name"),
                    possibility.get("delivery_type_id"),
                ),
            ):
                continue
            frames = possibility.get("delivery_time_frames")
            if isinstance(frames, list) and len(frames) == 2:
                start = dig(frames, 0, "date_time")
                end = dig(frames, 1, "date_time")
                if not _matches_time(selection, start, end):
                    continue
            price = extract_price(_price_source(possibility))
            if price:
                return price

    return None


def location_identity(location: Mapping[str, Any]) -> tuple[Any, Any]:
    """Return ``(location_code, retail_network_id)`` of a pickup record."""
    code = first_truthy(
        dig(location, "location", "location_code"),
        location.get("location_code"),
    )
    network = first_truthy(
        dig(location, "location", "retail_network_id"),
        location.get("retail_network_id"),
    )
    return code, network


def matches_pickup(
    location: Mapping[str, Any], location_code: Any, retail_network_id: Any
) -> bool:
    code, network = location_identity(location)
    if location_code and code and str(code) != str(location_code):
        return False
    if retail_network_id and network and str(network) != str(retail_network_id):
        return False
    return True


def resolve_pickup_price(
    selection: DeliverySelection, pickup_locations: list[Any]
) -> DeliveryPrice | None:
    """Match a pickup selection against live pickup locations.

    Locations are matched by location code then retail network; the
    location's advertised possibilities are tried before its flat price.
    """
    pickup = selection.pickup
    if pickup is None or not pickup.location_code:
        return None
    selection_type = normalize_delivery_type(selection.delivery_type or "pickup")

    for location in pickup_locations or []:
        if not isinstance(location, Mapping):
            continue
        if not matches_pickup(
            location, pickup.location_code, pickup.retail_network_id
        ):
            continue

        possibilities = location.get("possibilities")
        for possibility in possibilities if isinstance(possibilities, list) else []:
            if not isinstance(possibility, Mapping):
                continue
            if _type_mismatch(
                selection_type,
                first_truthy(
                    possibility.get("delivery_type_name"),
                    possibility.get("delivery_type_id"),
                    possibility.get("type"),
                ),
            ):
                continue
            price = extract_price(_price_source(possibility))
            if price:
                return price

        fallback = extract_price(_price_source(location))
        if fallback:
            return fallback

    return None
