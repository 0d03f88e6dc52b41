"""Checkout pricing for MyParcel shipping options.

Amounts inside this module are integer minor units (cents); only the
returned ``calculated_amount`` is in major units.
"""

from __future__ import annotations

import asyncio
import logging
import math
from collections.abc import Mapping
from typing import Any

from fastapi_myparcel.address import parse_street
from fastapi_myparcel.constants import (
    DEFAULT_CARRIER,
    DEFAULT_FREE_SHIPPING_THRESHOLDS,
    HOUSE_NUMBER_COUNTRIES,
)
from fastapi_myparcel.delivery_options import (
    DeliveryOptionsClient,
    normalize_delivery_type,
    resolve_carrier_key,
    resolve_delivery_price,
    resolve_pickup_price,
)
from fastapi_myparcel.exceptions import UnsupportedCarrierError, ValidationError
from fastapi_myparcel.extract import first_present, first_truthy
from fastapi_myparcel.schemas import DeliverySelection, PriceResult
from fastapi_myparcel.selection import selection_from_data

logger = logging.getLogger(__name__)


def _to_number(value: Any) -> float | None:
    if isinstance(value, bool) or value is None:
        return None
    if isinstance(value, int | float):
        return float(value) if math.isfinite(value) else None
    if isinstance(value, str):
        try:
            number = float(value)
        except ValueError:
            return None
        return number if math.isfinite(number) else None
    return None


def round_half_up(value: float) -> int:
    return math.floor(value + 0.5)


def to_cents(value: Any) -> int:
    """Round an amount that is already in minor units to an int."""
    number = _to_number(value)
    return round_half_up(number) if number is not None else 0


def major_to_cents(value: float) -> int:
    return round_half_up(value * 100)


def cents_to_major(cents: int) -> float:
    return to_cents(cents) / 100


def _price_table(value: Any) -> Mapping[str, Any] | None:
    return value if isinstance(value, Mapping) else None


def resolve_base_price(
    fallback_prices: Mapping[str, Any] | None,
    carrier_prices: Mapping[str, Any] | None,
    delivery_type: str | int | None,
) -> int:
    """Pick the configured base price in cents.

    Lookup order: the carrier's own table for the delivery type, the flat
    table for the delivery type, the flat ``standard`` entry, the
    carrier's ``standard`` entry, then zero.
    """
    key = normalize_delivery_type(delivery_type) or "standard"
    for table, entry in (
        (carrier_prices, key),
        (fallback_prices, key),
        (fallback_prices, "standard"),
        (carrier_prices, "standard"),
    ):
        if table is None:
            continue
        amount = _to_number(table.get(entry))
        if amount is not None:
            return to_cents(amount)
    return 0


def _amount_from(value: Any) -> float | None:
    """Read a major-unit amount from a number or ``{value|raw|numeric}``."""
    if isinstance(value, Mapping):
        return _to_number(
            first_present(value.get("value"), value.get("raw"), value.get("numeric"))
        )
    return _to_number(value)


def _line_item_total(item: Any) -> float | None:
    if not isinstance(item, Mapping):
        return None
    for key in ("item_total", "total", "subtotal"):
        amount = _amount_from(item.get(key))
        if amount is not None:
            return amount
    unit_price = _amount_from(item.get("unit_price"))
    quantity = _to_number(item.get("quantity"))
    if unit_price is not None:
        return unit_price * (quantity if quantity is not None else 1)
    return None


def resolve_cart_total(context: Mapping[str, Any]) -> float | None:
    """Resolve the cart's item total in major units, or ``None``."""
    cart = context.get("cart")
    sources = [context]
    if isinstance(cart, Mapping):
        sources.append(cart)

    for source in sources:
        amount = _amount_from(source.get("item_total"))
        if amount is not None:
            return amount

    for source in sources:
        items = source.get("items")
        if isinstance(items, list) and items:
            totals = [_line_item_total(item) for item in items]
            known = [total for total in totals if total is not None]
            if known:
                return sum(known)
    return None


def resolve_free_shipping_threshold(
    option_data: Mapping[str, Any], country_code: str | None
) -> int | None:
    if not country_code:
        return None
    thresholds = first_truthy(
        option_data.get("free_shipping_thresholds"),
        option_data.get("freeShippingThresholds"),
        DEFAULT_FREE_SHIPPING_THRESHOLDS,
    )
    if not isinstance(thresholds, Mapping):
        return None
    for key, value in thresholds.items():
        if str(key).upper() == country_code:
            amount = _to_number(value)
            return to_cents(amount) if amount is not None else None
    return None


def resolve_tax_inclusive(option_data: Mapping[str, Any]) -> bool:
    candidate = first_present(
        option_data.get("prices_include_tax"),
        option_data.get("pricesIncludeTax"),
    )
    return candidate if isinstance(candidate, bool) else True


class MyParcelFulfillmentProvider:
    """Fulfillment-provider contract for MyParcel shipping options."""

    identifier = "myparcel"

    def __init__(self, delivery_options: DeliveryOptionsClient) -> None:
        self.delivery_options = delivery_options

    async def get_fulfillment_options(self) -> list[dict[str, Any]]:
        return [{"id": self.identifier}]

    async def can_calculate(self, *args: Any, **kwargs: Any) -> bool:
        return True

    async def validate_option(self, *args: Any, **kwargs: Any) -> bool:
        return True

    async def validate_fulfillment_data(
        self,
        option_data: Mapping[str, Any],
        data: Mapping[str, Any],
        context: Mapping[str, Any],
    ) -> Mapping[str, Any]:
        """Reject MyParcel selections that cannot be shipped to the
        cart's address."""
        if selection_from_data(data) is None:
            return data

        address = (context or {}).get("shipping_address") or {}
        if not address.get("country_code"):
            raise ValidationError(
                "Shipping address is required to select MyParcel "
                "delivery options"
            )

        cc = str(address["country_code"]).upper()
        if cc in HOUSE_NUMBER_COUNTRIES:
            street, number, _ = parse_street(
                address.get("address_1"), address.get("address_2")
            )
            if not street or not number:
                raise ValidationError(
                    "House number is required for NL/BE shipping addresses"
                )
        return data

    async def calculate_price(
        self,
        option_data: Mapping[str, Any],
        data: Mapping[str, Any],
        context: Mapping[str, Any],
    ) -> PriceResult:
        """Compute the shipping price for a checkout selection.

        Never fails because of the live carrier lookup: lookup errors are
        logged and the configured base price is returned.
        """
        option_data = option_data or {}
        context = context or {}
        selection = selection_from_data(data)
        tax_inclusive = resolve_tax_inclusive(option_data)

        try:
            carrier = resolve_carrier_key(
                first_truthy(
                    selection.carrier if selection else None,
                    option_data.get("default_carrier"),
                    DEFAULT_CARRIER,
                )
            )
        except UnsupportedCarrierError:
            carrier = DEFAULT_CARRIER

        selection_type: str | int = "standard"
        if selection is not None:
            selection_type = selection.delivery_type or (
                "pickup" if selection.is_pickup else "standard"
            )

        carrier_tables = _price_table(
            first_truthy(
                option_data.get("fallback_prices_by_carrier"),
                option_data.get("fallbackPricesByCarrier"),
            )
        )
        base_cents = resolve_base_price(
            _price_table(
                first_truthy(
                    option_data.get("fallback_prices"),
                    option_data.get("fallbackPrices"),
                )
            ),
            _price_table(carrier_tables.get(carrier)) if carrier_tables else None,
            selection_type,
        )

        def result(cents: int) -> PriceResult:
            return PriceResult(
                calculated_amount=cents_to_major(cents),
                is_calculated_price_tax_inclusive=tax_inclusive,
            )

        address = context.get("shipping_address") or {}
        country_code = (
            str(address["country_code"]).upper()
            if address.get("country_code")
            else None
        )

        threshold = resolve_free_shipping_threshold(option_data, country_code)
        if threshold is not None:
            cart_total = resolve_cart_total(context)
            if cart_total is not None and major_to_cents(cart_total) >= threshold:
                return result(0)

        if selection is None or not address.get("postal_code") or not country_code:
            return result(base_cents)

        surcharge = await self._lookup_surcharge(selection, carrier, address)
        if surcharge is None:
            return result(base_cents)
        return result(base_cents + surcharge)

    async def _lookup_surcharge(
        self,
        selection: DeliverySelection,
        carrier: str,
        address: Mapping[str, Any],
    ) -> int | None:
        street, number, _ = parse_street(
            address.get("address_1"), address.get("address_2")
        )
        params = {
            "carrier": carrier,
            "cc": str(address["country_code"]).upper(),
            "postal_code": address["postal_code"],
            "city": address.get("city") or None,
            "street": street or None,
            "number": number or None,
        }
        try:
            deliveries, pickups = await asyncio.gather(
                self.delivery_options.fetch_delivery_options(**params),
                self.delivery_options.fetch_pickup_locations(**params),
            )
            if selection.is_pickup:
                price = resolve_pickup_price(selection, pickups.pickup_locations)
            else:
                price = resolve_delivery_price(selection, deliveries.deliveries)
        except Exception as exc:
            logger.warning("MyParcel price calculation failed: %s", exc)
            return None

        if price is None:
            return None
        return to_cents(price.amount)
