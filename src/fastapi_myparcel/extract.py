"""Tolerant field extraction over loosely shaped carrier and checkout JSON.

The carrier API wraps the same information in different envelopes
depending on endpoint and account type, and checkout widgets store the
shopper's choice in whatever casing they were built with. The helpers in
this module try an ordered list of candidate locations and return the
first usable value instead of validating against a fixed schema.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

_MISSING = object()


def is_blank(value: Any) -> bool:
    """Return True for ``None`` and the empty string."""
    return value is None or value == ""


def pick_value(*values: Any) -> Any:
    """Return the first value that is not ``None`` or ``""``."""
    for value in values:
        if not is_blank(value):
            return value
    return None


def first_present(*values: Any) -> Any:
    """Return the first value that is not ``None`` (``??`` chaining)."""
    for value in values:
        if value is not None:
            return value
    return None


def first_truthy(*values: Any) -> Any:
    """Return the first truthy value (``||`` chaining)."""
    for value in values:
        if value:
            return value
    return None


def dig(data: Any, *path: str | int, default: Any = None) -> Any:
    """Walk ``path`` through nested mappings and sequences.

    Missing keys, out-of-range indexes and non-container intermediates all
    yield ``default``.
    """
    current = data
    for key in path:
        if isinstance(key, int):
            if not isinstance(current, list | tuple) or not -len(current) <= key < len(current):
                return default
            current = current[key]
        elif isinstance(current, Mapping):
            current = current.get(key, _MISSING)
            if current is _MISSING:
                return default
        else:
            return default
    return current


def as_mapping(value: Any) -> dict[str, Any]:
    """Return ``value`` when it is a mapping, otherwise an empty dict."""
    return dict(value) if isinstance(value, Mapping) else {}


def normalize_shipment_id(value: Any) -> str | None:
    """Reduce any carrier id shape to a trimmed string or ``None``."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, int):
        return str(value)
    if isinstance(value, float):
        if value != value or value in (float("inf"), float("-inf")):
            return None
        return str(int(value)) if value.is_integer() else str(value)
    if isinstance(value, str):
        return value.strip() or None
    if not isinstance(value, Mapping):
        return None

    direct = first_present(
        value.get("id"),
        value.get("shipment_id"),
        value.get("shipmentId"),
        value.get("myparcel_id"),
        value.get("myparcelId"),
    )
    if direct is not None:
        return normalize_shipment_id(direct)

    data = value.get("data")
    if isinstance(data, Mapping):
        nested = first_truthy(
            data.get("id"),
            data.get("shipment_id"),
            data.get("shipmentId"),
            data.get("myparcel_id"),
            data.get("myparcelId"),
        )
        if nested is not None:
            return normalize_shipment_id(nested)

    ids = value.get("ids")
    if isinstance(ids, list) and ids:
        return normalize_shipment_id(ids[0])

    shipments = value.get("shipments")
    if isinstance(shipments, list) and shipments:
        return normalize_shipment_id(dig(shipments, 0, "id"))

    return None


def normalize_status(value: Any) -> str | None:
    """Reduce a carrier status (string, number or object) to a string."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, str):
        return value.strip() or None
    if isinstance(value, int | float):
        return str(value)
    if isinstance(value, Mapping):
        candidate = first_present(
            value.get("status"), value.get("code"), value.get("id")
        )
        if candidate is not None:
            return normalize_status(candidate)
    return None


def extract_created_shipment(response: Any) -> dict[str, Any]:
    """Locate the shipment record in a create-shipment response."""
    return as_mapping(
        first_truthy(
            dig(response, "data", "shipments", 0),
            dig(response, "shipments", 0),
            dig(response, "data", "shipment"),
            dig(response, "data", 0),
        )
    )


def extract_created_shipment_id(response: Any) -> str | None:
    """Locate the new shipment id in a create-shipment response."""
    shipment = extract_created_shipment(response)
    return normalize_shipment_id(
        first_present(
            shipment.get("id"),
            dig(response, "data", "ids", 0),
            dig(response, "ids", 0),
            dig(response, "data", "id"),
            dig(response, "id"),
        )
    )


def extract_fetched_shipment(response: Any) -> dict[str, Any]:
    """Locate the shipment record in a get-shipment response."""
    return as_mapping(
        first_truthy(
            dig(response, "data", "shipments", 0),
            dig(response, "shipments", 0),
            dig(response, "data"),
        )
    )


def extract_label_link(response: Any) -> str | None:
    """Locate the PDF URL in a label-link response."""
    link = first_truthy(
        dig(response, "data", "pdfs", "url"),
        dig(response, "pdfs", "url"),
        dig(response, "data", "url"),
        dig(response, "url"),
    )
    return link if isinstance(link, str) else None
