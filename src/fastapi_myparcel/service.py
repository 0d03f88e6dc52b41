"""Consignment export, label and track-and-trace operations."""

from __future__ import annotations

import asyncio
import logging
import re
from collections.abc import Mapping
from datetime import UTC, datetime
from typing import Any
from urllib.parse import urlencode

import httpx

from fastapi_myparcel.address import parse_street
from fastapi_myparcel.client import (
    LABEL_LINK_ACCEPT,
    RETURN_SHIPMENT_CONTENT_TYPE,
    SHIPMENT_CONTENT_TYPE,
    MyParcelClient,
)
from fastapi_myparcel.config import MyParcelConfig
from fastapi_myparcel.constants import (
    CARRIER_IDS,
    CONSIGNMENT_STATUS_CONCEPT,
    CONSIGNMENT_STATUS_REGISTERED,
    DEFAULT_A4_POSITION,
    DEFAULT_ALLOWED_CARRIERS,
    DEFAULT_CARRIER,
    DEFAULT_ENVIRONMENT,
    DEFAULT_LABEL_FORMAT,
    DEFAULT_WEIGHT_GRAMS,
    HOUSE_NUMBER_COUNTRIES,
    LABEL_FORMATS,
    PACKAGE_TYPE_PACKAGE,
    REQUIRED_PICKUP_FIELDS,
    RETURN_LABEL_STATUS_SENT,
    SHIPMENT_OPTION_KEYS,
)
from fastapi_myparcel.crypto import AESGCMSecretBox
from fastapi_myparcel.delivery_options import (
    DeliveryOptionsClient,
    TTLCache,
    matches_pickup,
    normalize_delivery_type_id,
    resolve_carrier_key,
)
from fastapi_myparcel.exceptions import (
    CommunicationError,
    ConfigurationError,
    ConsignmentConflictError,
    IncompleteAddressError,
    MissingPickupFieldsError,
    PreconditionError,
)
from fastapi_myparcel.extract import (
    as_mapping,
    extract_created_shipment,
    extract_created_shipment_id,
    extract_fetched_shipment,
    extract_label_link,
    first_truthy,
    is_blank,
    normalize_status,
)
from fastapi_myparcel.protocols import (
    ConsignmentRepository,
    SecretBox,
    SettingsRepository,
)
from fastapi_myparcel.schemas import (
    CreateConsignmentInput,
    DeliverySelection,
    SettingsUpdate,
)
from fastapi_myparcel.selection import resolve_selection

logger = logging.getLogger(__name__)

_NUMERIC_ID = re.compile(r"^\d+$")
_DATE_ONLY = re.compile(r"^\d{4}-\d{2}-\d{2}$")
_ISO_DATETIME = re.compile(r"^\d{4}-\d{2}-\d{2}T\d{2}:\d{2}")
_MINUTES_ONLY = re.compile(r"^\d{4}-\d{2}-\d{2} \d{2}:\d{2}$")
_CAMEL_BOUNDARY = re.compile(r"([A-Z])")


def _now() -> datetime:
    return datetime.now(tz=UTC)


def normalize_label_format(value: Any) -> str | None:
    return value if value in LABEL_FORMATS else None


def to_boolean_flag(value: Any) -> bool | None:
    if isinstance(value, bool):
        return value
    if isinstance(value, int | float):
        return value == 1
    if isinstance(value, str):
        lowered = value.strip().lower()
        if lowered in ("1", "true"):
            return True
        if lowered in ("0", "false"):
            return False
    return None


def normalize_delivery_date(value: str | None) -> str | None:
    """Format a selection date as ``YYYY-MM-DD HH:MM:SS``."""
    if not value:
        return None
    if _DATE_ONLY.match(value):
        return f"{value} 00:00:00"
    if _ISO_DATETIME.match(value):
        cleaned = value.replace("T", " ", 1).removesuffix("Z")
        if _MINUTES_ONLY.match(cleaned):
            return f"{cleaned}:00"
        return re.sub(r"\.\d+$", "", cleaned)
    return value


def to_snake_case(value: str) -> str:
    return _CAMEL_BOUNDARY.sub(r"_\1", value).lower()


def map_shipment_options(options: Mapping[str, Any] | None) -> dict[str, int]:
    """Keep allow-listed flags, as 0/1 for booleans and as-is for ints."""
    mapped: dict[str, int] = {}
    for key, value in (options or {}).items():
        if not isinstance(value, bool | int | float):
            continue
        normalized = key if "_" in key else to_snake_case(key)
        if normalized not in SHIPMENT_OPTION_KEYS:
            continue
        if isinstance(value, bool):
            mapped[normalized] = 1 if value else 0
        else:
            mapped[normalized] = value
    return mapped


def missing_pickup_fields(pickup: Mapping[str, Any] | None) -> list[str]:
    if not pickup:
        return list(REQUIRED_PICKUP_FIELDS)
    return [field for field in REQUIRED_PICKUP_FIELDS if is_blank(pickup.get(field))]


def calculate_weight(items: Any) -> float:
    """Total weight in grams, defaulting when unknown."""
    if not items:
        return DEFAULT_WEIGHT_GRAMS
    total = 0
    for item in items:
        item = as_mapping(item)
        quantity = item.get("quantity") or 0
        weight = as_mapping(item.get("variant")).get("weight") or 0
        total += quantity * weight
    return total if total > 0 else DEFAULT_WEIGHT_GRAMS


def format_recipient_name(
    address: Mapping[str, Any], fallback: str | None = None
) -> str:
    first = (address.get("first_name") or "").strip()
    last = (address.get("last_name") or "").strip()
    return f"{first} {last}".strip() or fallback or ""


def _compact(data: dict[str, Any]) -> dict[str, Any]:
    return {key: value for key, value in data.items() if not is_blank(value)}


def _location_field(location: Mapping[str, Any], key: str) -> Any:
    nested = as_mapping(location.get("location"))
    return first_truthy(location.get(key), nested.get(key))


def _location_address(location: Mapping[str, Any]) -> Mapping[str, Any]:
    nested = as_mapping(location.get("location"))
    return as_mapping(
        first_truthy(
            location.get("address"),
            nested.get("address"),
            location.get("location_address"),
            nested.get("location_address"),
        )
    )


def _text(value: Any) -> str | None:
    return None if is_blank(value) else str(value)


class MyParcelService:
    """Settings, consignment export and consignment lifecycle operations.

    Carrier calls are single attempts; failures propagate to the caller.
    """

    def __init__(
        self,
        *,
        consignments: ConsignmentRepository,
        settings: SettingsRepository,
        secret_box: SecretBox,
        client: MyParcelClient,
        delivery_options: DeliveryOptionsClient,
        default_label_format: str | None = None,
    ) -> None:
        self.consignments = consignments
        self.settings = settings
        self.secret_box = secret_box
        self.client = client
        self.delivery_options = delivery_options
        self.default_label_format = normalize_label_format(default_label_format)
        self._settings_lock = asyncio.Lock()

    @classmethod
    def from_config(
        cls,
        config: MyParcelConfig,
        *,
        consignments: ConsignmentRepository,
        settings: SettingsRepository,
        http_client: httpx.AsyncClient | None = None,
    ) -> MyParcelService:
        """Wire the service with clients built from ``config``."""
        return cls(
            consignments=consignments,
            settings=settings,
            secret_box=AESGCMSecretBox(config.settings_encryption_key),
            client=MyParcelClient(
                base_url=config.api_base_url,
                user_agent=config.user_agent,
                http_client=http_client,
                timeout=config.request_timeout,
            ),
            delivery_options=DeliveryOptionsClient(
                base_url=config.delivery_options_base_url,
                user_agent=config.user_agent,
                http_client=http_client,
                cache=TTLCache(ttl=config.delivery_options_cache_ttl),
                timeout=config.request_timeout,
            ),
            default_label_format=config.default_label_format,
        )

    async def aclose(self) -> None:
        await self.client.aclose()
        if self.delivery_options.http_client is not self.client.http_client:
            await self.delivery_options.aclose()

    # -- settings ---------------------------------------------------------

    def resolve_default_label_format(self, settings: Any = None) -> str:
        return (
            normalize_label_format(getattr(settings, "default_label_format", None))
            or self.default_label_format
            or DEFAULT_LABEL_FORMAT
        )

    async def get_settings(self) -> Any:
        """Return the settings singleton, creating it with defaults.

        Creation is serialized per service instance. Across processes a
        duplicate row is possible; ``get_first`` returns the oldest row,
        so every reader sees the same settings.
        """
        settings = await self.settings.get_first()
        if settings is not None:
            return settings
        async with self._settings_lock:
            settings = await self.settings.get_first()
            if settings is not None:
                return settings
            return await self.settings.create(
                environment=DEFAULT_ENVIRONMENT,
                default_carrier=DEFAULT_CARRIER,
                allowed_carriers=list(DEFAULT_ALLOWED_CARRIERS),
                default_label_format=self.resolve_default_label_format(),
                default_a4_position=DEFAULT_A4_POSITION,
                use_delivery_date=False,
            )

    async def update_settings(
        self, update: SettingsUpdate | Mapping[str, Any]
    ) -> Any:
        if not isinstance(update, SettingsUpdate):
            update = SettingsUpdate.model_validate(update)
        settings = await self.get_settings()
        data: dict[str, Any] = {}

        if update.environment:
            data["environment"] = update.environment
        if update.default_carrier:
            data["default_carrier"] = resolve_carrier_key(update.default_carrier)
        if update.allowed_carriers is not None:
            data["allowed_carriers"] = list(
                dict.fromkeys(
                    resolve_carrier_key(carrier)
                    for carrier in update.allowed_carriers
                )
            )
        if update.default_label_format:
            data["default_label_format"] = update.default_label_format
        if update.default_a4_position is not None:
            data["default_a4_position"] = update.default_a4_position
        if update.use_delivery_date is not None:
            flag = to_boolean_flag(update.use_delivery_date)
            if flag is not None:
                data["use_delivery_date"] = flag

        api_key = (update.api_key or "").strip()
        if api_key:
            data["api_key_enc"] = self.secret_box.encrypt(api_key)
            data["api_key_last4"] = api_key[-4:]

        if not data:
            return settings
        return await self.settings.update(settings.id, **data)

    def get_api_key(self, settings: Any) -> str:
        if not getattr(settings, "api_key_enc", None):
            raise ConfigurationError("MyParcel API key is not configured")
        return self.secret_box.decrypt(settings.api_key_enc)

    async def test_connection(self) -> None:
        settings = await self.get_settings()
        await self.client.json_request(
            "GET", "/shipments", api_key=self.get_api_key(settings)
        )

    # -- queries ----------------------------------------------------------

    async def retrieve_consignment(self, consignment_id: str) -> Any:
        return await self.consignments.get_by_id(consignment_id)

    async def get_order_consignment(self, order_id: str) -> Any | None:
        return await self.consignments.get_by_order(order_id)

    async def list_consignments(
        self,
        filters: Mapping[str, Any] | None = None,
        *,
        limit: int = 20,
        offset: int = 0,
    ) -> tuple[list[Any], int]:
        return await self.consignments.list_and_count(
            {key: value for key, value in (filters or {}).items() if value},
            limit=max(1, min(limit, 100)),
            offset=max(0, offset),
        )

    # -- export -----------------------------------------------------------

    async def export_order(
        self,
        order: Mapping[str, Any],
        request: CreateConsignmentInput | Mapping[str, Any] | None = None,
    ) -> Any:
        """Book the order with the carrier and store its consignment.

        Idempotent per order: an existing live consignment is returned
        without contacting the carrier.
        """
        if not isinstance(request, CreateConsignmentInput):
            request = CreateConsignmentInput.model_validate(request or {})
        order_id = str(order["id"])

        existing = await self.consignments.get_by_order(order_id)
        if existing is not None:
            return existing

        settings = await self.get_settings()
        api_key = self.get_api_key(settings)

        order_selection = resolve_selection(order)
        override = (
            DeliverySelection.model_validate(request.selection_override)
            if request.selection_override
            else None
        )
        selection, carrier_candidate = self._merge_selection(
            order_selection, override, request
        )
        carrier = resolve_carrier_key(
            first_truthy(carrier_candidate, settings.default_carrier, DEFAULT_CARRIER)
        )

        address = as_mapping(order.get("shipping_address"))
        if not all(
            address.get(key)
            for key in ("address_1", "city", "postal_code", "country_code")
        ):
            raise IncompleteAddressError("Order shipping address is incomplete")

        cc = str(address["country_code"]).upper()
        street, number, suffix = parse_street(
            address["address_1"], address.get("address_2")
        )
        if cc in HOUSE_NUMBER_COUNTRIES and not number:
            raise IncompleteAddressError(
                f"House number is required for {cc} shipments"
            )

        shipment: dict[str, Any] = {
            "carrier": CARRIER_IDS[carrier],
            "reference_identifier": str(order.get("display_id") or order_id),
            "recipient": _compact(
                {
                    "cc": cc,
                    "city": address["city"],
                    "postal_code": address["postal_code"],
                    "street": street or address["address_1"],
                    "number": number,
                    "number_suffix": suffix,
                    "region": address.get("province"),
                    "email": order.get("email"),
                    "phone": address.get("phone"),
                    "person": format_recipient_name(address, order.get("email")),
                    "company": address.get("company"),
                }
            ),
            "options": {"package_type": PACKAGE_TYPE_PACKAGE},
            "physical_properties": {
                "weight": calculate_weight(order.get("items")),
            },
        }

        if selection is not None:
            options = shipment["options"]
            delivery_type = normalize_delivery_type_id(
                selection.delivery_type
                or ("pickup" if selection.is_pickup else None)
            )
            if delivery_type:
                options["delivery_type"] = delivery_type
            if selection.date and carrier == "postnl" and settings.use_delivery_date:
                options["delivery_date"] = normalize_delivery_date(selection.date)
            options.update(map_shipment_options(selection.shipment_options))

            if selection.is_pickup:
                shipment["pickup"] = await self._build_pickup(
                    selection,
                    carrier=carrier,
                    cc=cc,
                    postal_code=address["postal_code"],
                    city=address.get("city"),
                    street=street or address["address_1"],
                    number=number,
                )

        if request.options:
            shipment["options"].update(request.options)

        response = await self.client.json_request(
            "POST",
            "/shipments",
            api_key=api_key,
            json={"data": {"shipments": [shipment]}},
            headers={"Content-Type": SHIPMENT_CONTENT_TYPE},
        )
        created = extract_created_shipment(response)

        fields = {
            "order_id": order_id,
            "carrier": carrier,
            "myparcel_id": extract_created_shipment_id(response),
            "reference": created.get("reference_identifier")
            or shipment["reference_identifier"],
            "status": normalize_status(created.get("status"))
            or CONSIGNMENT_STATUS_CONCEPT,
            "barcode": created.get("barcode") or None,
            "track_trace_url": created.get("track_trace_url") or None,
            "label_format": request.label_format
            or self.resolve_default_label_format(settings),
            "label_position": request.label_position
            or settings.default_a4_position
            or DEFAULT_A4_POSITION,
            "options_json": dict(shipment["options"]),
            "recipient_snapshot_json": dict(address),
            "last_synced_at": _now(),
        }
        try:
            consignment = await self.consignments.create(**fields)
        except ConsignmentConflictError:
            winner = await self.consignments.get_by_order(order_id)
            if winner is None:
                raise
            logger.warning(
                "Order %s was exported concurrently; returning consignment %s",
                order_id,
                winner.id,
            )
            return winner

        logger.info(
            "Exported order %s as MyParcel shipment %s (consignment %s)",
            order_id,
            consignment.myparcel_id,
            consignment.id,
        )
        return consignment

    @staticmethod
    def _merge_selection(
        order_selection: DeliverySelection | None,
        override: DeliverySelection | None,
        request: CreateConsignmentInput,
    ) -> tuple[DeliverySelection | None, Any]:
        """Return the effective selection and the preferred carrier."""
        if request.force_override:
            if order_selection is None and override is None and not request.carrier:
                return None, request.carrier
            merged = order_selection.model_dump() if order_selection else {}
            if override is not None:
                merged.update(override.model_dump(exclude_unset=True))
            if request.carrier and not (override and override.carrier):
                merged["carrier"] = request.carrier
            carrier = first_truthy(
                override.carrier if override else None,
                request.carrier,
                order_selection.carrier if order_selection else None,
            )
            return DeliverySelection.model_validate(merged), carrier

        selection = order_selection or override
        carrier = first_truthy(
            selection.carrier if selection else None, request.carrier
        )
        return selection, carrier

    async def _build_pickup(
        self,
        selection: DeliverySelection,
        *,
        carrier: str,
        cc: str,
        postal_code: str,
        city: str | None,
        street: str | None,
        number: str | None,
    ) -> dict[str, Any]:
        """Assemble the pickup payload, completing it from discovery data."""
        pickup = selection.pickup
        if pickup is None:
            raise MissingPickupFieldsError(REQUIRED_PICKUP_FIELDS)

        address = pickup.address
        payload: dict[str, Any] = {
            "location_code": pickup.location_code or None,
            "retail_network_id": pickup.retail_network_id or None,
            "location_name": pickup.location_name or None,
            "cc": address.cc or None,
            "city": address.city or None,
            "number": address.number or None,
            "number_suffix": address.number_suffix or None,
            "postal_code": address.postal_code or None,
            "street": address.street or None,
        }

        if missing_pickup_fields(payload) and (
            pickup.location_code or pickup.retail_network_id
        ):
            result = await self.delivery_options.fetch_pickup_locations(
                carrier=carrier,
                cc=cc,
                postal_code=postal_code,
                city=city,
                street=street,
                number=number,
            )
            match = next(
                (
                    location
                    for location in result.pickup_locations
                    if isinstance(location, Mapping)
                    and matches_pickup(
                        location, pickup.location_code, pickup.retail_network_id
                    )
                ),
                None,
            )
            if match is not None:
                self._complete_pickup(payload, match)

        missing = missing_pickup_fields(payload)
        if missing:
            raise MissingPickupFieldsError(missing)
        return _compact(payload)

    @staticmethod
    def _complete_pickup(
        payload: dict[str, Any], match: Mapping[str, Any]
    ) -> None:
        location = as_mapping(match.get("location")) or match
        address = _location_address(match)

        def fill(key: str, *candidates: Any) -> None:
            if is_blank(payload.get(key)):
                payload[key] = _text(first_truthy(*candidates))

        fill(
            "location_code",
            _location_field(location, "location_code"),
            _location_field(match, "location_code"),
        )
        fill(
            "retail_network_id",
            _location_field(location, "retail_network_id"),
            _location_field(match, "retail_network_id"),
        )
        fill(
            "location_name",
            _location_field(location, "location_name"),
            _location_field(match, "location_name"),
            _location_field(location, "name"),
        )
        fill(
            "cc",
            address.get("cc"),
            address.get("country_code"),
            _location_field(location, "cc"),
        )
        fill("city", address.get("city"), _location_field(location, "city"))
        fill(
            "postal_code",
            address.get("postal_code"),
            _location_field(location, "postal_code"),
        )
        fill("street", address.get("street"), _location_field(location, "street"))
        fill("number", address.get("number"), _location_field(location, "number"))
        fill(
            "number_suffix",
            address.get("number_suffix"),
            _location_field(location, "number_suffix"),
            _location_field(location, "number_addition"),
        )

    # -- lifecycle --------------------------------------------------------

    async def register_consignment(self, consignment_id: str) -> Any:
        """Fetch the label so the carrier registers the shipment, then
        mark the consignment registered."""
        consignment = await self.consignments.get_by_id(consignment_id)
        settings = await self.get_settings()

        await self.get_label(
            consignment_id,
            format=normalize_label_format(consignment.label_format)
            or self.resolve_default_label_format(settings),
            position=consignment.label_position
            or settings.default_a4_position
            or DEFAULT_A4_POSITION,
        )
        updated = await self.consignments.update(
            consignment_id,
            status=CONSIGNMENT_STATUS_REGISTERED,
            last_synced_at=_now(),
        )
        logger.info("Registered consignment %s", consignment_id)
        return updated

    @staticmethod
    def _require_shipment_id(consignment: Any) -> str:
        if not consignment.myparcel_id:
            raise PreconditionError("Consignment has no MyParcel id")
        return str(consignment.myparcel_id).strip()

    async def get_label(
        self,
        consignment_id: str,
        *,
        format: str | None = None,
        position: int | None = None,
    ) -> bytes:
        """Return the label PDF for a consignment.

        Tries the format/position-qualified PDF path, the bare PDF path,
        and finally the label-link JSON response followed by a download
        of the linked PDF.
        """
        consignment = await self.consignments.get_by_id(consignment_id)
        shipment_id = self._require_shipment_id(consignment)
        if not _NUMERIC_ID.match(shipment_id):
            raise PreconditionError(
                f"Consignment has an invalid MyParcel id ({shipment_id}). "
                "Re-export the shipment to recover."
            )

        settings = await self.get_settings()
        api_key = self.get_api_key(settings)

        label_format = (
            normalize_label_format(format)
            or normalize_label_format(settings.default_label_format)
            or normalize_label_format(consignment.label_format)
            or self.default_label_format
            or DEFAULT_LABEL_FORMAT
        )
        label_position = consignment.label_position
        query = {"format": label_format}
        if label_format == "A4":
            label_position = (
                position
                or consignment.label_position
                or settings.default_a4_position
                or DEFAULT_A4_POSITION
            )
            query["positions"] = str(label_position)

        base_path = f"/shipment_labels/{shipment_id}"
        qualified_path = f"{base_path}?{urlencode(query)}"

        pdf = await self._fetch_label(api_key, qualified_path, base_path)

        await self.consignments.update(
            consignment_id,
            status=consignment.status or CONSIGNMENT_STATUS_REGISTERED,
            label_format=label_format,
            label_position=label_position,
            last_synced_at=_now(),
        )
        return pdf

    async def _fetch_label(
        self, api_key: str, qualified_path: str, base_path: str
    ) -> bytes:
        last_error: Exception | None = None
        for path in (qualified_path, base_path):
            try:
                return await self.client.pdf_request(path, api_key=api_key)
            except CommunicationError as exc:
                last_error = exc

        link_headers = {"Accept": LABEL_LINK_ACCEPT}
        try:
            link_response = await self.client.json_request(
                "GET", qualified_path, api_key=api_key, headers=link_headers
            )
        except CommunicationError as exc:
            last_error = exc
            link_response = await self.client.json_request(
                "GET", base_path, api_key=api_key, headers=link_headers
            )

        link = extract_label_link(link_response)
        if not link:
            raise last_error
        return await self.client.pdf_request(link, api_key=api_key)

    async def email_return_label(
        self, consignment_id: str, email: str, name: str | None = None
    ) -> Any:
        """Ask the carrier to e-mail a return label (bpost only)."""
        consignment = await self.consignments.get_by_id(consignment_id)
        shipment_id = self._require_shipment_id(consignment)
        if consignment.carrier != "bpost":
            raise PreconditionError(
                "Return labels are only available for bpost on SendMyParcel.be"
            )
        if not _NUMERIC_ID.match(shipment_id):
            raise PreconditionError(
                f"Consignment has an invalid MyParcel id ({shipment_id}). "
                "Re-export the shipment to recover."
            )

        settings = await self.get_settings()
        payload = {
            "parent": int(shipment_id),
            "carrier": CARRIER_IDS["bpost"],
            "email": email,
            "name": name or email,
        }
        await self.client.json_request(
            "POST",
            "/shipments",
            api_key=self.get_api_key(settings),
            json={"data": {"return_shipments": [payload]}},
            headers={"Content-Type": RETURN_SHIPMENT_CONTENT_TYPE},
        )
        updated = await self.consignments.update(
            consignment_id,
            return_label_sent_at=_now(),
            return_label_email_status=RETURN_LABEL_STATUS_SENT,
        )
        logger.info("Return label e-mailed for consignment %s", consignment_id)
        return updated

    async def refresh_track_trace(self, consignment_id: str) -> Any:
        """Pull the current shipment state from the carrier."""
        consignment = await self.consignments.get_by_id(consignment_id)
        shipment_id = self._require_shipment_id(consignment)

        settings = await self.get_settings()
        response = await self.client.json_request(
            "GET",
            f"/shipments/{shipment_id}",
            api_key=self.get_api_key(settings),
        )
        shipment = extract_fetched_shipment(response)
        status = normalize_status(shipment.get("status"))

        history = consignment.track_trace_history_json
        if history is None:
            history = []
        elif not isinstance(history, list):
            history = [history]
        synced_at = _now()
        history = [
            *history,
            {"synced_at": synced_at.isoformat(), "response": shipment or response},
        ]

        updated = await self.consignments.update(
            consignment_id,
            status=status or consignment.status,
            barcode=shipment.get("barcode") or consignment.barcode,
            track_trace_url=shipment.get("track_trace_url")
            or consignment.track_trace_url,
            track_trace_status=status or consignment.track_trace_status,
            track_trace_history_json=history,
            last_synced_at=synced_at,
        )
        logger.info(
            "Refreshed track & trace for consignment %s: %s",
            consignment_id,
            updated.status,
        )
        return updated
