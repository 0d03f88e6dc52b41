"""Pydantic request, response and selection models."""

from __future__ import annotations

from datetime import datetime
from typing import Annotated, Any, Literal

from pydantic import (
    AliasChoices,
    BaseModel,
    BeforeValidator,
    ConfigDict,
    Field,
)


def _to_text(value: Any) -> Any:
    if isinstance(value, bool):
        return value
    if isinstance(value, int | float):
        return str(value)
    return value


Text = Annotated[str | None, BeforeValidator(_to_text)]


class TimeFrame(BaseModel):
    start: Text = None
    end: Text = None


class PickupAddress(BaseModel):
    cc: Text = None
    city: Text = None
    number: Text = None
    number_suffix: Text = None
    postal_code: Text = None
    street: Text = None


class PickupSelection(BaseModel):
    location_code: Text = None
    retail_network_id: Text = None
    location_name: Text = None
    address: PickupAddress = Field(default_factory=PickupAddress)


class DeliverySelection(BaseModel):
    """Canonical shopper delivery choice.

    Unknown keys from the checkout widget are preserved as extras.
    ``delivery_type`` may be a name ("evening") or a carrier id (3).
    """

    model_config = ConfigDict(extra="allow")

    platform: Text = None
    carrier: str | int | None = None
    is_pickup: bool = False
    delivery_type: str | int | None = None
    date: Text = None
    time_frame: TimeFrame | None = None
    package_type: str | int | None = None
    shipment_options: dict[str, Any] | None = None
    pickup: PickupSelection | None = None


class CreateConsignmentInput(BaseModel):
    """Body of the export operation."""

    model_config = ConfigDict(populate_by_name=True)

    carrier: str | None = None
    label_format: Literal["A4", "A6"] | None = None
    label_position: int | None = Field(default=None, ge=1, le=4)
    options: dict[str, Any] | None = None
    force_override: bool = Field(
        default=False,
        validation_alias=AliasChoices("force_override", "forceOverride"),
    )
    selection_override: dict[str, Any] | None = Field(
        default=None,
        validation_alias=AliasChoices(
            "selection_override", "selectionOverride", "selection"
        ),
    )


class SettingsUpdate(BaseModel):
    """Partial settings update; omitted fields stay unchanged."""

    api_key: str | None = None
    environment: Literal["production", "sandbox"] | None = None
    default_carrier: str | None = None
    allowed_carriers: list[str] | None = None
    default_label_format: Literal["A4", "A6"] | None = None
    default_a4_position: int | None = Field(default=None, ge=1, le=4)
    use_delivery_date: bool | int | str | None = None


class SettingsResponse(BaseModel):
    """Settings read model; the ciphertext is never exposed."""

    id: str
    environment: str | None = None
    default_carrier: str | None = None
    allowed_carriers: list[str] | None = None
    default_label_format: str | None = None
    default_a4_position: int | None = None
    use_delivery_date: bool = False
    api_key_configured: bool = False
    api_key_last4: str | None = None

    @classmethod
    def from_settings(cls, settings: Any) -> SettingsResponse:
        return cls(
            id=str(settings.id),
            environment=settings.environment,
            default_carrier=settings.default_carrier,
            allowed_carriers=settings.allowed_carriers,
            default_label_format=settings.default_label_format,
            default_a4_position=settings.default_a4_position,
            use_delivery_date=bool(settings.use_delivery_date),
            api_key_configured=bool(settings.api_key_enc),
            api_key_last4=settings.api_key_last4,
        )


class ConsignmentResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    order_id: str
    fulfillment_id: str | None = None
    carrier: str | None = None
    myparcel_id: str | None = None
    reference: str | None = None
    status: str | None = None
    barcode: str | None = None
    track_trace_url: str | None = None
    track_trace_status: str | None = None
    label_format: str | None = None
    label_position: int | None = None
    options_json: dict[str, Any] | None = None
    recipient_snapshot_json: dict[str, Any] | None = None
    track_trace_history_json: Any = None
    errors_json: Any = None
    last_synced_at: datetime | None = None
    return_label_sent_at: datetime | None = None
    return_label_email_status: str | None = None

    @classmethod
    def from_consignment(cls, consignment: Any) -> ConsignmentResponse:
        return cls.model_validate(consignment)


class ConsignmentListResponse(BaseModel):
    consignments: list[ConsignmentResponse]
    count: int
    limit: int
    offset: int


class OrderConsignmentResponse(BaseModel):
    consignment: ConsignmentResponse | None = None
    selection: DeliverySelection | None = None


class PriceResult(BaseModel):
    """Price in major units, e.g. ``5.0`` for 500 cents."""

    calculated_amount: float
    is_calculated_price_tax_inclusive: bool = True


class DeliveryOptionsResponse(BaseModel):
    platform: str
    package_type: str
    carriers: list[str]
    deliveries: dict[str, list[Any]]
    pickup_locations: dict[str, list[Any]]
