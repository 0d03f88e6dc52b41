"""Shared fixtures for fastapi-myparcel tests."""

from __future__ import annotations

import itertools
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

import pytest

from fastapi_myparcel.delivery_options import DeliveryOptionsResult
from fastapi_myparcel.exceptions import (
    ConsignmentConflictError,
    ConsignmentNotFoundError,
)
from fastapi_myparcel.service import MyParcelService


@dataclass
class DemoConsignment:
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
    options_json: dict | None = None
    recipient_snapshot_json: dict | None = None
    track_trace_history_json: Any = None
    errors_json: Any = None
    last_synced_at: datetime | None = None
    return_label_sent_at: datetime | None = None
    return_label_email_status: str | None = None
    deleted_at: datetime | None = None


@dataclass
class DemoSettings:
    id: str
    api_key_enc: str | None = None
    api_key_last4: str | None = None
    environment: str | None = None
    default_carrier: str | None = None
    allowed_carriers: list[str] | None = None
    default_label_format: str | None = None
    default_a4_position: int | None = None
    use_delivery_date: bool = False


class InMemoryConsignmentRepo:
    def __init__(self) -> None:
        self.items: dict[str, DemoConsignment] = {}
        self._counter = itertools.count(1)

    def _live(self) -> list[DemoConsignment]:
        return [c for c in self.items.values() if c.deleted_at is None]

    async def get_by_id(self, consignment_id: str) -> DemoConsignment:
        consignment = self.items.get(consignment_id)
        if consignment is None or consignment.deleted_at is not None:
            raise ConsignmentNotFoundError(consignment_id)
        return consignment

    async def get_by_order(self, order_id: str) -> DemoConsignment | None:
        for consignment in self._live():
            if consignment.order_id == order_id:
                return consignment
        return None

    async def create(self, **fields) -> DemoConsignment:
        if any(c.order_id == fields["order_id"] for c in self._live()):
            raise ConsignmentConflictError(fields["order_id"])
        consignment_id = fields.pop("id", None) or f"mpc_{next(self._counter)}"
        consignment = DemoConsignment(id=consignment_id, **fields)
        self.items[consignment_id] = consignment
        return consignment

    async def update(self, consignment_id: str, **fields) -> DemoConsignment:
        consignment = await self.get_by_id(consignment_id)
        for key, value in fields.items():
            setattr(consignment, key, value)
        return consignment

    async def list_and_count(self, filters=None, *, limit=20, offset=0):
        rows = [
            c
            for c in self._live()
            if all(getattr(c, k) == v for k, v in (filters or {}).items())
        ]
        return rows[offset : offset + limit], len(rows)


class InMemorySettingsRepo:
    def __init__(self) -> None:
        self.items: list[DemoSettings] = []

    async def get_first(self) -> DemoSettings | None:
        return self.items[0] if self.items else None

    async def create(self, **fields) -> DemoSettings:
        settings = DemoSettings(id=f"mps_{len(self.items) + 1}", **fields)
        self.items.append(settings)
        return settings

    async def update(self, settings_id: str, **fields) -> DemoSettings:
        settings = next(s for s in self.items if s.id == settings_id)
        for key, value in fields.items():
            setattr(settings, key, value)
        return settings


class FakeSecretBox:
    def encrypt(self, plaintext: str) -> str:
        return f"enc:{plaintext[::-1]}"

    def decrypt(self, ciphertext: str) -> str:
        return ciphertext.removeprefix("enc:")[::-1]


@dataclass
class RecordedCall:
    kind: str
    method: str
    path: str
    api_key: str
    json: Any = None
    headers: dict | None = None


class RecordingClient:
    """Stands in for MyParcelClient; responses come from handlers."""

    def __init__(self) -> None:
        self.calls: list[RecordedCall] = []
        self.json_handler = None
        self.pdf_handler = None

    async def json_request(
        self, method, path, *, api_key, json=None, headers=None
    ):
        self.calls.append(
            RecordedCall("json", method, path, api_key, json, headers)
        )
        if self.json_handler is None:
            return None
        return self.json_handler(method, path, json, headers)

    async def pdf_request(self, path, *, api_key):
        self.calls.append(RecordedCall("pdf", "GET", path, api_key))
        if self.pdf_handler is None:
            return b"%PDF-1.4 label"
        return self.pdf_handler(path)

    async def aclose(self) -> None:
        pass

    @property
    def posts(self) -> list[RecordedCall]:
        return [c for c in self.calls if c.method == "POST"]


@dataclass
class FakeDeliveryOptions:
    deliveries: list = field(default_factory=list)
    pickup_locations: list = field(default_factory=list)
    calls: list = field(default_factory=list)
    error: Exception | None = None
    http_client: Any = None

    async def fetch_delivery_options(self, **params):
        self.calls.append(("delivery_options", params))
        if self.error is not None:
            raise self.error
        return DeliveryOptionsResult(deliveries=list(self.deliveries))

    async def fetch_pickup_locations(self, **params):
        self.calls.append(("pickup_locations", params))
        if self.error is not None:
            raise self.error
        return DeliveryOptionsResult(
            pickup_locations=list(self.pickup_locations)
        )

    async def aclose(self) -> None:
        pass


def make_order(**overrides) -> dict:
    order = {
        "id": "order_1",
        "display_id": 1001,
        "email": "jan@example.com",
        "shipping_address": {
            "first_name": "Jan",
            "last_name": "Peeters",
            "address_1": "Kerkstraat 12B",
            "address_2": None,
            "city": "Antwerpen",
            "postal_code": "2000",
            "country_code": "be",
            "phone": "+3212345678",
        },
        "items": [{"quantity": 2, "variant": {"weight": 400}}],
        "shipping_methods": [
            {
                "data": {
                    "myparcel": {
                        "carrier": "bpost",
                        "deliveryType": "standard",
                        "date": "2026-10-21",
                    }
                }
            }
        ],
    }
    order.update(overrides)
    return order


@pytest.fixture()
def consignment_repo() -> InMemoryConsignmentRepo:
    return InMemoryConsignmentRepo()


@pytest.fixture()
def settings_repo() -> InMemorySettingsRepo:
    return InMemorySettingsRepo()


@pytest.fixture()
def client() -> RecordingClient:
    return RecordingClient()


@pytest.fixture()
def delivery_options() -> FakeDeliveryOptions:
    return FakeDeliveryOptions()


@pytest.fixture()
def service(
    consignment_repo, settings_repo, client, delivery_options
) -> MyParcelService:
    return MyParcelService(
        consignments=consignment_repo,
        settings=settings_repo,
        secret_box=FakeSecretBox(),
        client=client,
        delivery_options=delivery_options,
    )


@pytest.fixture()
async def configured_service(service) -> MyParcelService:
    """Service whose settings already hold an API key."""
    await service.update_settings({"api_key": "secret-key-1234"})
    return service


@pytest.fixture()
async def async_engine():
    """Create an in-memory aiosqlite async engine."""
    from sqlalchemy.ext.asyncio import create_async_engine

    from fastapi_myparcel.contrib.sqlalchemy.models import Base

    engine = create_async_engine("sqlite+aiosqlite://", echo=False)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await engine.dispose()


@pytest.fixture()
async def async_session_factory(async_engine):
    """Create an async session factory bound to the in-memory engine."""
    from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

    factory = async_sessionmaker(
        async_engine, class_=AsyncSession, expire_on_commit=False
    )
    yield factory
