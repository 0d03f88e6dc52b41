"""Settings and query operation tests."""

from __future__ import annotations

import asyncio

import pytest

from conftest import InMemorySettingsRepo
from fastapi_myparcel.exceptions import UnsupportedCarrierError
from fastapi_myparcel.schemas import SettingsResponse, SettingsUpdate
from fastapi_myparcel.service import (
    MyParcelService,
    map_shipment_options,
    normalize_delivery_date,
    to_boolean_flag,
)


async def test_get_settings_creates_defaults_once(service, settings_repo) -> None:
    first = await service.get_settings()
    second = await service.get_settings()

    assert first is second
    assert len(settings_repo.items) == 1
    assert first.environment == "production"
    assert first.default_carrier == "bpost"
    assert first.allowed_carriers == ["postnl", "bpost", "dpd"]
    assert first.default_label_format == "A6"
    assert first.default_a4_position == 1
    assert first.use_delivery_date is False


async def test_default_label_format_from_config(
    consignment_repo, settings_repo, client, delivery_options
) -> None:
    service = MyParcelService(
        consignments=consignment_repo,
        settings=settings_repo,
        secret_box=None,
        client=client,
        delivery_options=delivery_options,
        default_label_format="A4",
    )
    settings = await service.get_settings()
    assert settings.default_label_format == "A4"


async def test_update_settings_encrypts_api_key(service) -> None:
    settings = await service.update_settings(
        SettingsUpdate(api_key="  abcd-efgh-1234  ", environment="sandbox")
    )

    assert settings.api_key_enc.startswith("enc:")
    assert "abcd" not in settings.api_key_enc
    assert settings.api_key_last4 == "1234"
    assert settings.environment == "sandbox"
    assert service.get_api_key(settings) == "abcd-efgh-1234"

    response = SettingsResponse.from_settings(settings)
    assert response.api_key_configured is True
    assert "api_key_enc" not in response.model_dump()


async def test_blank_api_key_keeps_stored_key(configured_service) -> None:
    settings = await configured_service.update_settings({"api_key": "   "})
    assert settings.api_key_last4 == "1234"


async def test_allowed_carriers_are_normalized(service) -> None:
    settings = await service.update_settings(
        {"allowed_carriers": ["PostNL", "2", "bpost"], "default_carrier": "4"}
    )
    assert settings.allowed_carriers == ["postnl", "bpost"]
    assert settings.default_carrier == "dpd"


async def test_unknown_carrier_is_rejected(service) -> None:
    with pytest.raises(UnsupportedCarrierError):
        await service.update_settings({"allowed_carriers": ["ups"]})


@pytest.mark.parametrize(
    ("raw", "expected"),
    [("true", True), ("0", False), (1, True), (False, False)],
)
async def test_use_delivery_date_flag(service, raw, expected) -> None:
    settings = await service.update_settings({"use_delivery_date": raw})
    assert settings.use_delivery_date is expected


async def test_unparseable_flag_is_ignored(service) -> None:
    await service.update_settings({"use_delivery_date": True})
    settings = await service.update_settings({"use_delivery_date": "maybe"})
    assert settings.use_delivery_date is True


async def test_connection_uses_stored_key(configured_service, client) -> None:
    await configured_service.test_connection()

    assert len(client.calls) == 1
    call = client.calls[0]
    assert (call.method, call.path, call.api_key) == (
        "GET",
        "/shipments",
        "secret-key-1234",
    )


async def test_list_consignments_clamps_and_filters(
    service, consignment_repo
) -> None:
    for index in range(3):
        await consignment_repo.create(
            order_id=f"order_{index}",
            carrier="bpost" if index else "dpd",
        )

    rows, count = await service.list_consignments(
        {"carrier": "bpost", "status": None}, limit=500
    )
    assert count == 2
    assert {row.order_id for row in rows} == {"order_1", "order_2"}

    rows, count = await service.list_consignments(limit=0)
    assert len(rows) == 1
    assert count == 3


async def test_order_consignment_lookup(service, consignment_repo) -> None:
    created = await consignment_repo.create(order_id="order_1")

    assert await service.get_order_consignment("order_1") is created
    assert await service.get_order_consignment("order_x") is None
    assert await service.retrieve_consignment(created.id) is created


def test_to_boolean_flag() -> None:
    assert to_boolean_flag("TRUE") is True
    assert to_boolean_flag(0) is False
    assert to_boolean_flag("yes") is None
    assert to_boolean_flag(None) is None


def test_normalize_delivery_date() -> None:
    assert normalize_delivery_date("2026-10-21") == "2026-10-21 00:00:00"
    assert normalize_delivery_date("2026-10-21T09:30") == "2026-10-21 09:30:00"
    assert (
        normalize_delivery_date("2026-10-21T09:30:15.000Z")
        == "2026-10-21 09:30:15"
    )
    assert normalize_delivery_date(None) is None


def test_map_shipment_options() -> None:
    assert map_shipment_options(
        {"ageCheck": True, "large_format": 0, "insurance": "500", "foo": 1}
    ) == {"age_check": 1, "large_format": 0}


class SlowSettingsRepo(InMemorySettingsRepo):
    async def get_first(self):
        await asyncio.sleep(0)
        return await super().get_first()


async def test_concurrent_first_reads_create_one_row(
    consignment_repo, client, delivery_options
) -> None:
    settings_repo = SlowSettingsRepo()
    service = MyParcelService(
        consignments=consignment_repo,
        settings=settings_repo,
        secret_box=None,
        client=client,
        delivery_options=delivery_options,
    )

    first, second = await asyncio.gather(
        service.get_settings(), service.get_settings()
    )

    assert first is second
    assert len(settings_repo.items) == 1
