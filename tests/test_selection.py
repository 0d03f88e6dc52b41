"""Delivery selection resolution tests."""

from fastapi_myparcel.selection import (
    normalize_pickup,
    resolve_selection,
    selection_from_data,
)


def _order(*data_blobs) -> dict:
    return {"shipping_methods": [{"data": blob} for blob in data_blobs]}


def test_wrapped_camel_case_selection() -> None:
    selection = selection_from_data(
        {
            "myparcel_delivery": {
                "carrier": "PostNL",
                "deliveryType": "evening",
                "deliveryDate": "2026-10-21",
                "timeFrameStart": "18:00",
                "timeFrameEnd": "21:00",
                "shipmentOptions": {"signature": True},
            }
        }
    )
    assert selection is not None
    assert selection.carrier == "postnl"
    assert selection.delivery_type == "evening"
    assert selection.date == "2026-10-21"
    assert selection.time_frame.start == "18:00"
    assert selection.time_frame.end == "21:00"
    assert selection.shipment_options == {"signature": True}
    assert selection.is_pickup is False


def test_flat_selection_is_detected_by_marker_keys() -> None:
    selection = selection_from_data({"delivery_type": 4, "carrier": 2})
    assert selection is not None
    assert selection.delivery_type == 4
    assert selection.carrier == 2


def test_unrelated_data_yields_none() -> None:
    assert selection_from_data({"service_point": "abc"}) is None
    assert selection_from_data(None) is None
    assert selection_from_data({"myparcel": "not-a-mapping"}) is None


def test_pickup_variants_are_folded() -> None:
    selection = selection_from_data(
        {
            "myparcel": {
                "carrier": "bpost",
                "pickupLocation": {
                    "locationCode": 1234,
                    "retailNetworkId": "BPOST",
                    "name": "Bpost Point",
                    "address": {
                        "countryCode": "BE",
                        "city": "Gent",
                        "postalCode": "9000",
                        "streetName": "Veldstraat",
                        "houseNumber": 5,
                    },
                },
            }
        }
    )
    assert selection.is_pickup is True
    pickup = selection.pickup
    assert pickup.location_code == "1234"
    assert pickup.retail_network_id == "BPOST"
    assert pickup.location_name == "Bpost Point"
    assert pickup.address.cc == "BE"
    assert pickup.address.postal_code == "9000"
    assert pickup.address.street == "Veldstraat"
    assert pickup.address.number == "5"


def test_explicit_is_pickup_flag_wins() -> None:
    selection = selection_from_data(
        {"myparcel": {"isPickup": False, "pickup": {"location_code": "1"}}}
    )
    assert selection.is_pickup is False
    assert selection.pickup.location_code == "1"


def test_empty_pickup_blob_is_dropped() -> None:
    assert normalize_pickup({"address": {}}) is None
    assert normalize_pickup("nope") is None


def test_unknown_keys_are_preserved() -> None:
    selection = selection_from_data(
        {"myparcel": {"carrier": "dpd", "widget_version": "2.1"}}
    )
    assert selection.model_extra["widget_version"] == "2.1"


def test_resolve_selection_scans_shipping_methods() -> None:
    order = _order({"other": True}, {"myparcel": {"carrier": "dpd"}})
    selection = resolve_selection(order)
    assert selection is not None
    assert selection.carrier == "dpd"


def test_resolve_selection_without_methods() -> None:
    assert resolve_selection({}) is None
    assert resolve_selection(_order(None)) is None


def test_numeric_package_type_keeps_pickup_selection() -> None:
    selection = selection_from_data(
        {
            "myparcel": {
                "carrier": "bpost",
                "isPickup": True,
                "deliveryType": "pickup",
                "package_type": 1,
                "pickup": {"location_code": "123", "location_name": "Point"},
            }
        }
    )
    assert selection is not None
    assert selection.is_pickup is True
    assert selection.delivery_type == "pickup"
    assert selection.package_type == 1
    assert selection.pickup.location_code == "123"


def test_malformed_fields_fall_back_to_defaults(caplog) -> None:
    with caplog.at_level("WARNING", logger="fastapi_myparcel.selection"):
        selection = selection_from_data(
            {
                "myparcel": {
                    "carrier": {"name": "postnl"},
                    "platform": ["belgie"],
                    "delivery_type": "evening",
                    "date": "2026-10-21",
                }
            }
        )
    assert selection is not None
    assert selection.carrier is None
    assert selection.platform is None
    assert selection.delivery_type == "evening"
    assert selection.date == "2026-10-21"
    assert "carrier, platform" in caplog.text
