"""Dependency injection tests."""

from __future__ import annotations

from types import SimpleNamespace
from unittest.mock import MagicMock

import pytest
from fastapi import HTTPException

from fastapi_myparcel.config import MyParcelConfig
from fastapi_myparcel.dependencies import (
    get_cart_resolver,
    get_config,
    get_order_resolver,
    get_service,
)


def _make_request(**state_attrs):
    """Create a mock request with app.state attributes."""
    request = MagicMock()
    request.app.state = SimpleNamespace(**state_attrs)
    return request


class TestDependencies:
    def test_get_config_from_app_state(self) -> None:
        config = MyParcelConfig()
        request = _make_request(myparcel_config=config)
        assert get_config(request) is config

    def test_get_service_from_app_state(self) -> None:
        service = MagicMock()
        request = _make_request(myparcel_service=service)
        assert get_service(request) is service

    def test_get_order_resolver(self) -> None:
        resolver = MagicMock()
        request = _make_request(myparcel_order_resolver=resolver)
        assert get_order_resolver(request) is resolver

    def test_missing_order_resolver_is_500(self) -> None:
        with pytest.raises(HTTPException) as excinfo:
            get_order_resolver(_make_request(myparcel_order_resolver=None))
        assert excinfo.value.status_code == 500
        assert "resolver" in excinfo.value.detail.lower()

    def test_missing_cart_resolver_is_500(self) -> None:
        with pytest.raises(HTTPException) as excinfo:
            get_cart_resolver(_make_request())
        assert excinfo.value.status_code == 500
