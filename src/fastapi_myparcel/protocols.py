"""Collaborator interfaces consumed by the MyParcel service."""

from __future__ import annotations

from typing import Any, Protocol, runtime_checkable


@runtime_checkable
class OrderResolver(Protocol):
    """Loads an order as a mapping.

    Expected keys: ``id``, ``display_id``, ``email``,
    ``shipping_address``, ``items`` and ``shipping_methods``.
    """

    async def resolve(self, order_id: str) -> dict[str, Any]: ...


@runtime_checkable
class CartResolver(Protocol):
    """Loads a cart as a mapping with at least ``shipping_address``."""

    async def resolve(self, cart_id: str) -> dict[str, Any]: ...


@runtime_checkable
class SecretBox(Protocol):
    """Encrypts and decrypts the stored API key."""

    def encrypt(self, plaintext: str) -> str: ...

    def decrypt(self, ciphertext: str) -> str: ...


@runtime_checkable
class ConsignmentRepository(Protocol):
    """Storage for consignments. Soft-deleted rows are never returned."""

    async def get_by_id(self, consignment_id: str) -> Any: ...

    async def get_by_order(self, order_id: str) -> Any | None: ...

    async def create(self, **fields: Any) -> Any: ...

    async def update(self, consignment_id: str, **fields: Any) -> Any: ...

    async def list_and_count(
        self,
        filters: dict[str, Any] | None = None,
        *,
        limit: int = 20,
        offset: int = 0,
    ) -> tuple[list[Any], int]: ...


@runtime_checkable
class SettingsRepository(Protocol):
    """Storage for the settings singleton."""

    async def get_first(self) -> Any | None: ...

    async def create(self, **fields: Any) -> Any: ...

    async def update(self, settings_id: str, **fields: Any) -> Any: ...
