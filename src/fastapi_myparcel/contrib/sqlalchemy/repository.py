"""SQLAlchemy repository implementations."""

from __future__ import annotations

from typing import Any

from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from fastapi_myparcel.contrib.sqlalchemy.models import (
    ConsignmentModel,
    SettingsModel,
)
from fastapi_myparcel.exceptions import (
    ConsignmentConflictError,
    ConsignmentNotFoundError,
    ConfigurationError,
)

_CONSIGNMENT_FILTERS = ("status", "carrier", "order_id")


class SQLAlchemyConsignmentRepository:
    """Consignment repository backed by SQLAlchemy async sessions."""

    def __init__(
        self, session_factory: async_sessionmaker[AsyncSession]
    ) -> None:
        self.session_factory = session_factory

    @staticmethod
    def _live():
        return select(ConsignmentModel).where(
            ConsignmentModel.deleted_at.is_(None)
        )

    async def get_by_id(self, consignment_id: str) -> ConsignmentModel:
        async with self.session_factory() as session:
            result = await session.execute(
                self._live().where(ConsignmentModel.id == consignment_id)
            )
            consignment = result.scalar_one_or_none()
            if consignment is None:
                raise ConsignmentNotFoundError(consignment_id)
            return consignment

    async def get_by_order(self, order_id: str) -> ConsignmentModel | None:
        async with self.session_factory() as session:
            result = await session.execute(
                self._live().where(ConsignmentModel.order_id == order_id)
            )
            return result.scalars().first()

    async def create(self, **fields: Any) -> ConsignmentModel:
        consignment = ConsignmentModel(**fields)
        async with self.session_factory() as session:
            session.add(consignment)
            try:
                await session.commit()
            except IntegrityError as e:
                await session.rollback()
                raise ConsignmentConflictError(fields["order_id"]) from e
            await session.refresh(consignment)
        return consignment

    async def update(
        self, consignment_id: str, **fields: Any
    ) -> ConsignmentModel:
        async with self.session_factory() as session:
            consignment = await session.get(ConsignmentModel, consignment_id)
            if consignment is None or consignment.deleted_at is not None:
                raise ConsignmentNotFoundError(consignment_id)
            for key, value in fields.items():
                if hasattr(consignment, key):
                    setattr(consignment, key, value)
            await session.commit()
            await session.refresh(consignment)
            return consignment

    async def list_and_count(
        self,
        filters: dict[str, Any] | None = None,
        *,
        limit: int = 20,
        offset: int = 0,
    ) -> tuple[list[ConsignmentModel], int]:
        conditions = [ConsignmentModel.deleted_at.is_(None)]
        for key in _CONSIGNMENT_FILTERS:
            value = (filters or {}).get(key)
            if value is not None:
                conditions.append(getattr(ConsignmentModel, key) == value)

        async with self.session_factory() as session:
            count = await session.scalar(
                select(func.count()).select_from(ConsignmentModel).where(*conditions)
            )
            result = await session.execute(
                select(ConsignmentModel)
                .where(*conditions)
                .order_by(ConsignmentModel.created_at.desc())
                .limit(limit)
                .offset(offset)
            )
            return list(result.scalars().all()), int(count or 0)


class SQLAlchemySettingsRepository:
    """Settings singleton repository."""

    def __init__(
        self, session_factory: async_sessionmaker[AsyncSession]
    ) -> None:
        self.session_factory = session_factory

    async def get_first(self) -> SettingsModel | None:
        async with self.session_factory() as session:
            result = await session.execute(
                select(SettingsModel)
                .where(SettingsModel.deleted_at.is_(None))
                .order_by(SettingsModel.created_at)
                .limit(1)
            )
            return result.scalar_one_or_none()

    async def create(self, **fields: Any) -> SettingsModel:
        settings = SettingsModel(**fields)
        async with self.session_factory() as session:
            session.add(settings)
            await session.commit()
            await session.refresh(settings)
        return settings

    async def update(self, settings_id: str, **fields: Any) -> SettingsModel:
        async with self.session_factory() as session:
            settings = await session.get(SettingsModel, settings_id)
            if settings is None:
                raise ConfigurationError(
                    f"MyParcel settings {settings_id} not found"
                )
            for key, value in fields.items():
                if hasattr(settings, key):
                    setattr(settings, key, value)
            await session.commit()
            await session.refresh(settings)
            return settings
