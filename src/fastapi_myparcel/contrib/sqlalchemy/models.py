"""SQLAlchemy consignment/settings models."""

from __future__ import annotations

import uuid
from datetime import UTC, datetime
from typing import Any

from sqlalchemy import JSON, Boolean, DateTime, Index, Integer, String, text
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


def _now() -> datetime:
    return datetime.now(tz=UTC)


def _prefixed_id(prefix: str):
    def factory() -> str:
        return f"{prefix}_{uuid.uuid4().hex}"

    return factory


class Base(DeclarativeBase):
    """SQLAlchemy declarative base."""


class TimestampMixin:
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=_now
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=_now, onupdate=_now
    )
    deleted_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True, default=None
    )


class ConsignmentModel(TimestampMixin, Base):
    """One carrier shipment per order."""

    __tablename__ = "myparcel_consignment"
    __table_args__ = (
        Index(
            "ix_myparcel_consignment_order_id_live",
            "order_id",
            unique=True,
            sqlite_where=text("deleted_at IS NULL"),
            postgresql_where=text("deleted_at IS NULL"),
        ),
    )

    id: Mapped[str] = mapped_column(
        String(64), primary_key=True, default=_prefixed_id("mpc")
    )
    order_id: Mapped[str] = mapped_column(String(128))
    fulfillment_id: Mapped[str | None] = mapped_column(String(128), nullable=True)
    carrier: Mapped[str | None] = mapped_column(String(32), nullable=True)
    myparcel_id: Mapped[str | None] = mapped_column(
        String(64), nullable=True, index=True
    )
    reference: Mapped[str | None] = mapped_column(String(128), nullable=True)
    status: Mapped[str | None] = mapped_column(String(64), nullable=True)
    barcode: Mapped[str | None] = mapped_column(
        String(128), nullable=True, index=True
    )
    track_trace_url: Mapped[str | None] = mapped_column(
        String(1024), nullable=True
    )
    track_trace_status: Mapped[str | None] = mapped_column(
        String(64), nullable=True
    )
    label_format: Mapped[str | None] = mapped_column(String(2), nullable=True)
    label_position: Mapped[int | None] = mapped_column(Integer, nullable=True)
    options_json: Mapped[dict[str, Any] | None] = mapped_column(
        JSON, nullable=True
    )
    recipient_snapshot_json: Mapped[dict[str, Any] | None] = mapped_column(
        JSON, nullable=True
    )
    track_trace_history_json: Mapped[Any] = mapped_column(JSON, nullable=True)
    errors_json: Mapped[Any] = mapped_column(JSON, nullable=True)
    last_synced_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
    return_label_sent_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
    return_label_email_status: Mapped[str | None] = mapped_column(
        String(32), nullable=True
    )


class SettingsModel(TimestampMixin, Base):
    """Tenant settings singleton; the API key is stored encrypted."""

    __tablename__ = "myparcel_setting"

    id: Mapped[str] = mapped_column(
        String(64), primary_key=True, default=_prefixed_id("mps")
    )
    api_key_enc: Mapped[str | None] = mapped_column(String(1024), nullable=True)
    api_key_last4: Mapped[str | None] = mapped_column(String(4), nullable=True)
    environment: Mapped[str | None] = mapped_column(String(16), nullable=True)
    default_carrier: Mapped[str | None] = mapped_column(
        String(32), nullable=True
    )
    allowed_carriers: Mapped[list[str] | None] = mapped_column(
        JSON, nullable=True
    )
    default_label_format: Mapped[str | None] = mapped_column(
        String(2), nullable=True
    )
    default_a4_position: Mapped[int | None] = mapped_column(
        Integer, nullable=True
    )
    use_delivery_date: Mapped[bool] = mapped_column(Boolean, default=False)
