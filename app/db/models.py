"""SQLAlchemy ORM models for the store supply ledger.

This module defines the database schema for:
- Reference data (store zones)
- Fact tables (supply tracker restock rows, frozen product sales)

Dates are store-local calendar dates. Quantities are exact decimals.
"""

from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal

from sqlalchemy import (
    Date,
    DateTime,
    Index,
    Integer,
    Numeric,
    String,
    UniqueConstraint,
)
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column

QTY = Numeric(12, 3)


class Base(DeclarativeBase):
    """Base class for all ORM models."""

    pass


# =============================================================================
# Reference Tables
# =============================================================================


class StoreZone(Base):
    """Sub-location of a store (floor, counter).

    A store with no rows here is undivided and uses zone_code "".
    """

    __tablename__ = "store_zones"

    id: Mapped[str] = mapped_column(String(64), primary_key=True)  # e.g. "lehua_1f"
    store_id: Mapped[str] = mapped_column(String(64), index=True)
    zone_code: Mapped[str] = mapped_column(String(32))  # e.g. "1F"
    zone_name: Mapped[str] = mapped_column(String(100))
    sort_order: Mapped[int] = mapped_column(Integer, default=0)

    __table_args__ = (UniqueConstraint("store_id", "zone_code", name="uq_zone_store_code"),)


# =============================================================================
# Fact Tables
# =============================================================================


class SupplyTracker(Base):
    """Daily supply entry per store/zone/item.

    restock_qty is the raw restock event. remaining_qty is authoritative only
    at the baseline date; on every other date it is a display snapshot.
    """

    __tablename__ = "supply_tracker"

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    store_id: Mapped[str] = mapped_column(String(64), index=True)
    d: Mapped[date] = mapped_column(Date, index=True)
    zone_code: Mapped[str] = mapped_column(String(32), default="")
    supply_key: Mapped[str] = mapped_column(String(64))

    restock_qty: Mapped[Decimal] = mapped_column(QTY, default=Decimal("0"))
    remaining_qty: Mapped[Decimal] = mapped_column(QTY, default=Decimal("0"))

    submitted_by: Mapped[str | None] = mapped_column(String(64), nullable=True)
    updated_at: Mapped[datetime | None] = mapped_column(DateTime, nullable=True)

    __table_args__ = (
        UniqueConstraint("store_id", "d", "zone_code", "supply_key", name="uq_supply_natural_key"),
        Index("ix_supply_store_day", "store_id", "d"),
    )


class FrozenSales(Base):
    """Daily frozen product sales per store/zone, split by channel.

    Consumption for the ledger is takeout + delivery.
    """

    __tablename__ = "frozen_sales"

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    store_id: Mapped[str] = mapped_column(String(64), index=True)
    d: Mapped[date] = mapped_column(Date, index=True)
    zone_code: Mapped[str] = mapped_column(String(32), default="")
    product_key: Mapped[str] = mapped_column(String(64))

    takeout: Mapped[Decimal] = mapped_column(QTY, default=Decimal("0"))
    delivery: Mapped[Decimal] = mapped_column(QTY, default=Decimal("0"))

    submitted_by: Mapped[str | None] = mapped_column(String(64), nullable=True)
    updated_at: Mapped[datetime | None] = mapped_column(DateTime, nullable=True)

    __table_args__ = (
        UniqueConstraint("store_id", "d", "zone_code", "product_key", name="uq_frozen_natural_key"),
        Index("ix_frozen_store_day", "store_id", "d"),
    )
