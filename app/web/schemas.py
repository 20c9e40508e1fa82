"""Pydantic schemas for API requests and responses."""

from __future__ import annotations

import datetime as dt
from decimal import Decimal

from pydantic import BaseModel, ConfigDict, Field, field_validator

from app.domain.supply.draft import is_valid_quantity


class SupplyItemOut(BaseModel):
    """Supply catalog entry."""

    key: str
    name: str
    unit: str
    deduction_keys: list[str]

    model_config = ConfigDict(from_attributes=True)


class ZoneOut(BaseModel):
    """Store zone."""

    zone_code: str
    zone_name: str
    sort_order: int

    model_config = ConfigDict(from_attributes=True)


class SupplyViewOut(BaseModel):
    """Supply entry screen state for one store/date/zone."""

    store_id: str
    date: dt.date
    zone: str | None = Field(None, description="Zone code; null for the merged view")
    merged: bool
    incomplete: bool = Field(..., description="True if any ledger read failed; saving is blocked")
    failed_sources: list[str] = []
    chain_days: int
    yesterday_remaining: dict[str, Decimal]
    deductions: dict[str, Decimal]
    restock_draft: dict[str, str]
    remaining_values: dict[str, Decimal]


class DraftRequest(BaseModel):
    """Draft restock values for today's entry."""

    date: dt.date
    zone: str | None = None
    restock: dict[str, str] = Field(default_factory=dict)

    @field_validator("restock")
    @classmethod
    def _quantities_are_valid(cls, v: dict[str, str]) -> dict[str, str]:
        bad = sorted(k for k, qty in v.items() if not is_valid_quantity(qty))
        if bad:
            raise ValueError(f"Invalid restock quantity for: {', '.join(bad)}")
        return v


class SaveRequest(DraftRequest):
    """Save today's entry for a concrete zone."""

    submitted_by: str | None = Field(None, max_length=64)


class SavedRow(BaseModel):
    """Row written by a save."""

    supply_key: str
    restock_qty: Decimal
    remaining_qty: Decimal


class SaveResult(BaseModel):
    """Outcome of a save."""

    status: str
    store_id: str
    date: dt.date
    zone: str
    rows: list[SavedRow]


class HistoryOut(BaseModel):
    """Reconstructed balances per date."""

    store_id: str
    zone: str | None
    balances: dict[dt.date, dict[str, Decimal]]
