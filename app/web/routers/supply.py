"""Supply tracker API endpoints."""

from __future__ import annotations

from datetime import date

from fastapi import APIRouter, HTTPException, Query, status
from sqlalchemy import select

from app.db.models import StoreZone
from app.domain.supply.calendar import local_today
from app.domain.supply.catalog import get_supply_items
from app.domain.supply.errors import (
    BaselineWriteError,
    IncompleteLedgerError,
    LedgerFetchError,
    MergedViewWriteError,
    UnknownSupplyItemError,
)
from app.services.supply_tracker import (
    SupplyView,
    ledger_history,
    load_supply_view,
    save_supply_data,
)
from app.web.deps import AppSettings, DBSession
from app.web.schemas import (
    DraftRequest,
    HistoryOut,
    SavedRow,
    SaveRequest,
    SaveResult,
    SupplyItemOut,
    SupplyViewOut,
    ZoneOut,
)

router = APIRouter(prefix="/api/v1/supply", tags=["supply"])


def _load(db, store_id: str, selected: date, zone: str | None) -> SupplyView:
    """Load a view, mapping ledger errors to HTTP errors."""
    try:
        return load_supply_view(db, store_id, selected, zone)
    except LedgerFetchError as e:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail=f"{e}; retry load",
        ) from e
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e)) from e


def _view_out(view: SupplyView, restock: dict[str, str] | None = None) -> SupplyViewOut:
    try:
        draft = view.draft(restock)
    except UnknownSupplyItemError as e:
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=str(e)) from e
    return SupplyViewOut(
        store_id=view.store_id,
        date=view.selected_date,
        zone=view.zone_code,
        merged=view.merged,
        incomplete=view.incomplete,
        failed_sources=list(view.failed_sources),
        chain_days=view.chain_days,
        yesterday_remaining=view.yesterday_remaining,
        deductions=view.deductions,
        restock_draft=draft.restock_draft,
        remaining_values=draft.remaining_values,
    )


@router.get("/items", response_model=list[SupplyItemOut])
def list_supply_items():
    """Supply catalog with the product keys that deplete each item."""
    return [
        SupplyItemOut(
            key=item.key, name=item.name, unit=item.unit, deduction_keys=list(item.deduction_keys)
        )
        for item in get_supply_items()
    ]


@router.get("/{store_id}/zones", response_model=list[ZoneOut])
def list_store_zones(store_id: str, db: DBSession):
    """Zones of a store in display order."""
    stmt = (
        select(StoreZone)
        .where(StoreZone.store_id == store_id)
        .order_by(StoreZone.sort_order, StoreZone.zone_code)
    )
    return list(db.execute(stmt).scalars())


@router.get("/{store_id}", response_model=SupplyViewOut)
def get_supply_view(
    store_id: str,
    db: DBSession,
    settings: AppSettings,
    d: date | None = Query(None, alias="date", description="View date (default: store-local today)"),
    zone: str | None = Query(None, description="Zone code; omit for the merged view"),
):
    """Yesterday's reconstructed balance and today's draft for a view."""
    selected = d or local_today(settings.app_timezone)
    return _view_out(_load(db, store_id, selected, zone))


@router.post("/{store_id}/preview", response_model=SupplyViewOut)
def preview_supply_draft(store_id: str, body: DraftRequest, db: DBSession):
    """Live remaining values for a draft, without writing anything."""
    return _view_out(_load(db, store_id, body.date, body.zone), body.restock)


@router.post("/{store_id}/save", response_model=SaveResult)
def save_supply_draft(store_id: str, body: SaveRequest, db: DBSession):
    """Persist today's restock and remaining values for one zone.

    Merged views, views whose chain could not be fully read and dates on or
    before the baseline count are refused with 409.
    """
    view = _load(db, store_id, body.date, body.zone)
    try:
        rows = save_supply_data(db, view, body.restock, body.submitted_by)
    except (MergedViewWriteError, IncompleteLedgerError, BaselineWriteError) as e:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e)) from e
    except UnknownSupplyItemError as e:
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=str(e)) from e

    return SaveResult(
        status="success",
        store_id=store_id,
        date=view.selected_date,
        zone=view.zone_code or "",
        rows=[
            SavedRow(
                supply_key=r["supply_key"],
                restock_qty=r["restock_qty"],
                remaining_qty=r["remaining_qty"],
            )
            for r in rows
        ],
    )


@router.get("/{store_id}/history", response_model=HistoryOut)
def get_supply_history(
    store_id: str,
    db: DBSession,
    start: date = Query(..., description="First date (inclusive)"),
    end: date = Query(..., description="Last date (inclusive)"),
    zone: str | None = Query(None, description="Zone code; omit for the merged view"),
):
    """Reconstructed end-of-day balances over a date range."""
    if start > end:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="start must be <= end")
    try:
        balances = ledger_history(db, store_id, start, end, zone)
    except LedgerFetchError as e:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=f"{e}; retry load"
        ) from e
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e)) from e
    return HistoryOut(store_id=store_id, zone=zone, balances=balances)
