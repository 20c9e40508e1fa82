"""Supply tracker service: view loads, history and idempotent saves.

Wires the pure ledger (app.domain.supply) to the database:
1. Read the zone catalog, baseline, restock and consumption rows
2. Replay the chain up to yesterday and compute today's live draft
3. Upsert today's entry keyed by (store_id, d, zone_code, supply_key)

Read failures never crash a view load. They zero the affected input, mark
the view incomplete and block saving until a clean reload.
"""

from __future__ import annotations

from collections.abc import Callable, Mapping, Sequence
from dataclasses import dataclass
from datetime import date, datetime, timezone
from decimal import Decimal
from typing import Any, TypeVar

from sqlalchemy import select
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.core.config import get_settings
from app.core.logging import get_logger
from app.core.metrics import (
    supply_chain_days,
    supply_fetch_failures_total,
    supply_saves_total,
    supply_view_loads_total,
)
from app.db.models import FrozenSales, StoreZone, SupplyTracker
from app.domain.supply.calendar import as_date, chain_dates, previous_day
from app.domain.supply.catalog import SupplyItem, get_supply_items
from app.domain.supply.draft import SupplyDraft, round_quantity
from app.domain.supply.errors import (
    BaselineWriteError,
    IncompleteLedgerError,
    LedgerFetchError,
    MergedViewWriteError,
)
from app.domain.supply.ledger import (
    ZERO,
    ConsumptionEvent,
    Quantities,
    RestockEvent,
    consumption_by_date,
    deduction_totals,
    replay_timeline,
    restock_by_date,
)
from app.domain.supply.zones import ZoneSeries, merge_balances, replay_merged, resolve_zone

log = get_logger("supply_ledger.supply_tracker")

T = TypeVar("T")


# =============================================================================
# Reads
# =============================================================================


def _scoped(stmt, model, store_id: str, zone_code: str | None):
    """Filter by store, and by zone unless zone_code is None (all zones)."""
    stmt = stmt.where(model.store_id == store_id)
    if zone_code is not None:
        stmt = stmt.where(model.zone_code == zone_code)
    return stmt


def get_store_zones(db: Session, store_id: str) -> list[str]:
    """Zone codes of a store in display order (empty list = undivided store)."""
    stmt = (
        select(StoreZone.zone_code)
        .where(StoreZone.store_id == store_id)
        .order_by(StoreZone.sort_order, StoreZone.zone_code)
    )
    return list(db.execute(stmt).scalars())


def load_baseline_by_zone(
    db: Session,
    store_id: str,
    zone_code: str | None,
    base_date: date,
    items: Sequence[SupplyItem],
) -> dict[str, Quantities]:
    """Baseline counts at base_date per zone, zero-filled over the catalog."""
    stmt = _scoped(
        select(SupplyTracker.zone_code, SupplyTracker.supply_key, SupplyTracker.remaining_qty),
        SupplyTracker,
        store_id,
        zone_code,
    ).where(SupplyTracker.d == base_date)

    by_zone: dict[str, Quantities] = {}
    if zone_code is not None:
        by_zone[zone_code] = {item.key: ZERO for item in items}
    for row in db.execute(stmt):
        zone = by_zone.setdefault(row.zone_code, {item.key: ZERO for item in items})
        if row.supply_key in zone:
            zone[row.supply_key] = Decimal(row.remaining_qty or 0)
    return by_zone


def load_baseline(
    db: Session,
    store_id: str,
    zone_code: str | None,
    base_date: date,
    items: Sequence[SupplyItem],
) -> Quantities:
    """Trusted balance at base_date; items without a count are zero.

    A zone that was never counted is indistinguishable from one counted at
    zero, and both anchor the chain at zero.
    """
    return merge_balances(
        load_baseline_by_zone(db, store_id, zone_code, base_date, items).values(), items
    )


def fetch_restock_events(
    db: Session, store_id: str, zone_code: str | None, start: date, end: date
) -> list[RestockEvent]:
    """Raw restock events in [start, end]. remaining_qty is never selected."""
    stmt = _scoped(
        select(
            SupplyTracker.d,
            SupplyTracker.zone_code,
            SupplyTracker.supply_key,
            SupplyTracker.restock_qty,
        ),
        SupplyTracker,
        store_id,
        zone_code,
    ).where(SupplyTracker.d >= start, SupplyTracker.d <= end)

    return [
        RestockEvent(
            store_id=store_id,
            d=row.d,
            zone_code=row.zone_code,
            item_key=row.supply_key,
            quantity=Decimal(row.restock_qty or 0),
        )
        for row in db.execute(stmt)
    ]


def fetch_consumption_events(
    db: Session, store_id: str, zone_code: str | None, start: date, end: date
) -> list[ConsumptionEvent]:
    """Product sales in [start, end], takeout and delivery collapsed."""
    stmt = _scoped(
        select(
            FrozenSales.d,
            FrozenSales.zone_code,
            FrozenSales.product_key,
            FrozenSales.takeout,
            FrozenSales.delivery,
        ),
        FrozenSales,
        store_id,
        zone_code,
    ).where(FrozenSales.d >= start, FrozenSales.d <= end)

    return [
        ConsumptionEvent(
            store_id=store_id,
            d=row.d,
            zone_code=row.zone_code,
            product_key=row.product_key,
            quantity=Decimal(row.takeout or 0) + Decimal(row.delivery or 0),
        )
        for row in db.execute(stmt)
    ]


def _zone_series(
    baselines: Mapping[str, Quantities],
    restock: Sequence[RestockEvent],
    consumption: Sequence[ConsumptionEvent],
) -> list[ZoneSeries]:
    """Split fetched rows into one input series per zone."""
    zones = set(baselines) | {e.zone_code for e in restock} | {e.zone_code for e in consumption}
    return [
        ZoneSeries(
            zone_code=zone,
            baseline=baselines.get(zone, {}),
            restock=tuple(e for e in restock if e.zone_code == zone),
            consumption=tuple(e for e in consumption if e.zone_code == zone),
        )
        for zone in sorted(zones)
    ]


# =============================================================================
# View load
# =============================================================================


def _format_qty(value: Decimal) -> str:
    """Render a stored quantity without trailing zeros ("20.000" -> "20")."""
    return format(value.normalize(), "f")


@dataclass(frozen=True)
class SupplyView:
    """Everything the supply entry screen needs for one store/date/zone."""

    store_id: str
    selected_date: date
    zone_code: str | None  # None = merged view
    items: tuple[SupplyItem, ...]
    yesterday_remaining: Quantities
    deductions: Quantities
    restock_draft: dict[str, str]
    chain_days: int
    base_date: date
    failed_sources: tuple[str, ...] = ()

    @property
    def merged(self) -> bool:
        return self.zone_code is None

    @property
    def incomplete(self) -> bool:
        return bool(self.failed_sources)

    def draft(self, restock_draft: Mapping[str, str] | None = None) -> SupplyDraft:
        """Editable draft seeded from this view (and optional new values)."""
        draft = SupplyDraft(
            self.items, self.yesterday_remaining, self.deductions, self.restock_draft
        )
        for key, value in (restock_draft or {}).items():
            draft.update_restock(key, value)
        return draft

    @property
    def remaining_values(self) -> Quantities:
        return self.draft().remaining_values


def load_supply_view(
    db: Session,
    store_id: str,
    selected_date: date | str,
    zone: str | None = None,
    *,
    items: Sequence[SupplyItem] | None = None,
    base_date: date | None = None,
) -> SupplyView:
    """Reconstruct yesterday's balance and today's draft for a view.

    Args:
        db: Database session
        store_id: Store identifier
        selected_date: "Today" of the view (store-local calendar date)
        zone: Selected zone code; None/"" on a multi-zone store = merged view
        items: Supply catalog (default: active catalog from settings)
        base_date: Baseline anchor (default: settings.supply_base_date)

    Returns:
        SupplyView; ``incomplete`` is set when any ledger read failed

    Raises:
        LedgerFetchError: If the zone catalog cannot be read.
        ValueError: If zone is not one of the store's zones.

    """
    settings = get_settings()
    items = tuple(items) if items is not None else get_supply_items()
    base_date = base_date or settings.supply_base_date
    today = as_date(selected_date)
    yesterday = previous_day(today)

    try:
        zone_codes = get_store_zones(db, store_id)
    except SQLAlchemyError as e:
        supply_fetch_failures_total.labels(source="zones").inc()
        log.error("supply_zone_catalog_failed", extra={"store_id": store_id}, exc_info=True)
        raise LedgerFetchError("zones", store_id, e) from e

    zone_code = resolve_zone(zone_codes, zone)
    failed: list[str] = []

    def read(source: str, fn: Callable[[], T], default: T) -> T:
        try:
            return fn()
        except SQLAlchemyError:
            db.rollback()
            failed.append(source)
            supply_fetch_failures_total.labels(source=source).inc()
            log.error(
                "supply_fetch_failed",
                extra={"store_id": store_id, "zone": zone_code, "source": source},
                exc_info=True,
            )
            return default

    dates = chain_dates(base_date, yesterday)

    if yesterday < base_date:
        # Nothing is reconstructed before the anchor count
        yesterday_remaining: Quantities = {}
    else:
        baselines = read(
            "baseline",
            lambda: load_baseline_by_zone(db, store_id, zone_code, base_date, items),
            {},
        )
        if "baseline" not in failed and not any(
            any(q != ZERO for q in b.values()) for b in baselines.values()
        ):
            log.warning(
                "supply_baseline_missing",
                extra={"store_id": store_id, "zone": zone_code, "base_date": base_date},
            )
        restock: list[RestockEvent] = []
        consumption: list[ConsumptionEvent] = []
        if dates:
            restock = read(
                "restock",
                lambda: fetch_restock_events(db, store_id, zone_code, dates[0], dates[-1]),
                [],
            )
            consumption = read(
                "consumption",
                lambda: fetch_consumption_events(db, store_id, zone_code, dates[0], dates[-1]),
                [],
            )
        yesterday_remaining = replay_merged(
            _zone_series(baselines, restock, consumption), dates, items
        )

    today_restock = read(
        "today_restock", lambda: fetch_restock_events(db, store_id, zone_code, today, today), []
    )
    today_consumption = read(
        "today_consumption",
        lambda: fetch_consumption_events(db, store_id, zone_code, today, today),
        [],
    )

    deductions = deduction_totals(consumption_by_date(today_consumption).get(today, {}), items)
    # Rows for items no longer in the catalog are ignored
    catalog_keys = {item.key for item in items}
    restock_draft = {
        key: _format_qty(qty)
        for key, qty in restock_by_date(today_restock).get(today, {}).items()
        if key in catalog_keys and qty > 0
    }

    view = SupplyView(
        store_id=store_id,
        selected_date=today,
        zone_code=zone_code,
        items=items,
        yesterday_remaining=yesterday_remaining,
        deductions=deductions,
        restock_draft=restock_draft,
        chain_days=len(dates),
        base_date=base_date,
        failed_sources=tuple(failed),
    )

    supply_chain_days.observe(len(dates))
    supply_view_loads_total.labels(
        view="merged" if view.merged else "zone",
        status="incomplete" if view.incomplete else "complete",
    ).inc()
    log.info(
        "supply_view_loaded",
        extra={
            "store_id": store_id,
            "date": today,
            "zone": zone_code,
            "chain_days": len(dates),
            "failed_sources": view.failed_sources,
        },
    )
    return view


def ledger_history(
    db: Session,
    store_id: str,
    start: date | str,
    end: date | str,
    zone: str | None = None,
    *,
    items: Sequence[SupplyItem] | None = None,
    base_date: date | None = None,
) -> dict[date, Quantities]:
    """Reconstructed end-of-day balances for every date in [start, end].

    The baseline date itself is reported as the baseline counts; dates before
    it are omitted.

    Raises:
        LedgerFetchError: If any read fails (history is never shown partial).

    """
    settings = get_settings()
    items = tuple(items) if items is not None else get_supply_items()
    base_date = base_date or settings.supply_base_date
    start, end = as_date(start), as_date(end)
    if end < base_date or start > end:
        return {}

    try:
        zone_code = resolve_zone(get_store_zones(db, store_id), zone)
        baseline = load_baseline(db, store_id, zone_code, base_date, items)
        dates = chain_dates(base_date, end)
        restock: list[RestockEvent] = []
        consumption: list[ConsumptionEvent] = []
        if dates:
            restock = fetch_restock_events(db, store_id, zone_code, dates[0], dates[-1])
            consumption = fetch_consumption_events(db, store_id, zone_code, dates[0], dates[-1])
    except SQLAlchemyError as e:
        supply_fetch_failures_total.labels(source="history").inc()
        log.error("supply_history_failed", extra={"store_id": store_id}, exc_info=True)
        raise LedgerFetchError("history", store_id, e) from e

    timeline = {base_date: baseline}
    timeline.update(
        replay_timeline(
            baseline, dates, restock_by_date(restock), consumption_by_date(consumption), items
        )
    )
    return {d: q for d, q in timeline.items() if start <= d <= end}


# =============================================================================
# Writes
# =============================================================================


def _upsert(
    db: Session,
    model: type,
    rows: list[dict[str, Any]],
    index_elements: list[str],
    update_columns: list[str],
) -> None:
    """INSERT ... ON CONFLICT DO UPDATE, skipping rows whose values are unchanged."""
    if not rows:
        return

    dialect = db.get_bind().dialect.name
    if dialect == "postgresql":
        stmt = postgresql.insert(model).values(rows)
    elif dialect == "sqlite":
        stmt = sqlite.insert(model).values(rows)
    else:
        raise NotImplementedError(f"Upsert not supported for dialect {dialect!r}")

    table = model.__table__
    changed = None
    for col in update_columns:
        if col == "updated_at":
            continue
        cond = table.c[col].is_distinct_from(stmt.excluded[col])
        changed = cond if changed is None else (changed | cond)

    stmt = stmt.on_conflict_do_update(
        index_elements=index_elements,
        set_={col: stmt.excluded[col] for col in update_columns},
        where=changed,
    )
    db.execute(stmt)


def save_supply_data(
    db: Session,
    view: SupplyView,
    restock_draft: Mapping[str, str] | None = None,
    submitted_by: str | None = None,
    *,
    now: datetime | None = None,
) -> list[dict[str, Any]]:
    """Persist today's restock draft and the derived remaining quantity.

    Writes exactly one row per catalog item for (store, selected_date, zone).
    Replaying the same save leaves the stored rows untouched.

    Args:
        db: Database session
        view: Freshly loaded view for the target store/date/zone
        restock_draft: Draft values to apply on top of the view's draft
        submitted_by: Staff identifier recorded on the rows
        now: Timestamp for updated_at (default: current UTC time)

    Returns:
        The rows written

    Raises:
        MergedViewWriteError: If the view is a merged multi-zone view.
        IncompleteLedgerError: If any read for the view failed.
        BaselineWriteError: If the view date is on or before the baseline date.

    """
    if view.merged:
        supply_saves_total.labels(status="merged_view").inc()
        log.warning("supply_save_refused", extra={"store_id": view.store_id, "reason": "merged"})
        raise MergedViewWriteError(view.store_id)
    if view.incomplete:
        supply_saves_total.labels(status="incomplete").inc()
        log.warning(
            "supply_save_refused",
            extra={
                "store_id": view.store_id,
                "reason": "incomplete",
                "failed_sources": view.failed_sources,
            },
        )
        raise IncompleteLedgerError(view.failed_sources)
    if view.selected_date <= view.base_date:
        supply_saves_total.labels(status="baseline").inc()
        log.warning(
            "supply_save_refused",
            extra={"store_id": view.store_id, "reason": "baseline", "date": view.selected_date},
        )
        raise BaselineWriteError(view.selected_date, view.base_date)

    settings = get_settings()
    draft = view.draft(restock_draft)
    restock = draft.restock_values()
    remaining = draft.remaining_values
    updated_at = (now or datetime.now(timezone.utc)).replace(tzinfo=None)

    rows = [
        {
            "store_id": view.store_id,
            "d": view.selected_date,
            "zone_code": view.zone_code,
            "supply_key": item.key,
            "restock_qty": restock[item.key],
            "remaining_qty": round_quantity(remaining[item.key], settings.supply_remaining_decimals),
            "submitted_by": submitted_by,
            "updated_at": updated_at,
        }
        for item in view.items
    ]

    _upsert(
        db,
        SupplyTracker,
        rows,
        index_elements=["store_id", "d", "zone_code", "supply_key"],
        update_columns=["restock_qty", "remaining_qty", "submitted_by", "updated_at"],
    )
    db.commit()

    supply_saves_total.labels(status="saved").inc()
    log.info(
        "supply_saved",
        extra={
            "store_id": view.store_id,
            "date": view.selected_date,
            "zone": view.zone_code,
            "rows": len(rows),
        },
    )
    return rows


def record_restock(
    db: Session,
    store_id: str,
    d: date | str,
    zone_code: str,
    item_key: str,
    quantity: Decimal,
    submitted_by: str | None = None,
) -> None:
    """Upsert one restock event (ordering / receipt flows, corrections).

    Only restock_qty is updated on conflict; the display snapshot is left
    alone.
    """
    _upsert(
        db,
        SupplyTracker,
        [
            {
                "store_id": store_id,
                "d": as_date(d),
                "zone_code": zone_code,
                "supply_key": item_key,
                "restock_qty": Decimal(quantity),
                "remaining_qty": ZERO,
                "submitted_by": submitted_by,
                "updated_at": datetime.now(timezone.utc).replace(tzinfo=None),
            }
        ],
        index_elements=["store_id", "d", "zone_code", "supply_key"],
        update_columns=["restock_qty", "submitted_by", "updated_at"],
    )
    db.commit()


def record_consumption(
    db: Session,
    store_id: str,
    d: date | str,
    zone_code: str,
    product_key: str,
    takeout: Decimal = ZERO,
    delivery: Decimal = ZERO,
    submitted_by: str | None = None,
) -> None:
    """Upsert one day's sales of a product (sales entry flow)."""
    _upsert(
        db,
        FrozenSales,
        [
            {
                "store_id": store_id,
                "d": as_date(d),
                "zone_code": zone_code,
                "product_key": product_key,
                "takeout": Decimal(takeout),
                "delivery": Decimal(delivery),
                "submitted_by": submitted_by,
                "updated_at": datetime.now(timezone.utc).replace(tzinfo=None),
            }
        ],
        index_elements=["store_id", "d", "zone_code", "product_key"],
        update_columns=["takeout", "delivery", "submitted_by", "updated_at"],
    )
    db.commit()


def record_baseline(
    db: Session,
    store_id: str,
    zone_code: str,
    counts: Mapping[str, Decimal],
    base_date: date | None = None,
    submitted_by: str | None = None,
) -> None:
    """Write the manual count rows that anchor the chain."""
    base_date = base_date or get_settings().supply_base_date
    now = datetime.now(timezone.utc).replace(tzinfo=None)
    _upsert(
        db,
        SupplyTracker,
        [
            {
                "store_id": store_id,
                "d": base_date,
                "zone_code": zone_code,
                "supply_key": key,
                "restock_qty": ZERO,
                "remaining_qty": Decimal(qty),
                "submitted_by": submitted_by,
                "updated_at": now,
            }
            for key, qty in counts.items()
        ],
        index_elements=["store_id", "d", "zone_code", "supply_key"],
        update_columns=["remaining_qty", "submitted_by", "updated_at"],
    )
    db.commit()
