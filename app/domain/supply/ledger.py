"""Forward-chained supply ledger.

Rebuilds the on-hand balance of every supply item from the trusted baseline
count, one calendar day at a time:

    balance(D) = balance(D - 1) + restock(D) - deduction(D)
    deduction(D) = sum of consumption(D, k) for k in item.deduction_keys

Only the baseline and the raw restock / consumption events feed the fold.
Previously stored remaining quantities are never inputs, so a retroactive
correction on any day flows through to every later day on the next replay.

NO DATA ACCESS - pure functions only. Data access happens in services layer.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping, Sequence
from dataclasses import dataclass
from datetime import date
from decimal import Decimal

from app.domain.supply.calendar import chain_dates
from app.domain.supply.catalog import SupplyItem

ZERO = Decimal("0")

Quantities = dict[str, Decimal]
DailyQuantities = dict[date, dict[str, Decimal]]


@dataclass(frozen=True)
class RestockEvent:
    """Quantity of a supply item added to a store/zone on a day."""

    store_id: str
    d: date
    zone_code: str
    item_key: str
    quantity: Decimal


@dataclass(frozen=True)
class ConsumptionEvent:
    """Quantity of a product sold on a day (takeout + delivery)."""

    store_id: str
    d: date
    zone_code: str
    product_key: str
    quantity: Decimal


@dataclass(frozen=True)
class RunningBalance:
    """Reconstructed end-of-day balance of one item."""

    d: date
    item_key: str
    quantity: Decimal


def _by_date(rows: Iterable[tuple[date, str, Decimal]]) -> DailyQuantities:
    grouped: DailyQuantities = {}
    for d, key, qty in rows:
        day = grouped.setdefault(d, {})
        day[key] = day.get(key, ZERO) + qty
    return grouped


def restock_by_date(events: Iterable[RestockEvent]) -> DailyQuantities:
    """Group restock events into ``{date: {item_key: qty}}``.

    Events sharing a date and item (different zones) are summed.
    """
    return _by_date((e.d, e.item_key, e.quantity) for e in events)


def consumption_by_date(events: Iterable[ConsumptionEvent]) -> DailyQuantities:
    """Group consumption events into ``{date: {product_key: qty}}``."""
    return _by_date((e.d, e.product_key, e.quantity) for e in events)


def deduction_totals(
    consumption: Mapping[str, Decimal], items: Sequence[SupplyItem]
) -> Quantities:
    """Map one day's product consumption onto supply items.

    Examples:
        >>> from app.domain.supply.catalog import SUPPLY_ITEMS
        >>> totals = deduction_totals(
        ...     {"almond_tea_300": Decimal(3), "almond_tea_1000": Decimal(2)}, SUPPLY_ITEMS
        ... )
        >>> totals["bottle_cap"]
        Decimal('5')

    """
    return {
        item.key: sum((consumption.get(k, ZERO) for k in item.deduction_keys), ZERO)
        for item in items
    }


def apply_day(
    previous: Mapping[str, Decimal],
    restock: Mapping[str, Decimal],
    consumption: Mapping[str, Decimal],
    items: Sequence[SupplyItem],
) -> Quantities:
    """One step of the recurrence, total over the catalog."""
    deductions = deduction_totals(consumption, items)
    return {
        item.key: previous.get(item.key, ZERO)
        + restock.get(item.key, ZERO)
        - deductions[item.key]
        for item in items
    }


def _check_ascending(dates: Sequence[date]) -> None:
    for earlier, later in zip(dates, dates[1:]):
        if later <= earlier:
            raise ValueError(f"Chain dates must be strictly ascending: {earlier} then {later}")


def replay_timeline(
    baseline: Mapping[str, Decimal],
    dates: Sequence[date],
    restock: Mapping[date, Mapping[str, Decimal]],
    consumption: Mapping[date, Mapping[str, Decimal]],
    items: Sequence[SupplyItem],
) -> dict[date, Quantities]:
    """Replay the chain and keep every intermediate end-of-day balance.

    Args:
        baseline: Trusted balance at the day before ``dates[0]``
        dates: Strictly ascending, gap-free dates to replay
        restock: ``{date: {item_key: qty}}``
        consumption: ``{date: {product_key: qty}}``
        items: Supply catalog; the fold covers every item in it

    Returns:
        ``{date: {item_key: balance}}`` in date order

    """
    _check_ascending(dates)
    empty: Mapping[str, Decimal] = {}
    timeline: dict[date, Quantities] = {}
    running: Mapping[str, Decimal] = baseline
    for d in dates:
        running = apply_day(running, restock.get(d, empty), consumption.get(d, empty), items)
        timeline[d] = running
    return timeline


def replay_chain(
    baseline: Mapping[str, Decimal],
    dates: Sequence[date],
    restock: Mapping[date, Mapping[str, Decimal]],
    consumption: Mapping[date, Mapping[str, Decimal]],
    items: Sequence[SupplyItem],
) -> Quantities:
    """Balance at the end of the last date; the baseline itself if no dates."""
    if not dates:
        return dict(baseline)
    timeline = replay_timeline(baseline, dates, restock, consumption, items)
    return timeline[dates[-1]]


def replay_to(
    target: date,
    base_date: date,
    baseline: Mapping[str, Decimal],
    restock: Mapping[date, Mapping[str, Decimal]],
    consumption: Mapping[date, Mapping[str, Decimal]],
    items: Sequence[SupplyItem],
) -> Quantities:
    """Balance at the end of ``target``.

    No chain is attempted before the anchor: a target earlier than base_date
    yields an empty map, and target == base_date yields the baseline.
    """
    if target < base_date:
        return {}
    return replay_chain(baseline, chain_dates(base_date, target), restock, consumption, items)


def to_running_balances(timeline: Mapping[date, Mapping[str, Decimal]]) -> list[RunningBalance]:
    """Flatten a timeline into RunningBalance rows (date, then catalog order)."""
    return [
        RunningBalance(d=d, item_key=key, quantity=qty)
        for d, balances in timeline.items()
        for key, qty in balances.items()
    ]
