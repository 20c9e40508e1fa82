"""Zone aggregation for the supply ledger.

A merged store view reports, per item, the sum of every zone's balance. The
recurrence is linear in restock and deduction, so two strategies agree:

- chain-then-sum: replay each zone on its own series, add the results
- sum-then-chain: add the zones' baselines and event series, replay once

``replay_merged`` (sum-then-chain) is the production path because it matches
a single store-wide query. ``replay_per_zone`` is kept as the reference the
property tests compare it against.

NO DATA ACCESS - pure functions only.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping, Sequence
from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal

from app.domain.supply.catalog import SupplyItem
from app.domain.supply.ledger import (
    ZERO,
    ConsumptionEvent,
    Quantities,
    RestockEvent,
    consumption_by_date,
    replay_chain,
    restock_by_date,
)

WHOLE_STORE = ""


@dataclass(frozen=True)
class ZoneSeries:
    """Everything the chain needs for one zone."""

    zone_code: str
    baseline: Mapping[str, Decimal] = field(default_factory=dict)
    restock: tuple[RestockEvent, ...] = ()
    consumption: tuple[ConsumptionEvent, ...] = ()


def merge_balances(
    balances: Iterable[Mapping[str, Decimal]], items: Sequence[SupplyItem]
) -> Quantities:
    """Sum per-zone balances item by item; absent items count as zero."""
    merged: Quantities = {item.key: ZERO for item in items}
    for balance in balances:
        for item in items:
            merged[item.key] += balance.get(item.key, ZERO)
    return merged


def sum_series(series: Iterable[ZoneSeries], items: Sequence[SupplyItem]) -> ZoneSeries:
    """Collapse several zones into one store-wide input series."""
    series = list(series)
    return ZoneSeries(
        zone_code=WHOLE_STORE,
        baseline=merge_balances((s.baseline for s in series), items),
        restock=tuple(e for s in series for e in s.restock),
        consumption=tuple(e for s in series for e in s.consumption),
    )


def replay_series(series: ZoneSeries, dates: Sequence[date], items: Sequence[SupplyItem]) -> Quantities:
    """Replay one zone's inputs over dates."""
    return replay_chain(
        series.baseline,
        dates,
        restock_by_date(series.restock),
        consumption_by_date(series.consumption),
        items,
    )


def replay_per_zone(
    series: Iterable[ZoneSeries], dates: Sequence[date], items: Sequence[SupplyItem]
) -> Quantities:
    """Chain-then-sum."""
    return merge_balances((replay_series(s, dates, items) for s in series), items)


def replay_merged(
    series: Iterable[ZoneSeries], dates: Sequence[date], items: Sequence[SupplyItem]
) -> Quantities:
    """Sum-then-chain."""
    return replay_series(sum_series(series, items), dates, items)


def is_merged_view(zone_codes: Sequence[str], selected_zone: str | None) -> bool:
    """A merged view is a store with several zones and none selected."""
    return len(zone_codes) > 1 and not selected_zone


def resolve_zone(zone_codes: Sequence[str], selected_zone: str | None) -> str | None:
    """Concrete zone code for a view, or None for a merged view.

    A store without zones is the whole store (""); a store with one zone
    always resolves to it.

    Raises:
        ValueError: If selected_zone is not one of the store's zones.

    """
    if selected_zone:
        if selected_zone not in zone_codes:
            raise ValueError(f"Unknown zone {selected_zone!r}; expected one of {list(zone_codes)}")
        return selected_zone
    if is_merged_view(zone_codes, selected_zone):
        return None
    return zone_codes[0] if zone_codes else WHOLE_STORE
