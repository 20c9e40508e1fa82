"""Live draft calculator for today's supply entry.

remaining(today) = yesterday + restock_draft(today) - deduction(today)

The draft is recomputed from the already-reconstructed "yesterday" map and
today's two live inputs; it never replays the historical chain.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation

from app.domain.supply.catalog import SupplyItem
from app.domain.supply.errors import UnknownSupplyItemError
from app.domain.supply.ledger import ZERO, Quantities, deduction_totals

# Scale and range of the Numeric(12, 3) quantity columns
QTY_STEP = Decimal("0.001")
QTY_MAX = Decimal("999999999.999")


def _to_decimal(value: object) -> Decimal | None:
    if value is None:
        return None
    if isinstance(value, bool):
        return None
    if isinstance(value, Decimal):
        qty = value
    elif isinstance(value, (int, float, str)):
        text = str(value).strip()
        if text == "":
            return ZERO
        try:
            qty = Decimal(text)
        except InvalidOperation:
            return None
    else:
        return None
    if not qty.is_finite() or qty < 0 or qty > QTY_MAX:
        return None
    if qty.quantize(QTY_STEP) != qty:
        return None
    return qty


def is_valid_quantity(value: object) -> bool:
    """True for empty input or a non-negative decimal that fits a quantity column.

    At most 9 integer digits and 3 decimal places.
    """
    return value is None or _to_decimal(value) is not None


def parse_quantity(value: object) -> Decimal:
    """Parse a draft quantity; empty or invalid input counts as zero.

    Examples:
        >>> parse_quantity("12.5")
        Decimal('12.5')
        >>> parse_quantity("")
        Decimal('0')
        >>> parse_quantity("abc")
        Decimal('0')

    """
    qty = _to_decimal(value)
    return ZERO if qty is None else qty


def round_quantity(value: Decimal, decimals: int) -> Decimal:
    """Round half-up to a fixed number of decimal places for persistence."""
    return value.quantize(Decimal(1).scaleb(-decimals), rounding=ROUND_HALF_UP)


def live_remaining(
    yesterday: Mapping[str, Decimal],
    restock_draft: Mapping[str, object],
    deductions: Mapping[str, Decimal],
    items: Sequence[SupplyItem],
) -> Quantities:
    """Today's live remaining quantity per item, total over the catalog."""
    return {
        item.key: yesterday.get(item.key, ZERO)
        + parse_quantity(restock_draft.get(item.key))
        - deductions.get(item.key, ZERO)
        for item in items
    }


class SupplyDraft:
    """Editable state of today's supply entry.

    Holds yesterday's reconstructed balance and today's deduction totals as
    loaded, plus the user's raw restock strings.
    """

    def __init__(
        self,
        items: Sequence[SupplyItem],
        yesterday_remaining: Mapping[str, Decimal],
        deductions: Mapping[str, Decimal],
        restock_draft: Mapping[str, str] | None = None,
    ):
        self.items = tuple(items)
        self._keys = {item.key for item in self.items}
        self.yesterday_remaining = dict(yesterday_remaining)
        self.deductions = dict(deductions)
        self.restock_draft: dict[str, str] = {}
        for key, value in (restock_draft or {}).items():
            self.update_restock(key, value)

    def update_restock(self, key: str, value: str) -> bool:
        """Set the draft restock for one item.

        Invalid input is rejected and the previous value kept.

        Returns:
            True if the value was accepted

        Raises:
            UnknownSupplyItemError: If key is not in the catalog.

        """
        if key not in self._keys:
            raise UnknownSupplyItemError(key)
        if not is_valid_quantity(value):
            return False
        self.restock_draft[key] = "" if value is None else str(value).strip()
        return True

    def update_consumption(self, consumption: Mapping[str, Decimal]) -> None:
        """Replace today's deductions from fresh product sales totals."""
        self.deductions = deduction_totals(consumption, self.items)

    def restock_values(self) -> Quantities:
        """Parsed draft restock per item (missing or empty = 0)."""
        return {item.key: parse_quantity(self.restock_draft.get(item.key)) for item in self.items}

    @property
    def remaining_values(self) -> Quantities:
        return live_remaining(
            self.yesterday_remaining, self.restock_draft, self.deductions, self.items
        )
