"""Exceptions raised by the supply ledger."""

from __future__ import annotations

from datetime import date


class SupplyLedgerError(Exception):
    """Base class for supply ledger errors."""


class LedgerFetchError(SupplyLedgerError):
    """A read for part of the chain failed; the reconstructed balance is partial."""

    def __init__(self, source: str, store_id: str, cause: Exception | None = None):
        self.source = source
        self.store_id = store_id
        self.cause = cause
        super().__init__(f"Failed to read {source} for store {store_id!r}: {cause}")


class IncompleteLedgerError(SupplyLedgerError):
    """Save attempted from a view whose chain could not be fully loaded."""

    def __init__(self, failed_sources: tuple[str, ...]):
        self.failed_sources = failed_sources
        super().__init__(
            "Refusing to save from incomplete ledger data (failed: "
            f"{', '.join(failed_sources)}); reload and retry"
        )


class MergedViewWriteError(SupplyLedgerError):
    """Save attempted on a merged multi-zone view, which is read only."""

    def __init__(self, store_id: str):
        self.store_id = store_id
        super().__init__(f"Merged view of store {store_id!r} is read only; select a zone to save")


class UnknownSupplyItemError(SupplyLedgerError, KeyError):
    """Draft value given for a key that is not in the supply catalog."""

    def __init__(self, key: str):
        self.key = key
        super().__init__(f"Unknown supply item: {key!r}")

    def __str__(self) -> str:
        return self.args[0]


class BaselineWriteError(SupplyLedgerError):
    """Save attempted on or before the baseline date, which would move the anchor."""

    def __init__(self, selected_date: date, base_date: date):
        self.selected_date = selected_date
        self.base_date = base_date
        super().__init__(
            f"Cannot save supply entry for {selected_date}: on or before baseline "
            f"{base_date}; record a new baseline count instead"
        )
