"""Supply item and frozen product catalogs.

Each supply item lists the frozen product keys whose daily sales consume it.
The mapping is many-to-many: one bottle cap goes on every almond tea size,
and one product may deplete several supply items.
"""

from __future__ import annotations

import json
from dataclasses import dataclass

from app.core.config import get_settings


@dataclass(frozen=True)
class SupplyItem:
    """Tracked consumable whose on-hand quantity is reconstructed by the ledger."""

    key: str
    name: str
    unit: str
    deduction_keys: tuple[str, ...]


@dataclass(frozen=True)
class FrozenProduct:
    """Product sold over the counter; its sales are the consumption events."""

    key: str
    name: str
    pack_size: str
    price: int


SUPPLY_ITEMS: tuple[SupplyItem, ...] = (
    SupplyItem("almond_bottle_300", "杏仁茶瓶 300ml", "瓶", ("almond_tea_300",)),
    SupplyItem("almond_bottle_1000", "杏仁茶瓶 1000ml", "瓶", ("almond_tea_1000",)),
    SupplyItem("bottle_cap", "瓶蓋", "個", ("almond_tea_300", "almond_tea_1000")),
    SupplyItem("taro_ball_sticker", "冷凍芋圓貼紙", "張", ("taro_ball",)),
    SupplyItem("white_ball_sticker", "冷凍白玉貼紙", "張", ("white_ball",)),
)

FROZEN_PRODUCTS: tuple[FrozenProduct, ...] = (
    FrozenProduct("taro_ball", "芋圓", "包 300g", 135),
    FrozenProduct("white_ball", "白玉", "包 300g", 135),
    FrozenProduct("peanut_ice", "花生冰淇淋", "杯", 235),
    FrozenProduct("sesame_ice", "芝麻冰淇淋", "杯", 235),
    FrozenProduct("strawberry_ice", "草莓冰淇淋", "杯", 280),
    FrozenProduct("almond_tea_300", "杏仁茶", "袋 300g", 65),
    FrozenProduct("almond_tea_1000", "杏仁茶", "袋 1000g", 180),
)


def parse_supply_items(raw: str) -> tuple[SupplyItem, ...]:
    """Parse a JSON catalog override.

    Expected shape: ``[{"key": ..., "name": ..., "unit": ..., "deduction_keys": [...]}]``.
    ``name`` and ``unit`` are optional. Every deduction key must name a product
    in FROZEN_PRODUCTS.

    Raises:
        ValueError: On malformed JSON, missing keys, duplicate item keys or
            unknown deduction keys.

    """
    try:
        data = json.loads(raw)
    except json.JSONDecodeError as e:
        raise ValueError(f"Supply catalog is not valid JSON: {e}") from e

    if not isinstance(data, list):
        raise ValueError("Supply catalog must be a JSON list")

    products = {p.key for p in FROZEN_PRODUCTS}
    items: list[SupplyItem] = []
    seen: set[str] = set()
    for entry in data:
        try:
            key = str(entry["key"])
            deduction_keys = tuple(str(k) for k in entry.get("deduction_keys", []))
        except (KeyError, TypeError, AttributeError) as e:
            raise ValueError(f"Invalid supply catalog entry: {entry!r}") from e
        if key in seen:
            raise ValueError(f"Duplicate supply item key: {key!r}")
        unknown = sorted(set(deduction_keys) - products)
        if unknown:
            raise ValueError(f"Supply item {key!r} deducts unknown products: {unknown}")
        seen.add(key)
        items.append(
            SupplyItem(
                key=key,
                name=str(entry.get("name", key)),
                unit=str(entry.get("unit", "")),
                deduction_keys=deduction_keys,
            )
        )
    return tuple(items)


def get_supply_items() -> tuple[SupplyItem, ...]:
    """Active supply catalog: settings override if present, else built-in."""
    raw = get_settings().supply_items_json
    if raw.strip():
        return parse_supply_items(raw)
    return SUPPLY_ITEMS
