"""Tests for the supply catalog."""

from __future__ import annotations

import pytest

from app.domain.supply.catalog import (
    FROZEN_PRODUCTS,
    SUPPLY_ITEMS,
    get_supply_items,
    parse_supply_items,
)


def test_builtin_deduction_keys_are_known_products():
    products = {p.key for p in FROZEN_PRODUCTS}
    for item in SUPPLY_ITEMS:
        assert item.deduction_keys
        assert set(item.deduction_keys) <= products


def test_bottle_cap_is_shared_by_both_tea_sizes():
    cap = next(item for item in SUPPLY_ITEMS if item.key == "bottle_cap")
    assert set(cap.deduction_keys) == {"almond_tea_300", "almond_tea_1000"}


def test_parse_supply_items():
    items = parse_supply_items(
        '[{"key": "straw", "name": "Straw", "unit": "pcs", "deduction_keys": ["almond_tea_300"]},'
        ' {"key": "lid"}]'
    )
    assert [item.key for item in items] == ["straw", "lid"]
    assert items[0].deduction_keys == ("almond_tea_300",)
    assert items[1].name == "lid"
    assert items[1].deduction_keys == ()


@pytest.mark.parametrize(
    "raw, message",
    [
        ("not json", "not valid JSON"),
        ('{"key": "x"}', "must be a JSON list"),
        ('[{"name": "no key"}]', "Invalid supply catalog entry"),
        ('[{"key": "x"}, {"key": "x"}]', "Duplicate"),
        ('[{"key": "x", "deduction_keys": ["almond_tea_3000"]}]', "unknown products"),
    ],
)
def test_parse_supply_items_rejects_bad_input(raw, message):
    with pytest.raises(ValueError, match=message):
        parse_supply_items(raw)


def test_get_supply_items_default():
    assert get_supply_items() == SUPPLY_ITEMS


def test_get_supply_items_override_from_env(monkeypatch):
    monkeypatch.setenv("SUPPLY_ITEMS_JSON", '[{"key": "straw", "deduction_keys": ["taro_ball"]}]')
    items = get_supply_items()
    assert [item.key for item in items] == ["straw"]
    assert items[0].deduction_keys == ("taro_ball",)
