import pandas as pd
import pytest

from scm_core.data_contracts.models import InventoryStatusKey, StockLevel
from scm_core.inventory.status import (
    INVENTORY_STATUSES,
    InventoryStatusScorer,
    classify_inventory_status,
    get_inventory_status,
    is_overstocked,
    needs_reorder,
)


@pytest.mark.parametrize(
    "current, expected",
    [
        (0, InventoryStatusKey.out_of_stock),
        (1, InventoryStatusKey.critical),
        (24, InventoryStatusKey.critical),
        (25, InventoryStatusKey.shortage),     # exactly safety x 0.5
        (49, InventoryStatusKey.shortage),
        (50, InventoryStatusKey.caution),      # exactly safety
        (99, InventoryStatusKey.caution),
        (100, InventoryStatusKey.optimal),     # exactly reorder point
        (149, InventoryStatusKey.optimal),
        (150, InventoryStatusKey.excess),      # exactly safety x 3
        (249, InventoryStatusKey.excess),
        (250, InventoryStatusKey.overstock),   # exactly safety x 5
        (10_000, InventoryStatusKey.overstock),
    ],
)
def test_boundaries_belong_to_higher_tier(current, expected):
    assert get_inventory_status(current, 50, 100).key == expected


@pytest.mark.parametrize("safety, reorder", [(0, 0), (50, 100), (10, 5)])
def test_zero_stock_is_out_of_stock_with_high_urgency(safety, reorder):
    result = classify_inventory_status(
        StockLevel(current_stock=0, safety_stock=safety, reorder_point=reorder)
    )

    assert result.key == InventoryStatusKey.out_of_stock
    assert result.urgency_level == 3
    assert result.needs_action is True


def test_without_safety_stock_only_reorder_point_matters():
    assert get_inventory_status(10, 0, 20).key == InventoryStatusKey.caution
    assert get_inventory_status(20, 0, 20).key == InventoryStatusKey.optimal
    assert get_inventory_status(10, 0, 0).key == InventoryStatusKey.optimal
    assert get_inventory_status(10_000, 0, 0).key == InventoryStatusKey.optimal


def test_missing_safety_stock_is_mentioned_in_recommendation():
    result = classify_inventory_status(StockLevel(current_stock=10, reorder_point=20))
    assert "safety stock not configured" in result.recommendation

    result = classify_inventory_status(StockLevel(current_stock=10))
    assert "configure a safety stock" in result.recommendation


def test_both_entry_points_agree():
    for current in range(0, 300, 7):
        for safety in (0, 1, 10, 50):
            for reorder in (0, 20, 100):
                level = StockLevel(
                    current_stock=current, safety_stock=safety, reorder_point=reorder
                )
                simple = get_inventory_status(current, safety, reorder)
                rich = classify_inventory_status(level)

                assert simple.key == rich.status.key
                assert simple.urgency_level == rich.urgency_level
                assert simple.needs_action == rich.needs_action


@pytest.mark.parametrize("safety, reorder", [(50, 100), (50, 20), (10, 200), (1, 1)])
def test_tier_is_monotonic_in_current_stock(safety, reorder):
    ranks = [get_inventory_status(c, safety, reorder).rank for c in range(1, 400)]
    assert ranks == sorted(ranks)


def test_only_optimal_needs_no_action():
    no_action = [key for key, status in INVENTORY_STATUSES.items() if not status.needs_action]
    assert no_action == [InventoryStatusKey.optimal]


@pytest.mark.parametrize(
    "current, reorder_expected, overstock_expected",
    [
        (0, True, False),
        (20, True, False),
        (60, True, False),
        (120, False, False),
        (200, False, True),
        (300, False, True),
    ],
)
def test_needs_reorder_and_is_overstocked(current, reorder_expected, overstock_expected):
    level = StockLevel(current_stock=current, safety_stock=50, reorder_point=100)

    assert needs_reorder(level) is reorder_expected
    assert is_overstocked(level) is overstock_expected


@pytest.mark.parametrize("current, safety, reorder", [(-1, 50, 100), (10, -5, 100), (10, 50, -1)])
def test_negative_inputs_are_rejected(current, safety, reorder):
    with pytest.raises(ValueError):
        get_inventory_status(current, safety, reorder)


def test_scorer_adds_status_columns():
    df = pd.DataFrame([
        {"product_id": "A", "current_stock": 0, "safety_stock": 50, "reorder_point": 100},
        {"product_id": "B", "current_stock": 120, "safety_stock": 50, "reorder_point": 100},
        {"product_id": "C", "current_stock": 300, "safety_stock": 50, "reorder_point": 100},
        {"product_id": "D", "current_stock": 5, "safety_stock": 0, "reorder_point": 10},
    ])

    scored = InventoryStatusScorer().score(df)

    assert scored["inventory_status"].tolist() == [
        "out_of_stock", "optimal", "overstock", "caution",
    ]
    assert scored["urgency_level"].tolist() == [3, 0, 2, 1]
    assert scored["needs_action"].tolist() == [True, False, True, True]
    # input frame untouched
    assert "inventory_status" not in df.columns


def test_scorer_rejects_frame_without_required_columns():
    df = pd.DataFrame([{"product_id": "A", "current_stock": 10}])

    with pytest.raises(ValueError, match="missing columns"):
        InventoryStatusScorer().score(df)


@pytest.mark.parametrize("bad_value", [None, "n/a", 12.5])
def test_scorer_rejects_malformed_stock_values(bad_value):
    df = pd.DataFrame([
        {"product_id": "A", "current_stock": 10, "safety_stock": 50, "reorder_point": 100},
        {"product_id": "B", "current_stock": bad_value, "safety_stock": 50, "reorder_point": 100},
    ])

    with pytest.raises(ValueError, match=r"current_stock.*\['B'\]"):
        InventoryStatusScorer().score(df)
