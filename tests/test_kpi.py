from datetime import date

import pandas as pd
import pytest

from scm_core.data_contracts.models import PurchaseOrderRecord
from scm_core.kpi.cost import calculate_cost_kpis, count_stockout_days
from scm_core.policy import PlanningPolicy
from scm_core.suppliers.delivery_compliance import analyze_delivery_compliance


# ===== COST =====

def test_cost_kpis():
    result = calculate_cost_kpis(
        total_inventory_value=1_000_000,
        total_revenue=5_000_000,
        total_cogs=3_000_000,
        stockout_days=10,
    )

    assert result.holding_cost == 250_000
    assert result.gmroi == 2.0
    assert result.stockout_opportunity_cost == 136_986


@pytest.mark.parametrize(
    "inventory_value, revenue, cogs",
    [
        (0, 5_000, 3_000),         # no inventory
        (1_000, 3_000, 3_000),     # zero gross profit
        (1_000, 2_000, 3_000),     # loss
    ],
)
def test_gmroi_is_none_when_not_meaningful(inventory_value, revenue, cogs):
    assert calculate_cost_kpis(inventory_value, revenue, cogs, 0).gmroi is None


def test_holding_cost_rounds_half_up():
    assert calculate_cost_kpis(10, 0, 0, 0).holding_cost == 3
    assert calculate_cost_kpis(1_234, 0, 0, 0).holding_cost == 309


def test_holding_rate_comes_from_policy():
    policy = PlanningPolicy(holding_cost_rate=0.2)
    assert calculate_cost_kpis(1_000, 0, 0, 0, policy=policy).holding_cost == 200


def test_gmroi_has_two_decimals():
    assert calculate_cost_kpis(3_000, 2_000, 1_000, 0).gmroi == 0.33


def test_count_stockout_days():
    history = pd.DataFrame([
        {"date": "2024-12-01 08:00", "stock_after": 0},
        {"date": "2024-12-01 17:00", "stock_after": 0},
        {"date": "2024-11-01", "stock_after": 5},
        {"date": "2024-06-01", "stock_after": 0},
        {"date": "2023-01-01", "stock_after": 0},   # outside lookback
    ])

    assert count_stockout_days(history, today="2024-12-31") == 2
    assert count_stockout_days(history, today="2024-12-31", lookback_days=60) == 1
    assert count_stockout_days(history.iloc[0:0]) == 0


# ===== DELIVERY COMPLIANCE =====

@pytest.fixture
def orders():
    return [
        PurchaseOrderRecord(
            id="O1", order_number="PO-1", supplier_id="S1", supplier_name="Alpha",
            order_date=date(2024, 1, 1), expected_date=date(2024, 1, 8),
            actual_date=date(2024, 1, 9), status="received",
        ),
        PurchaseOrderRecord(
            id="O2", order_number="PO-2", supplier_id="S1", supplier_name="Alpha",
            order_date=date(2024, 1, 1), expected_date=date(2024, 1, 8),
            actual_date=date(2024, 1, 12), status="received",
        ),
        PurchaseOrderRecord(
            id="O3", order_number="PO-3", supplier_id="S2", supplier_name="Beta",
            order_date=date(2024, 1, 5), actual_date=date(2024, 1, 9),
            standard_lead_time=5, status="received",
        ),
        PurchaseOrderRecord(
            id="O4", order_number="PO-4", supplier_name="Walk-in",
            order_date=date(2024, 1, 10), status="ordered",
        ),
        PurchaseOrderRecord(
            id="O5", order_number="PO-5", supplier_id="S2", supplier_name="Beta",
            actual_date=date(2024, 1, 9), status="received",
        ),
    ]


def test_order_level_delay_and_on_time(orders):
    result = analyze_delivery_compliance(orders)
    items = {i.order_id: i for i in result.items}

    assert "O5" not in items   # no order date

    assert items["O1"].actual_lead_time == 8
    assert items["O1"].delay_days == 1
    assert items["O1"].is_on_time is True     # within 1-day grace

    assert items["O2"].delay_days == 4
    assert items["O2"].is_on_time is False

    # no expected date: measured against standard lead time
    assert items["O3"].actual_lead_time == 4
    assert items["O3"].delay_days == -1
    assert items["O3"].is_on_time is True

    assert items["O4"].actual_lead_time is None
    assert items["O4"].delay_days is None
    assert items["O4"].is_on_time is None


def test_items_sorted_worst_delay_first(orders):
    result = analyze_delivery_compliance(orders)

    assert [i.order_id for i in result.items] == ["O2", "O1", "O3", "O4"]


def test_supplier_summaries(orders):
    result = analyze_delivery_compliance(orders)
    summaries = {s.supplier_id: s for s in result.supplier_summaries}

    assert [s.supplier_id for s in result.supplier_summaries] == ["unknown", "S1", "S2"]

    alpha = summaries["S1"]
    assert alpha.total_orders == 2
    assert alpha.completed_orders == 2
    assert alpha.on_time_orders == 1
    assert alpha.late_orders == 1
    assert alpha.on_time_rate == 50
    assert alpha.avg_actual_lead_time == 9.5
    assert alpha.avg_delay_days == 2.5
    assert alpha.max_delay_days == 4

    assert summaries["S2"].on_time_rate == 100
    assert summaries["S2"].avg_standard_lead_time == 5

    unknown = summaries["unknown"]
    assert unknown.supplier_name == "Walk-in"
    assert unknown.completed_orders == 0
    assert unknown.on_time_rate == 0
    assert unknown.max_delay_days == 0


def test_overall(orders):
    overall = analyze_delivery_compliance(orders).overall

    assert overall.total_orders == 4
    assert overall.completed_orders == 3
    assert overall.on_time_rate == pytest.approx(200 / 3)
    assert overall.avg_lead_time == pytest.approx(23 / 3)
    assert overall.avg_delay_days == pytest.approx(4 / 3)


def test_grace_days_come_from_policy(orders):
    result = analyze_delivery_compliance(orders, policy=PlanningPolicy(on_time_grace_days=0))
    items = {i.order_id: i for i in result.items}

    assert items["O1"].is_on_time is False
    assert items["O3"].is_on_time is True


def test_no_orders():
    result = analyze_delivery_compliance([])

    assert result.items == []
    assert result.supplier_summaries == []
    assert result.overall.total_orders == 0
    assert result.overall.on_time_rate == 0


def test_stockout_days_accept_mixed_iso_dates():
    history = pd.DataFrame([
        {"date": "2024-12-01 08:00", "stock_after": 0},
        {"date": "2024-06-01", "stock_after": 0},
        {"date": "2024-09-15T23:59:59", "stock_after": 0},
    ])

    assert count_stockout_days(history, today="2024-12-31") == 3


@pytest.mark.parametrize("supplier_id", [None, ""])
def test_missing_or_blank_supplier_is_unknown(supplier_id):
    orders = [
        PurchaseOrderRecord(
            id="O1", order_number="PO-1", supplier_id=supplier_id,
            order_date=date(2024, 1, 1), expected_date=date(2024, 1, 8),
            actual_date=date(2024, 1, 8),
        ),
        PurchaseOrderRecord(
            id="O2", order_number="PO-2", supplier_id=None,
            order_date=date(2024, 1, 1), expected_date=date(2024, 1, 8),
            actual_date=date(2024, 1, 20),
        ),
    ]

    summaries = analyze_delivery_compliance(orders).supplier_summaries

    assert [s.supplier_id for s in summaries] == ["unknown"]
    assert summaries[0].total_orders == 2
    assert summaries[0].on_time_rate == 50
