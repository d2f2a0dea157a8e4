# src/scm_core/planning/reorder.py

import math
from typing import Dict, Optional

import pandas as pd

from scm_core.data_contracts.models import (
    OrderQuantityMethod,
    OrderQuantityResult,
    ReorderPointResult,
)
from scm_core.data_contracts.validate import validate_df
from scm_core.planning.safety_stock import calculate_safety_stock
from scm_core.policy import PlanningPolicy, default_policy
from scm_core.safe_math import ensure_positive, safe_number


def calculate_reorder_point(
    average_daily_demand: float,
    lead_time_days: float,
    safety_stock: float,
) -> ReorderPointResult:
    """
    ROP = ceil(ceil(avg daily demand x lead time) + safety stock)

    Zero demand or zero lead time leaves ROP = safety stock.
    """
    demand = ensure_positive(average_daily_demand, 0.0)
    lead_time = ensure_positive(lead_time_days, 0.0)
    safety = max(0.0, safe_number(safety_stock, 0.0))

    lead_time_demand = math.ceil(demand * lead_time)
    reorder_point = math.ceil(lead_time_demand + safety)

    return ReorderPointResult(
        reorder_point=reorder_point,
        lead_time_demand=lead_time_demand,
        safety_stock=safety,
    )


def should_reorder(current_stock: float, reorder_point: float) -> bool:
    # Inclusive: stock sitting exactly on the ROP triggers an order
    return current_stock <= reorder_point


def days_until_reorder(
    current_stock: float,
    reorder_point: float,
    average_daily_demand: float,
) -> Optional[int]:
    """
    Whole days until stock falls to the reorder point.
    None when demand is zero or negative (no horizon).
    """
    if current_stock <= reorder_point:
        return 0

    demand = safe_number(average_daily_demand, 0.0)
    if demand <= 0:
        return None

    return math.floor((current_stock - reorder_point) / demand)


def calculate_order_quantity(
    current_stock: int,
    reorder_point: int,
    safety_stock: float,
    average_daily_demand: float,
    eoq: Optional[float] = None,
    target_days_of_inventory: Optional[float] = None,
    min_order_quantity: Optional[int] = None,
    order_multiple: Optional[int] = None,
    policy: Optional[PlanningPolicy] = None,
) -> OrderQuantityResult:
    """
    Recommended purchase quantity.

    - eoq given (> 0): order exactly the EOQ
    - otherwise: top up to avg demand x target days + safety stock
      (target days default to policy.target_days_of_inventory)

    Then, in order: raise a non-zero need to the MOQ, round up to the
    order multiple.
    """
    policy = policy or default_policy()

    eoq_value = ensure_positive(eoq, 0.0)

    if eoq_value > 0:
        quantity = math.ceil(eoq_value)
        method = OrderQuantityMethod.eoq
    else:
        target_days = ensure_positive(
            target_days_of_inventory, float(policy.target_days_of_inventory)
        )
        demand = ensure_positive(average_daily_demand, 0.0)
        safety = max(0.0, safe_number(safety_stock, 0.0))

        target_stock = demand * target_days + safety
        quantity = max(0, math.ceil(target_stock - current_stock))
        method = OrderQuantityMethod.target_days

    moq = ensure_positive(min_order_quantity, 0.0)
    if quantity > 0 and moq > 0:
        quantity = max(quantity, math.ceil(moq))

    multiple = ensure_positive(order_multiple, 0.0)
    if quantity > 0 and multiple > 0:
        quantity = math.ceil(quantity / multiple) * int(multiple)

    return OrderQuantityResult(
        recommended_quantity=quantity,
        method=method,
        projected_stock=current_stock + quantity,
    )


class ReorderPlanner:
    """
    Computes safety stock and reorder point per product
    from daily demand history.
    """

    def __init__(self, policy: Optional[PlanningPolicy] = None):
        self.policy = policy or default_policy()

    def plan(
        self,
        demand_df: pd.DataFrame,
        lead_times: Optional[Dict[str, float]] = None,
        start_date=None,
        end_date=None,
    ) -> pd.DataFrame:
        """
        demand_df columns: product_id, date, quantity (one row per sale
        or per day). Days without rows count as zero demand inside
        [start_date, end_date] (defaults to the history span).
        """
        validate_df(demand_df, "demand_history")
        lead_times = lead_times or {}

        df = demand_df.copy()
        df["date"] = pd.to_datetime(df["date"], format="ISO8601").dt.normalize()
        df["quantity"] = pd.to_numeric(df["quantity"], errors="coerce").fillna(0.0)

        start = pd.to_datetime(start_date) if start_date is not None else df["date"].min()
        end = pd.to_datetime(end_date) if end_date is not None else df["date"].max()
        calendar = pd.date_range(start.normalize(), end.normalize(), freq="D")

        results = []

        for product_id, g in df.groupby("product_id"):
            daily = (
                g.groupby("date")["quantity"].sum()
                .reindex(calendar, fill_value=0.0)
            )

            avg_demand = float(daily.mean()) if len(daily) else 0.0
            std_demand = float(daily.std()) if len(daily) > 1 else 0.0
            lead_time = lead_times.get(product_id, self.policy.default_lead_time_days)

            safety = calculate_safety_stock(
                average_daily_demand=avg_demand,
                demand_std_dev=std_demand,
                lead_time_days=lead_time,
                service_level=self.policy.service_level,
            )
            rop = calculate_reorder_point(avg_demand, lead_time, safety.safety_stock)

            results.append({
                "product_id": product_id,
                "avg_daily_demand": round(avg_demand, 2),
                "demand_std": round(std_demand, 2),
                "lead_time_days": lead_time,
                "safety_stock": safety.safety_stock,
                "lead_time_demand": rop.lead_time_demand,
                "reorder_point": rop.reorder_point,
            })

        return pd.DataFrame(results)
