import pandas as pd
from dataclasses import dataclass
from typing import Optional

from scm_core.data_contracts.validate import validate_df
from scm_core.policy import PlanningPolicy, default_policy
from scm_core.safe_math import round_half_up, safe_divide, safe_number

DAYS_PER_YEAR = 365


@dataclass
class CostKPIResult:
    holding_cost: int               # annual, = inventory value x holding rate
    gmroi: Optional[float]          # None when not meaningful
    stockout_opportunity_cost: int  # stockout days x average daily revenue


def calculate_cost_kpis(
    total_inventory_value: float,
    total_revenue: float,
    total_cogs: float,
    stockout_days: int,
    policy: Optional[PlanningPolicy] = None,
) -> CostKPIResult:
    """
    Cost KPIs from yearly aggregates.

    GMROI = (revenue - COGS) / inventory value, 2 decimals. It is None,
    not 0, when inventory value is 0 or gross profit is not positive.
    """
    policy = policy or default_policy()

    inventory_value = safe_number(total_inventory_value)
    revenue = safe_number(total_revenue)
    cogs = safe_number(total_cogs)
    days = max(0.0, safe_number(stockout_days))

    holding_cost = round_half_up(inventory_value * policy.holding_cost_rate)

    gross_profit = revenue - cogs
    gmroi = None
    if inventory_value > 0 and gross_profit > 0:
        gmroi = round_half_up(gross_profit / inventory_value, 2)

    daily_revenue = safe_divide(revenue, DAYS_PER_YEAR)
    stockout_opportunity_cost = round_half_up(days * daily_revenue)

    return CostKPIResult(
        holding_cost=holding_cost,
        gmroi=gmroi,
        stockout_opportunity_cost=stockout_opportunity_cost,
    )


def count_stockout_days(history_df: pd.DataFrame, today=None, lookback_days: int = DAYS_PER_YEAR) -> int:
    """
    Distinct dates inside the lookback window on which a stock movement
    left the product at zero (stock_after == 0).
    """
    if history_df.empty:
        return 0

    validate_df(history_df, "inventory_history")

    df = history_df.copy()
    df["date"] = pd.to_datetime(df["date"], format="ISO8601", errors="coerce").dt.normalize()
    df["stock_after"] = pd.to_numeric(df["stock_after"], errors="coerce")

    if today is None:
        today = pd.Timestamp.today().normalize()
    else:
        today = pd.to_datetime(today).normalize()

    since = today - pd.Timedelta(days=lookback_days)
    mask = (df["date"] >= since) & (df["stock_after"] == 0)
    return int(df.loc[mask, "date"].nunique())
