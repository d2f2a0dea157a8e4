"""
PSI (Purchase - Sales - Inventory) aggregation.

Builds a monthly stock table per product over a fixed window around the
current month:
- past months are reconstructed backwards from today's stock by undoing
  each later month's net movement (outbound added back, inbound removed)
- future months are projected forwards from today's stock with the demand
  forecast (manual forecast preferred) and expected inbound

Stock never goes below zero. When the floor is hit the month is flagged
(clamped=True) and a warning is attached to the result instead of the
reconstruction error being silently absorbed.
"""

import logging
from datetime import date
from typing import Dict, List, Mapping, Optional

import pandas as pd

from scm_core.data_contracts.models import (
    PSIMonthData,
    PSIProduct,
    PSIProductRow,
    PSIResult,
)
from scm_core.policy import PlanningPolicy, default_policy
from scm_core.safe_math import round_half_up, safe_number

logger = logging.getLogger(__name__)

# product_id -> period (YYYY-MM) -> quantity
MonthlyQuantities = Mapping[str, Mapping[str, float]]


def format_period(d) -> str:
    return f"{d.year:04d}-{d.month:02d}"


def generate_periods(
    past_months: Optional[int] = None,
    future_months: Optional[int] = None,
    today=None,
    policy: Optional[PlanningPolicy] = None,
) -> List[str]:
    """
    Ordered YYYY-MM strings from today - past_months to today + future_months.
    Window sizes default to policy.psi_past_months / psi_future_months.
    """
    policy = policy or default_policy()
    if past_months is None:
        past_months = policy.psi_past_months
    if future_months is None:
        future_months = policy.psi_future_months

    anchor = pd.Timestamp(today or date.today()).to_period("M")
    return [
        format_period(anchor + offset)
        for offset in range(-past_months, future_months + 1)
    ]


def _lookup(by_month: Optional[MonthlyQuantities], product_id: str, period: str) -> Optional[float]:
    if not by_month:
        return None
    months = by_month.get(product_id)
    if not months:
        return None
    value = months.get(period)
    if value is None:
        return None
    return safe_number(value, 0.0)


def _quantity(by_month: Optional[MonthlyQuantities], product_id: str, period: str) -> float:
    value = _lookup(by_month, product_id, period)
    return 0.0 if value is None else value


def resolve_current_index(periods: List[str], current_period: Optional[str] = None):
    """
    Index of current_period (default: this month) inside periods.
    Returns (index, fallback_used); falls back to the window midpoint.
    """
    if current_period is None:
        current_period = format_period(date.today())

    if current_period in periods:
        return periods.index(current_period), False
    return len(periods) // 2, True


def aggregate_psi(
    products: List[PSIProduct],
    sales_by_month: MonthlyQuantities,
    inbound_by_month: MonthlyQuantities,
    forecast_by_month: MonthlyQuantities,
    manual_forecast_by_month: MonthlyQuantities,
    periods: List[str],
    current_period: Optional[str] = None,
    sop_by_month: Optional[MonthlyQuantities] = None,
    inbound_plan_by_month: Optional[MonthlyQuantities] = None,
    outbound_plan_by_month: Optional[MonthlyQuantities] = None,
) -> PSIResult:
    if not periods:
        raise ValueError("periods must not be empty")

    warnings = []
    current_idx, fallback = resolve_current_index(periods, current_period)

    if fallback:
        message = (
            f"Current period {current_period or format_period(date.today())} is outside "
            f"the window {periods[0]}..{periods[-1]}; anchored at {periods[current_idx]}"
        )
        logger.warning(message)
        warnings.append(message)

    rows = []

    for product in products:
        pid = product.id
        n = len(periods)
        stocks = [0.0] * n
        clamped = [False] * n
        stocks[current_idx] = float(product.current_stock)

        # ---------------------------
        # Past: undo later month's net movement
        # ---------------------------
        for i in range(current_idx - 1, -1, -1):
            later = periods[i + 1]
            raw = (
                stocks[i + 1]
                + _quantity(sales_by_month, pid, later)
                - _quantity(inbound_by_month, pid, later)
            )
            stocks[i] = max(0.0, raw)
            clamped[i] = raw < 0

        # ---------------------------
        # Future: forecast-driven projection
        # ---------------------------
        for i in range(current_idx + 1, n):
            period = periods[i]
            manual = _lookup(manual_forecast_by_month, pid, period)
            demand = manual if manual is not None else _quantity(forecast_by_month, pid, period)
            raw = stocks[i - 1] - demand + _quantity(inbound_by_month, pid, period)
            stocks[i] = max(0.0, raw)
            clamped[i] = raw < 0

        # ---------------------------
        # Planned ending stock (supply plan)
        # ---------------------------
        planned = list(stocks)
        for i in range(current_idx + 1, n):
            period = periods[i]
            raw = (
                planned[i - 1]
                + _quantity(inbound_plan_by_month, pid, period)
                - _quantity(outbound_plan_by_month, pid, period)
            )
            planned[i] = max(0.0, raw)

        clamped_periods = [periods[i] for i in range(n) if clamped[i]]
        if clamped_periods:
            message = (
                f"Stock for product {product.sku} clamped at 0 in "
                f"{', '.join(clamped_periods)}"
            )
            logger.warning(message)
            warnings.append(message)

        months = []
        for i, period in enumerate(periods):
            beginning = stocks[0] if i == 0 else stocks[i - 1]
            months.append(PSIMonthData(
                period=period,
                beginning_stock=round_half_up(beginning),
                inbound=_quantity(inbound_by_month, pid, period),
                outbound=_quantity(sales_by_month, pid, period),
                ending_stock=round_half_up(stocks[i]),
                forecast=_lookup(forecast_by_month, pid, period),
                manual_forecast=_lookup(manual_forecast_by_month, pid, period),
                sop_quantity=_quantity(sop_by_month, pid, period),
                inbound_plan=_quantity(inbound_plan_by_month, pid, period),
                outbound_plan=_quantity(outbound_plan_by_month, pid, period),
                planned_ending_stock=round_half_up(planned[i]),
                clamped=clamped[i],
            ))

        rows.append(PSIProductRow(
            product_id=pid,
            sku=product.sku,
            product_name=product.name,
            category=product.category,
            abc_grade=product.abc_grade,
            xyz_grade=product.xyz_grade,
            current_stock=product.current_stock,
            safety_stock=product.safety_stock,
            order_method=product.order_method,
            months=months,
        ))

    return PSIResult(
        products=rows,
        periods=list(periods),
        total_products=len(rows),
        current_period_index=current_idx,
        anchor_fallback=fallback,
        warnings=warnings,
    )


def psi_to_frame(result: PSIResult) -> pd.DataFrame:
    """One row per product-month."""
    records = []
    for row in result.products:
        for month in row.months:
            record = month.model_dump()
            record.update({
                "product_id": row.product_id,
                "sku": row.sku,
                "product_name": row.product_name,
            })
            records.append(record)

    columns = ["product_id", "sku", "product_name"] + list(PSIMonthData.model_fields)
    return pd.DataFrame(records, columns=columns)
