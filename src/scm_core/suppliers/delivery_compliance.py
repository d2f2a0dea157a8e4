from typing import Iterable, List, Optional

import pandas as pd

from scm_core.data_contracts.models import (
    ComplianceOverview,
    DeliveryComplianceItem,
    DeliveryComplianceResult,
    PurchaseOrderRecord,
    SupplierComplianceSummary,
)
from scm_core.policy import PlanningPolicy, default_policy

UNKNOWN_SUPPLIER = "unknown"

# Sort key for orders without a delay (not yet received): last
MISSING_DELAY_SORT_VALUE = -999


def _mean(series: pd.Series) -> float:
    series = series.dropna()
    return float(series.mean()) if len(series) else 0.0


def _rate(part: int, whole: int) -> float:
    return part / whole * 100 if whole > 0 else 0.0


def _build_item(order: PurchaseOrderRecord, grace_days: int) -> DeliveryComplianceItem:
    actual_lead_time = None
    delay_days = None
    is_on_time = None

    if order.actual_date is not None:
        actual_lead_time = (order.actual_date - order.order_date).days

        # Against the expected date when known, else against the standard lead time
        if order.expected_date is not None:
            delay_days = (order.actual_date - order.expected_date).days
        else:
            delay_days = actual_lead_time - order.standard_lead_time

        is_on_time = delay_days <= grace_days

    return DeliveryComplianceItem(
        order_id=order.id,
        order_number=order.order_number,
        supplier_id=order.supplier_id,
        supplier_name=order.supplier_name,
        product_names=order.product_names,
        order_date=order.order_date,
        expected_date=order.expected_date,
        actual_date=order.actual_date,
        requested_date=order.requested_date,
        standard_lead_time=order.standard_lead_time,
        actual_lead_time=actual_lead_time,
        delay_days=delay_days,
        is_on_time=is_on_time,
        status=order.status,
    )


def _supplier_summary(supplier_key: str, group: pd.DataFrame) -> SupplierComplianceSummary:
    completed = group[group["actual_date"].notna()]
    on_time = int((completed["is_on_time"] == True).sum())  # noqa: E712
    late = int((completed["is_on_time"] == False).sum())  # noqa: E712
    delays = completed["delay_days"].dropna()

    return SupplierComplianceSummary(
        supplier_id=supplier_key,
        supplier_name=group["supplier_name"].iloc[0],
        total_orders=len(group),
        completed_orders=len(completed),
        on_time_orders=on_time,
        late_orders=late,
        on_time_rate=_rate(on_time, len(completed)),
        avg_actual_lead_time=_mean(completed["actual_lead_time"]),
        avg_standard_lead_time=_mean(group["standard_lead_time"]),
        avg_delay_days=_mean(delays),
        max_delay_days=float(delays.max()) if len(delays) else 0.0,
    )


def analyze_delivery_compliance(
    orders: Iterable[PurchaseOrderRecord],
    policy: Optional[PlanningPolicy] = None,
) -> DeliveryComplianceResult:
    """
    Delivery compliance per order, per supplier and overall.

    Orders without an order date are skipped. An order is on time when
    it arrives no more than policy.on_time_grace_days after the expected
    date (or after order date + standard lead time).
    """
    policy = policy or default_policy()

    items: List[DeliveryComplianceItem] = [
        _build_item(order, policy.on_time_grace_days)
        for order in orders
        if order.order_date is not None
    ]

    df = pd.DataFrame(
        [item.model_dump() for item in items],
        columns=list(DeliveryComplianceItem.model_fields),
    )
    # missing and blank supplier ids share one bucket
    df["supplier_key"] = [
        sid if isinstance(sid, str) and sid else UNKNOWN_SUPPLIER
        for sid in df["supplier_id"]
    ]

    # -----------------------------
    # Per supplier
    # -----------------------------
    summaries = [
        _supplier_summary(key, group)
        for key, group in df.groupby("supplier_key", sort=False)
    ]
    summaries.sort(key=lambda s: s.on_time_rate)

    # -----------------------------
    # Overall
    # -----------------------------
    completed = df[df["actual_date"].notna()]
    overall = ComplianceOverview(
        total_orders=len(df),
        completed_orders=len(completed),
        on_time_rate=_rate(int((completed["is_on_time"] == True).sum()), len(completed)),  # noqa: E712
        avg_lead_time=_mean(completed["actual_lead_time"]),
        avg_delay_days=_mean(completed["delay_days"]),
    )

    # Worst delay first
    items.sort(
        key=lambda i: i.delay_days if i.delay_days is not None else MISSING_DELAY_SORT_VALUE,
        reverse=True,
    )

    return DeliveryComplianceResult(
        items=items,
        supplier_summaries=summaries,
        overall=overall,
    )
