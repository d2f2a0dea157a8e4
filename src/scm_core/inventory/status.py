import pandas as pd
from typing import Dict

from scm_core.data_contracts.models import (
    InventoryStatus,
    InventoryStatusKey,
    InventoryStatusResult,
    StockLevel,
)
from scm_core.data_contracts.validate import validate_df


# Tier boundaries as multiples of safety stock. Comparisons are strict (<),
# so a value sitting exactly on a boundary belongs to the higher tier.
CRITICAL_RATIO = 0.5
OPTIMAL_CEILING_RATIO = 3.0
EXCESS_CEILING_RATIO = 5.0

REORDER_STATUSES = frozenset({
    InventoryStatusKey.out_of_stock,
    InventoryStatusKey.critical,
    InventoryStatusKey.shortage,
    InventoryStatusKey.caution,
})

OVERSTOCK_STATUSES = frozenset({
    InventoryStatusKey.excess,
    InventoryStatusKey.overstock,
})


INVENTORY_STATUSES: Dict[InventoryStatusKey, InventoryStatus] = {
    InventoryStatusKey.out_of_stock: InventoryStatus(
        key=InventoryStatusKey.out_of_stock,
        label="Out of stock",
        description="current stock = 0",
        urgency_level=3,
        needs_action=True,
    ),
    InventoryStatusKey.critical: InventoryStatus(
        key=InventoryStatusKey.critical,
        label="Critical",
        description="0 < current stock < safety stock x 0.5",
        urgency_level=3,
        needs_action=True,
    ),
    InventoryStatusKey.shortage: InventoryStatus(
        key=InventoryStatusKey.shortage,
        label="Shortage",
        description="safety stock x 0.5 <= current stock < safety stock",
        urgency_level=2,
        needs_action=True,
    ),
    InventoryStatusKey.caution: InventoryStatus(
        key=InventoryStatusKey.caution,
        label="Caution",
        description="safety stock <= current stock < reorder point",
        urgency_level=1,
        needs_action=True,
    ),
    InventoryStatusKey.optimal: InventoryStatus(
        key=InventoryStatusKey.optimal,
        label="Optimal",
        description="reorder point <= current stock < safety stock x 3.0",
        urgency_level=0,
        needs_action=False,
    ),
    InventoryStatusKey.excess: InventoryStatus(
        key=InventoryStatusKey.excess,
        label="Excess",
        description="safety stock x 3.0 <= current stock < safety stock x 5.0",
        urgency_level=1,
        needs_action=True,
    ),
    InventoryStatusKey.overstock: InventoryStatus(
        key=InventoryStatusKey.overstock,
        label="Overstock",
        description="current stock >= safety stock x 5.0",
        urgency_level=2,
        needs_action=True,
    ),
}

RECOMMENDATIONS: Dict[InventoryStatusKey, str] = {
    InventoryStatusKey.out_of_stock: "Place an emergency order immediately",
    InventoryStatusKey.critical: "Emergency order recommended; negotiate a shorter lead time",
    InventoryStatusKey.shortage: "Place a purchase order",
    InventoryStatusKey.caution: "Review replenishment",
    InventoryStatusKey.optimal: "Stock level is healthy",
    InventoryStatusKey.excess: "Plan to run stock down (promotion, transfer to another site)",
    InventoryStatusKey.overstock: "Plan stock disposal (discount, return, write-off)",
}


def _resolve_status_key(level: StockLevel) -> InventoryStatusKey:
    current = level.current_stock
    safety = level.safety_stock
    reorder = level.reorder_point

    if current == 0:
        return InventoryStatusKey.out_of_stock

    # No safety stock configured: ratio tiers are meaningless
    if safety <= 0:
        if reorder > 0 and current < reorder:
            return InventoryStatusKey.caution
        return InventoryStatusKey.optimal

    if current < safety * CRITICAL_RATIO:
        return InventoryStatusKey.critical
    if current < safety:
        return InventoryStatusKey.shortage
    if current < reorder:
        return InventoryStatusKey.caution
    if current < safety * OPTIMAL_CEILING_RATIO:
        return InventoryStatusKey.optimal
    if current < safety * EXCESS_CEILING_RATIO:
        return InventoryStatusKey.excess
    return InventoryStatusKey.overstock


def get_inventory_status(
    current_stock: int,
    safety_stock: int,
    reorder_point: int,
) -> InventoryStatus:
    """
    Tier for a raw (current, safety, reorder) triple.
    Negative inputs are rejected with a validation error.
    """
    level = StockLevel(
        current_stock=current_stock,
        safety_stock=safety_stock,
        reorder_point=reorder_point,
    )
    return INVENTORY_STATUSES[_resolve_status_key(level)]


def classify_inventory_status(level: StockLevel) -> InventoryStatusResult:
    """
    Tier plus urgency, action flag and a recommendation.

    Shares _resolve_status_key with get_inventory_status, so both entry
    points always agree on the tier.
    """
    key = _resolve_status_key(level)
    status = INVENTORY_STATUSES[key]

    recommendation = RECOMMENDATIONS[key]
    if level.safety_stock <= 0 and key == InventoryStatusKey.caution:
        recommendation = "Review replenishment (safety stock not configured)"
    elif level.safety_stock <= 0 and key == InventoryStatusKey.optimal:
        recommendation = "Stock level is healthy (configure a safety stock)"

    return InventoryStatusResult(
        status=status,
        key=key,
        needs_action=status.needs_action,
        urgency_level=status.urgency_level,
        recommendation=recommendation,
    )


def needs_reorder(level: StockLevel) -> bool:
    return classify_inventory_status(level).key in REORDER_STATUSES


def is_overstocked(level: StockLevel) -> bool:
    return classify_inventory_status(level).key in OVERSTOCK_STATUSES


class InventoryStatusScorer:
    """
    Classifies every row of a stock-level frame
    (product_id, current_stock, safety_stock, reorder_point).
    """

    def score(self, df: pd.DataFrame) -> pd.DataFrame:
        validate_df(df, "stock_levels")

        df = df.copy()
        for col in ["current_stock", "safety_stock", "reorder_point"]:
            values = pd.to_numeric(df[col], errors="coerce")
            bad = values.isna() | (values % 1 != 0)
            if bad.any():
                raise ValueError(
                    f"stock_levels has missing or non-integer {col} "
                    f"for products: {df.loc[bad, 'product_id'].tolist()}"
                )
            df[col] = values.astype(int)

        results = [
            classify_inventory_status(StockLevel(
                current_stock=int(current),
                safety_stock=int(safety),
                reorder_point=int(reorder),
            ))
            for current, safety, reorder in zip(
                df["current_stock"], df["safety_stock"], df["reorder_point"]
            )
        ]

        df["inventory_status"] = [r.key.value for r in results]
        df["urgency_level"] = [r.urgency_level for r in results]
        df["needs_action"] = [r.needs_action for r in results]
        return df
