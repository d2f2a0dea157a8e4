import logging
from datetime import date
from typing import Iterable, List

import pandas as pd

from scm_core.data_contracts.models import (
    DeductByFIFOParams,
    DeductByFIFOResult,
    DeductionError,
    FIFODeduction,
    InventoryLot,
    LotStatus,
    LotUpdate,
)
from scm_core.data_contracts.validate import validate_df
from scm_core.errors import DeductionErrorCode

logger = logging.getLogger(__name__)


def sort_lots_for_deduction(lots: Iterable[InventoryLot]) -> List[InventoryLot]:
    """
    FEFO then FIFO:
    1. expiry_date ascending, lots without expiry last
    2. received_date ascending
    3. created_at ascending
    """
    return sorted(
        lots,
        key=lambda lot: (
            lot.expiry_date is None,
            lot.expiry_date or date.max,
            lot.received_date,
            lot.created_at,
        ),
    )


def eligible_lots(params: DeductByFIFOParams, lots: Iterable[InventoryLot]) -> List[InventoryLot]:
    return [
        lot for lot in lots
        if lot.product_id == params.product_id
        and lot.warehouse_id == params.warehouse_id
        and lot.status == LotStatus.active
        and lot.remaining_quantity > 0
    ]


def deduct_by_fifo(
    params: DeductByFIFOParams,
    lots: Iterable[InventoryLot],
) -> DeductByFIFOResult:
    """
    Plans an outbound deduction across the active lots of one
    product + warehouse. Pure: the lots passed in are never modified,
    the caller persists result.lot_updates.

    Availability is checked before any plan line is produced, so a
    failed result carries no deductions and no updates.
    """
    quantity = params.quantity

    if quantity <= 0:
        return DeductByFIFOResult(
            success=False,
            error=DeductionError(
                code=DeductionErrorCode.invalid_quantity,
                requested=quantity,
                available=0,
                message="Deduction quantity must be at least 1",
            ),
        )

    candidates = sort_lots_for_deduction(eligible_lots(params, lots))

    total_available = sum(lot.remaining_quantity for lot in candidates)
    if total_available < quantity:
        logger.warning(
            "Insufficient lot stock for product=%s warehouse=%s: requested=%s available=%s",
            params.product_id, params.warehouse_id, quantity, total_available,
        )
        return DeductByFIFOResult(
            success=False,
            error=DeductionError(
                code=DeductionErrorCode.insufficient_lot_stock,
                requested=quantity,
                available=total_available,
                message=(
                    f"Insufficient lot stock. Requested: {quantity}, "
                    f"available in lots: {total_available}"
                ),
            ),
        )

    remaining = quantity
    deductions = []
    updates = []

    for lot in candidates:
        if remaining <= 0:
            break

        take_qty = min(remaining, lot.remaining_quantity)
        new_remaining = lot.remaining_quantity - take_qty

        updates.append(LotUpdate(
            lot_id=lot.id,
            new_remaining=new_remaining,
            new_status=LotStatus.depleted if new_remaining == 0 else LotStatus.active,
            expected_remaining=lot.remaining_quantity,
        ))
        deductions.append(FIFODeduction(
            lot_id=lot.id,
            lot_number=lot.lot_number,
            quantity=take_qty,
            expiry_date=lot.expiry_date,
        ))

        remaining -= take_qty

    return DeductByFIFOResult(success=True, deductions=deductions, lot_updates=updates)


def format_deduction_notes(deductions: List[FIFODeduction]) -> str:
    """e.g. 'LOT-A: 10 units (expiry 2026-01-31), LOT-B: 5 units'"""
    parts = []
    for d in deductions:
        expiry = f" (expiry {d.expiry_date.isoformat()})" if d.expiry_date else ""
        parts.append(f"{d.lot_number}: {d.quantity} units{expiry}")
    return ", ".join(parts)


def lots_from_frame(df: pd.DataFrame) -> List[InventoryLot]:
    """Converts a lot frame (one row per lot) into InventoryLot contracts."""
    if df.empty:
        return []

    validate_df(df, "lots")

    df = df.copy()
    df["expiry_date"] = pd.to_datetime(df["expiry_date"], format="ISO8601", errors="coerce").dt.date
    df["received_date"] = pd.to_datetime(df["received_date"], format="ISO8601").dt.date
    df["created_at"] = pd.to_datetime(df["created_at"], format="ISO8601")
    df["remaining_quantity"] = df["remaining_quantity"].astype(int)

    records = df.astype(object).where(df.notna(), None).to_dict(orient="records")
    return [InventoryLot(**row) for row in records]
