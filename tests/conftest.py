"""
Pytest configuration and shared fixtures for all tests
"""

from datetime import date, datetime

import pytest

from scm_core.data_contracts.models import InventoryLot, LotStatus
from scm_core.repositories.duckdb_repo import DuckDBLotStore
from scm_core.repositories.memory_repo import InMemoryLotStore

ORG = "org-1"
PRODUCT = "prod-1"
WAREHOUSE = "wh-1"


# ===== LOT FIXTURES =====

def make_lot(
    lot_id,
    remaining,
    expiry=None,
    received=date(2024, 1, 1),
    created=None,
    product_id=PRODUCT,
    warehouse_id=WAREHOUSE,
    status=LotStatus.active,
):
    return InventoryLot(
        id=lot_id,
        lot_number=f"LOT-{lot_id}",
        product_id=product_id,
        warehouse_id=warehouse_id,
        organization_id=ORG,
        remaining_quantity=remaining,
        status=status,
        expiry_date=expiry,
        received_date=received,
        created_at=created or datetime(received.year, received.month, received.day, 9, 0),
    )


@pytest.fixture
def lot_factory():
    return make_lot


@pytest.fixture
def mixed_expiry_lots():
    """
    Sorted for deduction: L4, L2, L1, L3
    - L2 / L4 share the nearest expiry, L4 received first
    - L3 has no expiry (always last)
    """
    return [
        make_lot("L1", 10, expiry=date(2025, 3, 1), received=date(2024, 1, 10)),
        make_lot("L2", 5, expiry=date(2025, 1, 1), received=date(2024, 2, 1)),
        make_lot("L3", 20, expiry=None, received=date(2023, 12, 1)),
        make_lot("L4", 8, expiry=date(2025, 1, 1), received=date(2024, 1, 15)),
    ]


# ===== STORE FIXTURES =====

@pytest.fixture(params=["memory", "duckdb"])
def lot_store(request, mixed_expiry_lots):
    if request.param == "memory":
        store = InMemoryLotStore()
    else:
        store = DuckDBLotStore(":memory:")

    for lot in mixed_expiry_lots:
        store.add_lot(lot)

    yield store

    if request.param == "duckdb":
        store.close()
