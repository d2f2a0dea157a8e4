import logging
from typing import List

import duckdb

from scm_core.data_contracts.models import InventoryLot, LotUpdate
from scm_core.errors import LotConflictError
from scm_core.inventory.fifo import lots_from_frame
from scm_core.repositories.base import LotStore

logger = logging.getLogger(__name__)


LOTS_TABLE_DDL = """
CREATE TABLE IF NOT EXISTS inventory_lots (
    id                  VARCHAR NOT NULL,
    organization_id     VARCHAR NOT NULL,
    product_id          VARCHAR NOT NULL,
    warehouse_id        VARCHAR NOT NULL,
    lot_number          VARCHAR NOT NULL,
    remaining_quantity  INTEGER NOT NULL,
    status              VARCHAR NOT NULL,
    expiry_date         DATE,
    received_date       DATE NOT NULL,
    created_at          TIMESTAMP NOT NULL,
    updated_at          TIMESTAMP
)
"""


class DuckDBLotStore(LotStore):
    """
    Lot store on a duckdb database.
    One row = organization-product-warehouse-lot
    """

    def __init__(self, database: str = ":memory:"):
        self.con = duckdb.connect(database)
        self.con.execute(LOTS_TABLE_DDL)

    def close(self) -> None:
        self.con.close()

    def add_lot(self, lot: InventoryLot) -> None:
        if lot.organization_id is None:
            raise ValueError(f"Lot {lot.id} has no organization_id")

        with self.con.cursor() as cur:
            cur.execute(
                """
                INSERT INTO inventory_lots (
                    id, organization_id, product_id, warehouse_id, lot_number,
                    remaining_quantity, status, expiry_date, received_date, created_at
                ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
                """,
                [
                    lot.id,
                    lot.organization_id,
                    lot.product_id,
                    lot.warehouse_id,
                    lot.lot_number,
                    lot.remaining_quantity,
                    lot.status.value,
                    lot.expiry_date,
                    lot.received_date,
                    lot.created_at,
                ],
            )

    def get_active_lots(
        self, organization_id: str, product_id: str, warehouse_id: str
    ) -> List[InventoryLot]:
        query = """
        SELECT
            id,
            organization_id,
            product_id,
            warehouse_id,
            lot_number,
            remaining_quantity,
            status,
            expiry_date,
            received_date,
            created_at
        FROM inventory_lots
        WHERE organization_id = ?
          AND product_id = ?
          AND warehouse_id = ?
          AND status = 'active'
          AND remaining_quantity > 0
        ORDER BY expiry_date ASC NULLS LAST, received_date ASC, created_at ASC
        """
        with self.con.cursor() as cur:
            df = cur.execute(query, [organization_id, product_id, warehouse_id]).df()
        return lots_from_frame(df)

    def get_lot(self, organization_id: str, lot_id: str) -> InventoryLot:
        with self.con.cursor() as cur:
            df = cur.execute(
                "SELECT * FROM inventory_lots WHERE organization_id = ? AND id = ?",
                [organization_id, lot_id],
            ).df()
        if df.empty:
            raise KeyError(lot_id)
        return lots_from_frame(df)[0]

    def apply_lot_updates(
        self, organization_id: str, updates: List[LotUpdate]
    ) -> None:
        if not updates:
            return

        # Numbered parameters: $1 is the organization, then four per update.
        rows = []
        params = [organization_id]
        for u in updates:
            n = len(params)
            rows.append(
                f"(CAST(${n + 1} AS VARCHAR), CAST(${n + 2} AS INTEGER), "
                f"CAST(${n + 3} AS VARCHAR), CAST(${n + 4} AS INTEGER))"
            )
            params += [u.lot_id, u.new_remaining, u.new_status.value, u.expected_remaining]

        # Single conditional batch: a row only matches if it still holds
        # the quantity the plan was computed against.
        statement = f"""
        UPDATE inventory_lots SET
            remaining_quantity = v.new_remaining,
            status = v.new_status,
            updated_at = current_timestamp
        FROM (VALUES {", ".join(rows)}) AS v(id, new_remaining, new_status, expected_remaining)
        WHERE inventory_lots.id = v.id
          AND inventory_lots.organization_id = $1
          AND inventory_lots.status = 'active'
          AND inventory_lots.remaining_quantity = v.expected_remaining
        """

        lot_ids = [u.lot_id for u in updates]

        with self.con.cursor() as cur:
            cur.begin()
            try:
                updated = cur.execute(statement, params).fetchone()[0]
                if updated != len(updates):
                    raise LotConflictError(lot_ids)
                cur.commit()
            except LotConflictError:
                _rollback(cur)
                raise
            except duckdb.TransactionException as exc:
                _rollback(cur)
                raise LotConflictError(lot_ids, f"Write conflict on lots {lot_ids}: {exc}") from exc
            except Exception:
                _rollback(cur)
                raise

        logger.debug(
            "Applied %d lot updates for organization=%s", len(updates), organization_id
        )


def _rollback(cur) -> None:
    try:
        cur.rollback()
    except duckdb.TransactionException:
        # a failed commit already aborted the transaction
        logger.debug("No active transaction to roll back")
