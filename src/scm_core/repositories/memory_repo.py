import logging
import threading
from collections import defaultdict
from typing import Dict, List, Tuple

from scm_core.data_contracts.models import InventoryLot, LotStatus, LotUpdate
from scm_core.errors import LotConflictError
from scm_core.repositories.base import LotStore

logger = logging.getLogger(__name__)


class InMemoryLotStore(LotStore):
    """
    Process-local lot store.
    lock() serializes deductions per (organization, product, warehouse);
    apply_lot_updates() additionally version-checks every lot.
    """

    def __init__(self):
        self._lots: Dict[Tuple[str, str], InventoryLot] = {}
        self._guard = threading.Lock()
        self._scope_locks = defaultdict(threading.Lock)

    def lock(self, organization_id: str, product_id: str, warehouse_id: str):
        with self._guard:
            return self._scope_locks[(organization_id, product_id, warehouse_id)]

    def add_lot(self, lot: InventoryLot) -> None:
        if lot.organization_id is None:
            raise ValueError(f"Lot {lot.id} has no organization_id")
        with self._guard:
            self._lots[(lot.organization_id, lot.id)] = lot

    def get_lot(self, organization_id: str, lot_id: str) -> InventoryLot:
        with self._guard:
            return self._lots[(organization_id, lot_id)]

    def get_active_lots(
        self, organization_id: str, product_id: str, warehouse_id: str
    ) -> List[InventoryLot]:
        with self._guard:
            return [
                lot for (org, _), lot in self._lots.items()
                if org == organization_id
                and lot.product_id == product_id
                and lot.warehouse_id == warehouse_id
                and lot.status == LotStatus.active
                and lot.remaining_quantity > 0
            ]

    def apply_lot_updates(
        self, organization_id: str, updates: List[LotUpdate]
    ) -> None:
        if not updates:
            return

        with self._guard:
            stale = []
            for u in updates:
                lot = self._lots.get((organization_id, u.lot_id))
                if (
                    lot is None
                    or lot.status != LotStatus.active
                    or lot.remaining_quantity != u.expected_remaining
                ):
                    stale.append(u.lot_id)

            if stale:
                raise LotConflictError(stale)

            for u in updates:
                key = (organization_id, u.lot_id)
                self._lots[key] = self._lots[key].model_copy(update={
                    "remaining_quantity": u.new_remaining,
                    "status": u.new_status,
                })

        logger.debug("Applied %d lot updates for organization=%s", len(updates), organization_id)
