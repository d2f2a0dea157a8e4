from abc import ABC, abstractmethod
from contextlib import nullcontext
from typing import List

from scm_core.data_contracts.models import InventoryLot, LotUpdate


class LotStore(ABC):
    """
    Lot persistence collaborator of the FIFO deduction.
    One lot belongs to one (organization, product, warehouse) triple.
    """

    def lock(self, organization_id: str, product_id: str, warehouse_id: str):
        """
        Context manager held around read-plan-commit of one deduction.
        Stores that rely only on the conditional commit return a no-op.
        """
        return nullcontext()

    @abstractmethod
    def add_lot(self, lot: InventoryLot) -> None:
        pass

    @abstractmethod
    def get_active_lots(
        self, organization_id: str, product_id: str, warehouse_id: str
    ) -> List[InventoryLot]:
        pass

    @abstractmethod
    def apply_lot_updates(
        self, organization_id: str, updates: List[LotUpdate]
    ) -> None:
        """
        Applies all updates atomically or none of them.

        Every update is conditional on the lot still being active with
        exactly update.expected_remaining units; otherwise raises
        LotConflictError and leaves every lot unchanged.
        """
        pass
