import logging
from typing import Optional

from scm_core.data_contracts.models import DeductByFIFOParams, DeductByFIFOResult
from scm_core.errors import LotConflictError, LotDeductionFailed
from scm_core.inventory.fifo import deduct_by_fifo, format_deduction_notes
from scm_core.policy import PlanningPolicy, default_policy
from scm_core.repositories.base import LotStore

logger = logging.getLogger(__name__)


class LotDeductionService:
    """
    Read -> plan -> conditional commit of one outbound deduction.

    The plan is computed against a point-in-time read of the lots. The
    store rejects the commit if any planned lot moved in the meantime;
    the service then re-reads and re-plans, up to
    policy.max_deduction_retries extra attempts.
    """

    def __init__(self, store: LotStore, policy: Optional[PlanningPolicy] = None):
        self.store = store
        self.policy = policy or default_policy()

    def deduct(self, organization_id: str, params: DeductByFIFOParams) -> DeductByFIFOResult:
        attempts = self.policy.max_deduction_retries + 1
        last_error = None

        for attempt in range(1, attempts + 1):
            with self.store.lock(organization_id, params.product_id, params.warehouse_id):
                lots = self.store.get_active_lots(
                    organization_id, params.product_id, params.warehouse_id
                )
                result = deduct_by_fifo(params, lots)

                if not result.success:
                    return result

                try:
                    self.store.apply_lot_updates(organization_id, result.lot_updates)
                except LotConflictError as exc:
                    last_error = exc
                    logger.warning(
                        "Lot deduction conflict (attempt %d/%d) product=%s warehouse=%s: %s",
                        attempt, attempts, params.product_id, params.warehouse_id, exc,
                    )
                    continue

            logger.info(
                "Deducted %d units product=%s warehouse=%s: %s",
                result.total_deducted,
                params.product_id,
                params.warehouse_id,
                format_deduction_notes(result.deductions),
            )
            return result

        raise LotDeductionFailed(attempts, last_error)
