from enum import Enum


class DeductionErrorCode(str, Enum):
    invalid_quantity = "invalid_quantity"
    insufficient_lot_stock = "insufficient_lot_stock"


class SCMError(Exception):
    """Base class for errors raised by scm_core."""


class LotConflictError(SCMError):
    """
    A lot changed between the read that produced a deduction plan
    and the commit of that plan.
    """

    def __init__(self, lot_ids, message: str = None):
        self.lot_ids = list(lot_ids)
        super().__init__(
            message or f"Concurrent modification detected on lots: {self.lot_ids}"
        )


class LotDeductionFailed(SCMError):
    """Deduction could not be committed after the configured retries."""

    def __init__(self, attempts: int, last_error: Exception = None):
        self.attempts = attempts
        self.last_error = last_error
        super().__init__(
            f"Lot deduction failed after {attempts} attempts: {last_error}"
        )
