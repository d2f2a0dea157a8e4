import pandas as pd
from dataclasses import dataclass
from datetime import date
from enum import Enum
from typing import List, Optional

from scm_core.data_contracts.models import InventoryLot, LotStatus
from scm_core.safe_math import round_half_up, safe_number


DAYS_EXPIRED = 0
DAYS_CRITICAL = 7
DAYS_WARNING = 30

# Share of value treated as at risk for lots inside the warning window
WARNING_RISK_SHARE = 0.3


class ExpiryAlertLevel(str, Enum):
    expired = "expired"
    critical_d7 = "critical_d7"
    warning_d30 = "warning_d30"
    normal = "normal"


_SEVERITY = {
    ExpiryAlertLevel.expired: 0,
    ExpiryAlertLevel.critical_d7: 1,
    ExpiryAlertLevel.warning_d30: 2,
    ExpiryAlertLevel.normal: 3,
}


@dataclass
class ExpiryRiskItem:
    expiry_date: date
    quantity: float
    unit_price: float


@dataclass
class ExpiryRiskResult:
    expired_count: int
    critical_count: int
    warning_count: int
    normal_count: int
    total_at_risk: int
    risk_value: int


@dataclass
class ExpiryAlert:
    product_id: str
    lot_id: str
    lot_number: str
    expiry_date: date
    days_until_expiry: int
    alert_level: ExpiryAlertLevel
    remaining_quantity: int


def _today(today=None) -> date:
    if today is None:
        return pd.Timestamp.today().normalize().date()
    return pd.to_datetime(today).date()


def days_until_expiry(expiry_date, today=None) -> int:
    """Negative when already expired."""
    expiry = pd.to_datetime(expiry_date).date()
    return (expiry - _today(today)).days


def classify_expiry_status(expiry_date, today=None) -> ExpiryAlertLevel:
    days_left = days_until_expiry(expiry_date, today)

    if days_left <= DAYS_EXPIRED:
        return ExpiryAlertLevel.expired
    if days_left <= DAYS_CRITICAL:
        return ExpiryAlertLevel.critical_d7
    if days_left <= DAYS_WARNING:
        return ExpiryAlertLevel.warning_d30
    return ExpiryAlertLevel.normal


class ExpiryRiskEngine:
    """
    Computes expiry risk metrics for lot-level inventory.
    """

    def compute(self, items: List[ExpiryRiskItem], today=None) -> ExpiryRiskResult:
        counts = {level: 0 for level in ExpiryAlertLevel}
        risk_value = 0.0

        for item in items:
            level = classify_expiry_status(item.expiry_date, today)
            value = safe_number(item.quantity) * safe_number(item.unit_price)
            counts[level] += 1

            # Expired and critical lots are valued as a full loss
            if level in (ExpiryAlertLevel.expired, ExpiryAlertLevel.critical_d7):
                risk_value += value
            elif level == ExpiryAlertLevel.warning_d30:
                risk_value += round_half_up(value * WARNING_RISK_SHARE)

        return ExpiryRiskResult(
            expired_count=counts[ExpiryAlertLevel.expired],
            critical_count=counts[ExpiryAlertLevel.critical_d7],
            warning_count=counts[ExpiryAlertLevel.warning_d30],
            normal_count=counts[ExpiryAlertLevel.normal],
            total_at_risk=(
                counts[ExpiryAlertLevel.expired]
                + counts[ExpiryAlertLevel.critical_d7]
                + counts[ExpiryAlertLevel.warning_d30]
            ),
            risk_value=round_half_up(risk_value),
        )

    def alerts(
        self,
        lots: List[InventoryLot],
        today=None,
        include_normal: bool = False,
    ) -> List[ExpiryAlert]:
        """
        Expiry alerts for active lots that carry an expiry date,
        most severe first, then fewest days left.
        """
        alerts = []
        for lot in lots:
            if lot.expiry_date is None or lot.status != LotStatus.active:
                continue

            level = classify_expiry_status(lot.expiry_date, today)
            if level == ExpiryAlertLevel.normal and not include_normal:
                continue

            alerts.append(ExpiryAlert(
                product_id=lot.product_id,
                lot_id=lot.id,
                lot_number=lot.lot_number,
                expiry_date=lot.expiry_date,
                days_until_expiry=days_until_expiry(lot.expiry_date, today),
                alert_level=level,
                remaining_quantity=lot.remaining_quantity,
            ))

        return sorted(alerts, key=lambda a: (_SEVERITY[a.alert_level], a.days_until_expiry))


def calculate_expiry_risk(items: List[ExpiryRiskItem], today: Optional[date] = None) -> ExpiryRiskResult:
    return ExpiryRiskEngine().compute(items, today=today)


def generate_expiry_alerts(
    lots: List[InventoryLot],
    today: Optional[date] = None,
    include_normal: bool = False,
) -> List[ExpiryAlert]:
    return ExpiryRiskEngine().alerts(lots, today=today, include_normal=include_normal)
