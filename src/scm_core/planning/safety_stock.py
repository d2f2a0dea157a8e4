import math
from dataclasses import dataclass
from typing import Optional

from scm_core.policy import PlanningPolicy, default_policy
from scm_core.safe_math import ensure_positive, round_half_up, safe_number, safe_sqrt

# Service level -> Z (standard normal)
SERVICE_LEVEL_Z_SCORES = {
    0.90: 1.28,
    0.91: 1.34,
    0.92: 1.41,
    0.93: 1.48,
    0.94: 1.55,
    0.95: 1.65,  # Default - standard service level
    0.96: 1.75,
    0.97: 1.88,
    0.98: 2.05,
    0.99: 2.33,
    0.995: 2.58,
    0.999: 3.09,
}

DEFAULT_SERVICE_LEVEL = 0.95


@dataclass
class SafetyStockResult:
    safety_stock: int
    service_level: float
    z_score: float
    method: str  # "simplified" or "full"


def get_z_score(service_level: float) -> float:
    """
    Z for a service level in (0, 1).

    Clamped to the table range; levels between two listed points are
    linearly interpolated.
    """
    if service_level < 0.90:
        return SERVICE_LEVEL_Z_SCORES[0.90]
    if service_level >= 0.999:
        return SERVICE_LEVEL_Z_SCORES[0.999]

    rounded = round_half_up(service_level * 1000) / 1000
    if rounded in SERVICE_LEVEL_Z_SCORES:
        return SERVICE_LEVEL_Z_SCORES[rounded]

    levels = sorted(SERVICE_LEVEL_Z_SCORES)
    for low, high in zip(levels, levels[1:]):
        if low <= service_level < high:
            ratio = (service_level - low) / (high - low)
            z_low = SERVICE_LEVEL_Z_SCORES[low]
            z_high = SERVICE_LEVEL_Z_SCORES[high]
            return z_low + ratio * (z_high - z_low)

    return SERVICE_LEVEL_Z_SCORES[DEFAULT_SERVICE_LEVEL]


def calculate_safety_stock(
    average_daily_demand: float,
    demand_std_dev: float,
    lead_time_days: float,
    lead_time_std_dev: float = 0.0,
    service_level: float = DEFAULT_SERVICE_LEVEL,
) -> SafetyStockResult:
    """
    Safety stock buffer against demand (and optionally lead time) variability.

    Simplified (lead time std = 0):
        SS = Z * sd_demand * sqrt(LT)
    Full (lead time std > 0):
        SS = Z * sqrt(LT * sd_demand^2 + avg_demand^2 * sd_LT^2)

    Result is rounded up. Zero demand (new products) gives 0; a missing
    lead time is treated as 1 day.
    """
    avg_demand = ensure_positive(average_daily_demand, 0.0)
    demand_std = safe_number(demand_std_dev, 0.0)
    lead_time = ensure_positive(lead_time_days, 1.0)
    lead_time_std = safe_number(lead_time_std_dev, 0.0)

    if avg_demand == 0:
        return SafetyStockResult(
            safety_stock=0,
            service_level=service_level,
            z_score=0.0,
            method="simplified",
        )

    z_score = get_z_score(service_level)

    if lead_time_std > 0:
        demand_variance = lead_time * demand_std * demand_std
        lead_time_variance = avg_demand * avg_demand * lead_time_std * lead_time_std
        safety_stock = z_score * safe_sqrt(demand_variance + lead_time_variance)
        method = "full"
    else:
        safety_stock = z_score * demand_std * safe_sqrt(lead_time)
        method = "simplified"

    return SafetyStockResult(
        safety_stock=math.ceil(max(0.0, safety_stock)),
        service_level=service_level,
        z_score=z_score,
        method=method,
    )


def calculate_simple_safety_stock(
    average_daily_demand: float,
    lead_time_days: float,
    safety_factor: Optional[float] = None,
    policy: Optional[PlanningPolicy] = None,
) -> int:
    """
    Safety stock as a share of lead-time demand.
    The share defaults to policy.safety_stock_multiplier.
    """
    policy = policy or default_policy()
    demand = ensure_positive(average_daily_demand, 0.0)
    lead_time = ensure_positive(lead_time_days, 0.0)
    factor = safe_number(safety_factor, policy.safety_stock_multiplier)

    if demand == 0 or lead_time == 0:
        return 0

    return math.ceil(demand * lead_time * factor)
