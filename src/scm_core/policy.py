import os
from dataclasses import dataclass, replace


@dataclass
class PlanningPolicy:
    # Order quantity
    target_days_of_inventory: int = 30            # used when no EOQ / target days given
    default_lead_time_days: int = 7

    # Safety stock
    service_level: float = 0.95
    safety_stock_multiplier: float = 0.5          # share of lead-time demand

    # KPI
    holding_cost_rate: float = 0.25               # annual holding rate on inventory value
    on_time_grace_days: int = 1

    # Lot deduction
    max_deduction_retries: int = 3

    # PSI window
    psi_past_months: int = 6
    psi_future_months: int = 6


def default_policy() -> PlanningPolicy:
    return PlanningPolicy()


# env var -> (field, parser)
_ENV_OVERRIDES = {
    "SCM_TARGET_DAYS_OF_INVENTORY": ("target_days_of_inventory", int),
    "SCM_DEFAULT_LEAD_TIME_DAYS": ("default_lead_time_days", int),
    "SCM_SERVICE_LEVEL": ("service_level", float),
    "SCM_HOLDING_COST_RATE": ("holding_cost_rate", float),
    "SCM_ON_TIME_GRACE_DAYS": ("on_time_grace_days", int),
    "SCM_MAX_DEDUCTION_RETRIES": ("max_deduction_retries", int),
}


def policy_from_env(base: PlanningPolicy = None) -> PlanningPolicy:
    """
    Overlay SCM_* environment variables on top of base (defaults if None).
    """
    policy = base or default_policy()
    overrides = {}

    for env_name, (field_name, parser) in _ENV_OVERRIDES.items():
        raw = os.getenv(env_name)
        if raw is None or raw.strip() == "":
            continue
        try:
            overrides[field_name] = parser(raw.strip())
        except ValueError:
            raise ValueError(f"Invalid value for {env_name}: {raw!r}")

    return replace(policy, **overrides)
