import logging

import pandas as pd
from .specs import DATASET_SPECS

logger = logging.getLogger(__name__)

# columns that must never hold negative quantities
_NON_NEGATIVE_COLS = ("current_stock", "remaining_quantity", "stock_after")


def validate_df(df: pd.DataFrame, dataset_name: str) -> None:
    if dataset_name not in DATASET_SPECS:
        raise ValueError(f"Unknown dataset: {dataset_name}")

    required_cols = set(DATASET_SPECS[dataset_name])
    missing = required_cols - set(df.columns)

    if missing:
        raise ValueError(
            f"{dataset_name} missing columns: {sorted(missing)}"
        )

    if df.empty:
        raise ValueError(f"{dataset_name} is empty")

    # soft checks
    for col in _NON_NEGATIVE_COLS:
        if col in df.columns and (pd.to_numeric(df[col], errors="coerce") < 0).any():
            logger.warning("Negative %s detected in %s", col, dataset_name)
