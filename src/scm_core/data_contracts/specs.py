from typing import Dict, List

DATASET_SPECS: Dict[str, List[str]] = {

    "stock_levels": [
        "product_id",
        "current_stock",
        "safety_stock",
        "reorder_point",
    ],

    "lots": [
        "id",
        "lot_number",
        "product_id",
        "warehouse_id",
        "remaining_quantity",
        "status",
        "expiry_date",
        "received_date",
        "created_at",
    ],

    "demand_history": [
        "product_id",
        "date",
        "quantity",
    ],

    "inventory_history": [
        "date",
        "stock_after",
    ],
}
