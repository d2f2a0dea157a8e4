from pydantic import BaseModel, ConfigDict, Field
from typing import Optional, List
from datetime import date, datetime
from enum import Enum

from scm_core.errors import DeductionErrorCode


# =========================
# ENUMS (shared, canonical)
# =========================

class InventoryStatusKey(str, Enum):
    out_of_stock = "out_of_stock"
    critical = "critical"
    shortage = "shortage"
    caution = "caution"
    optimal = "optimal"
    excess = "excess"
    overstock = "overstock"


# Ascending stock order of the tiers
STATUS_TIER_ORDER: List[InventoryStatusKey] = [
    InventoryStatusKey.out_of_stock,
    InventoryStatusKey.critical,
    InventoryStatusKey.shortage,
    InventoryStatusKey.caution,
    InventoryStatusKey.optimal,
    InventoryStatusKey.excess,
    InventoryStatusKey.overstock,
]


class LotStatus(str, Enum):
    active = "active"
    depleted = "depleted"


class OrderQuantityMethod(str, Enum):
    eoq = "eoq"
    target_days = "target_days"


# =========================
# STOCK & STATUS
# =========================

class StockLevel(BaseModel):
    model_config = ConfigDict(frozen=True)

    current_stock: int = Field(ge=0)
    safety_stock: int = Field(default=0, ge=0)     # 0 = unset
    reorder_point: int = Field(default=0, ge=0)    # 0 = unset


class InventoryStatus(BaseModel):
    model_config = ConfigDict(frozen=True)

    key: InventoryStatusKey
    label: str
    description: str
    urgency_level: int = Field(ge=0, le=3)
    needs_action: bool

    @property
    def rank(self) -> int:
        return STATUS_TIER_ORDER.index(self.key)


class InventoryStatusResult(BaseModel):
    status: InventoryStatus
    key: InventoryStatusKey
    needs_action: bool
    urgency_level: int
    recommendation: str


# =========================
# REORDER PLANNING
# =========================

class ReorderPointResult(BaseModel):
    reorder_point: int
    lead_time_demand: int
    safety_stock: float


class OrderQuantityResult(BaseModel):
    recommended_quantity: int = Field(ge=0)
    method: OrderQuantityMethod
    projected_stock: int


# =========================
# LOTS & FIFO DEDUCTION
# =========================

class InventoryLot(BaseModel):
    id: str
    lot_number: str
    product_id: str
    warehouse_id: str
    organization_id: Optional[str] = None
    remaining_quantity: int = Field(ge=0)
    status: LotStatus = LotStatus.active
    expiry_date: Optional[date] = None
    received_date: date
    created_at: datetime


class DeductByFIFOParams(BaseModel):
    product_id: str
    warehouse_id: str
    quantity: int


class FIFODeduction(BaseModel):
    lot_id: str
    lot_number: str
    quantity: int = Field(ge=0)
    expiry_date: Optional[date] = None


class LotUpdate(BaseModel):
    lot_id: str
    new_remaining: int = Field(ge=0)
    new_status: LotStatus
    # remaining quantity the plan was computed against
    expected_remaining: int = Field(ge=0)


class DeductionError(BaseModel):
    code: DeductionErrorCode
    requested: int
    available: int
    message: str

    @property
    def shortfall(self) -> int:
        return max(0, self.requested - self.available)


class DeductByFIFOResult(BaseModel):
    success: bool
    deductions: List[FIFODeduction] = Field(default_factory=list)
    lot_updates: List[LotUpdate] = Field(default_factory=list)
    error: Optional[DeductionError] = None

    @property
    def total_deducted(self) -> int:
        return sum(d.quantity for d in self.deductions)


# =========================
# PSI
# =========================

class PSIProduct(BaseModel):
    id: str
    sku: str
    name: str
    category: Optional[str] = None
    abc_grade: Optional[str] = None
    xyz_grade: Optional[str] = None
    current_stock: int = Field(ge=0)
    safety_stock: int = Field(default=0, ge=0)
    order_method: Optional[str] = None


class PSIMonthData(BaseModel):
    period: str                      # YYYY-MM
    beginning_stock: int
    inbound: float
    outbound: float
    ending_stock: int
    forecast: Optional[float] = None
    manual_forecast: Optional[float] = None
    sop_quantity: float = 0
    inbound_plan: float = 0
    outbound_plan: float = 0
    planned_ending_stock: int = 0
    # reconstruction hit the zero floor for this month
    clamped: bool = False


class PSIProductRow(BaseModel):
    product_id: str
    sku: str
    product_name: str
    category: Optional[str] = None
    abc_grade: Optional[str] = None
    xyz_grade: Optional[str] = None
    current_stock: int
    safety_stock: int
    order_method: Optional[str] = None
    months: List[PSIMonthData]


class PSIResult(BaseModel):
    products: List[PSIProductRow]
    periods: List[str]
    total_products: int
    current_period_index: int
    anchor_fallback: bool = False
    warnings: List[str] = Field(default_factory=list)


# =========================
# PURCHASE ORDERS / DELIVERY
# =========================

class PurchaseOrderRecord(BaseModel):
    id: str
    order_number: str
    supplier_id: Optional[str] = None
    supplier_name: str = ""
    product_names: List[str] = Field(default_factory=list)
    order_date: Optional[date] = None
    expected_date: Optional[date] = None
    actual_date: Optional[date] = None
    requested_date: Optional[date] = None
    standard_lead_time: float = 0
    status: str = ""


class DeliveryComplianceItem(BaseModel):
    order_id: str
    order_number: str
    supplier_id: Optional[str] = None
    supplier_name: str
    product_names: List[str]
    order_date: date
    expected_date: Optional[date] = None
    actual_date: Optional[date] = None
    requested_date: Optional[date] = None
    standard_lead_time: float
    actual_lead_time: Optional[int] = None
    delay_days: Optional[float] = None       # >0 late, <0 early
    is_on_time: Optional[bool] = None
    status: str


class SupplierComplianceSummary(BaseModel):
    supplier_id: str
    supplier_name: str
    total_orders: int
    completed_orders: int
    on_time_orders: int
    late_orders: int
    on_time_rate: float = Field(ge=0, le=100)
    avg_actual_lead_time: float
    avg_standard_lead_time: float
    avg_delay_days: float
    max_delay_days: float


class ComplianceOverview(BaseModel):
    total_orders: int
    completed_orders: int
    on_time_rate: float = Field(ge=0, le=100)
    avg_lead_time: float
    avg_delay_days: float


class DeliveryComplianceResult(BaseModel):
    items: List[DeliveryComplianceItem]
    supplier_summaries: List[SupplierComplianceSummary]
    overall: ComplianceOverview
