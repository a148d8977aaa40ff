"""
Report Pydantic Schemas

Read-only summaries across materials, orders and production logs.
Percentages in the wastage analysis are rendered with 2 decimals.
"""
from pydantic import field_validator
from typing import Optional, List
from datetime import datetime

from gsms.schemas.common import CamelModel
from gsms.services.consumption_engine import format_percentage


# ============================================================================
# Wastage Analysis
# ============================================================================

class WastageReasonItem(CamelModel):
    reason: str
    amount: float
    percentage: str

    @field_validator("percentage", mode="before")
    @classmethod
    def render_percentage(cls, v):
        return format_percentage(v)


class WastageAnalysisItem(CamelModel):
    """Wastage totals for one material over the selected logs"""
    material_id: int
    name: str
    item_code: str
    unit: str
    total_used: float
    standard_wastage: float
    extra_wastage: float
    total_wastage: float
    standard_wastage_percentage: str
    extra_wastage_percentage: str
    total_wastage_percentage: str
    wastage_reasons: List[WastageReasonItem] = []

    @field_validator(
        "standard_wastage_percentage",
        "extra_wastage_percentage",
        "total_wastage_percentage",
        mode="before",
    )
    @classmethod
    def render_percentage(cls, v):
        return format_percentage(v)


# ============================================================================
# Fabric Usage
# ============================================================================

class FabricUsageOrderItem(CamelModel):
    order_id: int
    po_no: str
    product_name: Optional[str] = None
    style_no: Optional[str] = None
    usage: float
    wastage: float


class FabricUsageDateItem(CamelModel):
    date: str  # YYYY-MM-DD
    usage: float
    wastage: float


class FabricUsageItem(CamelModel):
    """Usage of one material with per-order and per-day breakdown"""
    material_id: int
    name: str
    item_code: str
    unit: str
    total_usage: float
    standard_wastage: float
    extra_wastage: float
    total_wastage: float
    waste_percentage: str
    by_order: List[FabricUsageOrderItem] = []
    by_date: List[FabricUsageDateItem] = []

    @field_validator("waste_percentage", mode="before")
    @classmethod
    def render_percentage(cls, v):
        return format_percentage(v)


# ============================================================================
# Stock Balance
# ============================================================================

class StockHistoryItem(CamelModel):
    date: datetime
    type: str  # IN | OUT
    quantity: float
    remarks: Optional[str] = None
    balance: float


class StockBalanceItem(CamelModel):
    """Ledger summary for one material"""
    material_id: int
    item_code: str
    name: str
    unit: str
    opening_stock: float
    total_received: float
    total_issued: float
    current_balance: float
    last_updated: datetime
    history: List[StockHistoryItem] = []


# ============================================================================
# Order Fulfillment
# ============================================================================

class MaterialFulfillmentItem(CamelModel):
    material_name: str
    required: float
    used: float
    fulfillment_percentage: float


class OrderFulfillmentItem(CamelModel):
    """Cutting progress of one order"""
    order_id: int
    po_no: str
    product: Optional[str] = None
    style_no: Optional[str] = None
    quantity: int
    cut_quantity: float
    remaining_quantity: float
    completion_percentage: float
    status: str
    order_date: datetime
    days_since_created: int
    material_fulfillment: List[MaterialFulfillmentItem] = []
