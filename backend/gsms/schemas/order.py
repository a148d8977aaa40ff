"""
Order Pydantic Schemas
"""
from pydantic import Field, field_validator
from typing import Optional, List
from datetime import datetime

from gsms.core.status_config import OrderStatus
from gsms.schemas.common import CamelModel
from gsms.services.consumption_engine import format_percentage


# ============================================================================
# Request Schemas
# ============================================================================

class OrderCreate(CamelModel):
    """Create a production order for a product"""
    po_no: str = Field(..., min_length=1, max_length=50, description="Unique PO number")
    product_id: int
    quantity: int = Field(..., description="Pieces ordered")
    order_date: Optional[datetime] = None


class OrderStatusUpdate(CamelModel):
    status: OrderStatus


# ============================================================================
# Response Schemas
# ============================================================================

class MaterialConsumptionResponse(CamelModel):
    """Consumption report entry. wastePercentage is rendered with 2 decimals."""
    material_id: int
    material_name: str
    item_code: str
    unit: str
    is_primary: bool
    required_qty: float
    actual_used_qty: float
    standard_wastage: float
    extra_wastage: float
    wastage: float
    waste_percentage: str

    @field_validator("waste_percentage", mode="before")
    @classmethod
    def render_percentage(cls, v):
        return format_percentage(v)


class OrderResponse(CamelModel):
    """Order with its consumption report"""
    id: int
    po_no: str
    product_id: int
    style_no: Optional[str] = None
    item_name: Optional[str] = None
    quantity: int
    status: str
    order_date: datetime
    consumption_report: List[MaterialConsumptionResponse] = []
    created_at: datetime
    updated_at: datetime


class OrderDeleteResponse(CamelModel):
    message: str
    deleted_production_logs: int


# ============================================================================
# Usage Report Schemas
# ============================================================================

class WastageHistoryItem(CamelModel):
    """Wastage recorded for one material by one production log"""
    date: datetime
    standard_wastage: float
    extra_wastage: float
    total_wastage: float
    wastage_reason: Optional[str] = None
    is_extra_wastage_only: bool


class MaterialUsageItem(MaterialConsumptionResponse):
    current_stock: Optional[float] = None
    wastage_history: List[WastageHistoryItem] = []


class OrderUsageResponse(CamelModel):
    """Consumption report enriched with per-material wastage history"""
    order_id: int
    po_no: str
    style_no: Optional[str] = None
    item_name: Optional[str] = None
    quantity: int
    status: str
    materials: List[MaterialUsageItem] = []
