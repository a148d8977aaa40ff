"""
Production Log Pydantic Schemas
"""
from pydantic import Field
from typing import Optional, List
from datetime import datetime
from decimal import Decimal

from gsms.schemas.common import CamelModel


# ============================================================================
# Request Schemas
# ============================================================================

class ProductionCreate(CamelModel):
    """Record a cutting run against an order"""
    order_id: int
    cut_qty: Decimal = Field(..., gt=0, description="Pieces cut")
    used_fabric: Decimal = Field(..., gt=0, description="Primary material consumed")
    wastage_qty: Decimal = Field(Decimal("0"), ge=0, description="Extra wastage seen during the run")
    remarks: Optional[str] = Field(None, max_length=2000)


class ExtraWastageEntry(CamelModel):
    material_id: int
    extra_wastage: Decimal = Decimal("0")
    wastage_reason: Optional[str] = Field(None, max_length=255)


class ExtraWastageCreate(CamelModel):
    """
    Record extra wastage without new usage.

    Entries with extraWastage <= 0 are ignored; at least one must remain.
    """
    order_id: int
    material_usage: List[ExtraWastageEntry] = Field(default_factory=list)
    remarks: Optional[str] = Field(None, max_length=2000)


class ProductionUpdate(CamelModel):
    """
    Correct a production log.

    Cutting runs take cutQty, usedFabric and wastageQty; extra wastage
    logs take materialUsage, which replaces their rows.
    """
    cut_qty: Optional[Decimal] = Field(None, gt=0)
    used_fabric: Optional[Decimal] = Field(None, gt=0)
    wastage_qty: Optional[Decimal] = Field(None, ge=0)
    material_usage: Optional[List[ExtraWastageEntry]] = None
    remarks: Optional[str] = Field(None, max_length=2000)


# ============================================================================
# Response Schemas
# ============================================================================

class ProductionLogMaterialResponse(CamelModel):
    material_id: int
    material_name: Optional[str] = None
    item_code: Optional[str] = None
    used_qty: float
    standard_wastage: float
    extra_wastage: float
    total_wastage: float
    wastage_reason: Optional[str] = None


class ProductionLogResponse(CamelModel):
    """Production log with per-material breakdown"""
    id: int
    order_id: int
    po_no: Optional[str] = None
    date: datetime
    cut_qty: float
    used_fabric: float
    wastage_qty: float
    is_extra_wastage_only: bool
    remarks: Optional[str] = None
    material_usage: List[ProductionLogMaterialResponse] = []
    created_at: datetime
