"""
Product / BOM Pydantic Schemas
"""
from pydantic import Field
from typing import Optional, List
from datetime import datetime
from decimal import Decimal

from gsms.schemas.common import CamelModel


# ============================================================================
# BOM Line Schemas
# ============================================================================

class MaterialRequirementCreate(CamelModel):
    """One material line of a product BOM"""
    material_id: int = Field(..., description="Raw material ID")
    quantity_per_piece: Decimal = Field(..., gt=0, description="Quantity needed per garment")
    expected_wastage_percentage: Decimal = Field(Decimal("0"), ge=0, le=100)
    wastage_remarks: Optional[str] = Field(None, max_length=1000)
    is_primary: bool = Field(False, description="Material consumed by production events")


class MaterialRequirementResponse(CamelModel):
    """BOM line with material details"""
    id: int
    material_id: int
    material_name: Optional[str] = None
    item_code: Optional[str] = None
    unit: Optional[str] = None
    quantity_per_piece: float
    expected_wastage_percentage: float
    wastage_remarks: Optional[str] = None
    is_primary: bool
    sequence: int


# ============================================================================
# Product Schemas
# ============================================================================

class ProductCreate(CamelModel):
    """Create a product with its BOM"""
    style_no: str = Field(..., min_length=1, max_length=50)
    item_name: str = Field(..., min_length=1, max_length=255)
    description: Optional[str] = None
    wastage_remarks: Optional[str] = None
    materials_required: List[MaterialRequirementCreate] = Field(default_factory=list)


class ProductUpdate(CamelModel):
    """
    Update a product.

    When materials_required is given it replaces the whole BOM. Existing
    orders keep their consumption report.
    """
    style_no: Optional[str] = Field(None, min_length=1, max_length=50)
    item_name: Optional[str] = Field(None, min_length=1, max_length=255)
    description: Optional[str] = None
    wastage_remarks: Optional[str] = None
    materials_required: Optional[List[MaterialRequirementCreate]] = None


class ProductResponse(CamelModel):
    """Product with BOM lines"""
    id: int
    style_no: str
    item_name: str
    description: Optional[str] = None
    wastage_remarks: Optional[str] = None
    materials_required: List[MaterialRequirementResponse] = []
    created_at: datetime
    updated_at: datetime


# ============================================================================
# Wastage Update Schemas
# ============================================================================

class MaterialWastageUpdate(CamelModel):
    material_id: int
    expected_wastage_percentage: Decimal = Field(..., ge=0, le=100)
    remarks: Optional[str] = Field(None, max_length=1000)


class ProductWastageUpdate(CamelModel):
    """New expected wastage for some BOM lines of a product"""
    material_wastage: List[MaterialWastageUpdate] = Field(..., min_length=1)
    remarks: Optional[str] = None


class FailedOrderRecompute(CamelModel):
    order_id: int
    po_no: str
    error: str


class ProductWastageUpdateResponse(CamelModel):
    """Updated product plus the open orders the change reached"""
    product: ProductResponse
    updated_orders: List[int] = []
    failed_orders: List[FailedOrderRecompute] = []
