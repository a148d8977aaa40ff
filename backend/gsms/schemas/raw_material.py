"""
Raw Material Pydantic Schemas
"""
from pydantic import Field
from typing import Optional, List
from datetime import datetime
from decimal import Decimal

from gsms.core.uom_config import UnitOfMeasure
from gsms.schemas.common import CamelModel


# ============================================================================
# Request Schemas
# ============================================================================

class RawMaterialCreate(CamelModel):
    """Create a new raw material"""
    item_code: str = Field(..., min_length=1, max_length=50, description="Unique item code")
    name: str = Field(..., min_length=1, max_length=255)
    description: Optional[str] = Field(None, max_length=2000)
    unit: UnitOfMeasure
    opening_stock: Decimal = Field(Decimal("0"), ge=0, description="Stock on hand at creation")


class RawMaterialUpdate(CamelModel):
    """Update descriptive fields. Stock only changes through receipts and issues."""
    name: Optional[str] = Field(None, min_length=1, max_length=255)
    description: Optional[str] = Field(None, max_length=2000)
    unit: Optional[UnitOfMeasure] = None


class ReceiveStockRequest(CamelModel):
    """Receive a batch of material into stock"""
    quantity: Decimal = Field(..., gt=0)
    received_date: Optional[datetime] = None
    remarks: Optional[str] = Field(None, max_length=1000)


# ============================================================================
# Response Schemas
# ============================================================================

class ReceivedBatchResponse(CamelModel):
    id: int
    quantity: float
    received_date: datetime
    remarks: Optional[str] = None


class RawMaterialResponse(CamelModel):
    """Raw material with stock and receipt history"""
    id: int
    item_code: str
    name: str
    description: Optional[str] = None
    unit: str
    opening_stock: float
    current_stock: float
    updated_date: datetime
    received_batches: List[ReceivedBatchResponse] = []
    created_at: datetime
    updated_at: datetime


class UnitChoice(CamelModel):
    code: str
    label: str
