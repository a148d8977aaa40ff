"""
Reports API Endpoints

Read-only summaries. Export rendering (PDF/Excel) is done by clients.
"""
from fastapi import APIRouter, Depends, Query
from typing import List, Optional
from datetime import datetime
from sqlalchemy.orm import Session

from gsms.core.status_config import OrderStatus
from gsms.db.session import get_db
from gsms.schemas.report import (
    FabricUsageItem,
    OrderFulfillmentItem,
    StockBalanceItem,
    WastageAnalysisItem,
)
from gsms.services import report_service

router = APIRouter()


@router.get("/wastage-analysis", response_model=List[WastageAnalysisItem])
def wastage_analysis(
    start_date: Optional[datetime] = Query(None, alias="startDate"),
    end_date: Optional[datetime] = Query(None, alias="endDate"),
    product_id: Optional[int] = Query(None, alias="productId"),
    db: Session = Depends(get_db),
):
    """
    Wastage per material over production logs

    - **startDate** / **endDate**: Limit to logs in this range
    - **productId**: Only orders of this product
    """
    return report_service.get_wastage_analysis(
        db,
        start_date=start_date,
        end_date=end_date,
        product_id=product_id,
    )


@router.get("/fabric-usage", response_model=List[FabricUsageItem])
def fabric_usage(
    start_date: Optional[datetime] = Query(None, alias="startDate"),
    end_date: Optional[datetime] = Query(None, alias="endDate"),
    order_id: Optional[int] = Query(None, alias="orderId"),
    db: Session = Depends(get_db),
):
    """
    Material usage and wastage with per-order and per-day breakdown

    - **startDate** / **endDate**: Limit to logs in this range
    - **orderId**: Only logs of this order
    """
    return report_service.get_fabric_usage_summary(
        db,
        start_date=start_date,
        end_date=end_date,
        order_id=order_id,
    )


@router.get("/stock-balance", response_model=List[StockBalanceItem])
def stock_balance(
    material_id: Optional[int] = Query(None, alias="materialId"),
    db: Session = Depends(get_db),
):
    """Opening, received, issued and current stock with movement history"""
    return report_service.get_stock_balance(db, material_id=material_id)


@router.get("/order-fulfillment", response_model=List[OrderFulfillmentItem])
def order_fulfillment(
    status: Optional[OrderStatus] = None,
    db: Session = Depends(get_db),
):
    """Cut quantity and material usage progress per order"""
    return report_service.get_order_fulfillment(db, status=status.value if status else None)
