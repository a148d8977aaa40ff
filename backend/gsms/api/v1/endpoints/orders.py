"""
Orders API Endpoints

Order lifecycle:
- POST creates a PENDING order and snapshots the product BOM into its
  consumption report
- PATCH /status moves it forward (PENDING -> PRODUCING -> COMPLETED);
  starting production checks and issues stock for every material
- DELETE removes the order together with its production logs
"""
from fastapi import APIRouter, Depends, Query
from typing import List, Optional
from sqlalchemy.orm import Session

from gsms.core.status_config import OrderStatus
from gsms.db.session import atomic, get_db
from gsms.schemas.common import ErrorResponse
from gsms.schemas.order import (
    OrderCreate,
    OrderDeleteResponse,
    OrderResponse,
    OrderStatusUpdate,
    OrderUsageResponse,
)
from gsms.services import order_service, report_service
from gsms.services.order_status import order_status_service
from gsms.logging_config import get_logger

router = APIRouter()
logger = get_logger(__name__)


@router.get("", response_model=List[OrderResponse])
def list_orders(
    status: Optional[OrderStatus] = None,
    product_id: Optional[int] = Query(None, alias="productId"),
    db: Session = Depends(get_db),
):
    """
    List orders, newest first

    - **status**: PENDING, PRODUCING or COMPLETED
    - **productId**: Orders of one product
    """
    orders = order_service.list_orders(
        db,
        status=status.value if status else None,
        product_id=product_id,
    )
    return [OrderResponse.model_validate(o) for o in orders]


@router.get("/{order_id}", response_model=OrderResponse, responses={404: {"model": ErrorResponse}})
def get_order(order_id: int, db: Session = Depends(get_db)):
    order = order_service.get_order(db, order_id)
    return OrderResponse.model_validate(order)


@router.post("", response_model=OrderResponse, status_code=201, responses={400: {"model": ErrorResponse}})
def create_order(request: OrderCreate, db: Session = Depends(get_db)):
    """Create an order and build its consumption report"""
    with atomic(db):
        order = order_service.create_order(
            db,
            po_no=request.po_no,
            product_id=request.product_id,
            quantity=request.quantity,
            order_date=request.order_date,
        )
    db.refresh(order)
    return OrderResponse.model_validate(order)


@router.patch("/{order_id}/status", response_model=OrderResponse, responses={400: {"model": ErrorResponse}})
def update_order_status(
    order_id: int,
    request: OrderStatusUpdate,
    db: Session = Depends(get_db),
):
    """
    Move an order to its next status

    PENDING -> PRODUCING issues stock for every material. If any material
    is short, nothing is issued and the response lists every shortfall in
    insufficientMaterials.
    """
    with atomic(db):
        order = order_service.get_order(db, order_id)
        order = order_status_service.change_status(db, order, request.status.value)
    db.refresh(order)
    return OrderResponse.model_validate(order)


@router.get("/{order_id}/usage", response_model=OrderUsageResponse)
def get_order_usage(order_id: int, db: Session = Depends(get_db)):
    """Consumption report with per-material wastage history"""
    return report_service.get_order_usage(db, order_id)


@router.delete("/{order_id}", response_model=OrderDeleteResponse, responses={404: {"model": ErrorResponse}})
def delete_order(order_id: int, db: Session = Depends(get_db)):
    """Delete an order and all its production logs in one transaction"""
    with atomic(db):
        deleted_logs = order_service.delete_order(db, order_id)
    return OrderDeleteResponse(
        message="Order and associated production logs deleted successfully",
        deleted_production_logs=deleted_logs,
    )
