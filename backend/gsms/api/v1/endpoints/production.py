"""
Production API Endpoints

Cutting runs and extra wastage corrections posted against orders.
"""
from fastapi import APIRouter, Depends, Query
from typing import List, Optional
from sqlalchemy.orm import Session

from gsms.db.session import atomic, get_db
from gsms.schemas.common import ErrorResponse
from gsms.schemas.production import (
    ExtraWastageCreate,
    ProductionCreate,
    ProductionLogResponse,
    ProductionUpdate,
)
from gsms.services import order_service, production_service
from gsms.logging_config import get_logger

router = APIRouter()
logger = get_logger(__name__)


@router.get("", response_model=List[ProductionLogResponse])
def list_production_logs(
    order_id: Optional[int] = Query(None, alias="orderId"),
    db: Session = Depends(get_db),
):
    """All production logs, newest first"""
    logs = production_service.list_production_logs(db, order_id=order_id)
    return [ProductionLogResponse.model_validate(log) for log in logs]


@router.get("/order/{order_id}", response_model=List[ProductionLogResponse])
def list_order_production_logs(order_id: int, db: Session = Depends(get_db)):
    """Production logs of one order, newest first"""
    order_service.get_order(db, order_id)
    logs = production_service.list_production_logs(db, order_id=order_id)
    return [ProductionLogResponse.model_validate(log) for log in logs]


@router.get("/{log_id}", response_model=ProductionLogResponse, responses={404: {"model": ErrorResponse}})
def get_production_log(log_id: int, db: Session = Depends(get_db)):
    log = production_service.get_production_log(db, log_id)
    return ProductionLogResponse.model_validate(log)


@router.post("", response_model=ProductionLogResponse, status_code=201, responses={400: {"model": ErrorResponse}})
def record_production(request: ProductionCreate, db: Session = Depends(get_db)):
    """
    Record a cutting run

    usedFabric is drawn from the order's primary material and added to its
    actual usage; wastageQty is added as extra wastage. A PENDING order
    moves to PRODUCING.
    """
    with atomic(db):
        log = production_service.record_production(
            db,
            request.order_id,
            cut_qty=request.cut_qty,
            used_fabric=request.used_fabric,
            wastage_qty=request.wastage_qty,
            remarks=request.remarks,
        )
    db.refresh(log)
    return ProductionLogResponse.model_validate(log)


@router.post(
    "/extra-wastage",
    response_model=ProductionLogResponse,
    status_code=201,
    responses={400: {"model": ErrorResponse}},
)
def record_extra_wastage(request: ExtraWastageCreate, db: Session = Depends(get_db)):
    """
    Record extra wastage for materials of an order

    Entries with extraWastage of 0 or less are ignored; at least one
    positive entry is required.
    """
    with atomic(db):
        log = production_service.record_extra_wastage(
            db,
            request.order_id,
            [item.model_dump() for item in request.material_usage],
            remarks=request.remarks,
        )
    db.refresh(log)
    return ProductionLogResponse.model_validate(log)


@router.patch("/{log_id}", response_model=ProductionLogResponse, responses={400: {"model": ErrorResponse}})
def update_production_log(log_id: int, request: ProductionUpdate, db: Session = Depends(get_db)):
    """
    Correct a production log

    The log's old usage and wastage are taken off the order's consumption
    report and the new figures applied in one transaction. A changed
    usedFabric is issued from or returned to stock.
    """
    with atomic(db):
        log = production_service.update_production_log(
            db,
            log_id,
            cut_qty=request.cut_qty,
            used_fabric=request.used_fabric,
            wastage_qty=request.wastage_qty,
            material_usage=(
                [item.model_dump() for item in request.material_usage]
                if request.material_usage is not None else None
            ),
            remarks=request.remarks,
        )
    db.refresh(log)
    return ProductionLogResponse.model_validate(log)
