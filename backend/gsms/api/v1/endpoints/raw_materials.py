"""
Raw Materials API Endpoints
"""
from fastapi import APIRouter, Depends
from typing import List, Optional
from sqlalchemy.orm import Session

from gsms.core.uom_config import get_unit_choices
from gsms.db.session import atomic, get_db
from gsms.schemas.common import MessageResponse
from gsms.schemas.raw_material import (
    RawMaterialCreate,
    RawMaterialResponse,
    RawMaterialUpdate,
    ReceiveStockRequest,
    UnitChoice,
)
from gsms.services import material_service
from gsms.logging_config import get_logger

router = APIRouter()
logger = get_logger(__name__)


@router.get("", response_model=List[RawMaterialResponse])
def list_raw_materials(
    search: Optional[str] = None,
    db: Session = Depends(get_db),
):
    """
    List raw materials

    - **search**: Match item code or name
    """
    materials = material_service.list_materials(db, search=search)
    return [RawMaterialResponse.model_validate(m) for m in materials]


@router.get("/units", response_model=List[UnitChoice])
def list_units():
    """Units of measure a material can be stocked in"""
    return get_unit_choices()


@router.get("/{material_id}", response_model=RawMaterialResponse)
def get_raw_material(material_id: int, db: Session = Depends(get_db)):
    material = material_service.get_material(db, material_id)
    return RawMaterialResponse.model_validate(material)


@router.post("", response_model=RawMaterialResponse, status_code=201)
def create_raw_material(request: RawMaterialCreate, db: Session = Depends(get_db)):
    """Create a raw material with its opening stock"""
    with atomic(db):
        material = material_service.create_material(
            db,
            item_code=request.item_code,
            name=request.name,
            unit=request.unit,
            description=request.description,
            opening_stock=request.opening_stock,
        )
    db.refresh(material)
    return RawMaterialResponse.model_validate(material)


@router.put("/{material_id}", response_model=RawMaterialResponse)
def update_raw_material(
    material_id: int,
    request: RawMaterialUpdate,
    db: Session = Depends(get_db),
):
    with atomic(db):
        material = material_service.update_material(
            db,
            material_id,
            name=request.name,
            description=request.description,
            unit=request.unit,
        )
    db.refresh(material)
    return RawMaterialResponse.model_validate(material)


@router.post("/{material_id}/receive", response_model=RawMaterialResponse, status_code=201)
def receive_raw_material(
    material_id: int,
    request: ReceiveStockRequest,
    db: Session = Depends(get_db),
):
    """
    Receive a batch of material into stock

    Adds a received batch and a receipt entry in the stock ledger.
    """
    with atomic(db):
        material_service.receive_stock(
            db,
            material_id,
            request.quantity,
            received_date=request.received_date,
            remarks=request.remarks,
        )
    material = material_service.get_material(db, material_id)
    return RawMaterialResponse.model_validate(material)


@router.delete("/{material_id}", response_model=MessageResponse)
def delete_raw_material(material_id: int, db: Session = Depends(get_db)):
    """Delete a material that no product or order uses"""
    with atomic(db):
        material_service.delete_material(db, material_id)
    return MessageResponse(message="Raw material deleted successfully")
