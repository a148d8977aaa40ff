"""
Products API Endpoints

Garment styles, their BOM and expected wastage.
"""
from fastapi import APIRouter, Depends
from typing import List, Optional
from sqlalchemy.orm import Session

from gsms.db.session import atomic, get_db
from gsms.schemas.common import MessageResponse
from gsms.schemas.product import (
    MaterialRequirementResponse,
    ProductCreate,
    ProductResponse,
    ProductUpdate,
    ProductWastageUpdate,
    ProductWastageUpdateResponse,
)
from gsms.services import product_service
from gsms.logging_config import get_logger

router = APIRouter()
logger = get_logger(__name__)


@router.get("", response_model=List[ProductResponse])
def list_products(
    search: Optional[str] = None,
    db: Session = Depends(get_db),
):
    """
    List products with their BOM

    - **search**: Match style number or item name
    """
    products = product_service.list_products(db, search=search)
    return [ProductResponse.model_validate(p) for p in products]


@router.get("/{product_id}", response_model=ProductResponse)
def get_product(product_id: int, db: Session = Depends(get_db)):
    product = product_service.get_product(db, product_id)
    return ProductResponse.model_validate(product)


@router.get("/{product_id}/bom")
def get_product_bom(product_id: int, db: Session = Depends(get_db)):
    """BOM lines joined with material name, code and unit"""
    product, lines = product_service.get_bom(db, product_id)
    return {
        "product": {
            "id": product.id,
            "styleNo": product.style_no,
            "itemName": product.item_name,
            "wastageRemarks": product.wastage_remarks,
        },
        "bom": [
            MaterialRequirementResponse.model_validate(line).model_dump(by_alias=True)
            for line in lines
        ],
    }


@router.post("", response_model=ProductResponse, status_code=201)
def create_product(request: ProductCreate, db: Session = Depends(get_db)):
    """Create a product. If no BOM line is marked primary, the first one is."""
    with atomic(db):
        product = product_service.create_product(
            db,
            style_no=request.style_no,
            item_name=request.item_name,
            description=request.description,
            wastage_remarks=request.wastage_remarks,
            materials_required=[line.model_dump() for line in request.materials_required],
        )
    db.refresh(product)
    return ProductResponse.model_validate(product)


@router.put("/{product_id}", response_model=ProductResponse)
def update_product(
    product_id: int,
    request: ProductUpdate,
    db: Session = Depends(get_db),
):
    """
    Update a product

    Sending materialsRequired replaces the BOM. Existing orders keep the
    consumption report they were created with, except that a changed
    expected wastage percentage on a kept material reaches open orders.
    """
    materials_required = None
    if request.materials_required is not None:
        materials_required = [line.model_dump() for line in request.materials_required]

    with atomic(db):
        product = product_service.update_product(
            db,
            product_id,
            style_no=request.style_no,
            item_name=request.item_name,
            description=request.description,
            wastage_remarks=request.wastage_remarks,
            materials_required=materials_required,
        )
    db.refresh(product)
    return ProductResponse.model_validate(product)


@router.patch("/{product_id}/wastage", response_model=ProductWastageUpdateResponse)
def update_product_wastage(
    product_id: int,
    request: ProductWastageUpdate,
    db: Session = Depends(get_db),
):
    """
    Update expected wastage on BOM lines

    Standard wastage of every PENDING or PRODUCING order of this product is
    recomputed. Orders that fail to recompute are listed in failedOrders and
    do not block the others.
    """
    with atomic(db):
        product, result = product_service.update_product_wastage(
            db,
            product_id,
            [item.model_dump() for item in request.material_wastage],
            remarks=request.remarks,
        )
    db.refresh(product)
    return ProductWastageUpdateResponse(
        product=ProductResponse.model_validate(product),
        updated_orders=result.updated_orders,
        failed_orders=result.failed_orders,
    )


@router.delete("/{product_id}", response_model=MessageResponse)
def delete_product(product_id: int, db: Session = Depends(get_db)):
    """Delete a product that no order uses"""
    with atomic(db):
        product_service.delete_product(db, product_id)
    return MessageResponse(message="Product deleted successfully")
