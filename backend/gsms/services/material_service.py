"""
Material Service

Raw material master data and the stock ledger. Every change to
current_stock goes through receive_stock() or issue_stock(), which also
append a StockMovement row, so the balance can always be reconciled
against opening stock plus receipts minus issues.

Callers own the transaction: nothing here commits.
"""
from datetime import datetime
from decimal import Decimal
from typing import List, Optional

from sqlalchemy.orm import Session

from gsms.core.config import settings
from gsms.exceptions import (
    DuplicateError,
    InsufficientStockError,
    NotFoundError,
    ValidationError,
)
from gsms.logging_config import get_logger
from gsms.models.order import MaterialConsumption
from gsms.models.product import MaterialRequirement
from gsms.models.raw_material import RawMaterial, ReceivedBatch, StockMovement
from gsms.services.consumption_engine import to_decimal

logger = get_logger(__name__)

MOVEMENT_RECEIPT = "receipt"
MOVEMENT_ISSUE = "issue"


def get_material(db: Session, material_id: int) -> RawMaterial:
    """
    Get a raw material by ID

    Raises:
        NotFoundError: If the material does not exist
    """
    material = db.query(RawMaterial).filter(RawMaterial.id == material_id).first()
    if not material:
        raise NotFoundError("Raw material", material_id)
    return material


def list_materials(db: Session, search: Optional[str] = None) -> List[RawMaterial]:
    query = db.query(RawMaterial)
    if search:
        pattern = f"%{search}%"
        query = query.filter(
            (RawMaterial.name.ilike(pattern)) | (RawMaterial.item_code.ilike(pattern))
        )
    return query.order_by(RawMaterial.item_code).all()


def create_material(
    db: Session,
    *,
    item_code: str,
    name: str,
    unit: str,
    description: Optional[str] = None,
    opening_stock: Decimal = Decimal("0"),
) -> RawMaterial:
    """
    Create a raw material.

    Args:
        db: Database session
        item_code: Unique item code
        name: Display name
        unit: Unit of measure code (m, kg, pcs, yd)
        description: Optional description
        opening_stock: Stock on hand when the material is registered

    Returns:
        The new material (flushed, not committed)

    Raises:
        DuplicateError: If the item code is taken
        ValidationError: If opening stock is negative
    """
    item_code = item_code.strip()
    opening_stock = to_decimal(opening_stock)
    if opening_stock < 0:
        raise ValidationError("Opening stock cannot be negative", field="opening_stock", value=opening_stock)

    existing = db.query(RawMaterial).filter(RawMaterial.item_code == item_code).first()
    if existing:
        raise DuplicateError("Raw material", field="item_code", value=item_code)

    material = RawMaterial(
        item_code=item_code,
        name=name,
        description=description,
        unit=str(getattr(unit, "value", unit)),
        opening_stock=opening_stock,
        current_stock=opening_stock,
        updated_date=datetime.utcnow(),
    )
    db.add(material)
    db.flush()

    logger.info(
        "Raw material created",
        extra={"item_code": material.item_code, "opening_stock": str(opening_stock)},
    )
    return material


def update_material(
    db: Session,
    material_id: int,
    *,
    name: Optional[str] = None,
    description: Optional[str] = None,
    unit: Optional[str] = None,
) -> RawMaterial:
    """
    Update descriptive fields of a material.

    Consumption reports keep the name, code and unit captured when their
    order was created.
    """
    material = get_material(db, material_id)
    if name is not None:
        material.name = name
    if description is not None:
        material.description = description
    if unit is not None:
        material.unit = str(getattr(unit, "value", unit))
    material.updated_date = datetime.utcnow()
    db.flush()
    return material


def delete_material(db: Session, material_id: int) -> None:
    """
    Delete a material that nothing references.

    Raises:
        NotFoundError: If the material does not exist
        ValidationError: If a product BOM or an order consumption report uses it
    """
    material = get_material(db, material_id)

    bom_refs = db.query(MaterialRequirement).filter(
        MaterialRequirement.material_id == material_id
    ).count()
    if bom_refs:
        raise ValidationError(
            f"Cannot delete material {material.item_code}: used in {bom_refs} product BOM line(s)",
            details={"material_id": material_id, "bom_lines": bom_refs},
        )

    order_refs = db.query(MaterialConsumption).filter(
        MaterialConsumption.material_id == material_id
    ).count()
    if order_refs:
        raise ValidationError(
            f"Cannot delete material {material.item_code}: used by {order_refs} order(s)",
            details={"material_id": material_id, "orders": order_refs},
        )

    db.delete(material)
    db.flush()
    logger.info("Raw material deleted", extra={"item_code": material.item_code})


def receive_stock(
    db: Session,
    material_id: int,
    quantity,
    *,
    received_date: Optional[datetime] = None,
    remarks: Optional[str] = None,
) -> ReceivedBatch:
    """
    Receive a batch into stock.

    Appends a ReceivedBatch, increases current_stock and writes a receipt
    movement.

    Raises:
        NotFoundError: If the material does not exist
        ValidationError: If quantity is not positive
    """
    quantity = to_decimal(quantity)
    if quantity <= 0:
        raise ValidationError("Received quantity must be positive", field="quantity", value=quantity)

    material = get_material(db, material_id)
    batch = ReceivedBatch(
        material_id=material.id,
        quantity=quantity,
        received_date=received_date or datetime.utcnow(),
        remarks=remarks,
    )
    db.add(batch)
    db.flush()

    material.current_stock = to_decimal(material.current_stock) + quantity
    material.updated_date = datetime.utcnow()
    db.add(StockMovement(
        material_id=material.id,
        movement_type=MOVEMENT_RECEIPT,
        quantity=quantity,
        reference_type="received_batch",
        reference_id=batch.id,
        notes=remarks or "Material received",
    ))
    db.flush()

    logger.info(
        "Stock received",
        extra={"item_code": material.item_code, "quantity": str(quantity)},
    )
    return batch


def issue_stock(
    db: Session,
    material: RawMaterial,
    quantity,
    *,
    reference_type: str,
    reference_id: Optional[int] = None,
    notes: Optional[str] = None,
    allow_negative: Optional[bool] = None,
) -> StockMovement:
    """
    Take stock out of a material and record the issue.

    Args:
        db: Database session
        material: Material to draw from
        quantity: Quantity to issue (positive)
        reference_type: What consumed the stock ("order", "production_log")
        reference_id: ID of that record
        notes: Free text for the ledger
        allow_negative: Override ALLOW_NEGATIVE_STOCK for this call

    Raises:
        InsufficientStockError: If the balance would go negative
    """
    quantity = to_decimal(quantity)
    if allow_negative is None:
        allow_negative = settings.ALLOW_NEGATIVE_STOCK

    current = to_decimal(material.current_stock)
    if current < quantity and not allow_negative:
        raise InsufficientStockError([{
            "material_name": material.name,
            "required_qty": float(quantity),
            "current_stock": float(current),
        }])

    material.current_stock = current - quantity
    material.updated_date = datetime.utcnow()
    movement = StockMovement(
        material_id=material.id,
        movement_type=MOVEMENT_ISSUE,
        quantity=quantity,
        reference_type=reference_type,
        reference_id=reference_id,
        notes=notes,
    )
    db.add(movement)
    return movement


def return_stock(
    db: Session,
    material: RawMaterial,
    quantity,
    *,
    reference_type: str,
    reference_id: Optional[int] = None,
    notes: Optional[str] = None,
) -> StockMovement:
    """Put previously issued stock back, recorded as a receipt movement."""
    quantity = to_decimal(quantity)
    if quantity <= 0:
        raise ValidationError("Returned quantity must be positive", field="quantity", value=quantity)

    material.current_stock = to_decimal(material.current_stock) + quantity
    material.updated_date = datetime.utcnow()
    movement = StockMovement(
        material_id=material.id,
        movement_type=MOVEMENT_RECEIPT,
        quantity=quantity,
        reference_type=reference_type,
        reference_id=reference_id,
        notes=notes,
    )
    db.add(movement)
    return movement


def ledger_balance(db: Session, material: RawMaterial) -> Decimal:
    """Opening stock plus receipts minus issues, from the movement ledger."""
    balance = to_decimal(material.opening_stock)
    movements = db.query(StockMovement).filter(StockMovement.material_id == material.id).all()
    for movement in movements:
        if movement.movement_type == MOVEMENT_RECEIPT:
            balance += to_decimal(movement.quantity)
        else:
            balance -= to_decimal(movement.quantity)
    return balance
