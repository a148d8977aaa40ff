"""
Product Service

Garment styles and their BOM (material requirements). Exactly one BOM
line is the primary material, the one production events consume.

Callers own the transaction: nothing here commits.
"""
from typing import Any, Dict, Iterable, List, Optional, Tuple

from sqlalchemy.orm import Session

from gsms.exceptions import DuplicateError, NotFoundError, ValidationError
from gsms.logging_config import get_logger
from gsms.models.order import Order
from gsms.models.product import Product, MaterialRequirement
from gsms.models.raw_material import RawMaterial
from gsms.services.consumption_engine import to_decimal
from gsms.services.wastage_events import (
    ProductWastageChanged,
    WastageProjectionResult,
    publish,
)

logger = get_logger(__name__)


def get_product(db: Session, product_id: int) -> Product:
    """
    Get a product by ID

    Raises:
        NotFoundError: If the product does not exist
    """
    product = db.query(Product).filter(Product.id == product_id).first()
    if not product:
        raise NotFoundError("Product", product_id)
    return product


def list_products(db: Session, search: Optional[str] = None) -> List[Product]:
    query = db.query(Product)
    if search:
        pattern = f"%{search}%"
        query = query.filter(
            (Product.style_no.ilike(pattern)) | (Product.item_name.ilike(pattern))
        )
    return query.order_by(Product.style_no).all()


def get_bom(db: Session, product_id: int) -> Tuple[Product, List[MaterialRequirement]]:
    """Product and its BOM lines in sequence order."""
    product = get_product(db, product_id)
    return product, list(product.materials_required)


def _build_requirements(db: Session, lines: Iterable[Dict[str, Any]]) -> List[MaterialRequirement]:
    """
    Validate BOM input and turn it into MaterialRequirement rows.

    If no line is flagged primary the first one is; flagging more than one
    is rejected.
    """
    lines = list(lines)
    primary_count = sum(1 for line in lines if line.get("is_primary"))
    if primary_count > 1:
        raise ValidationError("Only one BOM line can be the primary material", field="is_primary")

    requirements = []
    seen = set()
    for sequence, line in enumerate(lines):
        material_id = line.get("material_id")
        if material_id in seen:
            raise ValidationError(
                f"Material {material_id} appears more than once in the BOM",
                field="material_id",
                value=material_id,
            )
        seen.add(material_id)

        material = db.query(RawMaterial).filter(RawMaterial.id == material_id).first()
        if not material:
            raise ValidationError(
                f"Material with ID {material_id} does not exist",
                field="material_id",
                value=material_id,
            )

        quantity_per_piece = to_decimal(line.get("quantity_per_piece"))
        if quantity_per_piece <= 0:
            raise ValidationError(
                "Quantity per piece must be a positive number",
                field="quantity_per_piece",
                value=quantity_per_piece,
            )

        wastage_pct = to_decimal(line.get("expected_wastage_percentage"))
        if wastage_pct < 0 or wastage_pct > 100:
            raise ValidationError(
                "Expected wastage percentage must be between 0 and 100",
                field="expected_wastage_percentage",
                value=wastage_pct,
            )

        requirements.append(MaterialRequirement(
            material_id=material.id,
            material=material,
            sequence=sequence,
            quantity_per_piece=quantity_per_piece,
            expected_wastage_percentage=wastage_pct,
            wastage_remarks=line.get("wastage_remarks"),
            is_primary=bool(line.get("is_primary")),
        ))

    if requirements and primary_count == 0:
        requirements[0].is_primary = True

    return requirements


def create_product(
    db: Session,
    *,
    style_no: str,
    item_name: str,
    description: Optional[str] = None,
    wastage_remarks: Optional[str] = None,
    materials_required: Iterable[Dict[str, Any]] = (),
) -> Product:
    """
    Create a product with its BOM.

    Args:
        db: Database session
        style_no: Unique style number
        item_name: Display name
        description: Optional description
        wastage_remarks: Product-level wastage note
        materials_required: BOM lines as dicts (material_id, quantity_per_piece,
            expected_wastage_percentage, wastage_remarks, is_primary)

    Raises:
        DuplicateError: If the style number is taken
        ValidationError: If a BOM line is invalid
    """
    style_no = style_no.strip()
    if db.query(Product).filter(Product.style_no == style_no).first():
        raise DuplicateError("Product", field="style_no", value=style_no)

    product = Product(
        style_no=style_no,
        item_name=item_name,
        description=description,
        wastage_remarks=wastage_remarks,
    )
    product.materials_required = _build_requirements(db, materials_required)
    db.add(product)
    db.flush()

    logger.info(
        "Product created",
        extra={"style_no": product.style_no, "bom_lines": len(product.materials_required)},
    )
    return product


def update_product(
    db: Session,
    product_id: int,
    *,
    style_no: Optional[str] = None,
    item_name: Optional[str] = None,
    description: Optional[str] = None,
    wastage_remarks: Optional[str] = None,
    materials_required: Optional[Iterable[Dict[str, Any]]] = None,
) -> Product:
    """
    Update a product. A given materials_required replaces the whole BOM.

    Orders already created keep their consumption report as it is, except
    that a changed expected wastage percentage on a material that stays in
    the BOM is pushed to open orders like update_product_wastage() does.
    """
    product = get_product(db, product_id)

    if style_no is not None and style_no.strip() != product.style_no:
        style_no = style_no.strip()
        if db.query(Product).filter(Product.style_no == style_no, Product.id != product.id).first():
            raise DuplicateError("Product", field="style_no", value=style_no)
        product.style_no = style_no
    if item_name is not None:
        product.item_name = item_name
    if description is not None:
        product.description = description
    if wastage_remarks is not None:
        product.wastage_remarks = wastage_remarks

    changed_material_ids = []
    if materials_required is not None:
        old_wastage = {
            line.material_id: to_decimal(line.expected_wastage_percentage)
            for line in product.materials_required
        }
        requirements = _build_requirements(db, materials_required)
        product.materials_required.clear()
        db.flush()
        product.materials_required.extend(requirements)

        changed_material_ids = [
            line.material_id for line in requirements
            if line.material_id in old_wastage
            and to_decimal(line.expected_wastage_percentage) != old_wastage[line.material_id]
        ]

    db.flush()
    logger.info("Product updated", extra={"style_no": product.style_no})

    if changed_material_ids:
        result = publish(db, ProductWastageChanged(product.id, tuple(changed_material_ids)))
        if result.failed_orders:
            logger.warning(
                "Some open orders kept their previous wastage",
                extra={"style_no": product.style_no, "failed_orders": result.failed_orders},
            )
    return product


def delete_product(db: Session, product_id: int) -> None:
    """
    Delete a product no order refers to.

    Raises:
        NotFoundError: If the product does not exist
        ValidationError: If orders reference it
    """
    product = get_product(db, product_id)
    order_count = db.query(Order).filter(Order.product_id == product.id).count()
    if order_count:
        raise ValidationError(
            f"Cannot delete product {product.style_no}: used in {order_count} order(s)",
            details={"product_id": product.id, "orders": order_count},
        )
    db.delete(product)
    db.flush()
    logger.info("Product deleted", extra={"style_no": product.style_no})


def update_product_wastage(
    db: Session,
    product_id: int,
    material_wastage: Iterable[Dict[str, Any]],
    remarks: Optional[str] = None,
) -> Tuple[Product, WastageProjectionResult]:
    """
    Change expected wastage on BOM lines and push it to open orders.

    Args:
        db: Database session (caller commits)
        product_id: Product to change
        material_wastage: Dicts with material_id, expected_wastage_percentage
            and optional remarks
        remarks: New product-level wastage remarks

    Returns:
        The product and the projection result (updated/failed orders)

    Raises:
        NotFoundError: If the product does not exist
        ValidationError: If a material is not in the BOM or a percentage is
            outside 0-100
    """
    product = get_product(db, product_id)
    lines_by_material = {line.material_id: line for line in product.materials_required}

    changed_material_ids = []
    for item in material_wastage:
        material_id = item.get("material_id")
        line = lines_by_material.get(material_id)
        if line is None:
            raise ValidationError(
                f"Material {material_id} is not part of product {product.style_no}",
                field="material_id",
                value=material_id,
            )

        wastage_pct = to_decimal(item.get("expected_wastage_percentage"))
        if wastage_pct < 0 or wastage_pct > 100:
            raise ValidationError(
                "Expected wastage percentage must be between 0 and 100",
                field="expected_wastage_percentage",
                value=wastage_pct,
            )

        line.expected_wastage_percentage = wastage_pct
        if item.get("remarks") is not None:
            line.wastage_remarks = item.get("remarks")
        changed_material_ids.append(material_id)

    if remarks is not None:
        product.wastage_remarks = remarks
    db.flush()

    result = publish(db, ProductWastageChanged(product.id, tuple(changed_material_ids)))
    return product, result
