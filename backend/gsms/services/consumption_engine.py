"""
Order Consumption Engine

Builds the consumption report of an order from its product BOM and keeps
the wastage figures of each entry consistent:

    required_qty     = quantity_per_piece * order quantity
    standard_wastage = required_qty * expected_wastage_percentage / 100
    wastage          = standard_wastage + extra_wastage
    waste_percentage = wastage / (actual_used_qty or required_qty) * 100

All arithmetic is done in Decimal. Percentages are stored as numbers and
only turned into "10.00" style strings by format_percentage() when a
response is rendered.
"""
from decimal import Decimal, ROUND_HALF_UP
from typing import List, Optional

from gsms.exceptions import ValidationError
from gsms.logging_config import get_logger
from gsms.models.order import Order, MaterialConsumption
from gsms.models.product import Product

logger = get_logger(__name__)

ZERO = Decimal("0")
HUNDRED = Decimal("100")
STORED_PERCENT_PLACES = Decimal("0.0001")
DISPLAY_PERCENT_PLACES = Decimal("0.01")


def to_decimal(value) -> Decimal:
    """Coerce a quantity (None, int, float, str, Decimal) to Decimal."""
    if value is None:
        return ZERO
    if isinstance(value, Decimal):
        return value
    if isinstance(value, float):
        return Decimal(str(value))
    return Decimal(value)


def compute_waste_percentage(wastage, actual_used_qty, required_qty) -> Decimal:
    """
    Waste percentage of a consumption entry.

    The denominator is actual usage once production has consumed anything,
    otherwise the required quantity. Returns 0 when there is no wastage or
    no positive denominator.
    """
    wastage = to_decimal(wastage)
    actual_used_qty = to_decimal(actual_used_qty)
    required_qty = to_decimal(required_qty)

    denominator = actual_used_qty if actual_used_qty > 0 else required_qty
    if wastage == 0 or denominator <= 0:
        return ZERO
    return (wastage / denominator * HUNDRED).quantize(STORED_PERCENT_PLACES, rounding=ROUND_HALF_UP)


def format_percentage(value) -> str:
    """Render a percentage with exactly 2 decimals ("5.00")."""
    if isinstance(value, str):
        value = Decimal(value) if value else ZERO
    return str(to_decimal(value).quantize(DISPLAY_PERCENT_PLACES, rounding=ROUND_HALF_UP))


def standard_wastage_for(required_qty, expected_wastage_percentage) -> Decimal:
    return to_decimal(required_qty) * to_decimal(expected_wastage_percentage) / HUNDRED


def refresh_wastage(entry: MaterialConsumption) -> None:
    """Re-derive wastage and waste_percentage from the stored components."""
    entry.wastage = to_decimal(entry.standard_wastage) + to_decimal(entry.extra_wastage)
    entry.waste_percentage = compute_waste_percentage(
        entry.wastage, entry.actual_used_qty, entry.required_qty
    )


def build_consumption_report(product: Product, order_quantity: int) -> List[MaterialConsumption]:
    """
    Expand a product BOM into consumption entries for an order.

    Args:
        product: Product with materials_required loaded
        order_quantity: Pieces ordered

    Returns:
        Unsaved MaterialConsumption rows, one per BOM line, in BOM order

    Raises:
        ValidationError: If the quantity is not positive, a BOM line has a
            non-positive quantity per piece, or its material cannot be resolved
    """
    if order_quantity is None or order_quantity <= 0:
        raise ValidationError("Quantity must be a positive number", field="quantity", value=order_quantity)

    entries = []
    for sequence, requirement in enumerate(product.materials_required):
        material = requirement.material
        if material is None:
            raise ValidationError(
                f"Material {requirement.material_id} of product {product.style_no} not found",
                field="material_id",
                value=requirement.material_id,
            )

        quantity_per_piece = to_decimal(requirement.quantity_per_piece)
        if quantity_per_piece <= 0:
            raise ValidationError(
                f"Quantity per piece for {material.name} must be positive",
                field="quantity_per_piece",
                value=quantity_per_piece,
            )

        required_qty = quantity_per_piece * Decimal(order_quantity)
        standard_wastage = standard_wastage_for(required_qty, requirement.expected_wastage_percentage)

        entry = MaterialConsumption(
            material_id=material.id,
            sequence=sequence,
            material_name=material.name,
            item_code=material.item_code,
            unit=material.unit,
            is_primary=bool(requirement.is_primary),
            required_qty=required_qty,
            actual_used_qty=ZERO,
            standard_wastage=standard_wastage,
            extra_wastage=ZERO,
        )
        refresh_wastage(entry)
        entries.append(entry)

    return entries


def recompute_standard_wastage(order: Order, product: Product) -> int:
    """
    Re-derive standard wastage of an order from the product's current BOM.

    Entries are matched by material; entries whose material is no longer in
    the BOM are left as they are. required_qty and extra_wastage never
    change, so calling this twice gives the same stored values.

    Returns:
        Number of consumption entries updated
    """
    entries_by_material = {entry.material_id: entry for entry in order.consumption_report}

    updated = 0
    for requirement in product.materials_required:
        entry = entries_by_material.get(requirement.material_id)
        if entry is None:
            continue
        entry.standard_wastage = standard_wastage_for(
            entry.required_qty, requirement.expected_wastage_percentage
        )
        refresh_wastage(entry)
        updated += 1

    logger.debug(
        "Recomputed standard wastage",
        extra={"po_no": order.po_no, "entries_updated": updated},
    )
    return updated


def get_primary_entry(order: Order) -> Optional[MaterialConsumption]:
    """The consumption entry production events draw from."""
    for entry in order.consumption_report:
        if entry.is_primary:
            return entry
    return None


def find_entry(order: Order, material_id: int) -> Optional[MaterialConsumption]:
    for entry in order.consumption_report:
        if entry.material_id == material_id:
            return entry
    return None
