"""
Product wastage change propagation

Editing the expected wastage of a product BOM publishes a
ProductWastageChanged event. The projection re-derives standard wastage
for every open (PENDING or PRODUCING) order of that product.

Each order is recomputed inside its own savepoint: an order that fails is
rolled back to its previous figures, logged and reported, and the
remaining orders are still processed. The recompute only reads the
current BOM, so projecting the same event twice is harmless.
"""
from dataclasses import dataclass, field
from typing import Any, Dict, List, Tuple

from sqlalchemy.orm import Session

from gsms.core.status_config import OPEN_ORDER_STATUSES
from gsms.exceptions import NotFoundError
from gsms.logging_config import get_logger
from gsms.models.order import Order
from gsms.models.product import Product
from gsms.services.consumption_engine import recompute_standard_wastage

logger = get_logger(__name__)


@dataclass(frozen=True)
class ProductWastageChanged:
    """Expected wastage changed on some BOM lines of a product"""
    product_id: int
    material_ids: Tuple[int, ...] = ()


@dataclass
class WastageProjectionResult:
    updated_orders: List[int] = field(default_factory=list)
    failed_orders: List[Dict[str, Any]] = field(default_factory=list)


def get_open_orders(db: Session, product_id: int) -> List[Order]:
    return (
        db.query(Order)
        .filter(
            Order.product_id == product_id,
            Order.status.in_([s.value for s in OPEN_ORDER_STATUSES]),
        )
        .order_by(Order.id)
        .all()
    )


def project_wastage_change(db: Session, event: ProductWastageChanged) -> WastageProjectionResult:
    """
    Apply a wastage change to the open orders of the product.

    Args:
        db: Database session (caller commits)
        event: The published change

    Returns:
        IDs of orders that were recomputed and details of those that failed
    """
    product = db.query(Product).filter(Product.id == event.product_id).first()
    if not product:
        raise NotFoundError("Product", event.product_id)

    result = WastageProjectionResult()
    for order in get_open_orders(db, product.id):
        try:
            with db.begin_nested():
                recompute_standard_wastage(order, product)
        except Exception as e:
            logger.exception(
                "Failed to recompute wastage for order",
                extra={"po_no": order.po_no, "product_id": product.id},
            )
            result.failed_orders.append({
                "order_id": order.id,
                "po_no": order.po_no,
                "error": str(e),
            })
            continue
        result.updated_orders.append(order.id)

    logger.info(
        "Wastage change projected",
        extra={
            "product_id": product.id,
            "material_ids": list(event.material_ids),
            "updated_orders": len(result.updated_orders),
            "failed_orders": len(result.failed_orders),
        },
    )
    return result


def publish(db: Session, event: ProductWastageChanged) -> WastageProjectionResult:
    """Publish a wastage change and run its projection in the current transaction."""
    return project_wastage_change(db, event)
