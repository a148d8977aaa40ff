"""
Order Service

Order creation (with its consumption report) and cascade deletion.
"""
from datetime import datetime
from typing import List, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from gsms.core.status_config import OrderStatus
from gsms.exceptions import DatabaseError, DuplicateError, NotFoundError, ValidationError
from gsms.logging_config import get_logger
from gsms.models.order import Order
from gsms.models.product import Product
from gsms.models.production_log import ProductionLog, ProductionLogMaterialUsage
from gsms.services.consumption_engine import build_consumption_report

logger = get_logger(__name__)


def get_order(db: Session, order_id: int) -> Order:
    """
    Get an order by ID

    Raises:
        NotFoundError: If the order does not exist
    """
    order = db.query(Order).filter(Order.id == order_id).first()
    if not order:
        raise NotFoundError("Order", order_id)
    return order


def list_orders(
    db: Session,
    *,
    status: Optional[str] = None,
    product_id: Optional[int] = None,
) -> List[Order]:
    """Orders, newest first."""
    query = db.query(Order)
    if status:
        query = query.filter(Order.status == status)
    if product_id:
        query = query.filter(Order.product_id == product_id)
    return query.order_by(Order.order_date.desc(), Order.id.desc()).all()


def create_order(
    db: Session,
    *,
    po_no: str,
    product_id: int,
    quantity: int,
    order_date: Optional[datetime] = None,
) -> Order:
    """
    Create an order and snapshot the product BOM into its consumption report.

    Args:
        db: Database session (caller commits)
        po_no: Unique PO number
        product_id: Product to make
        quantity: Pieces ordered, must be positive
        order_date: Defaults to now

    Returns:
        The new PENDING order with its consumption report

    Raises:
        ValidationError: If quantity is not positive or the product does not exist
        DuplicateError: If the PO number is taken
    """
    po_no = (po_no or "").strip()
    if not po_no:
        raise ValidationError("PO number is required", field="po_no")
    if quantity is None or quantity <= 0:
        raise ValidationError("Quantity must be a positive number", field="quantity", value=quantity)

    if db.query(Order).filter(Order.po_no == po_no).first():
        raise DuplicateError("Order", field="po_no", value=po_no)

    product = db.query(Product).filter(Product.id == product_id).first()
    if not product:
        raise ValidationError(
            f"Product with ID {product_id} does not exist",
            field="product_id",
            value=product_id,
        )

    order = Order(
        po_no=po_no,
        product_id=product.id,
        quantity=quantity,
        status=OrderStatus.PENDING.value,
        order_date=order_date or datetime.utcnow(),
    )
    order.consumption_report = build_consumption_report(product, quantity)
    db.add(order)
    db.flush()

    logger.info(
        "Order created",
        extra={
            "po_no": order.po_no,
            "style_no": product.style_no,
            "quantity": quantity,
            "materials": len(order.consumption_report),
        },
    )
    return order


def delete_order(db: Session, order_id: int) -> int:
    """
    Delete an order with its production logs.

    Log material rows, logs, consumption entries and the order go in one
    unit of work; the caller's atomic() rolls all of it back on failure.

    Returns:
        Number of production logs deleted

    Raises:
        NotFoundError: If the order does not exist
        DatabaseError: If the delete fails in the database
    """
    order = get_order(db, order_id)
    po_no = order.po_no

    try:
        deleted_logs = _delete_production_logs(db, order.id)
        db.delete(order)
        db.flush()
    except SQLAlchemyError as e:
        logger.error(f"Failed to delete order {po_no}: {e}")
        raise DatabaseError(f"Failed to delete order {po_no}", operation="delete_order") from e

    logger.info(
        "Order deleted",
        extra={"po_no": po_no, "deleted_production_logs": deleted_logs},
    )
    return deleted_logs


def _delete_production_logs(db: Session, order_id: int) -> int:
    log_ids = [
        row.id for row in db.query(ProductionLog.id).filter(ProductionLog.order_id == order_id).all()
    ]
    if not log_ids:
        return 0

    db.query(ProductionLogMaterialUsage).filter(
        ProductionLogMaterialUsage.production_log_id.in_(log_ids)
    ).delete(synchronize_session=False)
    deleted = db.query(ProductionLog).filter(
        ProductionLog.id.in_(log_ids)
    ).delete(synchronize_session=False)
    return deleted
