"""
Order Status Management Service

Runs the named transitions of the order state machine:

- start_production (PENDING -> PRODUCING): every material in the
  consumption report is checked first; only if all of them are covered is
  stock issued for each. All shortfalls are reported together.
- production_recorded (PENDING -> PRODUCING): taken when a production
  event is posted; no stock check.
- complete (PRODUCING -> COMPLETED): no side effects.

Nothing here commits; callers wrap the work in atomic().
"""
from collections import OrderedDict
from decimal import Decimal
from typing import Dict, List, Optional

from sqlalchemy.orm import Session

from gsms.core.status_config import (
    COMPLETE,
    PRODUCTION_RECORDED,
    START_PRODUCTION,
    OrderStatus,
    OrderTransition,
    get_allowed_order_transitions,
    get_requested_transition,
)
from gsms.exceptions import InsufficientStockError, InvalidStateError, ValidationError
from gsms.logging_config import get_logger
from gsms.models.order import Order
from gsms.models.raw_material import RawMaterial
from gsms.services.consumption_engine import to_decimal
from gsms.services.material_service import issue_stock

logger = get_logger(__name__)


class OrderStatusService:
    """
    Validates and applies order status transitions.

    Responsibilities:
    - Reject backward, skipping and unknown status requests
    - Guard start_production with an all-materials stock check
    - Move PENDING orders to PRODUCING when production is recorded
    """

    # ========================================================================
    # VALIDATION
    # ========================================================================

    def validate_status_request(self, order: Order, new_status: str) -> Optional[OrderTransition]:
        """
        Resolve a client status request to a named transition.

        Returns:
            The transition to apply, or None when the order already has the
            requested status

        Raises:
            ValidationError: If the status value is unknown
            InvalidStateError: If the move is backward or skips a state
        """
        try:
            target = OrderStatus(new_status)
        except ValueError:
            raise ValidationError(
                f"Unknown order status '{new_status}'",
                field="status",
                value=new_status,
            )

        current = OrderStatus(order.status)
        if current == target:
            return None

        transition = get_requested_transition(current, target)
        if transition is None:
            raise InvalidStateError(
                f"Cannot change order status from {current.value} to {target.value}",
                current_state=current.value,
                allowed_states=get_allowed_order_transitions(current),
            )
        return transition

    def _ensure_source(self, order: Order, transition: OrderTransition) -> None:
        if order.status != transition.source.value:
            raise InvalidStateError(
                f"Order {order.po_no} must be {transition.source.value} for {transition.name}",
                current_state=order.status,
                allowed_states=[transition.source.value],
            )

    # ========================================================================
    # TRANSITIONS
    # ========================================================================

    def find_shortfalls(self, db: Session, order: Order) -> List[Dict]:
        """Materials whose stock does not cover the order's required quantity."""
        required_by_material: Dict[int, Decimal] = OrderedDict()
        for entry in order.consumption_report:
            required_by_material[entry.material_id] = (
                required_by_material.get(entry.material_id, Decimal("0")) + to_decimal(entry.required_qty)
            )

        shortfalls = []
        for material_id, required in required_by_material.items():
            material = db.query(RawMaterial).filter(RawMaterial.id == material_id).first()
            current = to_decimal(material.current_stock) if material else Decimal("0")
            if current < required:
                entry = next(e for e in order.consumption_report if e.material_id == material_id)
                shortfalls.append({
                    "material_name": material.name if material else entry.material_name,
                    "required_qty": float(required),
                    "current_stock": float(current),
                })
        return shortfalls

    def start_production(self, db: Session, order: Order) -> Order:
        """
        PENDING -> PRODUCING with stock issue.

        Raises:
            InsufficientStockError: With every short material; no stock is
                touched in that case
        """
        self._ensure_source(order, START_PRODUCTION)

        shortfalls = self.find_shortfalls(db, order)
        if shortfalls:
            logger.warning(
                "Insufficient stock to start production",
                extra={"po_no": order.po_no, "shortfalls": len(shortfalls)},
            )
            raise InsufficientStockError(shortfalls)

        for entry in order.consumption_report:
            material = db.query(RawMaterial).filter(RawMaterial.id == entry.material_id).first()
            issue_stock(
                db,
                material,
                entry.required_qty,
                reference_type="order",
                reference_id=order.id,
                notes=f"Issued for order {order.po_no}",
                allow_negative=True,  # Sufficiency already checked for all materials
            )

        order.status = START_PRODUCTION.target.value
        db.flush()
        logger.info(f"Order {order.po_no}: PENDING → PRODUCING (start_production)")
        return order

    def apply_production_recorded(self, db: Session, order: Order) -> bool:
        """
        PENDING -> PRODUCING after a production event. No-op otherwise.

        Returns:
            True if the status changed
        """
        if order.status != PRODUCTION_RECORDED.source.value:
            return False
        order.status = PRODUCTION_RECORDED.target.value
        db.flush()
        logger.info(f"Order {order.po_no}: PENDING → PRODUCING (production_recorded)")
        return True

    def complete(self, db: Session, order: Order) -> Order:
        self._ensure_source(order, COMPLETE)
        order.status = COMPLETE.target.value
        db.flush()
        logger.info(f"Order {order.po_no}: PRODUCING → COMPLETED")
        return order

    def change_status(self, db: Session, order: Order, new_status: str) -> Order:
        """
        Apply a client status request.

        Args:
            db: Database session
            order: Order to update
            new_status: Requested status

        Returns:
            The order, unchanged when it already had the requested status
        """
        transition = self.validate_status_request(order, new_status)
        if transition is None:
            return order
        if transition is START_PRODUCTION:
            return self.start_production(db, order)
        return self.complete(db, order)


# Singleton instance
order_status_service = OrderStatusService()
