"""Status Configuration and Transition Rules

Defines the order status values and the named transitions of the order
state machine. Two different transitions lead from PENDING to PRODUCING:

- start_production: requested explicitly; checks and reserves stock for
  every material in the consumption report.
- production_recorded: implied by posting a production event; stock was
  already consumed physically, so there is no sufficiency check.
"""
from enum import Enum
from typing import Dict, List, NamedTuple, Optional, Set


# =============================================================================
# Order Status
# =============================================================================

class OrderStatus(str, Enum):
    """Valid status values for manufacturing orders"""
    PENDING = "PENDING"
    PRODUCING = "PRODUCING"
    COMPLETED = "COMPLETED"


# Forward-only: current_status -> allowed next statuses
ORDER_TRANSITIONS: Dict[str, Set[str]] = {
    OrderStatus.PENDING: {OrderStatus.PRODUCING},
    OrderStatus.PRODUCING: {OrderStatus.COMPLETED},
    OrderStatus.COMPLETED: set(),  # Terminal
}

# Orders whose consumption report still follows BOM wastage edits
OPEN_ORDER_STATUSES: Set[str] = {OrderStatus.PENDING, OrderStatus.PRODUCING}


class OrderTransition(NamedTuple):
    """A named edge of the order state machine"""
    name: str
    source: OrderStatus
    target: OrderStatus
    checks_stock: bool
    moves_stock: bool


START_PRODUCTION = OrderTransition(
    name="start_production",
    source=OrderStatus.PENDING,
    target=OrderStatus.PRODUCING,
    checks_stock=True,
    moves_stock=True,
)

PRODUCTION_RECORDED = OrderTransition(
    name="production_recorded",
    source=OrderStatus.PENDING,
    target=OrderStatus.PRODUCING,
    checks_stock=False,
    moves_stock=False,
)

COMPLETE = OrderTransition(
    name="complete",
    source=OrderStatus.PRODUCING,
    target=OrderStatus.COMPLETED,
    checks_stock=False,
    moves_stock=False,
)

# Transition used when a client asks for a status change directly
REQUESTED_TRANSITIONS: Dict[tuple, OrderTransition] = {
    (START_PRODUCTION.source, START_PRODUCTION.target): START_PRODUCTION,
    (COMPLETE.source, COMPLETE.target): COMPLETE,
}


def get_allowed_order_transitions(current_status: str) -> List[str]:
    """Get list of allowed next statuses for an order"""
    return sorted(s.value for s in ORDER_TRANSITIONS.get(current_status, set()))


def is_valid_order_transition(current_status: str, new_status: str) -> bool:
    """Check if an order status transition is valid"""
    if current_status == new_status:
        return True  # No change is always valid
    allowed = ORDER_TRANSITIONS.get(current_status, set())
    return new_status in allowed


def get_requested_transition(current_status: str, new_status: str) -> Optional[OrderTransition]:
    """Named transition for a client status request, None for a no-op."""
    if current_status == new_status:
        return None
    return REQUESTED_TRANSITIONS.get((OrderStatus(current_status), OrderStatus(new_status)))
