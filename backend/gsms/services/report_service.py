"""
Report Service

Read-only summaries built from orders, production logs and the stock
ledger. Nothing here writes.

Reports return plain dicts keyed in snake_case; the report schemas render
them as camelCase JSON.
"""
from collections import OrderedDict
from datetime import datetime
from decimal import Decimal
from typing import Any, Dict, List, Optional

from sqlalchemy.orm import Session

from gsms.logging_config import get_logger
from gsms.models.order import Order
from gsms.models.production_log import ProductionLog, ProductionLogMaterialUsage
from gsms.models.raw_material import RawMaterial, StockMovement
from gsms.services.consumption_engine import HUNDRED, ZERO, to_decimal
from gsms.services.material_service import MOVEMENT_RECEIPT
from gsms.services.order_service import get_order

logger = get_logger(__name__)


def _percent_of(part: Decimal, whole: Decimal) -> Decimal:
    if whole <= 0:
        return ZERO
    return part / whole * HUNDRED


# ============================================================================
# Order usage
# ============================================================================

def get_order_usage(db: Session, order_id: int) -> Dict[str, Any]:
    """
    Consumption report of an order with wastage history per material.

    History items come from the order's production log material rows,
    oldest first.
    """
    order = get_order(db, order_id)

    rows = (
        db.query(ProductionLogMaterialUsage, ProductionLog)
        .join(ProductionLog, ProductionLogMaterialUsage.production_log_id == ProductionLog.id)
        .filter(ProductionLog.order_id == order.id)
        .order_by(ProductionLog.date, ProductionLog.id)
        .all()
    )
    history: Dict[int, List[Dict[str, Any]]] = {}
    for usage, log in rows:
        history.setdefault(usage.material_id, []).append({
            "date": log.date,
            "standard_wastage": usage.standard_wastage,
            "extra_wastage": usage.extra_wastage,
            "total_wastage": usage.total_wastage,
            "wastage_reason": usage.wastage_reason,
            "is_extra_wastage_only": log.is_extra_wastage_only,
        })

    materials = []
    for entry in order.consumption_report:
        material = db.query(RawMaterial).filter(RawMaterial.id == entry.material_id).first()
        materials.append({
            "material_id": entry.material_id,
            "material_name": entry.material_name,
            "item_code": entry.item_code,
            "unit": entry.unit,
            "is_primary": entry.is_primary,
            "required_qty": entry.required_qty,
            "actual_used_qty": entry.actual_used_qty,
            "standard_wastage": entry.standard_wastage,
            "extra_wastage": entry.extra_wastage,
            "wastage": entry.wastage,
            "waste_percentage": entry.waste_percentage,
            "current_stock": material.current_stock if material else None,
            "wastage_history": history.get(entry.material_id, []),
        })

    return {
        "order_id": order.id,
        "po_no": order.po_no,
        "style_no": order.style_no,
        "item_name": order.item_name,
        "quantity": order.quantity,
        "status": order.status,
        "materials": materials,
    }


# ============================================================================
# Wastage analysis
# ============================================================================

def get_wastage_analysis(
    db: Session,
    *,
    start_date: Optional[datetime] = None,
    end_date: Optional[datetime] = None,
    product_id: Optional[int] = None,
) -> List[Dict[str, Any]]:
    """
    Wastage totals per material over production logs.

    Used quantity and extra wastage are summed over every log row. Standard
    wastage belongs to an order, so the latest figure seen per order and
    material is counted once. Extra wastage is also grouped by reason.
    """
    query = (
        db.query(ProductionLogMaterialUsage, ProductionLog)
        .join(ProductionLog, ProductionLogMaterialUsage.production_log_id == ProductionLog.id)
    )
    if start_date:
        query = query.filter(ProductionLog.date >= start_date)
    if end_date:
        query = query.filter(ProductionLog.date <= end_date)
    if product_id:
        query = query.join(Order, ProductionLog.order_id == Order.id).filter(Order.product_id == product_id)
    rows = query.order_by(ProductionLog.date, ProductionLog.id).all()

    totals: Dict[int, Dict[str, Any]] = OrderedDict()
    standard_by_order: Dict[int, Dict[int, Decimal]] = {}
    for usage, log in rows:
        material = usage.material
        item = totals.get(usage.material_id)
        if item is None:
            item = totals[usage.material_id] = {
                "material_id": usage.material_id,
                "name": material.name if material else "Unknown",
                "item_code": material.item_code if material else "Unknown",
                "unit": material.unit if material else "",
                "total_used": ZERO,
                "extra_wastage": ZERO,
                "reasons": OrderedDict(),
            }
        item["total_used"] += to_decimal(usage.used_qty)
        extra = to_decimal(usage.extra_wastage)
        item["extra_wastage"] += extra
        if usage.wastage_reason and extra > 0:
            item["reasons"][usage.wastage_reason] = item["reasons"].get(usage.wastage_reason, ZERO) + extra
        if log.is_extra_wastage_only:
            standard_by_order.setdefault(usage.material_id, {})[log.order_id] = to_decimal(usage.standard_wastage)

    analysis = []
    for material_id, item in totals.items():
        standard = sum(standard_by_order.get(material_id, {}).values(), ZERO)
        extra = item["extra_wastage"]
        total = standard + extra
        used = item["total_used"]
        analysis.append({
            "material_id": material_id,
            "name": item["name"],
            "item_code": item["item_code"],
            "unit": item["unit"],
            "total_used": used,
            "standard_wastage": standard,
            "extra_wastage": extra,
            "total_wastage": total,
            "standard_wastage_percentage": _percent_of(standard, used),
            "extra_wastage_percentage": _percent_of(extra, used),
            "total_wastage_percentage": _percent_of(total, used),
            "wastage_reasons": [
                {"reason": reason, "amount": amount, "percentage": _percent_of(amount, extra)}
                for reason, amount in item["reasons"].items()
            ],
        })
    return analysis


# ============================================================================
# Fabric usage summary
# ============================================================================

def get_fabric_usage_summary(
    db: Session,
    *,
    start_date: Optional[datetime] = None,
    end_date: Optional[datetime] = None,
    order_id: Optional[int] = None,
) -> List[Dict[str, Any]]:
    """
    Usage and wastage per material, broken down by order and by day.

    Standard wastage is counted once per order and material, like the
    wastage analysis. The per-day figures carry used quantity and the
    extra wastage recorded that day.
    """
    query = (
        db.query(ProductionLogMaterialUsage, ProductionLog)
        .join(ProductionLog, ProductionLogMaterialUsage.production_log_id == ProductionLog.id)
    )
    if start_date:
        query = query.filter(ProductionLog.date >= start_date)
    if end_date:
        query = query.filter(ProductionLog.date <= end_date)
    if order_id:
        query = query.filter(ProductionLog.order_id == order_id)
    rows = query.order_by(ProductionLog.date, ProductionLog.id).all()

    totals: Dict[int, Dict[str, Any]] = OrderedDict()
    for usage, log in rows:
        item = totals.get(usage.material_id)
        if item is None:
            material = usage.material
            item = totals[usage.material_id] = {
                "material_id": usage.material_id,
                "name": material.name if material else "Unknown",
                "item_code": material.item_code if material else "Unknown",
                "unit": material.unit if material else "",
                "total_usage": ZERO,
                "extra_wastage": ZERO,
                "standard_by_order": {},
                "orders": OrderedDict(),
                "dates": OrderedDict(),
            }

        used = to_decimal(usage.used_qty)
        extra = to_decimal(usage.extra_wastage)
        item["total_usage"] += used
        item["extra_wastage"] += extra
        if log.is_extra_wastage_only:
            item["standard_by_order"][log.order_id] = to_decimal(usage.standard_wastage)

        order_item = item["orders"].get(log.order_id)
        if order_item is None:
            order = log.order
            order_item = item["orders"][log.order_id] = {
                "order_id": log.order_id,
                "po_no": order.po_no if order else "Unknown",
                "product_name": order.item_name if order else None,
                "style_no": order.style_no if order else None,
                "usage": ZERO,
                "extra_wastage": ZERO,
            }
        order_item["usage"] += used
        order_item["extra_wastage"] += extra

        day = log.date.strftime("%Y-%m-%d")
        date_item = item["dates"].setdefault(day, {"date": day, "usage": ZERO, "wastage": ZERO})
        date_item["usage"] += used
        date_item["wastage"] += extra

    summary = []
    for material_id, item in totals.items():
        standard_by_order = item["standard_by_order"]
        standard = sum(standard_by_order.values(), ZERO)
        total = standard + item["extra_wastage"]
        summary.append({
            "material_id": material_id,
            "name": item["name"],
            "item_code": item["item_code"],
            "unit": item["unit"],
            "total_usage": item["total_usage"],
            "standard_wastage": standard,
            "extra_wastage": item["extra_wastage"],
            "total_wastage": total,
            "waste_percentage": _percent_of(total, item["total_usage"]),
            "by_order": [
                {
                    "order_id": order_item["order_id"],
                    "po_no": order_item["po_no"],
                    "product_name": order_item["product_name"],
                    "style_no": order_item["style_no"],
                    "usage": order_item["usage"],
                    "wastage": standard_by_order.get(key, ZERO) + order_item["extra_wastage"],
                }
                for key, order_item in item["orders"].items()
            ],
            "by_date": list(item["dates"].values()),
        })
    return summary


# ============================================================================
# Stock balance
# ============================================================================

def get_stock_balance(db: Session, material_id: Optional[int] = None) -> List[Dict[str, Any]]:
    """
    Ledger view per material: opening stock, receipts, issues and a
    chronological movement history with running balance.
    """
    query = db.query(RawMaterial)
    if material_id:
        query = query.filter(RawMaterial.id == material_id)
    materials = query.order_by(RawMaterial.item_code).all()

    report = []
    for material in materials:
        movements = (
            db.query(StockMovement)
            .filter(StockMovement.material_id == material.id)
            .order_by(StockMovement.created_at, StockMovement.id)
            .all()
        )

        balance = to_decimal(material.opening_stock)
        received = ZERO
        issued = ZERO
        history = []
        for movement in movements:
            quantity = to_decimal(movement.quantity)
            if movement.movement_type == MOVEMENT_RECEIPT:
                received += quantity
                balance += quantity
                direction = "IN"
            else:
                issued += quantity
                balance -= quantity
                direction = "OUT"
            history.append({
                "date": movement.created_at,
                "type": direction,
                "quantity": quantity,
                "remarks": movement.notes,
                "balance": balance,
            })

        if balance != to_decimal(material.current_stock):
            logger.warning(
                "Stock ledger does not reconcile",
                extra={
                    "item_code": material.item_code,
                    "ledger_balance": str(balance),
                    "current_stock": str(material.current_stock),
                },
            )

        report.append({
            "material_id": material.id,
            "item_code": material.item_code,
            "name": material.name,
            "unit": material.unit,
            "opening_stock": material.opening_stock,
            "total_received": received,
            "total_issued": issued,
            "current_balance": material.current_stock,
            "last_updated": material.updated_date,
            "history": history,
        })
    return report


# ============================================================================
# Order fulfillment
# ============================================================================

def get_order_fulfillment(db: Session, status: Optional[str] = None) -> List[Dict[str, Any]]:
    """Cutting progress per order, newest order first."""
    query = db.query(Order)
    if status:
        query = query.filter(Order.status == status)
    orders = query.order_by(Order.order_date.desc(), Order.id.desc()).all()

    now = datetime.utcnow()
    report = []
    for order in orders:
        # Wastage corrections carry material quantities, not pieces
        logs = db.query(ProductionLog).filter(
            ProductionLog.order_id == order.id,
            ProductionLog.is_extra_wastage_only == False,
        ).all()
        cut_total = sum((to_decimal(log.cut_qty) for log in logs), ZERO)
        ordered = Decimal(order.quantity)
        completion = min(HUNDRED, _percent_of(cut_total, ordered))

        report.append({
            "order_id": order.id,
            "po_no": order.po_no,
            "product": order.item_name,
            "style_no": order.style_no,
            "quantity": order.quantity,
            "cut_quantity": cut_total,
            "remaining_quantity": max(ZERO, ordered - cut_total),
            "completion_percentage": completion,
            "status": order.status,
            "order_date": order.order_date,
            "days_since_created": (now - order.order_date).days,
            "material_fulfillment": [
                {
                    "material_name": entry.material_name,
                    "required": entry.required_qty,
                    "used": entry.actual_used_qty,
                    "fulfillment_percentage": min(
                        HUNDRED,
                        _percent_of(to_decimal(entry.actual_used_qty), to_decimal(entry.required_qty)),
                    ),
                }
                for entry in order.consumption_report
            ],
        })
    return report
