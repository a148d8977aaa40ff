"""
Production Log Recorder

Posts production events against an order's consumption report:

- record_production(): a cutting run. The primary material's usage grows
  by used_fabric, any wastage seen during the run is added as extra
  wastage, and used_fabric is issued from stock. A PENDING order moves to
  PRODUCING through the production_recorded transition.
- record_extra_wastage(): a wastage correction with no new usage.
- update_production_log(): corrects either kind of log. Old figures come
  off the report before the new ones go on, and a changed used_fabric is
  issued from or returned to stock.

Callers wrap each call in atomic() so the log, report and stock change
land together or not at all.
"""
from datetime import datetime
from decimal import Decimal
from typing import Any, Dict, Iterable, List, Optional

from sqlalchemy.orm import Session

from gsms.core.status_config import OrderStatus
from gsms.exceptions import InvalidStateError, NotFoundError, ValidationError
from gsms.logging_config import get_logger
from gsms.models.order import Order
from gsms.models.production_log import ProductionLog, ProductionLogMaterialUsage
from gsms.models.raw_material import RawMaterial
from gsms.services.consumption_engine import (
    find_entry,
    get_primary_entry,
    refresh_wastage,
    to_decimal,
)
from gsms.services.material_service import issue_stock, return_stock
from gsms.services.order_service import get_order
from gsms.services.order_status import order_status_service

logger = get_logger(__name__)

DEFAULT_EXTRA_WASTAGE_REASON = "Extra wastage added manually"


def _ensure_open(order: Order) -> None:
    if order.status == OrderStatus.COMPLETED.value:
        raise InvalidStateError(
            f"Order {order.po_no} is already completed",
            current_state=order.status,
            allowed_states=[OrderStatus.PENDING.value, OrderStatus.PRODUCING.value],
        )


def record_production(
    db: Session,
    order_id: int,
    cut_qty,
    used_fabric,
    wastage_qty=Decimal("0"),
    remarks: Optional[str] = None,
) -> ProductionLog:
    """
    Record a cutting run.

    Args:
        db: Database session (caller commits)
        order_id: Order the run belongs to
        cut_qty: Pieces cut, must be positive
        used_fabric: Primary material consumed, must be positive
        wastage_qty: Extra wastage seen during the run, not negative
        remarks: Free text

    Returns:
        The created log

    Raises:
        ValidationError: On non-positive quantities or an order with no
            primary material
        NotFoundError: If the order does not exist
        InvalidStateError: If the order is completed
        InsufficientStockError: If the primary material would go negative
    """
    cut_qty = to_decimal(cut_qty)
    used_fabric = to_decimal(used_fabric)
    wastage_qty = to_decimal(wastage_qty)
    if cut_qty <= 0:
        raise ValidationError("Cut quantity must be positive", field="cut_qty", value=cut_qty)
    if used_fabric <= 0:
        raise ValidationError("Used fabric must be positive", field="used_fabric", value=used_fabric)
    if wastage_qty < 0:
        raise ValidationError("Wastage quantity cannot be negative", field="wastage_qty", value=wastage_qty)

    order = get_order(db, order_id)
    _ensure_open(order)

    entry = get_primary_entry(order)
    if entry is None:
        raise ValidationError(f"Order {order.po_no} has no primary material to record against")

    material = db.query(RawMaterial).filter(RawMaterial.id == entry.material_id).first()
    if not material:
        raise NotFoundError("Raw material", entry.material_id)

    log = ProductionLog(
        order_id=order.id,
        date=datetime.utcnow(),
        cut_qty=cut_qty,
        used_fabric=used_fabric,
        wastage_qty=wastage_qty,
        is_extra_wastage_only=False,
        remarks=remarks,
    )
    log.material_usage.append(ProductionLogMaterialUsage(
        material_id=entry.material_id,
        used_qty=used_fabric,
        standard_wastage=Decimal("0"),
        extra_wastage=wastage_qty,
        total_wastage=wastage_qty,
        wastage_reason="Production wastage" if wastage_qty > 0 else None,
    ))
    db.add(log)
    db.flush()

    entry.actual_used_qty = to_decimal(entry.actual_used_qty) + used_fabric
    entry.extra_wastage = to_decimal(entry.extra_wastage) + wastage_qty
    refresh_wastage(entry)

    issue_stock(
        db,
        material,
        used_fabric,
        reference_type="production_log",
        reference_id=log.id,
        notes=f"Used for order {order.po_no}",
    )

    order_status_service.apply_production_recorded(db, order)
    db.flush()

    logger.info(
        "Production recorded",
        extra={
            "po_no": order.po_no,
            "cut_qty": str(cut_qty),
            "used_fabric": str(used_fabric),
            "wastage_qty": str(wastage_qty),
        },
    )
    return log


def _extra_wastage_entries(material_usage: Iterable[Dict[str, Any]]) -> List[Dict[str, Any]]:
    entries = [
        item for item in material_usage
        if to_decimal(item.get("extra_wastage")) > 0
    ]
    if not entries:
        raise ValidationError("At least one material with extra wastage greater than 0 is required")
    return entries


def _post_extra_wastage(order: Order, log: ProductionLog, entries: List[Dict[str, Any]]) -> None:
    """
    Add each entry's extra wastage to the order's report and append the
    matching usage rows to the log. Sets the log's cut_qty and wastage_qty.
    """
    cut_qty = Decimal("0")
    total_extra = Decimal("0")
    for item in entries:
        material_id = item.get("material_id")
        extra = to_decimal(item.get("extra_wastage"))
        reason = item.get("wastage_reason") or DEFAULT_EXTRA_WASTAGE_REASON

        report_entry = find_entry(order, material_id)
        if report_entry is None:
            raise ValidationError(
                f"Material {material_id} is not part of order {order.po_no}",
                field="material_id",
                value=material_id,
            )

        report_entry.extra_wastage = to_decimal(report_entry.extra_wastage) + extra
        refresh_wastage(report_entry)

        log.material_usage.append(ProductionLogMaterialUsage(
            material_id=material_id,
            used_qty=Decimal("0"),
            standard_wastage=to_decimal(report_entry.standard_wastage),
            extra_wastage=extra,
            total_wastage=to_decimal(report_entry.standard_wastage) + extra,
            wastage_reason=reason,
        ))

        total_extra += extra
        if "cut" in reason.lower():
            cut_qty += extra

    log.cut_qty = cut_qty
    log.wastage_qty = total_extra


def record_extra_wastage(
    db: Session,
    order_id: int,
    material_usage: Iterable[Dict[str, Any]],
    remarks: Optional[str] = None,
) -> ProductionLog:
    """
    Record extra wastage for one or more materials of an order.

    Entries with extra_wastage <= 0 are dropped. The log's cut_qty is the
    wastage whose reason mentions cutting.

    Args:
        db: Database session (caller commits)
        order_id: Order to correct
        material_usage: Dicts with material_id, extra_wastage, wastage_reason
        remarks: Free text

    Raises:
        ValidationError: If no entry has positive wastage or a material is
            not in the order's consumption report
        NotFoundError: If the order does not exist
        InvalidStateError: If the order is completed
    """
    entries = _extra_wastage_entries(material_usage)

    order = get_order(db, order_id)
    _ensure_open(order)

    log = ProductionLog(
        order_id=order.id,
        date=datetime.utcnow(),
        used_fabric=Decimal("0"),
        is_extra_wastage_only=True,
        remarks=remarks,
    )
    _post_extra_wastage(order, log, entries)
    db.add(log)
    db.flush()

    logger.info(
        "Extra wastage recorded",
        extra={"po_no": order.po_no, "materials": len(entries), "extra_wastage": str(log.wastage_qty)},
    )
    return log


def update_production_log(
    db: Session,
    log_id: int,
    *,
    cut_qty=None,
    used_fabric=None,
    wastage_qty=None,
    material_usage: Optional[Iterable[Dict[str, Any]]] = None,
    remarks: Optional[str] = None,
) -> ProductionLog:
    """
    Correct a production log.

    The log's old figures are taken off the order's consumption report and
    the new ones applied, so report wastage stays standard plus extra. For
    a cutting run, cut_qty, used_fabric and wastage_qty can change and the
    used_fabric difference is issued from or returned to stock. For an
    extra wastage log, material_usage replaces its rows.

    Args:
        db: Database session (caller commits)
        log_id: Log to correct
        cut_qty: New pieces cut (cutting runs)
        used_fabric: New primary material consumed (cutting runs)
        wastage_qty: New extra wastage seen during the run (cutting runs)
        material_usage: New extra wastage rows (extra wastage logs)
        remarks: New free text

    Raises:
        NotFoundError: If the log does not exist
        InvalidStateError: If the order is completed
        ValidationError: On invalid quantities or fields that do not apply
            to the log's kind
        InsufficientStockError: If more fabric is used than is in stock
    """
    log = get_production_log(db, log_id)
    order = get_order(db, log.order_id)
    _ensure_open(order)

    if log.is_extra_wastage_only:
        if cut_qty is not None or used_fabric is not None or wastage_qty is not None:
            raise ValidationError(
                "Extra wastage logs are corrected through materialUsage",
                field="material_usage",
            )
        if material_usage is not None:
            entries = _extra_wastage_entries(material_usage)
            for row in log.material_usage:
                report_entry = find_entry(order, row.material_id)
                if report_entry is not None:
                    report_entry.extra_wastage = (
                        to_decimal(report_entry.extra_wastage) - to_decimal(row.extra_wastage)
                    )
                    refresh_wastage(report_entry)
            log.material_usage.clear()
            db.flush()
            _post_extra_wastage(order, log, entries)
    else:
        if material_usage is not None:
            raise ValidationError(
                "materialUsage only applies to extra wastage logs",
                field="material_usage",
            )
        _correct_cutting_run(db, order, log, cut_qty, used_fabric, wastage_qty)

    if remarks is not None:
        log.remarks = remarks
    db.flush()

    logger.info(
        "Production log updated",
        extra={"log_id": log.id, "po_no": order.po_no, "extra_wastage_only": log.is_extra_wastage_only},
    )
    return log


def _correct_cutting_run(db: Session, order: Order, log: ProductionLog, cut_qty, used_fabric, wastage_qty) -> None:
    new_cut = to_decimal(cut_qty) if cut_qty is not None else to_decimal(log.cut_qty)
    new_used = to_decimal(used_fabric) if used_fabric is not None else to_decimal(log.used_fabric)
    new_wastage = to_decimal(wastage_qty) if wastage_qty is not None else to_decimal(log.wastage_qty)
    if new_cut <= 0:
        raise ValidationError("Cut quantity must be positive", field="cut_qty", value=new_cut)
    if new_used <= 0:
        raise ValidationError("Used fabric must be positive", field="used_fabric", value=new_used)
    if new_wastage < 0:
        raise ValidationError("Wastage quantity cannot be negative", field="wastage_qty", value=new_wastage)

    row = log.material_usage[0] if log.material_usage else None
    material_id = row.material_id if row is not None else None
    entry = find_entry(order, material_id) if material_id is not None else get_primary_entry(order)
    if entry is None:
        raise ValidationError(f"Order {order.po_no} has no material for production log {log.id}")

    used_delta = new_used - to_decimal(log.used_fabric)
    wastage_delta = new_wastage - to_decimal(log.wastage_qty)

    entry.actual_used_qty = to_decimal(entry.actual_used_qty) + used_delta
    entry.extra_wastage = to_decimal(entry.extra_wastage) + wastage_delta
    refresh_wastage(entry)

    if row is None:
        row = ProductionLogMaterialUsage(material_id=entry.material_id, standard_wastage=Decimal("0"))
        log.material_usage.append(row)
    row.used_qty = new_used
    row.extra_wastage = new_wastage
    row.total_wastage = to_decimal(row.standard_wastage) + new_wastage
    row.wastage_reason = "Production wastage" if new_wastage > 0 else None

    log.cut_qty = new_cut
    log.used_fabric = new_used
    log.wastage_qty = new_wastage

    if used_delta != 0:
        material = db.query(RawMaterial).filter(RawMaterial.id == entry.material_id).first()
        if not material:
            raise NotFoundError("Raw material", entry.material_id)
        notes = f"Correction of production log {log.id} for order {order.po_no}"
        if used_delta > 0:
            issue_stock(db, material, used_delta, reference_type="production_log", reference_id=log.id, notes=notes)
        else:
            return_stock(db, material, -used_delta, reference_type="production_log", reference_id=log.id, notes=notes)


def list_production_logs(db: Session, order_id: Optional[int] = None) -> List[ProductionLog]:
    """Production logs, newest first, optionally for one order."""
    query = db.query(ProductionLog)
    if order_id is not None:
        query = query.filter(ProductionLog.order_id == order_id)
    return query.order_by(ProductionLog.date.desc(), ProductionLog.id.desc()).all()


def get_production_log(db: Session, log_id: int) -> ProductionLog:
    log = db.query(ProductionLog).filter(ProductionLog.id == log_id).first()
    if not log:
        raise NotFoundError("Production log", log_id)
    return log
