"""
Production log models

Each log is one production event against an order: a cutting run with
fabric usage, or an extra-wastage-only entry that records loss without
new usage.
"""
from sqlalchemy import Column, Integer, String, Numeric, DateTime, Boolean, ForeignKey, Text
from sqlalchemy.orm import relationship
from datetime import datetime

from gsms.db.base import Base


class ProductionLog(Base):
    """A recorded production event for an order"""
    __tablename__ = "production_logs"

    id = Column(Integer, primary_key=True, index=True)
    order_id = Column(Integer, ForeignKey("orders.id"), nullable=False, index=True)
    date = Column(DateTime, default=datetime.utcnow, nullable=False)

    cut_qty = Column(Numeric(18, 4), default=0, nullable=False)
    used_fabric = Column(Numeric(18, 4), default=0, nullable=False)
    wastage_qty = Column(Numeric(18, 4), default=0, nullable=False)
    is_extra_wastage_only = Column(Boolean, default=False, nullable=False)
    remarks = Column(Text, nullable=True)

    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    # Logs are removed explicitly when their order is deleted
    order = relationship("Order")
    material_usage = relationship(
        "ProductionLogMaterialUsage",
        back_populates="production_log",
        cascade="all, delete-orphan",
        order_by="ProductionLogMaterialUsage.id",
    )

    @property
    def po_no(self):
        return self.order.po_no if self.order else None

    def __repr__(self):
        return f"<ProductionLog order={self.order_id} cut={self.cut_qty} used={self.used_fabric}>"


class ProductionLogMaterialUsage(Base):
    """Per-material usage and wastage recorded by a production log"""
    __tablename__ = "production_log_materials"

    id = Column(Integer, primary_key=True, index=True)
    production_log_id = Column(
        Integer, ForeignKey("production_logs.id", ondelete="CASCADE"), nullable=False, index=True
    )
    material_id = Column(Integer, ForeignKey("raw_materials.id"), nullable=False, index=True)

    used_qty = Column(Numeric(18, 4), default=0, nullable=False)
    standard_wastage = Column(Numeric(18, 4), default=0, nullable=False)
    extra_wastage = Column(Numeric(18, 4), default=0, nullable=False)
    total_wastage = Column(Numeric(18, 4), default=0, nullable=False)
    wastage_reason = Column(String(255), nullable=True)

    production_log = relationship("ProductionLog", back_populates="material_usage")
    material = relationship("RawMaterial")

    @property
    def material_name(self):
        return self.material.name if self.material else None

    @property
    def item_code(self):
        return self.material.item_code if self.material else None

    def __repr__(self):
        return f"<ProductionLogMaterialUsage log={self.production_log_id} material={self.material_id}>"
