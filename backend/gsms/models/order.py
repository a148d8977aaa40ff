"""
Order models

An order is a PO for a quantity of one product. When it is created, the
product's BOM is expanded into a consumption report: one entry per
material holding required quantity, actual usage and the wastage split.
"""
from sqlalchemy import Column, Integer, String, Numeric, DateTime, Boolean, ForeignKey
from sqlalchemy.orm import relationship
from datetime import datetime

from gsms.db.base import Base


class Order(Base):
    """
    Production order for a garment style.

    Lifecycle: PENDING -> PRODUCING -> COMPLETED
    """
    __tablename__ = "orders"

    id = Column(Integer, primary_key=True, index=True)
    po_no = Column(String(50), unique=True, nullable=False, index=True)
    product_id = Column(Integer, ForeignKey("products.id"), nullable=False, index=True)
    quantity = Column(Integer, nullable=False)

    status = Column(String(20), default="PENDING", nullable=False, index=True)
    order_date = Column(DateTime, default=datetime.utcnow, nullable=False)

    version_id = Column(Integer, nullable=False, default=1)

    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    # Relationships
    product = relationship("Product", back_populates="orders")
    consumption_report = relationship(
        "MaterialConsumption",
        back_populates="order",
        cascade="all, delete-orphan",
        order_by="MaterialConsumption.sequence",
    )

    __mapper_args__ = {"version_id_col": version_id}

    @property
    def style_no(self):
        return self.product.style_no if self.product else None

    @property
    def item_name(self):
        return self.product.item_name if self.product else None

    def __repr__(self):
        return f"<Order {self.po_no}: {self.quantity} pcs ({self.status})>"


class MaterialConsumption(Base):
    """
    Consumption report entry for one material of an order.

    Material name, code and unit are copied from the raw material when the
    entry is built so the report reads the same after later material edits.

    wastage is always standard_wastage + extra_wastage.
    """
    __tablename__ = "order_consumption"

    id = Column(Integer, primary_key=True, index=True)
    order_id = Column(Integer, ForeignKey("orders.id", ondelete="CASCADE"), nullable=False, index=True)
    material_id = Column(Integer, ForeignKey("raw_materials.id"), nullable=False, index=True)
    sequence = Column(Integer, default=0, nullable=False)

    # Snapshot of the material
    material_name = Column(String(255), nullable=False)
    item_code = Column(String(50), nullable=False)
    unit = Column(String(10), nullable=False)
    is_primary = Column(Boolean, default=False, nullable=False)

    # Quantities
    required_qty = Column(Numeric(18, 4), nullable=False)
    actual_used_qty = Column(Numeric(18, 4), default=0, nullable=False)
    standard_wastage = Column(Numeric(18, 4), default=0, nullable=False)
    extra_wastage = Column(Numeric(18, 4), default=0, nullable=False)
    wastage = Column(Numeric(18, 4), default=0, nullable=False)
    waste_percentage = Column(Numeric(10, 4), default=0, nullable=False)

    version_id = Column(Integer, nullable=False, default=1)

    order = relationship("Order", back_populates="consumption_report")
    material = relationship("RawMaterial")

    __mapper_args__ = {"version_id_col": version_id}

    def __repr__(self):
        return f"<MaterialConsumption order={self.order_id} material={self.item_code} used={self.actual_used_qty}>"
