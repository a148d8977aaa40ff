"""
Raw material models

A raw material is a stocked input (fabric, thread, buttons, labels...)
kept in its own unit of measure. Every change to current_stock is
mirrored by a StockMovement row, so the ledger always reconciles:

    current_stock == opening_stock + sum(receipts) - sum(issues)
"""
from sqlalchemy import Column, Integer, String, Numeric, DateTime, ForeignKey, Text
from sqlalchemy.orm import relationship
from datetime import datetime

from gsms.db.base import Base


class RawMaterial(Base):
    """Stocked raw material with a running balance"""
    __tablename__ = "raw_materials"

    id = Column(Integer, primary_key=True, index=True)
    item_code = Column(String(50), unique=True, nullable=False, index=True)
    name = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)
    unit = Column(String(10), nullable=False)  # m, kg, pcs, yd

    # Stock
    opening_stock = Column(Numeric(18, 4), default=0, nullable=False)
    current_stock = Column(Numeric(18, 4), default=0, nullable=False)
    updated_date = Column(DateTime, default=datetime.utcnow, nullable=False)

    # Optimistic locking for concurrent stock changes
    version_id = Column(Integer, nullable=False, default=1)

    # Timestamps
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    # Relationships
    received_batches = relationship(
        "ReceivedBatch",
        back_populates="material",
        cascade="all, delete-orphan",
        order_by="ReceivedBatch.id",
    )
    movements = relationship(
        "StockMovement",
        back_populates="material",
        cascade="all, delete-orphan",
        order_by="StockMovement.id",
    )

    __mapper_args__ = {"version_id_col": version_id}

    def __repr__(self):
        return f"<RawMaterial {self.item_code}: {self.current_stock} {self.unit}>"


class ReceivedBatch(Base):
    """A delivery of raw material into stock"""
    __tablename__ = "received_batches"

    id = Column(Integer, primary_key=True, index=True)
    material_id = Column(Integer, ForeignKey("raw_materials.id", ondelete="CASCADE"), nullable=False, index=True)
    quantity = Column(Numeric(18, 4), nullable=False)
    received_date = Column(DateTime, default=datetime.utcnow, nullable=False)
    remarks = Column(Text, nullable=True)

    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    material = relationship("RawMaterial", back_populates="received_batches")

    def __repr__(self):
        return f"<ReceivedBatch material={self.material_id} qty={self.quantity}>"


class StockMovement(Base):
    """
    Ledger row for a stock change.

    movement_type:
    - receipt: stock came in (received batch)
    - issue: stock went out (order start, production log)

    quantity is always positive; the direction comes from movement_type.
    """
    __tablename__ = "stock_movements"

    id = Column(Integer, primary_key=True, index=True)
    material_id = Column(Integer, ForeignKey("raw_materials.id", ondelete="CASCADE"), nullable=False, index=True)
    movement_type = Column(String(20), nullable=False)  # receipt | issue
    quantity = Column(Numeric(18, 4), nullable=False)

    # What caused the movement
    reference_type = Column(String(50), nullable=True)  # received_batch | order | production_log
    reference_id = Column(Integer, nullable=True)
    notes = Column(Text, nullable=True)

    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    material = relationship("RawMaterial", back_populates="movements")

    def __repr__(self):
        return f"<StockMovement {self.movement_type} {self.quantity} material={self.material_id}>"
