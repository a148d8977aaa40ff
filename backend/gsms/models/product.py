"""
Product model - garment styles and their material requirements (BOM)
"""
from sqlalchemy import Column, Integer, String, Numeric, DateTime, Boolean, Text, ForeignKey
from sqlalchemy.orm import relationship
from datetime import datetime

from gsms.db.base import Base


class Product(Base):
    """A garment style identified by its style number"""
    __tablename__ = "products"

    id = Column(Integer, primary_key=True, index=True)
    style_no = Column(String(50), unique=True, nullable=False, index=True)
    item_name = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)
    wastage_remarks = Column(Text, nullable=True)  # Product-level note on wastage assumptions

    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    # Relationships
    materials_required = relationship(
        "MaterialRequirement",
        back_populates="product",
        cascade="all, delete-orphan",
        order_by="MaterialRequirement.sequence",
    )
    orders = relationship("Order", back_populates="product")

    def __repr__(self):
        return f"<Product {self.style_no}: {self.item_name}>"


class MaterialRequirement(Base):
    """
    One BOM line: how much of a material one garment piece needs.

    expected_wastage_percentage is the planned loss on top of the net
    quantity, e.g. 10 means 10% extra is expected to be lost in cutting.
    """
    __tablename__ = "product_materials"

    id = Column(Integer, primary_key=True, index=True)
    product_id = Column(Integer, ForeignKey("products.id", ondelete="CASCADE"), nullable=False, index=True)
    material_id = Column(Integer, ForeignKey("raw_materials.id"), nullable=False, index=True)
    sequence = Column(Integer, default=0, nullable=False)

    quantity_per_piece = Column(Numeric(18, 4), nullable=False)
    expected_wastage_percentage = Column(Numeric(7, 4), default=0, nullable=False)
    wastage_remarks = Column(Text, nullable=True)
    is_primary = Column(Boolean, default=False, nullable=False)  # Main fabric, used for production logs

    product = relationship("Product", back_populates="materials_required")
    material = relationship("RawMaterial")

    # Material details for BOM views
    @property
    def material_name(self):
        return self.material.name if self.material else None

    @property
    def item_code(self):
        return self.material.item_code if self.material else None

    @property
    def unit(self):
        return self.material.unit if self.material else None

    def __repr__(self):
        return f"<MaterialRequirement product={self.product_id} material={self.material_id} qty={self.quantity_per_piece}>"
