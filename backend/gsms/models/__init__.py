"""Database models"""
from gsms.models.raw_material import RawMaterial, ReceivedBatch, StockMovement
from gsms.models.product import Product, MaterialRequirement
from gsms.models.order import Order, MaterialConsumption
from gsms.models.production_log import ProductionLog, ProductionLogMaterialUsage

__all__ = [
    # Stock
    "RawMaterial",
    "ReceivedBatch",
    "StockMovement",
    # Styles
    "Product",
    "MaterialRequirement",
    # Orders
    "Order",
    "MaterialConsumption",
    # Production
    "ProductionLog",
    "ProductionLogMaterialUsage",
]
