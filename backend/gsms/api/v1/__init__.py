"""
API v1 Router - GSMS
"""
from fastapi import APIRouter
from gsms.api.v1.endpoints import (
    raw_materials,
    products,
    orders,
    production,
    reports,
)

router = APIRouter()

# Raw materials and stock receipts
router.include_router(
    raw_materials.router,
    prefix="/raw-materials",
    tags=["raw-materials"]
)

# Products (styles, BOM, expected wastage)
router.include_router(
    products.router,
    prefix="/products",
    tags=["products"]
)

# Orders and consumption reports
router.include_router(
    orders.router,
    prefix="/orders",
    tags=["orders"]
)

# Production logs and extra wastage
router.include_router(
    production.router,
    prefix="/production",
    tags=["production"]
)

# Reports
router.include_router(
    reports.router,
    prefix="/reports",
    tags=["reports"]
)
