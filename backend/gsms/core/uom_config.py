"""
UOM Configuration - Single Source of Truth

Units a raw material can be stocked and consumed in. Stock, BOM quantities
and consumption for a material are all expressed in the material's own unit;
there is no conversion between units.
"""
from enum import Enum
from typing import Dict, List


class UnitOfMeasure(str, Enum):
    """Stocking unit of a raw material"""
    METER = "m"
    KILOGRAM = "kg"
    PIECE = "pcs"
    YARD = "yd"


UOM_LABELS: Dict[str, str] = {
    UnitOfMeasure.METER: "Meter",
    UnitOfMeasure.KILOGRAM: "Kilogram",
    UnitOfMeasure.PIECE: "Piece",
    UnitOfMeasure.YARD: "Yard",
}


def get_unit_choices() -> List[Dict[str, str]]:
    """Units for dropdowns: [{'code': 'm', 'label': 'Meter'}, ...]"""
    return [{"code": uom.value, "label": UOM_LABELS[uom]} for uom in UnitOfMeasure]
