"""
Unit Tests for Material Service (master data and stock ledger)
"""
import pytest
from decimal import Decimal

from gsms.exceptions import DuplicateError, InsufficientStockError, ValidationError
from gsms.models.raw_material import StockMovement
from gsms.services import material_service
from gsms.services.material_service import MOVEMENT_ISSUE, MOVEMENT_RECEIPT, ledger_balance
from tests.factories import create_test_material, create_test_order


class TestCreateMaterial:

    @pytest.mark.unit
    def test_opening_stock_is_current_stock(self, db_session):
        material = create_test_material(db_session, item_code="BTN-01", unit="pcs", opening_stock=250)

        assert material.opening_stock == Decimal("250")
        assert material.current_stock == Decimal("250")
        assert material.unit == "pcs"
        assert ledger_balance(db_session, material) == Decimal("250")

    @pytest.mark.unit
    def test_duplicate_item_code(self, db_session):
        create_test_material(db_session, item_code="ZIP-01")

        with pytest.raises(DuplicateError):
            create_test_material(db_session, item_code="ZIP-01")

    @pytest.mark.unit
    def test_negative_opening_stock(self, db_session):
        with pytest.raises(ValidationError):
            create_test_material(db_session, opening_stock=-1)


class TestStockLedger:
    """Tests for receive_stock / issue_stock"""

    @pytest.mark.unit
    def test_receive_adds_batch_and_receipt(self, db_session, fabric):
        batch = material_service.receive_stock(db_session, fabric.id, Decimal("120.5"), remarks="Mill delivery")

        assert batch.quantity == Decimal("120.5")
        assert fabric.current_stock == Decimal("620.5")
        movement = db_session.query(StockMovement).one()
        assert movement.movement_type == MOVEMENT_RECEIPT
        assert movement.reference_type == "received_batch"
        assert movement.reference_id == batch.id
        assert ledger_balance(db_session, fabric) == fabric.current_stock

    @pytest.mark.unit
    @pytest.mark.parametrize("quantity", [0, -3])
    def test_receive_requires_positive_quantity(self, db_session, fabric, quantity):
        with pytest.raises(ValidationError):
            material_service.receive_stock(db_session, fabric.id, quantity)

    @pytest.mark.unit
    def test_issue_refuses_to_go_negative(self, db_session, fabric):
        with pytest.raises(InsufficientStockError) as exc_info:
            material_service.issue_stock(db_session, fabric, Decimal("501"), reference_type="order")

        assert exc_info.value.insufficient_materials[0]["current_stock"] == 500.0
        assert fabric.current_stock == Decimal("500")

    @pytest.mark.unit
    def test_ledger_matches_after_mixed_movements(self, db_session, fabric):
        material_service.receive_stock(db_session, fabric.id, 100)
        material_service.issue_stock(db_session, fabric, Decimal("75.25"), reference_type="order")
        material_service.receive_stock(db_session, fabric.id, Decimal("0.75"))
        db_session.flush()

        types = [m.movement_type for m in db_session.query(StockMovement).order_by(StockMovement.id)]
        assert types == [MOVEMENT_RECEIPT, MOVEMENT_ISSUE, MOVEMENT_RECEIPT]
        assert fabric.current_stock == Decimal("525.5")
        assert ledger_balance(db_session, fabric) == Decimal("525.5")


class TestDeleteMaterial:

    @pytest.mark.unit
    def test_unused_material_is_deleted(self, db_session):
        material = create_test_material(db_session)

        material_service.delete_material(db_session, material.id)

        assert material_service.list_materials(db_session) == []

    @pytest.mark.unit
    def test_material_in_bom_is_kept(self, db_session, tshirt, fabric):
        with pytest.raises(ValidationError):
            material_service.delete_material(db_session, fabric.id)

    @pytest.mark.unit
    def test_material_in_order_report_is_kept(self, db_session, tshirt, thread):
        create_test_order(db_session, tshirt, quantity=1)
        tshirt.materials_required.pop(1)
        db_session.flush()

        with pytest.raises(ValidationError) as exc_info:
            material_service.delete_material(db_session, thread.id)
        assert exc_info.value.details["orders"] == 1
