"""
Unit Tests for Order Service

Tests:
1. Order creation and consumption report snapshot
2. Cascade deletion with production logs, all or nothing
"""
import pytest
from decimal import Decimal

from sqlalchemy.exc import OperationalError

from gsms.db.session import atomic
from gsms.exceptions import DatabaseError, DuplicateError, NotFoundError, ValidationError
from gsms.models.order import MaterialConsumption, Order
from gsms.models.production_log import ProductionLog, ProductionLogMaterialUsage
from gsms.services import order_service
from tests.factories import create_test_order, create_test_production_log


class TestCreateOrder:
    """Tests for order_service.create_order"""

    @pytest.mark.unit
    def test_creates_pending_order_with_report(self, db_session, tshirt):
        order = order_service.create_order(db_session, po_no="PO-1001", product_id=tshirt.id, quantity=100)

        assert order.status == "PENDING"
        assert order.style_no == "TS-100"
        assert [e.required_qty for e in order.consumption_report] == [Decimal("150"), Decimal("2000")]

    @pytest.mark.unit
    def test_report_is_a_snapshot(self, db_session, tshirt):
        order = order_service.create_order(db_session, po_no="PO-1002", product_id=tshirt.id, quantity=10)
        tshirt.materials_required[0].quantity_per_piece = Decimal("9")
        db_session.flush()

        assert order.consumption_report[0].required_qty == Decimal("15")

    @pytest.mark.unit
    def test_duplicate_po_no(self, db_session, tshirt):
        order_service.create_order(db_session, po_no="PO-1003", product_id=tshirt.id, quantity=1)

        with pytest.raises(DuplicateError):
            order_service.create_order(db_session, po_no="PO-1003", product_id=tshirt.id, quantity=1)

    @pytest.mark.unit
    @pytest.mark.parametrize("quantity", [0, -1])
    def test_quantity_must_be_positive(self, db_session, tshirt, quantity):
        with pytest.raises(ValidationError):
            order_service.create_order(db_session, po_no="PO-1004", product_id=tshirt.id, quantity=quantity)
        assert db_session.query(Order).count() == 0

    @pytest.mark.unit
    def test_unknown_product(self, db_session):
        with pytest.raises(ValidationError) as exc_info:
            order_service.create_order(db_session, po_no="PO-1005", product_id=404, quantity=1)
        assert exc_info.value.details["field"] == "product_id"


class TestDeleteOrder:
    """Tests for order_service.delete_order"""

    @pytest.mark.unit
    def test_deletes_order_and_its_logs(self, db_session, tshirt):
        order = create_test_order(db_session, tshirt, quantity=100)
        keep = create_test_order(db_session, tshirt, quantity=10)
        for _ in range(3):
            create_test_production_log(db_session, order, cut_qty=1, used_fabric=2)
        create_test_production_log(db_session, keep, cut_qty=1, used_fabric=2)
        db_session.commit()
        order_id = order.id

        with atomic(db_session):
            deleted = order_service.delete_order(db_session, order_id)

        assert deleted == 3
        assert db_session.get(Order, order_id) is None
        assert db_session.query(ProductionLog).filter(ProductionLog.order_id == order_id).count() == 0
        assert db_session.query(MaterialConsumption).filter(MaterialConsumption.order_id == order_id).count() == 0
        assert db_session.query(ProductionLog).count() == 1
        assert db_session.query(ProductionLogMaterialUsage).count() == 1

    @pytest.mark.unit
    def test_order_without_logs(self, db_session, tshirt):
        order = create_test_order(db_session, tshirt, quantity=5)
        db_session.commit()

        with atomic(db_session):
            assert order_service.delete_order(db_session, order.id) == 0

    @pytest.mark.unit
    def test_unknown_order(self, db_session):
        with pytest.raises(NotFoundError):
            order_service.delete_order(db_session, 12345)

    @pytest.mark.unit
    def test_failure_keeps_order_and_logs(self, db_session, tshirt, monkeypatch):
        order = create_test_order(db_session, tshirt, quantity=100)
        create_test_production_log(db_session, order, cut_qty=1, used_fabric=2)
        db_session.commit()
        order_id = order.id

        real_delete_logs = order_service._delete_production_logs

        def failing_delete_logs(db, order_id):
            real_delete_logs(db, order_id)
            raise OperationalError("DELETE FROM orders", {}, Exception("disk I/O error"))

        monkeypatch.setattr(order_service, "_delete_production_logs", failing_delete_logs)

        with pytest.raises(DatabaseError):
            with atomic(db_session):
                order_service.delete_order(db_session, order_id)

        assert db_session.get(Order, order_id) is not None
        assert db_session.query(ProductionLog).filter(ProductionLog.order_id == order_id).count() == 1
        assert db_session.query(ProductionLogMaterialUsage).count() == 1
