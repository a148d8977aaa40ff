"""
Unit Tests for product wastage change propagation

Tests:
1. BOM wastage edits reach open orders only
2. A failing order is reported without blocking the others
"""
import pytest
from decimal import Decimal

from gsms.db.session import atomic
from gsms.exceptions import ValidationError
from gsms.models.order import Order
from gsms.services import wastage_events
from gsms.services.consumption_engine import format_percentage, get_primary_entry
from gsms.services.product_service import update_product_wastage
from tests.factories import create_test_order


class TestUpdateProductWastage:
    """Tests for product_service.update_product_wastage"""

    @pytest.mark.unit
    def test_recomputes_open_orders_only(self, db_session, tshirt, fabric):
        pending = create_test_order(db_session, tshirt, quantity=100)
        producing = create_test_order(db_session, tshirt, quantity=100, status="PRODUCING")
        completed = create_test_order(db_session, tshirt, quantity=100, status="COMPLETED")
        db_session.commit()

        with atomic(db_session):
            product, result = update_product_wastage(
                db_session,
                tshirt.id,
                [{"material_id": fabric.id, "expected_wastage_percentage": Decimal("10")}],
            )

        assert sorted(result.updated_orders) == sorted([pending.id, producing.id])
        assert result.failed_orders == []

        for order_id in (pending.id, producing.id):
            entry = get_primary_entry(db_session.get(Order, order_id))
            assert entry.standard_wastage == Decimal("15")
            assert format_percentage(entry.waste_percentage) == "10.00"

        untouched = get_primary_entry(db_session.get(Order, completed.id))
        assert untouched.standard_wastage == Decimal("7.5")

    @pytest.mark.unit
    def test_updates_bom_line_and_remarks(self, db_session, tshirt, thread):
        product, _ = update_product_wastage(
            db_session,
            tshirt.id,
            [{"material_id": thread.id, "expected_wastage_percentage": Decimal("15"), "remarks": "Overlock"}],
            remarks="Reviewed after trial run",
        )

        line = next(r for r in product.materials_required if r.material_id == thread.id)
        assert line.expected_wastage_percentage == Decimal("15")
        assert line.wastage_remarks == "Overlock"
        assert product.wastage_remarks == "Reviewed after trial run"

    @pytest.mark.unit
    def test_material_outside_bom_is_refused(self, db_session, tshirt):
        with pytest.raises(ValidationError):
            update_product_wastage(
                db_session,
                tshirt.id,
                [{"material_id": 9999, "expected_wastage_percentage": Decimal("5")}],
            )

    @pytest.mark.unit
    def test_percentage_out_of_range(self, db_session, tshirt, fabric):
        with pytest.raises(ValidationError):
            update_product_wastage(
                db_session,
                tshirt.id,
                [{"material_id": fabric.id, "expected_wastage_percentage": Decimal("120")}],
            )


class TestProjection:
    """Tests for project_wastage_change failure isolation"""

    @pytest.mark.unit
    def test_failed_order_does_not_block_others(self, db_session, tshirt, fabric, monkeypatch):
        broken = create_test_order(db_session, tshirt, quantity=100, po_no="PO-BROKEN")
        healthy = create_test_order(db_session, tshirt, quantity=100, po_no="PO-HEALTHY")
        db_session.commit()
        broken_id, healthy_id = broken.id, healthy.id

        real_recompute = wastage_events.recompute_standard_wastage

        def flaky_recompute(order, product):
            if order.po_no == "PO-BROKEN":
                raise RuntimeError("recompute failed")
            return real_recompute(order, product)

        monkeypatch.setattr(wastage_events, "recompute_standard_wastage", flaky_recompute)

        with atomic(db_session):
            _, result = update_product_wastage(
                db_session,
                tshirt.id,
                [{"material_id": fabric.id, "expected_wastage_percentage": Decimal("8")}],
            )

        assert result.updated_orders == [healthy_id]
        assert result.failed_orders == [
            {"order_id": broken_id, "po_no": "PO-BROKEN", "error": "recompute failed"},
        ]
        assert get_primary_entry(db_session.get(Order, healthy_id)).standard_wastage == Decimal("12")
        assert get_primary_entry(db_session.get(Order, broken_id)).standard_wastage == Decimal("7.5")

    @pytest.mark.unit
    def test_projecting_twice_is_harmless(self, db_session, tshirt, fabric):
        order = create_test_order(db_session, tshirt, quantity=100)
        tshirt.materials_required[0].expected_wastage_percentage = Decimal("6")
        db_session.flush()
        event = wastage_events.ProductWastageChanged(tshirt.id, (fabric.id,))

        wastage_events.publish(db_session, event)
        first = get_primary_entry(order).standard_wastage
        wastage_events.publish(db_session, event)

        assert get_primary_entry(order).standard_wastage == first == Decimal("9")
