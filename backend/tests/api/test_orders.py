"""
Tests for order endpoints.

Covers creation with consumption report, status transitions with the
stock check, usage report and cascade deletion.
"""
import pytest

from tests.factories import create_test_material, create_test_order, create_test_product


class TestCreateOrder:
    """Tests for POST /api/v1/orders"""

    @pytest.mark.api
    def test_create_order_returns_consumption_report(self, client, tshirt):
        response = client.post(
            "/api/v1/orders",
            json={"poNo": "PO-2001", "productId": tshirt.id, "quantity": 100},
        )

        assert response.status_code == 201
        data = response.json()
        assert data["poNo"] == "PO-2001"
        assert data["status"] == "PENDING"
        assert data["styleNo"] == "TS-100"

        fabric_entry = data["consumptionReport"][0]
        assert fabric_entry["itemCode"] == "FAB-001"
        assert fabric_entry["isPrimary"] is True
        assert fabric_entry["requiredQty"] == 150.0
        assert fabric_entry["standardWastage"] == 7.5
        assert fabric_entry["wastage"] == 7.5
        assert fabric_entry["actualUsedQty"] == 0.0
        assert fabric_entry["wastePercentage"] == "5.00"

        thread_entry = data["consumptionReport"][1]
        assert thread_entry["requiredQty"] == 2000.0
        assert thread_entry["wastePercentage"] == "10.00"

    @pytest.mark.api
    def test_duplicate_po_no(self, client, tshirt):
        payload = {"poNo": "PO-2002", "productId": tshirt.id, "quantity": 5}
        assert client.post("/api/v1/orders", json=payload).status_code == 201

        response = client.post("/api/v1/orders", json=payload)

        assert response.status_code == 400
        assert response.json()["error"] == "DUPLICATE_ERROR"

    @pytest.mark.api
    @pytest.mark.parametrize("quantity", [0, -10])
    def test_quantity_must_be_positive(self, client, tshirt, quantity):
        response = client.post(
            "/api/v1/orders",
            json={"poNo": "PO-2003", "productId": tshirt.id, "quantity": quantity},
        )

        assert response.status_code == 400
        assert response.json()["error"] == "VALIDATION_ERROR"
        assert client.get("/api/v1/orders").json() == []

    @pytest.mark.api
    def test_unknown_product(self, client, db_session):
        response = client.post(
            "/api/v1/orders",
            json={"poNo": "PO-2004", "productId": 777, "quantity": 5},
        )
        assert response.status_code == 400

    @pytest.mark.api
    def test_missing_fields(self, client, db_session):
        response = client.post("/api/v1/orders", json={"quantity": 5})

        assert response.status_code == 400
        fields = {e["field"] for e in response.json()["details"]["errors"]}
        assert {"poNo", "productId"} <= fields


class TestListOrders:
    """Tests for GET /api/v1/orders"""

    @pytest.mark.api
    def test_filters_by_status(self, client, db_session, tshirt):
        create_test_order(db_session, tshirt, quantity=10, po_no="PO-A")
        create_test_order(db_session, tshirt, quantity=10, po_no="PO-B", status="COMPLETED")
        db_session.commit()

        response = client.get("/api/v1/orders", params={"status": "COMPLETED"})

        assert response.status_code == 200
        assert [o["poNo"] for o in response.json()] == ["PO-B"]

    @pytest.mark.api
    def test_get_unknown_order(self, client, db_session):
        response = client.get("/api/v1/orders/999")

        assert response.status_code == 404
        assert response.json()["error"] == "NOT_FOUND"


class TestUpdateOrderStatus:
    """Tests for PATCH /api/v1/orders/{id}/status"""

    @pytest.mark.api
    def test_insufficient_stock_lists_every_material(self, client, db_session, tshirt):
        # 100 pieces need 150 m fabric (500 in stock) and 2000 m thread (1000 in stock)
        order = create_test_order(db_session, tshirt, quantity=100)
        db_session.commit()

        response = client.patch(f"/api/v1/orders/{order.id}/status", json={"status": "PRODUCING"})

        assert response.status_code == 400
        data = response.json()
        assert data["error"] == "INSUFFICIENT_STOCK"
        assert data["insufficientMaterials"] == [
            {"materialName": "Polyester Thread", "requiredQty": 2000.0, "currentStock": 1000.0},
        ]

        materials = client.get("/api/v1/raw-materials").json()
        assert {m["itemCode"]: m["currentStock"] for m in materials} == {"FAB-001": 500.0, "THR-001": 1000.0}
        assert client.get(f"/api/v1/orders/{order.id}").json()["status"] == "PENDING"

    @pytest.mark.api
    def test_start_production_issues_stock(self, client, db_session):
        denim = create_test_material(db_session, item_code="DEN-01", name="Denim", opening_stock=200)
        product = create_test_product(
            db_session,
            materials=[{"material": denim, "quantity_per_piece": "1.5", "expected_wastage_percentage": "5"}],
        )
        order = create_test_order(db_session, product, quantity=100)
        db_session.commit()

        response = client.patch(f"/api/v1/orders/{order.id}/status", json={"status": "PRODUCING"})

        assert response.status_code == 200
        assert response.json()["status"] == "PRODUCING"
        assert client.get(f"/api/v1/raw-materials/{denim.id}").json()["currentStock"] == 50.0

    @pytest.mark.api
    def test_skipping_a_state_is_rejected(self, client, db_session, tshirt):
        order = create_test_order(db_session, tshirt, quantity=1)
        db_session.commit()

        response = client.patch(f"/api/v1/orders/{order.id}/status", json={"status": "COMPLETED"})

        assert response.status_code == 400
        assert response.json()["error"] == "INVALID_STATE"

    @pytest.mark.api
    def test_unknown_status_value(self, client, db_session, tshirt):
        order = create_test_order(db_session, tshirt, quantity=1)
        db_session.commit()

        response = client.patch(f"/api/v1/orders/{order.id}/status", json={"status": "SHIPPED"})

        assert response.status_code == 400

    @pytest.mark.api
    def test_complete_producing_order(self, client, db_session, tshirt):
        order = create_test_order(db_session, tshirt, quantity=1, status="PRODUCING")
        db_session.commit()

        response = client.patch(f"/api/v1/orders/{order.id}/status", json={"status": "COMPLETED"})

        assert response.status_code == 200
        assert response.json()["status"] == "COMPLETED"


class TestOrderUsage:
    """Tests for GET /api/v1/orders/{id}/usage"""

    @pytest.mark.api
    def test_usage_with_wastage_history(self, client, db_session, tshirt, fabric):
        order = create_test_order(db_session, tshirt, quantity=100)
        db_session.commit()
        client.post(
            "/api/v1/production/extra-wastage",
            json={
                "orderId": order.id,
                "materialUsage": [{"materialId": fabric.id, "extraWastage": 2, "wastageReason": "Shade variation"}],
            },
        )

        response = client.get(f"/api/v1/orders/{order.id}/usage")

        assert response.status_code == 200
        data = response.json()
        assert data["poNo"] == order.po_no
        fabric_usage = data["materials"][0]
        assert fabric_usage["wastage"] == 9.5
        assert fabric_usage["wastePercentage"] == "6.33"
        assert fabric_usage["currentStock"] == 500.0
        history = fabric_usage["wastageHistory"]
        assert len(history) == 1
        assert history[0]["extraWastage"] == 2.0
        assert history[0]["wastageReason"] == "Shade variation"
        assert history[0]["isExtraWastageOnly"] is True
        assert data["materials"][1]["wastageHistory"] == []


class TestDeleteOrder:
    """Tests for DELETE /api/v1/orders/{id}"""

    @pytest.mark.api
    def test_delete_reports_log_count(self, client, db_session, tshirt):
        order = create_test_order(db_session, tshirt, quantity=100)
        db_session.commit()
        for cut in (5, 6, 7):
            response = client.post(
                "/api/v1/production",
                json={"orderId": order.id, "cutQty": cut, "usedFabric": 8},
            )
            assert response.status_code == 201

        response = client.delete(f"/api/v1/orders/{order.id}")

        assert response.status_code == 200
        assert response.json()["deletedProductionLogs"] == 3
        assert client.get(f"/api/v1/orders/{order.id}").status_code == 404
        assert client.get("/api/v1/production", params={"orderId": order.id}).json() == []

    @pytest.mark.api
    def test_delete_unknown_order(self, client, db_session):
        assert client.delete("/api/v1/orders/4242").status_code == 404
