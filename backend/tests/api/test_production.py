"""
Tests for production log endpoints.
"""
import pytest

from tests.factories import create_test_order


class TestRecordProduction:
    """Tests for POST /api/v1/production"""

    @pytest.mark.api
    def test_record_cutting_run(self, client, db_session, tshirt, fabric):
        order = create_test_order(db_session, tshirt, quantity=100)
        db_session.commit()

        response = client.post(
            "/api/v1/production",
            json={"orderId": order.id, "cutQty": 40, "usedFabric": 62.5, "wastageQty": 2.5, "remarks": "Lay 1"},
        )

        assert response.status_code == 201
        log = response.json()
        assert log["poNo"] == order.po_no
        assert log["isExtraWastageOnly"] is False
        assert log["usedFabric"] == 62.5
        assert log["materialUsage"][0]["itemCode"] == "FAB-001"

        order_data = client.get(f"/api/v1/orders/{order.id}").json()
        assert order_data["status"] == "PRODUCING"
        entry = order_data["consumptionReport"][0]
        assert entry["actualUsedQty"] == 62.5
        assert entry["extraWastage"] == 2.5
        assert entry["wastage"] == 10.0
        assert entry["wastePercentage"] == "16.00"
        assert client.get(f"/api/v1/raw-materials/{fabric.id}").json()["currentStock"] == 437.5

    @pytest.mark.api
    @pytest.mark.parametrize("payload", [
        {"cutQty": 0, "usedFabric": 5},
        {"cutQty": 5, "usedFabric": 0},
        {"cutQty": 5, "usedFabric": 5, "wastageQty": -1},
    ])
    def test_invalid_quantities(self, client, db_session, tshirt, payload):
        order = create_test_order(db_session, tshirt, quantity=10)
        db_session.commit()

        response = client.post("/api/v1/production", json={"orderId": order.id, **payload})

        assert response.status_code == 400

    @pytest.mark.api
    def test_unknown_order(self, client, db_session):
        response = client.post("/api/v1/production", json={"orderId": 55, "cutQty": 1, "usedFabric": 1})
        assert response.status_code == 404

    @pytest.mark.api
    def test_not_enough_fabric(self, client, db_session, tshirt, fabric):
        order = create_test_order(db_session, tshirt, quantity=1000)
        db_session.commit()

        response = client.post(
            "/api/v1/production",
            json={"orderId": order.id, "cutQty": 10, "usedFabric": 800},
        )

        assert response.status_code == 400
        assert response.json()["insufficientMaterials"][0]["materialName"] == "Cotton Jersey"
        assert client.get("/api/v1/production").json() == []


class TestRecordExtraWastage:
    """Tests for POST /api/v1/production/extra-wastage"""

    @pytest.mark.api
    def test_record_extra_wastage(self, client, db_session, tshirt, fabric, thread):
        order = create_test_order(db_session, tshirt, quantity=100)
        db_session.commit()

        response = client.post(
            "/api/v1/production/extra-wastage",
            json={
                "orderId": order.id,
                "materialUsage": [
                    {"materialId": fabric.id, "extraWastage": 2, "wastageReason": "Cutting defect"},
                    {"materialId": thread.id, "extraWastage": 0},
                ],
            },
        )

        assert response.status_code == 201
        log = response.json()
        assert log["isExtraWastageOnly"] is True
        assert log["cutQty"] == 2.0
        assert log["wastageQty"] == 2.0
        assert len(log["materialUsage"]) == 1
        assert log["materialUsage"][0]["totalWastage"] == 9.5

        entry = client.get(f"/api/v1/orders/{order.id}").json()["consumptionReport"][0]
        assert entry["wastage"] == 9.5
        assert entry["wastePercentage"] == "6.33"

    @pytest.mark.api
    def test_nothing_positive_is_rejected(self, client, db_session, tshirt, fabric):
        order = create_test_order(db_session, tshirt, quantity=100)
        db_session.commit()

        response = client.post(
            "/api/v1/production/extra-wastage",
            json={"orderId": order.id, "materialUsage": [{"materialId": fabric.id, "extraWastage": 0}]},
        )

        assert response.status_code == 400
        assert response.json()["error"] == "VALIDATION_ERROR"


class TestUpdateProductionLog:
    """Tests for PATCH /api/v1/production/{id}"""

    @pytest.mark.api
    def test_correct_cutting_run(self, client, db_session, tshirt, fabric):
        order = create_test_order(db_session, tshirt, quantity=100)
        db_session.commit()
        log = client.post(
            "/api/v1/production",
            json={"orderId": order.id, "cutQty": 40, "usedFabric": 60, "wastageQty": 2},
        ).json()

        response = client.patch(
            f"/api/v1/production/{log['id']}",
            json={"usedFabric": 50, "wastageQty": 4, "remarks": "Recounted"},
        )

        assert response.status_code == 200
        data = response.json()
        assert data["cutQty"] == 40.0
        assert data["usedFabric"] == 50.0
        assert data["remarks"] == "Recounted"

        entry = client.get(f"/api/v1/orders/{order.id}").json()["consumptionReport"][0]
        assert entry["actualUsedQty"] == 50.0
        assert entry["extraWastage"] == 4.0
        assert entry["wastage"] == entry["standardWastage"] + entry["extraWastage"]
        assert entry["wastePercentage"] == "23.00"

        assert client.get(f"/api/v1/raw-materials/{fabric.id}").json()["currentStock"] == 450.0
        balance = client.get("/api/v1/reports/stock-balance", params={"materialId": fabric.id}).json()[0]
        assert balance["currentBalance"] == 450.0
        assert balance["history"][-1]["balance"] == 450.0

    @pytest.mark.api
    def test_correct_extra_wastage(self, client, db_session, tshirt, fabric):
        order = create_test_order(db_session, tshirt, quantity=100)
        db_session.commit()
        log = client.post(
            "/api/v1/production/extra-wastage",
            json={"orderId": order.id, "materialUsage": [{"materialId": fabric.id, "extraWastage": 3}]},
        ).json()

        response = client.patch(
            f"/api/v1/production/{log['id']}",
            json={"materialUsage": [{"materialId": fabric.id, "extraWastage": 5, "wastageReason": "Cutting defect"}]},
        )

        assert response.status_code == 200
        assert response.json()["cutQty"] == 5.0
        entry = client.get(f"/api/v1/orders/{order.id}").json()["consumptionReport"][0]
        assert entry["extraWastage"] == 5.0
        assert entry["wastage"] == 12.5

    @pytest.mark.api
    def test_correction_beyond_stock_rejected(self, client, db_session, tshirt, fabric):
        order = create_test_order(db_session, tshirt, quantity=1000)
        db_session.commit()
        log = client.post("/api/v1/production", json={"orderId": order.id, "cutQty": 10, "usedFabric": 100}).json()

        response = client.patch(f"/api/v1/production/{log['id']}", json={"usedFabric": 700})

        assert response.status_code == 400
        assert client.get(f"/api/v1/raw-materials/{fabric.id}").json()["currentStock"] == 400.0
        assert client.get(f"/api/v1/production/{log['id']}").json()["usedFabric"] == 100.0

    @pytest.mark.api
    def test_unknown_log(self, client, db_session):
        assert client.patch("/api/v1/production/999", json={"cutQty": 1}).status_code == 404


class TestListProductionLogs:

    @pytest.mark.api
    def test_logs_of_order(self, client, db_session, tshirt):
        order = create_test_order(db_session, tshirt, quantity=100)
        db_session.commit()
        client.post("/api/v1/production", json={"orderId": order.id, "cutQty": 1, "usedFabric": 2})

        response = client.get(f"/api/v1/production/order/{order.id}")

        assert response.status_code == 200
        logs = response.json()
        assert len(logs) == 1
        assert client.get(f"/api/v1/production/{logs[0]['id']}").json()["cutQty"] == 1.0

    @pytest.mark.api
    def test_logs_of_unknown_order(self, client, db_session):
        assert client.get("/api/v1/production/order/999").status_code == 404
