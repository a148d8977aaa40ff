"""
Order lifecycle integration test

Drives one style through the whole API: materials, BOM, order, start of
production, cutting runs, wastage corrections, a BOM wastage edit,
completion and reports. The stock ledger must reconcile at every step.
"""
import pytest


def _material(client, material_id):
    return client.get(f"/api/v1/raw-materials/{material_id}").json()


def _ledger_reconciles(client):
    for item in client.get("/api/v1/reports/stock-balance").json():
        running = item["history"][-1]["balance"] if item["history"] else item["openingStock"]
        assert running == pytest.approx(item["currentBalance"])
        assert item["openingStock"] + item["totalReceived"] - item["totalIssued"] == pytest.approx(
            item["currentBalance"]
        )


@pytest.mark.integration
def test_order_lifecycle(client, db_session):
    # Materials
    denim = client.post(
        "/api/v1/raw-materials",
        json={"itemCode": "DEN-12", "name": "12oz Denim", "unit": "m", "openingStock": 100},
    ).json()
    rivets = client.post(
        "/api/v1/raw-materials",
        json={"itemCode": "RVT-01", "name": "Copper Rivet", "unit": "pcs", "openingStock": 1000},
    ).json()

    # Style with denim as primary material
    product = client.post(
        "/api/v1/products",
        json={
            "styleNo": "JN-501",
            "itemName": "Five Pocket Jean",
            "materialsRequired": [
                {"materialId": denim["id"], "quantityPerPiece": 1.6, "expectedWastagePercentage": 5},
                {"materialId": rivets["id"], "quantityPerPiece": 6, "expectedWastagePercentage": 2},
            ],
        },
    ).json()

    order = client.post(
        "/api/v1/orders",
        json={"poNo": "PO-JN-1", "productId": product["id"], "quantity": 100},
    ).json()
    assert order["consumptionReport"][0]["requiredQty"] == 160.0

    # 160 m of denim needed, 100 m on hand
    response = client.patch(f"/api/v1/orders/{order['id']}/status", json={"status": "PRODUCING"})
    assert response.status_code == 400
    assert [m["materialName"] for m in response.json()["insufficientMaterials"]] == ["12oz Denim"]
    assert _material(client, denim["id"])["currentStock"] == 100.0
    assert _material(client, rivets["id"])["currentStock"] == 1000.0

    # Receive enough and start again
    client.post(f"/api/v1/raw-materials/{denim['id']}/receive", json={"quantity": 200})
    response = client.patch(f"/api/v1/orders/{order['id']}/status", json={"status": "PRODUCING"})
    assert response.status_code == 200
    assert _material(client, denim["id"])["currentStock"] == 140.0
    assert _material(client, rivets["id"])["currentStock"] == 400.0
    _ledger_reconciles(client)

    # Cutting run draws from the primary material
    response = client.post(
        "/api/v1/production",
        json={"orderId": order["id"], "cutQty": 50, "usedFabric": 80, "wastageQty": 2},
    )
    assert response.status_code == 201
    assert _material(client, denim["id"])["currentStock"] == 60.0

    # Extra wastage on rivets
    response = client.post(
        "/api/v1/production/extra-wastage",
        json={
            "orderId": order["id"],
            "materialUsage": [{"materialId": rivets["id"], "extraWastage": 12, "wastageReason": "Press jam"}],
        },
    )
    assert response.status_code == 201

    report = client.get(f"/api/v1/orders/{order['id']}").json()["consumptionReport"]
    denim_entry, rivet_entry = report
    assert denim_entry["wastage"] == 10.0          # 8 standard + 2 extra
    assert denim_entry["wastePercentage"] == "12.50"  # 10 / 80 used
    assert rivet_entry["wastage"] == 24.0          # 12 standard + 12 extra
    assert rivet_entry["wastePercentage"] == "4.00"   # 24 / 600 required

    # BOM wastage edit reaches the producing order
    response = client.patch(
        f"/api/v1/products/{product['id']}/wastage",
        json={"materialWastage": [{"materialId": denim["id"], "expectedWastagePercentage": 10}]},
    )
    assert response.json()["updatedOrders"] == [order["id"]]
    denim_entry = client.get(f"/api/v1/orders/{order['id']}").json()["consumptionReport"][0]
    assert denim_entry["standardWastage"] == 16.0
    assert denim_entry["wastage"] == 18.0
    assert denim_entry["extraWastage"] == 2.0

    # Completion, then no more production
    response = client.patch(f"/api/v1/orders/{order['id']}/status", json={"status": "COMPLETED"})
    assert response.status_code == 200
    response = client.post(
        "/api/v1/production",
        json={"orderId": order["id"], "cutQty": 1, "usedFabric": 1},
    )
    assert response.status_code == 400
    assert response.json()["error"] == "INVALID_STATE"

    # Later edits leave the completed order alone
    client.patch(
        f"/api/v1/products/{product['id']}/wastage",
        json={"materialWastage": [{"materialId": denim["id"], "expectedWastagePercentage": 20}]},
    )
    assert client.get(f"/api/v1/orders/{order['id']}").json()["consumptionReport"][0]["standardWastage"] == 16.0

    fulfillment = client.get("/api/v1/reports/order-fulfillment").json()[0]
    assert fulfillment["cutQuantity"] == 50.0
    assert fulfillment["status"] == "COMPLETED"
    _ledger_reconciles(client)

    # Deleting the order takes both production logs with it
    response = client.delete(f"/api/v1/orders/{order['id']}")
    assert response.json()["deletedProductionLogs"] == 2
    assert client.get("/api/v1/production").json() == []
