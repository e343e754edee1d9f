"""Order Service の HTTP API"""

import pytest
from fakes import StubStockChecker

from services.order.app.main import app as order_app
from services.order.app.workflow import OrderWorkflow
from services.shared.errors import VerificationFailed

ORDER_JSON = {"skuCode": "samsung_tv_2025", "price": 5000, "quantity": 10}


@pytest.mark.asyncio
async def test_place_order(order_client, order_store, stock_checker):
    resp = await order_client.post("/api/order", json=ORDER_JSON)

    assert resp.status_code == 201
    assert resp.text == "Successfully Placed Order"
    assert stock_checker.calls == [("samsung_tv_2025", 10)]

    [order] = order_store.orders.values()
    assert order.order_number
    assert order.sku_code == "samsung_tv_2025"


@pytest.mark.asyncio
async def test_placed_order_can_be_read_back(order_client):
    await order_client.post("/api/order", json=ORDER_JSON)

    listing = (await order_client.get("/api/order")).json()
    assert len(listing) == 1
    order_id = listing[0]["id"]

    resp = await order_client.get(f"/api/order/{order_id}")
    assert resp.status_code == 200
    body = resp.json()
    assert body["orderNumber"]
    assert body["skuCode"] == "samsung_tv_2025"
    assert float(body["price"]) == 5000
    assert body["quantity"] == 10


@pytest.mark.asyncio
async def test_unknown_order_is_404(order_client):
    resp = await order_client.get("/api/order/999")
    assert resp.status_code == 404
    assert resp.json()["code"] == "not_found"


@pytest.mark.asyncio
async def test_out_of_stock_is_409(order_client, order_store):
    order_app.state.order_workflow = OrderWorkflow(StubStockChecker(answer=False), order_store)

    resp = await order_client.post("/api/order", json=ORDER_JSON)

    assert resp.status_code == 409
    body = resp.json()
    assert body["code"] == "stock_rejected"
    assert body["sku_code"] == "samsung_tv_2025"
    assert body["quantity"] == 10
    assert order_store.orders == {}


@pytest.mark.asyncio
async def test_unverifiable_stock_is_503(order_client, order_store):
    order_app.state.order_workflow = OrderWorkflow(
        StubStockChecker(answer=VerificationFailed("Inventory check timed out")),
        order_store,
    )

    resp = await order_client.post("/api/order", json=ORDER_JSON)

    assert resp.status_code == 503
    assert resp.json()["code"] == "verification_failed"
    assert order_store.orders == {}


@pytest.mark.asyncio
async def test_zero_quantity_is_400(order_client, stock_checker):
    resp = await order_client.post("/api/order", json={**ORDER_JSON, "quantity": 0})

    assert resp.status_code == 400
    assert resp.json()["code"] == "validation_error"
    assert stock_checker.calls == []


@pytest.mark.asyncio
async def test_client_supplied_order_number_is_ignored(order_client, order_store):
    resp = await order_client.post(
        "/api/order", json={**ORDER_JSON, "id": 42, "orderNumber": "fixed-number"}
    )

    assert resp.status_code == 201
    [order] = order_store.orders.values()
    assert order.order_number != "fixed-number"
    assert order.id == 1


@pytest.mark.asyncio
async def test_quantity_beyond_integer_column_is_400(order_client, stock_checker, order_store):
    resp = await order_client.post("/api/order", json={**ORDER_JSON, "quantity": 3_000_000_000})

    assert resp.status_code == 400
    assert resp.json()["code"] == "validation_error"
    assert stock_checker.calls == []
    assert order_store.orders == {}


@pytest.mark.asyncio
async def test_client_supplied_id_of_any_type_is_ignored(order_client, order_store):
    resp = await order_client.post(
        "/api/order", json={**ORDER_JSON, "id": "abc", "orderNumber": 123}
    )

    assert resp.status_code == 201
    [order] = order_store.orders.values()
    assert order.id == 1
