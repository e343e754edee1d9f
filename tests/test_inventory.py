"""Inventory Service: 在庫確認"""

from unittest.mock import AsyncMock, MagicMock

import pytest
from sqlalchemy.exc import OperationalError

from services.inventory.app import queries
from services.inventory.app.main import app as inventory_app
from services.inventory.app.queries import SqlInventoryStore
from services.shared.errors import StoreUnavailable


@pytest.mark.asyncio
@pytest.mark.parametrize(
    ("sku_code", "quantity", "expected"),
    [
        ("SKU001", 100, "true"),
        ("SKU001", 200, "true"),
        ("SKU002", 100, "false"),
        ("UNKNOWN_SKU", 1, "false"),
    ],
)
async def test_is_in_stock(inventory_client, sku_code, quantity, expected):
    resp = await inventory_client.get(
        "/api/inventory", params={"skuCode": sku_code, "quantity": quantity}
    )
    assert resp.status_code == 200
    assert resp.text == expected


@pytest.mark.asyncio
async def test_rejects_non_positive_quantity(inventory_client):
    resp = await inventory_client.get(
        "/api/inventory", params={"skuCode": "SKU001", "quantity": 0}
    )
    assert resp.status_code == 422


@pytest.mark.asyncio
async def test_store_outage_surfaces_as_store_unavailable(inventory_client):
    class BrokenStore:
        async def is_in_stock(self, sku_code, quantity):
            raise StoreUnavailable("inventory db down")

    inventory_app.state.inventory_store = BrokenStore()
    resp = await inventory_client.get(
        "/api/inventory", params={"skuCode": "SKU001", "quantity": 1}
    )
    assert resp.status_code == 500
    assert resp.json()["code"] == "store_unavailable"


@pytest.mark.asyncio
async def test_query_passes_sku_and_quantity():
    result = MagicMock()
    result.scalar.return_value = True
    session = AsyncMock()
    session.execute = AsyncMock(return_value=result)

    assert await queries.is_in_stock(session, "SKU001", 100) is True
    params = session.execute.call_args.args[1]
    assert params == {"sku_code": "SKU001", "quantity": 100}


@pytest.mark.asyncio
async def test_sql_store_translates_driver_errors():
    session = AsyncMock()
    session.execute = AsyncMock(side_effect=OperationalError("SELECT", {}, Exception("gone")))
    factory = MagicMock()
    factory.return_value.__aenter__ = AsyncMock(return_value=session)
    factory.return_value.__aexit__ = AsyncMock(return_value=False)

    with pytest.raises(StoreUnavailable):
        await SqlInventoryStore(factory).is_in_stock("SKU001", 1)


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "params",
    [
        {"skuCode": "SKU001", "quantity": 3_000_000_000},
        {"skuCode": "x" * 256, "quantity": 1},
    ],
)
async def test_rejects_values_outside_column_range(inventory_client, params):
    resp = await inventory_client.get("/api/inventory", params=params)
    assert resp.status_code == 422
