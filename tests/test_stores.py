"""SQL ストアアダプタ: ドライバ例外の扱いと書き込み結果"""

from decimal import Decimal
from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock

import pytest
from sqlalchemy.exc import DataError, IntegrityError, InterfaceError, OperationalError

from services.inventory.app.queries import SqlInventoryStore
from services.order.app.models import Order
from services.order.app.store import SqlOrderStore
from services.product.app import commands
from services.product.app.models import ProductRequest
from services.product.app.store import SqlProductStore
from services.shared.errors import StoreUnavailable


def _session_factory(session) -> MagicMock:
    factory = MagicMock()
    factory.return_value.__aenter__ = AsyncMock(return_value=session)
    factory.return_value.__aexit__ = AsyncMock(return_value=False)
    return factory


def _failing_factory(error: Exception) -> MagicMock:
    session = AsyncMock()
    session.execute = AsyncMock(side_effect=error)
    return _session_factory(session)


def _order() -> Order:
    return Order(order_number="n-1", sku_code="SKU001", price=Decimal("10"), quantity=1)


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "error",
    [
        OperationalError("INSERT", {}, Exception("connection refused")),
        InterfaceError("INSERT", {}, Exception("connection is closed")),
        ConnectionRefusedError("connection refused"),
    ],
)
async def test_unreachable_store_is_store_unavailable(error):
    req = ProductRequest(name="Cable", price=Decimal("10"))

    with pytest.raises(StoreUnavailable):
        await SqlProductStore(_failing_factory(error)).insert(req)
    with pytest.raises(StoreUnavailable):
        await SqlOrderStore(_failing_factory(error)).add(_order())
    with pytest.raises(StoreUnavailable):
        await SqlInventoryStore(_failing_factory(error)).is_in_stock("SKU001", 1)


@pytest.mark.asyncio
async def test_rejected_values_are_not_reported_as_outage():
    data_error = DataError("INSERT", {}, Exception("value too long"))
    integrity_error = IntegrityError("INSERT", {}, Exception("duplicate key"))
    req = ProductRequest(name="Cable", price=Decimal("10"))

    with pytest.raises(DataError):
        await SqlProductStore(_failing_factory(data_error)).insert(req)
    with pytest.raises(IntegrityError):
        await SqlOrderStore(_failing_factory(integrity_error)).add(_order())
    with pytest.raises(DataError):
        await SqlInventoryStore(_failing_factory(data_error)).is_in_stock("SKU001", 1)


@pytest.mark.asyncio
async def test_insert_product_returns_the_stored_row():
    result = MagicMock()
    result.one.return_value = SimpleNamespace(
        id="abc", name="Cable", description="", price=Decimal("10.50")
    )
    session = AsyncMock()
    session.execute = AsyncMock(return_value=result)

    product = await commands.insert_product(
        session, ProductRequest(name="Cable", price=Decimal("10.5"))
    )

    assert product.id == "abc"
    assert str(product.price) == "10.50"
    assert "RETURNING" in str(session.execute.call_args.args[0])
    session.commit.assert_awaited_once()
