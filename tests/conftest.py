"""
pytest の共通フィクスチャ

HTTP テストは httpx.ASGITransport でアプリを直接叩く。ASGITransport は
lifespan を実行しないので、各サービスの依存 (app.state) はここで差し込む。
"""

import pytest
from fakes import (
    FakeRedis,
    InMemoryInventoryStore,
    InMemoryOrderStore,
    InMemoryProductStore,
    StubStockChecker,
)
from httpx import ASGITransport, AsyncClient

from services.inventory.app.main import app as inventory_app
from services.order.app.main import app as order_app
from services.order.app.workflow import OrderWorkflow
from services.product.app.cache import ProductCache
from services.product.app.main import app as product_app
from services.product.app.service import ProductService


@pytest.fixture
def fake_redis() -> FakeRedis:
    return FakeRedis()


@pytest.fixture
def product_store() -> InMemoryProductStore:
    return InMemoryProductStore()


@pytest.fixture
def product_cache(fake_redis: FakeRedis) -> ProductCache:
    return ProductCache(fake_redis, ttl_seconds=600)


@pytest.fixture
def product_service(product_store, product_cache) -> ProductService:
    return ProductService(product_store, product_cache)


@pytest.fixture
def stock_checker() -> StubStockChecker:
    return StubStockChecker(answer=True)


@pytest.fixture
def order_store() -> InMemoryOrderStore:
    return InMemoryOrderStore()


@pytest.fixture
def order_workflow(stock_checker, order_store) -> OrderWorkflow:
    return OrderWorkflow(stock_checker, order_store, timeout_seconds=0.5)


@pytest.fixture
async def product_client(product_service) -> AsyncClient:
    product_app.state.product_service = product_service
    transport = ASGITransport(app=product_app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac


@pytest.fixture
async def inventory_client() -> AsyncClient:
    inventory_app.state.inventory_store = InMemoryInventoryStore(
        {"SKU001": 200, "SKU002": 50}
    )
    transport = ASGITransport(app=inventory_app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac


@pytest.fixture
async def order_client(order_workflow, order_store) -> AsyncClient:
    order_app.state.order_workflow = order_workflow
    order_app.state.order_store = order_store
    transport = ASGITransport(app=order_app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac
