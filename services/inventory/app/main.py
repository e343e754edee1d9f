"""
Inventory Service — FastAPI エントリーポイント

「SKU X は数量 Q だけ在庫があるか?」に答えるだけのサービス。
Order Service が注文確定の前に呼び出す。レスポンスは true / false のみで、
存在しない SKU も 404 ではなく false を返す。
"""

from contextlib import asynccontextmanager

from fastapi import Depends, FastAPI, Query, Request
from sqlalchemy.ext.asyncio import async_sessionmaker, create_async_engine

from services.shared.config import get_settings
from services.shared.errors import MeshError, mesh_error_handler
from services.shared.logging import setup_logging

from .queries import InventoryStore, SqlInventoryStore


@asynccontextmanager
async def lifespan(app: FastAPI):
    setup_logging()
    engine = create_async_engine(get_settings().database_url, echo=False)
    app.state.inventory_store = SqlInventoryStore(
        async_sessionmaker(engine, expire_on_commit=False)
    )
    yield
    await engine.dispose()


app = FastAPI(title="Inventory Service", lifespan=lifespan)
app.add_exception_handler(MeshError, mesh_error_handler)


def get_inventory_store(request: Request) -> InventoryStore:
    return request.app.state.inventory_store


@app.get("/api/inventory")
async def query_is_in_stock(
    sku_code: str = Query(alias="skuCode", min_length=1, max_length=255),
    quantity: int = Query(ge=1, le=2**31 - 1),
    store: InventoryStore = Depends(get_inventory_store),
) -> bool:
    """在庫確認 (副作用なし)"""
    return await store.is_in_stock(sku_code, quantity)


@app.get("/health")
async def health():
    return {"status": "ok", "service": "inventory-service"}
