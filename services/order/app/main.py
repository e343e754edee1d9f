"""
Order Service — FastAPI エントリーポイント

注文の受付は OrderWorkflow に委譲する。ワークフローは Inventory Service に
在庫を問い合わせ、在庫ありが確定したときだけ注文を保存する。

  201  注文確定
  400  形式エラー (ValidationError)
  409  在庫なし (StockRejected)
  503  在庫確認できず (VerificationFailed)、リトライ可
  500  注文ストアに保存できず (StoreUnavailable)
"""

from contextlib import asynccontextmanager

from fastapi import Depends, FastAPI, Request
from fastapi.responses import PlainTextResponse
from sqlalchemy.ext.asyncio import async_sessionmaker, create_async_engine

from services.shared.config import get_settings
from services.shared.errors import MeshError, NotFound, mesh_error_handler
from services.shared.logging import setup_logging

from .client import HttpStockChecker
from .models import Order, OrderRequest
from .store import OrderStore, SqlOrderStore
from .workflow import OrderWorkflow


@asynccontextmanager
async def lifespan(app: FastAPI):
    setup_logging()
    settings = get_settings()
    engine = create_async_engine(settings.database_url, echo=False)
    store = SqlOrderStore(async_sessionmaker(engine, expire_on_commit=False))
    app.state.order_store = store
    app.state.order_workflow = OrderWorkflow(
        HttpStockChecker(
            settings.inventory_service_url,
            timeout_seconds=settings.inventory_timeout_seconds,
        ),
        store,
        timeout_seconds=settings.inventory_timeout_seconds,
    )
    yield
    await engine.dispose()


app = FastAPI(title="Order Service", lifespan=lifespan)
app.add_exception_handler(MeshError, mesh_error_handler)


def get_order_workflow(request: Request) -> OrderWorkflow:
    return request.app.state.order_workflow


def get_order_store(request: Request) -> OrderStore:
    return request.app.state.order_store


@app.post("/api/order", status_code=201, response_class=PlainTextResponse)
async def place_order(
    req: OrderRequest,
    workflow: OrderWorkflow = Depends(get_order_workflow),
):
    """注文確定 (在庫確認 → 保存)"""
    await workflow.place(req)
    return "Successfully Placed Order"


@app.get("/api/order", response_model=list[Order])
async def list_orders(store: OrderStore = Depends(get_order_store)):
    return await store.list_all()


@app.get("/api/order/{order_id}", response_model=Order)
async def get_order(order_id: int, store: OrderStore = Depends(get_order_store)):
    order = await store.get(order_id)
    if order is None:
        raise NotFound("Order not found", order_id=order_id)
    return order


@app.get("/health")
async def health():
    return {"status": "ok", "service": "order-service"}
