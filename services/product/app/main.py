"""
Product Service — FastAPI エントリーポイント

カタログ (商品) の CRUD。読み取りは Redis キャッシュで高速化し、
ストア (PostgreSQL) を正とする。

┌─────────┐     ┌────────────────┐     ┌──────────────┐
│ Gateway │────▶│ ProductService │────▶│ Catalog DB   │
└─────────┘     │ (cache-aside)  │     └──────────────┘
                │                │────▶┌──────────────┐
                └────────────────┘     │ Redis        │
                                       │ PRODUCT_CACHE│
                                       └──────────────┘
"""

from contextlib import asynccontextmanager

import redis.asyncio as aioredis
from fastapi import Depends, FastAPI, Request, Response
from sqlalchemy.ext.asyncio import async_sessionmaker, create_async_engine

from services.shared.config import get_settings
from services.shared.errors import MeshError, mesh_error_handler
from services.shared.logging import setup_logging

from .cache import ProductCache
from .models import Product, ProductRequest
from .service import ProductService
from .store import SqlProductStore


@asynccontextmanager
async def lifespan(app: FastAPI):
    """ProductService はプロセス起動時に1回だけ組み立て、終了時に接続を閉じる。"""
    setup_logging()
    settings = get_settings()
    engine = create_async_engine(settings.database_url, echo=False)
    redis_pool = aioredis.from_url(settings.redis_url, decode_responses=True)
    app.state.product_service = ProductService(
        SqlProductStore(async_sessionmaker(engine, expire_on_commit=False)),
        ProductCache(redis_pool, ttl_seconds=settings.product_cache_ttl_seconds),
    )
    yield
    await redis_pool.aclose()
    await engine.dispose()


app = FastAPI(title="Product Service", lifespan=lifespan)
app.add_exception_handler(MeshError, mesh_error_handler)


def get_product_service(request: Request) -> ProductService:
    return request.app.state.product_service


@app.post("/api/product", status_code=201, response_model=Product)
async def create_product(
    req: ProductRequest,
    service: ProductService = Depends(get_product_service),
):
    return await service.create(req)


@app.get("/api/product", response_model=list[Product])
async def get_all_products(service: ProductService = Depends(get_product_service)):
    return await service.get_all()


@app.put("/api/product/{product_id}", status_code=204)
async def update_product(
    product_id: str,
    req: ProductRequest,
    service: ProductService = Depends(get_product_service),
):
    updated_id = await service.update(product_id, req)
    return Response(
        status_code=204, headers={"Location": f"/api/product/{updated_id}"}
    )


@app.delete("/api/product/{product_id}", status_code=204)
async def delete_product(
    product_id: str,
    service: ProductService = Depends(get_product_service),
):
    await service.delete(product_id)
    return Response(status_code=204)


@app.get("/health")
async def health():
    return {"status": "ok", "service": "product-service"}
