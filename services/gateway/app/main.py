"""
API Gateway — ルーティング層 (リバースプロキシ)

パスのプレフィックスでリクエストを担当サービスへ転送し、
レスポンス (ステータス・本文・Content-Type) をそのまま返す。
転送先に到達できない場合は例外を投げ返さず、汎用の 500 を合成する。

  ┌────────┐     ┌─────────┐  /api/product  ┌─────────────────┐
  │ Client │────▶│ Gateway │──────────────▶│ Product Service │
  │        │     │         │  /api/order    ┌─────────────────┐
  │        │     │         │──────────────▶│ Order Service   │
  └────────┘     └─────────┘               └────────┬────────┘
                                                    │ 在庫確認
                                           ┌────────▼────────┐
                                           │ Inventory Svc   │ (内部のみ)
                                           └─────────────────┘
"""

import logging
from contextlib import asynccontextmanager

import httpx
from fastapi import FastAPI, Request, Response
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, PlainTextResponse

from services.shared.config import Settings, get_settings
from services.shared.logging import setup_logging

logger = logging.getLogger(__name__)

# 転送時に引き継ぐリクエスト / レスポンスヘッダ
FORWARDED_REQUEST_HEADERS = ("content-type", "accept", "x-request-id")
FORWARDED_RESPONSE_HEADERS = ("location", "retry-after")

ROUTING_ERROR_BODY = "An error occurred while routing request"


def build_routes(settings: Settings) -> dict[str, str]:
    """パスプレフィックス → 転送先サービス URL"""
    return {
        "/api/product": settings.product_service_url.rstrip("/"),
        "/api/order": settings.order_service_url.rstrip("/"),
    }


def resolve_route(path: str, routes: dict[str, str]) -> str | None:
    for prefix, base_url in routes.items():
        if path == prefix or path.startswith(prefix + "/"):
            return base_url
    return None


@asynccontextmanager
async def lifespan(app: FastAPI):
    setup_logging()
    settings = get_settings()
    app.state.routes = build_routes(settings)
    for prefix, base_url in app.state.routes.items():
        logger.info("Initializing route %s -> %s", prefix, base_url)
    app.state.http_client = httpx.AsyncClient(
        timeout=settings.gateway_timeout_seconds
    )
    yield
    await app.state.http_client.aclose()


app = FastAPI(title="API Gateway", lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.get("/health")
async def health():
    return {"status": "ok", "service": "api-gateway"}


@app.api_route(
    "/{full_path:path}",
    methods=["GET", "POST", "PUT", "PATCH", "DELETE"],
)
async def forward(full_path: str, request: Request):
    path = request.url.path
    base_url = resolve_route(path, request.app.state.routes)
    if base_url is None:
        return JSONResponse(status_code=404, content={"detail": "No route for path"})

    logger.info("Received a request for %s: %s %s", base_url, request.method, path)
    client: httpx.AsyncClient = request.app.state.http_client
    try:
        resp = await client.request(
            request.method,
            f"{base_url}{path}",
            params=request.query_params.multi_items(),
            content=await request.body(),
            headers={
                k: v
                for k, v in request.headers.items()
                if k.lower() in FORWARDED_REQUEST_HEADERS
            },
        )
    except httpx.HTTPError as e:
        logger.error("Error occurred while routing request to %s: %s", base_url, e)
        return PlainTextResponse(ROUTING_ERROR_BODY, status_code=500)

    logger.info("Response status %s", resp.status_code)
    headers = {
        k: v for k, v in resp.headers.items() if k.lower() in FORWARDED_RESPONSE_HEADERS
    }
    return Response(
        content=resp.content,
        status_code=resp.status_code,
        headers=headers,
        media_type=resp.headers.get("content-type"),
    )
