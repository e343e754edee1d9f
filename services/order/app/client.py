"""
Order Service — 在庫確認クライアント (Inventory Service への同期呼び出し)

注文ワークフローは StockChecker という能力 (Protocol) にだけ依存する。
HTTP の詳細はこのモジュールに閉じ込め、テストではスタブに差し替える。

  true                      → 在庫あり (確定)
  false                     → 在庫なし (確定)
  タイムアウト / 通信エラー /
  2xx 以外 / 解釈できない本文 → VerificationFailed (在庫状態は「不明」)

「不明」と「在庫なし」を混同しないこと。
"""

import logging
from typing import Protocol

import httpx

from services.shared.errors import VerificationFailed

logger = logging.getLogger(__name__)


class StockChecker(Protocol):
    async def is_in_stock(self, sku_code: str, quantity: int) -> bool: ...


class HttpStockChecker:
    def __init__(
        self,
        inventory_service_url: str,
        timeout_seconds: float = 3.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.inventory_url = inventory_service_url.rstrip("/")
        self.timeout = httpx.Timeout(timeout_seconds)
        self.transport = transport

    async def is_in_stock(self, sku_code: str, quantity: int) -> bool:
        async with httpx.AsyncClient(
            timeout=self.timeout, transport=self.transport
        ) as client:
            try:
                resp = await client.get(
                    f"{self.inventory_url}/api/inventory",
                    params={"skuCode": sku_code, "quantity": quantity},
                )
                resp.raise_for_status()
                body = resp.json()
            except httpx.TimeoutException as e:
                logger.warning("Inventory check timed out for %s x %s", sku_code, quantity)
                raise VerificationFailed(
                    "Inventory check timed out",
                    sku_code=sku_code,
                    quantity=quantity,
                ) from e
            except httpx.HTTPError as e:
                logger.warning("Inventory check failed for %s x %s: %s", sku_code, quantity, e)
                raise VerificationFailed(
                    f"Inventory check failed: {e}",
                    sku_code=sku_code,
                    quantity=quantity,
                ) from e
            except ValueError as e:
                raise VerificationFailed(
                    "Inventory service returned a non-JSON body",
                    sku_code=sku_code,
                    quantity=quantity,
                ) from e

        if not isinstance(body, bool):
            raise VerificationFailed(
                f"Inventory service returned an unexpected body: {body!r}",
                sku_code=sku_code,
                quantity=quantity,
            )
        return body
