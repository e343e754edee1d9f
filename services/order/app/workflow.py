"""
Order Workflow — 在庫確認付きの注文確定

注文1件ごとの状態遷移:

  ┌──────────┐     ┌────────────────┐  true   ┌───────────┐
  │ RECEIVED │────▶│ CHECKING_STOCK │───────▶│ COMMITTED │──▶ 注文を保存
  └──────────┘     └───────┬────────┘        └───────────┘
   (形式チェック)           │ false          ┌──────────┐
                           ├──────────────▶│ REJECTED │  StockRejected
                           │ タイムアウト    └──────────┘
                           │ 通信エラー      ┌──────────┐
                           └──────────────▶│  FAILED  │  VerificationFailed
                                           └──────────┘

- 注文の保存は COMMITTED からしか到達できない (_persist で強制する)。
- REJECTED は「在庫なしが確定」、FAILED は「在庫状態が不明」。呼び出し元は
  FAILED ならリトライしてよいが、REJECTED と同じ扱いにしてはいけない。
- 在庫は読むだけで引き当てない。同じ SKU への同時注文は売り越しうる。
- 自動リトライも補償トランザクションもしない。
"""

import asyncio
import logging
from datetime import datetime, timezone
from enum import Enum
from uuid import uuid4

from services.shared.errors import (
    IllegalTransition,
    MeshError,
    StockRejected,
    ValidationError,
    VerificationFailed,
)

from .client import StockChecker
from .models import (
    MAX_QUANTITY,
    PRICE_DECIMAL_PLACES,
    PRICE_MAX_DIGITS,
    SKU_CODE_MAX_LENGTH,
    Order,
    OrderRequest,
)
from .store import OrderStore

logger = logging.getLogger(__name__)


class PlacementState(str, Enum):
    RECEIVED = "RECEIVED"
    CHECKING_STOCK = "CHECKING_STOCK"
    COMMITTED = "COMMITTED"
    REJECTED = "REJECTED"
    FAILED = "FAILED"


_TRANSITIONS: dict[PlacementState, set[PlacementState]] = {
    PlacementState.RECEIVED: {PlacementState.CHECKING_STOCK},
    PlacementState.CHECKING_STOCK: {
        PlacementState.COMMITTED,
        PlacementState.REJECTED,
        PlacementState.FAILED,
    },
}


class Placement:
    """注文確定1回分の状態とステップログ"""

    def __init__(self, request: OrderRequest) -> None:
        self.request = request
        self.state = PlacementState.RECEIVED
        self.stock_confirmed: bool | None = None
        self.order: Order | None = None
        self.error: MeshError | None = None
        self.log: list[dict] = []
        self.log.append(self._entry(PlacementState.RECEIVED))

    @property
    def is_terminal(self) -> bool:
        return self.state not in _TRANSITIONS

    def advance(self, new_state: PlacementState, **info) -> None:
        if new_state not in _TRANSITIONS.get(self.state, set()):
            raise IllegalTransition(f"{self.state.value} -> {new_state.value}")
        self.state = new_state
        self.log.append(self._entry(new_state, **info))
        logger.info(
            "Order placement %s x %s: %s",
            self.request.sku_code,
            self.request.quantity,
            new_state.value,
        )

    def _entry(self, state: PlacementState, **info) -> dict:
        return {
            "step": len(self.log) + 1,
            "state": state.value,
            "timestamp": datetime.now(timezone.utc).isoformat(),
            **info,
        }


class OrderWorkflow:
    def __init__(
        self,
        stock_checker: StockChecker,
        store: OrderStore,
        timeout_seconds: float = 3.0,
    ) -> None:
        self.stock_checker = stock_checker
        self.store = store
        self.timeout_seconds = timeout_seconds

    async def place(self, req: OrderRequest) -> Order:
        """
        注文を確定して保存済みの Order を返す。

        REJECTED なら StockRejected、FAILED なら VerificationFailed を送出する。
        """
        placement = await self.run(req)
        if placement.state is not PlacementState.COMMITTED:
            raise placement.error
        return placement.order

    async def run(self, req: OrderRequest) -> Placement:
        """
        ワークフローを終端状態まで進めて Placement を返す。

        ValidationError (形式エラー) と StoreUnavailable (保存失敗) は送出する。
        REJECTED / FAILED は Placement.error に記録して返す。
        """
        placement = Placement(req)
        self._validate(req)

        # ── CHECKING_STOCK: Inventory Service へ1回だけ問い合わせる ──
        placement.advance(PlacementState.CHECKING_STOCK)
        try:
            in_stock = await asyncio.wait_for(
                self.stock_checker.is_in_stock(req.sku_code, req.quantity),
                timeout=self.timeout_seconds,
            )
        except asyncio.TimeoutError:
            placement.error = VerificationFailed(
                "Inventory check timed out",
                sku_code=req.sku_code,
                quantity=req.quantity,
            )
            placement.advance(PlacementState.FAILED, error=placement.error.message)
            return placement
        except VerificationFailed as e:
            placement.error = e
            placement.advance(PlacementState.FAILED, error=e.message)
            return placement
        except Exception as e:
            # 例外を包まない StockChecker 実装でも「在庫状態は不明」として扱う
            logger.warning(
                "Inventory check raised %s for %s x %s: %s",
                type(e).__name__,
                req.sku_code,
                req.quantity,
                e,
            )
            placement.error = VerificationFailed(
                f"Inventory check failed: {e}",
                sku_code=req.sku_code,
                quantity=req.quantity,
            )
            placement.error.__cause__ = e
            placement.advance(PlacementState.FAILED, error=placement.error.message)
            return placement

        if in_stock is not True:
            placement.stock_confirmed = False
            placement.error = StockRejected(req.sku_code, req.quantity)
            placement.advance(PlacementState.REJECTED, error=placement.error.message)
            return placement

        # ── COMMITTED: 在庫ありが確定したときだけ注文を作る ──
        placement.stock_confirmed = True
        placement.advance(PlacementState.COMMITTED)
        await self._persist(placement)
        return placement

    def _validate(self, req: OrderRequest) -> None:
        if not req.sku_code or not req.sku_code.strip():
            raise ValidationError("skuCode must not be empty")
        if len(req.sku_code) > SKU_CODE_MAX_LENGTH:
            raise ValidationError(
                f"skuCode must be at most {SKU_CODE_MAX_LENGTH} characters"
            )
        if req.quantity <= 0:
            raise ValidationError("quantity must be greater than 0", quantity=req.quantity)
        if req.quantity > MAX_QUANTITY:
            raise ValidationError(
                f"quantity must be at most {MAX_QUANTITY}", quantity=req.quantity
            )
        if req.price < 0:
            raise ValidationError("price must not be negative")
        _, digits, exponent = req.price.normalize().as_tuple()
        # NUMERIC(19, 2) に収まらない価格はストアに渡す前に弾く
        if -exponent > PRICE_DECIMAL_PLACES or len(digits) + exponent > (
            PRICE_MAX_DIGITS - PRICE_DECIMAL_PLACES
        ):
            raise ValidationError(
                f"price must fit NUMERIC({PRICE_MAX_DIGITS}, {PRICE_DECIMAL_PLACES})"
            )

    async def _persist(self, placement: Placement) -> None:
        if placement.state is not PlacementState.COMMITTED or placement.stock_confirmed is not True:
            raise IllegalTransition(
                f"Cannot persist an order from state {placement.state.value}"
            )
        req = placement.request
        order = Order(
            order_number=str(uuid4()),
            sku_code=req.sku_code,
            price=req.price,
            quantity=req.quantity,
        )
        # 保存に失敗した場合は StoreUnavailable がそのまま伝播する (リトライしない)
        placement.order = await self.store.add(order)
        logger.info(
            "Order %s persisted for %s x %s",
            placement.order.order_number,
            req.sku_code,
            req.quantity,
        )
