"""
Inventory Service — クエリハンドラ (在庫の Read 側)

在庫はこのサービスでは読むだけ。注文ワークフローも引き当て・減算はしない。
"""

from typing import Protocol

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from services.shared.errors import STORE_UNREACHABLE_ERRORS, StoreUnavailable


async def is_in_stock(session: AsyncSession, sku_code: str, quantity: int) -> bool:
    """
    sku_code の在庫が quantity 以上あるか。
    存在しない SKU は「在庫なし」(False) であってエラーではない。
    """
    result = await session.execute(
        text("""
            SELECT EXISTS (
                SELECT 1 FROM t_inventory
                WHERE sku_code = :sku_code AND quantity >= :quantity
            )
        """),
        {"sku_code": sku_code, "quantity": quantity},
    )
    return bool(result.scalar())


class InventoryStore(Protocol):
    async def is_in_stock(self, sku_code: str, quantity: int) -> bool: ...


class SqlInventoryStore:
    def __init__(self, session_factory: async_sessionmaker[AsyncSession]) -> None:
        self.session_factory = session_factory

    async def is_in_stock(self, sku_code: str, quantity: int) -> bool:
        try:
            async with self.session_factory() as session:
                return await is_in_stock(session, sku_code, quantity)
        except STORE_UNREACHABLE_ERRORS as e:
            raise StoreUnavailable(f"Inventory store unavailable: {e}") from e
