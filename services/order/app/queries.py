"""
Order Service — クエリハンドラ (注文ストアの Read 側)
"""

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from .models import Order


def _to_order(row) -> Order:
    return Order(
        id=row.id,
        order_number=row.order_number,
        sku_code=row.sku_code,
        price=row.price,
        quantity=row.quantity,
    )


async def get_order(session: AsyncSession, order_id: int) -> Order | None:
    result = await session.execute(
        text("""
            SELECT id, order_number, sku_code, price, quantity
            FROM t_orders WHERE id = :id
        """),
        {"id": order_id},
    )
    row = result.fetchone()
    if not row:
        return None
    return _to_order(row)


async def list_orders(session: AsyncSession) -> list[Order]:
    """全注文を新しい順に返す。"""
    result = await session.execute(
        text("""
            SELECT id, order_number, sku_code, price, quantity
            FROM t_orders ORDER BY created_at DESC, id DESC
        """),
    )
    return [_to_order(row) for row in result.fetchall()]
