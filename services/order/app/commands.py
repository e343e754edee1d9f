"""
Order Service — コマンドハンドラ (注文ストアの Write 側)

注文は作成のみ。更新・削除の経路は持たない。
このコマンドを呼べるのは在庫確認が true で確定したワークフローだけ。
"""

from datetime import datetime, timezone

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from .models import Order


async def insert_order(session: AsyncSession, order: Order) -> Order:
    """注文を保存し、ストアが払い出した id 付きで返す。"""
    result = await session.execute(
        text("""
            INSERT INTO t_orders (order_number, sku_code, price, quantity, created_at)
            VALUES (:order_number, :sku_code, :price, :quantity, :now)
            RETURNING id
        """),
        {
            "order_number": order.order_number,
            "sku_code": order.sku_code,
            "price": order.price,
            "quantity": order.quantity,
            "now": datetime.now(timezone.utc),
        },
    )
    order_id = result.scalar_one()
    await session.commit()
    return order.model_copy(update={"id": order_id})
