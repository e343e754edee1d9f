"""
Product Service — クエリハンドラ (カタログストアの Read 側)
"""

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from .models import Product


def row_to_product(row) -> Product:
    return Product(
        id=row.id,
        name=row.name,
        description=row.description,
        price=row.price,
    )


async def find_product(session: AsyncSession, product_id: str) -> Product | None:
    result = await session.execute(
        text("SELECT id, name, description, price FROM products WHERE id = :id"),
        {"id": product_id},
    )
    row = result.fetchone()
    if not row:
        return None
    return row_to_product(row)


async def find_all_products(session: AsyncSession) -> list[Product]:
    """全商品を作成順に返す。"""
    result = await session.execute(
        text("""
            SELECT id, name, description, price
            FROM products
            ORDER BY created_at ASC, id ASC
        """),
    )
    return [row_to_product(row) for row in result.fetchall()]
