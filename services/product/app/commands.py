"""
Product Service — コマンドハンドラ (カタログストアの Write 側)

商品の識別子はストアが払い出す。作成後は明示的な更新以外で変わらない。
"""

from datetime import datetime, timezone
from uuid import uuid4

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from .models import Product, ProductRequest
from .queries import row_to_product, find_product


async def insert_product(session: AsyncSession, req: ProductRequest) -> Product:
    """新しい商品を保存し、ストアに書き込まれた行を返す。"""
    product_id = uuid4().hex
    now = datetime.now(timezone.utc)
    result = await session.execute(
        text("""
            INSERT INTO products (id, name, description, price, created_at, updated_at)
            VALUES (:id, :name, :description, :price, :now, :now)
            RETURNING id, name, description, price
        """),
        {
            "id": product_id,
            "name": req.name,
            "description": req.description,
            "price": req.price,
            "now": now,
        },
    )
    row = result.one()
    await session.commit()
    # 列の型 (NUMERIC(19, 2) など) で丸められた後の値を返す
    return row_to_product(row)


async def update_product(
    session: AsyncSession,
    product_id: str,
    req: ProductRequest,
) -> str:
    """
    商品を更新して id を返す。

    対象が存在しない場合は何もせず、受け取った id をそのまま返す
    (エラーにはしない)。
    """
    product = await find_product(session, product_id)
    if product is None:
        return product_id

    await session.execute(
        text("""
            UPDATE products
            SET name = :name, description = :description, price = :price,
                updated_at = :now
            WHERE id = :id
        """),
        {
            "id": product_id,
            "name": req.name,
            "description": req.description,
            "price": req.price,
            "now": datetime.now(timezone.utc),
        },
    )
    await session.commit()
    return product.id


async def delete_product(session: AsyncSession, product_id: str) -> None:
    await session.execute(
        text("DELETE FROM products WHERE id = :id"),
        {"id": product_id},
    )
    await session.commit()
