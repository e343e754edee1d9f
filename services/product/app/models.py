"""
Product Service — リクエスト / レスポンスモデル
"""

from decimal import Decimal

from pydantic import BaseModel, Field


class ProductRequest(BaseModel):
    # id は作成時・更新時とも無視する (識別子はストアが払い出す / パスで渡す)
    id: str | None = None
    # products テーブルの VARCHAR(255) / NUMERIC(19, 2) に合わせる
    name: str = Field(max_length=255)
    description: str = ""
    price: Decimal = Field(ge=0, max_digits=19, decimal_places=2)


class Product(BaseModel):
    """ストアが所有する商品。キャッシュはこのコピーを TTL 付きで持つだけ。"""
    id: str
    name: str
    description: str
    price: Decimal
