"""
Order Service — リクエスト / レスポンスモデル

JSON のフィールド名は camelCase (skuCode, orderNumber)。snake_case でも受け付ける。
"""

from decimal import Decimal
from typing import Any

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

# t_orders の列定義 (VARCHAR(255) / INTEGER / NUMERIC(19, 2))
SKU_CODE_MAX_LENGTH = 255
MAX_QUANTITY = 2**31 - 1
PRICE_MAX_DIGITS = 19
PRICE_DECIMAL_PLACES = 2


class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class OrderRequest(_CamelModel):
    # id / orderNumber が送られてきても作成時には使わない
    id: Any = None
    order_number: Any = None
    sku_code: str
    price: Decimal
    quantity: int


class Order(_CamelModel):
    """確定した注文。作成後は変更しない。"""
    id: int | None = None
    order_number: str
    sku_code: str
    price: Decimal
    quantity: int
