"""
Product Service — 商品キャッシュ (Redis)

1つのキー空間 PRODUCT_CACHE に3種類のペイロードが同居する:

  PRODUCT_CACHE::<id>            product     単一商品 (create で書き込み)
                                 product_id  id 文字列 (update で上書き)
  PRODUCT_CACHE::ALL_PRODUCTS    product_list 全商品リスト (get_all で書き込み)

値は種別タグ付きのエンベロープ (CacheEntry) として JSON で保存する。
読み出す側は期待する種別を必ず指定し、不一致は CacheKindMismatch になる。
TTL は固定 (アクセスで延長しない)。Redis の EXPIRE に加えて
エンベロープにも expires_at を持たせ、期限切れは読み出し時にもミス扱いにする。

Redis の障害は CacheDegraded に変換して送出する。
吸収してストアへフォールバックするのは ProductService の責務。
"""

import logging
from collections.abc import Callable
from datetime import datetime, timedelta, timezone
from enum import Enum
from typing import Any

import pydantic
import redis.asyncio as aioredis
from pydantic import BaseModel
from redis.exceptions import RedisError

from services.shared.errors import CacheDegraded, CacheKindMismatch, ValidationError

from .models import Product

logger = logging.getLogger(__name__)

CACHE_NAME = "PRODUCT_CACHE"
KEY_SEP = "::"
# 全商品リスト用の予約キー。ストアが払い出す id (uuid4 hex) とは衝突しない。
ALL_PRODUCTS = "ALL_PRODUCTS"


def product_key(product_id: str) -> str:
    if not product_id or product_id == ALL_PRODUCTS or KEY_SEP in product_id:
        raise ValidationError(f"Invalid product id: {product_id!r}")
    return f"{CACHE_NAME}{KEY_SEP}{product_id}"


def all_products_key() -> str:
    return f"{CACHE_NAME}{KEY_SEP}{ALL_PRODUCTS}"


class PayloadKind(str, Enum):
    PRODUCT = "product"
    PRODUCT_LIST = "product_list"
    PRODUCT_ID = "product_id"


class CacheEntry(BaseModel):
    kind: PayloadKind
    payload: dict[str, Any] | list[dict[str, Any]] | str
    expires_at: datetime

    @classmethod
    def wrap(
        cls,
        kind: PayloadKind,
        value: Product | list[Product] | str,
        expires_at: datetime,
    ) -> "CacheEntry":
        if kind is PayloadKind.PRODUCT:
            payload = value.model_dump(mode="json")
        elif kind is PayloadKind.PRODUCT_LIST:
            payload = [p.model_dump(mode="json") for p in value]
        else:
            payload = value
        return cls(kind=kind, payload=payload, expires_at=expires_at)

    def unwrap(self) -> Product | list[Product] | str:
        if self.kind is PayloadKind.PRODUCT:
            return Product.model_validate(self.payload)
        if self.kind is PayloadKind.PRODUCT_LIST:
            return [Product.model_validate(p) for p in self.payload]
        return self.payload


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class ProductCache:
    """
    Redis クライアントに対する型付きの get / put / evict。

    キーごとの原子性は Redis (GET / SET EX / DEL) に任せ、
    リクエスト単位のロックは取らない。
    """

    def __init__(
        self,
        redis: aioredis.Redis,
        ttl_seconds: int = 600,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        self.redis = redis
        self.ttl_seconds = ttl_seconds
        self.clock = clock

    async def get(self, key: str, kind: PayloadKind) -> Product | list[Product] | str | None:
        try:
            raw = await self.redis.get(key)
        except RedisError as e:
            raise CacheDegraded(f"Cache get failed for {key}: {e}") from e

        if raw is None:
            logger.debug("Cache MISS: %s", key)
            return None

        try:
            entry = CacheEntry.model_validate_json(raw)
        except pydantic.ValidationError as e:
            raise CacheDegraded(f"Unreadable cache entry {key}") from e

        if entry.expires_at <= self.clock():
            logger.debug("Cache EXPIRED: %s", key)
            return None
        if entry.kind is not kind:
            raise CacheKindMismatch(key, kind.value, entry.kind.value)

        logger.debug("Cache HIT: %s", key)
        return entry.unwrap()

    async def put(
        self,
        key: str,
        kind: PayloadKind,
        value: Product | list[Product] | str | None,
    ) -> None:
        # None は保存しない (「存在しない」を覚えてしまわないように)
        if value is None:
            return
        entry = CacheEntry.wrap(
            kind, value, self.clock() + timedelta(seconds=self.ttl_seconds)
        )
        try:
            await self.redis.set(key, entry.model_dump_json(), ex=self.ttl_seconds)
        except RedisError as e:
            raise CacheDegraded(f"Cache set failed for {key}: {e}") from e
        logger.debug("Cache SET: %s (%s, TTL: %ss)", key, kind.value, self.ttl_seconds)

    async def evict(self, key: str) -> None:
        try:
            await self.redis.delete(key)
        except RedisError as e:
            raise CacheDegraded(f"Cache evict failed for {key}: {e}") from e
        logger.debug("Cache EVICT: %s", key)
