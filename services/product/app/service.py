"""
Product Service — キャッシュアサイド付き商品サービス

ストアが常に正 (source of truth)。キャッシュは読み取りの高速化だけを担う。

  create   ストアに保存 → PRODUCT_CACHE::<id> に商品を書き込む (write-through)
  get_all  PRODUCT_CACHE::ALL_PRODUCTS を見る → ミスならストアを1回読んで格納
  update   ストアを更新 → PRODUCT_CACHE::<id> を id 文字列で上書き
  delete   ストアから削除 → PRODUCT_CACHE::<id> を削除 (evict)

全商品リストは単一商品の変更では無効化しない。TTL が切れるか
evict_listing() が呼ばれるまで古いリストを返しうる (読み取り性能を優先)。

キャッシュ障害 (CacheDegraded) はここで吸収し、ストアを直接読む。
update で上書きに失敗した場合は削除を試みる。削除も失敗すると、
更新前の商品が TTL 切れまで残りうる (Redis 全断時の縮退動作)。
ストア障害 (StoreUnavailable) はそのまま呼び出し元へ伝播する。
"""

import logging

from services.shared.errors import CacheDegraded

from .cache import PayloadKind, ProductCache, all_products_key, product_key
from .models import Product, ProductRequest
from .store import ProductStore

logger = logging.getLogger(__name__)


class ProductService:
    def __init__(self, store: ProductStore, cache: ProductCache) -> None:
        self.store = store
        self.cache = cache

    async def create(self, req: ProductRequest) -> Product:
        logger.debug("Create new product %s", req.name)
        product = await self.store.insert(req)
        logger.debug("Successfully saved new product %s", product.id)

        await self._put(product_key(product.id), PayloadKind.PRODUCT, product)
        return product

    async def get_all(self) -> list[Product]:
        key = all_products_key()
        try:
            cached = await self.cache.get(key, PayloadKind.PRODUCT_LIST)
        except CacheDegraded as e:
            logger.warning("Product cache degraded, reading from store: %s", e)
            cached = None
        if cached is not None:
            return cached

        logger.debug("Returning a list of products from the store")
        products = await self.store.find_all()
        await self._put(key, PayloadKind.PRODUCT_LIST, products)
        return products

    async def update(self, product_id: str, req: ProductRequest) -> str:
        logger.debug("Updating product with id %s", product_id)
        key = product_key(product_id)
        updated_id = await self.store.update(product_id, req)

        # 更新後はエンティティではなく id 文字列をキャッシュする
        if not await self._put(key, PayloadKind.PRODUCT_ID, updated_id):
            # 上書きできなければ更新前の商品を残さないよう削除を試みる
            await self._evict(key)
        return updated_id

    async def delete(self, product_id: str) -> None:
        logger.debug("Deleting product with id %s", product_id)
        key = product_key(product_id)
        await self.store.delete(product_id)
        await self._evict(key)

    async def cached(
        self, product_id: str, kind: PayloadKind
    ) -> Product | list[Product] | str | None:
        """単一商品キーを指定した種別で読む (ストアには行かない)。"""
        return await self.cache.get(product_key(product_id), kind)

    async def evict_listing(self) -> None:
        """全商品リストのキャッシュを捨て、次の get_all でストアから作り直させる。"""
        await self._evict(all_products_key())

    async def _put(self, key: str, kind: PayloadKind, value) -> bool:
        try:
            await self.cache.put(key, kind, value)
        except CacheDegraded as e:
            logger.warning("Product cache degraded, skipped write of %s: %s", key, e)
            return False
        return True

    async def _evict(self, key: str) -> None:
        try:
            await self.cache.evict(key)
        except CacheDegraded as e:
            # 削除後に古い値を返さないことが保証できない。TTL 切れまで残りうる。
            logger.warning("Product cache degraded, could not evict %s: %s", key, e)
