"""
Product Service — カタログストアアダプタ

ProductService はこの Protocol にだけ依存する。
SqlProductStore はリクエストごとにセッションを開き、
commands / queries の関数に委譲する。
"""

from typing import Protocol

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from services.shared.errors import STORE_UNREACHABLE_ERRORS, StoreUnavailable

from . import commands, queries
from .models import Product, ProductRequest


class ProductStore(Protocol):
    async def insert(self, req: ProductRequest) -> Product: ...

    async def find_all(self) -> list[Product]: ...

    async def update(self, product_id: str, req: ProductRequest) -> str: ...

    async def delete(self, product_id: str) -> None: ...


class SqlProductStore:
    def __init__(self, session_factory: async_sessionmaker[AsyncSession]) -> None:
        self.session_factory = session_factory

    async def insert(self, req: ProductRequest) -> Product:
        try:
            async with self.session_factory() as session:
                return await commands.insert_product(session, req)
        except STORE_UNREACHABLE_ERRORS as e:
            raise StoreUnavailable(f"Product store unavailable: {e}") from e

    async def find_all(self) -> list[Product]:
        try:
            async with self.session_factory() as session:
                return await queries.find_all_products(session)
        except STORE_UNREACHABLE_ERRORS as e:
            raise StoreUnavailable(f"Product store unavailable: {e}") from e

    async def update(self, product_id: str, req: ProductRequest) -> str:
        try:
            async with self.session_factory() as session:
                return await commands.update_product(session, product_id, req)
        except STORE_UNREACHABLE_ERRORS as e:
            raise StoreUnavailable(f"Product store unavailable: {e}") from e

    async def delete(self, product_id: str) -> None:
        try:
            async with self.session_factory() as session:
                await commands.delete_product(session, product_id)
        except STORE_UNREACHABLE_ERRORS as e:
            raise StoreUnavailable(f"Product store unavailable: {e}") from e
