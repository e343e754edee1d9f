"""
Order Service — 注文ストアアダプタ
"""

from typing import Protocol

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from services.shared.errors import STORE_UNREACHABLE_ERRORS, StoreUnavailable

from . import commands, queries
from .models import Order


class OrderStore(Protocol):
    async def add(self, order: Order) -> Order: ...

    async def get(self, order_id: int) -> Order | None: ...

    async def list_all(self) -> list[Order]: ...


class SqlOrderStore:
    def __init__(self, session_factory: async_sessionmaker[AsyncSession]) -> None:
        self.session_factory = session_factory

    async def add(self, order: Order) -> Order:
        try:
            async with self.session_factory() as session:
                return await commands.insert_order(session, order)
        except STORE_UNREACHABLE_ERRORS as e:
            raise StoreUnavailable(f"Order store unavailable: {e}") from e

    async def get(self, order_id: int) -> Order | None:
        try:
            async with self.session_factory() as session:
                return await queries.get_order(session, order_id)
        except STORE_UNREACHABLE_ERRORS as e:
            raise StoreUnavailable(f"Order store unavailable: {e}") from e

    async def list_all(self) -> list[Order]:
        try:
            async with self.session_factory() as session:
                return await queries.list_orders(session)
        except STORE_UNREACHABLE_ERRORS as e:
            raise StoreUnavailable(f"Order store unavailable: {e}") from e
