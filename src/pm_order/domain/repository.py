# src/pm_order/domain/repository.py
"""OrderRepository Protocol — interface contract for persistence layer."""
from typing import Protocol

from sqlalchemy.ext.asyncio import AsyncSession

from src.pm_order.domain.models import Order, OrderItem, OrderUpdate


class OrderRepositoryProtocol(Protocol):
    async def save(self, order: Order, db: AsyncSession) -> Order: ...

    async def add_item(self, item: OrderItem, db: AsyncSession) -> OrderItem: ...

    async def get_by_id(self, order_id: int, db: AsyncSession) -> Order | None: ...

    async def get_for_update(self, order_id: int, db: AsyncSession) -> Order | None: ...

    async def update(
        self, order_id: int, changes: OrderUpdate, db: AsyncSession
    ) -> None: ...

    async def list_by_buyer(self, buyer_id: int, db: AsyncSession) -> list[Order]: ...

    async def list_by_seller(self, seller_id: int, db: AsyncSession) -> list[Order]: ...
