# src/pm_product/domain/repository.py
"""ProductRepository Protocol — the slice of the catalog the core needs."""

from typing import Protocol

from sqlalchemy.ext.asyncio import AsyncSession

from src.pm_product.domain.models import Product


class ProductRepositoryProtocol(Protocol):
    async def get_by_id(self, db: AsyncSession, product_id: int) -> Product | None: ...

    async def get_for_update(
        self, db: AsyncSession, product_id: int
    ) -> Product | None: ...

    async def reduce_stock(
        self, db: AsyncSession, product_id: int, quantity: int
    ) -> Product | None: ...

    async def restore_stock(
        self, db: AsyncSession, product_id: int, quantity: int
    ) -> None: ...
