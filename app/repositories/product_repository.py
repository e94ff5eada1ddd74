"""
Product repository.

Read-side access to the catalog.
"""

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.enums import ProductType
from app.models.product import Product
from app.repositories.base import BaseRepository


class ProductRepository(BaseRepository[Product]):
    """Product repository with catalog queries."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize product repository."""
        super().__init__(Product, session)

    async def get_active(self, product_id: int) -> Product | None:
        """
        Get an active product by ID.

        Args:
            product_id: Product ID

        Returns:
            Product or None if missing or inactive
        """
        return await self.get_by(id=product_id, is_active=True)

    async def list_active(
        self,
        page: int = 1,
        per_page: int = 20,
        product_type: ProductType | None = None,
    ) -> tuple[list[Product], int]:
        """
        List active products in display order.

        Args:
            page: Page number (1-indexed)
            per_page: Items per page
            product_type: Optional type filter

        Returns:
            Tuple of (products, total_count)
        """
        conditions = [Product.is_active.is_(True)]
        if product_type is not None:
            conditions.append(Product.type == product_type)

        count_stmt = select(func.count(Product.id)).where(*conditions)
        total = (await self.session.execute(count_stmt)).scalar() or 0

        stmt = (
            select(Product)
            .where(*conditions)
            .order_by(Product.display_order.asc(), Product.id.asc())
            .offset((page - 1) * per_page)
            .limit(per_page)
        )
        result = await self.session.execute(stmt)
        return list(result.scalars().all()), total
