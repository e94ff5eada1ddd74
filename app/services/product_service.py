"""
Product service.

Read-only catalog access used at order creation time.
"""

from sqlalchemy.ext.asyncio import AsyncSession

from app.models.enums import ProductType
from app.models.product import Product
from app.repositories.product_repository import ProductRepository
from app.utils.exceptions import ProductNotFoundError, ValidationError


class ProductService:
    """Catalog lookups."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize product service."""
        self.session = session
        self.product_repo = ProductRepository(session)

    async def get_active_or_raise(self, product_id: int) -> Product:
        """
        Get a purchasable product.

        Args:
            product_id: Product ID

        Returns:
            Active product

        Raises:
            ProductNotFoundError: Missing or inactive product
        """
        product = await self.product_repo.get_active(product_id)
        if product is None:
            raise ProductNotFoundError(product_id=product_id)
        return product

    async def list_products(
        self,
        page: int = 1,
        per_page: int = 20,
        product_type: ProductType | None = None,
    ) -> tuple[list[Product], int]:
        """
        List active products in display order.

        Args:
            page: Page number (1-indexed)
            per_page: Items per page (1..100)
            product_type: Optional type filter

        Returns:
            Tuple of (products, total_count)

        Raises:
            ValidationError: Invalid pagination
        """
        if page < 1 or not 1 <= per_page <= 100:
            raise ValidationError(
                "Invalid pagination", page=page, per_page=per_page
            )
        return await self.product_repo.list_active(
            page=page, per_page=per_page, product_type=product_type
        )
