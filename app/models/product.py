"""
Product model.

Catalog entries: coin bundles and subscription tiers. Read-mostly; the
order core only reads price and value.
"""

from datetime import UTC, datetime
from decimal import Decimal

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    DateTime,
    Enum,
    Integer,
    String,
    Text,
)
from sqlalchemy.orm import Mapped, mapped_column

from app.models.base import Base
from app.models.enums import ProductType
from app.models.types import FiatMoneyType


class Product(Base):
    """Catalog product."""

    __tablename__ = "products"
    __table_args__ = (
        CheckConstraint("price >= 0", name="check_product_price_non_negative"),
        CheckConstraint(
            "discount >= 0 AND discount <= 100",
            name="check_product_discount_range",
        ),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)

    name: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    type: Mapped[ProductType] = mapped_column(
        Enum(ProductType, native_enum=False, length=32),
        nullable=False,
        index=True,
    )

    # Coins delivered per unit (COIN, COIN_AND_SUBSCRIPTION)
    value: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    # VIP days delivered per unit (SUBSCRIPTION, COIN_AND_SUBSCRIPTION)
    vip_days: Mapped[int | None] = mapped_column(Integer, nullable=True)

    price: Mapped[Decimal] = mapped_column(
        FiatMoneyType, nullable=False, comment="Unit price in fiat (USD)"
    )
    discount: Mapped[int] = mapped_column(
        Integer, nullable=False, default=0, comment="Display discount, percent"
    )
    display_order: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    is_active: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=True, index=True
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=lambda: datetime.now(UTC), nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(UTC),
        onupdate=lambda: datetime.now(UTC),
        nullable=False,
    )

    def __repr__(self) -> str:
        """String representation."""
        return f"<Product(id={self.id}, name={self.name}, type={self.type})>"
