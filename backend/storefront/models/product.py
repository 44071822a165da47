"""Product model and the product <-> category association table."""

import enum
from decimal import Decimal

from sqlalchemy import (
    Boolean, Column, Enum, ForeignKey, Integer, Numeric, String, Table, Text,
)
from sqlalchemy.dialects.postgresql import ARRAY, JSONB, UUID
from sqlalchemy.orm import Mapped, mapped_column, relationship

from storefront.db.base import Base
from storefront.models.mixins import UUIDPrimaryKeyMixin, TimestampMixin

# Composite PK makes a duplicate assignment impossible.
product_categories = Table(
    "product_categories",
    Base.metadata,
    Column(
        "product_id", UUID(as_uuid=True),
        ForeignKey("products.id", ondelete="CASCADE"), primary_key=True,
    ),
    Column(
        "category_id", UUID(as_uuid=True),
        ForeignKey("categories.id", ondelete="CASCADE"), primary_key=True, index=True,
    ),
)


class ProductStatus(str, enum.Enum):
    ACTIVE = "active"
    DRAFT = "draft"
    ARCHIVED = "archived"


class Product(UUIDPrimaryKeyMixin, TimestampMixin, Base):
    __tablename__ = "products"

    name: Mapped[str] = mapped_column(String(255), nullable=False, index=True)
    slug: Mapped[str] = mapped_column(String(255), unique=True, nullable=False, index=True)
    description: Mapped[str] = mapped_column(Text, nullable=False, default="")
    price: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False)
    compare_at_price: Mapped[Decimal | None] = mapped_column(Numeric(12, 2))
    images: Mapped[list[str]] = mapped_column(JSONB, nullable=False, default=list)
    tags: Mapped[list[str]] = mapped_column(ARRAY(String(100)), nullable=False, default=list)
    inventory: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    seo_title: Mapped[str] = mapped_column(String(255), nullable=False, default="")
    seo_description: Mapped[str] = mapped_column(String(500), nullable=False, default="")
    status: Mapped[ProductStatus] = mapped_column(
        Enum(ProductStatus, name="product_status", values_callable=lambda e: [m.value for m in e]),
        nullable=False,
        default=ProductStatus.ACTIVE,
    )
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    is_featured: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False, index=True)

    # Relationships
    categories = relationship(
        "Category", secondary=product_categories, back_populates="products", lazy="selectin"
    )

    def __repr__(self) -> str:
        return f"<Product {self.slug}: {self.name}>"
