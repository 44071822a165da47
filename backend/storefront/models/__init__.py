"""SQLAlchemy models for the storefront."""

from storefront.models.category import Category
from storefront.models.product import Product, ProductStatus, product_categories

__all__ = [
    "Category",
    "Product",
    "ProductStatus",
    "product_categories",
]
