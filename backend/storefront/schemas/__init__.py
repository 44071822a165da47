from storefront.schemas.product import (
    ProductCreate, ProductUpdate, ProductResponse, ProductListResponse,
)
from storefront.schemas.category import (
    CategoryCreate, CategoryUpdate, CategoryResponse, CategoryTreeNode,
)

__all__ = [
    "ProductCreate", "ProductUpdate", "ProductResponse", "ProductListResponse",
    "CategoryCreate", "CategoryUpdate", "CategoryResponse", "CategoryTreeNode",
]
