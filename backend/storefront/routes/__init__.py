from fastapi import APIRouter

from storefront.api.auth import router as auth_router
from storefront.api.categories import router as categories_router
from storefront.api.products import router as products_router

api_router = APIRouter(prefix="/api/v1")
api_router.include_router(auth_router)
api_router.include_router(categories_router)
api_router.include_router(products_router)
