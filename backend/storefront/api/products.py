import logging
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query, UploadFile, File, status
from pydantic import ValidationError
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from storefront.core.config import settings
from storefront.core.deps import require_admin
from storefront.db.base import get_db
from storefront.models.category import Category
from storefront.models.product import Product
from storefront.schemas.auth import CurrentAdmin
from storefront.schemas.product import (
    AutoCategorizeResponse,
    BulkImportRequest,
    BulkImportResponse,
    ProductCreate,
    ProductListResponse,
    ProductResponse,
    ProductSort,
    ProductUpdate,
)
from storefront.services.auto_categorize import auto_categorize
from storefront.services.bulk_import import BulkImporter, parse_shopify_csv, slugify
from storefront.services.category_tree import resolve_descendant_ids

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/products", tags=["products"])

MAX_IMPORT_BYTES = settings.MAX_IMPORT_SIZE_MB * 1024 * 1024

_SORTS = {
    "newest": Product.created_at.desc(),
    "price_asc": Product.price.asc(),
    "price_desc": Product.price.desc(),
}


async def _find_category(db: AsyncSession, ref: str) -> Category | None:
    """Look a category up by UUID, falling back to slug."""
    try:
        category_id = UUID(ref)
    except ValueError:
        query = select(Category).where(Category.slug == ref)
    else:
        query = select(Category).where(Category.id == category_id)
    result = await db.execute(query)
    return result.scalar_one_or_none()


async def _load_categories(db: AsyncSession, category_ids: list[UUID]) -> list[Category]:
    if not category_ids:
        return []
    result = await db.execute(select(Category).where(Category.id.in_(category_ids)))
    categories = list(result.scalars().all())
    missing = set(category_ids) - {c.id for c in categories}
    if missing:
        raise HTTPException(
            status.HTTP_404_NOT_FOUND,
            f"Category not found: {', '.join(sorted(str(m) for m in missing))}",
        )
    return categories


async def _get_or_404(db: AsyncSession, product_id: UUID) -> Product:
    result = await db.execute(select(Product).where(Product.id == product_id))
    product = result.scalar_one_or_none()
    if not product:
        raise HTTPException(status.HTTP_404_NOT_FOUND, "Product not found")
    return product


async def _ensure_slug_free(db: AsyncSession, slug: str) -> None:
    existing = await db.execute(select(Product).where(Product.slug == slug))
    if existing.scalar_one_or_none():
        raise HTTPException(status.HTTP_409_CONFLICT, f"Slug '{slug}' already exists")


@router.get("", response_model=ProductListResponse)
async def list_products(
    featured: bool = False,
    category: str | None = Query(None, description="Category id or slug; includes subcategories"),
    sort: ProductSort = "newest",
    limit: int | None = Query(None, ge=1, le=500),
    db: AsyncSession = Depends(get_db),
):
    query = select(Product)

    if featured:
        query = query.where(Product.is_featured.is_(True))

    # An unknown category leaves the listing unfiltered
    if category:
        category_doc = await _find_category(db, category)
        if category_doc is not None:
            snapshot = (await db.execute(select(Category.id, Category.parent_id))).all()
            category_ids = resolve_descendant_ids(category_doc.id, snapshot)
            query = query.where(Product.categories.any(Category.id.in_(list(category_ids))))

    query = query.order_by(_SORTS[sort])
    if limit:
        query = query.limit(limit)

    result = await db.execute(query)
    items = result.scalars().all()
    return ProductListResponse(
        items=[ProductResponse.model_validate(p) for p in items],
        total=len(items),
    )


@router.post("", response_model=ProductResponse, status_code=201)
async def create_product(
    data: ProductCreate,
    current_admin: CurrentAdmin = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    slug = data.slug or slugify(data.name)
    await _ensure_slug_free(db, slug)
    categories = await _load_categories(db, data.category_ids)

    product = Product(
        **data.model_dump(exclude={"slug", "category_ids"}),
        slug=slug,
        categories=categories,
    )
    if not product.images:
        product.images = [settings.PLACEHOLDER_IMAGE_URL]
    db.add(product)
    await db.flush()
    await db.refresh(product)
    return product


@router.post("/bulk", response_model=BulkImportResponse)
async def bulk_import_products(
    body: BulkImportRequest,
    current_admin: CurrentAdmin = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    """Create or update products from JSON rows, creating categories by name."""
    results = await BulkImporter(db).import_rows(body.products)
    return BulkImportResponse(count=len(results), data=results)


@router.post("/import", response_model=BulkImportResponse)
async def import_products_csv(
    file: UploadFile = File(...),
    current_admin: CurrentAdmin = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    """Import a Shopify product export CSV."""
    if file.size and file.size > MAX_IMPORT_BYTES:
        raise HTTPException(400, f"File too large. Max {settings.MAX_IMPORT_SIZE_MB}MB")

    content = await file.read(MAX_IMPORT_BYTES + 1)
    if len(content) > MAX_IMPORT_BYTES:
        raise HTTPException(400, f"File too large. Max {settings.MAX_IMPORT_SIZE_MB}MB")

    try:
        text = content.decode("utf-8-sig")
    except UnicodeDecodeError:
        raise HTTPException(400, "CSV must be UTF-8 encoded")

    try:
        rows = parse_shopify_csv(text)
    except ValidationError as exc:
        raise HTTPException(400, f"Invalid product row: {exc.errors()[0]['msg']}")
    if not rows:
        raise HTTPException(400, "No products found in CSV")

    logger.info("CSV import of %d products from %s", len(rows), file.filename)
    results = await BulkImporter(db).import_rows(rows)
    return BulkImportResponse(count=len(results), data=results)


@router.post("/auto-categorize", response_model=AutoCategorizeResponse)
async def auto_categorize_products(
    current_admin: CurrentAdmin = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    """Add keyword-matched categories to products. Never removes any."""
    updated, added = await auto_categorize(db)
    return AutoCategorizeResponse(products_updated=updated, assignments_added=added)


@router.get("/{product_id}", response_model=ProductResponse)
async def get_product(product_id: UUID, db: AsyncSession = Depends(get_db)):
    return await _get_or_404(db, product_id)


@router.patch("/{product_id}", response_model=ProductResponse)
async def update_product(
    product_id: UUID,
    data: ProductUpdate,
    current_admin: CurrentAdmin = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    product = await _get_or_404(db, product_id)
    update_data = data.model_dump(exclude_unset=True)

    if "slug" in update_data and update_data["slug"] != product.slug:
        await _ensure_slug_free(db, update_data["slug"])

    category_ids = update_data.pop("category_ids", None)
    if category_ids is not None:
        product.categories = await _load_categories(db, category_ids)

    for key, value in update_data.items():
        setattr(product, key, value)

    await db.flush()
    await db.refresh(product)
    return product


@router.delete("/{product_id}", status_code=204)
async def delete_product(
    product_id: UUID,
    current_admin: CurrentAdmin = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    product = await _get_or_404(db, product_id)
    await db.delete(product)
    await db.flush()
