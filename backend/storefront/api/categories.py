"""Category endpoints: navigation tree, admin CRUD and product assignment sync."""

import logging
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy import select, func
from sqlalchemy.ext.asyncio import AsyncSession

from storefront.core.config import settings
from storefront.core.deps import require_admin
from storefront.core.errors import CycleDetected, InvalidInput, NotFound, PartialFailure
from storefront.db.base import get_db
from storefront.models.category import Category
from storefront.models.product import product_categories
from storefront.schemas.auth import CurrentAdmin
from storefront.schemas.category import (
    AssignedProductsRequest,
    AssignedProductsResponse,
    CategoryCreate,
    CategoryListResponse,
    CategoryResponse,
    CategoryTreeNode,
    CategoryUpdate,
    CategoryWithCount,
    SyncResponse,
)
from storefront.services.bulk_import import slugify
from storefront.services.category_sync import CategoryAssignmentSynchronizer, SqlAssignmentStore
from storefront.services.category_tree import (
    CategoryNode,
    OrphanPolicy,
    ancestor_path,
    build_forest,
    would_create_cycle,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/categories", tags=["categories"])


async def _get_or_404(db: AsyncSession, category_id: UUID) -> Category:
    result = await db.execute(select(Category).where(Category.id == category_id))
    category = result.scalar_one_or_none()
    if not category:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Category not found",
        )
    return category


async def _ensure_slug_free(db: AsyncSession, slug: str, exclude_id: UUID | None = None) -> None:
    query = select(Category).where(Category.slug == slug)
    if exclude_id is not None:
        query = query.where(Category.id != exclude_id)
    existing = await db.execute(query)
    if existing.scalar_one_or_none():
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail=f"Category with slug '{slug}' already exists",
        )


def _to_tree(node: CategoryNode) -> CategoryTreeNode:
    category = node.category
    return CategoryTreeNode(
        id=category.id,
        name=category.name,
        slug=category.slug,
        image=category.image,
        children=[_to_tree(child) for child in node.children],
    )


@router.get("", response_model=CategoryListResponse)
async def list_categories(db: AsyncSession = Depends(get_db)):
    """List all categories with the number of products assigned to each."""
    result = await db.execute(select(Category).order_by(Category.name))
    categories = result.scalars().all()

    counts_result = await db.execute(
        select(product_categories.c.category_id, func.count())
        .group_by(product_categories.c.category_id)
    )
    counts = {category_id: count for category_id, count in counts_result.all()}

    items = [
        CategoryWithCount(
            **CategoryResponse.model_validate(c).model_dump(),
            product_count=counts.get(c.id, 0),
        )
        for c in categories
    ]
    return CategoryListResponse(items=items, total=len(items))


@router.get("/tree", response_model=list[CategoryTreeNode])
async def get_category_tree(db: AsyncSession = Depends(get_db)):
    """Nested categories for storefront navigation."""
    result = await db.execute(select(Category).order_by(Category.name))
    forest = build_forest(
        result.scalars().all(),
        orphan_policy=OrphanPolicy(settings.CATEGORY_ORPHAN_POLICY),
    )
    return [_to_tree(node) for node in forest]


@router.get("/{category_id}", response_model=CategoryResponse)
async def get_category(category_id: UUID, db: AsyncSession = Depends(get_db)):
    """Get a single category by ID."""
    category = await _get_or_404(db, category_id)
    return CategoryResponse.model_validate(category)


@router.post("", response_model=CategoryResponse, status_code=status.HTTP_201_CREATED)
async def create_category(
    body: CategoryCreate,
    current_admin: CurrentAdmin = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    """Create a category, optionally nested under an existing parent."""
    slug = body.slug or slugify(body.name)
    if not slug:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Cannot derive a slug from the category name",
        )
    await _ensure_slug_free(db, slug)

    if body.parent_id is not None:
        await _get_or_404(db, body.parent_id)

    category = Category(**body.model_dump(exclude={"slug"}), slug=slug)
    db.add(category)
    await db.flush()
    await db.refresh(category)

    logger.info("Category %s created by %s", category.slug, current_admin.email)
    return CategoryResponse.model_validate(category)


@router.patch("/{category_id}", response_model=CategoryResponse)
async def update_category(
    category_id: UUID,
    body: CategoryUpdate,
    current_admin: CurrentAdmin = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    """Update a category. Re-parenting is rejected if it would create a loop."""
    category = await _get_or_404(db, category_id)
    update_data = body.model_dump(exclude_unset=True)
    # name and slug are required columns; null or blank means "leave as is"
    for field in ("name", "slug"):
        if field in update_data and update_data[field] is None:
            del update_data[field]

    if update_data.get("slug") and update_data["slug"] != category.slug:
        await _ensure_slug_free(db, update_data["slug"], exclude_id=category_id)

    new_parent_id = update_data.get("parent_id")
    if new_parent_id is not None and new_parent_id != category.parent_id:
        result = await db.execute(select(Category.id, Category.parent_id))
        snapshot = result.all()
        if new_parent_id not in {row.id for row in snapshot}:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="Parent category not found",
            )
        if would_create_cycle(category_id, new_parent_id, snapshot):
            error = CycleDetected([category_id, *ancestor_path(new_parent_id, snapshot)])
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(error))

    for field, value in update_data.items():
        setattr(category, field, value)

    await db.flush()
    await db.refresh(category)
    return CategoryResponse.model_validate(category)


@router.delete("/{category_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_category(
    category_id: UUID,
    current_admin: CurrentAdmin = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    """Delete a category. Subcategories become roots, assignments are dropped."""
    category = await _get_or_404(db, category_id)
    await db.delete(category)
    await db.flush()
    logger.info("Category %s deleted by %s", category.slug, current_admin.email)


@router.get("/{category_id}/assigned-products", response_model=AssignedProductsResponse)
async def get_assigned_products(category_id: UUID, db: AsyncSession = Depends(get_db)):
    """IDs of the products directly assigned to a category."""
    await _get_or_404(db, category_id)
    product_ids = await SqlAssignmentStore(db).products_with_category(category_id)
    return AssignedProductsResponse(
        category_id=category_id,
        product_ids=sorted(product_ids, key=str),
    )


@router.put("/{category_id}/assigned-products", response_model=SyncResponse)
async def sync_assigned_products(
    category_id: UUID,
    body: AssignedProductsRequest,
    current_admin: CurrentAdmin = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    """Replace the product set of a category.

    ``product_ids`` is the COMPLETE list of products that should carry the
    category afterwards. Products not listed have the category removed.
    """
    synchronizer = CategoryAssignmentSynchronizer(SqlAssignmentStore(db))
    try:
        result = await synchronizer.sync(category_id, body.product_ids)
    except NotFound as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc))
    except InvalidInput as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc))
    except PartialFailure as exc:
        # Keep the writes that did succeed
        await db.commit()
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail={
                "message": str(exc),
                "failed_product_ids": [str(pid) for pid in exc.failed_ids],
                "removed": exc.result.removed,
                "added": exc.result.added,
            },
        )

    return SyncResponse(
        category_id=category_id,
        category_name=result.category_name,
        removed=result.removed,
        added=result.added,
        message=f"Successfully updated {result.category_name} assignments.",
    )
