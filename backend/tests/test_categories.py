"""Unit tests for Category API."""

from datetime import datetime, timezone
from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock, patch
import uuid

import pytest
from fastapi import HTTPException

from storefront.core.errors import PartialFailure
from storefront.services.category_sync import SyncResult


def make_category(name="Roses", slug="roses", parent_id=None, id=None):
    now = datetime.now(timezone.utc)
    return SimpleNamespace(
        id=id or uuid.uuid4(),
        name=name,
        slug=slug,
        image=None,
        description=None,
        parent_id=parent_id,
        created_at=now,
        updated_at=now,
    )


def scalar_result(value):
    result = MagicMock()
    result.scalar_one_or_none.return_value = value
    return result


def rows_result(rows):
    result = MagicMock()
    result.all.return_value = rows
    result.scalars.return_value.all.return_value = rows
    return result


@pytest.mark.asyncio
async def test_list_categories_includes_product_counts():
    from storefront.api.categories import list_categories

    flowers = make_category("Flowers", "flowers")
    cakes = make_category("Cakes", "cakes")

    mock_db = AsyncMock()
    mock_db.execute.side_effect = [
        rows_result([cakes, flowers]),
        rows_result([(flowers.id, 3)]),
    ]

    result = await list_categories(db=mock_db)

    assert result.total == 2
    counts = {item.slug: item.product_count for item in result.items}
    assert counts == {"cakes": 0, "flowers": 3}


@pytest.mark.asyncio
async def test_category_tree_nests_children_and_keeps_orphans():
    from storefront.api.categories import get_category_tree

    gifts = make_category("Gifts", "gifts")
    roses = make_category("Roses", "roses", parent_id=gifts.id)
    orphan = make_category("Old", "old", parent_id=uuid.uuid4())

    mock_db = AsyncMock()
    mock_db.execute.return_value = rows_result([gifts, roses, orphan])

    tree = await get_category_tree(db=mock_db)

    assert [node.slug for node in tree] == ["gifts", "old"]
    assert [child.slug for child in tree[0].children] == ["roses"]


@pytest.mark.asyncio
async def test_get_category_not_found():
    """Getting non-existent category should return 404."""
    from storefront.api.categories import get_category

    mock_db = AsyncMock()
    mock_db.execute.return_value = scalar_result(None)

    with pytest.raises(HTTPException) as exc_info:
        await get_category(category_id=uuid.uuid4(), db=mock_db)

    assert exc_info.value.status_code == 404


@pytest.mark.asyncio
async def test_create_category_duplicate_slug(admin):
    """Creating category with an existing slug should fail."""
    from storefront.api.categories import create_category
    from storefront.schemas.category import CategoryCreate

    mock_db = AsyncMock()
    mock_db.execute.return_value = scalar_result(make_category("Flowers", "flowers"))

    with pytest.raises(HTTPException) as exc_info:
        await create_category(CategoryCreate(name="Flowers"), admin, mock_db)

    assert exc_info.value.status_code == 409
    assert "already exists" in str(exc_info.value.detail).lower()


@pytest.mark.asyncio
async def test_create_category_unknown_parent(admin):
    from storefront.api.categories import create_category
    from storefront.schemas.category import CategoryCreate

    mock_db = AsyncMock()
    mock_db.execute.side_effect = [scalar_result(None), scalar_result(None)]

    body = CategoryCreate(name="Red Roses", parent_id=uuid.uuid4())
    with pytest.raises(HTTPException) as exc_info:
        await create_category(body, admin, mock_db)

    assert exc_info.value.status_code == 404
    mock_db.add.assert_not_called()


def test_blank_parent_is_treated_as_root():
    from storefront.schemas.category import CategoryCreate, CategoryUpdate

    assert CategoryCreate(name="Cakes", parent_id="").parent_id is None
    update = CategoryUpdate(parent_id="")
    assert update.parent_id is None
    assert "parent_id" in update.model_dump(exclude_unset=True)


@pytest.mark.asyncio
async def test_update_category_rejects_cycle(admin):
    """Moving A under its own grandchild C must fail."""
    from storefront.api.categories import update_category
    from storefront.schemas.category import CategoryUpdate

    a = make_category("A", "a")
    b = make_category("B", "b", parent_id=a.id)
    c = make_category("C", "c", parent_id=b.id)

    mock_db = AsyncMock()
    mock_db.execute.side_effect = [scalar_result(a), rows_result([a, b, c])]

    with pytest.raises(HTTPException) as exc_info:
        await update_category(a.id, CategoryUpdate(parent_id=c.id), admin, mock_db)

    assert exc_info.value.status_code == 400
    assert "cycle" in exc_info.value.detail.lower()
    assert a.parent_id is None


@pytest.mark.asyncio
async def test_update_category_rejects_self_parent(admin):
    from storefront.api.categories import update_category
    from storefront.schemas.category import CategoryUpdate

    a = make_category("A", "a")
    mock_db = AsyncMock()
    mock_db.execute.side_effect = [scalar_result(a), rows_result([a])]

    with pytest.raises(HTTPException) as exc_info:
        await update_category(a.id, CategoryUpdate(parent_id=a.id), admin, mock_db)

    assert exc_info.value.status_code == 400


@pytest.mark.asyncio
async def test_update_category_clears_parent(admin):
    from storefront.api.categories import update_category
    from storefront.schemas.category import CategoryUpdate

    category = make_category("Roses", "roses", parent_id=uuid.uuid4())
    mock_db = AsyncMock()
    mock_db.execute.return_value = scalar_result(category)

    result = await update_category(category.id, CategoryUpdate(parent_id=""), admin, mock_db)

    assert result.parent_id is None
    mock_db.flush.assert_awaited_once()


@pytest.mark.asyncio
async def test_update_category_ignores_null_name_and_blank_slug(admin):
    from storefront.api.categories import update_category
    from storefront.schemas.category import CategoryUpdate

    category = make_category("Roses", "roses")
    mock_db = AsyncMock()
    mock_db.execute.return_value = scalar_result(category)

    result = await update_category(
        category.id, CategoryUpdate(name=None, slug="", description="Fresh"), admin, mock_db
    )

    assert result.name == "Roses"
    assert result.slug == "roses"
    assert result.description == "Fresh"


def test_category_products_never_lazy_load():
    from sqlalchemy import inspect

    from storefront.models.category import Category

    assert inspect(Category).relationships["products"].lazy == "raise"


@pytest.mark.asyncio
async def test_delete_category(admin):
    """Deleting category should work when exists."""
    from storefront.api.categories import delete_category

    category = make_category()
    mock_db = AsyncMock()
    mock_db.execute.return_value = scalar_result(category)

    await delete_category(category_id=category.id, current_admin=admin, db=mock_db)

    mock_db.delete.assert_called_once_with(category)


@pytest.mark.asyncio
async def test_sync_assigned_products_unknown_category(admin):
    from storefront.api.categories import sync_assigned_products
    from storefront.schemas.category import AssignedProductsRequest

    mock_db = AsyncMock()
    mock_db.execute.return_value = scalar_result(None)

    with pytest.raises(HTTPException) as exc_info:
        await sync_assigned_products(
            uuid.uuid4(), AssignedProductsRequest(product_ids=[uuid.uuid4()]), admin, mock_db
        )

    assert exc_info.value.status_code == 404
    mock_db.commit.assert_not_awaited()


@pytest.mark.asyncio
async def test_sync_assigned_products_reports_counts(admin):
    from storefront.api.categories import sync_assigned_products
    from storefront.schemas.category import AssignedProductsRequest

    category_id = uuid.uuid4()
    product_ids = [uuid.uuid4(), uuid.uuid4()]
    synced = SyncResult(category_id=category_id, category_name="Flowers", removed=1, added=2)

    with patch("storefront.api.categories.CategoryAssignmentSynchronizer") as synchronizer_cls:
        synchronizer_cls.return_value.sync = AsyncMock(return_value=synced)
        result = await sync_assigned_products(
            category_id, AssignedProductsRequest(product_ids=product_ids), admin, AsyncMock()
        )

    synchronizer_cls.return_value.sync.assert_awaited_once_with(category_id, product_ids)
    assert result.removed == 1
    assert result.added == 2
    assert result.message == "Successfully updated Flowers assignments."


@pytest.mark.asyncio
async def test_sync_partial_failure_keeps_successful_writes(admin):
    from storefront.api.categories import sync_assigned_products
    from storefront.schemas.category import AssignedProductsRequest

    category_id = uuid.uuid4()
    failed_id = uuid.uuid4()
    partial = SyncResult(
        category_id=category_id, category_name="Cakes", removed=2, added=0, failed=[failed_id]
    )
    mock_db = AsyncMock()

    with patch("storefront.api.categories.CategoryAssignmentSynchronizer") as synchronizer_cls:
        synchronizer_cls.return_value.sync = AsyncMock(side_effect=PartialFailure(partial))
        with pytest.raises(HTTPException) as exc_info:
            await sync_assigned_products(
                category_id, AssignedProductsRequest(product_ids=[]), admin, mock_db
            )

    assert exc_info.value.status_code == 500
    assert exc_info.value.detail["failed_product_ids"] == [str(failed_id)]
    mock_db.commit.assert_awaited_once()
