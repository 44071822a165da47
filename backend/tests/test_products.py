"""Unit tests for Product API."""

from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock, patch
import uuid

import pytest
from fastapi import HTTPException

from storefront.services.category_tree import resolve_descendant_ids


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
async def test_list_products_expands_subcategories():
    """Filtering by a parent category matches products in any descendant."""
    from storefront.api.products import list_products

    gifts = SimpleNamespace(id=uuid.uuid4(), parent_id=None)
    roses = SimpleNamespace(id=uuid.uuid4(), parent_id=gifts.id)
    red = SimpleNamespace(id=uuid.uuid4(), parent_id=roses.id)
    cakes = SimpleNamespace(id=uuid.uuid4(), parent_id=None)

    mock_db = AsyncMock()
    mock_db.execute.side_effect = [
        scalar_result(gifts),
        rows_result([gifts, roses, red, cakes]),
        rows_result([]),
    ]

    with patch(
        "storefront.api.products.resolve_descendant_ids", wraps=resolve_descendant_ids
    ) as resolver:
        result = await list_products(
            featured=False, category="gifts", sort="newest", limit=None, db=mock_db
        )

    assert result.total == 0
    resolver.assert_called_once()
    root_id, snapshot = resolver.call_args.args
    assert root_id == gifts.id
    assert resolve_descendant_ids(root_id, snapshot) == {gifts.id, roses.id, red.id}

    product_query = mock_db.execute.await_args_list[2].args[0]
    assert "product_categories" in str(product_query)


@pytest.mark.asyncio
async def test_list_products_unknown_category_is_unfiltered():
    from storefront.api.products import list_products

    mock_db = AsyncMock()
    mock_db.execute.side_effect = [scalar_result(None), rows_result([])]

    result = await list_products(
        featured=False, category="does-not-exist", sort="price_asc", limit=10, db=mock_db
    )

    assert result.total == 0
    assert mock_db.execute.await_count == 2
    product_query = mock_db.execute.await_args_list[1].args[0]
    assert "product_categories" not in str(product_query)


@pytest.mark.asyncio
async def test_get_product_not_found():
    """Getting non-existent product should return 404."""
    from storefront.api.products import get_product

    mock_db = AsyncMock()
    mock_db.execute.return_value = scalar_result(None)

    with pytest.raises(HTTPException) as exc_info:
        await get_product(product_id=uuid.uuid4(), db=mock_db)

    assert exc_info.value.status_code == 404


@pytest.mark.asyncio
async def test_create_product_duplicate_slug(admin):
    """Creating product with an existing slug should fail."""
    from storefront.api.products import create_product
    from storefront.schemas.product import ProductCreate

    mock_db = AsyncMock()
    mock_db.execute.return_value = scalar_result(MagicMock())

    with pytest.raises(HTTPException) as exc_info:
        await create_product(ProductCreate(name="Red Rose Bouquet", price=49.0), admin, mock_db)

    assert exc_info.value.status_code == 409
    assert "red-rose-bouquet" in str(exc_info.value.detail)


@pytest.mark.asyncio
async def test_create_product_unknown_category(admin):
    from storefront.api.products import create_product
    from storefront.schemas.product import ProductCreate

    missing = uuid.uuid4()
    mock_db = AsyncMock()
    mock_db.execute.side_effect = [scalar_result(None), rows_result([])]

    body = ProductCreate(name="Truffle Box", price=20, category_ids=[missing])
    with pytest.raises(HTTPException) as exc_info:
        await create_product(body, admin, mock_db)

    assert exc_info.value.status_code == 404
    assert str(missing) in exc_info.value.detail


@pytest.mark.asyncio
async def test_import_csv_rejects_oversized_upload(admin):
    from storefront.api.products import MAX_IMPORT_BYTES, import_products_csv

    upload = MagicMock()
    upload.size = MAX_IMPORT_BYTES + 1

    with pytest.raises(HTTPException) as exc_info:
        await import_products_csv(file=upload, current_admin=admin, db=AsyncMock())

    assert exc_info.value.status_code == 400


@pytest.mark.asyncio
async def test_import_csv_rejects_empty_file(admin):
    from storefront.api.products import import_products_csv

    upload = MagicMock()
    upload.size = None
    upload.read = AsyncMock(return_value=b"Handle,Title\n")

    with pytest.raises(HTTPException) as exc_info:
        await import_products_csv(file=upload, current_admin=admin, db=AsyncMock())

    assert exc_info.value.status_code == 400
    assert "no products" in exc_info.value.detail.lower()
