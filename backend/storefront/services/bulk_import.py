"""Bulk product import: Shopify CSV parsing and find-or-create upserts."""

import csv
import io
import logging
import math
import re

from sqlalchemy import func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from storefront.core.config import settings
from storefront.models.category import Category
from storefront.models.product import Product, ProductStatus
from storefront.schemas.product import ImportResult, ProductImportRow

logger = logging.getLogger(__name__)

_NON_SLUG = re.compile(r"[^a-z0-9]+")

DEFAULT_CATEGORY = "Uncategorized"
FALLBACK_CATEGORY_SLUG = "category"


def slugify(text: str) -> str:
    return _NON_SLUG.sub("-", text.lower()).strip("-")


def _to_float(raw: str) -> float | None:
    try:
        return float(raw)
    except (TypeError, ValueError):
        return None


def _to_price(raw: str) -> float | None:
    """Parse a price cell. Negative and non-finite values count as missing."""
    value = _to_float(raw)
    if value is None or not math.isfinite(value) or value < 0:
        return None
    return value


def _to_int(raw: str) -> int:
    try:
        return int(raw)
    except (TypeError, ValueError):
        return 0


def parse_shopify_csv(text: str) -> list[ProductImportRow]:
    """Parse a Shopify product export into one row per product handle.

    Shopify repeats the handle on extra rows for additional images and
    variants; only unseen ``Image Src`` values are taken from those rows.
    """
    reader = csv.DictReader(io.StringIO(text))
    products: dict[str, ProductImportRow] = {}

    for data in reader:
        data = {k: (v or "") for k, v in data.items() if k is not None}
        handle = data.get("Handle", "").strip()
        if not handle:
            continue

        image = data.get("Image Src", "").strip()
        if handle in products:
            product = products[handle]
            if image and image not in product.images:
                product.images.append(image)
            continue

        title = data.get("Title", "").strip()
        tags = [t.strip() for t in data.get("Tags", "").split(",") if t.strip()]
        published = data.get("Published", "").strip().lower() == "true"

        products[handle] = ProductImportRow(
            name=title or handle,
            slug=handle,
            description=data.get("Body (HTML)") or title or handle,
            price=_to_price(data.get("Variant Price")) or 0,
            compare_at_price=_to_price(data.get("Variant Compare At Price")),
            category=(
                data.get("Custom Product Type")
                or data.get("Standard Product Type")
                or DEFAULT_CATEGORY
            ),
            tags=tags,
            inventory=_to_int(data.get("Variant Inventory Qty")),
            images=[image] if image else [],
            seo_title=data.get("SEO Title", ""),
            seo_description=data.get("SEO Description", ""),
            status=ProductStatus.ACTIVE if published else ProductStatus.DRAFT,
        )

    return list(products.values())


class BulkImporter:
    """Upsert import rows: categories matched by name, products by slug."""

    def __init__(self, db: AsyncSession):
        self.db = db
        self._categories: dict[str, Category] = {}
        self._by_slug: dict[str, Category] = {}

    async def find_or_create_category(self, name: str) -> Category:
        """Reuse a category whose name or slug matches, else create one.

        Names differing only in case or punctuation ("Gift Box", "gift-box")
        share a slug and resolve to the same category.
        """
        key = name.strip().lower()
        slug = slugify(name) or FALLBACK_CATEGORY_SLUG
        category = self._categories.get(key) or self._by_slug.get(slug)

        if category is None:
            result = await self.db.execute(
                select(Category).where(
                    or_(func.lower(Category.name) == key, Category.slug == slug)
                )
            )
            category = result.scalars().first()
        if category is None:
            category = Category(name=name.strip(), slug=slug)
            self.db.add(category)
            await self.db.flush()
            logger.info("Bulk import created category %s", category.slug)

        self._categories[key] = category
        self._by_slug[category.slug] = category
        return category

    async def import_rows(self, rows: list[ProductImportRow]) -> list[ImportResult]:
        results: list[ImportResult] = []
        for row in rows:
            category = await self.find_or_create_category(row.category)
            data = row.model_dump(exclude={"category"})
            data["slug"] = row.slug or slugify(row.name)
            if not data["images"]:
                data["images"] = [settings.PLACEHOLDER_IMAGE_URL]

            existing = await self.db.execute(select(Product).where(Product.slug == data["slug"]))
            product = existing.scalar_one_or_none()
            if product is not None:
                for key, value in data.items():
                    setattr(product, key, value)
                product.categories = [category]
                action = "updated"
            else:
                product = Product(**data, categories=[category])
                self.db.add(product)
                action = "created"

            await self.db.flush()
            logger.debug("Bulk import %s product %s", action, data["slug"])
            results.append(ImportResult(action=action, id=product.id))

        logger.info("Bulk import finished: %d rows", len(results))
        return results
