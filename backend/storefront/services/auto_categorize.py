"""Keyword-based category suggestions for products.

Assignments are only ever added here, never removed.
"""

import logging
from dataclasses import dataclass
from typing import Hashable, Sequence

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from storefront.models.category import Category
from storefront.models.product import Product

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class KeywordRule:
    keywords: tuple[str, ...]
    category_name: str


DEFAULT_RULES: tuple[KeywordRule, ...] = (
    KeywordRule(("men", "male", "boy", "husband", "dad", "groom", "gentle"), "Men"),
    KeywordRule(("women", "female", "girl", "wife", "mom", "lady", "bride", "her"), "Women"),
    KeywordRule(("ramadan", "iftar", "eid", "mubarak", "kareem"), "Ramadan"),
    KeywordRule(("valentine", "heart", "love", "romantic"), "Valentine's Day"),
    KeywordRule(("rose", "bouquet", "flower", "floral", "blossom"), "Flowers"),
    KeywordRule(("birthday", "anniversary", "celebrat"), "Birthday"),
    KeywordRule(("chocolate", "choco", "truffle", "cacao"), "Chocolates"),
    KeywordRule(("teddy", "soft toy", "plush"), "Teddy Day"),
    KeywordRule(("cake", "bake", "pastry", "dessert"), "Cakes"),
    KeywordRule(("hamper", "combo", "basket", "gift box"), "Hamper"),
)


def _match_category(name: str, categories: Sequence[Category]) -> Category | None:
    wanted = name.lower()
    for category in categories:
        if category.name.lower() == wanted:
            return category
    for category in categories:
        if wanted in category.name.lower():
            return category
    return None


def suggest_category_ids(
    product_name: str,
    categories: Sequence[Category],
    rules: Sequence[KeywordRule] = DEFAULT_RULES,
) -> set[Hashable]:
    """Category ids whose rule keywords occur in ``product_name``.

    Exact category-name matches win over partial ones.
    """
    lowered = product_name.lower()
    found: set[Hashable] = set()
    for rule in rules:
        if any(keyword.lower() in lowered for keyword in rule.keywords):
            category = _match_category(rule.category_name, categories)
            if category is not None:
                found.add(category.id)
    return found


async def auto_categorize(
    db: AsyncSession, rules: Sequence[KeywordRule] = DEFAULT_RULES
) -> tuple[int, int]:
    """Add suggested categories to every product. Returns (products, assignments)."""
    categories = list((await db.execute(select(Category))).scalars().all())
    by_id = {c.id: c for c in categories}
    products = (await db.execute(select(Product))).scalars().all()

    updated = 0
    assignments = 0
    for product in products:
        current = {c.id for c in product.categories}
        missing = suggest_category_ids(product.name, categories, rules) - current
        if not missing:
            continue
        product.categories.extend(by_id[cid] for cid in sorted(missing, key=str))
        updated += 1
        assignments += len(missing)
        logger.info("Auto-categorized %r: +%d categories", product.name, len(missing))

    await db.flush()
    logger.info("Auto-categorize: %d products updated, %d new assignments", updated, assignments)
    return updated, assignments
