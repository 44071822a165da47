"""Reconcile which products carry a category.

``CategoryAssignmentSynchronizer.sync`` has FULL-REPLACE semantics: the
given product ids become the complete set of products in the category.
Any product that carries the category today and is not listed LOSES it.
Callers that want to add products without touching the others must pass
the current assignments plus the new ids.

Writes are independent per product. There is no transaction across
products and no locking between concurrent syncs; the last write for a
given product wins.
"""

from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass, field
from typing import Any, Hashable, Iterable, Protocol

from sqlalchemy import delete, select
from sqlalchemy.dialects.postgresql import insert
from sqlalchemy.ext.asyncio import AsyncSession

from storefront.core.errors import InvalidInput, NotFound, PartialFailure
from storefront.models.category import Category
from storefront.models.product import Product, product_categories

logger = logging.getLogger(__name__)

_ID_COLLECTIONS = (list, tuple, set, frozenset)


@dataclass(frozen=True)
class SyncPlan:
    category_id: Hashable
    to_remove: frozenset
    to_add: frozenset

    @property
    def is_noop(self) -> bool:
        return not self.to_remove and not self.to_add


@dataclass
class SyncResult:
    category_id: Hashable
    category_name: str
    removed: int = 0
    added: int = 0
    failed: list[Hashable] = field(default_factory=list)


def normalize_ids(product_ids: Any) -> frozenset:
    """Collapse an id collection into a set; reject anything that isn't one."""
    if not isinstance(product_ids, _ID_COLLECTIONS):
        raise InvalidInput(
            f"Invalid productIds: expected a list of ids, got {type(product_ids).__name__}"
        )
    try:
        return frozenset(product_ids)
    except TypeError as exc:
        raise InvalidInput(f"Invalid productIds: {exc}") from exc


def plan_sync(
    category_id: Hashable,
    desired_product_ids: Any,
    current_product_ids: Iterable[Hashable],
) -> SyncPlan:
    desired = normalize_ids(desired_product_ids)
    current = frozenset(current_product_ids)
    return SyncPlan(
        category_id=category_id,
        to_remove=current - desired,
        to_add=desired - current,
    )


class AssignmentStore(Protocol):
    """Storage side of the product <-> category relation."""

    async def get_category(self, category_id: Hashable) -> Any | None: ...

    async def products_with_category(self, category_id: Hashable) -> set[Hashable]: ...

    async def existing_product_ids(self, product_ids: Iterable[Hashable]) -> set[Hashable]: ...

    async def add_category(self, product_id: Hashable, category_id: Hashable) -> None: ...

    async def remove_category(self, product_id: Hashable, category_id: Hashable) -> None: ...


class SqlAssignmentStore:
    """AssignmentStore over the ``product_categories`` table.

    Each point write runs inside its own SAVEPOINT so one failing product
    does not discard the writes already made for others.
    """

    def __init__(self, db: AsyncSession):
        self.db = db

    async def get_category(self, category_id: uuid.UUID) -> Category | None:
        result = await self.db.execute(select(Category).where(Category.id == category_id))
        return result.scalar_one_or_none()

    async def products_with_category(self, category_id: uuid.UUID) -> set[uuid.UUID]:
        result = await self.db.execute(
            select(product_categories.c.product_id).where(
                product_categories.c.category_id == category_id
            )
        )
        return set(result.scalars().all())

    async def existing_product_ids(self, product_ids: Iterable[uuid.UUID]) -> set[uuid.UUID]:
        ids = list(product_ids)
        if not ids:
            return set()
        result = await self.db.execute(select(Product.id).where(Product.id.in_(ids)))
        return set(result.scalars().all())

    async def add_category(self, product_id: uuid.UUID, category_id: uuid.UUID) -> None:
        async with self.db.begin_nested():
            await self.db.execute(
                insert(product_categories)
                .values(product_id=product_id, category_id=category_id)
                .on_conflict_do_nothing()
            )

    async def remove_category(self, product_id: uuid.UUID, category_id: uuid.UUID) -> None:
        async with self.db.begin_nested():
            await self.db.execute(
                delete(product_categories).where(
                    product_categories.c.product_id == product_id,
                    product_categories.c.category_id == category_id,
                )
            )


class CategoryAssignmentSynchronizer:
    def __init__(self, store: AssignmentStore):
        self.store = store

    async def sync(self, category_id: Hashable, desired_product_ids: Any) -> SyncResult:
        """Make ``desired_product_ids`` the exact product set of a category.

        Raises ``InvalidInput`` or ``NotFound`` before writing anything.
        Ids that match no stored product are ignored. If some writes fail,
        every other write is still attempted and ``PartialFailure`` is raised
        at the end with the ids that failed.
        """
        desired = normalize_ids(desired_product_ids)

        category = await self.store.get_category(category_id)
        if category is None:
            raise NotFound("Category", category_id)

        current = await self.store.products_with_category(category_id)
        known = await self.store.existing_product_ids(desired - current)
        plan = plan_sync(category_id, desired & (current | known), current)

        result = SyncResult(category_id=category_id, category_name=category.name)
        for product_id in sorted(plan.to_remove, key=str):
            try:
                await self.store.remove_category(product_id, category_id)
            except Exception:
                logger.exception("Failed to remove category %s from product %s", category_id, product_id)
                result.failed.append(product_id)
            else:
                result.removed += 1

        for product_id in sorted(plan.to_add, key=str):
            try:
                await self.store.add_category(product_id, category_id)
            except Exception:
                logger.exception("Failed to add category %s to product %s", category_id, product_id)
                result.failed.append(product_id)
            else:
                result.added += 1

        logger.info(
            "Synced category %s. Removed from: %d, Added to: %d",
            category.name, result.removed, result.added,
        )
        if result.failed:
            raise PartialFailure(result)
        return result
