"""Shared fixtures: an in-memory product <-> category store for sync tests."""

from types import SimpleNamespace

import pytest


class InMemoryAssignmentStore:
    """Dict-backed AssignmentStore; ``failing`` product ids raise on write."""

    def __init__(self, categories, products, failing=()):
        self.categories = {cid: SimpleNamespace(id=cid, name=name) for cid, name in categories.items()}
        self.products = {pid: set(cats) for pid, cats in products.items()}
        self.failing = set(failing)
        self.writes = []

    async def get_category(self, category_id):
        return self.categories.get(category_id)

    async def products_with_category(self, category_id):
        return {pid for pid, cats in self.products.items() if category_id in cats}

    async def existing_product_ids(self, product_ids):
        return set(product_ids) & self.products.keys()

    async def add_category(self, product_id, category_id):
        if product_id in self.failing:
            raise RuntimeError(f"write failed for {product_id}")
        self.products[product_id].add(category_id)
        self.writes.append(("add", product_id, category_id))

    async def remove_category(self, product_id, category_id):
        if product_id in self.failing:
            raise RuntimeError(f"write failed for {product_id}")
        self.products[product_id].discard(category_id)
        self.writes.append(("remove", product_id, category_id))


@pytest.fixture
def make_store():
    return InMemoryAssignmentStore


@pytest.fixture
def gift_store():
    """P1{X}, P2{X,Y}, P3{Y} with categories X and Y."""
    return InMemoryAssignmentStore(
        categories={"X": "Flowers", "Y": "Chocolates"},
        products={"P1": {"X"}, "P2": {"X", "Y"}, "P3": {"Y"}},
    )


@pytest.fixture
def admin():
    from storefront.schemas.auth import CurrentAdmin

    return CurrentAdmin(email="admin@example.com", role="admin")
