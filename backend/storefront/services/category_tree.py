"""Category hierarchy helpers.

Every function here is pure: it works on an already loaded snapshot of
category records (ORM rows, schemas, or anything exposing ``id`` and
``parent_id``) and never touches the database.
"""

from __future__ import annotations

import enum
import logging
from collections import deque
from dataclasses import dataclass, field
from typing import Any, Hashable, Iterable, Iterator, Protocol, Sequence

logger = logging.getLogger(__name__)


class CategoryLike(Protocol):
    id: Hashable
    parent_id: Hashable | None


class OrphanPolicy(str, enum.Enum):
    """What to do with a category whose ``parent_id`` points at nothing."""

    AS_ROOT = "as_root"
    DROP = "drop"


@dataclass
class CategoryNode:
    category: Any
    children: list["CategoryNode"] = field(default_factory=list)

    @property
    def id(self) -> Hashable:
        return self.category.id


def build_forest(
    categories: Sequence[CategoryLike],
    orphan_policy: OrphanPolicy = OrphanPolicy.AS_ROOT,
) -> list[CategoryNode]:
    """Link a flat category list into parent -> children trees.

    Siblings keep the order they had in ``categories``. A category whose
    parent is missing from the input is a root under ``AS_ROOT`` and is left
    out (with its subtree) under ``DROP``.

    Stored data may contain a parent loop. Under ``AS_ROOT`` the loop member
    that comes first in the input is cut from its parent and promoted to a
    root, so every input category still appears exactly once.
    """
    orphan_policy = OrphanPolicy(orphan_policy)
    nodes = {c.id: CategoryNode(c) for c in categories}

    breakers: set[Hashable] = set()
    if orphan_policy is OrphanPolicy.AS_ROOT:
        for cycle in find_cycles(categories):
            logger.warning(
                "Category parent cycle %s; promoting %s to root",
                " -> ".join(str(i) for i in cycle), cycle[0],
            )
            breakers.add(cycle[0])

    roots: list[CategoryNode] = []
    for category in categories:
        node = nodes[category.id]
        parent_id = category.parent_id
        if category.id not in breakers and parent_id is not None and parent_id in nodes:
            nodes[parent_id].children.append(node)
        elif parent_id is None or orphan_policy is OrphanPolicy.AS_ROOT:
            roots.append(node)
        else:
            logger.debug("Dropping orphan category %s (parent %s missing)", category.id, parent_id)
    return roots


def resolve_descendant_ids(
    root_id: Hashable, categories: Iterable[CategoryLike]
) -> set[Hashable]:
    """Return ``root_id`` plus the ids of all categories nested below it.

    ``root_id`` is always in the result, even when no such category exists.
    """
    children_of: dict[Hashable, list[Hashable]] = {}
    for category in categories:
        if category.parent_id is not None:
            children_of.setdefault(category.parent_id, []).append(category.id)

    visited = {root_id}
    frontier = deque([root_id])
    while frontier:
        current = frontier.popleft()
        for child_id in children_of.get(current, ()):
            if child_id not in visited:
                visited.add(child_id)
                frontier.append(child_id)
    return visited


def find_cycles(categories: Sequence[CategoryLike]) -> list[list[Hashable]]:
    """List every parent loop, each as a child -> parent id path.

    A path starts at the loop member that appears first in ``categories``.
    """
    by_id = {c.id: c for c in categories}
    position = {c.id: i for i, c in enumerate(categories)}
    finished: set[Hashable] = set()
    cycles: list[list[Hashable]] = []

    for category in categories:
        path: list[Hashable] = []
        on_path: dict[Hashable, int] = {}
        current = category.id
        while current in by_id and current not in finished and current not in on_path:
            on_path[current] = len(path)
            path.append(current)
            current = by_id[current].parent_id

        if current in on_path:
            loop = path[on_path[current]:]
            start = min(range(len(loop)), key=lambda i: position[loop[i]])
            cycles.append(loop[start:] + loop[:start])
        finished.update(path)
    return cycles


def would_create_cycle(
    category_id: Hashable,
    new_parent_id: Hashable | None,
    categories: Iterable[CategoryLike],
) -> bool:
    """True if re-parenting ``category_id`` under ``new_parent_id`` closes a loop."""
    if new_parent_id is None:
        return False
    if new_parent_id == category_id:
        return True
    return new_parent_id in resolve_descendant_ids(category_id, categories)


def ancestor_path(
    category_id: Hashable, categories: Iterable[CategoryLike]
) -> list[Hashable]:
    """Ids from ``category_id`` up to its root, stopping early on a loop."""
    by_id = {c.id: c for c in categories}
    path: list[Hashable] = []
    current: Hashable | None = category_id
    while current is not None and current in by_id and current not in path:
        path.append(current)
        current = by_id[current].parent_id
    return path


def flatten_forest(
    nodes: Iterable[CategoryNode], depth: int = 0
) -> Iterator[tuple[CategoryNode, int]]:
    """Yield ``(node, depth)`` pairs in display order."""
    for node in nodes:
        yield node, depth
        yield from flatten_forest(node.children, depth + 1)
