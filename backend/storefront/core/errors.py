"""Domain errors raised by catalog services.

Routes translate these into ``HTTPException`` responses; services never
import FastAPI.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Sequence

if TYPE_CHECKING:
    from storefront.services.category_sync import SyncResult


class CatalogError(Exception):
    """Base class for catalog service failures."""


class NotFound(CatalogError):
    def __init__(self, entity: str, identifier: Any):
        self.entity = entity
        self.identifier = identifier
        super().__init__(f"{entity} not found (ID: {identifier})")


class InvalidInput(CatalogError):
    pass


class CycleDetected(CatalogError):
    """A parent assignment closes a loop in the category hierarchy."""

    def __init__(self, path: Sequence[Any]):
        self.path = list(path)
        super().__init__(
            "Category hierarchy cycle: " + " -> ".join(str(p) for p in self.path)
        )


class PartialFailure(CatalogError):
    """Some point writes of a sync failed while others were applied.

    Successful writes are not rolled back; ``result`` reports what happened.
    """

    def __init__(self, result: "SyncResult"):
        self.result = result
        self.failed_ids = list(result.failed)
        super().__init__(
            f"{len(self.failed_ids)} product update(s) failed for category "
            f"{result.category_name!r}"
        )
