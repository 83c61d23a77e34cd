"""
Catalog records and the read-only catalog boundary.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterable, List, Protocol, Sequence, Tuple

STRAIN_TYPES = ("INDICA", "SATIVA", "HYBRID")


@dataclass(frozen=True)
class CatalogItem:
    id: str
    slug: str
    name: str
    type: str
    thc_percent: float | None = None
    cbd_percent: float | None = None
    effects: Tuple[str, ...] = field(default_factory=tuple)
    flavors: Tuple[str, ...] = field(default_factory=tuple)
    description: str | None = None
    stock: int = 0

    @property
    def in_stock(self) -> bool:
        return self.stock > 0

    def has_any_effect(self, effects: Iterable[str]) -> bool:
        """Any-of match against the effect tags, case-insensitive."""
        own = {e.lower() for e in self.effects}
        return any(e.lower() in own for e in effects)


class CatalogSource(Protocol):
    """Read side of the catalog collaborator. Mutations live outside this service."""

    def list_items(self) -> List[CatalogItem]:
        ...

    def get_many(self, item_ids: Sequence[str]) -> List[CatalogItem]:
        ...


__all__ = ["CatalogItem", "CatalogSource", "STRAIN_TYPES"]
