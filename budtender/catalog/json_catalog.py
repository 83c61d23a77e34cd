"""
Catalog loaded from a JSON export of the strain table.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Dict, Iterable, List, Sequence

from budtender.catalog.base import STRAIN_TYPES, CatalogItem

logger = logging.getLogger(__name__)


def _as_float(value: Any) -> float | None:
    if value is None or value == "":
        return None
    return float(value)


def item_from_record(record: Dict[str, Any]) -> CatalogItem:
    """
    Build a CatalogItem from one exported row.
    Accepts both the camelCase export keys and snake_case.
    """
    strain_type = str(record.get("type", "HYBRID")).upper()
    if strain_type not in STRAIN_TYPES:
        raise ValueError(f"Unknown strain type {strain_type!r} for {record.get('id')}")

    description = record.get("description")
    return CatalogItem(
        id=str(record["id"]),
        slug=record.get("slug") or str(record["id"]),
        name=record["name"],
        type=strain_type,
        thc_percent=_as_float(record.get("thcPercent", record.get("thc_percent"))),
        cbd_percent=_as_float(record.get("cbdPercent", record.get("cbd_percent"))),
        effects=tuple(record.get("effects") or ()),
        flavors=tuple(record.get("flavors") or ()),
        description=description.strip() if isinstance(description, str) and description.strip() else None,
        stock=int(record.get("stock", record.get("quantity", 0)) or 0),
    )


class InMemoryCatalog:
    """Catalog held in a dict keyed by id."""

    def __init__(self, items: Iterable[CatalogItem] = ()) -> None:
        self._items: Dict[str, CatalogItem] = {item.id: item for item in items}

    def __len__(self) -> int:
        return len(self._items)

    def list_items(self) -> List[CatalogItem]:
        return sorted(self._items.values(), key=lambda item: item.id)

    def get_many(self, item_ids: Sequence[str]) -> List[CatalogItem]:
        return [self._items[item_id] for item_id in item_ids if item_id in self._items]


class JsonCatalog(InMemoryCatalog):
    def __init__(self, path: str | Path) -> None:
        self.path = Path(path)
        super().__init__(load_catalog_file(self.path))
        logger.info("Catalog loaded", extra={"path": str(self.path), "items": len(self)})


def load_catalog_file(path: str | Path) -> List[CatalogItem]:
    path = Path(path)
    if not path.exists():
        logger.warning("Catalog file not found", extra={"path": str(path)})
        return []

    records = json.loads(path.read_text(encoding="utf-8"))
    return [item_from_record(record) for record in records]


__all__ = ["InMemoryCatalog", "JsonCatalog", "item_from_record", "load_catalog_file"]
