"""
Canonical descriptive text for a catalog item, used as embedding input.
"""

from __future__ import annotations

from typing import List

from budtender.catalog.base import CatalogItem
from budtender.config import Settings

DEFAULT_SECONDARY_THRESHOLD = 0.5


def format_percent(value: float) -> str:
    # 21.0 -> "21", 0.25 -> "0.25"
    return f"{value:g}"


def compose_item_text(item: CatalogItem, secondary_threshold: float = DEFAULT_SECONDARY_THRESHOLD) -> str:
    parts: List[str] = [f"{item.name} is a {item.type.lower()} cannabis strain."]

    if item.thc_percent:
        parts.append(f"It has approximately {format_percent(item.thc_percent)}% THC.")

    if item.cbd_percent is not None and item.cbd_percent > secondary_threshold:
        parts.append(f"It contains {format_percent(item.cbd_percent)}% CBD.")

    if item.effects:
        parts.append(f"Effects include: {', '.join(item.effects)}.")

    if item.flavors:
        parts.append(f"Flavors: {', '.join(item.flavors)}.")

    if item.description:
        parts.append(item.description)

    return " ".join(parts)


class TextComposer:
    def __init__(self, secondary_threshold: float = DEFAULT_SECONDARY_THRESHOLD) -> None:
        self.secondary_threshold = secondary_threshold

    @classmethod
    def from_settings(cls, settings: Settings) -> "TextComposer":
        return cls(secondary_threshold=settings.secondary_potency_threshold)

    def compose(self, item: CatalogItem) -> str:
        return compose_item_text(item, self.secondary_threshold)


__all__ = ["TextComposer", "compose_item_text", "format_percent", "DEFAULT_SECONDARY_THRESHOLD"]
