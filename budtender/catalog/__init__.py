"""
Catalog access for the embedding and retrieval layers.
"""

from budtender.catalog.base import CatalogItem, CatalogSource
from budtender.catalog.json_catalog import InMemoryCatalog, JsonCatalog
from budtender.config import Settings


def get_catalog(settings: Settings) -> CatalogSource:
    """
    Factory to obtain the configured catalog.
    Currently reads the JSON export at ``settings.catalog_path``.
    """
    return JsonCatalog(settings.catalog_path)


__all__ = ["CatalogItem", "CatalogSource", "InMemoryCatalog", "JsonCatalog", "get_catalog"]
