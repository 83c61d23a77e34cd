"""
Writes embeddings into the vector store and maintains its index.
"""

from __future__ import annotations

import asyncio
import logging

from budtender.embeddings.vector import Embedding, validate_vector
from budtender.vector_store.base import IndexStatus, VectorStore

logger = logging.getLogger(__name__)


class VectorIndexer:
    def __init__(self, vector_store: VectorStore, dimensions: int) -> None:
        self.vector_store = vector_store
        self.dimensions = dimensions

    async def upsert(self, embedding: Embedding, document: str | None = None) -> None:
        """Single-item write; the store replaces the whole vector or nothing."""
        vector = validate_vector(embedding.values, self.dimensions)
        await asyncio.to_thread(self.vector_store.upsert, embedding.item_id, vector, embedding.model, document)

    async def build_index(self) -> IndexStatus:
        status = await asyncio.to_thread(self.vector_store.build_index)
        logger.info(
            "Vector index built",
            extra={"collection": status.collection, "space": status.space, "count": status.count},
        )
        return status

    async def count(self, model: str | None = None) -> int:
        return await asyncio.to_thread(self.vector_store.count, model)

    async def clear(self) -> None:
        await asyncio.to_thread(self.vector_store.clear)


__all__ = ["VectorIndexer"]
