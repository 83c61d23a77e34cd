"""
Chroma-based VectorStore implementation.
"""

from __future__ import annotations

import logging
from typing import Dict, List, Sequence, Tuple

import chromadb

from budtender.errors import IndexUnavailableError
from budtender.vector_store.base import COSINE_SPACE, IndexStatus, VectorStore, record_id

DEFAULT_COLLECTION = "strain_embeddings"

logger = logging.getLogger(__name__)


class ChromaVectorStore(VectorStore):
    def __init__(
        self,
        persist_directory: str | None = None,
        collection_name: str = DEFAULT_COLLECTION,
        client: "chromadb.ClientAPI | None" = None,
    ) -> None:
        self.persist_directory = persist_directory
        self.collection_name = collection_name
        # Per-model record counts, dropped on every write to that model.
        self._model_counts: Dict[str, int] = {}
        try:
            if client is not None:
                self.client = client
            elif persist_directory:
                self.client = chromadb.PersistentClient(path=persist_directory)
            else:
                self.client = chromadb.EphemeralClient()
            self.collection = self._get_collection()
        except Exception as exc:
            raise IndexUnavailableError(f"Cannot open Chroma collection: {exc}") from exc
        logger.info(
            "ChromaVectorStore initialised",
            extra={"persist_directory": self.persist_directory, "collection": self.collection_name},
        )

    def _get_collection(self):
        # Vectors are always supplied by the caller, so no embedding function.
        return self.client.get_or_create_collection(
            self.collection_name,
            metadata={"hnsw:space": COSINE_SPACE},
            embedding_function=None,
        )

    def clear(self) -> None:
        try:
            self.client.delete_collection(self.collection_name)
            self.collection = self._get_collection()
            self._model_counts.clear()
        except Exception as exc:
            raise IndexUnavailableError(f"Cannot clear Chroma collection: {exc}") from exc
        logger.info("Chroma collection cleared and recreated", extra={"collection": self.collection_name})

    def upsert(self, item_id: str, vector: Sequence[float], model: str, document: str | None = None) -> None:
        kwargs = {
            "ids": [record_id(item_id, model)],
            "embeddings": [list(vector)],
            "metadatas": [{"item_id": item_id, "model": model}],
        }
        if document is not None:
            kwargs["documents"] = [document]
        try:
            self.collection.upsert(**kwargs)
            self._model_counts.pop(model, None)
        except Exception as exc:
            raise IndexUnavailableError(f"Chroma upsert failed: {exc}", details={"item_id": item_id}) from exc

    def query(self, vector: Sequence[float], top_k: int, model: str) -> List[Tuple[str, float]]:
        if top_k <= 0:
            return []

        try:
            available = self._candidate_count(model, top_k)
            if available == 0:
                return []
            result = self.collection.query(
                query_embeddings=[list(vector)],
                n_results=min(top_k, available),
                where={"model": model},
                include=["metadatas", "distances"],
            )
        except IndexUnavailableError:
            raise
        except Exception as exc:
            raise IndexUnavailableError(f"Chroma query failed: {exc}") from exc

        metadatas = (result.get("metadatas") or [[]])[0] or []
        distances = (result.get("distances") or [[]])[0] or []

        matches: List[Tuple[str, float]] = []
        for metadata, distance in zip(metadatas, distances):
            # Cosine space distance is 1 - cosine similarity.
            similarity = max(-1.0, min(1.0, 1.0 - float(distance)))
            matches.append((str((metadata or {})["item_id"]), similarity))

        matches.sort(key=lambda match: (-match[1], match[0]))
        return matches

    def _candidate_count(self, model: str, top_k: int) -> int:
        # A cached count at or above top_k already bounds n_results, even if
        # another process has added records since. Smaller counts are refreshed.
        cached = self._model_counts.get(model)
        if cached is None or cached < top_k:
            cached = self._model_counts[model] = self.count(model)
        return cached

    def build_index(self) -> IndexStatus:
        try:
            self.collection = self._get_collection()
            self._model_counts.clear()
            space = (self.collection.metadata or {}).get("hnsw:space", "l2")
            count = self.collection.count()
        except Exception as exc:
            raise IndexUnavailableError(f"Cannot build Chroma index: {exc}") from exc

        if space != COSINE_SPACE:
            raise IndexUnavailableError(
                "Chroma collection is not configured for cosine similarity",
                details={"collection": self.collection_name, "space": space},
            )
        logger.info("Chroma index ready", extra={"collection": self.collection_name, "count": count})
        return IndexStatus(collection=self.collection_name, space=space, count=count)

    def count(self, model: str | None = None) -> int:
        try:
            if model is None:
                return self.collection.count()
            return len(self.collection.get(where={"model": model}, include=[])["ids"])
        except Exception as exc:
            raise IndexUnavailableError(f"Chroma count failed: {exc}") from exc


__all__ = ["ChromaVectorStore", "DEFAULT_COLLECTION"]
