"""
In-process VectorStore with exact cosine search.

Suitable for tests and small catalogs; every query scores all vectors of the
model with one matrix product.
"""

from __future__ import annotations

import threading
from typing import Dict, List, Sequence, Tuple

import numpy as np

from budtender.embeddings.vector import normalize
from budtender.errors import IndexUnavailableError
from budtender.vector_store.base import COSINE_SPACE, IndexStatus, VectorStore

MEMORY_COLLECTION = "memory"


class InMemoryVectorStore(VectorStore):
    def __init__(self) -> None:
        self._vectors: Dict[Tuple[str, str], Tuple[float, ...]] = {}
        # Unit-length copies per model, so a query is a single dot product.
        self._normalized: Dict[str, Dict[str, np.ndarray]] = {}
        self._documents: Dict[Tuple[str, str], str] = {}
        self._lock = threading.Lock()
        self.available = True

    def _ensure_available(self) -> None:
        if not self.available:
            raise IndexUnavailableError("In-memory vector store is marked unavailable")

    def upsert(self, item_id: str, vector: Sequence[float], model: str, document: str | None = None) -> None:
        self._ensure_available()
        key = (model, item_id)
        unit = normalize(vector)
        with self._lock:
            self._vectors[key] = tuple(float(v) for v in vector)
            self._normalized.setdefault(model, {})[item_id] = unit
            if document is not None:
                self._documents[key] = document

    def query(self, vector: Sequence[float], top_k: int, model: str) -> List[Tuple[str, float]]:
        self._ensure_available()
        if top_k <= 0:
            return []
        with self._lock:
            by_id = dict(self._normalized.get(model, {}))
        if not by_id:
            return []

        ids = list(by_id)
        matrix = np.vstack([by_id[item_id] for item_id in ids])
        scores = np.clip(matrix @ normalize(vector), -1.0, 1.0)

        scored = [(item_id, float(score)) for item_id, score in zip(ids, scores)]
        scored.sort(key=lambda match: (-match[1], match[0]))
        return scored[:top_k]

    def build_index(self) -> IndexStatus:
        self._ensure_available()
        return IndexStatus(collection=MEMORY_COLLECTION, space=COSINE_SPACE, count=self.count())

    def count(self, model: str | None = None) -> int:
        self._ensure_available()
        with self._lock:
            if model is None:
                return len(self._vectors)
            return len(self._normalized.get(model, {}))

    def clear(self) -> None:
        with self._lock:
            self._vectors.clear()
            self._normalized.clear()
            self._documents.clear()

    def get_vector(self, item_id: str, model: str) -> Tuple[float, ...] | None:
        with self._lock:
            return self._vectors.get((model, item_id))

    def get_document(self, item_id: str, model: str) -> str | None:
        with self._lock:
            return self._documents.get((model, item_id))


__all__ = ["InMemoryVectorStore", "MEMORY_COLLECTION"]
