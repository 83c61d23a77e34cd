"""
Vector store interface and shared types.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import List, Protocol, Sequence, Tuple

COSINE_SPACE = "cosine"


@dataclass
class IndexStatus:
    collection: str
    space: str
    count: int


class VectorStore(Protocol):
    """
    Similarity-searchable store of one vector per (item, model).

    ``query`` returns ``(item_id, cosine_similarity)`` pairs ordered by
    similarity descending, restricted to vectors written for ``model``.
    Implementations raise ``IndexUnavailableError`` when the backend cannot
    be reached.
    """

    def upsert(self, item_id: str, vector: Sequence[float], model: str, document: str | None = None) -> None:
        ...

    def query(self, vector: Sequence[float], top_k: int, model: str) -> List[Tuple[str, float]]:
        ...

    def build_index(self) -> IndexStatus:
        ...

    def count(self, model: str | None = None) -> int:
        ...

    def clear(self) -> None:
        ...


def record_id(item_id: str, model: str) -> str:
    return f"{model}:{item_id}"


__all__ = ["COSINE_SPACE", "IndexStatus", "VectorStore", "record_id"]
