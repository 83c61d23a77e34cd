"""
Strain retrieval: vector similarity with graceful degradation, plus facet filters.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import Iterable, List, Literal, Sequence, Tuple

from budtender.catalog.base import STRAIN_TYPES, CatalogItem, CatalogSource
from budtender.config import Settings
from budtender.embeddings.client import EmbeddingsClient
from budtender.embeddings.vector import validate_vector
from budtender.errors import IndexUnavailableError, InvalidInputError, ProviderError
from budtender.vector_store.base import VectorStore

logger = logging.getLogger(__name__)

FACET_SCORE = 1.0

MatchKind = Literal["similarity", "facet"]


@dataclass(frozen=True)
class RetrievalResult:
    id: str
    name: str
    slug: str
    type: str
    thc_percent: float | None
    cbd_percent: float | None
    effects: Tuple[str, ...]
    flavors: Tuple[str, ...]
    description: str | None
    similarity: float
    matched_by: MatchKind = "similarity"

    @classmethod
    def from_item(cls, item: CatalogItem, similarity: float, matched_by: MatchKind = "similarity") -> "RetrievalResult":
        return cls(
            id=item.id,
            name=item.name,
            slug=item.slug,
            type=item.type,
            thc_percent=item.thc_percent,
            cbd_percent=item.cbd_percent,
            effects=item.effects,
            flavors=item.flavors,
            description=item.description,
            similarity=similarity,
            matched_by=matched_by,
        )


def _potency_key(item: CatalogItem) -> tuple:
    # THC descending, unknown THC last, then id for a stable order.
    return (item.thc_percent is None, -(item.thc_percent or 0.0), item.id)


class Retriever:
    def __init__(
        self,
        settings: Settings,
        vector_store: VectorStore,
        embeddings_client: EmbeddingsClient,
        catalog: CatalogSource,
        logger_: logging.Logger | None = None,
    ) -> None:
        self.vector_store = vector_store
        self.embeddings_client = embeddings_client
        self.catalog = catalog
        self.model = settings.embedding_model_name
        self.dimensions = settings.embedding_dimensions
        self.overfetch = settings.retrieval_overfetch
        self.timeout = settings.retrieval_timeout_sec
        self.logger = logger_ or logging.getLogger(__name__)

    async def retrieve_by_similarity(self, query_text: str, k: int = 5) -> List[RetrievalResult]:
        """
        Embed the query once and return the top ``k`` items by cosine similarity.
        Provider or store failures, and text the embedding model cannot take,
        degrade to an empty list. Only a blank query is rejected.
        """
        if not query_text or not query_text.strip():
            raise InvalidInputError("Query text must not be empty")
        if k <= 0:
            return []

        try:
            vector = await self.embeddings_client.embed_text(query_text)
        except ProviderError as exc:
            self.logger.warning("Query embedding failed, degrading to no results", extra={"error": exc.message})
            return []
        except InvalidInputError as exc:
            self.logger.warning(
                "Query not embeddable, degrading to no results",
                extra={"error": exc.message, **exc.details},
            )
            return []
        return await self.retrieve_by_vector(vector, k)

    async def retrieve_by_vector(self, vector: Sequence[float], k: int = 5) -> List[RetrievalResult]:
        if k <= 0:
            return []
        query_vector = validate_vector(vector, self.dimensions)

        try:
            matches = await asyncio.wait_for(
                asyncio.to_thread(self.vector_store.query, query_vector, k * self.overfetch, self.model),
                timeout=self.timeout,
            )
        except IndexUnavailableError as exc:
            self.logger.warning("Vector store unavailable, degrading to no results", extra={"error": exc.message})
            return []
        except asyncio.TimeoutError:
            self.logger.warning("Vector query timed out, degrading to no results", extra={"timeout_sec": self.timeout})
            return []

        items = {item.id: item for item in self.catalog.get_many([item_id for item_id, _ in matches])}
        results = [
            RetrievalResult.from_item(items[item_id], max(-1.0, min(1.0, score)))
            for item_id, score in matches
            if item_id in items
        ]
        results.sort(key=lambda r: (-r.similarity, r.id))
        results = results[:k]

        self.logger.info(
            "Retrieved strains",
            extra={
                "requested": k,
                "returned": len(results),
                "top_score": round(results[0].similarity, 3) if results else None,
                "results": [{"id": r.id, "score": round(r.similarity, 3)} for r in results],
            },
        )
        return results

    def retrieve_by_facet(self, effects: Iterable[str], k: int = 5) -> List[RetrievalResult]:
        """In-stock items having at least one of ``effects``, strongest THC first."""
        wanted = [e for e in effects if e and e.strip()]
        if not wanted or k <= 0:
            return []
        matches = [item for item in self.catalog.list_items() if item.in_stock and item.has_any_effect(wanted)]
        return self._facet_results(matches, k)

    def retrieve_by_type(self, strain_type: str, k: int = 5) -> List[RetrievalResult]:
        strain_type = strain_type.upper()
        if strain_type not in STRAIN_TYPES:
            raise InvalidInputError(f"Unknown strain type: {strain_type}", details={"allowed": list(STRAIN_TYPES)})
        if k <= 0:
            return []
        matches = [item for item in self.catalog.list_items() if item.in_stock and item.type == strain_type]
        return self._facet_results(matches, k)

    @staticmethod
    def _facet_results(items: List[CatalogItem], k: int) -> List[RetrievalResult]:
        items.sort(key=_potency_key)
        return [RetrievalResult.from_item(item, FACET_SCORE, matched_by="facet") for item in items[:k]]


__all__ = ["Retriever", "RetrievalResult", "FACET_SCORE"]
