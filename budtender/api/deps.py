"""
Service wiring for the HTTP layer.

Components are built once per process from the injected ``Settings`` and
shared across requests; none of them keeps per-turn state.
"""

from __future__ import annotations

from dataclasses import dataclass
from functools import lru_cache

from budtender.catalog import CatalogSource, get_catalog
from budtender.config import Settings, get_settings
from budtender.embeddings.client import EmbeddingsClient
from budtender.indexing.backfill import BackfillJob
from budtender.indexing.indexer import VectorIndexer
from budtender.llm.client import LLMClient
from budtender.rag.context import ContextAssembler
from budtender.rag.orchestrator import ConversationOrchestrator
from budtender.rag.retriever import Retriever
from budtender.vector_store import VectorStore, get_vector_store


@dataclass
class Services:
    settings: Settings
    catalog: CatalogSource
    vector_store: VectorStore
    embeddings_client: EmbeddingsClient
    llm_client: LLMClient
    retriever: Retriever
    orchestrator: ConversationOrchestrator

    def backfill_job(self, show_progress: bool = False) -> BackfillJob:
        return BackfillJob(
            self.settings,
            self.catalog,
            self.embeddings_client,
            VectorIndexer(self.vector_store, self.settings.embedding_dimensions),
            show_progress=show_progress,
        )


def build_services(
    settings: Settings,
    catalog: CatalogSource | None = None,
    vector_store: VectorStore | None = None,
    embeddings_client: EmbeddingsClient | None = None,
    llm_client: LLMClient | None = None,
) -> Services:
    catalog = catalog if catalog is not None else get_catalog(settings)
    vector_store = vector_store if vector_store is not None else get_vector_store(settings)
    embeddings_client = embeddings_client or EmbeddingsClient(settings)
    llm_client = llm_client or LLMClient(settings)
    retriever = Retriever(settings, vector_store, embeddings_client, catalog)
    orchestrator = ConversationOrchestrator(
        settings,
        retriever,
        llm_client,
        assembler=ContextAssembler(settings.max_context_items),
    )
    return Services(
        settings=settings,
        catalog=catalog,
        vector_store=vector_store,
        embeddings_client=embeddings_client,
        llm_client=llm_client,
        retriever=retriever,
        orchestrator=orchestrator,
    )


@lru_cache
def _default_services() -> Services:
    return build_services(get_settings())


def get_services() -> Services:
    """FastAPI dependency; tests override it with in-memory services."""
    return _default_services()


__all__ = ["Services", "build_services", "get_services"]
