"""
Vector store abstractions and factories.
"""

from budtender.config import Settings
from budtender.vector_store.base import IndexStatus, VectorStore
from budtender.vector_store.chroma_store import ChromaVectorStore
from budtender.vector_store.memory_store import InMemoryVectorStore


def get_vector_store(settings: Settings) -> VectorStore:
    """
    Factory to obtain configured VectorStore instance.
    Supports the persistent Chroma backend and the in-memory backend.
    """
    backend = settings.vector_store_backend.lower()
    if backend == "chroma":
        return ChromaVectorStore(
            persist_directory=settings.vector_store_path,
            collection_name=settings.vector_collection,
        )
    if backend == "memory":
        return InMemoryVectorStore()
    raise ValueError(f"Unsupported vector store backend: {backend}")


__all__ = ["get_vector_store", "ChromaVectorStore", "InMemoryVectorStore", "IndexStatus", "VectorStore"]
