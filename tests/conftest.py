import pytest

from budtender.api.deps import build_services
from budtender.catalog import InMemoryCatalog
from budtender.config import Settings
from budtender.embeddings.client import EmbeddingsClient
from budtender.indexing.backfill import BackfillJob
from budtender.indexing.indexer import VectorIndexer
from budtender.indexing.rate_limit import TokenBucketLimiter
from budtender.llm.client import LLMClient
from budtender.rag.retriever import Retriever
from budtender.vector_store.memory_store import InMemoryVectorStore
from tests.fakes import FakeOpenAI, sample_catalog


@pytest.fixture
def settings():
    return Settings(
        _env_file=None,
        openai_api_key="sk-test",
        admin_token="admin-secret",
        vector_store_backend="memory",
        catalog_path="./does-not-exist.json",
        backfill_concurrency=2,
        embed_requests_per_minute=600000,
        embed_burst=100,
        generation_timeout_sec=2.0,
    )


@pytest.fixture
def catalog():
    return InMemoryCatalog(sample_catalog())


@pytest.fixture
def store():
    return InMemoryVectorStore()


@pytest.fixture
def fake_openai():
    return FakeOpenAI()


@pytest.fixture
def embeddings_client(settings, fake_openai):
    return EmbeddingsClient(settings, client=fake_openai)


@pytest.fixture
def llm_client(settings, fake_openai):
    return LLMClient(settings, client=fake_openai)


@pytest.fixture
def retriever(settings, store, embeddings_client, catalog):
    return Retriever(settings, store, embeddings_client, catalog)


@pytest.fixture
def backfill_job(settings, catalog, embeddings_client, store):
    return BackfillJob(
        settings,
        catalog,
        embeddings_client,
        VectorIndexer(store, settings.embedding_dimensions),
        limiter=TokenBucketLimiter(settings.embed_requests_per_minute, settings.embed_burst),
    )


@pytest.fixture
def services(settings, catalog, store, embeddings_client, llm_client):
    return build_services(
        settings,
        catalog=catalog,
        vector_store=store,
        embeddings_client=embeddings_client,
        llm_client=llm_client,
    )
