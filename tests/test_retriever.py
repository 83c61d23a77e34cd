import pytest
import pytest_asyncio

from budtender.catalog import InMemoryCatalog
from budtender.embeddings.client import EmbeddingsClient
from budtender.embeddings.composer import compose_item_text
from budtender.errors import InvalidInputError
from budtender.rag.retriever import FACET_SCORE, Retriever
from budtender.vector_store.memory_store import InMemoryVectorStore
from tests.fakes import FakeEmbeddingsAPI, FakeOpenAI, fake_vector, make_item


@pytest_asyncio.fixture
async def indexed(backfill_job):
    await backfill_job.run()


class TestSimilarityRetrieval:
    @pytest.mark.asyncio
    async def test_calming_query_ranks_sleepy_indica_first(self, retriever, indexed):
        results = await retriever.retrieve_by_similarity("something calming for sleep", k=3)

        assert results[0].id == "s-001"
        assert results[0].name == "Calm Harbor"
        assert len(results) == 3

    @pytest.mark.asyncio
    async def test_results_sorted_descending(self, retriever, indexed):
        results = await retriever.retrieve_by_similarity("energetic focused daytime sativa", k=4)

        scores = [r.similarity for r in results]
        assert scores == sorted(scores, reverse=True)
        assert all(-1.0 <= s <= 1.0 for s in scores)
        assert results[-1].id == "s-001"

    @pytest.mark.asyncio
    async def test_item_text_finds_itself(self, retriever, catalog, indexed):
        for item in catalog.list_items():
            results = await retriever.retrieve_by_vector(fake_vector(compose_item_text(item)), k=1)

            assert results[0].id == item.id
            assert results[0].similarity >= 0.999

    @pytest.mark.asyncio
    async def test_ties_break_by_id(self, settings, store, embeddings_client):
        catalog = InMemoryCatalog([make_item("b", "Twin B"), make_item("a", "Twin A"), make_item("c", "Other")])
        same = fake_vector("calm")
        store.upsert("b", same, settings.embedding_model_name)
        store.upsert("a", same, settings.embedding_model_name)
        store.upsert("c", fake_vector("energy"), settings.embedding_model_name)
        retriever = Retriever(settings, store, embeddings_client, catalog)

        results = await retriever.retrieve_by_vector(same, k=2)

        assert [r.id for r in results] == ["a", "b"]

    @pytest.mark.asyncio
    async def test_vectors_missing_from_catalog_are_skipped(self, settings, store, embeddings_client, catalog):
        store.upsert("retired-item", fake_vector("calm sleep"), settings.embedding_model_name)
        retriever = Retriever(settings, store, embeddings_client, catalog)

        assert await retriever.retrieve_by_similarity("calm sleep", k=5) == []

    @pytest.mark.asyncio
    async def test_other_model_vectors_are_ignored(self, settings, store, embeddings_client, catalog):
        store.upsert("s-001", fake_vector("calm sleep"), "some-older-model")
        retriever = Retriever(settings, store, embeddings_client, catalog)

        assert await retriever.retrieve_by_similarity("calm sleep", k=5) == []

    @pytest.mark.asyncio
    async def test_empty_store_returns_nothing(self, retriever):
        assert await retriever.retrieve_by_similarity("anything", k=5) == []

    @pytest.mark.asyncio
    async def test_unavailable_store_degrades(self, retriever, store, indexed):
        store.available = False

        assert await retriever.retrieve_by_similarity("calm sleep", k=5) == []

    @pytest.mark.asyncio
    async def test_provider_failure_degrades(self, settings, store, catalog, indexed):
        client = EmbeddingsClient(settings, client=FakeOpenAI(embeddings=FakeEmbeddingsAPI(fail_on=["calm"])))
        retriever = Retriever(settings, store, client, catalog)

        assert await retriever.retrieve_by_similarity("calm sleep", k=5) == []

    @pytest.mark.asyncio
    async def test_overlong_query_degrades(self, settings, store, catalog, fake_openai, indexed):
        limited = settings.model_copy(update={"embedding_max_input_chars": 50})
        retriever = Retriever(limited, store, EmbeddingsClient(limited, client=fake_openai), catalog)
        calls_before = len(fake_openai.embeddings.calls)

        assert await retriever.retrieve_by_similarity("calm " * 20, k=5) == []
        assert len(fake_openai.embeddings.calls) == calls_before

    @pytest.mark.asyncio
    async def test_empty_query_is_rejected(self, retriever):
        with pytest.raises(InvalidInputError):
            await retriever.retrieve_by_similarity("  ", k=5)

    @pytest.mark.asyncio
    async def test_non_positive_k_returns_nothing(self, retriever, fake_openai, indexed):
        calls_before = len(fake_openai.embeddings.calls)

        assert await retriever.retrieve_by_similarity("calm", k=0) == []
        assert len(fake_openai.embeddings.calls) == calls_before

    @pytest.mark.asyncio
    async def test_wrong_dimension_vector_is_rejected(self, retriever):
        with pytest.raises(InvalidInputError):
            await retriever.retrieve_by_vector([1.0, 0.0], k=1)


class TestFacetRetrieval:
    def test_matches_any_effect_in_potency_order(self, retriever):
        results = retriever.retrieve_by_facet(["energetic"], k=2)

        assert [r.id for r in results] == ["s-002", "s-003"]
        assert all(r.similarity == FACET_SCORE for r in results)
        assert all(r.matched_by == "facet" for r in results)

    def test_effect_match_is_case_insensitive(self, retriever):
        results = retriever.retrieve_by_facet(["Relaxed", "nonexistent"], k=3)

        assert [r.id for r in results] == ["s-001"]

    def test_out_of_stock_items_are_excluded(self, settings, store, embeddings_client):
        catalog = InMemoryCatalog(
            [
                make_item("x-1", "Sold Out", thc=30, effects=("relaxed",), stock=0),
                make_item("x-2", "Unknown Potency", thc=None, effects=("relaxed",)),
                make_item("x-3", "Mild", thc=12, effects=("relaxed",)),
            ]
        )
        retriever = Retriever(settings, store, embeddings_client, catalog)

        results = retriever.retrieve_by_facet(["relaxed"], k=5)

        assert [r.id for r in results] == ["x-3", "x-2"]

    def test_relaxing_facet_caps_at_k(self, settings, store, embeddings_client):
        catalog = InMemoryCatalog(
            [
                make_item("r-1", "One", thc=15, effects=("relaxing",)),
                make_item("r-2", "Two", thc=25, effects=("sleepy", "relaxing")),
                make_item("r-3", "Three", thc=20, effects=("relaxing",)),
                make_item("r-4", "Four", thc=20, effects=("relaxing",)),
                make_item("r-5", "Five", thc=40, effects=("relaxing",), stock=0),
                make_item("r-6", "Six", thc=35, effects=("energetic",)),
            ]
        )
        retriever = Retriever(settings, store, embeddings_client, catalog)

        results = retriever.retrieve_by_facet(["relaxing"], 3)

        assert [r.id for r in results] == ["r-2", "r-3", "r-4"]
        assert all(r.similarity == 1.0 for r in results)

    def test_empty_effects_return_nothing(self, retriever):
        assert retriever.retrieve_by_facet([], k=3) == []
        assert retriever.retrieve_by_facet(["  "], k=3) == []

    def test_type_filter(self, retriever):
        results = retriever.retrieve_by_type("sativa", k=5)

        assert [r.id for r in results] == ["s-002", "s-003", "s-004"]

    def test_unknown_type_is_rejected(self, retriever):
        with pytest.raises(InvalidInputError):
            retriever.retrieve_by_type("ruderalis", k=5)


@pytest.mark.asyncio
async def test_overfetch_requests_more_candidates(settings, embeddings_client, catalog):
    seen = {}

    class RecordingStore(InMemoryVectorStore):
        def query(self, vector, top_k, model):
            seen["top_k"] = top_k
            return super().query(vector, top_k, model)

    retriever = Retriever(settings.model_copy(update={"retrieval_overfetch": 3}), RecordingStore(), embeddings_client, catalog)
    await retriever.retrieve_by_vector(fake_vector("calm"), k=2)

    assert seen["top_k"] == 6
