"""
Unit tests for the two-phase search orchestrator.
"""

import pytest

from fakes import FakeEmbeddingProvider, StaticCatalog, build_service
from kcc_search.ai.engine import EmbeddingEngine
from kcc_search.ai.vector_cache import VectorCache
from kcc_search.catalog import FallbackCatalogLoader, JsonCatalogLoader
from kcc_search.exceptions import CatalogUnavailableError
from kcc_search.models import Coordinates, SearchOptions, UserContext
from kcc_search.search.crisis import CRISIS_REASON
from kcc_search.search.engine import FILTER_MATCH_REASON, SearchEngine

pytestmark = pytest.mark.unit


def ids(results):
    return [r.service.id for r in results]


class TestPhaseOne:
    """Keyword ranking"""

    @pytest.mark.asyncio
    async def test_hungry_finds_food_bank_first(self, engine):
        results = await engine.phase_one("I am hungry")
        assert results[0].service.id == "food-bank"
        assert any("im hungry" in r for r in results[0].match_reasons)

    @pytest.mark.asyncio
    async def test_nonsense_query_empty(self, engine):
        assert await engine.search_services("xyz123foobar") == []

    @pytest.mark.asyncio
    async def test_unverified_excluded(self, engine):
        results = await engine.phase_one("food pantry")
        assert "unverified-pantry" not in ids(results)
        assert "food-bank" in ids(results)

    @pytest.mark.asyncio
    async def test_scores_descending(self, engine):
        results = await engine.phase_one("food")
        scores = [r.score for r in results]
        assert scores == sorted(scores, reverse=True)

    @pytest.mark.asyncio
    async def test_stopword_only_query(self, engine):
        assert await engine.phase_one("I need help") == []

    @pytest.mark.asyncio
    async def test_category_filter(self, engine):
        results = await engine.phase_one("food", SearchOptions(category="Indigenous"))
        assert ids(results) == ["indigenous-centre"]

    @pytest.mark.asyncio
    async def test_limit(self, engine):
        results = await engine.phase_one("food", SearchOptions(limit=1))
        assert len(results) == 1

    @pytest.mark.asyncio
    async def test_provincial_scope(self, engine):
        results = await engine.phase_one("legal", SearchOptions(scope="provincial"))
        assert ids(results) == ["legal-aid"]

    @pytest.mark.asyncio
    async def test_eligibility_annotated(self, engine):
        context = UserContext(age_group="youth", identities=[], has_opted_in=True)
        results = await engine.phase_one("indigenous", SearchOptions(user_context=context))
        centre = next(r for r in results if r.service.id == "indigenous-centre")
        assert centre.eligibility == "ineligible"


class TestEmptyQuery:
    """Filter-only browsing"""

    @pytest.mark.asyncio
    async def test_no_filters_empty(self, engine):
        assert await engine.phase_one("") == []
        assert await engine.phase_one("   ") == []

    @pytest.mark.asyncio
    async def test_category_lists_all(self, engine):
        results = await engine.phase_one("", SearchOptions(category="Food"))
        assert ids(results) == ["food-bank", "soup-kitchen", "unverified-pantry"]
        assert all(r.score == 1.0 for r in results)
        assert all(r.match_reasons == [FILTER_MATCH_REASON] for r in results)

    @pytest.mark.asyncio
    async def test_location_sorts_nearest_first(self, engine):
        near_soup_kitchen = Coordinates(lat=44.2600, lng=-76.5500)
        results = await engine.phase_one("", SearchOptions(category="Food", location=near_soup_kitchen))
        assert ids(results)[:2] == ["soup-kitchen", "food-bank"]
        assert results[-1].distance_km is None


class TestCrisis:
    """Crisis services are never outranked"""

    @pytest.mark.asyncio
    async def test_self_harm_query(self, engine):
        results = await engine.search_services("I want to kill myself")
        assert results[0].service.id == "crisis-line"
        assert CRISIS_REASON in results[0].match_reasons

    @pytest.mark.asyncio
    async def test_crisis_above_higher_scores(self, engine):
        results = await engine.phase_one("emergency food")
        assert ids(results)[:2] == ["crisis-line", "food-bank"]
        assert results[0].score < results[1].score

    @pytest.mark.asyncio
    async def test_crisis_survives_phase_two(self, services):
        """Similarity cannot push a crisis service down"""
        engine = SearchEngine(StaticCatalog(services))
        options = SearchOptions(vector_override=[1.0, 0.0, 0.0])
        results = await engine.search_services("emergency food", options)
        assert results[0].service.id == "crisis-line"
        assert results[0].match_reasons.count(CRISIS_REASON) == 1

    @pytest.mark.asyncio
    async def test_crisis_with_location(self, engine):
        """Distance re-sort runs before the partition"""
        options = SearchOptions(location=Coordinates(lat=44.2312, lng=-76.4860))
        results = await engine.phase_one("emergency food", options)
        assert results[0].service.id == "crisis-line"

    @pytest.mark.asyncio
    async def test_crisis_word_inside_other_word_not_flagged(self):
        """'skills' contains 'kill' but is not a crisis query"""
        catalog = StaticCatalog([
            build_service(id="jobs", name="Skills Training Centre", intent_category="Employment",
                          description="Job skills training and resume help."),
            build_service(id="crisis", name="Crisis Line", intent_category="Crisis"),
        ])
        results = await SearchEngine(catalog).phase_one("skills training")

        assert ids(results) == ["jobs"]
        assert not results[0].crisis


class TestPhaseTwo:
    """Vector upgrade"""

    @pytest.mark.asyncio
    async def test_broken_vector_cache_keeps_search_working(self, catalog, tmp_path):
        cache = VectorCache(tmp_path / "vectors.sqlite3")
        await cache.set("warmup", [0.0])
        cache.conn.execute("DROP TABLE vectors")

        embeddings = EmbeddingEngine(FakeEmbeddingProvider(vectors={"hungry": [0.0, 1.0, 0.0]}), cache=cache)
        await embeddings.init()
        results = await SearchEngine(catalog, embedding_engine=embeddings).search_services("hungry")

        assert results[0].service.id == "soup-kitchen"

    @pytest.mark.asyncio
    async def test_vector_override_reranks(self, engine):
        phase_one = await engine.phase_one("hungry")
        assert phase_one[0].service.id == "food-bank"

        options = SearchOptions(vector_override=[0.0, 1.0, 0.0])
        phase_two = await engine.phase_two("hungry", phase_one, options)
        assert phase_two[0].service.id == "soup-kitchen"
        assert any(r.startswith("Semantic Boost") for r in phase_two[0].match_reasons)

    @pytest.mark.asyncio
    async def test_same_services_as_phase_one(self, engine):
        phase_one = await engine.phase_one("food")
        options = SearchOptions(vector_override=[0.0, 0.0, 1.0])
        phase_two = await engine.phase_two("food", phase_one, options)
        assert sorted(ids(phase_two)) == sorted(ids(phase_one))

    @pytest.mark.asyncio
    async def test_ready_engine_used(self, catalog):
        provider = FakeEmbeddingProvider(vectors={"hungry": [0.0, 1.0, 0.0]})
        embeddings = EmbeddingEngine(provider)
        await embeddings.init()
        engine = SearchEngine(catalog, embedding_engine=embeddings)

        results = await engine.search_services("hungry")
        assert results[0].service.id == "soup-kitchen"
        assert provider.embed_calls == ["hungry"]

    @pytest.mark.asyncio
    async def test_embedding_failure_keeps_phase_one(self, catalog):
        embeddings = EmbeddingEngine(FakeEmbeddingProvider(fail_embed=True))
        await embeddings.init()
        engine = SearchEngine(catalog, embedding_engine=embeddings)

        keyword_only = await SearchEngine(catalog).phase_one("hungry")
        results = await engine.search_services("hungry")
        assert ids(results) == ids(keyword_only)
        assert [r.score for r in results] == [r.score for r in keyword_only]

    @pytest.mark.asyncio
    async def test_model_not_ready(self, catalog):
        embeddings = EmbeddingEngine(FakeEmbeddingProvider())
        engine = SearchEngine(catalog, embedding_engine=embeddings)
        results = await engine.search_services("hungry")
        assert results[0].service.id == "food-bank"

    @pytest.mark.asyncio
    async def test_semantic_rescue_opt_in(self, engine):
        options = SearchOptions(vector_override=[0.0, 0.0, 1.0])
        assert "crisis-line" not in ids(await engine.search_services("groceries", options))

        options.semantic_rescue = True
        results = await engine.search_services("groceries", options)
        assert "crisis-line" in ids(results)


class TestCatalogFailure:
    @pytest.mark.asyncio
    async def test_raises_catalog_unavailable(self, services):
        engine = SearchEngine(StaticCatalog(services, fail=True))
        with pytest.raises(CatalogUnavailableError):
            await engine.search_services("food")

    @pytest.mark.asyncio
    async def test_all_sources_fail(self, tmp_path):
        loader = FallbackCatalogLoader([JsonCatalogLoader(tmp_path / "missing.json")])
        engine = SearchEngine(loader)
        with pytest.raises(CatalogUnavailableError):
            await engine.phase_one("food")


class TestSuggestion:
    @pytest.mark.asyncio
    async def test_dictionary_suggestion(self, engine):
        assert await engine.get_suggestion("shleter") == "shelter"

    @pytest.mark.asyncio
    async def test_catalog_suggestion(self):
        engine = SearchEngine(StaticCatalog([build_service(id="x", name="Kilaya")]))
        assert await engine.get_suggestion("kilaay") == "Kilaya"

    @pytest.mark.asyncio
    async def test_numbers_never_corrected_to_catalog_terms(self):
        engine = SearchEngine(StaticCatalog([build_service(id="x", name="9110")]))
        assert await engine.get_suggestion("9111") is None
        assert await engine.get_suggestion("911") is None

    @pytest.mark.asyncio
    async def test_no_suggestion(self, engine):
        assert await engine.get_suggestion("food") is None

    @pytest.mark.asyncio
    async def test_catalog_unavailable_no_suggestion(self, services):
        engine = SearchEngine(StaticCatalog(services, fail=True))
        assert await engine.get_suggestion("qwertyuiop") is None
