"""
Hybrid search orchestrator.

Phase 1 (instant): tokenize -> synonym expansion -> keyword scoring over the
filtered catalog -> distance re-sort -> crisis partition.

Phase 2 (progressive): when a query vector is available (vector_override or
a ready embedding engine), blend cosine similarity into the phase 1 scores,
re-sort and re-apply the crisis partition.

Embedding problems never fail a search; they leave the phase 1 list as the
answer. A catalog that cannot be loaded raises CatalogUnavailableError.
"""

import logging
from typing import Dict, List, Optional, Sequence

from ..ai.engine import EmbeddingEngine
from ..ai.query_expander import QueryExpander
from ..catalog import CatalogLoader
from ..eligibility import check_eligibility
from ..exceptions import CatalogUnavailableError
from ..models import SearchOptions, SearchResult, Service, VerificationLevel
from .crisis import boost_crisis_results, detect_crisis
from .fuzzy import catalog_search_terms, closest_match, get_suggestion, is_correctable
from .geo import apply_scope, resort_by_distance, service_distance, valid_coordinates
from .hours import is_open_now
from .scoring import DEFAULT_WEIGHTS, ScoringWeights, score_service
from .synonyms import expand_query
from .tokenizer import tokenize
from .vector import blend_scores

logger = logging.getLogger(__name__)

FILTER_MATCH_REASON = "Filter Match"
CRISIS_TERM = "crisis"


class SearchEngine:
    """
    Two-phase search over a service catalog.

    Args:
        catalog: Source of services (usually a FallbackCatalogLoader)
        embedding_engine: Optional query embedder for phase 2
        expander: Optional LLM query expander (used when
            SearchOptions.use_ai_expansion is set)
        weights: Scoring weights
    """

    def __init__(
        self,
        catalog: CatalogLoader,
        embedding_engine: Optional[EmbeddingEngine] = None,
        expander: Optional[QueryExpander] = None,
        weights: ScoringWeights = DEFAULT_WEIGHTS,
    ):
        self.catalog = catalog
        self.embedding_engine = embedding_engine
        self.expander = expander
        self.weights = weights

    async def load_services(self) -> List[Service]:
        try:
            return await self.catalog.load_services()
        except CatalogUnavailableError:
            raise
        except Exception as e:
            logger.error(f"Catalog load failed: {e}")
            raise CatalogUnavailableError(str(e)) from e

    def _filter_services(self, services: Sequence[Service], options: SearchOptions) -> List[Service]:
        filtered = list(services)
        if options.category:
            filtered = [s for s in filtered if s.intent_category.value == options.category]
        if options.open_now:
            filtered = [s for s in filtered if is_open_now(s.hours)]
        return apply_scope(filtered, options.scope, options.location)

    def _filter_only(self, services: List[Service], options: SearchOptions) -> List[SearchResult]:
        """Empty query with an active filter: everything that passes, nearest first"""
        results = [
            SearchResult(service=s, score=1.0, match_reasons=[FILTER_MATCH_REASON])
            for s in services
        ]
        if options.location is not None and valid_coordinates(options.location):
            for result in results:
                result.distance_km = service_distance(result.service, options.location)
            results.sort(key=lambda r: r.distance_km if r.distance_km is not None else float("inf"))
        return results

    async def _query_terms(self, query: str, options: SearchOptions) -> List[str]:
        search_input = query
        if options.use_ai_expansion and self.expander is not None:
            expansion = await self.expander.expand(query)
            if expansion.expanded:
                search_input += " " + " ".join(expansion.expanded)
        return tokenize(search_input)

    def _annotate_eligibility(self, results: List[SearchResult], options: SearchOptions):
        if options.user_context is None:
            return
        for result in results:
            result.eligibility = check_eligibility(result.service, options.user_context)

    def _finish(self, results: List[SearchResult], query: str, options: SearchOptions) -> List[SearchResult]:
        """Distance re-sort, then the crisis partition, then the limit"""
        if options.location is not None and valid_coordinates(options.location):
            results = resort_by_distance(results, options.location)
        results = boost_crisis_results(results, detect_crisis(query, options.category))
        if options.limit and options.limit > 0:
            results = results[: options.limit]
        return results

    async def phase_one(self, query: str, options: Optional[SearchOptions] = None) -> List[SearchResult]:
        """
        Keyword-only results.

        Args:
            query: Raw query text
            options: Filters and personalization

        Returns:
            Ranked results; [] when nothing matches

        Raises:
            CatalogUnavailableError: No catalog source could be loaded
        """
        options = options or SearchOptions()
        services = self._filter_services(await self.load_services(), options)

        if not query or not query.strip():
            if options.category or options.location is not None:
                results = self._filter_only(services, options)
                if options.limit and options.limit > 0:
                    results = results[: options.limit]
                return results
            return []

        raw_tokens = await self._query_terms(query, options)
        if not raw_tokens:
            return []

        terms = expand_query(raw_tokens)
        if detect_crisis(query, options.category) and CRISIS_TERM not in terms:
            terms.append(CRISIS_TERM)

        results: List[SearchResult] = []
        for service in services:
            if service.verification_level == VerificationLevel.L0:
                continue
            score, reasons = score_service(
                service,
                terms,
                original_terms=raw_tokens,
                user_context=options.user_context,
                weights=self.weights,
            )
            if score > 0:
                results.append(SearchResult(service=service, score=score, match_reasons=reasons))

        results.sort(key=lambda r: r.score, reverse=True)
        results = self._finish(results, query, options)
        self._annotate_eligibility(results, options)

        logger.debug(f"Phase 1: {len(results)} results from {len(services)} candidates")
        return results

    async def _service_vectors(self, services: Sequence[Service]) -> Dict[str, List[float]]:
        vectors: Dict[str, List[float]] = {}
        cache = self.embedding_engine.cache if self.embedding_engine is not None else None
        for service in services:
            if service.embedding:
                vectors[service.id] = service.embedding
            elif cache is not None:
                entry = await cache.get(service.id)
                if entry is not None:
                    vectors[service.id] = entry.embedding
        return vectors

    async def query_vector(self, query: str, options: Optional[SearchOptions] = None) -> Optional[List[float]]:
        """vector_override if given, else the embedding engine's (None when unavailable)"""
        if options is not None and options.vector_override:
            return options.vector_override
        if self.embedding_engine is None or not self.embedding_engine.is_ready:
            return None
        return await self.embedding_engine.generate_embedding(query)

    async def phase_two(
        self,
        query: str,
        phase_one_results: List[SearchResult],
        options: Optional[SearchOptions] = None,
        query_vector: Optional[Sequence[float]] = None,
    ) -> List[SearchResult]:
        """
        Re-rank phase 1 results with vector similarity.

        Returns the phase 1 list unchanged when no query vector can be
        obtained.
        """
        options = options or SearchOptions()
        if not query or not query.strip():
            return phase_one_results

        if query_vector is None:
            query_vector = await self.query_vector(query, options)
        if query_vector is None:
            return phase_one_results

        rescue: Optional[List[Service]] = None
        if options.semantic_rescue:
            services = self._filter_services(await self.load_services(), options)
            rescue = [s for s in services if s.verification_level != VerificationLevel.L0]
            candidates = rescue
        else:
            candidates = [r.service for r in phase_one_results]

        vectors = await self._service_vectors(candidates)
        if not vectors:
            logger.debug("No service vectors available, keeping keyword ranking")
            return phase_one_results

        results = blend_scores(phase_one_results, query_vector, vectors, self.weights, rescue)
        results = self._finish(results, query, options)
        self._annotate_eligibility(results, options)

        logger.debug(f"Phase 2: re-ranked {len(results)} results")
        return results

    async def search_services(self, query: str, options: Optional[SearchOptions] = None) -> List[SearchResult]:
        """
        Phase 1, then phase 2 when a query vector is available.

        Raises:
            CatalogUnavailableError: No catalog source could be loaded
        """
        options = options or SearchOptions()
        results = await self.phase_one(query, options)
        if not results and not options.semantic_rescue:
            return results
        return await self.phase_two(query, results, options)

    async def get_suggestion(self, query: str, include_catalog: bool = True) -> Optional[str]:
        """
        "Did you mean" for a query.

        Tries the built-in dictionary word by word, then (if include_catalog)
        the closest catalog name or tag for the whole query. Never applied
        automatically.
        """
        suggestion = get_suggestion(query)
        if suggestion:
            return suggestion

        if not include_catalog or not query or not is_correctable(query.strip()):
            return None

        try:
            services = await self.load_services()
        except CatalogUnavailableError:
            return None

        match = closest_match(query.strip(), catalog_search_terms(services))
        if match and match.lower() != query.strip().lower():
            return match
        return None
