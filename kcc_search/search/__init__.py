"""
Hybrid search: keyword ranking with a progressive vector upgrade.

Usage:
    from kcc_search.search import SearchEngine

    engine = SearchEngine(catalog_loader)
    results = await engine.search_services("food bank")
"""

from .crisis import CRISIS_KEYWORDS, boost_crisis_results, detect_crisis
from .engine import SearchEngine
from .fuzzy import closest_match, distance, get_suggestion
from .geo import apply_scope, distance_km, resort_by_distance
from .highlight import highlight_matches
from .hours import is_open_now
from .scoring import DEFAULT_WEIGHTS, ScoringWeights, freshness_status, score_service
from .session import SearchSession, SearchUpdate
from .synonyms import expand_query
from .tokenizer import normalize, tokenize
from .vector import blend_scores, cosine_similarity

__all__ = [
    'CRISIS_KEYWORDS',
    'DEFAULT_WEIGHTS',
    'ScoringWeights',
    'SearchEngine',
    'SearchSession',
    'SearchUpdate',
    'apply_scope',
    'blend_scores',
    'boost_crisis_results',
    'closest_match',
    'cosine_similarity',
    'detect_crisis',
    'distance',
    'distance_km',
    'expand_query',
    'freshness_status',
    'get_suggestion',
    'highlight_matches',
    'is_open_now',
    'normalize',
    'resort_by_distance',
    'score_service',
    'tokenize',
]
