"""
Phase 2 re-ranking: blend vector similarity into keyword scores.

    blended = keyword_score + weight * cosine(query, service)

The weight is a tunable (ScoringWeights.vector). The crisis partition is
applied by the caller after blending, so similarity can never demote a
crisis service.
"""

import logging
from typing import Dict, List, Optional, Sequence

import numpy as np

from ..models import SearchResult, Service
from .scoring import DEFAULT_WEIGHTS, ScoringWeights

logger = logging.getLogger(__name__)

MIN_SIMILARITY = 0.01
BOOST_REASON_MIN_POINTS = 30.0
RESCUE_MIN_POINTS = 25.0


def cosine_similarity(vec_a: Optional[Sequence[float]], vec_b: Optional[Sequence[float]]) -> float:
    """
    Cosine similarity of two vectors.

    Returns 0.0 for missing, mismatched-length or zero-norm vectors.
    """
    if vec_a is None or vec_b is None or len(vec_a) == 0 or len(vec_a) != len(vec_b):
        return 0.0

    a = np.asarray(vec_a, dtype=np.float64)
    b = np.asarray(vec_b, dtype=np.float64)
    norm_a = np.linalg.norm(a)
    norm_b = np.linalg.norm(b)
    if norm_a == 0 or norm_b == 0:
        return 0.0

    return float(np.dot(a, b) / (norm_a * norm_b))


def blend_scores(
    results: List[SearchResult],
    query_vector: Sequence[float],
    service_vectors: Dict[str, Sequence[float]],
    weights: ScoringWeights = DEFAULT_WEIGHTS,
    rescue_candidates: Optional[List[Service]] = None,
) -> List[SearchResult]:
    """
    Add vector points to phase 1 results and re-sort by score.

    Args:
        results: Phase 1 results (copied, not mutated)
        query_vector: Query embedding
        service_vectors: service id -> embedding (services without one keep
            their keyword score)
        weights: Blend weight (weights.vector)
        rescue_candidates: If given, services not in results whose vector
            contribution exceeds RESCUE_MIN_POINTS are added

    Returns:
        New list sorted by blended score (stable)
    """
    upgraded: List[SearchResult] = []
    seen = set()

    for result in results:
        item = result.copy()
        seen.add(item.service.id)
        vector = service_vectors.get(item.service.id)
        similarity = cosine_similarity(query_vector, vector) if vector is not None else 0.0

        if similarity > MIN_SIMILARITY:
            points = similarity * weights.vector
            item.score += points
            if points > BOOST_REASON_MIN_POINTS:
                item.match_reasons.append(f"Semantic Boost ({round(similarity * 100)}%)")
        upgraded.append(item)

    if rescue_candidates:
        rescued = 0
        for service in rescue_candidates:
            if service.id in seen:
                continue
            vector = service_vectors.get(service.id)
            if vector is None:
                continue
            similarity = cosine_similarity(query_vector, vector)
            points = similarity * weights.vector
            if points > RESCUE_MIN_POINTS:
                upgraded.append(SearchResult(
                    service=service,
                    score=points,
                    match_reasons=[f"Semantic Rescue ({round(similarity * 100)}%)"],
                ))
                rescued += 1
        if rescued:
            logger.debug(f"Semantic rescue added {rescued} services")

    upgraded.sort(key=lambda r: r.score, reverse=True)
    return upgraded
