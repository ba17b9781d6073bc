"""
On-device AI for progressive search upgrades.

Usage:
    from kcc_search.ai import EmbeddingFactory

    engine = EmbeddingFactory.create(settings)
    if engine:
        await engine.init()
        vector = await engine.generate_embedding("food bank")
"""

from .base import BaseEmbeddingProvider
from .engine import EmbeddingEngine, ModelState, query_cache_key
from .factory import EmbeddingFactory
from .local import LocalEmbeddingProvider
from .query_expander import QueryExpander, QueryExpansionResult
from .vector_cache import VectorCache, VectorCacheEntry, hydrate_vector_store
from .vertex import VertexEmbeddingProvider

__all__ = [
    'BaseEmbeddingProvider',
    'EmbeddingEngine',
    'EmbeddingFactory',
    'LocalEmbeddingProvider',
    'ModelState',
    'QueryExpander',
    'QueryExpansionResult',
    'VectorCache',
    'VectorCacheEntry',
    'VertexEmbeddingProvider',
    'hydrate_vector_store',
    'query_cache_key',
]
