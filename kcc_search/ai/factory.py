"""
Factory to create embedding engines based on configuration.
"""

import logging
from typing import Optional

from ..config import Settings
from .engine import EmbeddingEngine
from .local import DEFAULT_LOCAL_MODEL, LocalEmbeddingProvider
from .vector_cache import VectorCache
from .vertex import DEFAULT_VERTEX_MODEL, VertexEmbeddingProvider

logger = logging.getLogger(__name__)


class EmbeddingFactory:
    """Build an EmbeddingEngine from Settings (no global instance)"""

    @staticmethod
    def create(settings: Settings, cache: Optional[VectorCache] = None) -> Optional[EmbeddingEngine]:
        """
        Create an embedding engine.

        Config:
            EMBEDDING_ENABLED: "true" to enable phase 2 re-ranking
            EMBEDDING_PROVIDER: "local" | "vertex_ai" (default: local)
            EMBEDDING_MODEL: Model identifier (provider-specific default)

        Returns:
            Uninitialized engine (call init()), or None if disabled
        """
        if not settings.embedding_enabled:
            logger.info("Embeddings disabled (EMBEDDING_ENABLED=false): keyword-only search")
            return None

        provider_type = settings.embedding_provider

        if provider_type == "local":
            model = settings.embedding_model or DEFAULT_LOCAL_MODEL
            logger.info(f"Creating local embedding provider: {model}")
            provider = LocalEmbeddingProvider(model_name=model)

        elif provider_type == "vertex_ai":
            model = settings.embedding_model or DEFAULT_VERTEX_MODEL
            logger.info(f"Creating Vertex AI embedding provider: {model}")
            provider = VertexEmbeddingProvider(
                model_name=model,
                project_id=settings.gcp_project_id,
                location=settings.gcp_location,
            )

        else:
            raise ValueError(
                f"Unknown embedding provider: {provider_type}. "
                f"Valid options: local, vertex_ai"
            )

        if cache is None:
            cache = VectorCache(settings.vector_cache_path)

        return EmbeddingEngine(provider, cache=cache)
