"""
Embedding engine: owned model state plus vector caching.

State machine:
    UNINITIALIZED --init()--> LOADING --ok--> READY
                                      --err-> FAILED --init()--> LOADING ...
    any --teardown()--> UNINITIALIZED

generate_embedding never raises: an unready model or a failed call returns
None, which callers treat as "stay on keyword-only results".
"""

import asyncio
import logging
from enum import Enum
from typing import Callable, List, Optional

from .base import BaseEmbeddingProvider
from .vector_cache import VectorCache

logger = logging.getLogger(__name__)

QUERY_KEY_PREFIX = "query:"


class ModelState(str, Enum):
    UNINITIALIZED = "uninitialized"
    LOADING = "loading"
    READY = "ready"
    FAILED = "failed"


StateListener = Callable[[ModelState, Optional[str]], None]


def query_cache_key(text: str) -> str:
    """Cache key for a query embedding (case/whitespace-insensitive)"""
    return QUERY_KEY_PREFIX + " ".join(text.lower().split())


class EmbeddingEngine:
    """Embedding model handle with explicit init/teardown"""

    def __init__(self, provider: BaseEmbeddingProvider, cache: Optional[VectorCache] = None):
        self.provider = provider
        self.cache = cache
        self.state = ModelState.UNINITIALIZED
        self.error: Optional[str] = None
        self._listeners: List[StateListener] = []
        self._init_lock = asyncio.Lock()

    def __repr__(self) -> str:
        return f"EmbeddingEngine({self.provider.get_model_info().get('name')}, state={self.state.value})"

    @property
    def is_ready(self) -> bool:
        return self.state == ModelState.READY

    def subscribe(self, listener: StateListener) -> Callable[[], None]:
        """
        Register a state listener. It is called immediately with the current
        state. Returns an unsubscribe function.
        """
        self._listeners.append(listener)
        listener(self.state, self.error)

        def unsubscribe():
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _set_state(self, state: ModelState, error: Optional[str] = None):
        self.state = state
        self.error = error
        for listener in list(self._listeners):
            try:
                listener(state, error)
            except Exception as e:
                logger.warning(f"Model state listener failed: {e}")

    async def init(self) -> ModelState:
        """Load the model (no-op if loading or ready)"""
        async with self._init_lock:
            if self.state == ModelState.READY:
                return self.state

            self._set_state(ModelState.LOADING)
            loop = asyncio.get_running_loop()
            try:
                await loop.run_in_executor(None, self.provider.load)
            except Exception as e:
                logger.error(f"Failed to initialize embedding model: {e}")
                self._set_state(ModelState.FAILED, str(e) or "Failed to load model")
                return self.state

            self._set_state(ModelState.READY)
            logger.info(f"Embedding model ready: {self.provider.get_model_info()}")
            return self.state

    async def embed_uncached(self, text: str) -> Optional[List[float]]:
        """Embed without consulting the cache; None on failure"""
        if not self.is_ready:
            return None
        try:
            return await self.provider.embed(text)
        except Exception as e:
            logger.debug(f"Embedding failed, degrading to keyword search: {e}")
            return None

    async def generate_embedding(self, text: str) -> Optional[List[float]]:
        """
        Embed a query, consulting the vector cache first.

        Args:
            text: Query text

        Returns:
            Embedding, or None when the model is not ready or the call failed
        """
        if not self.is_ready or not text or not text.strip():
            return None

        key = query_cache_key(text)
        if self.cache is not None:
            cached = await self.cache.get(key)
            if cached is not None:
                logger.debug(f"Vector cache hit: {key}")
                return cached.embedding

        embedding = await self.embed_uncached(text)
        if embedding is None:
            return None

        if self.cache is not None:
            await self.cache.set(key, embedding, {"kind": "query"})
        return embedding

    async def teardown(self):
        """Release the model and return to UNINITIALIZED"""
        self.provider.close()
        self._set_state(ModelState.UNINITIALIZED)
        logger.info("Embedding engine torn down")
