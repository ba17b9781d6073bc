"""
Abstract base class for embedding providers.

All providers must implement this interface to be swappable.
"""

from abc import ABC, abstractmethod
from typing import List


class BaseEmbeddingProvider(ABC):
    """
    Abstract base class for embedding providers.

    Providers may raise on failure; EmbeddingEngine turns failures into a
    silent fallback to keyword-only results.
    """

    @abstractmethod
    def load(self) -> None:
        """Load model weights / create API clients (blocking, may raise)"""
        pass

    @abstractmethod
    async def embed(self, text: str) -> List[float]:
        """
        Embed a single text.

        Args:
            text: Query or service text

        Returns:
            Embedding vector
        """
        pass

    @abstractmethod
    def get_model_info(self) -> dict:
        """
        Get information about the embedding model.

        Returns:
            Dict with keys: name, type, provider, loaded
        """
        pass

    def close(self):
        """Optional cleanup (close API clients, free memory, etc.)"""
        pass
