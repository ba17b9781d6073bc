"""
On-device embedding provider using sentence-transformers.

Model loads once and stays in memory. Encoding runs in the default executor
so the event loop keeps serving phase 1 results while vectors are computed.
"""

import asyncio
import logging
from typing import List

from .base import BaseEmbeddingProvider

logger = logging.getLogger(__name__)

DEFAULT_LOCAL_MODEL = "sentence-transformers/all-MiniLM-L6-v2"


class LocalEmbeddingProvider(BaseEmbeddingProvider):
    """
    Local sentence-transformers embedding model.

    Runs entirely on this machine (no API calls), so queries never leave
    the device.
    """

    def __init__(self, model_name: str = DEFAULT_LOCAL_MODEL):
        """
        Args:
            model_name: HuggingFace model identifier
                - 'sentence-transformers/all-MiniLM-L6-v2' (384 dims, fast)
                - 'sentence-transformers/all-mpnet-base-v2' (768 dims, better quality)
        """
        self.model_name = model_name
        self.model = None  # Loaded by load()

    def load(self) -> None:
        if self.model is not None:
            return
        logger.info(f"Loading embedding model: {self.model_name}")
        from sentence_transformers import SentenceTransformer
        self.model = SentenceTransformer(self.model_name)
        logger.info(f"Embedding model loaded: {self.model_name}")

    def _encode(self, text: str) -> List[float]:
        vector = self.model.encode(text, show_progress_bar=False)
        return [float(x) for x in vector]

    async def embed(self, text: str) -> List[float]:
        if self.model is None:
            raise RuntimeError(f"Model not loaded: {self.model_name}")
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(None, self._encode, text)

    def get_model_info(self) -> dict:
        return {
            "name": self.model_name,
            "type": "local",
            "provider": "sentence-transformers",
            "loaded": self.model is not None,
        }

    def close(self):
        """Free model memory."""
        if self.model is not None:
            logger.info(f"Closing model: {self.model_name}")
            del self.model
            self.model = None
