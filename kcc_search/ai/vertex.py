"""
Server-side embedding provider using Vertex AI via the Google GenAI SDK.

Used by the /v1/embed endpoint and scripts/generate_embeddings.py when no
on-device model is configured.
"""

import asyncio
import logging
import os
from typing import List, Optional

from google import genai

from .base import BaseEmbeddingProvider

logger = logging.getLogger(__name__)

DEFAULT_VERTEX_MODEL = "text-embedding-005"


class VertexEmbeddingProvider(BaseEmbeddingProvider):
    """Vertex AI text embeddings (768 dims for text-embedding-005)"""

    def __init__(
        self,
        model_name: str = DEFAULT_VERTEX_MODEL,
        project_id: Optional[str] = None,
        location: str = "us-central1",
        client: Optional[genai.Client] = None,
    ):
        """
        Args:
            model_name: Vertex embedding model
            project_id: GCP project ID (reads GOOGLE_CLOUD_PROJECT if not provided)
            location: GCP region
            client: Pre-built genai client (tests, shared app client)
        """
        self.model_name = model_name
        self.project_id = project_id or os.getenv("GOOGLE_CLOUD_PROJECT")
        self.location = location
        self.client = client

    def load(self) -> None:
        if self.client is not None:
            return
        if not self.project_id:
            raise ValueError(
                "GCP project ID required. Set GCP_PROJECT_ID env var or pass project_id parameter."
            )
        self.client = genai.Client(vertexai=True, project=self.project_id, location=self.location)
        logger.info(f"Vertex embedding client initialized: {self.model_name} (project={self.project_id}, location={self.location})")

    def _embed_sync(self, text: str) -> List[float]:
        response = self.client.models.embed_content(
            model=self.model_name,
            contents=text,
        )
        return list(response.embeddings[0].values)

    async def embed(self, text: str) -> List[float]:
        if self.client is None:
            raise RuntimeError("Vertex client not initialized")
        # genai client is synchronous; keep the event loop free
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(None, self._embed_sync, text)

    def get_model_info(self) -> dict:
        return {
            "name": self.model_name,
            "type": "vertex_ai",
            "provider": "google-genai",
            "loaded": self.client is not None,
        }

    def close(self):
        self.client = None
