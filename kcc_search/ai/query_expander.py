"""
LLM query expansion with Gemini (optional).

Asks the model for 3-5 related search terms and appends them to the query
before tokenization. Any failure returns no extra terms; expansion never
blocks or breaks a search.
"""

import asyncio
import json
import logging
import re
from dataclasses import dataclass, field
from typing import List, Optional

from google import genai
from google.genai import types

from ..utils import BoundedCache

logger = logging.getLogger(__name__)

MAX_TERMS = 5
MIN_QUERY_LENGTH = 3


@dataclass
class QueryExpansionResult:
    original: str
    expanded: List[str] = field(default_factory=list)
    from_cache: bool = False


class QueryExpander:
    """Gemini-backed related-terms generator with a bounded cache"""

    EXPANSION_PROMPT_TEMPLATE = """You are a social services search assistant for Kingston, Ontario. Given a user query, generate 3-5 semantically related search terms that would help find relevant community services.

Rules:
- Output ONLY a JSON array of strings, nothing else.
- Include synonyms, related concepts, and specific service types.
- Consider local Canadian terminology (e.g., "ODSP" for disability, "OW" for Ontario Works).

User Query: "{query}"
Related Terms:"""

    def __init__(
        self,
        client: Optional[genai.Client],
        model_name: str = "gemini-2.5-flash",
        temperature: float = 0.0,
        cache_size: int = 500,
    ):
        """
        Args:
            client: genai client (None disables expansion)
            model_name: Gemini model to use
            temperature: Model temperature (0.0 = deterministic)
            cache_size: Max cached queries
        """
        self.client = client
        self.model_name = model_name
        self.temperature = temperature
        self.cache: BoundedCache[List[str]] = BoundedCache(max_size=cache_size)

    @property
    def is_ready(self) -> bool:
        return self.client is not None

    @staticmethod
    def parse_terms(response_text: str) -> List[str]:
        """Parse the model's JSON array (tolerates surrounding text)"""
        if not response_text:
            return []
        try:
            parsed = json.loads(response_text)
        except json.JSONDecodeError:
            match = re.search(r"\[.*\]", response_text, re.DOTALL)
            if not match:
                return []
            try:
                parsed = json.loads(match.group(0))
            except json.JSONDecodeError:
                return []

        if not isinstance(parsed, list):
            return []

        terms = []
        for item in parsed:
            if isinstance(item, str) and item.strip() and item.strip() not in terms:
                terms.append(item.strip())
        return terms[:MAX_TERMS]

    def _generate(self, prompt: str) -> str:
        response = self.client.models.generate_content(
            model=self.model_name,
            contents=prompt,
            config=types.GenerateContentConfig(temperature=self.temperature),
        )
        return response.text or ""

    async def expand(self, query: str) -> QueryExpansionResult:
        normalized = query.lower().strip()

        cached = self.cache.get(normalized)
        if cached is not None:
            return QueryExpansionResult(original=query, expanded=cached, from_cache=True)

        if not self.is_ready or len(normalized) < MIN_QUERY_LENGTH:
            return QueryExpansionResult(original=query)

        prompt = self.EXPANSION_PROMPT_TEMPLATE.format(query=query)
        try:
            loop = asyncio.get_running_loop()
            text = await loop.run_in_executor(None, self._generate, prompt)
        except Exception as e:
            logger.warning(f"Query expansion failed: {e}")
            return QueryExpansionResult(original=query)

        terms = self.parse_terms(text)
        self.cache.set(normalized, terms)
        logger.debug(f"Expanded query into {len(terms)} terms")
        return QueryExpansionResult(original=query, expanded=terms)
