"""In-memory catalog, fake embedding providers and the shared test catalog"""

from typing import Dict, List, Optional

from kcc_search.ai.base import BaseEmbeddingProvider
from kcc_search.catalog import CatalogLoader
from kcc_search.exceptions import CatalogUnavailableError
from kcc_search.models import Service

MONDAY_TO_FRIDAY_9_TO_5 = {
    day: {"open": "09:00", "close": "17:00"}
    for day in ("monday", "tuesday", "wednesday", "thursday", "friday")
}

DOWNTOWN = {"lat": 44.2312, "lng": -76.4860}


def build_service(**overrides) -> Service:
    """Service with sensible defaults; keyword fields default to empty"""
    record = {
        "id": "svc",
        "name": "Generic Service",
        "description": "",
        "intent_category": "Community",
        "verification_level": "L1",
    }
    record.update(overrides)
    return Service.model_validate(record)


SERVICE_RECORDS = [
    {
        "id": "food-bank",
        "name": "Community Food Bank",
        "description": "Free groceries and emergency food hampers.",
        "intent_category": "Food",
        "verification_level": "L3",
        "synthetic_queries": ["im hungry", "free food"],
        "hours": MONDAY_TO_FRIDAY_9_TO_5,
        "coordinates": DOWNTOWN,
        "embedding": [1.0, 0.0, 0.0],
    },
    {
        "id": "soup-kitchen",
        "name": "Downtown Soup Kitchen",
        "description": "Hot meals served daily.",
        "intent_category": "Food",
        "verification_level": "L1",
        "synthetic_queries": ["hot meal"],
        "coordinates": {"lat": 44.2600, "lng": -76.5500},
        "embedding": [0.0, 1.0, 0.0],
    },
    {
        "id": "crisis-line",
        "name": "Kingston Crisis Line",
        "description": "24/7 mental health crisis support by phone.",
        "intent_category": "Crisis",
        "verification_level": "L2",
        "synthetic_queries": ["suicidal thoughts", "i want to die"],
        "embedding": [0.0, 0.0, 1.0],
    },
    {
        "id": "shelter",
        "name": "In From the Cold Shelter",
        "description": "Emergency overnight shelter beds.",
        "intent_category": "Housing",
        "verification_level": "L2",
        "synthetic_queries": ["place to sleep tonight"],
        "eligibility_notes": "Ages 18-64",
        "coordinates": {"lat": 44.2450, "lng": -76.4890},
    },
    {
        "id": "legal-aid",
        "name": "Legal Aid Ontario",
        "description": "Free legal advice for low income residents.",
        "intent_category": "Legal",
        "verification_level": "L1",
        "scope": "ontario",
    },
    {
        "id": "indigenous-centre",
        "name": "Indigenous Friendship Centre",
        "description": "Cultural programs and food support for Indigenous families.",
        "intent_category": "Indigenous",
        "verification_level": "L2",
        "identity_tags": [{"tag": "Indigenous", "evidence_url": "https://example.org"}],
        "eligibility_notes": "For Indigenous, First Nations, Metis and Inuit families",
    },
    {
        "id": "unverified-pantry",
        "name": "Corner Food Pantry",
        "description": "Food pantry.",
        "intent_category": "Food",
        "verification_level": "L0",
    },
]


class StaticCatalog(CatalogLoader):
    """In-memory catalog; raises CatalogUnavailableError when `fail` is set"""

    def __init__(self, services: List[Service], fail: bool = False):
        self.services = services
        self.fail = fail
        self.calls = 0

    async def load_services(self) -> List[Service]:
        self.calls += 1
        if self.fail:
            raise CatalogUnavailableError("catalog offline")
        return self.services


class FakeEmbeddingProvider(BaseEmbeddingProvider):
    """Returns canned vectors per text; optionally fails to load or embed"""

    def __init__(
        self,
        vectors: Optional[Dict[str, List[float]]] = None,
        default: Optional[List[float]] = None,
        fail_load: bool = False,
        fail_embed: bool = False,
    ):
        self.vectors = vectors or {}
        self.default = default or [0.0, 0.0, 1.0]
        self.fail_load = fail_load
        self.fail_embed = fail_embed
        self.loaded = False
        self.embed_calls: List[str] = []

    def load(self) -> None:
        if self.fail_load:
            raise RuntimeError("model download failed")
        self.loaded = True

    async def embed(self, text: str) -> List[float]:
        self.embed_calls.append(text)
        if self.fail_embed:
            raise RuntimeError("embedding backend crashed")
        return self.vectors.get(text, self.default)

    def get_model_info(self) -> dict:
        return {"name": "fake", "type": "test", "provider": "tests", "loaded": self.loaded}

    def close(self):
        self.loaded = False
