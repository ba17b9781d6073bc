"""
Domain models for the service directory.

Service records are validated with pydantic (catalog data comes from JSON
files and Postgres rows of mixed quality). Per-query objects such as
SearchResult are plain dataclasses: they are created in the hot path and
never serialized directly.
"""

import re
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator

WEEKDAYS = ("monday", "tuesday", "wednesday", "thursday", "friday", "saturday", "sunday")

_HHMM = re.compile(r"^([01]?\d|2[0-3]):[0-5]\d$")


class VerificationLevel(str, Enum):
    """Governance verification levels"""
    L0 = "L0"  # Unverified
    L1 = "L1"  # Existence confirmed
    L2 = "L2"  # Vetted (contact made)
    L3 = "L3"  # Provider confirmed


class IntentCategory(str, Enum):
    """Fixed enumeration of service categories"""
    FOOD = "Food"
    CRISIS = "Crisis"
    HOUSING = "Housing"
    HEALTH = "Health"
    LEGAL = "Legal"
    WELLNESS = "Wellness"
    FINANCIAL = "Financial"
    EMPLOYMENT = "Employment"
    EDUCATION = "Education"
    TRANSPORT = "Transport"
    COMMUNITY = "Community"
    INDIGENOUS = "Indigenous"


class ServiceScope(str, Enum):
    """Geographic breadth of a service (segmentation, not ranking)"""
    KINGSTON = "kingston"
    ONTARIO = "ontario"
    CANADA = "canada"


class Coordinates(BaseModel):
    lat: float
    lng: float


class DayHours(BaseModel):
    """Opening hours for one weekday. Both ends are required."""
    open: str
    close: str

    @field_validator("open", "close")
    @classmethod
    def _check_hhmm(cls, value: str) -> str:
        if not _HHMM.match(value.strip()):
            raise ValueError(f"Expected HH:MM, got {value!r}")
        return value.strip()


# weekday -> structured hours, or a free-text note ("By appointment")
ServiceHours = Dict[str, Union[DayHours, str]]


class IdentityTag(BaseModel):
    tag: str
    evidence_url: str = ""


class Provenance(BaseModel):
    verified_by: str = ""
    verified_at: Optional[str] = None
    evidence_url: str = ""
    method: str = ""


class Service(BaseModel):
    """A directory entry. Read-only to the search core."""
    model_config = ConfigDict(use_enum_values=False, extra="ignore")

    id: str
    name: str
    name_fr: Optional[str] = None
    description: str = ""
    description_fr: Optional[str] = None
    address: Optional[str] = None
    address_fr: Optional[str] = None

    url: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None

    intent_category: IntentCategory
    verification_level: VerificationLevel = VerificationLevel.L1
    provenance: Optional[Provenance] = None
    last_verified: Optional[str] = None

    identity_tags: List[IdentityTag] = Field(default_factory=list)
    synthetic_queries: List[str] = Field(default_factory=list)
    synthetic_queries_fr: List[str] = Field(default_factory=list)
    eligibility_notes: Optional[str] = None

    hours: Optional[ServiceHours] = None
    coordinates: Optional[Coordinates] = None
    scope: ServiceScope = ServiceScope.KINGSTON
    embedding: Optional[List[float]] = None

    @field_validator("hours")
    @classmethod
    def _check_weekdays(cls, value: Optional[ServiceHours]) -> Optional[ServiceHours]:
        if value is None:
            return value
        unknown = [day for day in value if day not in WEEKDAYS]
        if unknown:
            raise ValueError(f"Unknown weekday(s) in hours: {unknown}")
        return value

    @property
    def verified_at(self) -> Optional[str]:
        if self.provenance and self.provenance.verified_at:
            return self.provenance.verified_at
        return self.last_verified

    @property
    def is_crisis(self) -> bool:
        return self.intent_category == IntentCategory.CRISIS


@dataclass
class UserContext:
    """Client-local personalization state (opt-in)"""
    age_group: Optional[str] = None  # youth | adult | senior
    identities: List[str] = field(default_factory=list)
    has_opted_in: bool = False


@dataclass
class SavedSearches:
    """Most-recent-first list of saved query strings (unique, capped)"""
    queries: List[str] = field(default_factory=list)
    max_size: int = 5

    def save(self, query: str) -> None:
        if not query:
            return
        remaining = [q for q in self.queries if q != query]
        self.queries = [query, *remaining][: self.max_size]

    def remove(self, query: str) -> None:
        self.queries = [q for q in self.queries if q != query]

    def clear(self) -> None:
        self.queries = []


@dataclass
class SearchOptions:
    category: Optional[str] = None
    location: Optional[Coordinates] = None
    vector_override: Optional[List[float]] = None
    open_now: bool = False
    scope: str = "all"  # all | local | provincial
    limit: Optional[int] = None
    user_context: Optional[UserContext] = None
    use_ai_expansion: bool = False
    semantic_rescue: bool = False


@dataclass
class SearchResult:
    service: Service
    score: float
    match_reasons: List[str] = field(default_factory=list)
    distance_km: Optional[float] = None
    eligibility: str = "unknown"
    crisis: bool = False

    def copy(self) -> "SearchResult":
        """Shallow copy with an independent reasons list"""
        return SearchResult(
            service=self.service,
            score=self.score,
            match_reasons=list(self.match_reasons),
            distance_km=self.distance_km,
            eligibility=self.eligibility,
            crisis=self.crisis,
        )
