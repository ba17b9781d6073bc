"""
Keyword relevance scoring.

Each query term is matched (substring, after normalization) against the
service's text fields. Every matching term contributes independently:

    name            30 per term (English or French name)
    synthetic query 30 per term matched in the first matching phrase
    identity tag    20 per (tag, term) pair
    category        15 per term
    description     10 per term (English or French)
    eligibility      5 per term

The sum is then multiplied by:
    identity boost      +10% per tag shared with the user context (max +30%)
    verification level  L3 x1.2, L2 x1.1, otherwise x1.0

Freshness is exposed for display (FreshnessBadge) but is NOT a ranking input.
"""

from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Iterable, List, Optional, Set, Tuple

from ..models import Service, UserContext, VerificationLevel
from .tokenizer import normalize

SYNONYM_REASON = "Synonym Match"


@dataclass(frozen=True)
class ScoringWeights:
    vector: float = 100.0  # phase 2 blend weight for cosine similarity
    name: float = 30.0
    synthetic_query: float = 30.0
    identity_tag: float = 20.0
    category: float = 15.0
    description: float = 10.0
    eligibility: float = 5.0
    verification_l3: float = 1.2
    verification_l2: float = 1.1
    verification_l1: float = 1.0
    identity_boost_per_tag: float = 0.1
    identity_boost_cap: float = 0.3


DEFAULT_WEIGHTS = ScoringWeights()

# Freshness multipliers (display only)
FRESHNESS_RECENT = 1.1   # verified <= 30 days ago
FRESHNESS_NORMAL = 1.0   # 31-90 days
FRESHNESS_STALE = 0.9    # > 90 days or unknown


def verification_multiplier(level: VerificationLevel, weights: ScoringWeights = DEFAULT_WEIGHTS) -> float:
    """Higher verification = higher trust = better ranking"""
    if level == VerificationLevel.L3:
        return weights.verification_l3
    if level == VerificationLevel.L2:
        return weights.verification_l2
    return weights.verification_l1


def _parse_timestamp(value: Optional[str]) -> Optional[datetime]:
    if not value:
        return None
    try:
        parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def freshness_multiplier(verified_at: Optional[str], now: Optional[datetime] = None) -> float:
    """
    Multiplier describing how recently a service was verified.

    Used by freshness_status for display. Missing or unparseable dates count
    as stale.
    """
    verified = _parse_timestamp(verified_at)
    if verified is None:
        return FRESHNESS_STALE

    now = now or datetime.now(timezone.utc)
    days_since = (now - verified).days
    if days_since <= 30:
        return FRESHNESS_RECENT
    if days_since <= 90:
        return FRESHNESS_NORMAL
    return FRESHNESS_STALE


def freshness_status(service: Service, now: Optional[datetime] = None) -> str:
    """'recent' | 'normal' | 'stale'"""
    multiplier = freshness_multiplier(service.verified_at, now)
    if multiplier > 1.0:
        return "recent"
    if multiplier < 1.0:
        return "stale"
    return "normal"


def _match_synthetic(phrases: List[str], terms: List[str], matched: Set[str]) -> Tuple[int, Optional[str]]:
    """Term matches inside the first phrase that matches anything"""
    for phrase in phrases:
        phrase_text = normalize(phrase)
        hits = [t for t in terms if t in phrase_text]
        if hits:
            matched.update(hits)
            return len(hits), phrase
    return 0, None


def score_service(
    service: Service,
    terms: List[str],
    original_terms: Optional[Iterable[str]] = None,
    user_context: Optional[UserContext] = None,
    weights: ScoringWeights = DEFAULT_WEIGHTS,
) -> Tuple[float, List[str]]:
    """
    Compute the keyword score of one service.

    Args:
        service: Candidate service
        terms: Expanded query terms (normalized)
        original_terms: Terms typed by the user, before synonym expansion.
            Used to tag results found only through synonyms.
        user_context: Opt-in personalization (identity boost)
        weights: Scoring weights

    Returns:
        (score, reasons). Score 0 means "not relevant".

    Example:
        >>> score, reasons = score_service(food_bank, ["hungry", "food"])
        >>> score > 0
        True
    """
    score = 0.0
    reasons: List[str] = []
    matched: Set[str] = set()

    if not terms:
        return score, reasons

    # 1. Synthetic queries (curated phrasing users are expected to type)
    hits, phrase = _match_synthetic(service.synthetic_queries, terms, matched)
    if hits:
        points = weights.synthetic_query * hits
        score += points
        reasons.append(f'Matched intent: "{phrase}" (+{points:g})')

    hits, phrase = _match_synthetic(service.synthetic_queries_fr, terms, matched)
    if hits:
        points = weights.synthetic_query * hits
        score += points
        reasons.append(f'Matched intent (FR): "{phrase}" (+{points:g})')

    # 2. Name (English, falling back to French per term)
    name_text = normalize(service.name)
    name_fr_text = normalize(service.name_fr or "")
    name_points = 0.0
    for term in terms:
        if term in name_text or (name_fr_text and term in name_fr_text):
            name_points += weights.name
            matched.add(term)
    if name_points:
        score += name_points
        reasons.append(f'Matched name: "{service.name}" (+{name_points:g})')

    # 3. Identity tags
    for identity in service.identity_tags:
        tag_text = normalize(identity.tag)
        for term in terms:
            if term in tag_text:
                score += weights.identity_tag
                matched.add(term)
                reasons.append(f'Matched tag: "{identity.tag}" (+{weights.identity_tag:g})')

    # 4. Category
    category_text = service.intent_category.value.lower()
    category_points = 0.0
    for term in terms:
        if term in category_text:
            category_points += weights.category
            matched.add(term)
    if category_points:
        score += category_points
        reasons.append(f"Matched category: {service.intent_category.value} (+{category_points:g})")

    # 5. Description (catch-all)
    desc_text = normalize(service.description)
    desc_fr_text = normalize(service.description_fr or "")
    desc_points = 0.0
    for term in terms:
        if term in desc_text or (desc_fr_text and term in desc_fr_text):
            desc_points += weights.description
            matched.add(term)
    if desc_points:
        score += desc_points
        reasons.append(f"Matched description (+{desc_points:g})")

    # 6. Eligibility notes
    if service.eligibility_notes:
        notes_text = normalize(service.eligibility_notes)
        elig_points = 0.0
        for term in terms:
            if term in notes_text:
                elig_points += weights.eligibility
                matched.add(term)
        if elig_points:
            score += elig_points
            reasons.append(f"Matched eligibility (+{elig_points:g})")

    if score == 0:
        return 0.0, []

    if original_terms is not None:
        typed = set(original_terms)
        if matched and not matched <= typed:
            reasons.append(SYNONYM_REASON)

    # 7. Identity boost (personalization)
    if user_context and user_context.identities and service.identity_tags:
        identities = {i.lower() for i in user_context.identities}
        shared = [t for t in service.identity_tags if t.tag.lower() in identities]
        if shared:
            boost = min(weights.identity_boost_cap, len(shared) * weights.identity_boost_per_tag)
            score *= 1 + boost
            reasons.append(f"Identity Boost (+{round(boost * 100)}%)")

    # 8. Verification level
    multiplier = verification_multiplier(service.verification_level, weights)
    if multiplier != 1.0:
        score *= multiplier
        percent = round((multiplier - 1) * 100)
        if percent > 0:
            reasons.append(f"Verification Boost (+{percent}%)")

    return score, reasons
