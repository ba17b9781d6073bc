"""
Eligibility hints from free-text eligibility notes.

Parsing is heuristic: "Ages 18-29", "youth", "seniors", identity keywords.
The result is advisory ("You likely qualify"), never a gate on results.
"""

import re
from dataclasses import dataclass, field
from typing import List, Optional

from .models import Service, UserContext

ELIGIBLE = "eligible"
INELIGIBLE = "ineligible"
UNKNOWN = "unknown"

AGE_MAP = {
    "youth": (0, 29),
    "adult": (18, 64),
    "senior": (55, 120),
}

_AGE_RANGE = re.compile(r"Ages?\s*(\d+)(?:\s*[-–]\s*(\d+))?", re.IGNORECASE)
_YOUTH = re.compile(r"youth|jeune", re.IGNORECASE)
_SENIOR = re.compile(r"senior|aîné|elder", re.IGNORECASE)

# Later patterns win when several match
IDENTITY_PATTERNS = [
    (re.compile(r"indigenous|first nations|metis|inuit", re.IGNORECASE), "indigenous"),
    (re.compile(r"newcomer|immigrant|refugee", re.IGNORECASE), "newcomer"),
    (re.compile(r"2slgbtqi\+|lgbtq|trans|queer", re.IGNORECASE), "2slgbtqi+"),
    (re.compile(r"veteran|military", re.IGNORECASE), "veteran"),
    (re.compile(r"disability|disabled", re.IGNORECASE), "disability"),
]


@dataclass
class EligibilityCriteria:
    min_age: Optional[int] = None
    max_age: Optional[int] = None
    required_identities: List[str] = field(default_factory=list)


def parse_eligibility(notes: str) -> EligibilityCriteria:
    """
    Extract age bounds and required identities from eligibility notes.

    Examples:
        >>> parse_eligibility("Ages 16-24").max_age
        24
        >>> parse_eligibility("For seniors").min_age
        55
    """
    criteria = EligibilityCriteria()
    if not notes:
        return criteria

    match = _AGE_RANGE.search(notes)
    if match:
        criteria.min_age = int(match.group(1))
        if match.group(2):
            criteria.max_age = int(match.group(2))
    else:
        if _YOUTH.search(notes):
            criteria.max_age = 29
        if _SENIOR.search(notes):
            criteria.min_age = 55

    for pattern, identity in IDENTITY_PATTERNS:
        if pattern.search(notes):
            criteria.required_identities = [identity]

    return criteria


def check_eligibility(service: Service, context: Optional[UserContext]) -> str:
    """Return "eligible", "ineligible" or "unknown" for one service"""
    if context is None or not context.has_opted_in or not service.eligibility_notes:
        return UNKNOWN

    criteria = parse_eligibility(service.eligibility_notes)
    user_age = AGE_MAP.get(context.age_group) if context.age_group else None

    if user_age is not None:
        user_min, user_max = user_age
        if criteria.min_age and user_max < criteria.min_age:
            return INELIGIBLE
        if criteria.max_age and user_min > criteria.max_age:
            return INELIGIBLE

    if criteria.required_identities:
        if not any(tag in context.identities for tag in criteria.required_identities):
            return INELIGIBLE

    return ELIGIBLE
