"""
Crisis detection and safety boosting.

The boost is a hard partition (crisis services first, then everything else),
not a score bonus: no weight tuning can push a crisis line below other results.
"""

import logging
import re
from typing import List, Optional

from ..models import IntentCategory, SearchResult

logger = logging.getLogger(__name__)

CRISIS_REASON = "Crisis Detected (Safety Boost)"

# Single words match whole words only ("kill" but not "skills");
# phrases match as substrings of the lowercased query
CRISIS_KEYWORDS = [
    'suicide', 'suicidal', 'kill', 'die', 'hurt', 'kill myself', 'want to die', 'end my life',
    'overdose', 'hurt myself', 'self harm', 'self-harm', 'crisis',
    'emergency', '911', 'abuse', 'violence', 'assault', 'rape',
    'domestic violence', 'beat me', 'scared at home',
    'help me die', 'hanging myself', 'cutting myself',
]

_CRISIS_PHRASES = [k for k in CRISIS_KEYWORDS if " " in k]
_CRISIS_WORDS = re.compile(
    r"\b(?:" + "|".join(re.escape(k) for k in CRISIS_KEYWORDS if " " not in k) + r")\b"
)


def detect_crisis(text: str, category: Optional[str] = None) -> bool:
    """
    Flag a query as safety-critical.

    Args:
        text: Raw query text
        category: Active category filter, if any

    Returns:
        True if the text contains a crisis keyword or the category filter is
        "Crisis"

    Examples:
        >>> detect_crisis("I want to kill myself")
        True
        >>> detect_crisis("I need food")
        False
    """
    if category == IntentCategory.CRISIS.value:
        return True
    if not text:
        return False
    lowered = text.lower()
    if _CRISIS_WORDS.search(lowered):
        return True
    return any(phrase in lowered for phrase in _CRISIS_PHRASES)


def boost_crisis_results(results: List[SearchResult], query_is_crisis: bool) -> List[SearchResult]:
    """
    Move crisis services above all other results.

    Relative order inside each partition is preserved. Scores are left
    untouched. The reason tag is appended once per result.
    """
    if not query_is_crisis:
        return results

    crisis = [r for r in results if r.service.is_crisis]
    if not crisis:
        return results
    others = [r for r in results if not r.service.is_crisis]

    for result in crisis:
        result.crisis = True
        if CRISIS_REASON not in result.match_reasons:
            result.match_reasons.append(CRISIS_REASON)

    logger.debug(f"Crisis boost: {len(crisis)} crisis services moved above {len(others)} others")
    return crisis + others
