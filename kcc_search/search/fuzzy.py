"""
Edit-distance fuzzy matching for "did you mean" suggestions.

Suggestions are hints only. The user's query is never rewritten silently.
"""

from typing import Iterable, List, Optional, Sequence

from ..models import Service

# Categories, local agencies, neighbourhoods and common needs
DICTIONARY = [
    # Categories
    "food", "housing", "shelter", "health", "mental", "dental", "legal",
    "employment", "crisis",
    # Local agencies & acronyms
    "kchc", "iska", "amhs", "cmha", "martha", "marthas", "partner", "mission",
    "salvation", "army", "maltby", "hospice", "providence", "hotel", "dieu",
    "interval", "house", "dawn", "access", "bus",
    # Neighbourhoods
    "downtown", "north", "end", "west", "east", "rideau", "heights",
    "kingscourt", "cataraqui", "pittsburgh", "sydenham",
    # Common needs
    "hungry", "starving", "homeless", "eviction", "rent", "subsidy", "utility",
    "hydro", "doctor", "nurse", "pill", "prescription", "addiction", "rehab",
    "detox", "suicide", "help", "emergency", "urgent",
]

MIN_SUGGEST_LENGTH = 3


def distance(a: str, b: str) -> int:
    """
    Levenshtein edit distance (insert/delete/substitute cost 1).

    Single-row dynamic programming: O(len(a) * len(b)) time, O(len(b)) space.

    Examples:
        >>> distance("kitten", "sitting")
        3
        >>> distance("food", "food")
        0
    """
    if not a:
        return len(b)
    if not b:
        return len(a)

    row = list(range(len(b) + 1))
    for i, ca in enumerate(a, start=1):
        prev_diag = row[0]
        row[0] = i
        for j, cb in enumerate(b, start=1):
            current = row[j]
            if ca == cb:
                row[j] = prev_diag
            else:
                row[j] = min(prev_diag, row[j], row[j - 1]) + 1
            prev_diag = current
    return row[-1]


def is_correctable(term: str) -> bool:
    """Short words and pure numbers are never corrected"""
    return len(term) >= MIN_SUGGEST_LENGTH and not term.isdigit()


def closest_match(term: str, dictionary: Iterable[str], max_distance: int = 2) -> Optional[str]:
    """
    Find the dictionary entry nearest to term.

    Args:
        term: Word or phrase to match (compared case-insensitively)
        dictionary: Candidate entries, iterated in order
        max_distance: Largest accepted edit distance (inclusive)

    Returns:
        Entry with the minimum distance <= max_distance (first one wins on
        ties), or None
    """
    normalized = term.lower().strip()
    best: Optional[str] = None
    best_distance = max_distance + 1

    for candidate in dictionary:
        dist = distance(normalized, candidate.lower())
        if dist < best_distance:
            best = candidate
            best_distance = dist
            if dist == 0:
                break

    return best


def _max_distance_for(word: str) -> int:
    # 1 char diff for small words
    return 1 if len(word) <= 4 else 2


def get_suggestion(query: str, dictionary: Optional[Sequence[str]] = None) -> Optional[str]:
    """
    Suggest a corrected query if any word looks like a typo.

    Args:
        query: Raw query text
        dictionary: Known terms (defaults to DICTIONARY)

    Returns:
        Corrected query (lowercase, words joined by single spaces), or None
        when nothing would change

    Examples:
        >>> get_suggestion("hungrry")
        'hungry'
        >>> get_suggestion("food bank") is None
        True
    """
    if not query or len(query.strip()) < MIN_SUGGEST_LENGTH:
        return None

    terms = list(dictionary) if dictionary is not None else DICTIONARY
    known = set(terms)
    changed = False
    suggested: List[str] = []

    for word in query.lower().split():
        if not is_correctable(word) or word in known:
            suggested.append(word)
            continue

        match = closest_match(word, terms, max_distance=_max_distance_for(word))
        if match is not None and match != word:
            changed = True
            suggested.append(match)
        else:
            suggested.append(word)

    return " ".join(suggested) if changed else None


def catalog_search_terms(services: Iterable[Service]) -> List[str]:
    """Unique names, French names and identity tags across the catalog"""
    terms = {}
    for service in services:
        terms[service.name] = None
        if service.name_fr:
            terms[service.name_fr] = None
        for tag in service.identity_tags:
            terms[tag.tag] = None
    return list(terms)
