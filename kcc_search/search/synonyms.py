"""
Synonym expansion for social-services queries.

Expansion follows the table transitively ("housing" -> "shelter" -> "bed"),
so the expanded list is closed: expanding it again adds nothing.

Lookup order per token:
1. Exact table key ("food")
2. Snowball stem of the token matched against stemmed keys ("meals" -> "meal")
Unknown tokens pass through unchanged.
"""

from functools import lru_cache
from typing import Dict, Iterable, List, Tuple

from nltk.stem.snowball import SnowballStemmer

_stemmer = SnowballStemmer('english')

SYNONYMS: Dict[str, List[str]] = {
    # Basic needs - food
    'food': ['hungry', 'meal', 'groceries', 'starving', 'eat', 'pantry', 'hamper', 'nourriture', 'manger'],
    'hungry': ['food', 'meal', 'groceries', 'starving', 'faim'],
    'groceries': ['food', 'pantry', 'supermarket', 'market', 'épicerie'],
    'meal': ['dinner', 'lunch', 'breakfast', 'supper', 'repas'],

    # Basic needs - housing
    'housing': ['shelter', 'homeless', 'apartment', 'rent', 'eviction', 'logement', 'abri', 'itinerance'],
    'shelter': ['bed', 'sleep', 'homeless', 'emergency', 'refuge'],
    'homeless': ['shelter', 'street', 'encampment', 'couch surfing', 'sans-abri'],
    'rent': ['housing', 'landlord', 'tenant', 'lease', 'eviction', 'loyer'],

    # Health
    'health': ['doctor', 'nurse', 'hospital', 'clinic', 'medical', 'santé', 'médecin'],
    'doctor': ['physician', 'gp', 'practitioner', 'docteur'],
    'dental': ['teeth', 'tooth', 'dentist', 'cavity', 'dentaire'],
    'therapy': ['counseling', 'psychologist', 'psychiatrist', 'mental health', 'thérapie'],

    # Crisis
    'crisis': ['emergency', 'danger', 'urgent', 'suicide', '911', 'crise', 'urgence'],
    'suicide': ['kill', 'die', 'end life', 'hurt', 'suicidio'],
    'abuse': ['violence', 'assault', 'harm', 'domestic', 'abus'],

    # Legal & employment
    'legal': ['lawyer', 'law', 'court', 'justice', 'rights', 'avocat', 'juridique'],
    'job': ['work', 'employment', 'career', 'hire', 'wage', 'travail', 'emploi'],
    'money': ['cash', 'finance', 'poverty', 'low income', 'welfare', 'argent', 'revenu'],

    # Identities
    'youth': ['teen', 'teenager', 'young', 'student', 'child', 'jeune', 'ado'],
    'senior': ['elderly', 'aged', 'retirement', '65+', 'aîné'],
    'indigenous': ['aboriginal', 'first nations', 'metis', 'inuit', 'native', 'autochtone'],
    'lgbt': ['gay', 'queer', 'trans', 'transgender', '2slgbtqi+', 'pride'],
}


def stem(word: str) -> str:
    """Snowball stem of a lowercase word"""
    return _stemmer.stem(word)


@lru_cache(maxsize=1)
def _stem_index() -> Dict[str, str]:
    """stem -> table key (first key wins)"""
    index: Dict[str, str] = {}
    for key in SYNONYMS:
        index.setdefault(stem(key), key)
    return index


@lru_cache(maxsize=None)
def _closure(key: str) -> Tuple[str, ...]:
    """All terms reachable from a table key, in breadth-first order"""
    seen = {key}
    ordered: List[str] = []
    queue = list(SYNONYMS.get(key, []))
    while queue:
        term = queue.pop(0)
        if term in seen:
            continue
        seen.add(term)
        ordered.append(term)
        queue.extend(SYNONYMS.get(term, []))
    return tuple(ordered)


def _table_key(token: str):
    if token in SYNONYMS:
        return token
    return _stem_index().get(stem(token))


def expand_query(tokens: Iterable[str]) -> List[str]:
    """
    Expand query tokens with related terms.

    Args:
        tokens: Normalized query tokens (duplicates allowed)

    Returns:
        Unique terms, original tokens first (in input order), then related
        terms. Idempotent: expand_query(expand_query(x)) == expand_query(x)

    Examples:
        >>> expand_query(["food", "food"])[:3]
        ['food', 'hungry', 'meal']
        >>> expand_query(["xyz"])
        ['xyz']
    """
    originals = [t.lower() for t in tokens]
    expanded: Dict[str, None] = dict.fromkeys(originals)

    for token in originals:
        key = _table_key(token)
        if key is None:
            continue
        if key not in expanded:
            expanded[key] = None
        for term in _closure(key):
            if term not in expanded:
                expanded[term] = None

    return list(expanded)
