"""
Query normalization and tokenization.

Tokenization pipeline:
1. Lowercase conversion
2. Strip punctuation (Unicode-aware, so "santé" and "aîné" survive)
3. Split on whitespace
4. (tokenize only) Drop English/French stopwords and tokens of <= 2 chars

iter_tokens is the raw lazy stream; tokenize produces the scoring terms.
"""

import re
from typing import Iterator, List

# English + French stopwords, plus filler words common in help-seeking queries
# ("i need help", "where can i get")
STOPWORDS = frozenset([
    # English
    'a', 'an', 'the', 'in', 'on', 'at', 'for', 'to', 'of', 'and', 'is', 'are',
    'i', 'need', 'help', 'want', 'where', 'can', 'get',
    # French
    'le', 'la', 'les', 'un', 'une', 'de', 'des', 'en', 'et', 'est', 'il', 'elle',
    'je', 'tu', 'nous', 'vous', 'ils', 'pour', 'sur', 'dans', 'avec', 'qui',
    'que', 'si', 'ou',
])

MIN_TOKEN_LENGTH = 3

_PUNCTUATION = re.compile(r"[^\w\s]")


def normalize(text: str) -> str:
    """
    Lowercase and remove punctuation.

    Examples:
        >>> normalize("Queen's Food Bank!")
        'queens food bank'
    """
    if not text:
        return ""
    return _PUNCTUATION.sub("", text.lower())


def iter_tokens(text: str) -> Iterator[str]:
    """
    Lazily yield lowercase, punctuation-stripped, non-empty tokens.

    Pure and restartable: calling again with the same text yields the same
    sequence.

    Examples:
        >>> list(iter_tokens("Food, bank?"))
        ['food', 'bank']
        >>> list(iter_tokens("   "))
        []
    """
    for match in re.finditer(r"\S+", normalize(text)):
        yield match.group(0)


def tokenize(text: str) -> List[str]:
    """
    Tokenize a query into scoring terms.

    Args:
        text: Raw query text

    Returns:
        List of tokens without stopwords or very short words

    Examples:
        >>> tokenize("I am hungry")
        ['hungry']
        >>> tokenize("Où est la banque alimentaire?")
        ['banque', 'alimentaire']
    """
    return [
        t for t in iter_tokens(text)
        if len(t) >= MIN_TOKEN_LENGTH and t not in STOPWORDS
    ]
