"""Highlight matched query terms in display text"""

import html
import re
from typing import List

MARK_OPEN = "<mark>"
MARK_CLOSE = "</mark>"


def highlight_matches(text: str, tokens: List[str]) -> str:
    """
    Wrap case-insensitive matches of tokens in <mark> tags.

    The text is HTML-escaped; only the <mark> tags are markup. Longer tokens
    are tried first so overlapping phrases highlight whole.

    Examples:
        >>> highlight_matches("Food Bank", ["food"])
        '<mark>Food</mark> Bank'
        >>> highlight_matches("Food & <b>Bank</b>", ["food"])
        '<mark>Food</mark> &amp; &lt;b&gt;Bank&lt;/b&gt;'
    """
    if not text:
        return text
    tokens = [t for t in tokens if t]
    if not tokens:
        return html.escape(text)

    ordered = sorted(tokens, key=len, reverse=True)
    pattern = re.compile("(" + "|".join(re.escape(t) for t in ordered) + ")", re.IGNORECASE)

    # split() with one group alternates unmatched and matched pieces
    parts = pattern.split(text)
    return "".join(
        f"{MARK_OPEN}{html.escape(part)}{MARK_CLOSE}" if i % 2 else html.escape(part)
        for i, part in enumerate(parts)
    )
