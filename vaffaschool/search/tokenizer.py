"""Query tokenization for school search.

Short and very common Italian words (articles, prepositions, and words
like "scuola" or "istituto" that appear in most school names) make poor
substring needles, so they are dropped here. The fuzzy score is computed on
the whole query and makes up for what gets filtered out.
"""

import re
from typing import Optional

from ..exceptions import EmptySearchQuery

MIN_TOKEN_LENGTH = 5

# Removed from the query before splitting
NOISE_PHRASE = re.compile(r"scuola primaria", re.IGNORECASE)
PUNCTUATION = re.compile(r"[,;.]")

STOP_WORDS = frozenset({
    "di", "del", "dei", "dello", "della",
    "a", "al", "allo", "alla", "alle",
    "scuola", "istituto", "comprensivo", "primaria", "plesso",
    "san", "santo", "santa",
    "materna", "infanzia",
})


def clean_query(query: Optional[str]) -> str:
    """Normalize a raw query string.

    Drops "scuola primaria", turns punctuation into spaces and collapses
    whitespace.

    Raises:
        EmptySearchQuery: if the query is empty or blank
    """
    if not query or not query.strip():
        raise EmptySearchQuery(query)

    text = NOISE_PHRASE.sub("", query)
    text = PUNCTUATION.sub(" ", text)
    return " ".join(text.split())


def is_search_token(token: str, min_length: int = MIN_TOKEN_LENGTH) -> bool:
    """Whether a word is worth using as a substring needle."""
    if token.lower() in STOP_WORDS:
        return False
    return len(token) >= min_length


def tokenize_query(query: Optional[str], min_length: int = MIN_TOKEN_LENGTH) -> list[str]:
    """Split a query into search tokens, preserving order.

    Example:
        >>> tokenize_query("Istituto Comprensivo, Pontassieve")
        ['Pontassieve']
        >>> tokenize_query("la via")
        []
    """
    cleaned = clean_query(query)
    if not cleaned:
        return []
    return [token for token in cleaned.split(" ") if is_search_token(token, min_length)]
