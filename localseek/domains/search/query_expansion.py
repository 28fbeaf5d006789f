"""
Query Expansion - Lexical query variants.

Produces the original query, its lowercase form and a keyword-only form with
English and Turkish stop words removed. Each variant is searched separately
in the full-text channel.
"""

from __future__ import annotations

__all__ = ["STOP_WORDS", "expand_query"]

STOP_WORDS: frozenset[str] = frozenset(
    {
        # English
        "a", "an", "the", "is", "are", "was", "were", "be", "been", "being",
        "have", "has", "had", "do", "does", "did", "will", "would", "could",
        "should", "may", "might", "shall", "can", "to", "of", "in", "for", "on",
        "with", "at", "by", "from", "as", "into", "about", "between", "through",
        "during", "and", "but", "or", "nor", "not", "so", "yet", "it", "its",
        "this", "that", "these", "those", "i", "me", "my", "we", "our", "you",
        "your", "he", "she", "they", "them", "their", "what", "which", "who",
        "whom", "how", "when", "where", "why",
        # Turkish
        "bir", "ve", "ile", "de", "da", "bu", "o", "ne", "nasıl", "nerede",
        "neden", "için", "gibi", "daha", "en", "çok", "var",
    }
)


def expand_query(query: str) -> list[str]:
    """
    Build ordered, distinct query variants.

    Example:
        >>> expand_query("How to implement Search")
        ['How to implement Search', 'how to implement search', 'implement search']
    """
    variants = [query]

    lower = query.lower()
    if lower != query:
        variants.append(lower)

    tokens = lower.split()
    keywords = [token for token in tokens if token not in STOP_WORDS]
    if 2 <= len(keywords) < len(tokens):
        filtered = " ".join(keywords)
        if filtered not in variants:
            variants.append(filtered)

    return variants
