"""
Keyword extraction. Pure text to token normalization used by the auto-linker
and the external context search.
"""

import re

STOPWORDS = frozenset({
    "the", "a", "an", "is", "are", "was", "were", "be", "been", "being",
    "have", "has", "had", "do", "does", "did", "will", "would", "could",
    "should", "may", "might", "must", "shall", "can", "need", "dare",
    "to", "of", "in", "for", "on", "with", "at", "by", "from", "as",
    "into", "through", "during", "before", "after", "above", "below",
    "between", "under", "again", "further", "then", "once", "and", "but",
    "or", "nor", "so", "yet", "both", "either", "neither", "not", "only",
    "own", "same", "than", "too", "very", "just", "also", "now", "here",
    "there", "when", "where", "why", "how", "all", "each", "every", "any",
    "few", "more", "most", "other", "some", "such", "no", "none", "this",
    "that", "these", "those", "i", "you", "he", "she", "it", "we", "they",
    "what", "which", "who", "whom", "am", "about", "up",
})

MIN_KEYWORD_LENGTH = 3

# Anything that is not a letter or digit separates tokens (underscore included).
_SPLIT = re.compile(r"[\W_]+")


def normalize(text: str) -> list[str]:
    """Lowercased keyword tokens of `text`, in order, duplicates kept."""
    if not text:
        return []
    return [
        word for word in _SPLIT.split(text.lower())
        if len(word) >= MIN_KEYWORD_LENGTH and word not in STOPWORDS
    ]


def keyword_set(text: str) -> frozenset[str]:
    return frozenset(normalize(text))


def shared_count(a, b) -> int:
    """Number of distinct keywords of `a` that also occur in `b`."""
    return len(set(a) & set(b))
