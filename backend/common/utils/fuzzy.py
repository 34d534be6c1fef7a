"""
Fuzzy text matching for city and address names.

Levenshtein-based similarity so that small spelling differences
("Kathmandu" / "Kathmndu", "New York" / "NewYork") still match.
"""

import re

DEFAULT_THRESHOLD = 0.7
CITY_THRESHOLD = 0.6

_PUNCTUATION_RE = re.compile(r"[^\w\s]")
_WHITESPACE_RE = re.compile(r"\s+")


def normalize(text: str) -> str:
    """Lowercase, trim, drop punctuation and collapse whitespace runs."""
    text = _PUNCTUATION_RE.sub("", (text or "").lower())
    return _WHITESPACE_RE.sub(" ", text).strip()


def edit_distance(a: str, b: str) -> int:
    """Levenshtein distance between the normalized forms of ``a`` and ``b``."""
    s1 = normalize(a)
    s2 = normalize(b)
    if len(s1) < len(s2):
        s1, s2 = s2, s1

    previous = list(range(len(s2) + 1))
    for i, c1 in enumerate(s1, start=1):
        current = [i]
        for j, c2 in enumerate(s2, start=1):
            cost = 0 if c1 == c2 else 1
            current.append(min(
                previous[j] + 1,         # deletion
                current[j - 1] + 1,      # insertion
                previous[j - 1] + cost,  # substitution
            ))
        previous = current
    return previous[-1]


def similarity(a: str, b: str) -> float:
    """Return a score in [0, 1]; 1.0 means identical after normalization."""
    max_len = max(len(normalize(a)), len(normalize(b)))
    if max_len == 0:
        return 1.0
    return max(0.0, 1.0 - edit_distance(a, b) / max_len)


def fuzzy_equals(a: str, b: str, threshold: float = DEFAULT_THRESHOLD) -> bool:
    return similarity(a, b) >= threshold


def match_city(city_a: str, city_b: str) -> bool:
    """City names tolerate more spelling variance than general text."""
    return fuzzy_equals(city_a, city_b, CITY_THRESHOLD)
