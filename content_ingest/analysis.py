"""Heuristic text analysis: language detection and key-term extraction.

Both results end up in document metadata (language, suggested tags).
"""
from __future__ import annotations

import re
from collections import Counter

ITALIAN_FUNCTION_WORDS = ("della", "sono", "questo", "che", "per", "con", "una")

# More than this many matches classifies a text as Italian
ITALIAN_MATCH_THRESHOLD = 3

KEY_TERM_STOPWORDS = frozenset(
    ("there", "their", "would", "about", "which", "were", "have", "these", "from")
)

KEY_TERM_MIN_LENGTH = 5
MAX_KEY_TERMS = 10

_ITALIAN_RE = re.compile(
    r"\b(?:" + "|".join(ITALIAN_FUNCTION_WORDS) + r")\b", re.IGNORECASE
)
_PUNCT_RE = re.compile(r"[^\w\s]")


def detect_language(text: str) -> str:
    """Classify *text* as ``"italian"`` or ``"english"``.

    Counts whole-word, case-insensitive occurrences of common Italian
    function words; "perché" does not count as "per".
    """
    matches = len(_ITALIAN_RE.findall(text))
    return "italian" if matches > ITALIAN_MATCH_THRESHOLD else "english"


def extract_key_terms(text: str) -> list[str]:
    """Return up to ten frequent terms, most frequent first.

    Ties keep the order in which the terms first appear in *text*.
    """
    words = [
        w for w in _PUNCT_RE.sub("", text.lower()).split()
        if len(w) >= KEY_TERM_MIN_LENGTH
    ]
    frequency = Counter(words)
    ranked = [
        (word, count) for word, count in frequency.items()
        if count > 1 and word not in KEY_TERM_STOPWORDS
    ]
    # sorted() is stable and Counter keeps first-insertion order
    ranked.sort(key=lambda item: item[1], reverse=True)
    return [word for word, _ in ranked[:MAX_KEY_TERMS]]
