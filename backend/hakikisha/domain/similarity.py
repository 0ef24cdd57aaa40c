"""Text similarity between claims.

Two measures, both Jaccard indices in [0, 1]:

* word-set similarity catches reworded claims with the same vocabulary
* character-trigram similarity catches typos and inflections

``similarity`` takes the larger of the two. ``similarity_hash`` is a
deterministic key for exact-duplicate lookups: identical word sets always
produce the same hash, regardless of order, case or punctuation.
"""

import hashlib
import re
from typing import Set

_PUNCT = re.compile(r"[^\w\s]", re.UNICODE)
_SPACES = re.compile(r"\s+")


def normalize_text(text: str) -> str:
    """Lower-case, strip punctuation, collapse whitespace.

    >>> normalize_text("  Vaccines   cause INFERTILITY!! ")
    'vaccines cause infertility'
    """
    text = _PUNCT.sub(" ", (text or "").lower())
    return _SPACES.sub(" ", text).strip()


def tokenize(text: str) -> Set[str]:
    return set(normalize_text(text).split())


def _jaccard(a: Set, b: Set) -> float:
    if not a and not b:
        return 1.0
    if not a or not b:
        return 0.0
    return len(a & b) / len(a | b)


def word_set_similarity(a: str, b: str) -> float:
    return _jaccard(tokenize(a), tokenize(b))


def _trigrams(text: str) -> Set[str]:
    norm = normalize_text(text)
    if len(norm) < 3:
        return {norm} if norm else set()
    return {norm[i:i + 3] for i in range(len(norm) - 2)}


def trigram_similarity(a: str, b: str) -> float:
    return _jaccard(_trigrams(a), _trigrams(b))


def similarity(a: str, b: str) -> float:
    """Examples:
        >>> similarity("Vaccines cause infertility", "vaccines cause infertility.")
        1.0
        >>> similarity("Vaccines cause infertility", "The election was rigged") < 0.3
        True
    """
    return max(word_set_similarity(a, b), trigram_similarity(a, b))


def similarity_hash(title: str, description: str, length: int = 64) -> str:
    """Sorted unique tokens of title + description, joined.

    Keys longer than ``length`` are replaced by a SHA-256 digest cut to
    ``length``; plain truncation would let long claims that share common
    words collide.

    >>> similarity_hash("Cause vaccines", "infertility vaccines")
    'cause_infertility_vaccines'
    """
    key = "_".join(sorted(tokenize(f"{title or ''} {description or ''}")))
    if len(key) <= length:
        return key
    return hashlib.sha256(key.encode("utf-8")).hexdigest()[:length]
