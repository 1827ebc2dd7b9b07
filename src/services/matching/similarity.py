"""
String similarity functions used to score catalog records against noisy text.

All functions are pure. Comparisons are case-insensitive.
"""

from typing import List, Sequence, Set, Tuple

# Blend weights for combined_similarity. Edit closeness dominates fragment overlap.
EDIT_WEIGHT = 0.7
NGRAM_WEIGHT = 0.3

DEFAULT_NGRAM_SIZE = 2
DEFAULT_FILTER_THRESHOLD = 0.6
DEFAULT_FILTER_LIMIT = 10


def edit_distance(a: str, b: str) -> int:
    s1 = a.lower()
    s2 = b.lower()

    if s1 == s2:
        return 0

    table = [[0] * (len(s1) + 1) for _ in range(len(s2) + 1)]
    for i in range(len(s1) + 1):
        table[0][i] = i
    for j in range(len(s2) + 1):
        table[j][0] = j

    for j in range(1, len(s2) + 1):
        for i in range(1, len(s1) + 1):
            cost = 0 if s1[i - 1] == s2[j - 1] else 1
            table[j][i] = min(
                table[j][i - 1] + 1,
                table[j - 1][i] + 1,
                table[j - 1][i - 1] + cost,
            )

    return table[len(s2)][len(s1)]


def similarity(a: str, b: str) -> float:
    max_length = max(len(a), len(b))
    if max_length == 0:
        return 1.0
    return 1.0 - edit_distance(a, b) / max_length


def ngram_jaccard(a: str, b: str, n: int = DEFAULT_NGRAM_SIZE) -> float:
    left = _ngrams(a, n)
    right = _ngrams(b, n)
    union = left | right
    if not union:
        return 0.0
    return len(left & right) / len(union)


def combined_similarity(
    a: str,
    b: str,
    edit_weight: float = EDIT_WEIGHT,
    ngram_weight: float = NGRAM_WEIGHT,
) -> float:
    return edit_weight * similarity(a, b) + ngram_weight * ngram_jaccard(a, b)


def fuzzy_filter(
    query: str,
    candidates: Sequence[str],
    threshold: float = DEFAULT_FILTER_THRESHOLD,
    limit: int = DEFAULT_FILTER_LIMIT,
) -> List[Tuple[str, float]]:
    """Score candidates against query and keep the best ones.

    Keeps scores >= threshold, sorted descending. Ties keep their input order.
    """
    scored = [(candidate, similarity(query, candidate)) for candidate in candidates]
    kept = [item for item in scored if item[1] >= threshold]
    kept.sort(key=lambda item: item[1], reverse=True)
    return kept[: max(0, limit)]


def _ngrams(text: str, n: int) -> Set[str]:
    normalized = "".join(text.lower().split())
    return {normalized[i : i + n] for i in range(len(normalized) - n + 1)}
