"""
Fuzzy medicine matching: similarity scoring, cached tiered retrieval, and
reconciliation of handwriting candidates into ranked catalog matches.
"""

from services.matching.config import MatchingConfig
from services.matching.models import Match, MatchedField, RecognitionCandidate, RecordView
from services.matching.query_cache import QueryCache, normalize_key
from services.matching.reconciliation import MatchReconciler
from services.matching.retrieval import (
    LongQueryStrategy,
    RecordStore,
    RetrievalError,
    RetrievalTimeout,
    ShortQueryStrategy,
    StrategyOutcome,
    SubstringFallbackStrategy,
    TieredRetrieval,
)
from services.matching.similarity import (
    combined_similarity,
    edit_distance,
    fuzzy_filter,
    ngram_jaccard,
    similarity,
)

__all__ = [
    "MatchingConfig",
    "Match",
    "MatchedField",
    "RecognitionCandidate",
    "RecordView",
    "QueryCache",
    "normalize_key",
    "MatchReconciler",
    "LongQueryStrategy",
    "RecordStore",
    "RetrievalError",
    "RetrievalTimeout",
    "ShortQueryStrategy",
    "StrategyOutcome",
    "SubstringFallbackStrategy",
    "TieredRetrieval",
    "combined_similarity",
    "edit_distance",
    "fuzzy_filter",
    "ngram_jaccard",
    "similarity",
]
