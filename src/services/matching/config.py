"""
Tunable constants for retrieval and match reconciliation.
"""

from dataclasses import dataclass, replace
from typing import Any, Optional

DEFAULT_CACHE_TTL_SECONDS = 5 * 60
MIN_QUERY_LENGTH = 2
SHORT_QUERY_MAX_LENGTH = 3
RETRIEVAL_LIMIT = 50
RETRIEVAL_POOL_SIZE = 200
PER_CANDIDATE_LIMIT = 5
MAX_MATCHES = 10
MATCH_THRESHOLD = 0.6


@dataclass(frozen=True)
class MatchingConfig:
    min_query_length: int = MIN_QUERY_LENGTH
    short_query_max_length: int = SHORT_QUERY_MAX_LENGTH
    retrieval_limit: int = RETRIEVAL_LIMIT
    retrieval_pool_size: int = RETRIEVAL_POOL_SIZE
    retrieval_timeout_seconds: Optional[float] = None
    cache_ttl_seconds: float = DEFAULT_CACHE_TTL_SECONDS
    per_candidate_limit: int = PER_CANDIDATE_LIMIT
    max_matches: int = MAX_MATCHES
    match_threshold: float = MATCH_THRESHOLD

    @classmethod
    def from_settings(cls, settings: Any) -> "MatchingConfig":
        return cls(
            retrieval_limit=settings.retrieval_limit,
            retrieval_pool_size=max(settings.retrieval_limit, RETRIEVAL_POOL_SIZE),
            retrieval_timeout_seconds=settings.retrieval_timeout_seconds,
            cache_ttl_seconds=settings.search_cache_ttl_seconds,
            per_candidate_limit=settings.per_candidate_limit,
            max_matches=settings.max_matches,
            match_threshold=settings.match_threshold,
        )

    def with_overrides(self, **overrides: Any) -> "MatchingConfig":
        return replace(self, **{k: v for k, v in overrides.items() if v is not None})
