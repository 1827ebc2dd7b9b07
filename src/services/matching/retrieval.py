"""
Tiered retrieval of catalog records for a free-text query.

Short queries (2-3 characters) use tolerant token retrieval ordered by field
similarity. Longer queries combine ranked full-text retrieval with substring
retrieval and apply a fixed bucket ordering. Strategies run as an ordered
chain: the first one that succeeds wins, and a plain substring lookup is the
last resort. Retrieval never raises; total failure yields an empty list.
"""

import logging
import re
import time
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Callable, List, Optional, Protocol, Sequence

from services.matching.config import MatchingConfig
from services.matching.models import RecordView
from services.matching.query_cache import QueryCache, normalize_key
from services.matching.similarity import similarity

logger = logging.getLogger(__name__)

_TOKEN_PATTERN = re.compile(r"\w+", re.UNICODE)


class RecordStore(Protocol):
    def lookup_by_token(self, query: str, limit: int) -> List[RecordView]:
        ...

    def lookup_by_full_text(self, query: str, limit: int) -> List[RecordView]:
        ...

    def lookup_by_substring(self, query: str, limit: int) -> List[RecordView]:
        ...


class RetrievalError(Exception):
    pass


class RetrievalTimeout(RetrievalError):
    pass


@dataclass(frozen=True)
class StrategyOutcome:
    strategy: str
    records: List[RecordView] = field(default_factory=list)
    error: Optional[BaseException] = None

    @property
    def ok(self) -> bool:
        return self.error is None


class RetrievalStrategy(ABC):
    name = "strategy"
    cacheable = True

    def run(self, store: RecordStore, query: str, config: MatchingConfig) -> StrategyOutcome:
        try:
            records = self._fetch(store, query, config)
        except Exception as e:
            return StrategyOutcome(strategy=self.name, error=e)
        return StrategyOutcome(strategy=self.name, records=records[: config.retrieval_limit])

    @abstractmethod
    def _fetch(self, store: RecordStore, query: str, config: MatchingConfig) -> List[RecordView]:
        ...


class ShortQueryStrategy(RetrievalStrategy):
    name = "short_query"

    def _fetch(self, store: RecordStore, query: str, config: MatchingConfig) -> List[RecordView]:
        records = store.lookup_by_token(query, config.retrieval_pool_size)
        return order_by_field_similarity(query, records)


class LongQueryStrategy(RetrievalStrategy):
    name = "long_query"

    def _fetch(self, store: RecordStore, query: str, config: MatchingConfig) -> List[RecordView]:
        ranked = store.lookup_by_full_text(query, config.retrieval_pool_size)
        substring = store.lookup_by_substring(query, config.retrieval_pool_size)
        return order_long_query_results(query, ranked, substring)


class SubstringFallbackStrategy(RetrievalStrategy):
    name = "substring_fallback"
    cacheable = False

    def _fetch(self, store: RecordStore, query: str, config: MatchingConfig) -> List[RecordView]:
        return store.lookup_by_substring(query, config.retrieval_limit)


def order_by_field_similarity(query: str, records: Sequence[RecordView]) -> List[RecordView]:
    return sorted(records, key=lambda record: -_best_field_similarity(query, record))


def order_long_query_results(
    query: str,
    ranked: Sequence[RecordView],
    substring: Sequence[RecordView],
) -> List[RecordView]:
    merged = _merge_unique(ranked, substring)
    # Stable sort: store relevance order (full-text hits first) breaks ties inside a bucket.
    return sorted(merged, key=lambda record: long_query_bucket(query, record))


def long_query_bucket(query: str, record: RecordView) -> int:
    key = normalize_key(query)
    name = record.name.lower()
    brand = (record.brand_name or "").lower()

    if name == key:
        return 1
    if brand and brand == key:
        return 2
    if name.startswith(key):
        return 3
    if brand and brand.startswith(key):
        return 4
    if _terms_match(key, name):
        return 5
    if brand and _terms_match(key, brand):
        return 6
    return 7


class TieredRetrieval:
    def __init__(
        self,
        store: RecordStore,
        cache: Optional[QueryCache] = None,
        config: Optional[MatchingConfig] = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.store = store
        self.cache = cache
        self.config = config or MatchingConfig()
        self._clock = clock
        self._short = ShortQueryStrategy()
        self._long = LongQueryStrategy()
        self._fallback = SubstringFallbackStrategy()

    def retrieve(self, query: str, deadline: Optional[float] = None) -> List[RecordView]:
        normalized = normalize_key(query or "")
        if len(normalized) < self.config.min_query_length:
            return []

        cached = self._cache_get(normalized)
        if cached is not None:
            return cached

        deadline = self._effective_deadline(deadline)
        for strategy in self.strategies_for(normalized):
            outcome = self._run(strategy, normalized, deadline)
            if outcome.ok:
                if strategy.cacheable:
                    self._cache_put(normalized, outcome.records)
                return outcome.records
            logger.warning(
                f"Retrieval strategy {outcome.strategy} failed for '{normalized}': {outcome.error}"
            )

        logger.error(f"All retrieval strategies failed for '{normalized}', returning no records")
        return []

    def strategies_for(self, normalized_query: str) -> List[RetrievalStrategy]:
        return [self.tier_for(normalized_query), self._fallback]

    def tier_for(self, normalized_query: str) -> RetrievalStrategy:
        if len(normalized_query) <= self.config.short_query_max_length:
            return self._short
        return self._long

    def _run(
        self,
        strategy: RetrievalStrategy,
        query: str,
        deadline: Optional[float],
    ) -> StrategyOutcome:
        if deadline is not None and self._clock() >= deadline:
            return StrategyOutcome(
                strategy=strategy.name,
                error=RetrievalTimeout(f"deadline passed before {strategy.name}"),
            )
        return strategy.run(self.store, query, self.config)

    def _effective_deadline(self, deadline: Optional[float]) -> Optional[float]:
        if deadline is not None:
            return deadline
        if self.config.retrieval_timeout_seconds:
            return self._clock() + self.config.retrieval_timeout_seconds
        return None

    def _cache_get(self, key: str) -> Optional[List[RecordView]]:
        if self.cache is None:
            return None
        try:
            return self.cache.get(key)
        except Exception as e:
            logger.warning(f"Query cache read failed for '{key}', treating as miss: {e}")
            return None

    def _cache_put(self, key: str, records: List[RecordView]) -> None:
        if self.cache is None:
            return
        try:
            self.cache.put(key, records, self.config.cache_ttl_seconds)
            self.cache.maybe_sweep()
        except Exception as e:
            logger.warning(f"Query cache write failed for '{key}': {e}")


def _best_field_similarity(query: str, record: RecordView) -> float:
    name_score = similarity(query, record.name)
    brand_score = similarity(query, record.brand_name) if record.brand_name else 0.0
    return max(name_score, brand_score)


def _merge_unique(*groups: Sequence[RecordView]) -> List[RecordView]:
    seen = set()
    merged: List[RecordView] = []
    for group in groups:
        for record in group:
            if record.id in seen:
                continue
            seen.add(record.id)
            merged.append(record)
    return merged


def _terms(text: str) -> List[str]:
    return _TOKEN_PATTERN.findall(text.lower())


def _terms_match(query: str, text: str) -> bool:
    query_terms = _terms(query)
    if not query_terms:
        return False
    words = set(_terms(text))
    return all(term in words for term in query_terms)
