"""Tests for tiered retrieval, fallback and caching behaviour."""

from typing import Dict, List, Optional

import pytest

from services.matching import MatchingConfig, QueryCache, RecordView, TieredRetrieval
from services.matching.retrieval import (
    LongQueryStrategy,
    ShortQueryStrategy,
    long_query_bucket,
    order_long_query_results,
)


def _record(record_id: str, name: str, brand_name: Optional[str] = None) -> RecordView:
    return RecordView(id=record_id, name=name, manufacturer_name="Acme", brand_name=brand_name)


class FakeStore:
    def __init__(
        self,
        token: Optional[List[RecordView]] = None,
        full_text: Optional[List[RecordView]] = None,
        substring: Optional[List[RecordView]] = None,
        failing: tuple = (),
    ):
        self.results = {
            "token": token or [],
            "full_text": full_text or [],
            "substring": substring or [],
        }
        self.failing = set(failing)
        self.calls: List[tuple] = []

    def _lookup(self, kind: str, query: str, limit: int) -> List[RecordView]:
        self.calls.append((kind, query, limit))
        if kind in self.failing:
            raise RuntimeError(f"{kind} lookup unavailable")
        return list(self.results[kind])

    def lookup_by_token(self, query, limit):
        return self._lookup("token", query, limit)

    def lookup_by_full_text(self, query, limit):
        return self._lookup("full_text", query, limit)

    def lookup_by_substring(self, query, limit):
        return self._lookup("substring", query, limit)

    def kinds(self) -> List[str]:
        return [call[0] for call in self.calls]


class BrokenCache:
    def get(self, key):
        raise RuntimeError("cache offline")

    def put(self, key, records, ttl_seconds=None):
        raise RuntimeError("cache offline")

    def maybe_sweep(self):
        return 0


class StepClock:
    def __init__(self, values: List[float]):
        self.values = list(values)

    def __call__(self) -> float:
        if len(self.values) > 1:
            return self.values.pop(0)
        return self.values[0]


@pytest.mark.parametrize("query", ["", "a", " a ", None])
def test_too_short_query_returns_nothing(query):
    store = FakeStore(token=[_record("1", "Aspirin")])
    retrieval = TieredRetrieval(store)

    assert retrieval.retrieve(query) == []
    assert store.calls == []


def test_three_characters_use_short_tier():
    store = FakeStore(token=[_record("1", "Pan 40")])
    retrieval = TieredRetrieval(store)

    assert retrieval.retrieve("pan") == [_record("1", "Pan 40")]
    assert store.kinds() == ["token"]
    assert isinstance(retrieval.tier_for("pan"), ShortQueryStrategy)


def test_four_characters_use_long_tier():
    store = FakeStore(full_text=[_record("1", "Dolo")], substring=[_record("1", "Dolo")])
    retrieval = TieredRetrieval(store)

    assert retrieval.retrieve("dolo") == [_record("1", "Dolo")]
    assert store.kinds() == ["full_text", "substring"]
    assert isinstance(retrieval.tier_for("dolo"), LongQueryStrategy)


def test_query_is_normalized_before_lookup():
    store = FakeStore()
    TieredRetrieval(store).retrieve("  DOLO ")

    assert {call[1] for call in store.calls} == {"dolo"}


def test_short_tier_orders_by_best_field_similarity():
    far = _record("1", "Pantoprazole")
    brand_exact = _record("2", "Pantocid", brand_name="Pan")
    close = _record("3", "Pam")
    store = FakeStore(token=[far, close, brand_exact])

    result = TieredRetrieval(store).retrieve("pan")

    assert [r.id for r in result] == ["2", "3", "1"]


def test_long_query_bucket_ordering():
    query = "dolo"
    b1 = _record("b1", "Dolo")
    b2 = _record("b2", "Paracetamol", brand_name="DOLO")
    b3 = _record("b3", "Dolo 650")
    b4 = _record("b4", "Calpol", brand_name="Dolopar")
    b5 = _record("b5", "Para Dolo Forte")
    b6 = _record("b6", "Acetaminophen", brand_name="Extra Dolo")
    b7 = _record("b7", "Xdolox")

    assert [long_query_bucket(query, r) for r in (b1, b2, b3, b4, b5, b6, b7)] == [1, 2, 3, 4, 5, 6, 7]

    result = order_long_query_results(query, [b6, b5, b2, b1], [b7, b4, b3, b1])

    assert [r.id for r in result] == ["b1", "b2", "b3", "b4", "b5", "b6", "b7"]


def test_long_query_keeps_store_order_within_bucket():
    first = _record("x2", "Forte Dolo")
    second = _record("x1", "Mild Dolo")

    result = order_long_query_results("dolo", [first, second], [second])

    assert [r.id for r in result] == ["x2", "x1"]


def test_results_capped_at_retrieval_limit():
    records = [_record(str(i), f"Dolo {i}") for i in range(80)]
    store = FakeStore(full_text=records)

    result = TieredRetrieval(store).retrieve("dolo")

    assert len(result) == 50
    assert result[0].id == "0"


def test_results_are_cached_by_normalized_query():
    store = FakeStore(full_text=[_record("1", "Augmentin")])
    retrieval = TieredRetrieval(store, QueryCache(ttl_seconds=300))

    first = retrieval.retrieve("Augmentin")
    calls_after_first = len(store.calls)
    second = retrieval.retrieve("  augmentin ")

    assert first == second
    assert len(store.calls) == calls_after_first


def test_empty_results_are_cached():
    store = FakeStore()
    retrieval = TieredRetrieval(store, QueryCache(ttl_seconds=300))

    assert retrieval.retrieve("zzzz") == []
    calls_after_first = len(store.calls)
    assert retrieval.retrieve("zzzz") == []
    assert len(store.calls) == calls_after_first


def test_failed_tier_falls_back_to_substring():
    store = FakeStore(substring=[_record("1", "Azithral")], failing=("full_text",))
    retrieval = TieredRetrieval(store, QueryCache(ttl_seconds=300))

    assert retrieval.retrieve("azith") == [_record("1", "Azithral")]
    assert store.kinds() == ["full_text", "substring"]


def test_fallback_results_are_not_cached():
    store = FakeStore(substring=[_record("1", "Azithral")], failing=("full_text",))
    cache = QueryCache(ttl_seconds=300)
    retrieval = TieredRetrieval(store, cache)

    retrieval.retrieve("azith")

    assert cache.get("azith") is None


def test_all_strategies_failing_returns_empty_list():
    store = FakeStore(failing=("token", "substring"))

    assert TieredRetrieval(store, QueryCache(ttl_seconds=300)).retrieve("pan") == []
    assert store.kinds() == ["token", "substring"]


def test_cache_failure_is_treated_as_miss():
    store = FakeStore(full_text=[_record("1", "Crocin")])
    retrieval = TieredRetrieval(store, BrokenCache())

    assert retrieval.retrieve("crocin") == [_record("1", "Crocin")]


def test_passed_deadline_skips_every_strategy():
    store = FakeStore(full_text=[_record("1", "Crocin")])
    retrieval = TieredRetrieval(store, clock=StepClock([100.0]))

    assert retrieval.retrieve("crocin", deadline=50.0) == []
    assert store.calls == []


def test_configured_timeout_sets_deadline():
    store = FakeStore(full_text=[_record("1", "Crocin")])
    config = MatchingConfig(retrieval_timeout_seconds=1.0)
    # deadline computed at 0.0, tier check at 0.5
    retrieval = TieredRetrieval(store, config=config, clock=StepClock([0.0, 0.5]))

    assert retrieval.retrieve("crocin") == [_record("1", "Crocin")]


def test_configured_timeout_expires_before_tier():
    store = FakeStore(full_text=[_record("1", "Crocin")])
    config = MatchingConfig(retrieval_timeout_seconds=1.0)
    retrieval = TieredRetrieval(store, config=config, clock=StepClock([0.0, 2.0]))

    assert retrieval.retrieve("crocin") == []
    assert store.calls == []


def test_strategies_for_appends_fallback():
    retrieval = TieredRetrieval(FakeStore())
    names = [strategy.name for strategy in retrieval.strategies_for("augmentin")]

    assert names == ["long_query", "substring_fallback"]
