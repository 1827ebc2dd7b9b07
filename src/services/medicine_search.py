import logging
from typing import Any, Callable, Dict, Iterable, List, Optional

from sqlalchemy.orm import Session

from services.catalog_store import SqlCatalogStore
from services.matching import (
    Match,
    MatchingConfig,
    MatchReconciler,
    QueryCache,
    RecordStore,
    RecordView,
    TieredRetrieval,
)
from services.matching.reconciliation import CandidateInput

logger = logging.getLogger(__name__)

EMPTY_STATISTICS = {
    "total_medicines": 0,
    "total_manufacturers": 0,
    "total_categories": 0,
}


class MedicineSearchService:
    """Entry points for typed search and handwriting candidate matching.

    One instance owns one QueryCache shared by every request it serves.
    """

    def __init__(
        self,
        store: RecordStore,
        cache: Optional[QueryCache] = None,
        config: Optional[MatchingConfig] = None,
    ) -> None:
        self.config = config or MatchingConfig()
        self.store = store
        self.cache = cache if cache is not None else QueryCache(ttl_seconds=self.config.cache_ttl_seconds)
        self.retrieval = TieredRetrieval(store, self.cache, self.config)
        self.reconciler = MatchReconciler(self.retrieval, self.config)

    def search(self, query: str) -> List[RecordView]:
        return self.retrieval.retrieve(query)

    def reconcile_matches(self, candidates: Iterable[CandidateInput]) -> List[Match]:
        return self.reconciler.reconcile(candidates)

    def statistics(self) -> Dict[str, int]:
        stats = getattr(self.store, "statistics", None)
        if stats is None:
            return dict(EMPTY_STATISTICS)
        try:
            return stats()
        except Exception as e:
            logger.error(f"Error getting catalog statistics: {e}")
            return dict(EMPTY_STATISTICS)


def build_medicine_search(
    settings: Any,
    session_factory: Callable[[], Session],
) -> MedicineSearchService:
    config = MatchingConfig.from_settings(settings)
    cache = QueryCache(
        ttl_seconds=config.cache_ttl_seconds,
        sweep_interval_seconds=settings.search_cache_sweep_interval_seconds,
    )
    return MedicineSearchService(SqlCatalogStore(session_factory), cache=cache, config=config)
