"""API router for typed medicine search and catalog statistics."""

import logging
import time

from fastapi import APIRouter, Depends, Query

from api.dependencies import get_medicine_search
from models.schemas import MedicineResponse, SearchMeta, SearchResponse, StatisticsResponse
from services.medicine_search import MedicineSearchService

logger = logging.getLogger(__name__)

router = APIRouter()

MAX_LOGGED_QUERY_LENGTH = 50


@router.get("/search", response_model=SearchResponse)
def search_medicines(
    q: str = Query("", max_length=200),
    service: MedicineSearchService = Depends(get_medicine_search),
) -> SearchResponse:
    """
    Search the catalog with the tiered retrieval strategy.

    Args:
        q: Free-text query; fewer than 2 characters returns no results
        service: Medicine search service

    Returns:
        Up to 50 medicines with timing metadata
    """
    start_time = time.perf_counter()
    query_preview = q[:MAX_LOGGED_QUERY_LENGTH]

    medicines = service.search(q)
    duration_ms = (time.perf_counter() - start_time) * 1000
    logger.info(
        f'Search for "{query_preview}" completed in {duration_ms:.1f}ms, found {len(medicines)} results'
    )

    return SearchResponse(
        medicines=[MedicineResponse.model_validate(record) for record in medicines],
        meta=SearchMeta(duration_ms=duration_ms, count=len(medicines), query=query_preview),
    )


@router.get("/statistics", response_model=StatisticsResponse)
def get_statistics(
    service: MedicineSearchService = Depends(get_medicine_search),
) -> StatisticsResponse:
    """
    Catalog size statistics.

    Returns:
        Medicine, manufacturer and category counts (zeros if the store is unavailable)
    """
    start_time = time.perf_counter()
    statistics = service.statistics()
    logger.info(f"Statistics fetched in {(time.perf_counter() - start_time) * 1000:.1f}ms")
    return StatisticsResponse(**statistics)
