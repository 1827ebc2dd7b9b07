"""API router for handwriting recognition and candidate matching."""

import logging
import time
from typing import List, Sequence

from fastapi import APIRouter, Depends, HTTPException
from starlette.concurrency import run_in_threadpool

from api.dependencies import get_medicine_search, get_recognizer
from models.schemas import (
    CandidateMatchRequest,
    CandidateResponse,
    HandwritingRecognitionRequest,
    MedicineMatchResponse,
    MedicineResponse,
    RecognitionMeta,
    RecognitionResponse,
)
from services.matching import Match, RecognitionCandidate
from services.medicine_search import MedicineSearchService
from services.recognizer import HandwritingRecognizer, RecognitionError

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("", response_model=RecognitionResponse)
async def recognize_handwriting(
    request: HandwritingRecognitionRequest,
    service: MedicineSearchService = Depends(get_medicine_search),
    recognizer: HandwritingRecognizer = Depends(get_recognizer),
) -> RecognitionResponse:
    """
    Recognize handwritten strokes and match the candidates against the catalog.

    Args:
        request: Strokes as lists of {x, y, time} points
        service: Medicine search service
        recognizer: Handwriting recognizer backend

    Returns:
        Recognition candidates and up to 10 ranked medicine matches

    Raises:
        HTTPException: If the recognizer backend fails
    """
    start_time = time.perf_counter()
    strokes = [[(point.x, point.y, point.time) for point in stroke] for stroke in request.strokes]

    try:
        candidates = await recognizer.recognize(strokes)
    except RecognitionError as e:
        duration_ms = (time.perf_counter() - start_time) * 1000
        logger.error(f"Recognition error after {duration_ms:.1f}ms: {e}")
        raise HTTPException(
            status_code=502,
            detail={
                "error": {
                    "code": "RECOGNITION_FAILED",
                    "message": "Failed to process handwriting recognition",
                }
            },
        )

    matches = await run_in_threadpool(service.reconcile_matches, candidates)
    duration_ms = (time.perf_counter() - start_time) * 1000
    logger.info(f"Recognition completed in {duration_ms:.1f}ms with {len(matches)} matches")
    return _response(candidates, matches, duration_ms)


@router.post("/candidates", response_model=RecognitionResponse)
def match_candidates(
    request: CandidateMatchRequest,
    service: MedicineSearchService = Depends(get_medicine_search),
) -> RecognitionResponse:
    """
    Match externally recognized candidates against the catalog.

    Malformed candidates (missing or blank text, missing confidence or one
    outside [0, 1]) are skipped and left out of the echoed candidate list.
    """
    start_time = time.perf_counter()
    candidates = [
        RecognitionCandidate(text=candidate.text, confidence=candidate.confidence)
        for candidate in request.candidates
    ]
    matches = service.reconcile_matches(candidates)
    duration_ms = (time.perf_counter() - start_time) * 1000
    logger.info(f"Candidate matching completed in {duration_ms:.1f}ms with {len(matches)} matches")
    return _response([c for c in candidates if c.is_valid()], matches, duration_ms)


def _response(
    candidates: Sequence[RecognitionCandidate],
    matches: List[Match],
    duration_ms: float,
) -> RecognitionResponse:
    return RecognitionResponse(
        candidates=[CandidateResponse.model_validate(candidate) for candidate in candidates],
        matches=[
            MedicineMatchResponse(
                medicine=MedicineResponse.model_validate(match.record),
                match_score=match.match_score,
                matched_field=match.matched_field.value,
            )
            for match in matches
        ],
        meta=RecognitionMeta(duration_ms=duration_ms),
    )
