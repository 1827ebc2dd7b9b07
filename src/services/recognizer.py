import logging
from typing import Any, List, Optional, Protocol, Sequence, Tuple

import httpx

from services.matching.models import RecognitionCandidate

logger = logging.getLogger(__name__)

# (x, y, time in ms)
StrokePoint = Tuple[float, float, float]
Stroke = Sequence[StrokePoint]

MOCK_CANDIDATES = (
    RecognitionCandidate(text="Augmentin", confidence=0.95),
    RecognitionCandidate(text="Azithral", confidence=0.78),
    RecognitionCandidate(text="Amoxicillin", confidence=0.65),
)

RANK_CONFIDENCE_STEP = 0.1
MIN_RANK_CONFIDENCE = 0.1


class RecognitionError(Exception):
    pass


class HandwritingRecognizer(Protocol):
    async def recognize(self, strokes: Sequence[Stroke]) -> List[RecognitionCandidate]:
        ...


class MockHandwritingRecognizer:
    """Returns a fixed candidate list regardless of the ink."""

    def __init__(self, candidates: Optional[Sequence[RecognitionCandidate]] = None) -> None:
        self._candidates = list(candidates if candidates is not None else MOCK_CANDIDATES)

    async def recognize(self, strokes: Sequence[Stroke]) -> List[RecognitionCandidate]:
        return list(self._candidates)


class GoogleHandwritingRecognizer:
    """Client for the Google Input Tools handwriting endpoint."""

    def __init__(
        self,
        url: str,
        language: str = "en",
        timeout_seconds: float = 10.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self.url = url
        self.language = language
        self.timeout_seconds = timeout_seconds
        self._transport = transport

    async def recognize(self, strokes: Sequence[Stroke]) -> List[RecognitionCandidate]:
        payload = build_ink_payload(strokes, self.language)
        if not payload["requests"][0]["ink"]:
            return []

        timeout = httpx.Timeout(self.timeout_seconds)
        async with httpx.AsyncClient(timeout=timeout, transport=self._transport) as client:
            try:
                response = await client.post(self.url, json=payload)
                response.raise_for_status()
                data = response.json()
            except httpx.HTTPError as e:
                logger.error(f"Handwriting recognition API error: {e}")
                raise RecognitionError(f"Handwriting recognition request failed: {e}") from e
            except ValueError as e:
                logger.error(f"Handwriting recognition API returned invalid JSON: {e}")
                raise RecognitionError("Handwriting recognition returned an invalid response") from e

        return parse_google_response(data)


def build_ink_payload(strokes: Sequence[Stroke], language: str) -> dict:
    ink = []
    max_x = 1.0
    max_y = 1.0
    for stroke in strokes:
        if not stroke:
            continue
        xs = [float(point[0]) for point in stroke]
        ys = [float(point[1]) for point in stroke]
        times = [float(point[2]) for point in stroke]
        max_x = max(max_x, max(xs))
        max_y = max(max_y, max(ys))
        ink.append([xs, ys, times])

    return {
        "options": "enable_pre_space",
        "requests": [
            {
                "writing_guide": {
                    "writing_area_width": int(max_x),
                    "writing_area_height": int(max_y),
                },
                "ink": ink,
                "language": language,
            }
        ],
    }


def parse_google_response(data: Any) -> List[RecognitionCandidate]:
    if not isinstance(data, list) or not data or data[0] != "SUCCESS":
        status = data[0] if isinstance(data, list) and data else data
        raise RecognitionError(f"Handwriting recognition failed with status {status!r}")

    try:
        texts = data[1][0][1]
    except (IndexError, KeyError, TypeError) as e:
        raise RecognitionError("Handwriting recognition response has no candidates") from e

    candidates: List[RecognitionCandidate] = []
    for text in texts:
        if not isinstance(text, str) or not text.strip():
            continue
        candidates.append(
            RecognitionCandidate(text=text.strip(), confidence=rank_confidence(len(candidates)))
        )
    return candidates


def rank_confidence(rank: int) -> float:
    # The endpoint returns ordered text only; confidence decays with rank.
    return max(MIN_RANK_CONFIDENCE, round(1.0 - RANK_CONFIDENCE_STEP * rank, 2))


def build_recognizer(settings: Any) -> HandwritingRecognizer:
    backend = (settings.recognizer_backend or "mock").lower()
    if backend == "google":
        return GoogleHandwritingRecognizer(
            url=settings.google_handwriting_url,
            language=settings.recognizer_language,
            timeout_seconds=settings.recognizer_timeout_seconds,
        )
    if backend != "mock":
        logger.warning(f"Unknown recognizer backend '{backend}', using mock recognizer")
    return MockHandwritingRecognizer()
