import logging
from typing import Any, Iterable, List, Mapping, Optional, Set, Union

from services.matching.config import MatchingConfig
from services.matching.models import Match, MatchedField, RecognitionCandidate, RecordView
from services.matching.retrieval import TieredRetrieval
from services.matching.similarity import combined_similarity

logger = logging.getLogger(__name__)

CandidateInput = Union[RecognitionCandidate, Mapping[str, Any]]


class MatchReconciler:
    """Turn ordered recognition candidates into a ranked, deduplicated match list.

    Candidates are processed in the order given. A record claimed by an earlier
    candidate is never re-scored against a later one, so the first candidate's
    interpretation of a record wins even if a later candidate would score it
    higher.
    """

    def __init__(self, retrieval: TieredRetrieval, config: Optional[MatchingConfig] = None) -> None:
        self.retrieval = retrieval
        self.config = config or retrieval.config

    def reconcile(self, candidates: Iterable[CandidateInput]) -> List[Match]:
        seen: Set[str] = set()
        matches: List[Match] = []

        for candidate in _valid_candidates(candidates):
            records = self.retrieval.retrieve(candidate.text)
            for record in records[: self.config.per_candidate_limit]:
                if record.id in seen:
                    continue
                seen.add(record.id)
                match = self._score(candidate, record)
                if match is not None:
                    matches.append(match)

        matches.sort(key=lambda m: m.match_score, reverse=True)
        return matches[: self.config.max_matches]

    def _score(self, candidate: RecognitionCandidate, record: RecordView) -> Optional[Match]:
        name_score = combined_similarity(candidate.text, record.name)
        brand_score = (
            combined_similarity(candidate.text, record.brand_name) if record.brand_name else 0.0
        )
        field_score = max(name_score, brand_score)
        if field_score <= self.config.match_threshold:
            return None

        matched_field = MatchedField.NAME if name_score >= brand_score else MatchedField.BRAND_NAME
        return Match(
            record=record,
            match_score=field_score * candidate.confidence,
            matched_field=matched_field,
        )


def _valid_candidates(candidates: Iterable[CandidateInput]) -> Iterable[RecognitionCandidate]:
    for index, raw in enumerate(candidates or []):
        candidate = _coerce(raw)
        if candidate is None or not candidate.is_valid():
            logger.warning(f"Skipping malformed recognition candidate at position {index}: {raw!r}")
            continue
        yield candidate


def _coerce(raw: CandidateInput) -> Optional[RecognitionCandidate]:
    if isinstance(raw, RecognitionCandidate):
        return raw
    if isinstance(raw, Mapping):
        return RecognitionCandidate.from_mapping(raw)
    return None
