"""
Data models for medicine matching.

Records are read-only snapshots of catalog rows. Candidates and matches are
request scoped and never persisted.
"""

import enum
from dataclasses import dataclass
from typing import Any, Dict, Mapping, Optional


class MatchedField(str, enum.Enum):
    NAME = "name"
    BRAND_NAME = "brand_name"


@dataclass(frozen=True)
class RecordView:
    """Read-only projection of a catalog medicine."""
    id: str
    name: str
    manufacturer_name: str
    brand_name: Optional[str] = None
    short_composition: Optional[str] = None
    category: Optional[str] = None
    rx_required: Optional[str] = None

    def to_dict(self) -> Dict[str, Optional[str]]:
        return {
            "id": self.id,
            "name": self.name,
            "brand_name": self.brand_name,
            "manufacturer_name": self.manufacturer_name,
            "short_composition": self.short_composition,
            "category": self.category,
            "rx_required": self.rx_required,
        }


@dataclass(frozen=True)
class RecognitionCandidate:
    """A text hypothesis produced by the handwriting recognizer."""
    text: str
    confidence: float

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> "RecognitionCandidate":
        return cls(text=data.get("text"), confidence=data.get("confidence"))

    def is_valid(self) -> bool:
        if not isinstance(self.text, str) or not self.text.strip():
            return False
        if isinstance(self.confidence, bool) or not isinstance(self.confidence, (int, float)):
            return False
        return 0.0 <= self.confidence <= 1.0


@dataclass(frozen=True)
class Match:
    """A catalog record scored against one recognition candidate."""
    record: RecordView
    match_score: float
    matched_field: MatchedField
