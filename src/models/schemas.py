from typing import List, Optional

from pydantic import BaseModel, Field


class StrokePointIn(BaseModel):
    x: float
    y: float
    time: float


class HandwritingRecognitionRequest(BaseModel):
    strokes: List[List[StrokePointIn]]


class CandidateIn(BaseModel):
    text: Optional[str] = None
    confidence: Optional[float] = None


class CandidateMatchRequest(BaseModel):
    candidates: List[CandidateIn] = Field(default_factory=list)


class CandidateResponse(BaseModel):
    text: str
    confidence: float

    model_config = {"from_attributes": True}


class MedicineResponse(BaseModel):
    id: str
    name: str
    brand_name: Optional[str]
    manufacturer_name: str
    short_composition: Optional[str]
    category: Optional[str]
    rx_required: Optional[str]

    model_config = {"from_attributes": True}


class MedicineMatchResponse(BaseModel):
    medicine: MedicineResponse
    match_score: float = Field(..., alias="matchScore")
    matched_field: str = Field(..., alias="matchedField")

    model_config = {"populate_by_name": True}


class RecognitionMeta(BaseModel):
    duration_ms: float


class RecognitionResponse(BaseModel):
    candidates: List[CandidateResponse]
    matches: List[MedicineMatchResponse]
    meta: RecognitionMeta


class SearchMeta(BaseModel):
    duration_ms: float
    count: int
    query: str


class SearchResponse(BaseModel):
    medicines: List[MedicineResponse]
    meta: SearchMeta


class StatisticsResponse(BaseModel):
    total_medicines: int
    total_manufacturers: int
    total_categories: int
