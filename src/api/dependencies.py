from fastapi import Request

from services.medicine_search import MedicineSearchService
from services.recognizer import HandwritingRecognizer


def get_medicine_search(request: Request) -> MedicineSearchService:
    return request.app.state.medicine_search


def get_recognizer(request: Request) -> HandwritingRecognizer:
    return request.app.state.recognizer
