from .catalog_loader import LoadResult, load_catalog_csv
from .catalog_store import SqlCatalogStore
from .medicine_search import MedicineSearchService, build_medicine_search
from .recognizer import (
    GoogleHandwritingRecognizer,
    MockHandwritingRecognizer,
    RecognitionError,
    build_recognizer,
)

__all__ = [
    "LoadResult",
    "load_catalog_csv",
    "SqlCatalogStore",
    "MedicineSearchService",
    "build_medicine_search",
    "GoogleHandwritingRecognizer",
    "MockHandwritingRecognizer",
    "RecognitionError",
    "build_recognizer",
]
