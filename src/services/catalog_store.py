import logging
import re
from typing import Callable, Dict, List

from sqlalchemy import case, distinct, func, or_, text
from sqlalchemy.orm import Session

from models import FULLTEXT_TABLE, Medicine
from services.matching.models import RecordView

logger = logging.getLogger(__name__)

_TOKEN_PATTERN = re.compile(r"\w+", re.UNICODE)
_LIKE_ESCAPE = "\\"


class SqlCatalogStore:
    """Record store over the medicines table.

    Every lookup opens its own short-lived session and returns detached
    RecordView snapshots, never ORM rows.
    """

    def __init__(self, session_factory: Callable[[], Session]) -> None:
        self._session_factory = session_factory

    def lookup_by_token(self, query: str, limit: int) -> List[RecordView]:
        normalized = query.lower().strip()
        escaped = _escape_like(normalized)
        if not escaped:
            return []
        name = func.lower(Medicine.name)
        brand = func.lower(func.coalesce(Medicine.brand_name, ""))

        def either(pattern: str):
            return or_(
                name.like(pattern, escape=_LIKE_ESCAPE),
                brand.like(pattern, escape=_LIKE_ESCAPE),
            )

        # Exact, then field start, then word start, then inner substring, then bigram overlap.
        rank = case(
            (or_(name == normalized, brand == normalized), 0),
            (either(f"{escaped}%"), 1),
            (either(f"% {escaped}%"), 2),
            (either(f"%{escaped}%"), 3),
            else_=4,
        )
        tolerant = [either(f"%{escaped}%")]
        tolerant.extend(either(f"%{_escape_like(gram)}%") for gram in _bigrams(normalized))

        db = self._session_factory()
        try:
            rows = db.query(Medicine).filter(or_(*tolerant)).order_by(
                rank, func.length(Medicine.name), Medicine.name, Medicine.id
            ).limit(limit).all()
            return [_to_view(row) for row in rows]
        finally:
            db.close()

    def lookup_by_full_text(self, query: str, limit: int) -> List[RecordView]:
        match_expression = _fts_match_expression(query)
        if not match_expression:
            return []

        db = self._session_factory()
        try:
            ranked_ids = [
                row[0]
                for row in db.execute(
                    text(
                        f"SELECT medicine_id FROM {FULLTEXT_TABLE} "
                        f"WHERE {FULLTEXT_TABLE} MATCH :match "
                        f"ORDER BY bm25({FULLTEXT_TABLE}) LIMIT :limit"
                    ),
                    {"match": match_expression, "limit": limit},
                )
            ]
            if not ranked_ids:
                return []
            rows = db.query(Medicine).filter(Medicine.id.in_(ranked_ids)).all()
            by_id = {row.id: row for row in rows}
            return [_to_view(by_id[medicine_id]) for medicine_id in ranked_ids if medicine_id in by_id]
        finally:
            db.close()

    def lookup_by_substring(self, query: str, limit: int) -> List[RecordView]:
        normalized = query.lower().strip()
        escaped = _escape_like(normalized)
        if not escaped:
            return []
        pattern = f"%{escaped}%"
        prefix = f"{escaped}%"
        name = func.lower(Medicine.name)
        brand = func.lower(func.coalesce(Medicine.brand_name, ""))
        rank = case(
            (name == normalized, 1),
            (brand == normalized, 2),
            (name.like(prefix, escape=_LIKE_ESCAPE), 3),
            (brand.like(prefix, escape=_LIKE_ESCAPE), 4),
            else_=5,
        )

        db = self._session_factory()
        try:
            rows = db.query(Medicine).filter(
                or_(
                    name.like(pattern, escape=_LIKE_ESCAPE),
                    brand.like(pattern, escape=_LIKE_ESCAPE),
                )
            ).order_by(rank, Medicine.name, Medicine.id).limit(limit).all()
            return [_to_view(row) for row in rows]
        finally:
            db.close()

    def statistics(self) -> Dict[str, int]:
        db = self._session_factory()
        try:
            total = db.query(func.count(Medicine.id)).scalar() or 0
            manufacturers = db.query(func.count(distinct(Medicine.manufacturer_name))).scalar() or 0
            categories = db.query(func.count(distinct(Medicine.category))).filter(
                Medicine.category.isnot(None)
            ).scalar() or 0
            return {
                "total_medicines": int(total),
                "total_manufacturers": int(manufacturers),
                "total_categories": int(categories),
            }
        finally:
            db.close()


def _to_view(medicine: Medicine) -> RecordView:
    return RecordView(
        id=medicine.id,
        name=medicine.name,
        manufacturer_name=medicine.manufacturer_name,
        brand_name=medicine.brand_name,
        short_composition=medicine.short_composition,
        category=medicine.category,
        rx_required=medicine.rx_required,
    )


def _escape_like(value: str) -> str:
    return (
        value.replace(_LIKE_ESCAPE, _LIKE_ESCAPE * 2)
        .replace("%", f"{_LIKE_ESCAPE}%")
        .replace("_", f"{_LIKE_ESCAPE}_")
    )


def _fts_match_expression(query: str) -> str:
    # Quoted terms are AND-ed by FTS5 and cannot be read as query operators.
    terms = _TOKEN_PATTERN.findall(query.lower())
    return " ".join(f'"{term}"' for term in terms)


def _bigrams(query: str) -> List[str]:
    compact = "".join(query.split())
    return sorted({compact[i : i + 2] for i in range(len(compact) - 1)})
