from models.database import (
    FULLTEXT_TABLE,
    Base,
    SessionLocal,
    create_fulltext_index,
    get_db,
    init_db,
    rebuild_fulltext_index,
)
from models.domain import Medicine

__all__ = [
    "FULLTEXT_TABLE",
    "Base",
    "SessionLocal",
    "create_fulltext_index",
    "get_db",
    "init_db",
    "rebuild_fulltext_index",
    "Medicine",
]
