import logging
from typing import Generator

from sqlalchemy import create_engine, event, text
from sqlalchemy.engine import Connection, Engine
from sqlalchemy.exc import OperationalError
from sqlalchemy.orm import DeclarativeBase, Session, sessionmaker
from sqlalchemy.pool import StaticPool

from config import settings
from models.sqlite_config import (
    apply_sqlite_pragmas,
    is_memory_url,
    is_sqlite_url,
    sqlite_connect_args,
)

logger = logging.getLogger(__name__)

FULLTEXT_TABLE = "medicines_fts"


class Base(DeclarativeBase):
    pass


def _engine_args(url: str) -> dict:
    args = {
        "connect_args": sqlite_connect_args(url),
        "echo": settings.debug,
    }
    if is_memory_url(url):
        args["poolclass"] = StaticPool
    return args


engine = create_engine(settings.database_url, **_engine_args(settings.database_url))

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


def _apply_sqlite_pragmas(dbapi_connection, _):
    apply_sqlite_pragmas(dbapi_connection, memory=is_memory_url(settings.database_url))


if is_sqlite_url(settings.database_url):
    event.listen(engine, "connect", _apply_sqlite_pragmas)


def get_db() -> Generator[Session, None, None]:
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def create_fulltext_index(connection: Connection) -> bool:
    if connection.dialect.name != "sqlite":
        logger.info("Full-text index requires SQLite FTS5; long queries will use substring fallback")
        return False
    try:
        connection.execute(
            text(
                f"""
                CREATE VIRTUAL TABLE IF NOT EXISTS {FULLTEXT_TABLE} USING fts5(
                    medicine_id UNINDEXED,
                    name,
                    brand_name,
                    manufacturer_name,
                    tokenize = 'unicode61'
                )
                """
            )
        )
    except OperationalError as e:
        logger.warning(f"Could not create full-text index: {e}")
        return False
    return True


def rebuild_fulltext_index(connection: Connection) -> int:
    if not create_fulltext_index(connection):
        return 0
    connection.execute(text(f"DELETE FROM {FULLTEXT_TABLE}"))
    result = connection.execute(
        text(
            f"""
            INSERT INTO {FULLTEXT_TABLE} (medicine_id, name, brand_name, manufacturer_name)
            SELECT id, name, COALESCE(brand_name, ''), manufacturer_name FROM medicines
            """
        )
    )
    return result.rowcount or 0


def init_db(bind: Engine | None = None) -> None:
    target = bind or engine
    Base.metadata.create_all(bind=target)
    with target.begin() as connection:
        create_fulltext_index(connection)
