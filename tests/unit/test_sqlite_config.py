import sqlite3

from sqlalchemy import create_engine, inspect

from models import FULLTEXT_TABLE, create_fulltext_index, init_db
from models.sqlite_config import (
    apply_sqlite_pragmas,
    is_memory_url,
    is_sqlite_url,
    sqlite_connect_args,
)


def test_apply_sqlite_pragmas_sets_values(tmp_path):
    db_path = tmp_path / "test.db"
    connection = sqlite3.connect(db_path)
    apply_sqlite_pragmas(connection)
    journal = connection.execute("PRAGMA journal_mode").fetchone()[0].lower()
    busy = connection.execute("PRAGMA busy_timeout").fetchone()[0]
    synchronous = connection.execute("PRAGMA synchronous").fetchone()[0]
    connection.close()
    assert journal == "wal"
    assert busy == 5000
    assert synchronous == 1


def test_apply_sqlite_pragmas_in_memory_keeps_journal():
    connection = sqlite3.connect(":memory:")
    apply_sqlite_pragmas(connection, memory=True)
    journal = connection.execute("PRAGMA journal_mode").fetchone()[0].lower()
    busy = connection.execute("PRAGMA busy_timeout").fetchone()[0]
    connection.close()
    assert journal == "memory"
    assert busy == 5000


def test_url_helpers():
    assert is_sqlite_url("sqlite:///./medscribe.db")
    assert not is_sqlite_url("postgresql://localhost/medscribe")
    assert is_memory_url("sqlite:///:memory:")
    assert is_memory_url("sqlite://")
    assert not is_memory_url("sqlite:///./medscribe.db")
    assert sqlite_connect_args("postgresql://localhost/medscribe") == {}
    assert sqlite_connect_args("sqlite://")["check_same_thread"] is False


def test_init_db_creates_tables(tmp_path):
    engine = create_engine(f"sqlite:///{tmp_path / 'catalog.db'}")
    init_db(engine)
    with engine.begin() as connection:
        fts_enabled = create_fulltext_index(connection)

    tables = set(inspect(engine).get_table_names())
    engine.dispose()

    assert "medicines" in tables
    assert (FULLTEXT_TABLE in tables) is fts_enabled
