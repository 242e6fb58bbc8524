"""
Database connection, transactions and initialization.
"""
from __future__ import annotations

import logging
import sqlite3
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator

from league_backend.config import env_db_path, project_root

from .schema import all_schema_sql

logger = logging.getLogger(__name__)


# Default DB path (project root / data / league.db)
def _default_db_path() -> Path:
    return project_root() / "data" / "league.db"


_db_path: Path | None = None


def set_db_path(path: str | Path) -> None:
    """Set the database path. Call before first get_connection if not using default."""
    global _db_path
    _db_path = Path(path)


def get_db_path() -> Path:
    """Return the current database path: set_db_path, then LEAGUE_DB_PATH, then the default."""
    if _db_path is not None:
        return _db_path
    return env_db_path() or _default_db_path()


def get_connection(db_path: str | Path | None = None) -> sqlite3.Connection:
    """
    Return a new SQLite connection.
    Use as context manager or ensure close() is called.
    """
    path = Path(db_path) if db_path else get_db_path()
    path.parent.mkdir(parents=True, exist_ok=True)
    conn = sqlite3.connect(str(path))
    conn.row_factory = sqlite3.Row
    conn.execute("PRAGMA foreign_keys = ON")
    return conn


@contextmanager
def transaction(conn: sqlite3.Connection) -> Iterator[sqlite3.Connection]:
    """
    One write transaction. BEGIN IMMEDIATE takes the write lock up front so
    concurrent rank read/modify/write sequences on the same teams serialize.
    Commits on normal exit, rolls back on any exception.
    """
    conn.execute("BEGIN IMMEDIATE")
    try:
        yield conn
    except BaseException:
        conn.rollback()
        raise
    conn.commit()


def init_db(db_path: str | Path | None = None, seed_demo: bool = False) -> None:
    """
    Create or ensure all tables exist.
    If seed_demo is set and the database has no teams, load the demo league
    (uses league_backend.seed).
    """
    path = Path(db_path) if db_path else get_db_path()
    path.parent.mkdir(parents=True, exist_ok=True)
    conn = get_connection(path)
    try:
        conn.executescript(all_schema_sql())
        conn.commit()
        if seed_demo:
            from league_backend.seed import seed_demo_league
            seeded = seed_demo_league(conn)
            if seeded:
                logger.info("Seeded demo league into %s", path)
    finally:
        conn.close()
