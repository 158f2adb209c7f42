"""SQLite connections and the triage schema."""

from __future__ import annotations

import sqlite3
from pathlib import Path

from triagedesk.config import Config, load_config

_SCHEMA_PATH = Path(__file__).parent / "schema.sql"

TABLES = ["emails", "responses", "daily_analytics"]
SCHEMA_VERSION = 1


def _db_path(config: Config | None) -> Path:
    return Path((config or load_config()).storage.sqlite_path).expanduser()


def get_db(config: Config | None = None, db_path: str | None = None) -> sqlite3.Connection:
    """Open the triage database with sqlite3.Row rows, WAL and foreign keys.

    Connections are shared with FastAPI's threadpool, so same-thread
    checking is disabled.
    """
    path = db_path if db_path is not None else str(_db_path(config))
    conn = sqlite3.connect(path, timeout=10, check_same_thread=False)
    conn.row_factory = sqlite3.Row
    for pragma in ("journal_mode=WAL", "foreign_keys=ON", "busy_timeout=5000"):
        conn.execute(f"PRAGMA {pragma}")
    return conn


def init_db(conn: sqlite3.Connection) -> None:
    """Apply schema.sql (idempotent) and stamp the schema version."""
    conn.executescript(_SCHEMA_PATH.read_text())
    conn.execute(f"PRAGMA user_version={SCHEMA_VERSION}")


def reset_db(config: Config | None = None) -> sqlite3.Connection:
    """Delete the database file and its WAL sidecars, then recreate the schema."""
    path = _db_path(config)
    for name in (path.name, f"{path.name}-wal", f"{path.name}-shm"):
        path.with_name(name).unlink(missing_ok=True)

    conn = get_db(db_path=str(path))
    init_db(conn)
    return conn


def db_stats(conn: sqlite3.Connection) -> dict[str, int]:
    """Row count per table; -1 marks a table that does not exist."""
    present = {
        row[0] for row in conn.execute("SELECT name FROM sqlite_master WHERE type = 'table'")
    }
    return {
        table: conn.execute(f"SELECT COUNT(*) FROM {table}").fetchone()[0] if table in present else -1
        for table in TABLES
    }
