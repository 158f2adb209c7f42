"""SQLAlchemy engine for the review UI, bound to the same SQLite file as Storage."""

from __future__ import annotations

from pathlib import Path

from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine

from triagedesk.config import Config


def database_url(config: Config) -> str:
    return f"sqlite:///{Path(config.storage.sqlite_path).expanduser()}"


def _on_connect(dbapi_conn, connection_record):
    cursor = dbapi_conn.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.execute("PRAGMA busy_timeout=5000")
    cursor.close()


def make_engine(url: str) -> Engine:
    # Admin requests and API threads share the file; WAL is set by get_db.
    engine = create_engine(url, connect_args={"check_same_thread": False})
    event.listen(engine, "connect", _on_connect)
    return engine
