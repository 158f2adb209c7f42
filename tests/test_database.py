"""Tests for database module."""

import sqlite3

import pytest

from triagedesk.config import Config, StorageConfig
from triagedesk.database import db_stats, get_db, init_db, reset_db


def test_init_db_creates_all_tables(db):
    stats = db_stats(db)
    for table in ("emails", "responses", "daily_analytics"):
        assert stats[table] == 0, f"Missing or non-empty table: {table}"


def test_init_db_is_idempotent(db):
    init_db(db)
    assert db_stats(db)["emails"] == 0


def test_message_id_is_unique(db):
    insert = """INSERT INTO emails (id, message_id, subject, sender, body, received_at,
                created_at, updated_at) VALUES (?, 'm1', 's', 'a@b.c', 'b', 't', 't', 't')"""
    db.execute(insert, ("e1",))
    with pytest.raises(sqlite3.IntegrityError):
        db.execute(insert, ("e2",))


def test_response_requires_existing_email(db):
    with pytest.raises(sqlite3.IntegrityError):
        db.execute(
            """INSERT INTO responses (id, email_id, content, generated_at, model)
               VALUES ('r1', 'missing', 'hi', 't', 'm')"""
        )


def test_reset_db_creates_fresh_file(tmp_path):
    config = Config(storage=StorageConfig(sqlite_path=str(tmp_path / "t.db")))
    conn = get_db(config)
    init_db(conn)
    conn.execute(
        """INSERT INTO emails (id, message_id, subject, sender, body, received_at,
           created_at, updated_at) VALUES ('e1', 'm1', 's', 'a', 'b', 't', 't', 't')"""
    )
    conn.commit()
    conn.close()

    conn = reset_db(config)
    assert db_stats(conn)["emails"] == 0
    conn.close()


def test_schema_version_is_stamped(db):
    assert db.execute("PRAGMA user_version").fetchone()[0] == 1


def test_stats_mark_missing_tables():
    conn = sqlite3.connect(":memory:")
    assert db_stats(conn) == {"emails": -1, "responses": -1, "daily_analytics": -1}
    conn.close()
