"""Persistence gateway over the SQLite schema.

All reads return the dataclasses from ``triagedesk.models``. Timestamps are
stored as UTC ISO-8601 strings with microseconds so that lexicographic order
matches chronological order; analytics dates are ``YYYY-MM-DD``.
"""

from __future__ import annotations

import json
import sqlite3
import uuid
from contextlib import contextmanager
from datetime import date, datetime, timezone

from triagedesk.ai.schemas import ExtractedInfo
from triagedesk.errors import DuplicateEmailError, NotFoundError, PersistenceUnavailableError
from triagedesk.log import get_logger
from triagedesk.models import DailyAnalytics, Email, InboundEmail, Response

logger = get_logger(__name__)


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def format_ts(value: datetime) -> str:
    """Normalize a datetime to a UTC ISO string. Naive values are taken as UTC."""
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc).isoformat(timespec="microseconds")


def parse_ts(value: str | None) -> datetime | None:
    if not value:
        return None
    parsed = datetime.fromisoformat(value)
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def _new_id() -> str:
    return str(uuid.uuid4())


def _row_to_email(row: sqlite3.Row) -> Email:
    return Email(
        id=row["id"],
        message_id=row["message_id"],
        subject=row["subject"],
        sender=row["sender"],
        body=row["body"],
        received_at=parse_ts(row["received_at"]),
        priority=row["priority"],
        sentiment=row["sentiment"],
        is_processed=bool(row["is_processed"]),
        is_resolved=bool(row["is_resolved"]),
        extracted_info=ExtractedInfo.model_validate(json.loads(row["extracted_info"] or "{}")),
        tags=json.loads(row["tags"] or "[]"),
        created_at=parse_ts(row["created_at"]),
        updated_at=parse_ts(row["updated_at"]),
    )


def _row_to_response(row: sqlite3.Row) -> Response:
    return Response(
        id=row["id"],
        email_id=row["email_id"],
        content=row["content"],
        model=row["model"],
        confidence=row["confidence"],
        is_sent=bool(row["is_sent"]),
        sent_at=parse_ts(row["sent_at"]),
        generated_at=parse_ts(row["generated_at"]),
    )


def _row_to_analytics(row: sqlite3.Row) -> DailyAnalytics:
    return DailyAnalytics(
        date=date.fromisoformat(row["date"]),
        total_emails=row["total_emails"],
        resolved_emails=row["resolved_emails"],
        pending_emails=row["pending_emails"],
        urgent_emails=row["urgent_emails"],
        avg_response_time=row["avg_response_time"],
        sentiment_breakdown=json.loads(row["sentiment_breakdown"]),
    )


class Storage:
    """Reads and writes emails, responses and daily analytics rows."""

    def __init__(self, conn: sqlite3.Connection):
        self.conn = conn

    @contextmanager
    def _guard(self, action: str):
        try:
            yield
        except sqlite3.IntegrityError:
            raise
        except sqlite3.DatabaseError as e:
            logger.error("Database error while %s: %s", action, e)
            raise PersistenceUnavailableError(f"Database unavailable while {action}") from e

    def _fetchone(self, action: str, sql: str, params: tuple = ()) -> sqlite3.Row | None:
        with self._guard(action):
            return self.conn.execute(sql, params).fetchone()

    def _fetchall(self, action: str, sql: str, params: tuple = ()) -> list[sqlite3.Row]:
        with self._guard(action):
            return self.conn.execute(sql, params).fetchall()

    def ping(self) -> bool:
        """Raise PersistenceUnavailableError unless the database answers."""
        self._fetchone("checking connectivity", "SELECT 1")
        return True

    # --- emails ---

    def create_email(
        self,
        inbound: InboundEmail,
        *,
        sentiment: str,
        priority: str,
        extracted_info: ExtractedInfo,
        tags: list[str],
        is_processed: bool = True,
    ) -> Email:
        """Insert a new email row.

        Raises DuplicateEmailError when the message_id is already stored.
        """
        now = format_ts(utcnow())
        email_id = _new_id()
        try:
            with self._guard("creating email"), self.conn:
                self.conn.execute(
                    """INSERT INTO emails
                       (id, message_id, subject, sender, body, received_at,
                        priority, sentiment, is_processed, is_resolved,
                        extracted_info, tags, created_at, updated_at)
                       VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, FALSE, ?, ?, ?, ?)""",
                    (
                        email_id, inbound.message_id, inbound.subject, inbound.sender,
                        inbound.body, format_ts(inbound.received_at),
                        priority, sentiment, is_processed,
                        json.dumps(extracted_info.to_json_dict()), json.dumps(tags),
                        now, now,
                    ),
                )
        except sqlite3.IntegrityError as e:
            raise DuplicateEmailError(inbound.message_id) from e
        return self.get_email(email_id)

    def get_email(self, email_id: str) -> Email | None:
        row = self._fetchone("reading email", "SELECT * FROM emails WHERE id = ?", (email_id,))
        return _row_to_email(row) if row else None

    def get_email_by_message_id(self, message_id: str) -> Email | None:
        row = self._fetchone(
            "reading email", "SELECT * FROM emails WHERE message_id = ?", (message_id,)
        )
        return _row_to_email(row) if row else None

    def list_emails(self, limit: int = 50) -> list[Email]:
        rows = self._fetchall(
            "listing emails",
            "SELECT * FROM emails ORDER BY received_at DESC, rowid DESC LIMIT ?",
            (limit,),
        )
        return [_row_to_email(r) for r in rows]

    def get_emails_by_priority(self, priority: str, limit: int = -1) -> list[Email]:
        rows = self._fetchall(
            "listing emails by priority",
            "SELECT * FROM emails WHERE priority = ? ORDER BY received_at DESC LIMIT ?",
            (priority, limit),
        )
        return [_row_to_email(r) for r in rows]

    def get_emails_by_sentiment(self, sentiment: str, limit: int = -1) -> list[Email]:
        rows = self._fetchall(
            "listing emails by sentiment",
            "SELECT * FROM emails WHERE sentiment = ? ORDER BY received_at DESC LIMIT ?",
            (sentiment, limit),
        )
        return [_row_to_email(r) for r in rows]

    def get_unprocessed_emails(self, limit: int = -1) -> list[Email]:
        """Unprocessed emails, urgent ones first, then newest first."""
        rows = self._fetchall(
            "listing unprocessed emails",
            """SELECT * FROM emails WHERE is_processed = FALSE
               ORDER BY (priority = 'urgent') DESC, received_at DESC LIMIT ?""",
            (limit,),
        )
        return [_row_to_email(r) for r in rows]

    def get_emails_received_between(self, start: datetime, end: datetime) -> list[Email]:
        """Emails with start <= received_at < end."""
        rows = self._fetchall(
            "listing emails by date",
            """SELECT * FROM emails WHERE received_at >= ? AND received_at < ?
               ORDER BY received_at""",
            (format_ts(start), format_ts(end)),
        )
        return [_row_to_email(r) for r in rows]

    def update_email_classification(
        self,
        email_id: str,
        *,
        sentiment: str,
        priority: str,
        extracted_info: ExtractedInfo,
        tags: list[str],
        is_processed: bool = True,
    ) -> Email:
        with self._guard("updating email"), self.conn:
            cur = self.conn.execute(
                """UPDATE emails SET sentiment = ?, priority = ?, extracted_info = ?,
                   tags = ?, is_processed = ?, updated_at = ? WHERE id = ?""",
                (
                    sentiment, priority, json.dumps(extracted_info.to_json_dict()),
                    json.dumps(tags), is_processed, format_ts(utcnow()), email_id,
                ),
            )
        if cur.rowcount == 0:
            raise NotFoundError(f"Email not found: {email_id}")
        return self.get_email(email_id)

    def mark_email_resolved(self, email_id: str) -> None:
        with self._guard("resolving email"), self.conn:
            cur = self.conn.execute(
                "UPDATE emails SET is_resolved = TRUE, updated_at = ? WHERE id = ?",
                (format_ts(utcnow()), email_id),
            )
        if cur.rowcount == 0:
            raise NotFoundError(f"Email not found: {email_id}")

    # --- responses ---

    def create_response(
        self, email_id: str, content: str, model: str, confidence: int
    ) -> Response:
        response_id = _new_id()
        try:
            with self._guard("creating response"), self.conn:
                self.conn.execute(
                    """INSERT INTO responses
                       (id, email_id, content, is_sent, generated_at, model, confidence)
                       VALUES (?, ?, ?, FALSE, ?, ?, ?)""",
                    (response_id, email_id, content, format_ts(utcnow()), model, confidence),
                )
        except sqlite3.IntegrityError as e:
            # only the email_id foreign key can fail here
            raise NotFoundError(f"Email not found: {email_id}") from e
        return self.get_response(response_id)

    def get_response(self, response_id: str) -> Response | None:
        row = self._fetchone(
            "reading response", "SELECT * FROM responses WHERE id = ?", (response_id,)
        )
        return _row_to_response(row) if row else None

    def get_responses(self, email_id: str) -> list[Response]:
        """All responses for an email, newest first."""
        rows = self._fetchall(
            "listing responses",
            """SELECT * FROM responses WHERE email_id = ?
               ORDER BY generated_at DESC, rowid DESC""",
            (email_id,),
        )
        return [_row_to_response(r) for r in rows]

    def get_latest_response(self, email_id: str) -> Response | None:
        responses = self.get_responses(email_id)
        return responses[0] if responses else None

    def mark_response_sent(self, response_id: str) -> Response:
        """Mark a response sent and resolve its email in one transaction."""
        now = format_ts(utcnow())
        with self._guard("sending response"), self.conn:
            row = self.conn.execute(
                "SELECT email_id FROM responses WHERE id = ?", (response_id,)
            ).fetchone()
            if row is None:
                raise NotFoundError(f"Response not found: {response_id}")
            self.conn.execute(
                "UPDATE responses SET is_sent = TRUE, sent_at = ? WHERE id = ?",
                (now, response_id),
            )
            self.conn.execute(
                "UPDATE emails SET is_resolved = TRUE, updated_at = ? WHERE id = ?",
                (now, row["email_id"]),
            )
        return self.get_response(response_id)

    def urgent_emails_without_response(self, limit: int = 5) -> list[Email]:
        """Unresolved urgent emails that have no response yet, newest first."""
        rows = self._fetchall(
            "listing urgent emails",
            """SELECT e.* FROM emails e
               WHERE e.priority = 'urgent' AND e.is_resolved = FALSE
                 AND NOT EXISTS (SELECT 1 FROM responses r WHERE r.email_id = e.id)
               ORDER BY e.received_at DESC LIMIT ?""",
            (limit,),
        )
        return [_row_to_email(r) for r in rows]

    def first_response_times(self, email_ids: list[str]) -> dict[str, datetime]:
        """Map email id -> generated_at of its earliest response."""
        if not email_ids:
            return {}
        placeholders = ", ".join("?" for _ in email_ids)
        rows = self._fetchall(
            "reading response times",
            f"""SELECT email_id, MIN(generated_at) AS first_at FROM responses
                WHERE email_id IN ({placeholders}) GROUP BY email_id""",
            tuple(email_ids),
        )
        return {r["email_id"]: parse_ts(r["first_at"]) for r in rows}

    # --- analytics ---

    def upsert_daily_analytics(self, analytics: DailyAnalytics) -> DailyAnalytics:
        with self._guard("saving analytics"), self.conn:
            self.conn.execute(
                """INSERT INTO daily_analytics
                   (id, date, total_emails, resolved_emails, pending_emails,
                    urgent_emails, avg_response_time, sentiment_breakdown, updated_at)
                   VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)
                   ON CONFLICT(date) DO UPDATE SET
                     total_emails = excluded.total_emails,
                     resolved_emails = excluded.resolved_emails,
                     pending_emails = excluded.pending_emails,
                     urgent_emails = excluded.urgent_emails,
                     avg_response_time = excluded.avg_response_time,
                     sentiment_breakdown = excluded.sentiment_breakdown,
                     updated_at = excluded.updated_at""",
                (
                    _new_id(), analytics.date.isoformat(), analytics.total_emails,
                    analytics.resolved_emails, analytics.pending_emails,
                    analytics.urgent_emails, analytics.avg_response_time,
                    json.dumps(analytics.sentiment_breakdown), format_ts(utcnow()),
                ),
            )
        return self.get_daily_analytics(analytics.date)

    def get_daily_analytics(self, day: date) -> DailyAnalytics | None:
        row = self._fetchone(
            "reading analytics",
            "SELECT * FROM daily_analytics WHERE date = ?",
            (day.isoformat(),),
        )
        return _row_to_analytics(row) if row else None

    def get_analytics_range(self, start: date, end: date) -> list[DailyAnalytics]:
        """Rows with start <= date <= end, newest first."""
        rows = self._fetchall(
            "reading analytics range",
            """SELECT * FROM daily_analytics WHERE date >= ? AND date <= ?
               ORDER BY date DESC""",
            (start.isoformat(), end.isoformat()),
        )
        return [_row_to_analytics(r) for r in rows]
