"""Tests for the persistence gateway."""

import sqlite3
from datetime import date, datetime, timedelta, timezone

import pytest

from tests.conftest import store_email
from triagedesk.ai.schemas import ExtractedInfo
from triagedesk.errors import DuplicateEmailError, NotFoundError, PersistenceUnavailableError
from triagedesk.models import DailyAnalytics
from triagedesk.storage import Storage, format_ts


def test_create_and_get_email_round_trips_fields(storage, make_inbound):
    info = ExtractedInfo(customer_name="Ann", issue_type="Billing", urgency_keywords=["asap"])
    email = store_email(
        storage, make_inbound(), sentiment="negative", priority="urgent",
        extracted_info=info, tags=["billing"],
    )

    loaded = storage.get_email(email.id)
    assert loaded.priority == "urgent"
    assert loaded.sentiment == "negative"
    assert loaded.is_processed is True
    assert loaded.is_resolved is False
    assert loaded.extracted_info.customer_name == "Ann"
    assert loaded.extracted_info.urgency_keywords == ["asap"]
    assert loaded.tags == ["billing"]
    assert loaded.received_at.tzinfo is not None


def test_extracted_info_stored_with_camel_case_keys(storage, db, make_inbound):
    email = store_email(storage, make_inbound(), extracted_info=ExtractedInfo(customer_id="C-1"))
    raw = db.execute("SELECT extracted_info FROM emails WHERE id = ?", (email.id,)).fetchone()[0]
    assert '"customerId": "C-1"' in raw
    assert "customer_id" not in raw


def test_duplicate_message_id_raises(storage, make_inbound):
    store_email(storage, make_inbound(message_id="dup"))
    with pytest.raises(DuplicateEmailError) as exc:
        store_email(storage, make_inbound(message_id="dup"))
    assert exc.value.message_id == "dup"


def test_get_email_by_message_id(storage, make_inbound):
    email = store_email(storage, make_inbound(message_id="gmail-1"))
    assert storage.get_email_by_message_id("gmail-1").id == email.id
    assert storage.get_email_by_message_id("missing") is None


def test_list_emails_newest_first_with_limit(storage, make_inbound):
    now = datetime.now(timezone.utc)
    for hours in (3, 1, 2):
        store_email(storage, make_inbound(subject=f"h{hours}", received_at=now - timedelta(hours=hours)))

    emails = storage.list_emails(limit=2)
    assert [e.subject for e in emails] == ["h1", "h2"]


def test_filters_by_priority_and_sentiment(storage, make_inbound):
    store_email(storage, make_inbound(), priority="urgent", sentiment="negative")
    store_email(storage, make_inbound(), priority="normal", sentiment="positive")

    assert len(storage.get_emails_by_priority("urgent")) == 1
    assert len(storage.get_emails_by_sentiment("positive")) == 1
    assert storage.get_emails_by_sentiment("neutral") == []


def test_unprocessed_emails_urgent_first(storage, make_inbound):
    now = datetime.now(timezone.utc)
    store_email(storage, make_inbound(subject="normal-new", received_at=now), is_processed=False)
    store_email(
        storage, make_inbound(subject="urgent-old", received_at=now - timedelta(days=1)),
        priority="urgent", is_processed=False,
    )
    store_email(storage, make_inbound(subject="done"))

    assert [e.subject for e in storage.get_unprocessed_emails()] == ["urgent-old", "normal-new"]


def test_emails_received_between_is_half_open(storage, make_inbound):
    start = datetime(2024, 12, 6, tzinfo=timezone.utc)
    store_email(storage, make_inbound(subject="start", received_at=start))
    store_email(storage, make_inbound(subject="end", received_at=start + timedelta(days=1)))

    found = storage.get_emails_received_between(start, start + timedelta(days=1))
    assert [e.subject for e in found] == ["start"]


def test_naive_received_at_is_treated_as_utc(storage, make_inbound):
    email = store_email(storage, make_inbound(received_at=datetime(2024, 12, 6, 9, 15)))
    assert email.received_at == datetime(2024, 12, 6, 9, 15, tzinfo=timezone.utc)


def test_mark_email_resolved(storage, make_inbound):
    email = store_email(storage, make_inbound())
    storage.mark_email_resolved(email.id)
    assert storage.get_email(email.id).is_resolved is True


def test_mark_unknown_email_resolved_raises(storage):
    with pytest.raises(NotFoundError):
        storage.mark_email_resolved("nope")


def test_responses_newest_first(storage, make_inbound):
    email = store_email(storage, make_inbound())
    first = storage.create_response(email.id, "first", "m", 50)
    second = storage.create_response(email.id, "second", "m", 60)

    responses = storage.get_responses(email.id)
    assert [r.id for r in responses] == [second.id, first.id]
    assert storage.get_latest_response(email.id).id == second.id


def test_create_response_for_unknown_email_raises(storage, db):
    with pytest.raises(NotFoundError):
        storage.create_response("missing", "text", "m", 10)
    assert db.execute("SELECT COUNT(*) FROM responses").fetchone()[0] == 0


def test_mark_response_sent_resolves_email(storage, make_inbound):
    email = store_email(storage, make_inbound())
    response = storage.create_response(email.id, "reply", "m", 80)

    sent = storage.mark_response_sent(response.id)

    assert sent.is_sent is True
    assert sent.sent_at is not None
    assert storage.get_email(email.id).is_resolved is True


def test_mark_unknown_response_sent_raises(storage):
    with pytest.raises(NotFoundError):
        storage.mark_response_sent("nope")


def test_urgent_emails_without_response(storage, make_inbound):
    answered = store_email(storage, make_inbound(), priority="urgent")
    storage.create_response(answered.id, "done", "m", 90)
    resolved = store_email(storage, make_inbound(), priority="urgent")
    storage.mark_email_resolved(resolved.id)
    waiting = store_email(storage, make_inbound(), priority="urgent")
    store_email(storage, make_inbound(), priority="normal")

    assert [e.id for e in storage.urgent_emails_without_response(10)] == [waiting.id]


def test_first_response_times(storage, make_inbound):
    email = store_email(storage, make_inbound())
    first = storage.create_response(email.id, "a", "m", 1)
    storage.create_response(email.id, "b", "m", 1)

    times = storage.first_response_times([email.id, "other"])
    assert times == {email.id: first.generated_at}
    assert storage.first_response_times([]) == {}


def test_upsert_daily_analytics_overwrites(storage):
    day = date(2024, 12, 6)
    storage.upsert_daily_analytics(DailyAnalytics(date=day, total_emails=2, pending_emails=2))
    storage.upsert_daily_analytics(
        DailyAnalytics(date=day, total_emails=3, resolved_emails=1, pending_emails=2)
    )

    row = storage.get_daily_analytics(day)
    assert row.total_emails == 3
    assert row.resolved_emails == 1
    assert len(storage.get_analytics_range(day, day)) == 1


def test_analytics_range_inclusive_newest_first(storage):
    for d in (5, 6, 7, 8):
        storage.upsert_daily_analytics(DailyAnalytics(date=date(2024, 12, d)))

    rows = storage.get_analytics_range(date(2024, 12, 6), date(2024, 12, 7))
    assert [r.date.day for r in rows] == [7, 6]


def test_closed_connection_raises_persistence_error():
    conn = sqlite3.connect(":memory:")
    conn.close()
    storage = Storage(conn)
    with pytest.raises(PersistenceUnavailableError):
        storage.ping()


def test_format_ts_normalizes_offsets():
    eastern = timezone(timedelta(hours=-5))
    assert format_ts(datetime(2024, 1, 1, 7, 0, tzinfo=eastern)) == "2024-01-01T12:00:00.000000+00:00"
