"""Daily rollups of email volume, resolution, urgency and sentiment."""

from __future__ import annotations

import math
from datetime import date, datetime, timedelta, timezone

from triagedesk.log import get_logger
from triagedesk.models import DailyAnalytics, Email
from triagedesk.storage import Storage, utcnow

logger = get_logger(__name__)

SENTIMENTS = ("positive", "neutral", "negative")


def _percent(count: int, total: int) -> int:
    if total == 0:
        return 0
    # half up: 1 of 8 is 13%
    return math.floor(count / total * 100 + 0.5)


def compute_daily_analytics(
    day: date,
    emails: list[Email],
    first_responses: dict[str, datetime] | None = None,
) -> DailyAnalytics:
    """Build the rollup for one day from that day's emails.

    ``first_responses`` maps email id to the time of its first drafted
    response; avg_response_time is the mean received-to-first-response delay
    in whole minutes over the emails that have one.
    """
    first_responses = first_responses or {}
    total = len(emails)
    resolved = sum(1 for e in emails if e.is_resolved)
    urgent = sum(1 for e in emails if e.priority == "urgent")

    counts = {s: 0 for s in SENTIMENTS}
    for e in emails:
        if e.sentiment in counts:
            counts[e.sentiment] += 1

    delays = [
        (first_responses[e.id] - e.received_at).total_seconds() / 60
        for e in emails
        if e.id in first_responses
    ]
    avg_minutes = math.floor(sum(delays) / len(delays) + 0.5) if delays else 0

    return DailyAnalytics(
        date=day,
        total_emails=total,
        resolved_emails=resolved,
        pending_emails=total - resolved,
        urgent_emails=urgent,
        avg_response_time=max(avg_minutes, 0),
        sentiment_breakdown={s: _percent(counts[s], total) for s in SENTIMENTS},
    )


def _emails_for_day(storage: Storage, day: date) -> list[Email]:
    start = datetime(day.year, day.month, day.day, tzinfo=timezone.utc)
    return storage.get_emails_received_between(start, start + timedelta(days=1))


def update_daily_analytics(storage: Storage, day: date | None = None) -> DailyAnalytics:
    """Recompute and upsert the rollup for `day` (today in UTC by default)."""
    day = day or utcnow().date()
    emails = _emails_for_day(storage, day)
    first = storage.first_response_times([e.id for e in emails])
    analytics = storage.upsert_daily_analytics(compute_daily_analytics(day, emails, first))
    logger.info("Updated analytics for %s: %d emails", day, analytics.total_emails)
    return analytics


def backfill_analytics(storage: Storage, days: int = 7) -> list[DailyAnalytics]:
    """Upsert rollups for the trailing `days` days, skipping days without email."""
    today = utcnow().date()
    written: list[DailyAnalytics] = []
    for offset in range(days):
        day = today - timedelta(days=offset)
        emails = _emails_for_day(storage, day)
        if not emails:
            continue
        first = storage.first_response_times([e.id for e in emails])
        written.append(storage.upsert_daily_analytics(compute_daily_analytics(day, emails, first)))
    logger.info("Backfilled analytics for %d of the last %d days", len(written), days)
    return written
