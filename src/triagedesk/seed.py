"""Demo data: bundled sample emails and CSV imports."""

from __future__ import annotations

import csv
import hashlib
from datetime import datetime, timedelta
from pathlib import Path

from dateutil import parser as date_parser

from triagedesk.ai.schemas import ExtractedInfo
from triagedesk.classifier import keyword_priority, keyword_sentiment
from triagedesk.errors import DuplicateEmailError, InvalidInputError
from triagedesk.log import get_logger
from triagedesk.models import BatchSummary, InboundEmail, ItemResult, ItemStatus
from triagedesk.pipeline import Pipeline
from triagedesk.storage import Storage, format_ts, utcnow
from triagedesk.tags import derive_tags

logger = get_logger(__name__)

CSV_COLUMNS = ("sender", "subject", "body", "sent_date")

# Received times are relative to now so the current day's analytics have data.
SAMPLE_EMAILS = [
    {
        "sender": "john.doe@techcorp.com",
        "subject": "Password Reset Issue",
        "body": "I've been trying to reset my password for the past hour, but I'm not "
                "receiving the email. Can you help me with this?",
        "hours_ago": 1,
    },
    {
        "sender": "sarah.johnson@retailco.com",
        "subject": "Billing Inquiry - Double Charge",
        "body": "I was charged twice for my monthly subscription. Transaction IDs: "
                "TX123456 and TX123457. Please refund one of them.",
        "hours_ago": 3,
    },
    {
        "sender": "lisa.brown@agency.net",
        "subject": "URGENT: System Outage",
        "body": "Our entire team cannot access the platform. This is affecting our "
                "client deliverables. Need immediate assistance!",
        "hours_ago": 0.5,
    },
    {
        "sender": "dev.team@startupx.com",
        "subject": "Critical Bug - Payment Processing",
        "body": "Our payment processing is failing for all credit card transactions. "
                "Error code: CC_GATEWAY_ERROR. This is blocking our revenue!",
        "hours_ago": 5,
    },
    {
        "sender": "security@fintech.company",
        "subject": "URGENT: Potential Security Breach",
        "body": "We detected unusual API calls from unknown IP addresses. Possible "
                "security breach. Need immediate investigation!",
        "hours_ago": 2,
    },
    {
        "sender": "mike.chen@designhub.io",
        "subject": "Question about API integration",
        "body": "Hi team, we're planning to connect our CRM through your REST API. "
                "Is there a webhook for new ticket events? Thanks for the great docs!",
        "hours_ago": 26,
    },
    {
        "sender": "emma.wilson@edustart.org",
        "subject": "Thank you for the quick support",
        "body": "Just wanted to say thanks to your support team for resolving our "
                "login problem so fast. Really appreciate it.",
        "hours_ago": 30,
    },
    {
        "sender": "raj.patel@logistics.co",
        "subject": "Request: pricing for enterprise plan",
        "body": "We have 120 users and would like a quote for the enterprise plan. "
                "Could someone from sales reach out? Customer ID: CUST-88213.",
        "hours_ago": 50,
    },
]


def seed_message_id(sender: str, subject: str, body: str) -> str:
    """Deterministic id so identical rows collide on the unique message_id."""
    digest = hashlib.sha1(f"{sender}\n{subject}\n{body}".encode("utf-8")).hexdigest()
    return f"seed-{digest}"


def bundled_rows(now: datetime | None = None) -> list[dict]:
    """Bundled samples as CSV-shaped rows with absolute sent dates."""
    now = now or utcnow()
    return [
        {
            "sender": s["sender"],
            "subject": s["subject"],
            "body": s["body"],
            "sent_date": format_ts(now - timedelta(hours=s["hours_ago"])),
        }
        for s in SAMPLE_EMAILS
    ]


def load_csv_rows(path: str | Path) -> list[dict]:
    """Read seed rows from a CSV with a sender,subject,body,sent_date header."""
    with open(path, newline="", encoding="utf-8") as f:
        reader = csv.DictReader(f)
        missing = [c for c in CSV_COLUMNS if c not in (reader.fieldnames or [])]
        if missing:
            raise InvalidInputError(f"CSV {path} is missing columns: {', '.join(missing)}")
        rows = [dict(row) for row in reader]
    logger.info("Read %d rows from %s", len(rows), path)
    return rows


def row_to_inbound(row: dict) -> InboundEmail:
    """Convert a seed row; raises ValueError for blank fields or bad dates."""
    sender = (row.get("sender") or "").strip()
    subject = (row.get("subject") or "").strip()
    body = (row.get("body") or "").strip()
    sent_date = (row.get("sent_date") or "").strip()
    if not sender or not subject or not body or not sent_date:
        raise ValueError("row needs sender, subject, body and sent_date")
    return InboundEmail(
        message_id=seed_message_id(sender, subject, body),
        subject=subject,
        sender=sender,
        body=body,
        received_at=date_parser.parse(sent_date),
    )


def _row_key(row: dict) -> str:
    return (row.get("subject") or "").strip() or "<blank row>"


def seed_emails(pipeline: Pipeline, storage: Storage, rows: list[dict]) -> BatchSummary:
    """Run every row through the full AI pipeline.

    Aborts with PersistenceUnavailableError before touching any row if the
    database is unreachable; afterwards each row succeeds or fails on its own.
    """
    storage.ping()
    summary = BatchSummary()
    for row in rows:
        try:
            inbound = row_to_inbound(row)
        except (ValueError, OverflowError) as e:
            logger.error("Invalid seed row %r: %s", _row_key(row), e)
            summary.add(ItemResult(_row_key(row), ItemStatus.FAILED, detail=str(e)))
            continue
        try:
            summary.add(pipeline.process_new_email(inbound))
        except Exception as e:
            logger.exception("Failed to seed email %r", inbound.subject)
            summary.add(ItemResult(inbound.message_id, ItemStatus.FAILED, detail=str(e)))
    logger.info(
        "Seeded %d emails (%d skipped, %d failed)",
        summary.processed, summary.skipped, summary.failed,
    )
    return summary


def quick_seed(storage: Storage, rows: list[dict]) -> BatchSummary:
    """Store rows without AI: keyword-guessed priority and sentiment, unprocessed, no reply."""
    storage.ping()
    summary = BatchSummary()
    for row in rows:
        try:
            inbound = row_to_inbound(row)
        except (ValueError, OverflowError) as e:
            summary.add(ItemResult(_row_key(row), ItemStatus.FAILED, detail=str(e)))
            continue
        priority, _ = keyword_priority(inbound.subject, inbound.body)
        try:
            email = storage.create_email(
                inbound,
                sentiment=keyword_sentiment(inbound.body),
                priority=priority,
                extracted_info=ExtractedInfo(),
                tags=derive_tags(inbound.subject, inbound.body),
                is_processed=False,
            )
        except DuplicateEmailError:
            logger.info("Skipping duplicate email: %s", inbound.subject)
            summary.add(ItemResult(inbound.message_id, ItemStatus.SKIPPED, detail="already stored"))
            continue
        except Exception as e:
            logger.exception("Failed to add email %r", inbound.subject)
            summary.add(ItemResult(inbound.message_id, ItemStatus.FAILED, detail=str(e)))
            continue
        summary.add(ItemResult(inbound.message_id, ItemStatus.PROCESSED, email.id))
    return summary
