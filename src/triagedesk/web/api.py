"""REST API routes for emails, responses, batch jobs, analytics and Gmail auth.

Handlers are plain ``def`` functions because storage and AI calls block;
FastAPI runs them in its threadpool. JSON keys are camelCase.
"""

from __future__ import annotations

from datetime import date

from dateutil import parser as date_parser
from fastapi import APIRouter, Depends, Query, Request
from pydantic import BaseModel

from triagedesk.analytics import compute_daily_analytics
from triagedesk.errors import InvalidInputError, NotFoundError, PersistenceUnavailableError
from triagedesk.log import get_logger
from triagedesk.mailbox.auth import exchange_code, get_auth_url
from triagedesk.models import DailyAnalytics, Email, Priority, Response, Sentiment
from triagedesk.services import Services
from triagedesk.storage import utcnow

logger = get_logger(__name__)

router = APIRouter(tags=["api"])


def get_services(request: Request):
    """Yield a Services graph from the app's factory for the duration of a request."""
    with request.app.state.services_factory() as services:
        yield services


def _ts(value) -> str | None:
    return value.isoformat() if value else None


def email_to_dict(email: Email) -> dict:
    return {
        "id": email.id,
        "messageId": email.message_id,
        "subject": email.subject,
        "sender": email.sender,
        "body": email.body,
        "receivedAt": _ts(email.received_at),
        "priority": email.priority,
        "sentiment": email.sentiment,
        "isProcessed": email.is_processed,
        "isResolved": email.is_resolved,
        "extractedInfo": email.extracted_info.to_json_dict(),
        "tags": email.tags,
        "createdAt": _ts(email.created_at),
        "updatedAt": _ts(email.updated_at),
    }


def response_to_dict(response: Response) -> dict:
    return {
        "id": response.id,
        "emailId": response.email_id,
        "content": response.content,
        "isSent": response.is_sent,
        "sentAt": _ts(response.sent_at),
        "generatedAt": _ts(response.generated_at),
        "model": response.model,
        "confidence": response.confidence,
    }


def analytics_to_dict(analytics: DailyAnalytics) -> dict:
    return {
        "date": analytics.date.isoformat(),
        "totalEmails": analytics.total_emails,
        "resolvedEmails": analytics.resolved_emails,
        "pendingEmails": analytics.pending_emails,
        "urgentEmails": analytics.urgent_emails,
        "avgResponseTime": analytics.avg_response_time,
        "sentimentBreakdown": analytics.sentiment_breakdown,
    }


def _parse_date(value: str, name: str) -> date:
    try:
        return date_parser.parse(value).date()
    except (ValueError, OverflowError) as e:
        raise InvalidInputError(f"Invalid {name}: {value!r}") from e


def _require_email(services: Services, email_id: str) -> Email:
    email = services.storage.get_email(email_id)
    if email is None:
        raise NotFoundError("Email not found")
    return email


# --- emails ---

@router.get("/emails")
def list_emails(
    priority: str | None = None,
    sentiment: str | None = None,
    limit: int | None = Query(default=None),
    services: Services = Depends(get_services),
):
    """List emails filtered by priority or sentiment, else the most recent ones."""
    if limit is not None and limit < 1:
        raise InvalidInputError("limit must be a positive integer")

    storage = services.storage
    if priority:
        if priority not in {p.value for p in Priority}:
            raise InvalidInputError(f"Unknown priority: {priority!r}")
        emails = storage.get_emails_by_priority(priority, limit or -1)
    elif sentiment:
        if sentiment not in {s.value for s in Sentiment}:
            raise InvalidInputError(f"Unknown sentiment: {sentiment!r}")
        emails = storage.get_emails_by_sentiment(sentiment, limit or -1)
    else:
        emails = storage.list_emails(limit or services.config.pipeline.default_list_limit)
    return [email_to_dict(e) for e in emails]


@router.get("/emails/{email_id}")
def get_email(email_id: str, services: Services = Depends(get_services)):
    return email_to_dict(_require_email(services, email_id))


@router.get("/emails/{email_id}/responses")
def list_responses(email_id: str, services: Services = Depends(get_services)):
    """Responses for an email, newest first."""
    _require_email(services, email_id)
    return [response_to_dict(r) for r in services.storage.get_responses(email_id)]


@router.post("/emails/{email_id}/responses")
def regenerate_response(email_id: str, services: Services = Depends(get_services)):
    content = services.pipeline.generate_new_response(email_id)
    return {"content": content}


@router.post("/emails/{email_id}/resolve")
def resolve_email(email_id: str, services: Services = Depends(get_services)):
    services.storage.mark_email_resolved(email_id)
    return {"success": True}


@router.post("/responses/{response_id}/send")
def send_response(response_id: str, services: Services = Depends(get_services)):
    """Mark a response sent and resolve its email. No mail is actually sent."""
    logger.info("Simulating email send for response %s", response_id)
    response = services.storage.mark_response_sent(response_id)
    return {"success": True, "response": response_to_dict(response)}


# --- batch operations ---

@router.post("/sync")
def sync_emails(services: Services = Depends(get_services)):
    summary = services.sync_mailbox()
    return {
        "success": True,
        "message": f"Email sync completed: {summary.processed} new emails",
        "summary": summary.to_dict(),
    }


@router.post("/process-urgent")
def process_urgent(services: Services = Depends(get_services)):
    summary = services.process_urgent()
    return {
        "success": True,
        "message": f"Processed {summary.processed} urgent emails",
        "processedCount": summary.processed,
        "summary": summary.to_dict(),
    }


@router.post("/seed")
def seed(quick: bool = False, services: Services = Depends(get_services)):
    summary = services.seed(quick=quick)
    return {
        "success": True,
        "message": f"Successfully added {summary.processed} sample emails",
        "processedCount": summary.processed,
        "summary": summary.to_dict(),
    }


# --- analytics ---

@router.get("/analytics/today")
def analytics_today(services: Services = Depends(get_services)):
    """Today's stored rollup, or an all-zero row when none has been computed yet."""
    today = utcnow().date()
    analytics = services.storage.get_daily_analytics(today)
    if analytics is None:
        analytics = compute_daily_analytics(today, [])
    return analytics_to_dict(analytics)


@router.get("/analytics/range")
def analytics_range(
    startDate: str | None = None,  # noqa: N803
    endDate: str | None = None,  # noqa: N803
    services: Services = Depends(get_services),
):
    if not startDate or not endDate:
        raise InvalidInputError("Start date and end date required")
    start = _parse_date(startDate, "startDate")
    end = _parse_date(endDate, "endDate")
    if start > end:
        raise InvalidInputError("startDate must not be after endDate")
    return [analytics_to_dict(a) for a in services.storage.get_analytics_range(start, end)]


# --- gmail auth ---

class GmailCallback(BaseModel):
    code: str | None = None


@router.get("/auth/gmail")
def gmail_auth_url(services: Services = Depends(get_services)):
    return {"authUrl": get_auth_url(services.config)}


@router.post("/auth/gmail/callback")
def gmail_callback(body: GmailCallback, services: Services = Depends(get_services)):
    if not body.code:
        raise InvalidInputError("Authorization code required")
    tokens = exchange_code(services.config, body.code)
    return {"success": True, "tokens": tokens}


@router.get("/health")
def health(services: Services = Depends(get_services)):
    try:
        services.storage.ping()
    except PersistenceUnavailableError:
        return {"status": "degraded", "database": False}
    return {"status": "ok", "database": True}
