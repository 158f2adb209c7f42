"""Starlette-Admin review UI over emails, responses and daily analytics."""

from __future__ import annotations

from starlette_admin import EnumField
from starlette_admin.contrib.sqla import Admin, ModelView

from triagedesk.models import Priority, Sentiment
from triagedesk.web.models import DailyAnalytics, Email, Response


class ReviewView(ModelView):
    """Rows are created by the pipeline only; reviewers may edit but never add or delete."""

    page_size = 25

    def can_create(self, request) -> bool:
        return False

    def can_delete(self, request) -> bool:
        return False


class EmailView(ReviewView):
    fields = [
        "id", "subject", "sender", "received_at",
        EnumField("priority", choices=[(p.value, p.value.title()) for p in Priority]),
        EnumField("sentiment", choices=[(s.value, s.value.title()) for s in Sentiment]),
        "is_processed", "is_resolved", "tags", "extracted_info", "body",
        "message_id", "created_at", "updated_at",
    ]
    exclude_fields_from_list = ["body", "extracted_info", "message_id", "created_at", "updated_at"]
    # Storage parses these as ISO timestamps and JSON; free-text edits would break reads.
    exclude_fields_from_edit = [
        "id", "message_id", "subject", "sender", "body", "received_at",
        "is_processed", "tags", "extracted_info", "created_at", "updated_at",
    ]
    searchable_fields = ["subject", "sender", "priority", "sentiment", "tags"]
    sortable_fields = ["received_at", "priority", "sentiment", "is_resolved"]
    fields_default_sort = [("received_at", True)]


class ResponseView(ReviewView):
    fields = ["id", "email", "content", "confidence", "model", "is_sent", "sent_at", "generated_at"]
    exclude_fields_from_list = ["content"]
    # Sending goes through the API so sent_at and the email's resolution stay in step.
    exclude_fields_from_edit = [
        "id", "email", "confidence", "model", "is_sent", "sent_at", "generated_at",
    ]
    searchable_fields = ["content", "model"]
    sortable_fields = ["generated_at", "confidence", "is_sent"]
    fields_default_sort = [("generated_at", True)]


class DailyAnalyticsView(ReviewView):
    page_size = 30
    fields = [
        "date", "total_emails", "resolved_emails", "pending_emails",
        "urgent_emails", "avg_response_time", "sentiment_breakdown", "updated_at",
    ]
    sortable_fields = ["date", "total_emails", "urgent_emails"]
    fields_default_sort = [("date", True)]

    # Rollups are recomputed from emails, so they are read-only here.
    def can_edit(self, request) -> bool:
        return False


def create_admin(engine) -> Admin:
    admin = Admin(engine, title="TriageDesk", base_url="/admin")
    admin.add_view(EmailView(Email, icon="fa fa-envelope", label="Emails"))
    admin.add_view(ResponseView(Response, icon="fa fa-reply", label="Responses"))
    admin.add_view(DailyAnalyticsView(DailyAnalytics, icon="fa fa-chart-line", label="Daily Analytics"))
    return admin
