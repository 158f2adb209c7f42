"""Dataclasses mirroring DB tables for type safety."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime
from enum import Enum

from triagedesk.ai.schemas import ExtractedInfo


class Priority(str, Enum):
    URGENT = "urgent"
    NORMAL = "normal"


class Sentiment(str, Enum):
    POSITIVE = "positive"
    NEUTRAL = "neutral"
    NEGATIVE = "negative"


@dataclass
class InboundEmail:
    """Raw fields of an email as received from a mailbox or seed source."""

    message_id: str
    subject: str
    sender: str
    body: str
    received_at: datetime


@dataclass
class Email:
    id: str
    message_id: str
    subject: str
    sender: str
    body: str
    received_at: datetime
    priority: str = Priority.NORMAL.value
    sentiment: str = Sentiment.NEUTRAL.value
    is_processed: bool = False
    is_resolved: bool = False
    extracted_info: ExtractedInfo = field(default_factory=ExtractedInfo)
    tags: list[str] = field(default_factory=list)
    created_at: datetime | None = None
    updated_at: datetime | None = None


@dataclass
class Response:
    id: str
    email_id: str
    content: str
    model: str
    confidence: int = 0  # 0-100
    is_sent: bool = False
    sent_at: datetime | None = None
    generated_at: datetime | None = None


@dataclass
class DailyAnalytics:
    date: date
    total_emails: int = 0
    resolved_emails: int = 0
    pending_emails: int = 0
    urgent_emails: int = 0
    avg_response_time: int = 0  # minutes
    sentiment_breakdown: dict[str, int] = field(
        default_factory=lambda: {"positive": 0, "neutral": 0, "negative": 0}
    )


class ItemStatus(str, Enum):
    PROCESSED = "processed"
    SKIPPED = "skipped"
    FAILED = "failed"


@dataclass
class ItemResult:
    """Outcome of running one item through a batch operation."""

    key: str
    status: ItemStatus
    email_id: str | None = None
    detail: str = ""

    def to_dict(self) -> dict:
        return {
            "key": self.key,
            "status": self.status.value,
            "emailId": self.email_id,
            "detail": self.detail,
        }


@dataclass
class BatchSummary:
    results: list[ItemResult] = field(default_factory=list)

    def add(self, result: ItemResult) -> ItemResult:
        self.results.append(result)
        return result

    def _count(self, status: ItemStatus) -> int:
        return sum(1 for r in self.results if r.status == status)

    @property
    def processed(self) -> int:
        return self._count(ItemStatus.PROCESSED)

    @property
    def skipped(self) -> int:
        return self._count(ItemStatus.SKIPPED)

    @property
    def failed(self) -> int:
        return self._count(ItemStatus.FAILED)

    def to_dict(self) -> dict:
        return {
            "processed": self.processed,
            "skipped": self.skipped,
            "failed": self.failed,
            "items": [r.to_dict() for r in self.results],
        }
