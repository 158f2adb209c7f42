"""Shared test fixtures."""

from __future__ import annotations

import sqlite3
from datetime import datetime, timezone
from unittest.mock import MagicMock

import pytest

from triagedesk.ai.prompts import EXTRACTION_SYSTEM, PRIORITY_SYSTEM, SENTIMENT_SYSTEM
from triagedesk.classifier import Classifier
from triagedesk.database import init_db
from triagedesk.models import InboundEmail
from triagedesk.pipeline import EmailLocks, Pipeline
from triagedesk.storage import Storage

SENTIMENT_RESULT = {"sentiment": "negative", "confidence": 0.9, "reasoning": "Customer is upset"}
PRIORITY_RESULT = {
    "priority": "urgent",
    "confidence": 0.95,
    "keywords": ["cannot access", "critical"],
    "reasoning": "Service outage",
}
EXTRACTION_RESULT = {
    "customerName": "Lisa Brown",
    "customerId": None,
    "phone": None,
    "email": None,
    "company": "Agency Net",
    "issueType": "Service Outage",
    "product": "Platform",
    "urgencyKeywords": ["immediate"],
}
REPLY_RESULT = {
    "content": "Hi Lisa,\n\nWe are investigating the outage now.\n\nBest,\nSupport",
    "tone": "empathetic",
    "confidence": 0.87,
    "reasoning": "Acknowledge and escalate",
}


def fake_complete(prompt, model, system="", response_format=None):
    """Route a provider call to a canned result based on its system prompt."""
    if system == SENTIMENT_SYSTEM:
        return dict(SENTIMENT_RESULT)
    if system == PRIORITY_SYSTEM:
        return dict(PRIORITY_RESULT)
    if system == EXTRACTION_SYSTEM:
        return dict(EXTRACTION_RESULT)
    return dict(REPLY_RESULT)


@pytest.fixture
def db():
    """In-memory SQLite database with schema initialized."""
    conn = sqlite3.connect(":memory:", check_same_thread=False)
    conn.row_factory = sqlite3.Row
    conn.execute("PRAGMA foreign_keys=ON")
    init_db(conn)
    yield conn
    conn.close()


@pytest.fixture
def storage(db):
    return Storage(db)


@pytest.fixture
def mock_provider():
    """AI provider returning well-formed JSON for every capability."""
    provider = MagicMock()
    provider.complete.side_effect = fake_complete
    return provider


@pytest.fixture
def failing_provider():
    """AI provider whose every call fails at the transport level."""
    provider = MagicMock()
    provider.complete.side_effect = ConnectionError("AI service unreachable")
    return provider


@pytest.fixture
def classifier(mock_provider):
    return Classifier(mock_provider, "test-model")


@pytest.fixture
def pipeline(storage, classifier):
    return Pipeline(storage, classifier, locks=EmailLocks())


@pytest.fixture
def make_inbound():
    """Factory for InboundEmail with overridable fields."""
    counter = {"n": 0}

    def _make(**overrides) -> InboundEmail:
        counter["n"] += 1
        fields = {
            "message_id": f"msg-{counter['n']:03d}",
            "subject": "Question about my invoice",
            "sender": "customer@example.com",
            "body": "Could you send me a copy of last month's invoice?",
            "received_at": datetime.now(timezone.utc),
        }
        fields.update(overrides)
        return InboundEmail(**fields)

    return _make


def store_email(storage: Storage, inbound: InboundEmail, **overrides):
    """Insert an email directly, bypassing the AI pipeline."""
    from triagedesk.ai.schemas import ExtractedInfo

    kwargs = {
        "sentiment": "neutral",
        "priority": "normal",
        "extracted_info": ExtractedInfo(),
        "tags": [],
        "is_processed": True,
    }
    kwargs.update(overrides)
    return storage.create_email(inbound, **kwargs)
