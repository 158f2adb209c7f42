"""Static knowledge base consulted when drafting replies."""

from __future__ import annotations

import re
from dataclasses import dataclass, field

import yaml

from triagedesk.log import get_logger

logger = get_logger(__name__)


@dataclass
class KnowledgeEntry:
    keywords: list[str]
    content: str


DEFAULT_KNOWLEDGE_BASE: dict[str, KnowledgeEntry] = {
    "billing": KnowledgeEntry(
        keywords=["billing", "invoice", "charge", "charged", "payment", "refund", "subscription"],
        content=(
            "Duplicate or incorrect charges are refunded to the original payment method "
            "within 5-7 business days once confirmed. Invoices are available under "
            "Settings > Billing. Ask for the transaction IDs if the customer has not "
            "provided them."
        ),
    ),
    "technical": KnowledgeEntry(
        keywords=["error", "bug", "crash", "technical", "not working", "broken", "failing"],
        content=(
            "Ask for the exact error message, the time it occurred and the steps to "
            "reproduce. Check status.example.com for known incidents. Engineering "
            "triages confirmed bugs within one business day."
        ),
    ),
    "account-access": KnowledgeEntry(
        keywords=["login", "log in", "password", "reset", "locked", "access", "account"],
        content=(
            "Password reset emails expire after 60 minutes and can land in spam. Accounts "
            "lock for 30 minutes after 5 failed attempts. Support can trigger a manual "
            "reset after verifying the account owner's email address."
        ),
    ),
    "integration": KnowledgeEntry(
        keywords=["api", "integration", "webhook", "sdk", "endpoint", "token"],
        content=(
            "API documentation lives at docs.example.com/api. Rate limits are 1000 "
            "requests per minute per key. Webhook deliveries are retried for 24 hours. "
            "Rotating an API key invalidates the old key immediately."
        ),
    ),
    "pricing": KnowledgeEntry(
        keywords=["pricing", "price", "plan", "upgrade", "downgrade", "quote", "enterprise"],
        content=(
            "Plans can be upgraded at any time with prorated billing. Downgrades take "
            "effect at the next renewal. Enterprise quotes are handled by the sales team "
            "at sales@example.com."
        ),
    ),
    "infrastructure": KnowledgeEntry(
        keywords=["outage", "down", "downtime", "server", "latency", "unavailable"],
        content=(
            "Live incident updates are posted at status.example.com. Our uptime target is "
            "99.9% per month and SLA credits apply to eligible plans. Escalate confirmed "
            "outages to the on-call engineer immediately."
        ),
    ),
}


@dataclass
class KnowledgeBase:
    entries: dict[str, KnowledgeEntry] = field(
        default_factory=lambda: dict(DEFAULT_KNOWLEDGE_BASE)
    )

    def lookup(self, subject: str, body: str) -> dict[str, str]:
        """Return {category: content} for entries whose keywords appear in the text."""
        text = f"{subject} {body}".lower()
        matched: dict[str, str] = {}
        for category, entry in self.entries.items():
            for keyword in entry.keywords:
                if re.search(rf"\b{re.escape(keyword.lower())}\b", text):
                    matched[category] = entry.content
                    break
        return matched


def load_knowledge_base(path: str | None = None) -> KnowledgeBase:
    """Load knowledge-base entries from YAML, merged over the defaults.

    Gracefully returns the defaults if the file is not found. Expected layout::

        billing:
          keywords: [refund, invoice]
          content: "..."
    """
    if path is None:
        path = "knowledge_base.yaml"

    try:
        with open(path) as f:
            data = yaml.safe_load(f) or {}
    except FileNotFoundError:
        return KnowledgeBase()

    entries = dict(DEFAULT_KNOWLEDGE_BASE)
    for category, raw in data.items():
        if not isinstance(raw, dict) or not raw.get("content"):
            logger.warning("Ignoring knowledge base entry %r: missing content", category)
            continue
        keywords = raw.get("keywords") or []
        if not isinstance(keywords, list):
            keywords = []
        entries[str(category)] = KnowledgeEntry(
            keywords=[str(k) for k in keywords] or [str(category)],
            content=str(raw["content"]),
        )
    logger.info("Loaded %d knowledge base entries from %s", len(entries), path)
    return KnowledgeBase(entries=entries)
