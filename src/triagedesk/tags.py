"""Keyword-derived labels for filtering and search."""

from __future__ import annotations

import re

from triagedesk.ai.schemas import ExtractedInfo

# tag -> substrings that trigger it (matched against lowercased subject + body)
TAG_KEYWORDS: dict[str, list[str]] = {
    "urgent": ["urgent", "critical", "immediate"],
    "account-access": ["login", "access", "account"],
    "billing": ["billing", "payment", "charge", "refund", "subscription"],
    "technical": ["technical", "error", "bug", "not working", "not-working"],
    "integration": ["integration", "api"],
    "support-request": ["support", "help"],
    "infrastructure": ["downtime", "server"],
}


def slugify(value: str) -> str:
    """Lowercase and collapse whitespace runs to single hyphens."""
    return re.sub(r"\s+", "-", value.strip().lower())


def derive_tags(subject: str, body: str, info: ExtractedInfo | None = None) -> list[str]:
    """Return the sorted, deduplicated tag set for an email.

    Pure: the same inputs always produce the same list.
    """
    text = f"{subject} {body}".lower()
    tags = {tag for tag, words in TAG_KEYWORDS.items() if any(w in text for w in words)}

    if info is not None:
        for value in (info.issue_type, info.product):
            if value and slugify(value):
                tags.add(slugify(value))

    return sorted(tags)
