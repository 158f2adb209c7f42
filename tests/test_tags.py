"""Tests for tag derivation."""

from triagedesk.ai.schemas import ExtractedInfo
from triagedesk.tags import derive_tags, slugify


def test_urgent_subject_tags():
    tags = derive_tags("URGENT: system down", "We cannot access anything, this is critical")
    assert "urgent" in tags
    assert "account-access" in tags


def test_keyword_groups():
    tags = derive_tags(
        "Refund for subscription",
        "The API integration throws an error and the server had downtime. Please help.",
    )
    assert set(tags) == {
        "billing", "integration", "technical", "infrastructure", "support-request",
    }


def test_extracted_fields_are_slugified():
    info = ExtractedInfo(issue_type="Password  Reset", product="Mobile App")
    tags = derive_tags("Hello", "Just saying hi", info)
    assert tags == ["mobile-app", "password-reset"]


def test_output_is_deduplicated_and_deterministic():
    info = ExtractedInfo(issue_type="billing")
    first = derive_tags("Billing charge", "payment refund billing", info)
    second = derive_tags("Billing charge", "payment refund billing", info)
    assert first == second == ["billing"]


def test_no_matches():
    assert derive_tags("Hello", "Nice weather today") == []


def test_slugify():
    assert slugify("  Feature   Request ") == "feature-request"
