"""Tests for the classifier and its fallbacks."""

from unittest.mock import MagicMock

import pytest

from triagedesk.ai.knowledge import KnowledgeBase
from triagedesk.ai.schemas import DraftReply, ExtractedInfo
from triagedesk.classifier import (
    FALLBACK_REPLY,
    Classifier,
    keyword_priority,
    keyword_sentiment,
)


def _provider_returning(result):
    provider = MagicMock()
    provider.complete.return_value = result
    return provider


class TestSuccessfulCalls:
    def test_sentiment(self, classifier):
        result = classifier.analyze_sentiment("I am very unhappy")
        assert result.sentiment == "negative"
        assert result.confidence == 0.9

    def test_priority(self, classifier):
        result = classifier.analyze_priority("Down", "We cannot access")
        assert result.priority == "urgent"
        assert result.keywords == ["cannot access", "critical"]

    def test_extraction(self, classifier):
        info = classifier.extract_info("Hi, Lisa here")
        assert info.customer_name == "Lisa Brown"
        assert info.customer_id is None
        assert info.urgency_keywords == ["immediate"]

    def test_reply(self, classifier):
        reply = classifier.draft_reply("Down", "help", "negative", ExtractedInfo())
        assert reply.content.startswith("Hi Lisa")
        assert reply.confidence_percent == 87

    def test_calls_request_json(self, classifier, mock_provider):
        classifier.analyze_sentiment("body")
        kwargs = mock_provider.complete.call_args.kwargs
        assert kwargs["response_format"] == "json"
        assert kwargs["model"] == "test-model"

    def test_body_is_truncated(self, mock_provider):
        classifier = Classifier(mock_provider, "m", max_body_chars=10)
        classifier.analyze_sentiment("x" * 50)
        prompt = mock_provider.complete.call_args.kwargs["prompt"]
        assert "x" * 10 in prompt
        assert "x" * 11 not in prompt


class TestFallbacks:
    @pytest.fixture
    def broken(self, failing_provider):
        return Classifier(failing_provider, "test-model")

    def test_sentiment_fallback(self, broken):
        result = broken.analyze_sentiment("anything")
        assert result.sentiment == "neutral"
        assert result.confidence == 0.0

    def test_priority_fallback_uses_keywords(self, broken):
        result = broken.analyze_priority("URGENT: system down", "We cannot access it. Critical!")
        assert result.priority == "urgent"
        assert result.confidence == 0.0
        assert {"urgent", "down", "cannot access", "critical"} <= set(result.keywords)

    def test_priority_fallback_normal(self, broken):
        result = broken.analyze_priority("Invoice copy", "Please send last month's invoice")
        assert result.priority == "normal"
        assert result.keywords == []

    def test_extraction_fallback(self, broken):
        info = broken.extract_info("anything")
        assert info == ExtractedInfo()

    def test_reply_fallback(self, broken):
        reply = broken.draft_reply("s", "b", "neutral", ExtractedInfo())
        assert reply.content == FALLBACK_REPLY
        assert reply.tone == "professional"
        assert reply.confidence_percent == 0

    def test_invalid_label_falls_back(self):
        classifier = Classifier(_provider_returning({"sentiment": "furious"}), "m")
        assert classifier.analyze_sentiment("x").sentiment == "neutral"

    def test_non_json_text_falls_back(self):
        classifier = Classifier(_provider_returning({"text": "I think it's urgent"}), "m")
        assert classifier.analyze_priority("hello", "hi").priority == "normal"

    def test_empty_reply_content_falls_back(self):
        classifier = Classifier(_provider_returning({"content": "   ", "confidence": 0.5}), "m")
        assert classifier.draft_reply("s", "b", "neutral", ExtractedInfo()).content == FALLBACK_REPLY


def test_confidence_is_clamped():
    classifier = Classifier(
        _provider_returning({"sentiment": "positive", "confidence": 7}), "m"
    )
    assert classifier.analyze_sentiment("x").confidence == 1.0


def test_labels_are_case_insensitive():
    sentiment = Classifier(_provider_returning({"sentiment": " Negative "}), "m")
    priority = Classifier(_provider_returning({"priority": "URGENT", "confidence": 0.8}), "m")

    assert sentiment.analyze_sentiment("x").sentiment == "negative"
    result = priority.analyze_priority("Invoice", "please resend")
    assert result.priority == "urgent"
    assert result.confidence == 0.8


@pytest.mark.parametrize(
    "confidence, percent", [(0.125, 13), (0.875, 88), (0.5, 50), (0.87, 87), (0.0, 0)]
)
def test_confidence_percent_rounds_half_up(confidence, percent):
    assert DraftReply(content="hi", confidence=confidence).confidence_percent == percent


def test_extraction_normalizes_blank_fields():
    classifier = Classifier(
        _provider_returning({"customerName": "", "phone": "null", "urgencyKeywords": None}), "m"
    )
    info = classifier.extract_info("x")
    assert info.customer_name is None
    assert info.phone is None
    assert info.urgency_keywords == []


def test_reply_prompt_includes_context_and_knowledge(mock_provider):
    classifier = Classifier(mock_provider, "m", knowledge_base=KnowledgeBase())
    info = ExtractedInfo(customer_name="Sam", customer_id="C-42")

    classifier.draft_reply("Double charge", "I was charged twice", "negative", info)

    system = mock_provider.complete.call_args.kwargs["system"]
    assert "frustrated" in system
    assert "Address the customer by name: Sam." in system
    assert "C-42" in system
    assert "[billing]" in system


def test_keyword_priority_respects_word_boundaries():
    assert keyword_priority("Download link", "where is the downloads page")[0] == "normal"
    assert keyword_priority("Site is down", "")[0] == "urgent"


def test_keyword_sentiment():
    assert keyword_sentiment("Thanks so much, I appreciate it") == "positive"
    assert keyword_sentiment("There is a problem with my order") == "negative"
    assert keyword_sentiment("Please send the report") == "neutral"
