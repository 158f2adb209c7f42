"""AI classification, extraction and reply drafting with local fallbacks.

Every capability makes exactly one provider call. Any transport, parse or
validation failure is logged and replaced by a fixed fallback value so the
pipeline can always continue to persistence.
"""

from __future__ import annotations

import re

from triagedesk.ai.base import AIProvider
from triagedesk.ai.knowledge import KnowledgeBase
from triagedesk.ai.prompts import (
    EXTRACTION_PROMPT,
    EXTRACTION_SYSTEM,
    PRIORITY_PROMPT,
    PRIORITY_SYSTEM,
    REPLY_PROMPT,
    REPLY_SYSTEM,
    SENTIMENT_PROMPT,
    SENTIMENT_SYSTEM,
    build_context_prompt,
    build_knowledge_prompt,
)
from triagedesk.ai.schemas import DraftReply, ExtractedInfo, PriorityAnalysis, SentimentAnalysis
from triagedesk.log import get_logger

logger = get_logger(__name__)

FALLBACK_REPLY = (
    "Thank you for contacting us. We have received your message and will "
    "respond as soon as possible."
)

URGENT_KEYWORDS = [
    "urgent", "critical", "immediate", "immediately", "emergency", "asap",
    "cannot access", "can't access", "down", "outage", "broken",
    "not working", "security breach",
]

_POSITIVE_WORDS = ["thank", "thanks", "appreciate", "great", "love"]
_NEGATIVE_WORDS = ["problem", "issue", "error", "frustrated", "disappointed", "unacceptable"]


def _contains(text: str, phrase: str) -> bool:
    return re.search(rf"\b{re.escape(phrase)}\b", text) is not None


def keyword_priority(subject: str, body: str) -> tuple[str, list[str]]:
    """Heuristic urgency guess: any urgent keyword in subject+body means urgent."""
    text = f"{subject} {body}".lower()
    matched = [kw for kw in URGENT_KEYWORDS if _contains(text, kw)]
    return ("urgent" if matched else "normal"), matched


def keyword_sentiment(body: str) -> str:
    text = body.lower()
    if any(re.search(rf"\b{w}", text) for w in _POSITIVE_WORDS):
        return "positive"
    if any(re.search(rf"\b{w}", text) for w in _NEGATIVE_WORDS):
        return "negative"
    return "neutral"


class Classifier:
    """Wraps one AI provider and exposes the four triage capabilities."""

    def __init__(
        self,
        provider: AIProvider,
        model_name: str,
        knowledge_base: KnowledgeBase | None = None,
        max_body_chars: int = 4000,
    ):
        self.provider = provider
        self.model_name = model_name
        self.knowledge_base = knowledge_base or KnowledgeBase()
        self.max_body_chars = max_body_chars

    def _complete(self, prompt: str, system: str) -> dict:
        return self.provider.complete(
            prompt=prompt,
            model=self.model_name,
            system=system,
            response_format="json",
        )

    def _body(self, body: str) -> str:
        return (body or "")[: self.max_body_chars]

    def analyze_sentiment(self, body: str) -> SentimentAnalysis:
        try:
            result = self._complete(SENTIMENT_PROMPT.format(body=self._body(body)), SENTIMENT_SYSTEM)
            return SentimentAnalysis.model_validate(result)
        except Exception as e:
            logger.warning("Sentiment analysis failed, using neutral: %s", e)
            return SentimentAnalysis(
                sentiment="neutral",
                confidence=0.0,
                reasoning="Analysis failed due to API error",
            )

    def analyze_priority(self, subject: str, body: str) -> PriorityAnalysis:
        try:
            prompt = PRIORITY_PROMPT.format(subject=subject, body=self._body(body))
            result = self._complete(prompt, PRIORITY_SYSTEM)
            return PriorityAnalysis.model_validate(result)
        except Exception as e:
            priority, keywords = keyword_priority(subject, body)
            logger.warning("Priority analysis failed, keyword guess is %s: %s", priority, e)
            return PriorityAnalysis(
                priority=priority,
                confidence=0.0,
                keywords=keywords,
                reasoning="Keyword heuristic used because analysis failed",
            )

    def extract_info(self, body: str) -> ExtractedInfo:
        try:
            result = self._complete(EXTRACTION_PROMPT.format(body=self._body(body)), EXTRACTION_SYSTEM)
            return ExtractedInfo.model_validate(result)
        except Exception as e:
            logger.warning("Information extraction failed, using empty result: %s", e)
            return ExtractedInfo()

    def draft_reply(
        self, subject: str, body: str, sentiment: str, info: ExtractedInfo
    ) -> DraftReply:
        system = REPLY_SYSTEM.format(
            context=build_context_prompt(sentiment, info),
            knowledge=build_knowledge_prompt(self.knowledge_base.lookup(subject, body)),
        )
        try:
            result = self._complete(REPLY_PROMPT.format(subject=subject, body=self._body(body)), system)
            return DraftReply.model_validate(result)
        except Exception as e:
            logger.warning("Reply drafting failed, using fallback reply: %s", e)
            return DraftReply(
                content=FALLBACK_REPLY,
                tone="professional",
                confidence=0.0,
                reasoning="Fallback response due to API error",
            )
