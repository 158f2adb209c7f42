"""Pydantic schemas for structured AI results."""

from __future__ import annotations

import math
from typing import Annotated, Literal

from pydantic import BaseModel, BeforeValidator, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel


def _clamp_confidence(value) -> float:
    if value is None:
        return 0.0
    value = float(value)
    return max(0.0, min(1.0, value))


Confidence = Annotated[float, BeforeValidator(_clamp_confidence)]


def _normalize_label(value):
    return value.strip().lower() if isinstance(value, str) else value


# Models sometimes answer "Negative" or " URGENT"; labels compare lowercased.
Label = BeforeValidator(_normalize_label)


class SentimentAnalysis(BaseModel):
    sentiment: Annotated[Literal["positive", "negative", "neutral"], Label]
    confidence: Confidence = 0.0
    reasoning: str = "Unable to determine reasoning"


class PriorityAnalysis(BaseModel):
    priority: Annotated[Literal["urgent", "normal"], Label]
    confidence: Confidence = 0.0
    keywords: list[str] = Field(default_factory=list)
    reasoning: str = "Unable to determine reasoning"

    @field_validator("keywords", mode="before")
    @classmethod
    def keywords_as_list(cls, value):
        return value if isinstance(value, list) else []


class ExtractedInfo(BaseModel):
    """Optional customer/issue fields pulled from an email body.

    Serialized with camelCase keys (``customerName``, ``urgencyKeywords``)
    both in prompts and in the stored JSON column.
    """

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    customer_name: str | None = None
    customer_id: str | None = None
    phone: str | None = None
    email: str | None = None
    company: str | None = None
    issue_type: str | None = None
    product: str | None = None
    urgency_keywords: list[str] = Field(default_factory=list)

    @field_validator(
        "customer_name", "customer_id", "phone", "email",
        "company", "issue_type", "product",
        mode="before",
    )
    @classmethod
    def blank_to_none(cls, value):
        if value is None:
            return None
        value = str(value).strip()
        if not value or value.lower() in ("null", "none", "n/a"):
            return None
        return value

    @field_validator("urgency_keywords", mode="before")
    @classmethod
    def keywords_as_list(cls, value):
        if not isinstance(value, list):
            return []
        return [str(v) for v in value if v]

    def to_json_dict(self) -> dict:
        return self.model_dump(by_alias=True, exclude_none=True)


class DraftReply(BaseModel):
    content: str
    tone: str = "professional"
    confidence: Confidence = 0.0
    reasoning: str = "Standard response generated"

    @field_validator("content")
    @classmethod
    def content_not_empty(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("empty reply content")
        return value

    @property
    def confidence_percent(self) -> int:
        # half up: 0.125 is 13
        return math.floor(self.confidence * 100 + 0.5)
