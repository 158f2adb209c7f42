"""Prompt templates for classification, extraction and reply drafting."""

from __future__ import annotations

from triagedesk.ai.schemas import ExtractedInfo

SENTIMENT_SYSTEM = """You are a sentiment analysis expert. Analyze the sentiment of customer support emails.
Respond with JSON in this exact format: {
  "sentiment": "positive" | "negative" | "neutral",
  "confidence": number between 0 and 1,
  "reasoning": "brief explanation of why you classified it this way"
}"""

SENTIMENT_PROMPT = """Analyze the sentiment of this email:

{body}"""

PRIORITY_SYSTEM = """You are a priority classification expert for customer support emails.
Classify emails as "urgent" or "normal" based on content and urgency indicators.
Urgency is a judgment about business impact, not a keyword match, but these words
are strong signals: "immediately", "critical", "cannot access", "down", "broken",
"emergency", "asap", "urgent", "outage", "failed", "not working".

Respond with JSON in this exact format: {
  "priority": "urgent" | "normal",
  "confidence": number between 0 and 1,
  "keywords": ["array", "of", "detected", "urgency", "keywords"],
  "reasoning": "brief explanation of classification"
}"""

PRIORITY_PROMPT = """Subject: {subject}

Content: {body}"""

EXTRACTION_SYSTEM = """You are an information extraction expert. Extract key customer information from support emails.

Respond with JSON in this exact format: {
  "customerName": "full name if found",
  "customerId": "customer/account ID if mentioned",
  "phone": "phone number if provided",
  "email": "email address if different from sender",
  "company": "company name if mentioned",
  "issueType": "categorize the main issue type",
  "product": "product/service mentioned",
  "urgencyKeywords": ["array", "of", "urgency", "related", "words"]
}

Use null for missing fields."""

EXTRACTION_PROMPT = """Extract information from this email:

{body}"""

REPLY_SYSTEM = """You are a professional customer support specialist. Generate empathetic, helpful, and professional email responses.

Guidelines:
- Always maintain a professional and friendly tone
- Be empathetic, especially for frustrated customers
- Provide actionable solutions when possible
- Include specific details from the customer's message
- Use appropriate greeting and closing
- Keep responses concise but comprehensive
- Include next steps and contact information
- Only state facts about our policies that appear in the reference material below

{context}
{knowledge}
Respond with JSON in this exact format: {{
  "content": "the complete email response",
  "tone": "description of the tone used",
  "confidence": number between 0 and 1,
  "reasoning": "brief explanation of response approach"
}}"""

REPLY_PROMPT = """Generate a professional response to this email:

Subject: {subject}

Content: {body}"""


def build_context_prompt(sentiment: str, info: ExtractedInfo) -> str:
    """Describe the sender's mood and the extracted fields for the reply prompt."""
    parts: list[str] = []

    if sentiment == "negative":
        parts.append(
            "The customer appears frustrated or upset. Acknowledge their frustration "
            "empathetically and prioritize resolving their issue quickly."
        )
    elif sentiment == "positive":
        parts.append(
            "The customer has a positive tone. Maintain this positive interaction "
            "while being helpful."
        )

    if info.customer_name:
        parts.append(f"Address the customer by name: {info.customer_name}.")
    if info.customer_id:
        parts.append(f"Reference their customer ID: {info.customer_id}.")
    if info.issue_type:
        parts.append(f"The issue type is: {info.issue_type}.")
    if info.product:
        parts.append(f"They are asking about: {info.product}.")
    if info.urgency_keywords:
        parts.append(
            f"Urgency indicators detected: {', '.join(info.urgency_keywords)}. "
            "Prioritize quick resolution."
        )

    return " ".join(parts)


def build_knowledge_prompt(blocks: dict[str, str]) -> str:
    if not blocks:
        return ""
    lines = ["REFERENCE MATERIAL:"]
    for category, text in blocks.items():
        lines.append(f"[{category}]")
        lines.append(text.strip())
    return "\n".join(lines) + "\n"
