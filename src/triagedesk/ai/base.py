"""Provider protocol shared by every model backend, plus reply decoding."""

from __future__ import annotations

import json
from typing import Protocol, runtime_checkable


@runtime_checkable
class AIProvider(Protocol):
    def complete(
        self,
        prompt: str,
        model: str,
        system: str = "",
        response_format: str | None = None,
    ) -> dict:
        """Run one completion and return the decoded reply.

        ``response_format="json"`` asks the backend for JSON output where it
        supports that. Replies that are not a JSON object come back as
        ``{"text": raw}``.
        """
        ...


def parse_response_text(response_text: str) -> dict:
    """Decode a model reply as JSON, falling back to a fenced code block."""
    try:
        parsed = json.loads(response_text)
    except json.JSONDecodeError:
        parsed = None
        for fence in ("```json", "```"):
            if fence not in response_text:
                continue
            try:
                json_start = response_text.index(fence) + len(fence)
                json_end = response_text.index("```", json_start)
                parsed = json.loads(response_text[json_start:json_end].strip())
                break
            except (ValueError, json.JSONDecodeError):
                continue
    if isinstance(parsed, dict):
        return parsed
    return {"text": response_text}
