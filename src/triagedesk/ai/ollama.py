"""Ollama provider: /api/generate over HTTP for local or hosted models."""

from __future__ import annotations

import httpx

from triagedesk.ai.base import parse_response_text
from triagedesk.log import get_logger

logger = get_logger(__name__)


class OllamaProvider:
    """Single attempt per call; the classifier substitutes fallbacks on failure."""

    def __init__(
        self,
        base_url: str = "http://localhost:11434",
        api_key: str = "",
        timeout: float = 120.0,
    ):
        self.base_url = base_url.rstrip("/")
        self.api_key = api_key
        self.timeout = timeout

    def _headers(self) -> dict[str, str]:
        return {"Authorization": f"Bearer {self.api_key}"} if self.api_key else {}

    def complete(
        self,
        prompt: str,
        model: str,
        system: str = "",
        response_format: str | None = None,
    ) -> dict:
        payload = {"model": model, "prompt": prompt, "stream": False}
        payload.update(
            {k: v for k, v in (("system", system), ("format", response_format)) if v}
        )

        url = f"{self.base_url}/api/generate"
        try:
            with httpx.Client(timeout=self.timeout) as client:
                resp = client.post(url, json=payload, headers=self._headers())
                resp.raise_for_status()
        except (httpx.ConnectError, httpx.TimeoutException) as e:
            raise ConnectionError(f"Ollama unreachable at {self.base_url}: {e}") from e

        text = resp.json().get("response", "")
        logger.debug("Ollama %s returned %d chars", model, len(text))
        return parse_response_text(text)
