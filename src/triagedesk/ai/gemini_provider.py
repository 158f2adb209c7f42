"""Gemini AI provider backed by google-generativeai."""

from __future__ import annotations

from triagedesk.ai.base import parse_response_text
from triagedesk.log import get_logger

logger = get_logger(__name__)


class GeminiInitializationError(RuntimeError):
    """Raised when the Gemini client cannot be configured."""


class GeminiProvider:
    """Google Gemini client. The SDK is imported on first use."""

    def __init__(self, api_key: str = "", timeout: float = 120.0):
        self.api_key = api_key
        self.timeout = timeout
        self._genai = None

    def _get_genai(self):
        if self._genai is None:
            if not self.api_key:
                raise GeminiInitializationError(
                    "GEMINI_API_KEY is not set. Add it to .env or config.yaml (ai.gemini_api_key)."
                )
            import google.generativeai as genai

            genai.configure(api_key=self.api_key)
            self._genai = genai
        return self._genai

    def complete(
        self,
        prompt: str,
        model: str,
        system: str = "",
        response_format: str | None = None,
    ) -> dict:
        """Send a prompt to Gemini and return parsed response."""
        genai = self._get_genai()
        gen_model = genai.GenerativeModel(model, system_instruction=system or None)

        generation_config: dict = {}
        if response_format == "json":
            generation_config["response_mime_type"] = "application/json"

        response = gen_model.generate_content(
            prompt,
            generation_config=generation_config or None,
            request_options={"timeout": self.timeout},
        )
        response_text = response.text or ""
        logger.debug("Gemini %s returned %d chars", model, len(response_text))
        return parse_response_text(response_text)
