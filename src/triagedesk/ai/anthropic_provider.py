"""Claude models through the Anthropic Messages API."""

from __future__ import annotations

from triagedesk.ai.base import parse_response_text


class AnthropicProvider:
    def __init__(self, timeout: float = 120.0, max_tokens: int = 2048):
        self.timeout = timeout
        self.max_tokens = max_tokens
        self._client = None

    @property
    def client(self):
        # Imported on first use; the SDK reads ANTHROPIC_API_KEY itself.
        if self._client is None:
            import anthropic

            self._client = anthropic.Anthropic(timeout=self.timeout, max_retries=0)
        return self._client

    def complete(
        self,
        prompt: str,
        model: str,
        system: str = "",
        response_format: str | None = None,
    ) -> dict:
        """One Messages call; text blocks are joined and parsed as JSON when possible."""
        request = {
            "model": model,
            "max_tokens": self.max_tokens,
            "messages": [{"role": "user", "content": prompt}],
        }
        if system:
            request["system"] = system

        message = self.client.messages.create(**request)
        text = "".join(getattr(block, "text", "") for block in message.content)
        return parse_response_text(text)
