"""AI provider factory."""

from __future__ import annotations

from triagedesk.ai.base import AIProvider
from triagedesk.ai.anthropic_provider import AnthropicProvider
from triagedesk.ai.gemini_provider import GeminiProvider
from triagedesk.ai.ollama import OllamaProvider


def get_provider(model_spec: str, config: dict | None = None) -> tuple[AIProvider, str]:
    """Parse 'provider:model_name' and return (provider_instance, model_name).

    If no colon is present, assumes gemini as the provider.
    """
    if ":" in model_spec:
        provider_name, model_name = model_spec.split(":", 1)
    else:
        provider_name = "gemini"
        model_name = model_spec

    config = config or {}
    timeout = float(config.get("request_timeout", 120.0))

    if provider_name == "gemini":
        return GeminiProvider(api_key=config.get("gemini_api_key", ""), timeout=timeout), model_name
    elif provider_name == "ollama":
        base_url = config.get("ollama_base_url", "http://localhost:11434")
        api_key = config.get("ollama_api_key", "")
        return OllamaProvider(base_url=base_url, api_key=api_key, timeout=timeout), model_name
    elif provider_name == "anthropic":
        return AnthropicProvider(timeout=timeout), model_name
    else:
        raise ValueError(
            f"Unknown AI provider: {provider_name!r}. Use 'gemini', 'ollama' or 'anthropic'."
        )
