"""Provider factory: create the right adapter based on model string."""

from __future__ import annotations

from datapilot.providers.base import ModelProvider, ProviderAdapter


def parse_model_string(model: str) -> tuple[str, str]:
    """Parse 'provider/model-name' into (provider, model)."""
    if "/" in model:
        provider, model_name = model.split("/", 1)
        return provider.lower(), model_name
    # Infer provider from model name
    if model.startswith("gemini"):
        return "gemini", model
    if model.startswith("claude"):
        return "anthropic", model
    if model.startswith("gpt") or model.startswith("o1") or model.startswith("o3"):
        return "openai", model
    # Default to gemini
    return "gemini", model


def create_adapter(model: str) -> ProviderAdapter:
    """Create a provider adapter for the given model string."""
    provider, model_name = parse_model_string(model)

    if provider in ("gemini", "google"):
        from datapilot.providers.gemini_provider import GeminiAdapter
        return GeminiAdapter(model=model_name)
    elif provider == "anthropic":
        from datapilot.providers.anthropic_provider import AnthropicAdapter
        return AnthropicAdapter(model=model_name)
    elif provider == "openai":
        from datapilot.providers.openai_provider import OpenAIAdapter
        return OpenAIAdapter(model=model_name)
    else:
        raise ValueError(f"Unknown provider: {provider}. Use 'gemini/model', 'anthropic/model', or 'openai/model'.")


def create_provider(model: str) -> ModelProvider:
    """Create a ModelProvider wrapping the appropriate adapter."""
    adapter = create_adapter(model)
    return ModelProvider(adapter)
