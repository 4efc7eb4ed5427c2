"""Provider adapter layer: model-agnostic LLM interface."""

from datapilot.providers.base import ModelProvider, ProviderAdapter
from datapilot.providers.factory import create_provider

__all__ = ["ModelProvider", "ProviderAdapter", "create_provider"]
