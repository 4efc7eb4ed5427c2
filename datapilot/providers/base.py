"""Base provider adapter: abstract interface for all LLM providers."""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod

from datapilot.models import ModelResponse

logger = logging.getLogger(__name__)


class ProviderAdapter(ABC):
    """Translates our message list into one provider's API call."""

    @abstractmethod
    async def generate(
        self,
        messages: list[dict],
        system: str | None = None,
        temperature: float = 0.7,
        max_tokens: int = 4096,
    ) -> ModelResponse:
        """Call the model and return a unified ModelResponse."""


class ModelProvider:
    """Unified interface that wraps a ProviderAdapter."""

    def __init__(self, adapter: ProviderAdapter):
        self.adapter = adapter

    async def generate(
        self,
        messages: list[dict],
        system: str | None = None,
        temperature: float = 0.7,
        max_tokens: int = 4096,
    ) -> ModelResponse:
        response = await self.adapter.generate(
            messages=messages,
            system=system,
            temperature=temperature,
            max_tokens=max_tokens,
        )
        logger.debug(
            f"{type(self.adapter).__name__}: {response.usage.input_tokens} in / "
            f"{response.usage.output_tokens} out"
        )
        return response

    async def complete(
        self,
        prompt: str,
        system: str | None = None,
        temperature: float = 0.7,
        max_tokens: int = 4096,
    ) -> str:
        """Single-turn convenience: one user prompt in, response text out."""
        response = await self.generate(
            messages=[{"role": "user", "content": prompt}],
            system=system,
            temperature=temperature,
            max_tokens=max_tokens,
        )
        return response.text or ""
