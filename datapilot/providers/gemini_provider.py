"""Google Gemini provider adapter."""

from __future__ import annotations

import logging
from typing import Any

from google import genai
from google.genai import errors, types

from datapilot.config import GEMINI_API_KEY
from datapilot.models import ModelResponse, TokenUsage
from datapilot.providers.base import ProviderAdapter

logger = logging.getLogger(__name__)


class GeminiAdapter(ProviderAdapter):
    def __init__(self, model: str = "gemini-2.5-flash"):
        self.model = model
        self._client: genai.Client | None = None

    @property
    def client(self) -> genai.Client:
        # The client validates the key on construction, so build it on first use
        if self._client is None:
            self._client = genai.Client(api_key=GEMINI_API_KEY)
        return self._client

    async def generate(
        self,
        messages: list[dict],
        system: str | None = None,
        temperature: float = 0.7,
        max_tokens: int = 4096,
    ) -> ModelResponse:
        config = types.GenerateContentConfig(
            system_instruction=system,
            temperature=temperature,
            max_output_tokens=max_tokens,
        )

        try:
            raw = await self.client.aio.models.generate_content(
                model=self.model,
                contents=self._format_messages(messages),
                config=config,
            )
        except errors.APIError as e:
            logger.error(f"Gemini API error: {e}")
            raise

        return self._parse_response(raw)

    def _format_messages(self, messages: list[dict]) -> list[types.Content]:
        """Gemini calls the assistant role 'model' and has no system turns."""
        contents = []
        for msg in messages:
            role = msg.get("role", "user")
            if role == "system":
                continue
            contents.append(
                types.Content(
                    role="model" if role == "assistant" else "user",
                    parts=[types.Part(text=str(msg.get("content", "")))],
                )
            )
        return contents

    def _parse_response(self, raw: Any) -> ModelResponse:
        meta = raw.usage_metadata
        usage = TokenUsage()
        if meta:
            usage = TokenUsage(meta.prompt_token_count or 0, meta.candidates_token_count or 0)
        return ModelResponse(text=raw.text, usage=usage, raw=raw)
