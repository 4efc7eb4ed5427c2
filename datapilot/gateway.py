"""Agent gateway: planner, coder and summary agents behind one interface.

Every operation returns a GatewayResult. Provider errors and malformed model
output are absorbed here and turned into degraded-but-usable values, so callers
never see an exception from a generation call.
"""

from __future__ import annotations

import json
import logging
import re

from datapilot import prompts
from datapilot.config import (
    CODER_MODEL, CODER_TEMPERATURE, DEFAULT_MAX_TOKENS, PLANNER_MODEL,
    PLANNER_TEMPERATURE, SUMMARY_MODEL, SUMMARY_TEMPERATURE,
)
from datapilot.models import CodeResult, GatewayResult
from datapilot.providers import ModelProvider, create_provider

logger = logging.getLogger(__name__)

PLAN_ERROR = "Error generating plan. Please try again."
NO_CODE_MARKER = "# No code generated"
CODE_ERROR = "# Error generating code"
CODE_ERROR_EXPLANATION = "An error occurred while contacting the coding agent."
NO_SUMMARY = "No summary generated."
SUMMARY_ERROR = "Error generating summary."

_PYTHON_BLOCK = re.compile(r"```python([\s\S]*?)```")


def parse_plan(text: str) -> list[str]:
    """Parse the planner's JSON array, tolerating markdown fences around it."""
    clean = text.replace("```json", "").replace("```", "").strip()
    data = json.loads(clean or "[]")
    if not isinstance(data, list) or not all(isinstance(step, str) for step in data):
        raise ValueError(f"Expected a JSON array of strings, got: {clean[:200]}")
    return [step.strip() for step in data if step.strip()]


def extract_code(text: str) -> tuple[CodeResult, bool]:
    """Split a coder response into the first python block and the prose around it.

    Returns the result and whether a code block was found.
    """
    match = _PYTHON_BLOCK.search(text)
    code = match.group(1).strip() if match else NO_CODE_MARKER
    explanation = _PYTHON_BLOCK.sub("", text).strip()
    return CodeResult(code=code, explanation=explanation), match is not None


class AgentGateway:
    """Stateless request/response wrapper around the three generation roles."""

    def __init__(
        self,
        planner: ModelProvider | None = None,
        coder: ModelProvider | None = None,
        summarizer: ModelProvider | None = None,
        max_tokens: int = DEFAULT_MAX_TOKENS,
    ):
        self.planner = planner or create_provider(PLANNER_MODEL)
        self.coder = coder or create_provider(CODER_MODEL)
        self.summarizer = summarizer or create_provider(SUMMARY_MODEL)
        self.max_tokens = max_tokens

    async def plan(self, goal: str, file_context: str) -> GatewayResult[list[str]]:
        prompt = prompts.PLAN_PROMPT.format(goal=goal, file_context=file_context)
        try:
            text = await self.planner.complete(
                prompt,
                system=prompts.PLANNER_SYSTEM,
                temperature=PLANNER_TEMPERATURE,
                max_tokens=self.max_tokens,
            )
            steps = parse_plan(text)
        except Exception as e:
            logger.error(f"Error generating plan: {e}")
            return GatewayResult.degraded([PLAN_ERROR], str(e))

        logger.info(f"Planner returned {len(steps)} steps")
        return GatewayResult(steps)

    async def code_step(self, description: str, context: str) -> GatewayResult[CodeResult]:
        prompt = prompts.CODE_PROMPT.format(step=description, context=context)
        try:
            text = await self.coder.complete(
                prompt,
                system=prompts.CODER_SYSTEM,
                temperature=CODER_TEMPERATURE,
                max_tokens=self.max_tokens,
            )
        except Exception as e:
            logger.error(f"Error generating code: {e}")
            return GatewayResult.degraded(CodeResult(CODE_ERROR, CODE_ERROR_EXPLANATION), str(e))

        result, found = extract_code(text)
        if not found:
            logger.warning(f"Coder response had no python block for step: {description[:60]}")
        return GatewayResult(result)

    async def summarize(self, context: str) -> GatewayResult[str]:
        prompt = prompts.SUMMARY_PROMPT.format(context=context)
        try:
            text = await self.summarizer.complete(
                prompt,
                system=prompts.SUMMARY_SYSTEM,
                temperature=SUMMARY_TEMPERATURE,
                max_tokens=self.max_tokens,
            )
        except Exception as e:
            logger.error(f"Error generating summary: {e}")
            return GatewayResult.degraded(SUMMARY_ERROR, str(e))

        return GatewayResult(text or NO_SUMMARY)
