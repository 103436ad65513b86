"""Narrative generation for analysis results.

Optional, best-effort prose summaries generated by Anthropic Claude.
Every failure is raised as NarrativeServiceError; analysis units catch it
and return their result without a narrative.
"""

from __future__ import annotations

import json
import logging
from abc import ABC, abstractmethod
from typing import Any

from .errors import NarrativeServiceError

logger = logging.getLogger("opspilot.narrative")

SYSTEM_PROMPT = (
    "You are the analysis assistant for OpsPilot, a retail supply chain "
    "operations platform. You receive the structured findings of one "
    "automated analysis agent. Write a short, actionable briefing for an "
    "operations manager.\n\n"
    "RULES:\n"
    "- Keep it under 120 words\n"
    "- Lead with the most costly or urgent finding\n"
    "- Reference concrete numbers from the findings\n"
    "- Plain prose, no bullet points or headings\n"
    "- Do not invent data that is not in the findings"
)


class NarrativeService(ABC):
    """Produces prose from a prompt and structured context."""

    @abstractmethod
    async def generate(self, prompt: str, context: dict[str, Any]) -> str: ...


class ClaudeNarrativeService(NarrativeService):
    """Narrative service backed by the Anthropic Messages API."""

    def __init__(
        self,
        api_key: str,
        *,
        model: str = "claude-sonnet-4-20250514",
        max_tokens: int = 512,
        timeout: float = 30.0,
        client: Any = None,
    ) -> None:
        if client is None:
            import anthropic

            client = anthropic.AsyncAnthropic(api_key=api_key, timeout=timeout)
        self._client = client
        self.model = model
        self.max_tokens = max_tokens

    async def generate(self, prompt: str, context: dict[str, Any]) -> str:
        content = (
            f"{prompt}\n\n"
            f"Findings (JSON):\n{json.dumps(context, default=str)[:12000]}"
        )
        try:
            response = await self._client.messages.create(
                model=self.model,
                max_tokens=self.max_tokens,
                system=SYSTEM_PROMPT,
                messages=[{"role": "user", "content": content}],
            )
            text = response.content[0].text.strip()
        except Exception as e:
            raise NarrativeServiceError(f"Narrative generation failed: {e}") from e

        if not text:
            raise NarrativeServiceError("Narrative generation returned no text")
        return text


def create_narrative_service(
    api_key: str = "",
    *,
    model: str = "claude-sonnet-4-20250514",
    max_tokens: int = 512,
    timeout: float = 30.0,
) -> NarrativeService | None:
    """Create the narrative service, or None when no API key is configured."""
    if not api_key:
        logger.info("ANTHROPIC_API_KEY not set, narrative summaries disabled")
        return None
    return ClaudeNarrativeService(
        api_key, model=model, max_tokens=max_tokens, timeout=timeout
    )
