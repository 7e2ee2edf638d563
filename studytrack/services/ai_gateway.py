"""OpenAI-compatible chat completions client with error mapping."""

from __future__ import annotations

import json
import logging
from typing import Any, Optional

import openai
from openai import OpenAI

from .. import config
from ..errors import AIQuotaExhausted, AIRateLimited, UpstreamUnavailable

logger = logging.getLogger(__name__)


def _status_code(exc: Exception) -> Optional[int]:
    return getattr(exc, "status_code", None)


def map_ai_error(exc: Exception) -> Exception:
    """Translate an SDK error into the app's error taxonomy."""
    status = _status_code(exc)
    if isinstance(exc, openai.RateLimitError) or status == 429:
        return AIRateLimited()
    if status == 402:
        return AIQuotaExhausted()
    if isinstance(exc, openai.APIConnectionError):
        return UpstreamUnavailable("AI gateway unreachable")
    return UpstreamUnavailable(f"AI gateway error{f': {status}' if status else ''}")


class AIGateway:
    def __init__(self, client: Optional[OpenAI] = None, model: str = config.AI_MODEL) -> None:
        self._client = client
        self.model = model

    def _get_client(self) -> OpenAI:
        if self._client is None:
            if not config.AI_API_KEY:
                raise UpstreamUnavailable("AI gateway is not configured")
            # No automatic retries: failures surface to the caller as-is.
            self._client = OpenAI(api_key=config.AI_API_KEY, base_url=config.AI_GATEWAY_URL, max_retries=0)
        return self._client

    def create(self, messages: list[dict[str, Any]], **kwargs: Any):
        """Run one completion and return the first choice's message."""
        client = self._get_client()
        try:
            response = client.chat.completions.create(model=self.model, messages=messages, **kwargs)
        except openai.OpenAIError as exc:
            logger.warning("AI gateway call failed: %s", exc)
            raise map_ai_error(exc) from exc
        if not response.choices:
            raise UpstreamUnavailable("AI gateway returned no choices")
        return response.choices[0].message

    def complete_text(self, system: str, user: str) -> str:
        message = self.create([{"role": "system", "content": system}, {"role": "user", "content": user}])
        return message.content or ""

    def complete_structured(self, system: str, user: str, tool: dict[str, Any]) -> dict[str, Any]:
        """Force a single function call and return its parsed arguments."""
        name = tool["name"]
        message = self.create(
            [{"role": "system", "content": system}, {"role": "user", "content": user}],
            tools=[{"type": "function", "function": tool}],
            tool_choice={"type": "function", "function": {"name": name}},
        )
        calls = getattr(message, "tool_calls", None) or []
        if not calls or calls[0].function.name != name:
            raise UpstreamUnavailable("Invalid AI response format")
        try:
            result = json.loads(calls[0].function.arguments)
        except (TypeError, ValueError) as exc:
            raise UpstreamUnavailable("Invalid AI response format") from exc
        if not isinstance(result, dict):
            raise UpstreamUnavailable("Invalid AI response format")
        return result
