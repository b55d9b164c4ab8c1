from __future__ import annotations

import abc
import json
import logging
from typing import Any

from anthropic import Anthropic

from .prompts import SYSTEM_PROMPT

logger = logging.getLogger(__name__)


class LLMClient(abc.ABC):
    """Abstract interface for the storyboard planning model."""

    @abc.abstractmethod
    def complete(self, prompt: str, **kwargs: Any) -> str:
        raise NotImplementedError


class EchoLLM(LLMClient):
    """Offline stand-in that returns a minimal four-scene storyboard."""

    def complete(self, prompt: str, **kwargs: Any) -> str:
        try:
            page = json.loads(prompt)
        except json.JSONDecodeError:
            page = {}
        title = page.get("title") or "Your Product"
        placeholder = {
            "scenes": [
                {"type": "hook", "durationInFrames": 65, "brandName": title, "tagline": page.get("tagline") or title},
                {"type": "problem", "durationInFrames": 65, "headline": "Still Doing It Manually?", "painPoints": ["Wasted hours", "Scattered tools"]},
                {"type": "solution", "durationInFrames": 80, "headline": f"Meet {title}", "features": [{"title": "Built for speed"}]},
                {"type": "cta", "durationInFrames": 55, "headline": "Try It Now", "buttonText": "Get Started", "url": page.get("productUrl") or ""},
            ],
            "colorTheme": {"primary": page.get("themeColor") or "#4F46E5"},
            "audioMood": "cinematic-classical",
            "audioBpm": 128,
        }
        return json.dumps(placeholder)


class ClaudeLLM(LLMClient):
    """Storyboard planning on the Anthropic Messages API.

    Keyword arguments given to ``complete`` override the request defaults set
    here. Only text blocks of the reply are returned.
    """

    def __init__(
        self,
        client: Anthropic,
        model: str,
        system_prompt: str | None = None,
        max_tokens: int = 4096,
        temperature: float = 0.7,
    ) -> None:
        self.client = client
        self.model = model
        self.system_prompt = system_prompt or SYSTEM_PROMPT
        self.max_tokens = max_tokens
        self.temperature = temperature

    def complete(self, prompt: str, **kwargs: Any) -> str:
        request: dict[str, Any] = {
            "model": self.model,
            "system": self.system_prompt,
            "max_tokens": self.max_tokens,
            "temperature": self.temperature,
            **kwargs,
        }
        response = self.client.messages.create(messages=[{"role": "user", "content": prompt}], **request)
        text = "".join(block.text for block in response.content if getattr(block, "type", None) == "text")
        if response.stop_reason == "max_tokens":
            logger.warning(
                "Storyboard reply from %s hit max_tokens=%s after %d characters",
                request["model"],
                request["max_tokens"],
                len(text),
            )
        return text
