from __future__ import annotations

import json
import logging
import re
from typing import Any

from json_repair import repair_json

from productreel.page_ingest.model import PageBundle

from .llm import EchoLLM, LLMClient
from .prompts import render_planning_prompt

logger = logging.getLogger(__name__)

_FENCE_PATTERN = re.compile(r"^```[a-zA-Z]*\s*\n?|\n?```\s*$")


class PlanningError(RuntimeError):
    """Raised when the planning model does not return a JSON object."""


class StoryboardPlanner:
    """Ask the planning model for a raw storyboard payload.

    The result is untrusted and must go through ``StoryboardNormalizer``.
    """

    def __init__(self, llm: LLMClient | None = None) -> None:
        self.llm = llm or EchoLLM()

    def plan(self, page: PageBundle, audio_mood_override: str | None = None) -> dict[str, Any]:
        prompt = render_planning_prompt(page, audio_mood_override)
        raw = self.llm.complete(prompt)
        logger.debug("Planner raw response: %s", raw)
        payload = parse_storyboard_response(raw)
        payload.setdefault("productUrl", str(page.metadata.url))
        return payload


def extract_json_object(text: str) -> str:
    candidate = _FENCE_PATTERN.sub("", text.strip())
    start = candidate.find("{")
    end = candidate.rfind("}")
    if start != -1 and end > start:
        return candidate[start : end + 1]
    return candidate


def parse_storyboard_response(raw: str) -> dict[str, Any]:
    cleaned = extract_json_object(raw)
    try:
        payload = json.loads(cleaned)
    except json.JSONDecodeError as exc:
        logger.warning("Storyboard JSON parse failed, attempting repair: %s", exc)
        try:
            payload = json.loads(repair_json(cleaned) or "null")
        except json.JSONDecodeError as repair_exc:
            raise PlanningError("storyboard JSON could not be repaired") from repair_exc
    if not isinstance(payload, dict):
        raise PlanningError(f"planner returned {type(payload).__name__}, expected a JSON object")
    return payload
