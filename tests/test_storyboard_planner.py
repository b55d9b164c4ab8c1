from __future__ import annotations

import json
from types import SimpleNamespace

import pytest

from productreel.page_ingest.model import PageBundle, PageMetadata
from productreel.storyboard.llm import ClaudeLLM, EchoLLM, LLMClient
from productreel.storyboard.normalizer import normalize
from productreel.storyboard.planner import (
    PlanningError,
    StoryboardPlanner,
    extract_json_object,
    parse_storyboard_response,
)


class StubLLM(LLMClient):
    def __init__(self, response: str) -> None:
        self.response = response
        self.prompts: list[str] = []

    def complete(self, prompt: str, **kwargs) -> str:
        self.prompts.append(prompt)
        return self.response


def _page() -> PageBundle:
    metadata = PageMetadata(
        url="https://acme.test/",
        title="Acme Deploy",
        description="Ship in seconds",
        theme_color="#FF5500",
    )
    return PageBundle(metadata=metadata, text="Acme deploys your code.", headings=["Fast", "Safe"])


def test_planner_sends_page_payload_and_mood() -> None:
    llm = StubLLM('{"scenes": []}')

    StoryboardPlanner(llm).plan(_page(), audio_mood_override="cinematic-pop")

    sent = json.loads(llm.prompts[0])
    assert sent["title"] == "Acme Deploy"
    assert sent["themeColor"] == "#FF5500"
    assert sent["headings"] == ["Fast", "Safe"]
    assert sent["audioMoodOverride"] == "cinematic-pop"


def test_planner_fills_product_url() -> None:
    payload = StoryboardPlanner(StubLLM('{"scenes": []}')).plan(_page())

    assert payload["productUrl"] == "https://acme.test/"


def test_planner_keeps_model_product_url() -> None:
    payload = StoryboardPlanner(StubLLM('{"productUrl": "https://acme.test/pricing"}')).plan(_page())

    assert payload["productUrl"] == "https://acme.test/pricing"


def test_fenced_response_is_unwrapped() -> None:
    raw = 'Here you go:\n```json\n{"audioMood": "cinematic-pop"}\n```'

    assert parse_storyboard_response(raw) == {"audioMood": "cinematic-pop"}
    assert extract_json_object('```\n{"a": 1}\n```') == '{"a": 1}'


def test_malformed_json_is_repaired() -> None:
    raw = '{"audioMood": "cinematic-pop", "scenes": [{"type": "hook",}],}'

    payload = parse_storyboard_response(raw)

    assert payload["audioMood"] == "cinematic-pop"
    assert payload["scenes"][0]["type"] == "hook"


def test_non_object_response_is_rejected() -> None:
    with pytest.raises(PlanningError):
        parse_storyboard_response("[1, 2, 3]")


def test_echo_llm_output_normalizes() -> None:
    payload = StoryboardPlanner(EchoLLM()).plan(_page())

    storyboard = normalize(payload)

    assert [scene.type for scene in storyboard.scenes] == ["hook", "problem", "solution", "cta"]
    assert storyboard.color_theme.primary == "#FF5500"
    assert storyboard.product_url == "https://acme.test/"


class _RecordingMessages:
    def __init__(self, stop_reason: str = "end_turn") -> None:
        self.stop_reason = stop_reason
        self.calls: list[dict] = []

    def create(self, **params):
        self.calls.append(params)
        return SimpleNamespace(
            stop_reason=self.stop_reason,
            content=[
                SimpleNamespace(type="text", text='{"scenes": '),
                SimpleNamespace(type="tool_use", text="ignored"),
                SimpleNamespace(type="text", text="[]}"),
            ],
        )


def test_claude_llm_collects_text_blocks() -> None:
    messages = _RecordingMessages()
    llm = ClaudeLLM(client=SimpleNamespace(messages=messages), model="claude-test")  # type: ignore[arg-type]

    text = llm.complete("hello", temperature=0.2)

    assert text == '{"scenes": []}'
    call = messages.calls[0]
    assert call["model"] == "claude-test"
    assert call["temperature"] == 0.2
    assert call["max_tokens"] == 4096
    assert call["messages"] == [{"role": "user", "content": "hello"}]


def test_claude_llm_warns_on_truncated_reply(caplog) -> None:
    messages = _RecordingMessages(stop_reason="max_tokens")
    llm = ClaudeLLM(client=SimpleNamespace(messages=messages), model="claude-test", max_tokens=64)  # type: ignore[arg-type]

    text = llm.complete("hello")

    assert text == '{"scenes": []}'
    assert messages.calls[0]["max_tokens"] == 64
    assert "max_tokens=64" in caplog.text
