from __future__ import annotations

import sys
from pathlib import Path

import pytest


def pytest_configure(config) -> None:  # pragma: no cover - pytest hook
    root = Path(__file__).resolve().parents[1]
    src_path = root / "src"
    if src_path.exists() and str(src_path) not in sys.path:
        sys.path.insert(0, str(src_path))


def _scene(kind: str, frames: int) -> dict:
    base = {"type": kind, "durationInFrames": frames}
    extra = {
        "hook": {"brandName": "Acme", "tagline": "Ship faster"},
        "problem": {"headline": "Too Slow", "painPoints": ["Manual work", "Lost time"]},
        "solution": {"headline": "Meet Acme", "features": [{"title": "Automation"}]},
        "use-cases": {"headline": "Built For", "cases": [{"title": "Teams"}]},
        "results": {"headline": "Proven", "stats": [{"value": 3, "suffix": "x", "label": "Faster"}]},
        "cta": {"headline": "Try Acme", "buttonText": "Start", "url": "https://acme.test"},
    }[kind]
    return {**base, **extra}


@pytest.fixture
def make_scene():
    return _scene


@pytest.fixture
def raw_storyboard() -> dict:
    return {
        "scenes": [
            _scene("hook", 65),
            _scene("problem", 65),
            _scene("solution", 80),
            _scene("results", 65),
            _scene("cta", 55),
        ],
        "colorTheme": {"primary": "#4F46E5"},
        "audioMood": "cinematic-electronic",
        "audioBpm": 128,
        "productUrl": "https://acme.test",
        "audioPrompt": "Upbeat electronic launch track at 128 BPM with punchy drums and bright synth leads",
        "audioLyrics": "[Verse 1]\nAcme makes it easy\n[Chorus]\nShip it today",
        "narrationScript": "Meet Acme. The fastest way to ship your product to the world.",
    }
