from __future__ import annotations

import json
import threading
from pathlib import Path

import pytest

from productreel.media_pipeline.music_client import MusicJobError, MusicTrack
from productreel.media_pipeline.narration import NarrationManager
from productreel.media_pipeline.tempo import TempoEstimator
from productreel.orchestrator import BUNDLE_FILE, RENDER_PLAN_FILE, PipelineConfig, PipelineOrchestrator
from productreel.page_ingest.model import PageBundle, PageMetadata
from productreel.render.plan import FALLBACK_MUSIC_SOURCE
from productreel.storyboard.normalizer import StoryboardNormalizer, ValidationError
from productreel.timeline.model import TempoData


class StubIngestor:
    def ingest(self, url: str) -> PageBundle:
        return PageBundle(metadata=PageMetadata(url=url, title="Acme Deploy"), text="Acme ships code.")


class StubPlanner:
    def __init__(self, payload: dict) -> None:
        self.payload = payload
        self.moods: list[str | None] = []

    def plan(self, page: PageBundle, audio_mood_override: str | None = None) -> dict:
        self.moods.append(audio_mood_override)
        return dict(self.payload)


class StubMusicClient:
    def __init__(self, fail: bool = False) -> None:
        self.fail = fail
        self.output_dir = Path(".")
        self.calls: list[dict] = []
        self.threads: list[str] = []

    def compose(self, *, prompt: str, lyrics: str) -> MusicTrack:
        self.calls.append({"prompt": prompt, "lyrics": lyrics})
        self.threads.append(threading.current_thread().name)
        if self.fail:
            raise MusicJobError("quota exhausted")
        path = self.output_dir / "music_track.mp3"
        path.write_bytes(b"mp3")
        return MusicTrack(path=path, job_id="job-1", source_url="https://cdn.test/a.mp3")


class StubTempoEstimator:
    def __init__(self, result: TempoData | None) -> None:
        self.result = result
        self.paths: list[Path] = []

    def analyze(self, path: Path) -> TempoData | None:
        self.paths.append(path)
        return self.result


class StubElevenLabs:
    audio_format = "mp3"

    def __init__(self) -> None:
        self.texts: list[str] = []

    def synthesize(self, text: str, output_audio: Path, voice_id: str | None = None) -> Path:
        self.texts.append(text)
        output_audio.write_bytes(b"voice")
        return output_audio


def _orchestrator(
    tmp_path: Path,
    raw_storyboard: dict,
    *,
    music: StubMusicClient | None = None,
    tempo: TempoData | None = None,
    eleven: StubElevenLabs | None = None,
) -> PipelineOrchestrator:
    return PipelineOrchestrator(
        config=PipelineConfig(data_root=tmp_path),
        page_ingestor=StubIngestor(),  # type: ignore[arg-type]
        planner=StubPlanner(raw_storyboard),  # type: ignore[arg-type]
        normalizer=StoryboardNormalizer(),
        music_client=music,  # type: ignore[arg-type]
        narration_manager=NarrationManager(tmp_path / "audio", eleven_client=eleven),  # type: ignore[arg-type]
        tempo_estimator=StubTempoEstimator(tempo),  # type: ignore[arg-type]
    )


def _read_plan(bundle) -> dict:
    return json.loads(Path(bundle.render_plan).read_text(encoding="utf-8"))


def test_run_with_music_and_narration(tmp_path: Path, raw_storyboard: dict) -> None:
    music = StubMusicClient()
    eleven = StubElevenLabs()
    orchestrator = _orchestrator(
        tmp_path,
        raw_storyboard,
        music=music,
        tempo=TempoData(bpm=100, beat_times_ms=[0, 600]),
        eleven=eleven,
    )

    bundle = orchestrator.run("https://acme.test/", tmp_path / "runs")

    run_dir = tmp_path / "runs" / "acme-deploy"
    assert bundle.render_plan == run_dir / RENDER_PLAN_FILE
    assert (run_dir / BUNDLE_FILE).exists()
    assert bundle.music_track == run_dir / "audio" / "music_track.mp3"
    assert bundle.narration_audio == run_dir / "audio" / "narration.mp3"
    assert music.calls[0]["prompt"] == raw_storyboard["audioPrompt"]
    assert music.threads[0].startswith("audio")
    assert eleven.texts == [raw_storyboard["narrationScript"]]

    plan = _read_plan(bundle)
    assert plan["bpm"] == 100
    assert plan["timeline"]["transitionFrames"] == 9
    assert plan["beatFrames"] == [0, 18]
    assert plan["music"]["source"] == "audio/music_track.mp3"
    assert plan["narration"]["source"] == "audio/narration.mp3"
    assert plan["storyboard"]["audioTrackFile"] == "music_track.mp3"


def test_music_failure_degrades_to_fallback(tmp_path: Path, raw_storyboard: dict) -> None:
    orchestrator = _orchestrator(tmp_path, raw_storyboard, music=StubMusicClient(fail=True))

    bundle = orchestrator.run("https://acme.test/", tmp_path / "runs")

    plan = _read_plan(bundle)
    assert bundle.music_track is None
    assert "bpm" not in plan
    assert plan["timeline"]["transitionFrames"] == 10
    assert plan["music"]["source"] == FALLBACK_MUSIC_SOURCE
    assert orchestrator.tempo_estimator.paths == []  # type: ignore[attr-defined]


def test_tempo_failure_uses_planned_bpm(tmp_path: Path, raw_storyboard: dict) -> None:
    orchestrator = _orchestrator(tmp_path, raw_storyboard, music=StubMusicClient(), tempo=None)

    bundle = orchestrator.run("https://acme.test/", tmp_path / "runs")

    plan = _read_plan(bundle)
    assert plan["bpm"] == 128
    assert plan["timeline"]["totalFrames"] == 298


def test_dry_run_skips_services(tmp_path: Path, raw_storyboard: dict) -> None:
    music = StubMusicClient()
    eleven = StubElevenLabs()
    orchestrator = _orchestrator(tmp_path, raw_storyboard, music=music, eleven=eleven)

    bundle = orchestrator.run("https://acme.test/", tmp_path / "runs", dry_run=True)

    assert music.calls == []
    assert eleven.texts == []
    assert bundle.narration_audio is None
    assert "narration" not in _read_plan(bundle)


def test_mood_override_reaches_planner_and_storyboard(tmp_path: Path, raw_storyboard: dict) -> None:
    orchestrator = _orchestrator(tmp_path, raw_storyboard)

    bundle = orchestrator.run("https://acme.test/", tmp_path / "runs", mood_override="cinematic-epic", skip_music=True)

    assert orchestrator.planner.moods == ["cinematic-epic"]  # type: ignore[attr-defined]
    assert bundle.storyboard.audio_mood.value == "cinematic-epic"


def test_invalid_storyboard_aborts(tmp_path: Path, raw_storyboard: dict) -> None:
    raw_storyboard.pop("colorTheme")
    orchestrator = _orchestrator(tmp_path, raw_storyboard, music=StubMusicClient())

    with pytest.raises(ValidationError):
        orchestrator.run("https://acme.test/", tmp_path / "runs")


def test_render_storyboard_runs_engine_only(tmp_path: Path, raw_storyboard: dict) -> None:
    orchestrator = _orchestrator(tmp_path, raw_storyboard)

    bundle = orchestrator.render_storyboard(
        raw_storyboard,
        tmp_path / "plan",
        tempo=TempoData(bpm=128, beat_times_ms=[0, 469]),
    )

    plan = _read_plan(bundle)
    assert bundle.render_plan == tmp_path / "plan" / RENDER_PLAN_FILE
    assert plan["timeline"]["totalFrames"] == 298
    assert plan["beatFrames"] == [0, 14]


def test_config_loads_yaml(tmp_path: Path) -> None:
    path = tmp_path / "config.yaml"
    path.write_text("llm_provider: echo\nvideo:\n  fps: 24\ntransitions:\n  default_frames: 12\n", encoding="utf-8")

    config = PipelineConfig.from_file(path)

    assert config.video.fps == 24
    assert config.engine_settings().transitions.default_frames == 12
    assert type(config.build_llm()).__name__ == "EchoLLM"


def test_default_without_keys_disables_remote_audio(tmp_path: Path, monkeypatch) -> None:
    monkeypatch.delenv("WAVESPEED_API_KEY", raising=False)
    monkeypatch.delenv("ELEVEN_LABS_API_KEY", raising=False)

    orchestrator = PipelineOrchestrator.default(PipelineConfig(data_root=tmp_path, llm_provider="echo"))

    assert orchestrator.music_client is None
    assert orchestrator.narration_manager.eleven_client is None


def test_claude_provider_requires_key(monkeypatch) -> None:
    monkeypatch.delenv("ANTHROPIC_API_KEY", raising=False)

    with pytest.raises(RuntimeError, match="ANTHROPIC_API_KEY"):
        PipelineConfig().build_llm()


def test_missing_ffmpeg_falls_back_to_planned_bpm(tmp_path: Path, raw_storyboard: dict, monkeypatch) -> None:
    monkeypatch.setenv("PATH", str(tmp_path / "empty-bin"))
    orchestrator = _orchestrator(tmp_path, raw_storyboard, music=StubMusicClient())
    orchestrator.tempo_estimator = TempoEstimator()

    bundle = orchestrator.run("https://acme.test/", tmp_path / "runs")

    plan = _read_plan(bundle)
    assert bundle.tempo is None
    assert plan["bpm"] == 128
    assert plan["music"]["source"] == "audio/music_track.mp3"
    assert plan["timeline"]["totalFrames"] == 298
