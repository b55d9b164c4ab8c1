from __future__ import annotations

import json
import logging
import os
import shutil
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Mapping, Optional

import requests
from pydantic import BaseModel, Field

from productreel.audio.scheduler import EnvelopeSettings
from productreel.engine import EngineSettings, synchronize
from productreel.media_pipeline.elevenlabs_client import DEFAULT_VOICE_ID, ElevenLabsClient, ElevenLabsError
from productreel.media_pipeline.music_client import MusicJobError, MusicTrack, WaveSpeedMusicClient
from productreel.media_pipeline.narration import NarrationAsset, NarrationManager
from productreel.media_pipeline.tempo import TempoEstimator
from productreel.page_ingest.model import PageBundle
from productreel.page_ingest.service import PageIngestor
from productreel.render.plan import RenderPlan, VideoSettings
from productreel.storyboard.llm import ClaudeLLM, EchoLLM, LLMClient
from productreel.storyboard.model import Storyboard
from productreel.storyboard.normalizer import NormalizerSettings, StoryboardNormalizer
from productreel.storyboard.planner import StoryboardPlanner
from productreel.timeline.beats import TransitionSettings
from productreel.timeline.model import TempoData

logger = logging.getLogger(__name__)

RENDER_PLAN_FILE = "render_plan.json"
BUNDLE_FILE = "bundle.json"


class PipelineConfig(BaseModel):
    data_root: Path = Path("data")
    llm_provider: str = "claude"
    llm_model: str = "claude-sonnet-4-5"
    anthropic_api_key_env: str = "ANTHROPIC_API_KEY"
    use_music: bool = True
    music_api_key_env: str = "WAVESPEED_API_KEY"
    music_model_path: str = "minimax/music-2.5"
    music_poll_interval: float = 5.0
    music_max_wait: float = 300.0
    music_request_timeout: float = 30.0
    use_narration: bool = True
    elevenlabs_api_key_env: str = "ELEVEN_LABS_API_KEY"
    narration_voice_id: str = DEFAULT_VOICE_ID
    narration_model_id: str = "eleven_turbo_v2"
    narration_voice_settings: dict[str, float] = Field(
        default_factory=lambda: {"stability": 0.4, "similarity_boost": 0.75}
    )
    tempo_sample_rate: int = 44100
    video: VideoSettings = Field(default_factory=VideoSettings)
    normalizer: NormalizerSettings = Field(default_factory=NormalizerSettings)
    transitions: TransitionSettings = Field(default_factory=TransitionSettings)
    envelopes: EnvelopeSettings = Field(default_factory=EnvelopeSettings)

    @classmethod
    def from_file(cls, path: Path) -> "PipelineConfig":
        text = path.read_text(encoding="utf-8")
        try:
            payload = json.loads(text)
        except json.JSONDecodeError:
            import yaml

            payload = yaml.safe_load(text)
        return cls.model_validate(payload or {})

    def engine_settings(self) -> EngineSettings:
        return EngineSettings(
            video=self.video,
            normalizer=self.normalizer,
            transitions=self.transitions,
            envelopes=self.envelopes,
        )

    def build_llm(self) -> LLMClient:
        provider = self.llm_provider.lower()
        if provider == "claude":
            from anthropic import Anthropic

            api_key = os.getenv(self.anthropic_api_key_env)
            if not api_key:
                raise RuntimeError(
                    f"Missing Anthropic API key. Set {self.anthropic_api_key_env} in your environment."
                )
            return ClaudeLLM(client=Anthropic(api_key=api_key), model=self.llm_model)
        if provider != "echo":
            logger.warning("Unknown llm_provider '%s'; falling back to EchoLLM", provider)
        return EchoLLM()


class PipelineBundle(BaseModel):
    page: Optional[PageBundle] = None
    storyboard: Storyboard
    tempo: Optional[TempoData] = None
    music_track: Optional[Path] = None
    narration_transcript: Optional[Path] = None
    narration_audio: Optional[Path] = None
    render_plan: Path


@dataclass
class PipelineOrchestrator:
    config: PipelineConfig
    page_ingestor: PageIngestor
    planner: StoryboardPlanner
    normalizer: StoryboardNormalizer
    music_client: WaveSpeedMusicClient | None
    narration_manager: NarrationManager
    tempo_estimator: TempoEstimator

    @classmethod
    def from_file(cls, path: Path) -> "PipelineOrchestrator":
        return cls.default(PipelineConfig.from_file(path))

    @classmethod
    def default(cls, config: PipelineConfig | None = None) -> "PipelineOrchestrator":
        config = config or PipelineConfig()
        audio_dir = config.data_root / "audio"

        music_client: WaveSpeedMusicClient | None = None
        if config.use_music:
            music_key = os.getenv(config.music_api_key_env)
            if music_key:
                music_client = WaveSpeedMusicClient(
                    api_key=music_key,
                    output_dir=audio_dir,
                    model_path=config.music_model_path,
                    poll_interval=config.music_poll_interval,
                    max_wait=config.music_max_wait,
                    request_timeout=config.music_request_timeout,
                )
            else:
                logger.warning(
                    "Music generation enabled but no API key found in %s", config.music_api_key_env
                )

        eleven_client: ElevenLabsClient | None = None
        if config.use_narration:
            eleven_key = os.getenv(config.elevenlabs_api_key_env)
            if eleven_key:
                eleven_client = ElevenLabsClient(
                    api_key=eleven_key,
                    voice_id=config.narration_voice_id,
                    model_id=config.narration_model_id,
                    voice_settings=config.narration_voice_settings,
                )
            else:
                logger.warning(
                    "Narration enabled but no ElevenLabs API key found in %s", config.elevenlabs_api_key_env
                )

        return cls(
            config=config,
            page_ingestor=PageIngestor(),
            planner=StoryboardPlanner(llm=config.build_llm()),
            normalizer=StoryboardNormalizer(config.normalizer),
            music_client=music_client,
            narration_manager=NarrationManager(audio_dir, eleven_client=eleven_client),
            tempo_estimator=TempoEstimator(sample_rate=config.tempo_sample_rate),
        )

    def run(
        self,
        product_url: str,
        output_dir: Path,
        *,
        mood_override: str | None = None,
        dry_run: bool = False,
        skip_music: bool = False,
        skip_narration: bool = False,
        cleanup: bool = False,
    ) -> PipelineBundle:
        logger.info("Ingesting landing page: %s", product_url)
        page = self.page_ingestor.ingest(product_url)
        run_dir = self._prepare_run_environment(page.slug, output_dir, cleanup)

        logger.info("Planning storyboard")
        raw = self.planner.plan(page, audio_mood_override=mood_override)
        storyboard = self.normalizer.normalize(raw, mood_override, product_url=str(page.metadata.url))

        music_track, narration = self._produce_audio(
            storyboard,
            dry_run=dry_run,
            skip_music=skip_music,
            skip_narration=skip_narration,
        )
        tempo = self._estimate_tempo(music_track)

        storyboard = storyboard.model_copy(
            update={
                "audio_track_file": music_track.file_name if music_track else None,
                "narration_track_file": narration.file_name if narration else None,
            }
        )
        plan = synchronize(storyboard, tempo, self.config.engine_settings())
        return self._write_outputs(run_dir, plan, page=page, tempo=tempo, music_track=music_track, narration=narration)

    def render_storyboard(
        self,
        raw: Mapping[str, Any],
        output_dir: Path,
        *,
        tempo: TempoData | None = None,
        mood_override: str | None = None,
    ) -> PipelineBundle:
        """Run only the engine on an existing storyboard and optional tempo data."""
        storyboard = self.normalizer.normalize(raw, mood_override)
        plan = synchronize(storyboard, tempo, self.config.engine_settings())
        output_dir.mkdir(parents=True, exist_ok=True)
        return self._write_outputs(output_dir, plan, tempo=tempo)

    # ------------------------------------------------------------------
    def _produce_audio(
        self,
        storyboard: Storyboard,
        *,
        dry_run: bool,
        skip_music: bool,
        skip_narration: bool,
    ) -> tuple[MusicTrack | None, NarrationAsset | None]:
        with ThreadPoolExecutor(max_workers=2, thread_name_prefix="audio") as pool:
            music_future = None
            if not (dry_run or skip_music) and self.music_client:
                music_future = pool.submit(
                    self.music_client.compose,
                    prompt=storyboard.audio_prompt,
                    lyrics=storyboard.audio_lyrics,
                )
            narration_future = None
            if not skip_narration and self.narration_manager.eleven_client:
                narration_future = pool.submit(
                    self.narration_manager.prepare, storyboard.narration_script, dry_run=dry_run
                )

            music_track: MusicTrack | None = None
            if music_future is not None:
                try:
                    music_track = music_future.result()
                except (MusicJobError, TimeoutError, requests.RequestException) as exc:
                    logger.error("Music generation failed; rendering with fallback track: %s", exc)

            narration: NarrationAsset | None = None
            if narration_future is not None:
                try:
                    asset = narration_future.result()
                except (ElevenLabsError, requests.RequestException) as exc:
                    logger.error("Narration synthesis failed; rendering without narration: %s", exc)
                else:
                    narration = asset if asset.audio_path else None
        return music_track, narration

    def _estimate_tempo(self, music_track: MusicTrack | None) -> TempoData | None:
        if music_track is None:
            return None
        tempo = self.tempo_estimator.analyze(music_track.path)
        if tempo is None:
            logger.warning("Tempo estimation failed for %s; using planned BPM", music_track.path)
        return tempo

    def _prepare_run_environment(self, slug: str, output_dir: Path, cleanup: bool) -> Path:
        run_dir = output_dir / slug
        if cleanup and run_dir.exists():
            shutil.rmtree(run_dir)
        audio_dir = run_dir / "audio"
        audio_dir.mkdir(parents=True, exist_ok=True)

        # Per-run destinations for generated audio
        if self.music_client:
            self.music_client.output_dir = audio_dir
        self.narration_manager.audio_dir = audio_dir
        return run_dir

    def _write_outputs(
        self,
        run_dir: Path,
        plan: RenderPlan,
        *,
        page: PageBundle | None = None,
        tempo: TempoData | None = None,
        music_track: MusicTrack | None = None,
        narration: NarrationAsset | None = None,
    ) -> PipelineBundle:
        plan_path = plan.write(run_dir / RENDER_PLAN_FILE)
        bundle = PipelineBundle(
            page=page,
            storyboard=plan.storyboard,
            tempo=tempo,
            music_track=music_track.path if music_track else None,
            narration_transcript=narration.transcript_path if narration else None,
            narration_audio=narration.audio_path if narration else None,
            render_plan=plan_path,
        )
        bundle_path = run_dir / BUNDLE_FILE
        bundle_path.write_text(bundle.model_dump_json(indent=2, by_alias=True), encoding="utf-8")
        logger.info("Pipeline bundle written to %s", bundle_path)
        return bundle
