from __future__ import annotations

import logging
from typing import Optional

from pydantic import BaseModel, Field

from productreel.audio.scheduler import AudioScheduler, EnvelopeSettings
from productreel.render.plan import AudioLayer, RenderPlan, VideoSettings, audio_source
from productreel.storyboard.model import Storyboard
from productreel.storyboard.normalizer import NormalizerSettings
from productreel.timeline.beats import BeatMapper, TransitionSettings
from productreel.timeline.composer import TimelineComposer
from productreel.timeline.model import TempoData

logger = logging.getLogger(__name__)


class EngineSettings(BaseModel):
    video: VideoSettings = Field(default_factory=VideoSettings)
    normalizer: NormalizerSettings = Field(default_factory=NormalizerSettings)
    transitions: TransitionSettings = Field(default_factory=TransitionSettings)
    envelopes: EnvelopeSettings = Field(default_factory=EnvelopeSettings)


def resolve_bpm(storyboard: Storyboard, tempo: TempoData | None) -> Optional[float]:
    """Pick the tempo that drives transition length.

    A detected tempo wins. With a track but no detection the planned BPM is
    used, since the track was generated from that brief. Without any track
    there is no beat to lock to.
    """
    if tempo is not None and tempo.bpm > 0:
        return tempo.bpm
    if storyboard.audio_track_file:
        return storyboard.bpm
    return None


def synchronize(
    storyboard: Storyboard,
    tempo: TempoData | None = None,
    settings: EngineSettings | None = None,
) -> RenderPlan:
    """Compose the timeline and audio envelopes for a normalized storyboard."""
    settings = settings or EngineSettings()
    fps = settings.video.fps

    mapper = BeatMapper(settings.transitions)
    bpm = resolve_bpm(storyboard, tempo)
    transition_frames = mapper.transition_frames(bpm, fps)
    beat_track = mapper.beat_track(tempo, fps)

    timeline = TimelineComposer().compose(storyboard, transition_frames)
    schedule = AudioScheduler(settings.envelopes).schedule(timeline, fps, storyboard.has_narration)

    narration_layer = None
    if schedule.narration is not None:
        narration_layer = AudioLayer(
            source=audio_source(storyboard.narration_track_file),
            envelope=schedule.narration,
        )
    if not storyboard.audio_track_file:
        logger.info("No generated music track; renderer will use %s", audio_source(None))

    logger.info(
        "Timeline: %d frames (%.1fs), %d transitions of %d frames",
        timeline.total_frames,
        timeline.duration_seconds(fps),
        len(timeline.transition_segments),
        transition_frames,
    )
    return RenderPlan(
        video=settings.video,
        storyboard=storyboard,
        timeline=timeline,
        bpm=bpm,
        beat_frames=beat_track.beat_frames if beat_track else [],
        music=AudioLayer(source=audio_source(storyboard.audio_track_file), envelope=schedule.music),
        narration=narration_layer,
    )
