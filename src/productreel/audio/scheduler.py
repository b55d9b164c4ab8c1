from __future__ import annotations

import logging

from pydantic import BaseModel, Field

from productreel.frames import seconds_to_frames
from productreel.timeline.model import Timeline

from .model import AudioSchedule, VolumeEnvelope

logger = logging.getLogger(__name__)


class EnvelopeSettings(BaseModel):
    music_fade_in_seconds: float = Field(default=0.5, gt=0)
    music_fade_out_seconds: float = Field(default=1.0, gt=0)
    music_peak: float = Field(default=0.8, ge=0.0, le=1.0)
    # Music sits under the voice whenever narration is present.
    music_ducked_peak: float = Field(default=0.25, ge=0.0, le=1.0)
    narration_fade_in_seconds: float = Field(default=0.3, gt=0)
    narration_fade_out_seconds: float = Field(default=0.5, gt=0)
    narration_peak: float = Field(default=0.9, ge=0.0, le=1.0)


def _fade_envelope(total_frames: int, fade_in_frames: int, fade_out_frames: int, peak: float) -> VolumeEnvelope:
    if total_frames < 0:
        raise ValueError(f"total_frames must be non-negative, got {total_frames}")
    fade_in_end = max(1, fade_in_frames)
    hold_end = max(fade_in_end + 1, total_frames - fade_out_frames)
    end = max(total_frames, hold_end + 1)
    return VolumeEnvelope.from_points(
        [0, fade_in_end, hold_end, end],
        [0.0, peak, peak, 0.0],
    )


class AudioScheduler:
    """Derive volume envelopes for the music and narration layers from a composed timeline."""

    def __init__(self, settings: EnvelopeSettings | None = None) -> None:
        self.settings = settings or EnvelopeSettings()

    def schedule_music(self, total_frames: int, has_narration: bool, fps: int) -> VolumeEnvelope:
        settings = self.settings
        peak = settings.music_ducked_peak if has_narration else settings.music_peak
        return _fade_envelope(
            total_frames,
            seconds_to_frames(settings.music_fade_in_seconds, fps),
            seconds_to_frames(settings.music_fade_out_seconds, fps),
            peak,
        )

    def schedule_narration(self, total_frames: int, fps: int) -> VolumeEnvelope:
        settings = self.settings
        return _fade_envelope(
            total_frames,
            seconds_to_frames(settings.narration_fade_in_seconds, fps),
            seconds_to_frames(settings.narration_fade_out_seconds, fps),
            settings.narration_peak,
        )

    def schedule(self, timeline: Timeline, fps: int, has_narration: bool) -> AudioSchedule:
        music = self.schedule_music(timeline.total_frames, has_narration, fps)
        narration = self.schedule_narration(timeline.total_frames, fps) if has_narration else None
        logger.debug(
            "Scheduled music peak %.2f%s over %d frames",
            music.peak_volume,
            " with narration" if narration else "",
            timeline.total_frames,
        )
        return AudioSchedule(music=music, narration=narration)


def schedule_music(
    total_frames: int,
    has_narration: bool,
    fps: int,
    settings: EnvelopeSettings | None = None,
) -> VolumeEnvelope:
    return AudioScheduler(settings).schedule_music(total_frames, has_narration, fps)


def schedule_narration(total_frames: int, fps: int, settings: EnvelopeSettings | None = None) -> VolumeEnvelope:
    return AudioScheduler(settings).schedule_narration(total_frames, fps)
