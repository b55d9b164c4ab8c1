from __future__ import annotations

import logging
import math
from typing import Iterable, Optional, Sequence

from pydantic import BaseModel, Field, model_validator

from productreel.frames import round_half_up

from .model import BeatTrack, TempoData

logger = logging.getLogger(__name__)


class TransitionSettings(BaseModel):
    min_frames: int = Field(default=8, ge=0)
    max_frames: int = Field(default=18, ge=0)
    default_frames: int = Field(default=10, ge=0)

    @model_validator(mode="after")
    def _ordered(self) -> "TransitionSettings":
        if self.min_frames > self.max_frames:
            raise ValueError("min_frames must not exceed max_frames")
        return self


def transition_frames(
    bpm: Optional[float],
    fps: float,
    min_frames: int = 8,
    max_frames: int = 18,
    default_frames: int = 10,
) -> int:
    """Half-beat transition length in frames, clamped to ``[min_frames, max_frames]``.

    A missing or non-positive tempo yields ``default_frames`` instead of an
    error so a failed audio job never blocks composition.
    """
    if bpm is None or math.isnan(bpm) or bpm <= 0:
        return default_frames
    frames_per_beat = (60.0 / bpm) * fps
    half_beat = round_half_up(frames_per_beat / 2)
    return max(min_frames, min(max_frames, half_beat))


def quantize_beats(beat_times_ms: Iterable[float], fps: float) -> list[int]:
    """Map beat timestamps to frame numbers, merging beats that land on the same frame."""
    frames: list[int] = []
    for ms in sorted(beat_times_ms):
        if ms < 0:
            continue
        frame = round_half_up(ms / 1000.0 * fps)
        if frames and frame <= frames[-1]:
            continue
        frames.append(frame)
    return frames


def snap_to_beat(frame: int, beat_frames: Sequence[int]) -> int:
    if not beat_frames:
        return frame
    # min() keeps the first candidate on ties, i.e. the earlier beat.
    return min(beat_frames, key=lambda beat: abs(beat - frame))


def beat_track_from_tempo(tempo: TempoData | None, fps: float) -> BeatTrack | None:
    if tempo is None or tempo.bpm <= 0:
        return None
    return BeatTrack(bpm=tempo.bpm, beat_frames=quantize_beats(tempo.beat_times_ms, fps))


class BeatMapper:
    """Tempo-to-frame conversions bound to one set of transition limits."""

    def __init__(self, settings: TransitionSettings | None = None) -> None:
        self.settings = settings or TransitionSettings()

    def transition_frames(self, bpm: Optional[float], fps: float) -> int:
        frames = transition_frames(
            bpm,
            fps,
            min_frames=self.settings.min_frames,
            max_frames=self.settings.max_frames,
            default_frames=self.settings.default_frames,
        )
        if bpm is None or bpm <= 0:
            logger.info("No usable tempo; using default transition of %d frames", frames)
        else:
            logger.debug("Transition length %d frames for %.1f BPM at %s fps", frames, bpm, fps)
        return frames

    def beat_track(self, tempo: TempoData | None, fps: float) -> BeatTrack | None:
        track = beat_track_from_tempo(tempo, fps)
        if tempo is not None and track is not None and len(track.beat_frames) < len(tempo.beat_times_ms):
            logger.debug(
                "Merged %d colliding beat(s) during quantization",
                len(tempo.beat_times_ms) - len(track.beat_frames),
            )
        return track
