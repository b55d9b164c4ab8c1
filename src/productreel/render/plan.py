from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from productreel.audio.model import VolumeEnvelope
from productreel.storyboard.model import Storyboard
from productreel.timeline.model import Timeline

logger = logging.getLogger(__name__)

FALLBACK_MUSIC_SOURCE = "audio/fallback.mp3"


class VideoSettings(BaseModel):
    fps: int = Field(default=30, gt=0)
    width: int = Field(default=1920, gt=0)
    height: int = Field(default=1080, gt=0)


class AudioLayer(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    source: str
    envelope: VolumeEnvelope


class RenderPlan(BaseModel):
    """Everything the external renderer needs for one video."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    video: VideoSettings
    storyboard: Storyboard
    timeline: Timeline
    bpm: Optional[float] = None
    beat_frames: List[int] = Field(default_factory=list)
    music: AudioLayer
    narration: Optional[AudioLayer] = None

    @property
    def duration_seconds(self) -> float:
        return self.timeline.duration_seconds(self.video.fps)

    def to_payload(self) -> dict:
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)

    def write(self, path: Path) -> Path:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(json.dumps(self.to_payload(), indent=2), encoding="utf-8")
        logger.info("Wrote render plan to %s (%d frames)", path, self.timeline.total_frames)
        return path


def audio_source(file_name: str | None) -> str:
    if not file_name:
        return FALLBACK_MUSIC_SOURCE
    return f"audio/{file_name}"
