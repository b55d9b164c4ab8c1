from __future__ import annotations

from enum import Enum
from typing import Annotated, List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from productreel.frames import frames_to_seconds


class _TimelineModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)


class TransitionStyle(str, Enum):
    FADE = "fade"
    WIPE_FROM_RIGHT = "wipe-from-right"
    SLIDE_FROM_BOTTOM = "slide-from-bottom"
    SLIDE_FROM_RIGHT = "slide-from-right"


class TransitionSpec(_TimelineModel):
    from_kind: str
    to_kind: str
    style: TransitionStyle
    duration_in_frames: int = Field(ge=0)


class ContentSegment(_TimelineModel):
    segment: Literal["content"] = "content"
    scene_index: int = Field(ge=0)
    scene_type: str
    start_frame: int
    length: int = Field(ge=1)

    @property
    def end_frame(self) -> int:
        return self.start_frame + self.length


class TransitionSegment(_TimelineModel):
    """Beat-sized bridge carved out of the tail of one scene and the head of the next."""

    segment: Literal["transition"] = "transition"
    style: TransitionStyle
    from_scene: int = Field(ge=0)
    to_scene: int = Field(ge=0)
    start_frame: int
    length: int = Field(ge=0)

    @property
    def end_frame(self) -> int:
        return self.start_frame + self.length


Segment = Annotated[Union[ContentSegment, TransitionSegment], Field(discriminator="segment")]


class Timeline(_TimelineModel):
    segments: List[Segment]
    transition_frames: int = Field(ge=0)
    total_frames: int = Field(ge=0)

    @property
    def content_segments(self) -> list[ContentSegment]:
        return [segment for segment in self.segments if isinstance(segment, ContentSegment)]

    @property
    def transition_segments(self) -> list[TransitionSegment]:
        return [segment for segment in self.segments if isinstance(segment, TransitionSegment)]

    def scene_at(self, frame: int) -> Optional[int]:
        """Index of the scene visible at ``frame``; the incoming scene wins inside a transition."""
        if frame < 0 or frame >= self.total_frames:
            return None
        visible: Optional[int] = None
        for segment in self.content_segments:
            if segment.start_frame <= frame < segment.end_frame:
                visible = segment.scene_index
        return visible

    def duration_seconds(self, fps: float) -> float:
        return frames_to_seconds(self.total_frames, fps)


class TempoData(_TimelineModel):
    """Tempo estimate for a generated audio track."""

    bpm: float
    beat_times_ms: List[float] = Field(default_factory=list)


class BeatTrack(_TimelineModel):
    bpm: float
    beat_frames: List[int] = Field(default_factory=list)

    @field_validator("beat_frames")
    @classmethod
    def _strictly_increasing(cls, value: List[int]) -> List[int]:
        if any(frame < 0 for frame in value):
            raise ValueError("beat frames must be non-negative")
        if any(later <= earlier for earlier, later in zip(value, value[1:])):
            raise ValueError("beat frames must be strictly increasing")
        return value
