from __future__ import annotations

from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel


class Breakpoint(BaseModel):
    model_config = ConfigDict(frozen=True)

    frame: int
    volume: float = Field(ge=0.0, le=1.0)


class VolumeEnvelope(BaseModel):
    """Piecewise-linear volume curve over frame numbers."""

    model_config = ConfigDict(frozen=True)

    breakpoints: List[Breakpoint] = Field(min_length=2)

    @field_validator("breakpoints")
    @classmethod
    def _frames_strictly_increasing(cls, value: List[Breakpoint]) -> List[Breakpoint]:
        for earlier, later in zip(value, value[1:]):
            if later.frame <= earlier.frame:
                raise ValueError(
                    f"breakpoint frames must be strictly increasing ({earlier.frame} then {later.frame})"
                )
        return value

    @classmethod
    def from_points(cls, frames: List[int], volumes: List[float]) -> "VolumeEnvelope":
        if len(frames) != len(volumes):
            raise ValueError("frames and volumes must have the same length")
        return cls(breakpoints=[Breakpoint(frame=f, volume=v) for f, v in zip(frames, volumes)])

    @property
    def frames(self) -> list[int]:
        return [point.frame for point in self.breakpoints]

    @property
    def volumes(self) -> list[float]:
        return [point.volume for point in self.breakpoints]

    @property
    def peak_volume(self) -> float:
        return max(self.volumes)

    def volume_at(self, frame: float) -> float:
        # Clamped at both ends, matching how the renderer evaluates the curve.
        points = self.breakpoints
        if frame <= points[0].frame:
            return points[0].volume
        if frame >= points[-1].frame:
            return points[-1].volume
        for left, right in zip(points, points[1:]):
            if left.frame <= frame <= right.frame:
                progress = (frame - left.frame) / (right.frame - left.frame)
                return left.volume + (right.volume - left.volume) * progress
        return points[-1].volume


class AudioSchedule(BaseModel):
    model_config = ConfigDict(frozen=True, alias_generator=to_camel, populate_by_name=True)

    music: VolumeEnvelope
    narration: Optional[VolumeEnvelope] = None
