from __future__ import annotations

import math


def round_half_up(value: float) -> int:
    """Round to the nearest integer, with .5 always rounding toward +inf.

    Python's ``round`` uses banker's rounding, which would make frame counts
    depend on whether the neighbouring integer happens to be even.
    """
    return int(math.floor(value + 0.5))


def seconds_to_frames(seconds: float, fps: float) -> int:
    return round_half_up(seconds * fps)


def frames_to_seconds(frames: int, fps: float) -> float:
    if fps <= 0:
        raise ValueError("fps must be positive")
    return frames / fps
