from __future__ import annotations

import logging
from typing import Mapping

from productreel.storyboard.model import Storyboard

from .model import ContentSegment, Timeline, TransitionSegment, TransitionSpec, TransitionStyle

logger = logging.getLogger(__name__)


class CompositionError(RuntimeError):
    """Raised when composition inputs violate the upstream contract."""


# Keyed on the incoming scene kind.
TRANSITION_STYLES: Mapping[str, TransitionStyle] = {
    "problem": TransitionStyle.WIPE_FROM_RIGHT,
    "solution": TransitionStyle.SLIDE_FROM_BOTTOM,
    "use-cases": TransitionStyle.SLIDE_FROM_RIGHT,
    "results": TransitionStyle.SLIDE_FROM_RIGHT,
    "cta": TransitionStyle.FADE,
}
DEFAULT_TRANSITION_STYLE = TransitionStyle.FADE


def transition_style_for(from_kind: str, to_kind: str) -> TransitionStyle:
    return TRANSITION_STYLES.get(to_kind, DEFAULT_TRANSITION_STYLE)


def transition_spec(from_kind: str, to_kind: str, transition_frames: int) -> TransitionSpec:
    return TransitionSpec(
        from_kind=from_kind,
        to_kind=to_kind,
        style=transition_style_for(from_kind, to_kind),
        duration_in_frames=transition_frames,
    )


class TimelineComposer:
    """Lay content scenes on the frame axis with overlapping transitions between them."""

    def compose(self, storyboard: Storyboard, transition_frames: int) -> Timeline:
        if transition_frames < 0:
            raise CompositionError(f"transition length must be non-negative, got {transition_frames}")
        scenes = storyboard.content_scenes
        if len(scenes) != len(storyboard.scenes):
            # Segment indices are positions in storyboard.scenes.
            raise CompositionError("storyboard still contains transition markers; normalize it first")
        if not scenes:
            raise CompositionError("cannot compose a timeline without content scenes")

        segments: list[ContentSegment | TransitionSegment] = []
        previous: ContentSegment | None = None
        start = 0
        for index, scene in enumerate(scenes):
            if previous is not None:
                start = previous.end_frame - transition_frames
                if transition_frames > min(previous.length, scene.duration_in_frames):
                    logger.warning(
                        "Transition of %d frames is longer than scene %d or %d",
                        transition_frames,
                        index - 1,
                        index,
                    )
                spec = transition_spec(previous.scene_type, scene.type, transition_frames)
                segments.append(
                    TransitionSegment(
                        style=spec.style,
                        from_scene=index - 1,
                        to_scene=index,
                        start_frame=start,
                        length=spec.duration_in_frames,
                    )
                )
            previous = ContentSegment(
                scene_index=index,
                scene_type=scene.type,
                start_frame=start,
                length=scene.duration_in_frames,
            )
            segments.append(previous)

        content_total = sum(scene.duration_in_frames for scene in scenes)
        total = content_total - (len(scenes) - 1) * transition_frames
        if total < 0:
            logger.warning("Transitions consume more frames than the scenes provide; clamping total to 0")
            total = 0
        return Timeline(segments=segments, transition_frames=transition_frames, total_frames=total)


def compose(storyboard: Storyboard, transition_frames: int) -> Timeline:
    return TimelineComposer().compose(storyboard, transition_frames)
