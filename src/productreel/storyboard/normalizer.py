from __future__ import annotations

import copy
import logging
from typing import Any, Mapping, Optional, Sequence

from pydantic import BaseModel, Field
from pydantic import ValidationError as SchemaError

from productreel.frames import round_half_up

from .defaults import DEFAULT_AUDIO_LYRICS, DEFAULT_AUDIO_MOOD, NO_NARRATION, default_audio_prompt
from .model import AudioMood, SceneBase, Storyboard, content_scene_adapter

logger = logging.getLogger(__name__)


class ValidationError(ValueError):
    """Raised when a storyboard is structurally unusable and must be re-planned."""


class NormalizerSettings(BaseModel):
    bpm_min: float = 80.0
    bpm_max: float = 200.0
    default_bpm: float = 128.0
    max_content_frames: int = Field(default=480, ge=1)
    min_scene_frames: int = Field(default=30, ge=1)
    min_creative_text_length: int = 10
    opening_kind: str = "hook"
    closing_kind: str = "cta"


class StoryboardNormalizer:
    """Validate and repair a planner-produced storyboard.

    Only missing top-level structure is fatal. Everything recoverable by
    substitution (BPM, duration budget, creative text) is corrected and logged.
    """

    def __init__(self, settings: NormalizerSettings | None = None) -> None:
        self.settings = settings or NormalizerSettings()

    def normalize(
        self,
        raw: Mapping[str, Any] | Storyboard,
        mood_override: AudioMood | str | None = None,
        *,
        product_url: str | None = None,
    ) -> Storyboard:
        payload = _as_payload(raw)
        self._check_required(payload)

        raw_scenes = [scene for scene in payload["scenes"] if not _is_transition_marker(scene)]
        dropped = len(payload["scenes"]) - len(raw_scenes)
        if dropped:
            logger.info("Dropped %d legacy transition scene(s); transitions are derived from tempo", dropped)
        if not raw_scenes:
            raise ValidationError("storyboard contains no content scenes")
        scenes = [self._parse_scene(index, scene) for index, scene in enumerate(raw_scenes)]

        self._check_narrative_shape(scenes)
        bpm = self.sanitize_bpm(_lookup(payload, "bpm", "audioBpm", "audio_bpm"))
        scenes = self.enforce_duration_budget(scenes)
        mood = self._resolve_mood(_lookup(payload, "audioMood", "audio_mood"), mood_override)

        _replace(payload, [scene.model_dump(by_alias=True) for scene in scenes], "scenes")
        _replace(payload, bpm, "bpm", "audioBpm", "audio_bpm")
        _replace(payload, mood.value, "audioMood", "audio_mood")
        if product_url:
            _replace(payload, product_url, "productUrl", "product_url")

        audio_prompt = _lookup(payload, "audioPrompt", "audio_prompt")
        if not self._long_enough(audio_prompt):
            logger.info("Audio prompt missing or too short; using %s default", mood.value)
            _replace(payload, default_audio_prompt(mood), "audioPrompt", "audio_prompt")
        if not self._long_enough(_lookup(payload, "audioLyrics", "audio_lyrics")):
            _replace(payload, DEFAULT_AUDIO_LYRICS, "audioLyrics", "audio_lyrics")
        if not self._long_enough(_lookup(payload, "narrationScript", "narration_script")):
            logger.info("Narration script missing or too short; rendering without narration")
            _replace(payload, NO_NARRATION, "narrationScript", "narration_script")
        _drop_nulls(payload)

        try:
            storyboard = Storyboard.model_validate(payload)
        except SchemaError as exc:
            raise ValidationError(f"storyboard failed schema validation: {exc}") from exc

        logger.info(
            "Storyboard: %d scenes, %d frames, %s BPM, narrative: %s",
            len(storyboard.scenes),
            storyboard.total_content_frames,
            storyboard.bpm,
            " -> ".join(scene.type for scene in storyboard.scenes),
        )
        return storyboard

    # Individual policies ---------------------------------------------------

    def sanitize_bpm(self, bpm: Any) -> float:
        settings = self.settings
        try:
            value = float(bpm)
        except (TypeError, ValueError):
            value = None
        if value is None or not (settings.bpm_min <= value <= settings.bpm_max):
            if bpm is not None:
                logger.info("BPM %s outside [%s, %s]; using %s", bpm, settings.bpm_min, settings.bpm_max, settings.default_bpm)
            return settings.default_bpm
        return value

    def enforce_duration_budget(self, scenes: Sequence[SceneBase]) -> list[SceneBase]:
        """Scale scene durations proportionally when their sum exceeds the budget.

        Each scene rounds independently and is clamped to the minimum, so the
        scaled sum can land a few frames away from the budget. No second pass
        is made to absorb that drift.
        """
        budget = self.settings.max_content_frames
        total = sum(scene.duration_in_frames for scene in scenes)
        if total <= budget:
            return list(scenes)

        scale = budget / total
        logger.warning("Total frames (%d) exceed budget %d; scaling by %.3f", total, budget, scale)
        scaled = [
            scene.model_copy(
                update={
                    "duration_in_frames": max(
                        self.settings.min_scene_frames,
                        round_half_up(scene.duration_in_frames * scale),
                    )
                }
            )
            for scene in scenes
        ]
        scaled_total = sum(scene.duration_in_frames for scene in scaled)
        if scaled_total != budget:
            logger.info("Scaled total is %d frames (budget %d) after per-scene rounding", scaled_total, budget)
        return scaled

    # Helpers ---------------------------------------------------------------

    def _check_required(self, payload: Mapping[str, Any]) -> None:
        scenes = payload.get("scenes")
        if not isinstance(scenes, list) or not scenes:
            raise ValidationError("scenes array is missing or empty")
        theme = _lookup(payload, "colorTheme", "color_theme")
        if not isinstance(theme, Mapping) or not theme.get("primary"):
            raise ValidationError("colorTheme is missing or incomplete")
        if not _lookup(payload, "audioMood", "audio_mood"):
            raise ValidationError("audioMood is missing")

    def _parse_scene(self, index: int, scene: Any) -> SceneBase:
        try:
            return content_scene_adapter.validate_python(scene)
        except SchemaError as exc:
            kind = scene.get("type") if isinstance(scene, Mapping) else type(scene).__name__
            raise ValidationError(f"scene {index} ({kind}) is invalid: {exc}") from exc

    def _check_narrative_shape(self, scenes: Sequence[SceneBase]) -> None:
        kinds = [scene.type for scene in scenes]
        if kinds[0] != self.settings.opening_kind:
            logger.warning(
                "First scene is '%s', not '%s'; narrative may be off",
                kinds[0],
                self.settings.opening_kind,
            )
        if kinds[-1] != self.settings.closing_kind:
            logger.warning(
                "Last scene is '%s', not '%s'; narrative may be off",
                kinds[-1],
                self.settings.closing_kind,
            )

    def _resolve_mood(self, planned: Any, override: AudioMood | str | None) -> AudioMood:
        if override:
            try:
                return AudioMood(override)
            except ValueError as exc:
                raise ValidationError(f"unknown audio mood override '{override}'") from exc
        try:
            return AudioMood(planned)
        except ValueError:
            logger.warning("Unknown audio mood '%s'; using %s", planned, DEFAULT_AUDIO_MOOD.value)
            return DEFAULT_AUDIO_MOOD

    def _long_enough(self, text: Any) -> bool:
        return isinstance(text, str) and len(text.strip()) >= self.settings.min_creative_text_length


def normalize(
    raw: Mapping[str, Any] | Storyboard,
    mood_override: AudioMood | str | None = None,
    *,
    settings: NormalizerSettings | None = None,
    product_url: str | None = None,
) -> Storyboard:
    return StoryboardNormalizer(settings).normalize(raw, mood_override, product_url=product_url)


def _as_payload(raw: Mapping[str, Any] | Storyboard) -> dict[str, Any]:
    if isinstance(raw, Storyboard):
        return raw.model_dump(mode="json", by_alias=True, exclude_none=True)
    if not isinstance(raw, Mapping):
        raise ValidationError(f"storyboard must be an object, got {type(raw).__name__}")
    return copy.deepcopy(dict(raw))


def _is_transition_marker(scene: Any) -> bool:
    return isinstance(scene, Mapping) and scene.get("type") == "transition"


def _lookup(payload: Mapping[str, Any], *keys: str) -> Optional[Any]:
    for key in keys:
        value = payload.get(key)
        if value is not None:
            return value
    return None


def _replace(payload: dict[str, Any], value: Any, *keys: str) -> None:
    for key in keys:
        payload.pop(key, None)
    payload[keys[0]] = value


def _drop_nulls(payload: dict[str, Any]) -> None:
    """Treat explicit nulls as absent so optional fields take their defaults."""
    for key in [key for key, value in payload.items() if value is None]:
        del payload[key]
    for key in ("colorTheme", "color_theme"):
        theme = payload.get(key)
        if isinstance(theme, Mapping):
            payload[key] = {name: value for name, value in theme.items() if value is not None}
