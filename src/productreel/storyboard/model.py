from __future__ import annotations

from enum import Enum
from typing import Annotated, List, Literal, Optional, Union

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, TypeAdapter
from pydantic.alias_generators import to_camel


class AudioMood(str, Enum):
    CLASSICAL = "cinematic-classical"
    ELECTRONIC = "cinematic-electronic"
    POP = "cinematic-pop"
    EPIC = "cinematic-epic"
    DARK = "cinematic-dark"


class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class ColorTheme(_CamelModel):
    model_config = ConfigDict(frozen=True)

    primary: str
    secondary: str = "#1A1A1A"
    accent: str = "#A5D6FF"
    background: str = "#0A0A0A"
    text: str = "#FAFAFA"
    text_secondary: str = "#A1A1AA"


class FeatureItem(_CamelModel):
    model_config = ConfigDict(frozen=True, extra="allow")

    title: str
    description: str = ""
    icon: Optional[str] = None


class StatItem(_CamelModel):
    model_config = ConfigDict(frozen=True, extra="allow")

    value: float
    suffix: str = ""
    label: str


class SceneBase(_CamelModel):
    """Fields shared by every scene kind.

    Unknown attributes emitted by the planner are kept and re-serialized so the
    renderer can use them; validation only looks at the declared fields.
    """

    model_config = ConfigDict(frozen=True, extra="allow")

    duration_in_frames: int = Field(ge=1)


class HookScene(SceneBase):
    type: Literal["hook"] = "hook"
    brand_name: str
    tagline: str
    logo_url: Optional[str] = None
    claim: Optional[str] = None


class ProblemScene(SceneBase):
    type: Literal["problem"] = "problem"
    headline: str
    pain_points: List[str]


class SolutionScene(SceneBase):
    type: Literal["solution"] = "solution"
    headline: str
    features: List[FeatureItem]
    screenshot_url: Optional[str] = None


class UseCasesScene(SceneBase):
    type: Literal["use-cases"] = "use-cases"
    headline: str
    cases: List[FeatureItem]


class ResultsScene(SceneBase):
    type: Literal["results"] = "results"
    headline: Optional[str] = None
    stats: List[StatItem]


class CTAScene(SceneBase):
    type: Literal["cta"] = "cta"
    headline: str
    subheadline: Optional[str] = None
    button_text: str
    url: str


class TransitionScene(SceneBase):
    """Legacy author-specified transition marker; never survives normalization."""

    type: Literal["transition"] = "transition"
    style: str = "fade"


ContentScene = Annotated[
    Union[HookScene, ProblemScene, SolutionScene, UseCasesScene, ResultsScene, CTAScene],
    Field(discriminator="type"),
]

Scene = Annotated[
    Union[
        HookScene,
        ProblemScene,
        SolutionScene,
        UseCasesScene,
        ResultsScene,
        CTAScene,
        TransitionScene,
    ],
    Field(discriminator="type"),
]

CONTENT_SCENE_TYPES = ("hook", "problem", "solution", "use-cases", "results", "cta")

content_scene_adapter: TypeAdapter[ContentScene] = TypeAdapter(ContentScene)


def is_content_scene(scene: SceneBase) -> bool:
    return getattr(scene, "type", None) in CONTENT_SCENE_TYPES


class Storyboard(_CamelModel):
    """Ordered scenes plus theme and audio metadata for one video."""

    model_config = ConfigDict(frozen=True, extra="allow")

    scenes: List[Scene]
    color_theme: ColorTheme
    audio_mood: AudioMood
    bpm: Optional[float] = Field(default=None, validation_alias=AliasChoices("bpm", "audioBpm"))
    product_url: str = ""
    audio_track_file: Optional[str] = None
    narration_track_file: Optional[str] = None
    audio_prompt: str = ""
    audio_lyrics: str = ""
    narration_script: str = ""

    @property
    def content_scenes(self) -> list[SceneBase]:
        return [scene for scene in self.scenes if is_content_scene(scene)]

    @property
    def total_content_frames(self) -> int:
        return sum(scene.duration_in_frames for scene in self.content_scenes)

    @property
    def has_narration(self) -> bool:
        return bool(self.narration_track_file)

    def to_payload(self) -> dict:
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)
