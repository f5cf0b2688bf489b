"""Domain models - pure Python classes independent of database."""

from dataclasses import asdict, dataclass, field
from datetime import datetime
from typing import Any, ClassVar
from uuid import UUID

from vidgen_engine.domain.enums import AspectRatio, AssetType, OrchestrationModeKind


@dataclass(frozen=True)
class ApiPrincipal:
    """Identity resolved from a valid API key."""

    key_id: UUID
    owner_id: UUID
    rate_limit_per_minute: int


@dataclass(frozen=True)
class SubmittedAsset:
    """A pre-rendered asset supplied by the caller."""

    type: AssetType
    url: str


@dataclass(frozen=True)
class AssetStitchMode:
    """Caller supplied the media; the worker only composes it."""

    kind: ClassVar[OrchestrationModeKind] = OrchestrationModeKind.ASSET_STITCH

    assets: tuple[SubmittedAsset, ...]

    @property
    def visual_assets(self) -> list[SubmittedAsset]:
        return [a for a in self.assets if a.type in (AssetType.VIDEO, AssetType.IMAGE)]

    @property
    def soundtrack(self) -> SubmittedAsset | None:
        return next((a for a in self.assets if a.type == AssetType.AUDIO), None)


@dataclass(frozen=True)
class AutonomousMode:
    """The director pipeline writes, narrates and generates every scene."""

    kind: ClassVar[OrchestrationModeKind] = OrchestrationModeKind.AUTONOMOUS

    voice_id: str | None = None


OrchestrationMode = AssetStitchMode | AutonomousMode


@dataclass
class GenerationRequest:
    """A validated request to generate one video."""

    prompt: str
    mode: OrchestrationMode
    template: str
    aspect_ratio: AspectRatio = AspectRatio.LANDSCAPE
    burn_subtitles: bool = True
    duration_seconds: int = 30
    webhook_url: str | None = None


@dataclass
class SubmissionReceipt:
    """What the caller gets back from a submission."""

    project_id: UUID
    status: str
    message: str
    estimated_completion_time: datetime
    job_id: UUID | None = None
    webhook_delivery_id: UUID | None = None


@dataclass
class ScenePlan:
    """One scene produced by content analysis."""

    scene_index: int
    description: str
    prompt: str
    narration_text: str
    duration_seconds: float
    mood: str = "neutral"
    camera_movement: str = "static"
    visual_elements: list[str] = field(default_factory=list)


@dataclass
class ContentAnalysis:
    """Checkpointed output of the content analysis stage."""

    title: str
    scenes: list[ScenePlan]
    sentiment: str = "neutral"
    topic: str = "general"
    recommended_template: str | None = None

    @property
    def narration_script(self) -> str:
        return " ".join(s.narration_text.strip() for s in self.scenes if s.narration_text.strip())

    @property
    def total_duration(self) -> float:
        return sum(s.duration_seconds for s in self.scenes)

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "ContentAnalysis":
        return cls(
            title=data["title"],
            scenes=[ScenePlan(**scene) for scene in data.get("scenes", [])],
            sentiment=data.get("sentiment", "neutral"),
            topic=data.get("topic", "general"),
            recommended_template=data.get("recommended_template"),
        )


@dataclass
class Narration:
    """Checkpointed output of the narration stage."""

    audio_url: str
    duration_seconds: float
    script: str


@dataclass(frozen=True)
class SubtitleCue:
    """One timed subtitle line."""

    index: int
    start_seconds: float
    end_seconds: float
    text: str


@dataclass(frozen=True)
class RecipeClip:
    """One ordered visual segment of a composition."""

    scene_index: int
    url: str
    media_type: str
    duration_seconds: float | None


@dataclass
class CompositionRecipe:
    """Deterministic description of the final video handed to the renderer."""

    project_id: UUID
    clips: list[RecipeClip]
    aspect_ratio: str
    width: int
    height: int
    style_template: str
    audio_url: str | None = None
    subtitles: list[SubtitleCue] = field(default_factory=list)
    subtitle_style: dict[str, Any] | None = None
    output_format: str = "mp4"
    fps: int = 30
    fingerprint: str = ""

    @property
    def burn_subtitles(self) -> bool:
        return bool(self.subtitles)

    def canonical(self) -> dict[str, Any]:
        """Fingerprint input: every field except the fingerprint itself."""
        data = asdict(self)
        data.pop("fingerprint")
        data["project_id"] = str(self.project_id)
        return data


@dataclass
class ComposedVideo:
    """Outcome of a successful composition."""

    output_url: str
    processing_seconds: float
    duration_seconds: float | None = None
    recipe_fingerprint: str | None = None
