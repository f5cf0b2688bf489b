"""Domain models and business logic."""

from vidgen_engine.domain.enums import (
    ApiKeyStatus,
    AspectRatio,
    AssetType,
    OrchestrationModeKind,
    PipelineStage,
    ProjectStatus,
    RenderJobStatus,
    SceneStatus,
    WebhookDeliveryStatus,
    WebhookEventStatus,
)
from vidgen_engine.domain.errors import (
    AuthError,
    InvalidStateError,
    LeaseLostError,
    NotFoundError,
    ProviderError,
    QueueExhaustedError,
    RateLimitExceededError,
    ValidationError,
    VidGenError,
)
from vidgen_engine.domain.models import (
    ApiPrincipal,
    AssetStitchMode,
    AutonomousMode,
    ComposedVideo,
    CompositionRecipe,
    ContentAnalysis,
    GenerationRequest,
    Narration,
    OrchestrationMode,
    RecipeClip,
    ScenePlan,
    SubmissionReceipt,
    SubmittedAsset,
    SubtitleCue,
)

__all__ = [
    "ApiKeyStatus",
    "ApiPrincipal",
    "AspectRatio",
    "AssetStitchMode",
    "AssetType",
    "AuthError",
    "AutonomousMode",
    "ComposedVideo",
    "CompositionRecipe",
    "ContentAnalysis",
    "GenerationRequest",
    "InvalidStateError",
    "LeaseLostError",
    "Narration",
    "NotFoundError",
    "OrchestrationMode",
    "OrchestrationModeKind",
    "PipelineStage",
    "ProjectStatus",
    "ProviderError",
    "QueueExhaustedError",
    "RateLimitExceededError",
    "RecipeClip",
    "RenderJobStatus",
    "ScenePlan",
    "SceneStatus",
    "SubmissionReceipt",
    "SubmittedAsset",
    "SubtitleCue",
    "ValidationError",
    "VidGenError",
    "WebhookDeliveryStatus",
    "WebhookEventStatus",
]
