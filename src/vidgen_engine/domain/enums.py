"""Domain enumerations."""

from enum import StrEnum


class ApiKeyStatus(StrEnum):
    """Lifecycle of an API key."""

    ACTIVE = "active"
    REVOKED = "revoked"
    EXPIRED = "expired"


class ProjectStatus(StrEnum):
    """Status of a video project."""

    DRAFT = "draft"
    PROCESSING = "processing"
    COMPLETED = "completed"
    FAILED = "failed"


class RenderJobStatus(StrEnum):
    """Status of a job in the render queue."""

    PENDING = "pending"
    PROCESSING = "processing"
    COMPLETED = "completed"
    FAILED = "failed"


class SceneStatus(StrEnum):
    """Status of a single scene clip."""

    PENDING = "pending"
    GENERATING = "generating"
    COMPLETED = "completed"
    FAILED = "failed"


class WebhookDeliveryStatus(StrEnum):
    """Status of one webhook delivery."""

    PENDING = "pending"
    SUCCESS = "success"
    FAILED = "failed"
    RETRYING = "retrying"


class OrchestrationModeKind(StrEnum):
    """How a project's scenes come into existence. Fixed at submission."""

    ASSET_STITCH = "asset_stitch"
    AUTONOMOUS = "autonomous"


class AspectRatio(StrEnum):
    """Supported output aspect ratios."""

    LANDSCAPE = "16:9"
    PORTRAIT = "9:16"
    SQUARE = "1:1"


class AssetType(StrEnum):
    """Kinds of caller-supplied assets for stitch mode."""

    VIDEO = "video"
    AUDIO = "audio"
    IMAGE = "image"


class PipelineStage(StrEnum):
    """Stages of the autonomous director pipeline."""

    CONTENT_ANALYSIS = "content_analysis"
    NARRATION = "narration"
    SCENE_CLIP = "scene_clip"
    COMPOSITION = "composition"


class WebhookEventStatus(StrEnum):
    """Status values reported in outbound webhook payloads."""

    QUEUED = "queued"
    COMPLETED = "completed"
    FAILED = "failed"
