"""Tests for domain models."""

from uuid import uuid4

import pytest

from vidgen_engine.domain.enums import AssetType, OrchestrationModeKind, PipelineStage
from vidgen_engine.domain.errors import (
    AuthError,
    NotFoundError,
    ProviderError,
    QueueExhaustedError,
    RateLimitExceededError,
    VidGenError,
)
from vidgen_engine.domain.models import (
    AssetStitchMode,
    AutonomousMode,
    ContentAnalysis,
    ScenePlan,
    SubmittedAsset,
)


def make_analysis() -> ContentAnalysis:
    return ContentAnalysis(
        title="Sunrise",
        sentiment="inspirational",
        topic="nature",
        recommended_template="cinematic_story",
        scenes=[
            ScenePlan(
                scene_index=1,
                description="Dark valley",
                prompt="dark valley before dawn",
                narration_text="  Before dawn the valley sleeps. ",
                duration_seconds=6.0,
                visual_elements=["valley", "mist"],
            ),
            ScenePlan(
                scene_index=2,
                description="Silent ridge",
                prompt="ridge silhouette",
                narration_text="",
                duration_seconds=4.0,
            ),
            ScenePlan(
                scene_index=3,
                description="Sun breaks through",
                prompt="sun breaking over peaks",
                narration_text="Then the light arrives.",
                duration_seconds=5.5,
                mood="uplifting",
                camera_movement="slow pull out",
            ),
        ],
    )


def test_auth_error_message_is_generic() -> None:
    """The message never reveals which check failed."""
    assert str(AuthError()) == "Invalid or missing API key"
    assert isinstance(AuthError(), VidGenError)


@pytest.mark.parametrize(
    ("stage", "retryable"),
    [
        (PipelineStage.CONTENT_ANALYSIS, True),
        (PipelineStage.NARRATION, False),
        (PipelineStage.SCENE_CLIP, False),
        (PipelineStage.COMPOSITION, True),
    ],
)
def test_provider_error_retryability(stage: PipelineStage, retryable: bool) -> None:
    assert ProviderError(stage, "boom").queue_retryable is retryable


def test_provider_error_str_includes_stage() -> None:
    error = ProviderError(PipelineStage.NARRATION, "quota exceeded", provider="elevenlabs")

    assert str(error) == "[narration] quota exceeded"
    assert error.message == "quota exceeded"
    assert error.provider == "elevenlabs"


def test_error_messages() -> None:
    job_id = uuid4()

    assert str(NotFoundError("Project", job_id)) == f"Project not found: {job_id}"
    assert str(QueueExhaustedError(job_id, 3, 3)) == f"Render job {job_id} exhausted its attempts (3/3)"

    limited = RateLimitExceededError(60, 17)
    assert limited.retry_after_seconds == 17
    assert "60 requests per minute" in str(limited)


def test_asset_stitch_mode_splits_assets() -> None:
    mode = AssetStitchMode(
        assets=(
            SubmittedAsset(AssetType.VIDEO, "https://cdn.example.com/a.mp4"),
            SubmittedAsset(AssetType.AUDIO, "https://cdn.example.com/track.mp3"),
            SubmittedAsset(AssetType.IMAGE, "https://cdn.example.com/b.png"),
        )
    )

    assert mode.kind == OrchestrationModeKind.ASSET_STITCH
    assert [a.url for a in mode.visual_assets] == [
        "https://cdn.example.com/a.mp4",
        "https://cdn.example.com/b.png",
    ]
    assert mode.soundtrack is not None
    assert mode.soundtrack.url == "https://cdn.example.com/track.mp3"


def test_asset_stitch_mode_without_soundtrack() -> None:
    mode = AssetStitchMode(assets=(SubmittedAsset(AssetType.IMAGE, "https://cdn.example.com/b.png"),))

    assert mode.soundtrack is None


def test_autonomous_mode() -> None:
    mode = AutonomousMode(voice_id="adam")

    assert mode.kind == OrchestrationModeKind.AUTONOMOUS
    assert mode.voice_id == "adam"


def test_content_analysis_derived_fields() -> None:
    analysis = make_analysis()

    assert analysis.narration_script == "Before dawn the valley sleeps. Then the light arrives."
    assert analysis.total_duration == 15.5


def test_content_analysis_round_trip() -> None:
    analysis = make_analysis()

    restored = ContentAnalysis.from_dict(analysis.to_dict())

    assert restored == analysis
    assert restored.scenes[0].visual_elements == ["valley", "mist"]


def test_content_analysis_from_minimal_dict() -> None:
    restored = ContentAnalysis.from_dict({"title": "Bare"})

    assert restored.scenes == []
    assert restored.sentiment == "neutral"
    assert restored.recommended_template is None
