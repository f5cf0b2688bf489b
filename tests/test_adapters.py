"""Tests for stub adapters."""

import json
from uuid import uuid4

import pytest

from vidgen_engine.adapters.llm.base import LLMMessage
from vidgen_engine.adapters.video_gen.base import VideoGenRequest
from vidgen_engine.domain.models import CompositionRecipe, RecipeClip


def make_recipe(clips: list[RecipeClip]) -> CompositionRecipe:
    return CompositionRecipe(
        project_id=uuid4(),
        clips=clips,
        aspect_ratio="9:16",
        width=1080,
        height=1920,
        style_template="cinematic_story",
        fingerprint="abc123",
    )


@pytest.mark.asyncio
async def test_video_gen_stub(video_gen_provider) -> None:
    """Test stub video generation provider."""
    request = VideoGenRequest(prompt="Test video prompt", duration_seconds=5.0, aspect_ratio="9:16")
    result = await video_gen_provider.generate(request)

    assert result.success is True
    assert result.video_url.startswith("https://stub.vidgen.local/clips/")
    assert result.video_url.endswith(".mp4")
    assert result.duration_seconds == 5.0
    assert result.metadata["provider"] == "stub"


@pytest.mark.asyncio
async def test_video_gen_stub_is_deterministic(video_gen_provider) -> None:
    first = await video_gen_provider.generate(VideoGenRequest(prompt="Same prompt"))
    second = await video_gen_provider.generate(VideoGenRequest(prompt="Same prompt"))
    other = await video_gen_provider.generate(VideoGenRequest(prompt="Other prompt"))

    assert first.video_url == second.video_url
    assert first.video_url != other.video_url


@pytest.mark.asyncio
async def test_renderer_stub(renderer_provider) -> None:
    """Test stub renderer provider."""
    recipe = make_recipe(
        [
            RecipeClip(scene_index=1, url="https://example.com/a.mp4", media_type="video", duration_seconds=6.0),
            RecipeClip(scene_index=2, url="https://example.com/b.png", media_type="image", duration_seconds=None),
        ]
    )

    result = await renderer_provider.render(recipe)

    assert result.success is True
    assert result.output_path is not None
    assert result.output_path.exists()
    assert result.output_path.name == "abc123.mp4"
    # Images without a duration get the default clip length
    assert result.duration_seconds == 11.0
    assert result.metadata["resolution"] == "1080x1920"


@pytest.mark.asyncio
async def test_renderer_stub_rejects_empty_recipe(renderer_provider) -> None:
    result = await renderer_provider.render(make_recipe([]))

    assert result.success is False
    assert result.error_message == "Recipe has no clips"


@pytest.mark.asyncio
async def test_llm_stub_text(llm_provider) -> None:
    response = await llm_provider.complete([LLMMessage(role="user", content="Say hello")])

    assert response.content.startswith("This is a stub response for: Say hello")
    assert response.model == "stub-model"
    assert response.finish_reason == "stop"


@pytest.mark.asyncio
async def test_llm_stub_scene_breakdown(llm_provider) -> None:
    """JSON briefs get a breakdown with the requested scene count and duration."""
    brief = {"prompt": "A fox crossing a snowy field", "scene_count": 3, "target_duration_seconds": 15}
    response = await llm_provider.complete(
        [
            LLMMessage(role="system", content="You are a director."),
            LLMMessage(role="user", content=json.dumps(brief)),
        ],
        json_mode=True,
    )

    data = json.loads(response.content)
    assert len(data["scenes"]) == 3
    assert [s["sceneNumber"] for s in data["scenes"]] == [1, 2, 3]
    assert sum(s["duration"] for s in data["scenes"]) == 15.0
    assert all("A fox crossing" in s["pikaPrompt"] for s in data["scenes"])


@pytest.mark.asyncio
async def test_stub_health_checks(llm_provider, voiceover_provider, video_gen_provider) -> None:
    assert await llm_provider.health_check() is True
    assert await voiceover_provider.health_check() is True
    assert await video_gen_provider.health_check() is True
