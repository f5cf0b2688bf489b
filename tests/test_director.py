"""Tests for the director pipeline."""

from unittest.mock import AsyncMock
from uuid import UUID

import pytest
from sqlalchemy.orm import Session

from tests.helpers import FrozenClock, build_director, submit
from tests.providers import FailingVoiceoverProvider, FlakyVideoGenProvider
from vidgen_engine.adapters.llm.base import LLMProvider
from vidgen_engine.adapters.voiceover.base import VoiceoverProvider
from vidgen_engine.domain.enums import PipelineStage, SceneStatus
from vidgen_engine.domain.errors import LeaseLostError, ProviderError
from vidgen_engine.repositories.projects import ProjectRepository
from vidgen_engine.repositories.render_queue import RenderQueue
from vidgen_engine.repositories.scenes import SceneRepository
from vidgen_engine.services.director import Director
from vidgen_engine.services.scene_clips import SceneClipService
from vidgen_engine.services.submission import AssetInput


class TestAutonomousRun:
    @pytest.mark.asyncio
    async def test_full_pipeline(
        self,
        session: Session,
        owner_id: UUID,
        clock: FrozenClock,
        render_queue: RenderQueue,
        director: Director,
    ) -> None:
        receipt = submit(session, owner_id, clock=clock, duration_seconds=20)
        job = render_queue.claim_next()

        composed = await director.run(job)

        assert composed.output_url == f"http://media.test/final/{job.id}.mp4"
        assert composed.recipe_fingerprint

        project = ProjectRepository(session).get(receipt.project_id)
        assert project.analysis is not None
        assert project.narration_url == f"http://media.test/audio/{project.id}.mp3"
        assert project.narration_duration_seconds > 0
        assert project.narration_script

        scenes = SceneRepository(session).list_for_project(project.id)
        assert len(scenes) == len(project.analysis["scenes"])
        assert all(s.status == SceneStatus.COMPLETED for s in scenes)
        assert [s.scene_index for s in scenes] == list(range(len(scenes)))

    @pytest.mark.asyncio
    async def test_narration_failure_is_terminal(
        self,
        session: Session,
        owner_id: UUID,
        clock: FrozenClock,
        render_queue: RenderQueue,
        storage,
        llm_provider,
        video_gen_provider,
        renderer_provider,
    ) -> None:
        submit(session, owner_id, clock=clock)
        director = build_director(
            session,
            render_queue,
            storage,
            clock=clock,
            llm=llm_provider,
            voiceover=FailingVoiceoverProvider(),
            video_gen=video_gen_provider,
            renderer=renderer_provider,
        )

        with pytest.raises(ProviderError) as exc_info:
            await director.run(render_queue.claim_next())

        assert exc_info.value.stage == PipelineStage.NARRATION
        assert not exc_info.value.queue_retryable

    @pytest.mark.asyncio
    async def test_scene_failure_needs_explicit_retry(
        self,
        session: Session,
        owner_id: UUID,
        clock: FrozenClock,
        render_queue: RenderQueue,
        storage,
        llm_provider,
        voiceover_provider,
        renderer_provider,
    ) -> None:
        receipt = submit(session, owner_id, clock=clock)
        director = build_director(
            session,
            render_queue,
            storage,
            clock=clock,
            llm=llm_provider,
            voiceover=voiceover_provider,
            video_gen=FlakyVideoGenProvider(failures=1),
            renderer=renderer_provider,
        )

        with pytest.raises(ProviderError) as exc_info:
            await director.run(render_queue.claim_next())

        assert exc_info.value.stage == PipelineStage.SCENE_CLIP
        assert not exc_info.value.queue_retryable
        statuses = [s.status for s in SceneRepository(session).list_for_project(receipt.project_id)]
        assert statuses.count(SceneStatus.FAILED) == 1
        assert statuses.count(SceneStatus.COMPLETED) == len(statuses) - 1


class TestCheckpoints:
    @pytest.mark.asyncio
    async def test_resume_skips_finished_stages(
        self,
        session: Session,
        owner_id: UUID,
        clock: FrozenClock,
        render_queue: RenderQueue,
        storage,
        llm_provider,
        voiceover_provider,
        renderer_provider,
    ) -> None:
        receipt = submit(session, owner_id, clock=clock)
        job = render_queue.claim_next()
        flaky = FlakyVideoGenProvider(failures=1)
        first = build_director(
            session,
            render_queue,
            storage,
            clock=clock,
            llm=llm_provider,
            voiceover=voiceover_provider,
            video_gen=flaky,
            renderer=renderer_provider,
        )
        with pytest.raises(ProviderError):
            await first.run(job)
        calls_after_first_run = flaky.calls

        failed = next(
            s for s in SceneRepository(session).list_for_project(receipt.project_id)
            if s.status == SceneStatus.FAILED
        )
        SceneClipService(session, flaky, clock=clock).request_retry(receipt.project_id, failed.scene_index)

        llm = AsyncMock(spec=LLMProvider)
        voiceover = AsyncMock(spec=VoiceoverProvider)
        second = build_director(
            session,
            render_queue,
            storage,
            clock=clock,
            llm=llm,
            voiceover=voiceover,
            video_gen=flaky,
            renderer=renderer_provider,
        )
        composed = await second.run(job)

        assert composed.output_url.endswith(f"/final/{job.id}.mp4")
        llm.complete.assert_not_awaited()
        voiceover.generate.assert_not_awaited()
        # Only the retried scene was regenerated
        assert flaky.calls == calls_after_first_run + 1

    @pytest.mark.asyncio
    async def test_restarts_scene_left_generating(
        self,
        session: Session,
        owner_id: UUID,
        clock: FrozenClock,
        render_queue: RenderQueue,
        director: Director,
    ) -> None:
        receipt = submit(session, owner_id, clock=clock)
        job = render_queue.claim_next()
        await director.run(job)

        scenes = SceneRepository(session)
        stuck = scenes.get_by_index(receipt.project_id, 0)
        scenes.compare_and_set(stuck.id, [SceneStatus.COMPLETED], SceneStatus.GENERATING, clip_url=None)
        session.commit()

        await director.run(job)

        assert scenes.get(stuck.id).status == SceneStatus.COMPLETED


class TestAssetStitch:
    @pytest.mark.asyncio
    async def test_goes_straight_to_composition(
        self,
        session: Session,
        owner_id: UUID,
        clock: FrozenClock,
        render_queue: RenderQueue,
        storage,
        video_gen_provider,
        renderer_provider,
    ) -> None:
        receipt = submit(
            session,
            owner_id,
            "My uploaded clips",
            clock=clock,
            assets=[
                AssetInput(type="video", url="https://cdn.test/a.mp4"),
                AssetInput(type="image", url="https://cdn.test/b.jpg"),
                AssetInput(type="audio", url="https://cdn.test/track.mp3"),
            ],
        )
        llm = AsyncMock(spec=LLMProvider)
        voiceover = AsyncMock(spec=VoiceoverProvider)
        director = build_director(
            session,
            render_queue,
            storage,
            clock=clock,
            llm=llm,
            voiceover=voiceover,
            video_gen=video_gen_provider,
            renderer=renderer_provider,
        )
        job = render_queue.claim_next()

        composed = await director.run(job)

        assert composed.output_url == f"http://media.test/final/{job.id}.mp4"
        assert composed.duration_seconds == 10.0
        llm.complete.assert_not_awaited()
        voiceover.generate.assert_not_awaited()
        project = ProjectRepository(session).get(receipt.project_id)
        assert project.analysis is None
        assert project.narration_url == "https://cdn.test/track.mp3"


class TestLease:
    @pytest.mark.asyncio
    async def test_lost_lease_stops_the_run(
        self,
        session: Session,
        session_factory,
        owner_id: UUID,
        clock: FrozenClock,
        render_queue: RenderQueue,
        director: Director,
    ) -> None:
        submit(session, owner_id, clock=clock)
        job = render_queue.claim_next()

        # Another worker reclaims the job after the lease lapsed
        clock.advance(seconds=901)
        other = session_factory()
        try:
            reclaimed = RenderQueue(other, clock=clock, lease_seconds=900).claim_next()
            assert reclaimed.id == job.id
            assert reclaimed.lease_generation == 2
        finally:
            other.close()

        with pytest.raises(LeaseLostError):
            await director.run(job)
